"""
elevata-detailform - Nested record detail forms for Django
Copyright © 2025 Ilona Tag

This file is part of elevata-detailform.

elevata-detailform is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as
published by the Free Software Foundation, either version 3 of
the License, or (at your option) any later version.

elevata-detailform is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with elevata-detailform. If not, see <https://www.gnu.org/licenses/>.

Contact: <https://github.com/elevata-labs/elevata>.
"""

import os, json
from typing import Iterable, List, Optional

def env_str(key: str, default: Optional[str] = None) -> Optional[str]:
  """Get env var as string with default."""
  val = os.getenv(key)
  return val if val not in (None, "") else default

def env_bool(key: str, default: bool = False) -> bool:
  """Get env var as boolean."""
  val = os.getenv(key)
  return default if val is None else val.strip().lower() in ("1","true","yes","on")

def env_list(key: str, default: Optional[List[str]] = None, sep: str = ",") -> List[str]:
  """Get comma-separated list env var."""
  val = os.getenv(key)
  if not val:
    return list(default or [])
  return [x.strip() for x in val.split(sep) if x.strip()]

def env_choice(key: str, choices: Iterable[str], default: str) -> str:
  """Get env var restricted to ``choices`` (case-insensitive); anything else yields the default."""
  val = (os.getenv(key) or "").strip().upper()
  allowed = {c.upper(): c for c in choices}
  return allowed.get(val, default)

def env_json(key: str, default: dict) -> dict:
  """Get env var parsed as a JSON object, merged over ``default``."""
  val = os.getenv(key)
  if not val:
    return dict(default)
  try:
    data = json.loads(val)
  except json.JSONDecodeError:
    return dict(default)
  if not isinstance(data, dict):
    return dict(default)
  return {**default, **data}
