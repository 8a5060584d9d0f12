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

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Crumb:
  """One entry of a breadcrumb trail. ``link`` is None for unlinked crumbs."""
  title: str
  link: Optional[str] = None


def join_links(*parts) -> str:
  """
  Join URL segments with single slashes.

  Empty parts are skipped. A single part is returned unchanged, so a page
  link like '/security/roles/' keeps its trailing slash.
  """
  cleaned = [str(p) for p in parts if p not in (None, "")]
  if not cleaned:
    return ""
  if len(cleaned) == 1:
    return cleaned[0]

  head = cleaned[0]
  url = head.rstrip("/")
  for part in cleaned[1:]:
    seg = part.strip("/")
    if seg:
      url = f"{url}/{seg}"

  if head.startswith("/") and not url.startswith("/"):
    url = "/" + url
  return url


def remove_action(url: str) -> str:
  """
  Strip the trailing item segments (``item/<id>[/<action>]``) from a URL,
  which leaves the base URL of the collection the item belongs to.
  """
  path = url.split("?", 1)[0].rstrip("/")
  segments = path.split("/")
  for idx in range(len(segments) - 1, -1, -1):
    if segments[idx] == "item":
      return "/".join(segments[:idx]) or "/"
  return path or "/"


def find_toplevel_controller(controller):
  """
  Walk up the chain of enclosing request handlers until a link reports
  itself as a top-level controller. Links without the flag count as
  top-level.
  """
  c = controller
  while c is not None and not getattr(c, "is_toplevel_controller", True):
    c = c.controller
  return c
