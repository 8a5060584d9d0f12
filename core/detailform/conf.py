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

from django.conf import settings

# ------------------------------------------------------------
# Defaults, overridable via settings.ELEVATA_DETAILFORM
# ------------------------------------------------------------
DEFAULTS = {
  "item_template": "detailform/item_edit_view.html",
  "page_template": "detailform/page.html",
  "grid_template": "detailform/grid.html",
  "form_template": "detailform/form.html",
  # response header used to tell HTMX which fragment to refresh
  "fragment_header": "HX-Retarget",
  "content_fragment": "content",
  "form_fragment": "form-fragment",
  # never offered in generated detail forms
  "form_exclude": ["id", "created_at", "created_by", "updated_at", "updated_by"],
}


def get_setting(key: str):
  """Return a detailform setting, falling back to DEFAULTS."""
  cfg = getattr(settings, "ELEVATA_DETAILFORM", {})
  if key in cfg:
    return cfg[key]
  return DEFAULTS[key]
