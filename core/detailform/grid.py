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

from django.http import Http404
from django.template.loader import render_to_string

from detailform.conf import get_setting
from detailform.detail_form import DetailForm
from detailform.navigation import find_toplevel_controller, join_links
from detailform.negotiation import is_fragment_request, negotiate


class RecordGrid:
  """
  A named record list embedded in a screen, routable below
  ``<controller link>/field/<name>/``.

  ``controller`` renders the screen the grid is part of: a page controller,
  or an ItemRequestHandler when the grid sits inside a record's detail form.
  """

  def __init__(self, name, records, controller, components=None, title=None):
    self.name = name
    self.records = records
    self.controller = controller
    self.components = list(components) if components is not None else [DetailForm()]
    self.title = title or str(records.model._meta.verbose_name_plural).title()
    self.template = get_setting("grid_template")

  @property
  def model(self):
    return self.records.model

  def get_list(self):
    return self.records

  def get_controller(self):
    return self.controller

  def get_toplevel_controller(self):
    return find_toplevel_controller(self.controller)

  def link(self, action=None) -> str:
    return join_links(self.controller.link(), "field", self.name, action)

  # --------------------------------------------------
  # Routing
  # --------------------------------------------------
  def url_handlers(self) -> dict:
    handlers = {}
    for component in self.components:
      if hasattr(component, "url_handlers"):
        handlers.update(component.url_handlers(self))
    return handlers

  def handle_request(self, request, segments=()):
    segments = list(segments)
    if not segments:
      return self.index(request)

    handler = self.url_handlers().get(segments[0])
    if handler is None:
      raise Http404(f"Invalid grid action '{segments[0]}' for grid '{self.name}'")
    return handler(self, request, segments[1:])

  # --------------------------------------------------
  # Rendering
  # --------------------------------------------------
  def rows(self):
    item_link = self.link("item")
    return [
      {
        "record": record,
        "edit_link": join_links(item_link, record.pk, "edit"),
        "view_link": join_links(item_link, record.pk, "view"),
      }
      for record in self.records
    ]

  def render(self, request, show_messages=False) -> str:
    records = self.get_list()
    return render_to_string(self.template, {
      "grid": self,
      "count": records.count(),
      "rows": self.rows(),
      "new_link": join_links(self.link("item"), "new"),
      "show_messages": show_messages,
    }, request=request)

  def index(self, request):
    content = self.render(request, show_messages=is_fragment_request(request))
    controller = self.get_toplevel_controller()
    return negotiate(request, content, lambda: controller.customise({"content": content}))
