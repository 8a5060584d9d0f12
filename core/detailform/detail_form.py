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

import sys

from django.utils.module_loading import import_string

from detailform.conf import get_setting
from detailform.extensions import Extensible
from detailform.item_request import ItemRequestHandler
from detailform.lists import resolve_record


class DetailForm(Extensible):
  """
  Grid component providing view and edit forms at grid-specific URLs:

    <grid link>/item/<id>          edit (default action)
    <grid link>/item/<id>/edit
    <grid link>/item/<id>/view
    <grid link>/item/new           create

  Configuration is set once and read by every item request:

  - fields: form class or list of model field names. Falls back to the
    record's get_detail_form_class().
  - validator: callable receiving the bound Django form. Falls back to
    the record's get_detail_validator(), if it has one.
  - item_request_class: handler class or dotted path. Otherwise a class
    named '<ComponentClass>ItemRequest' in the component's module, else
    ItemRequestHandler.
  - item_edit_form_callback: callable(form, handler), run after the form
    has been built.
  - extensions: objects implementing any of the hooks
    update_item_request_class, update_item_request_handler,
    update_form_actions, update_item_edit_form.
  """

  def __init__(self, name="DetailForm", *, fields=None, validator=None, item_request_class=None,
               item_edit_form_callback=None, template=None, extensions=None):
    super().__init__(extensions)
    self.name = name
    self.fields = fields
    self.validator = validator
    self.item_request_class = item_request_class
    self.item_edit_form_callback = item_edit_form_callback
    self.template = template or get_setting("item_template")

  def url_handlers(self, grid) -> dict:
    return {"item": self.handle_item}

  def handle_item(self, grid, request, segments):
    """
    Resolve ``item/<id>`` and delegate the remaining segments. The grid's
    controller is either the page controller (top-level grid) or another
    ItemRequestHandler (nested grid).
    """
    identifier = segments[0] if segments else None
    record = resolve_record(grid.get_list(), identifier)
    handler = self.get_item_request_handler(grid, record, grid.get_controller())

    if handler.validator is None and record is not None and hasattr(record, "get_detail_validator"):
      handler.validator = record.get_detail_validator()

    return handler.handle_request(request, segments[1:])

  def get_item_request_class(self):
    if self.item_request_class:
      cls = self.item_request_class
      return import_string(cls) if isinstance(cls, str) else cls

    module = sys.modules.get(self.__class__.__module__)
    by_convention = getattr(module, f"{self.__class__.__name__}ItemRequest", None)
    if by_convention is not None:
      return by_convention
    return ItemRequestHandler

  def get_item_request_handler(self, grid, record, controller):
    """Build the request handler for ``record``."""
    cls = self.get_item_request_class()
    for replacement in self.extend("update_item_request_class", cls, grid, record, controller):
      if replacement is not None:
        cls = replacement

    handler = cls(grid, self, record, controller, self.name)
    handler.template = self.template
    self.extend("update_item_request_handler", handler)
    return handler
