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

import logging

from django import forms
from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.http import Http404
from django.template.loader import render_to_string
from django.utils.html import format_html
from django.utils.translation import gettext as _

from detailform.conf import get_setting
from detailform.extensions import Extensible
from detailform.forms import MANY_MANY_PREFIX, ItemFormAssembler
from detailform.lists import ManyManyList
from detailform.navigation import Crumb, find_toplevel_controller, join_links, remove_action
from detailform.negotiation import ResponseNegotiator, fragment_redirect, is_fragment_request, negotiate
from detailform.permissions import acting_user, capabilities_for

logger = logging.getLogger(__name__)


class ItemRequestHandler(Extensible):
  """
  Serves view / edit / save / delete for a single record of a grid.

  ``controller`` is the handler this one is nested in. That is either the
  page controller that renders the screen or, for grids shown inside a
  record's detail form, another ItemRequestHandler. The chain is walked
  upwards to find the page controller (see get_toplevel_controller).
  """

  is_toplevel_controller = False
  allowed_actions = ("edit", "view")

  def __init__(self, grid, component, record, controller, popup_form_name="DetailForm"):
    super().__init__(component.extensions)
    self.grid = grid
    self.component = component
    self.record = record
    self.controller = controller
    self.popup_form_name = popup_form_name
    self.template = get_setting("item_template")
    self.validator = component.validator
    self.request = None

  # --------------------------------------------------
  # Routing
  # --------------------------------------------------
  def handle_request(self, request, segments=()):
    """
    Dispatch the URL segments below ``item/<id>``:
    '' and 'edit' edit, 'view' views, 'field/<grid>/...' enters a nested
    grid. POST requests to the edit action are form submissions.
    """
    self.request = request
    segments = list(segments)

    if self.record is None:
      return self.redirect_missing_record(request)

    if len(segments) >= 2 and segments[0] == "field":
      return self.handle_field(request, segments[1], segments[2:])

    action = segments[0] if segments else "edit"
    if action not in self.allowed_actions:
      raise Http404(f"Invalid action '{action}' for {self.__class__.__name__}")

    if request.method == "POST":
      if action != "edit":
        raise Http404(f"Cannot submit the '{action}' action")
      return self.handle_form_submission(request)

    logger.debug("%s %s #%s", action, self.record.__class__.__name__, self.record.pk)
    return getattr(self, action)(request)

  def handle_field(self, request, name, segments):
    grid = self.get_nested_grids().get(name)
    if grid is None:
      raise Http404(f"No grid '{name}' on {self.record.__class__.__name__}")
    return grid.handle_request(request, segments)

  def handle_form_submission(self, request):
    data = request.POST
    form = self.item_edit_form(data=data)
    if "action_doDelete" in data:
      return self.do_delete(data, form)
    if "action_doSave" in data:
      return self.do_save(data, form)
    raise Http404("Unknown form action.")

  def redirect_missing_record(self, request):
    # the record may have been removed meanwhile, fall back to the list
    url = remove_action(request.path)
    logger.info("Record not found in grid '%s', redirecting to %s", self.grid.name, url)
    return fragment_redirect(request, url, get_setting("content_fragment"))

  # --------------------------------------------------
  # Links & navigation
  # --------------------------------------------------
  def link(self, action=None) -> str:
    return join_links(self.grid.link("item"), self.record.pk if self.record.pk else "new", action)

  def get_controller(self):
    return self.controller

  def get_toplevel_controller(self):
    return find_toplevel_controller(self.controller)

  def get_back_link(self) -> str:
    toplevel = self.get_toplevel_controller()
    backlink = ""
    if hasattr(toplevel, "backlink"):
      backlink = toplevel.backlink()
    elif hasattr(self.controller, "breadcrumbs"):
      parents = self.controller.breadcrumbs(False)
      if parents:
        backlink = parents[-1].link
    if not backlink:
      backlink = toplevel.link()
    return backlink

  def breadcrumbs(self, unlinked=False):
    """
    The parent's trail plus one crumb for this record. None when the
    parent does not provide breadcrumbs.
    """
    if not hasattr(self.controller, "breadcrumbs"):
      return None
    items = self.controller.breadcrumbs(unlinked)
    if items is None:
      return None

    items = list(items)
    if self.record is not None and self.record.pk:
      title = self.record_title() or f"#{self.record.pk}"
      items.append(Crumb(title, self.link()))
    else:
      items.append(Crumb(_("New %(name)s") % {"name": self.record._meta.verbose_name}, None))
    return items

  def record_title(self) -> str:
    return getattr(self.record, "title", None) or ""

  def get_nested_grids(self) -> dict:
    if not self.record.pk or not hasattr(self.record, "get_detail_grids"):
      return {}
    return self.record.get_detail_grids(self)

  # --------------------------------------------------
  # Views
  # --------------------------------------------------
  def capabilities(self):
    return capabilities_for(self.record, acting_user(self.request))

  def view(self, request):
    if not self.record.can_view(acting_user(request)):
      logger.warning("View of %s #%s refused", self.record.__class__.__name__, self.record.pk)
      raise PermissionDenied

    controller = self.get_toplevel_controller()
    form = self.item_edit_form(readonly=True)
    content = self.render_item(request, form, backlink=controller.link())
    return negotiate(request, content, lambda: controller.customise({
      "content": content,
      "breadcrumbs": self.breadcrumbs(),
    }))

  def edit(self, request):
    controller = self.get_toplevel_controller()
    form = self.item_edit_form()
    backlink = controller.backlink() if hasattr(controller, "backlink") else controller.link()
    content = self.render_item(request, form, backlink=backlink)
    # full page requests get the content wrapped into the page controller
    return negotiate(request, content, lambda: controller.customise({
      "content": content,
      "breadcrumbs": self.breadcrumbs(),
    }))

  def render_item(self, request, form, backlink):
    nested = [grid.render(request) for grid in self.get_nested_grids().values()]
    return render_to_string(self.template, {
      "handler": self,
      "backlink": backlink,
      "item_edit_form": form,
      "nested_grids": nested,
      "show_messages": is_fragment_request(request),
    }, request=request)

  def item_edit_form(self, data=None, readonly=False):
    """
    Build the detail form. Fails with PermissionDenied when the record
    cannot be viewed at all.
    """
    caps = self.capabilities()
    if not caps.view:
      logger.warning("View of %s #%s refused", self.record.__class__.__name__, self.record.pk)
      raise PermissionDenied

    assembler = ItemFormAssembler(
      self.record,
      self.grid.get_list(),
      self.component,
      caps,
      crumbs=self.breadcrumbs(),
      context=self,
      validator=self.validator,
      backlink=self.get_back_link(),
    )
    return assembler.build(data=data, readonly=readonly)

  # --------------------------------------------------
  # Save
  # --------------------------------------------------
  def do_save(self, data, form):
    is_new_record = not self.record.pk

    if not self.record.can_edit(acting_user(self.request)):
      logger.warning("Save of %s #%s refused", self.record.__class__.__name__, self.record.pk)
      raise PermissionDenied

    try:
      with transaction.atomic():
        self.save_form_into_record(data, form)
    except ValidationError as e:
      return self.generate_validation_response(form, e)

    link = format_html('<a href="{}">"{}"</a>', self.link("edit"), self.record_title())
    message = format_html(
      _("Saved {name} {link}"),
      name=self.record._meta.verbose_name,
      link=link,
    )
    form.session_message(self.request, message, "good")
    logger.info("Saved %s #%s", self.record.__class__.__name__, self.record.pk)

    return self.redirect_after_save(is_new_record)

  def redirect_after_save(self, is_new_record: bool):
    if is_new_record:
      return fragment_redirect(self.request, self.link(), get_setting("content_fragment"))

    current = self.grid.get_list().by_id(self.record.pk)
    if current is not None:
      # redirecting to the same URL does not make HTMX reload it, so render
      # the edit view again in place
      self.record = current
      return self.edit(self.request)

    # the edit moved the record out of a filtered list
    url = remove_action(self.request.path)
    return fragment_redirect(self.request, url, get_setting("content_fragment"))

  def save_form_into_record(self, data, form):
    """
    Load the submitted data into the record and its list.

    Raises ValidationError when the data does not validate.
    """
    records = self.grid.get_list()

    new_class_name = data.get("class_name")
    retyped = False
    if (new_class_name and hasattr(self.record, "new_class_instance")
        and new_class_name != self.record.class_name):
      # restore the loaded tag first, the new instance tracks the change from it
      self.record.class_name = self.record.__class__.__name__
      self.record = self.record.new_class_instance(new_class_name)
      form.form.instance = self.record
      retyped = True

    if not form.is_valid():
      raise form.validation_error()

    django_form = form.form
    if isinstance(django_form, forms.BaseModelForm):
      django_form.save(commit=False)
    else:
      for name, value in django_form.cleaned_data.items():
        if not name.startswith(MANY_MANY_PREFIX) and hasattr(self.record, name):
          setattr(self.record, name, value)

    if retyped:
      self.record.class_name = new_class_name
    if hasattr(self.record, "class_name_changed") and self.record.class_name_changed():
      logger.info("Changed type of %s #%s to %s",
                  self.record._meta.concrete_model.__name__, self.record.pk, self.record.class_name)

    self.record.save()
    if hasattr(django_form, "save_m2m"):
      django_form.save_m2m()

    records.add(self.record, self.get_extra_saved_data(form, records))
    return self.record

  def get_extra_saved_data(self, form, records):
    """Membership columns submitted as 'manymany__<field>' form fields."""
    if not isinstance(records, ManyManyList):
      return None

    cleaned = form.form.cleaned_data
    data = {}
    for field in records.get_extra_fields():
      key = f"{MANY_MANY_PREFIX}{field}"
      if key in cleaned:
        data[field] = cleaned[key]
    return data

  def generate_validation_response(self, form, error):
    controller = self.get_toplevel_controller()
    request = self.request

    form.session_message(request, " ".join(error.messages), "bad")
    logger.info("Validation failed for %s #%s: %s",
                self.record.__class__.__name__, self.record.pk, error.messages)

    form_fragment = get_setting("form_fragment")
    negotiator = ResponseNegotiator({
      form_fragment: lambda: form.for_template(request),
      "default": lambda: controller.redirect_back(request),
    })
    # the fragment is the whole form, replace it rather than fill it
    return negotiator.respond(request, form_fragment, swap="outerHTML")

  # --------------------------------------------------
  # Delete
  # --------------------------------------------------
  def do_delete(self, data, form):
    title = self.record_title()
    back_link = self.get_back_link()
    content_fragment = get_setting("content_fragment")

    try:
      if not self.record.can_delete(acting_user(self.request)):
        raise ValidationError(_("No delete permissions"))
      self.record.delete()
    except ValidationError as e:
      # reported on the form, not as an HTTP error
      form.session_message(self.request, " ".join(e.messages), "bad")
      logger.warning("Delete of %s #%s refused: %s",
                     self.record.__class__.__name__, self.record.pk, e.messages)
      return fragment_redirect(self.request, back_link, content_fragment)

    message = format_html(
      _("Deleted {name} {title}"),
      name=self.record._meta.verbose_name,
      title=title,
    )

    # the item form is gone after the redirect, so address the page form
    if getattr(self.controller, "is_toplevel_controller", False) and hasattr(self.controller, "get_edit_form"):
      self.controller.get_edit_form().session_message(self.request, message, "good")
    else:
      form.session_message(self.request, message, "good")
    logger.info("Deleted %s '%s'", self.record.__class__.__name__, title)

    return fragment_redirect(self.request, back_link, content_fragment)
