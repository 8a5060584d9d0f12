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
from typing import ClassVar, Optional

from django import forms
from django.contrib import messages
from django.core.exceptions import NON_FIELD_ERRORS, ValidationError
from django.forms import modelform_factory
from django.forms.models import model_to_dict
from django.template.loader import render_to_string
from django.utils.html import format_html
from django.utils.translation import gettext as _

from detailform.conf import get_setting
from detailform.lists import HasManyList, ManyManyList

# merge strategies for ItemEditForm.load_data_from()
MERGE_DEFAULT = "default"
MERGE_IGNORE_FALSEY = "ignore_falsey"

# namespace of many-many extra fields inside a detail form
MANY_MANY = "manymany"
MANY_MANY_PREFIX = f"{MANY_MANY}__"

MESSAGE_LEVELS = {
  "good": messages.SUCCESS,
  "bad": messages.ERROR,
  "warning": messages.WARNING,
}


def add_form_message(request, form_name: str, message, level: str = "good") -> None:
  """Queue a flash message addressed to the form called ``form_name``."""
  messages.add_message(
    request,
    MESSAGE_LEVELS.get(level, messages.INFO),
    message,
    extra_tags=form_name,
  )


# ------------------------------------------------------------
# Actions
# ------------------------------------------------------------
@dataclass
class FormAction:
  """A submit button. ``name`` is posted as the button name, e.g. 'action_doSave'."""
  name: str
  label: str
  css_class: str = ""
  icon: Optional[str] = None
  readonly: bool = False
  is_literal: ClassVar[bool] = False


@dataclass
class LiteralAction:
  """Pre-rendered markup placed between the buttons (e.g. a cancel link)."""
  name: str
  html: str
  readonly: bool = False
  is_literal: ClassVar[bool] = True


class FormActions(list):

  def field_by_name(self, name: str):
    for action in self:
      if action.name == name:
        return action
    return None


# ------------------------------------------------------------
# Validators
# ------------------------------------------------------------
class RequiredFields:
  """Validator requiring non-empty values for the given form fields."""

  def __init__(self, *field_names):
    self.field_names = field_names

  def __call__(self, form):
    for name in self.field_names:
      if name not in form.fields or name in form.errors:
        continue
      value = form.cleaned_data.get(name)
      if value in (None, "", [], ()):
        label = form[name].label
        form.add_error(name, _("%(field)s is required.") % {"field": label})


# ------------------------------------------------------------
# Item edit form
# ------------------------------------------------------------
class ItemEditForm:
  """
  A Django form plus everything the detail view needs around it: actions,
  read-only state, a validator and session messages addressed to it.
  """

  def __init__(self, name, form, actions=None, validator=None, handler=None):
    self.name = name
    self.form = form
    self.actions = actions if actions is not None else FormActions()
    self.validator = validator
    self.handler = handler
    self.readonly = False
    self.message = None
    self.message_type = None
    self.backlink = None
    self.action_url = ""
    self.template = get_setting("form_template")
    self.extra_classes = []
    self.attrs = {"id": get_setting("form_fragment")}

  @property
  def fields(self):
    return self.form.fields

  def make_field_readonly(self, name: str) -> bool:
    field = self.form.fields.get(name)
    if field is None:
      return False
    field.disabled = True
    field.widget.attrs["readonly"] = True
    return True

  def make_readonly(self) -> None:
    self.readonly = True
    for name in list(self.form.fields):
      self.make_field_readonly(name)
    for action in self.actions:
      action.readonly = True

  def enabled_actions(self):
    return [a for a in self.actions if not a.readonly]

  def load_data_from(self, data: dict, merge: str = MERGE_DEFAULT) -> None:
    """
    Copy values into the form's initial data. Nested dicts are flattened
    into '<outer>__<inner>' keys. With MERGE_IGNORE_FALSEY, falsey values
    are skipped so that field defaults survive.
    """
    for key, value in _flatten(data):
      if merge == MERGE_IGNORE_FALSEY and not value:
        continue
      self.form.initial[key] = value

  def is_valid(self) -> bool:
    """Django validation first, then the configured validator."""
    if self.form.is_valid() and self.validator is not None:
      self.validator(self.form)
    return self.form.is_bound and not self.form.errors

  def validation_error(self) -> ValidationError:
    """The form's errors as a single ValidationError."""
    found = []
    for name, errors in self.form.errors.items():
      label = self.form[name].label if name in self.form.fields else name
      for error in errors:
        found.append(error if name == NON_FIELD_ERRORS else f"{label}: {error}")
    return ValidationError(found or [_("The submitted data is invalid.")])

  def session_message(self, request, message, level: str = "good") -> None:
    self.message = message
    self.message_type = level
    add_form_message(request, self.name, message, level)

  def for_template(self, request=None) -> str:
    return render_to_string(self.template, {"form": self, "show_messages": True}, request=request)


def _flatten(data: dict, prefix: str = ""):
  for key, value in data.items():
    full_key = f"{prefix}{key}"
    if isinstance(value, dict):
      yield from _flatten(value, prefix=f"{full_key}__")
    else:
      yield full_key, value


# ------------------------------------------------------------
# Assembler
# ------------------------------------------------------------
class ItemFormAssembler:
  """
  Builds the ItemEditForm for one record of a record list.

  ``context`` is the request handler the form belongs to; it is handed to
  the configured callback and to extension hooks.
  """

  def __init__(self, record, records, component, capabilities, *, crumbs=None,
               context=None, validator=None, backlink=None, form_name="ItemEditForm"):
    self.record = record
    self.records = records
    self.component = component
    self.capabilities = capabilities
    self.crumbs = crumbs
    self.context = context
    self.validator = validator
    self.backlink = backlink
    self.form_name = form_name

  def get_form_class(self):
    fields = self.component.fields
    if fields is None:
      return self.record.get_detail_form_class()
    if isinstance(fields, type) and issubclass(fields, forms.BaseForm):
      return fields
    return modelform_factory(self.record.__class__, fields=list(fields))

  def build_actions(self) -> FormActions:
    caps = self.capabilities
    actions = FormActions()

    if self.record.pk:
      if caps.edit:
        actions.append(FormAction("action_doSave", _("Save"), "btn btn-primary", icon="accept"))
      if caps.delete:
        actions.append(FormAction("action_doDelete", _("Delete"), "btn btn-outline-danger action-delete"))
    else:
      if caps.create:
        # the save action doubles as 'Create' for new records
        actions.append(FormAction("action_doSave", _("Create"), "btn btn-primary", icon="add"))

      # cancel link one level up the breadcrumb trail
      crumbs = self.crumbs
      if crumbs and len(crumbs) >= 2:
        one_level_up = crumbs[-2]
        actions.append(LiteralAction("cancelbutton", format_html(
          '<a class="{}" href="{}">{}</a>',
          "btn btn-outline-secondary crumb",
          one_level_up.link or "",
          _("Cancel"),
        )))

    self.component.extend("update_form_actions", actions, self.context)
    return actions

  def build(self, data=None, readonly: bool = False) -> ItemEditForm:
    record = self.record
    records = self.records
    caps = self.capabilities

    actions = self.build_actions()

    # a new member of a has-many list belongs to the list's parent
    if isinstance(records, HasManyList) and not record.pk:
      setattr(record, records.foreign_key_attname, records.foreign_id)

    form_class = self.get_form_class()
    if issubclass(form_class, forms.BaseModelForm):
      django_form = form_class(data=data, instance=record)
    else:
      django_form = form_class(data=data)
    django_form.initial = {}

    form = ItemEditForm(self.form_name, django_form, actions, validator=self.validator, handler=self.context)
    form.load_data_from(
      model_to_dict(record, fields=list(django_form.fields)),
      MERGE_IGNORE_FALSEY if not record.pk else MERGE_DEFAULT,
    )

    # the parent key is fixed by the list, editing it has no effect
    if isinstance(records, HasManyList):
      form.make_field_readonly(records.foreign_key)

    if record.pk and not caps.edit:
      form.make_readonly()
      # deleting is a separate permission
      if caps.delete:
        delete_action = form.actions.field_by_name("action_doDelete")
        if delete_action is not None:
          delete_action.readonly = False
    elif not record.pk and not caps.create:
      form.make_readonly()

    # extra membership columns, picked up by 'manymany__<field>' form fields
    if isinstance(records, ManyManyList):
      form.load_data_from({MANY_MANY: records.get_extra_data(record.pk)})

    if readonly:
      form.make_readonly()

    form.backlink = self.backlink
    if self.context is not None:
      form.action_url = self.context.link()

    callback = self.component.item_edit_form_callback
    if callback:
      callback(form, self.context)
    self.component.extend("update_item_edit_form", form, self.context)
    return form
