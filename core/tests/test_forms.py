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

import pytest
from django import forms

from detailform.detail_form import DetailForm
from detailform.forms import (
  MERGE_IGNORE_FALSEY,
  ItemEditForm,
  ItemFormAssembler,
  RequiredFields,
)
from detailform.lists import RecordList
from detailform.model_forms import GroupRoleForm
from detailform.models import PermissionRole, PermissionRoleCode
from detailform.navigation import Crumb
from detailform.permissions import Capabilities

ALL = Capabilities(view=True, edit=True, delete=True, create=True)


def _assemble(record, records=None, component=None, caps=ALL, **kwargs):
  records = records or RecordList(PermissionRole.objects.all())
  return ItemFormAssembler(record, records, component or DetailForm(), caps, **kwargs)


@pytest.mark.django_db
def test_existing_record_gets_save_and_delete(role):
  form = _assemble(role).build()

  assert [a.name for a in form.actions] == ["action_doSave", "action_doDelete"]
  assert not form.readonly
  assert form.form.initial["title"] == "Editors"
  assert "created_by" not in form.fields


@pytest.mark.django_db
def test_delete_stays_enabled_when_only_editing_is_denied(role):
  caps = Capabilities(view=True, edit=False, delete=True, create=False)
  form = _assemble(role, caps=caps).build()

  assert form.readonly
  assert form.fields["title"].disabled
  assert [a.name for a in form.enabled_actions()] == ["action_doDelete"]


@pytest.mark.django_db
def test_new_record_without_create_permission_is_readonly(db):
  caps = Capabilities(view=True, edit=False, delete=False, create=False)
  form = _assemble(PermissionRole(), caps=caps).build()

  assert form.readonly
  assert [a.name for a in form.actions] == []


@pytest.mark.django_db
def test_new_record_gets_create_and_cancel_to_parent_crumb(db):
  crumbs = [Crumb("Permission Roles", "/security/roles/"), Crumb("New permission role")]
  form = _assemble(PermissionRole(), crumbs=crumbs).build()

  create, cancel = form.actions
  assert (create.name, create.label) == ("action_doSave", "Create")
  assert cancel.is_literal
  assert 'href="/security/roles/"' in cancel.html


@pytest.mark.django_db
def test_new_record_skips_falsey_initial_values(db):
  form = _assemble(PermissionRole()).build()

  assert "title" not in form.form.initial
  assert "only_admin_can_apply" not in form.form.initial
  assert form.form.initial["class_name"] == "PermissionRole"


@pytest.mark.django_db
def test_has_many_member_is_bound_to_parent(role):
  codes = RecordList.for_relation(role, "codes")
  record = PermissionRoleCode()
  form = _assemble(record, records=codes).build()

  assert record.role_id == role.pk
  assert form.form.initial["role"] == role.pk
  assert form.fields["role"].disabled


@pytest.mark.django_db
def test_many_many_extra_fields_are_loaded(group, role):
  roles = RecordList.for_relation(group, "roles")
  roles.add(role, {"priority": 4})

  form = _assemble(role, records=roles, component=DetailForm(fields=GroupRoleForm)).build()

  assert form.form.initial["manymany__priority"] == 4
  assert form.form.initial["title"] == "Editors"


@pytest.mark.django_db
def test_field_list_configures_form(role):
  form = _assemble(role, component=DetailForm(fields=["title"])).build()
  assert list(form.fields) == ["title"]


@pytest.mark.django_db
def test_forced_readonly_disables_every_action(role):
  form = _assemble(role).build(readonly=True)

  assert form.readonly
  assert form.enabled_actions() == []


@pytest.mark.django_db
def test_callback_and_extensions_see_the_built_form(role):
  seen = []

  class Extension:
    def update_form_actions(self, actions, context):
      actions.pop()

    def update_item_edit_form(self, form, context):
      seen.append(("extension", form.name))

  component = DetailForm(
    item_edit_form_callback=lambda form, context: seen.append(("callback", form.name)),
    extensions=[Extension()],
  )
  form = _assemble(role, component=component).build()

  assert seen == [("callback", "ItemEditForm"), ("extension", "ItemEditForm")]
  assert [a.name for a in form.actions] == ["action_doSave"]

# -------------------------------------------------------------------
# ItemEditForm
# -------------------------------------------------------------------
class _TitleForm(forms.Form):
  title = forms.CharField(required=False)
  manymany__priority = forms.IntegerField(required=False)


def test_load_data_from_flattens_nested_values():
  form = ItemEditForm("ItemEditForm", _TitleForm())
  form.load_data_from({"title": "", "manymany": {"priority": 2}})
  assert form.form.initial == {"title": "", "manymany__priority": 2}

  other = ItemEditForm("ItemEditForm", _TitleForm())
  other.load_data_from({"title": "", "manymany": {"priority": 0}}, MERGE_IGNORE_FALSEY)
  assert other.form.initial == {}


def test_validator_runs_after_django_validation():
  form = ItemEditForm("ItemEditForm", _TitleForm(data={"title": ""}), validator=RequiredFields("title"))

  assert not form.is_valid()
  error = form.validation_error()
  assert error.messages == ["Title: Title is required."]


def test_valid_form_passes_validator():
  form = ItemEditForm("ItemEditForm", _TitleForm(data={"title": "x"}), validator=RequiredFields("title"))
  assert form.is_valid()


def test_unbound_form_is_not_valid():
  assert not ItemEditForm("ItemEditForm", _TitleForm()).is_valid()
