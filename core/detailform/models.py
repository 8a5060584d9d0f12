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

from django import forms
from django.apps import apps
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.forms import modelform_factory
from django.utils.translation import gettext_lazy as _
from crum import get_current_user

from generic import display_key
from detailform.conf import get_setting
from detailform.detail_form import DetailForm
from detailform.forms import RequiredFields
from detailform.grid import RecordGrid
from detailform.lists import RecordList
from detailform.permissions import PermissionedRecord

# -------------------------------------------------------------------
# Abstract bases
# -------------------------------------------------------------------
class AuditFields(models.Model):
  created_at = models.DateTimeField(auto_now_add=True, db_index=True)
  updated_at = models.DateTimeField(auto_now=True, db_index=True)
  created_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, editable=False,
    on_delete=models.SET_NULL, related_name="+")
  updated_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, editable=False,
    on_delete=models.SET_NULL, related_name="+")

  class Meta:
      abstract = True

  def save(self, *args, **kwargs):
    user = get_current_user()
    if user and not user.is_anonymous:
      # created_by only set once during creation
      if not self.pk and not self.created_by:
        self.created_by = user
      self.updated_by = user
    super().save(*args, **kwargs)


class DetailRecord(PermissionedRecord, models.Model):
  """Record editable through a DetailForm."""

  class Meta:
    abstract = True

  def get_detail_form_class(self):
    return modelform_factory(self.__class__, exclude=list(get_setting("form_exclude")))


class TypedRecord(DetailRecord):
  """
  Record whose concrete Python class is stored in ``class_name``.

  Variants are proxy models of the same concrete model. Rows are loaded
  as the variant they name, and a record can be re-materialized as
  another variant with new_class_instance().
  """
  class_name = models.CharField(max_length=100, blank=True, db_index=True,
    help_text="Record type. Changing it turns the record into another variant."
  )

  class Meta:
    abstract = True

  def __init__(self, *args, **kwargs):
    super().__init__(*args, **kwargs)
    if "class_name" in self.__dict__ and not self.class_name:
      self.class_name = self.__class__.__name__
    self._loaded_class_name = None

  @classmethod
  def from_db(cls, db, field_names, values):
    instance = super().from_db(db, field_names, values)
    stored = instance.__dict__.get("class_name")
    variant = cls.resolve_class_name(stored)
    if variant is not None and variant is not instance.__class__:
      instance.__class__ = variant
    instance._loaded_class_name = stored
    return instance

  @classmethod
  def variant_models(cls):
    concrete = cls._meta.concrete_model
    app_config = apps.get_app_config(cls._meta.app_label)
    return [m for m in app_config.get_models() if m._meta.concrete_model is concrete]

  @classmethod
  def resolve_class_name(cls, name):
    if not name:
      return None
    for model in cls.variant_models():
      if model.__name__ == name:
        return model
    return None

  @classmethod
  def class_name_choices(cls):
    return [(m.__name__, str(m._meta.verbose_name).capitalize()) for m in cls.variant_models()]

  def new_class_instance(self, class_name):
    """
    Return a copy of this record as the variant ``class_name``.

    All field values are carried over, including the current ``class_name``;
    the caller assigns the new one.
    """
    variant = self.resolve_class_name(class_name)
    if variant is None:
      raise ValidationError(
        _("Unknown record type '%(name)s'."), code="invalid_class_name", params={"name": class_name}
      )
    instance = variant()
    for field in self._meta.concrete_fields:
      setattr(instance, field.attname, getattr(self, field.attname))
    instance._state.adding = self._state.adding
    instance._state.db = self._state.db
    instance._loaded_class_name = self._loaded_class_name
    return instance

  def class_name_changed(self) -> bool:
    return bool(self._loaded_class_name) and self._loaded_class_name != self.class_name

  def get_detail_form_class(self):
    form_class = super().get_detail_form_class()
    if "class_name" in form_class.base_fields:
      form_class.base_fields["class_name"] = forms.ChoiceField(
        label=_("Record type"), choices=self.class_name_choices(), required=False,
      )
    return form_class

  def save(self, *args, **kwargs):
    if not self.class_name:
      self.class_name = self.__class__.__name__
    super().save(*args, **kwargs)
    self._loaded_class_name = self.class_name

# -------------------------------------------------------------------
# PermissionRole
# -------------------------------------------------------------------
class PermissionRole(AuditFields, TypedRecord):
  title = models.CharField(max_length=100,
    help_text="Display name of the role."
  )
  only_admin_can_apply = models.BooleanField(default=False,
    help_text="If set, only administrators may change, delete or assign this role."
  )

  class Meta:
    db_table = "permission_role"
    ordering = ["title"]
    verbose_name = "permission role"
    verbose_name_plural = "Permission Roles"

  def __str__(self):
    return self.title

  def _admin_only(self, user):
    user = user or get_current_user()
    return self.only_admin_can_apply and not getattr(user, "is_superuser", False)

  def can_edit(self, user=None) -> bool:
    if self._admin_only(user):
      return False
    return super().can_edit(user)

  def can_delete(self, user=None) -> bool:
    if self._admin_only(user):
      return False
    return super().can_delete(user)

  def get_detail_validator(self):
    return RequiredFields("title")

  def get_detail_grids(self, handler):
    codes = RecordList.for_relation(self, "codes")
    return {
      "codes": RecordGrid("codes", codes, handler, [DetailForm()], title=_("Permission Codes")),
    }


class AdminPermissionRole(PermissionRole):
  """Role variant that is always restricted to administrators."""

  class Meta:
    proxy = True
    verbose_name = "admin permission role"

  def save(self, *args, **kwargs):
    self.only_admin_can_apply = True
    super().save(*args, **kwargs)

# -------------------------------------------------------------------
# PermissionRoleCode
# -------------------------------------------------------------------
class PermissionRoleCode(DetailRecord):
  role = models.ForeignKey(PermissionRole, on_delete=models.CASCADE, related_name="codes")
  code = models.CharField(max_length=100,
    help_text="Permission code granted by the role, e.g. 'CMS_ACCESS'."
  )

  class Meta:
    db_table = "permission_role_code"
    ordering = ["code"]
    verbose_name = "permission code"

  def __str__(self):
    return display_key(self.code)

  @property
  def title(self):
    return self.code

  def get_detail_validator(self):
    return RequiredFields("code")

# -------------------------------------------------------------------
# AccessGroup
# -------------------------------------------------------------------
class AccessGroup(AuditFields, DetailRecord):
  title = models.CharField(max_length=100, unique=True,
    help_text="Unique name of the group."
  )
  description = models.CharField(max_length=255, blank=True, null=True,
    help_text="Optional description of who belongs to this group."
  )
  roles = models.ManyToManyField(PermissionRole, through="GroupRoleMembership", related_name="groups", blank=True)

  class Meta:
    db_table = "access_group"
    ordering = ["title"]
    verbose_name = "access group"
    verbose_name_plural = "Access Groups"

  def __str__(self):
    return self.title

  def get_detail_form_class(self):
    # memberships are edited in the roles grid
    return modelform_factory(self.__class__, exclude=[*get_setting("form_exclude"), "roles"])

  def get_detail_validator(self):
    return RequiredFields("title")

  def get_detail_grids(self, handler):
    from detailform.model_forms import GroupRoleForm
    roles = RecordList.for_relation(self, "roles")
    return {
      "roles": RecordGrid("roles", roles, handler, [DetailForm(fields=GroupRoleForm)], title=_("Roles")),
    }


class GroupRoleMembership(models.Model):
  group = models.ForeignKey(AccessGroup, on_delete=models.CASCADE, related_name="memberships")
  role = models.ForeignKey(PermissionRole, on_delete=models.CASCADE, related_name="memberships")
  priority = models.PositiveIntegerField(default=0,
    help_text="Order in which the group's roles are evaluated."
  )

  class Meta:
    db_table = "group_role_membership"
    ordering = ["priority"]
    unique_together = [("group", "role")]

  def __str__(self):
    return display_key(self.group, self.role)
