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

from django.db import models


# ------------------------------------------------------------
# Record lists
# ------------------------------------------------------------
class RecordList:
  """
  A filtered list of records of one model, as shown by a grid.

  Every lookup builds a fresh query from the wrapped queryset, so a record
  that was edited out of the filter is no longer found by ``by_id``.
  """

  def __init__(self, queryset):
    self.queryset = queryset

  @property
  def model(self):
    return self.queryset.model

  def __iter__(self):
    return iter(self.queryset.all())

  def count(self) -> int:
    return self.queryset.all().count()

  def by_id(self, pk):
    if pk in (None, ""):
      return None
    return self.queryset.all().filter(pk=pk).first()

  def add(self, record, extra_data=None):
    # plain lists have nothing to link, the record is saved already
    return record

  @classmethod
  def for_relation(cls, instance, name: str) -> "RecordList":
    """
    Build the list type matching a to-many relation of a saved instance:
    HasManyList for reverse foreign keys, ManyManyList for many-to-many
    fields in either direction.
    """
    field = instance._meta.get_field(name)
    if isinstance(field, models.ForeignObjectRel):
      accessor = field.get_accessor_name()
    else:
      accessor = field.name

    if field.many_to_many:
      return ManyManyList(getattr(instance, accessor))
    if field.one_to_many:
      return HasManyList(getattr(instance, accessor))
    raise ValueError(f"'{name}' is not a to-many relation of {instance.__class__.__name__}")


class HasManyList(RecordList):
  """One-to-many relation: every member points to the parent via a foreign key."""

  def __init__(self, manager):
    super().__init__(manager.all())
    self.manager = manager

  @property
  def foreign_key(self) -> str:
    """Name of the foreign key field on the member model."""
    return self.manager.field.name

  @property
  def foreign_key_attname(self) -> str:
    return self.manager.field.attname

  @property
  def foreign_id(self):
    return self.manager.instance.pk

  def add(self, record, extra_data=None):
    self.manager.add(record)
    return record


class ManyManyList(RecordList):
  """
  Many-to-many relation. When the relation goes through an explicit model,
  its non-key columns are per-membership extra fields.
  """

  def __init__(self, manager):
    super().__init__(manager.all())
    self.manager = manager

  @property
  def through(self):
    return self.manager.through

  @property
  def foreign_id(self):
    return self.manager.instance.pk

  def get_extra_fields(self) -> dict:
    """Extra membership columns keyed by field name."""
    skip = {self.manager.source_field_name, self.manager.target_field_name}
    return {
      f.name: f
      for f in self.through._meta.concrete_fields
      if not f.primary_key and f.name not in skip
    }

  def _membership(self, record_pk):
    return self.through._default_manager.filter(**{
      self.manager.source_field_name: self.manager.instance.pk,
      self.manager.target_field_name: record_pk,
    })

  def get_extra_data(self, record_pk) -> dict:
    """Current extra column values of the membership of ``record_pk``."""
    extra_fields = list(self.get_extra_fields())
    if not record_pk or not extra_fields:
      return {}
    return self._membership(record_pk).values(*extra_fields).first() or {}

  def add(self, record, extra_data=None):
    allowed = self.get_extra_fields()
    extra = {k: v for k, v in (extra_data or {}).items() if k in allowed}

    if not self._membership(record.pk).exists():
      self.manager.add(record, through_defaults=extra)
    elif extra:
      self._membership(record.pk).update(**extra)
    return record


# ------------------------------------------------------------
# Record resolution
# ------------------------------------------------------------
def resolve_record(records: RecordList, identifier):
  """
  Turn the ``item/<id>`` URL segment into a record.

  A numeric id is looked up within the list and yields None when the list
  does not contain it. Anything else ('new', empty) instantiates an unsaved
  record of the list's model.
  """
  if identifier is not None and str(identifier).isdigit():
    return records.by_id(int(identifier))
  return records.model()
