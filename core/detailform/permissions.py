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
from crum import get_current_user


@dataclass(frozen=True)
class Capabilities:
  view: bool
  edit: bool
  delete: bool
  create: bool


def acting_user(request=None):
  """Current user from crum, falling back to ``request.user``."""
  user = get_current_user()
  if user is None and request is not None:
    user = getattr(request, "user", None)
  return user


def capabilities_for(record, user=None) -> Capabilities:
  """
  Evaluate the four record capabilities for ``user``.

  Nothing is cached: permissions depend on the actor and on the current
  record state, so callers ask again on every request.
  """
  return Capabilities(
    view=bool(record.can_view(user)),
    edit=bool(record.can_edit(user)),
    delete=bool(record.can_delete(user)),
    create=bool(record.can_create(user)),
  )


class PermissionedRecord:
  """
  Model mixin providing can_view / can_edit / can_delete / can_create.

  The defaults map to Django's model permissions (view, change, delete,
  add) of the given user, or of the current user when none is given.
  Models override single predicates for record-level rules.
  """

  def has_model_permission(self, action: str, user=None) -> bool:
    user = user or get_current_user()
    if user is None or not getattr(user, "is_authenticated", False):
      return False
    # proxy variants share the permissions of their concrete model
    opts = self._meta.concrete_model._meta
    return user.has_perm(f"{opts.app_label}.{action}_{opts.model_name}")

  def can_view(self, user=None) -> bool:
    return self.has_model_permission("view", user)

  def can_edit(self, user=None) -> bool:
    return self.has_model_permission("change", user)

  def can_delete(self, user=None) -> bool:
    return self.has_model_permission("delete", user)

  def can_create(self, user=None) -> bool:
    return self.has_model_permission("add", user)
