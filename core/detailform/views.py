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

from django.utils.translation import gettext_lazy as _

from generic import GenericPageView
from detailform.detail_form import DetailForm
from detailform.grid import RecordGrid
from detailform.lists import RecordList
from detailform.models import AccessGroup, PermissionRole


class PermissionRoleAdminView(GenericPageView):
  """Manage permission roles and their codes."""
  url_name = "permissionrole_admin"
  title = _("Permission Roles")

  def get_grids(self):
    return {
      "roles": RecordGrid("roles", RecordList(PermissionRole.objects.all()), self, [DetailForm()]),
      "open": RecordGrid(
        "open",
        RecordList(PermissionRole.objects.filter(only_admin_can_apply=False)),
        self,
        [DetailForm()],
        title=_("Roles open to all groups"),
      ),
    }


class AccessGroupAdminView(GenericPageView):
  """Manage access groups and the roles assigned to them."""
  url_name = "accessgroup_admin"
  title = _("Access Groups")

  def get_grids(self):
    return {
      "groups": RecordGrid("groups", RecordList(AccessGroup.objects.all()), self, [DetailForm()]),
    }
