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

from django.urls import path, re_path

from detailform.views import AccessGroupAdminView, PermissionRoleAdminView

urlpatterns = [
  path("roles/", PermissionRoleAdminView.as_view(), name="permissionrole_admin"),
  re_path(r"^roles/(?P<remaining>.+)$", PermissionRoleAdminView.as_view(), name="permissionrole_admin_remaining"),
  path("groups/", AccessGroupAdminView.as_view(), name="accessgroup_admin"),
  re_path(r"^groups/(?P<remaining>.+)$", AccessGroupAdminView.as_view(), name="accessgroup_admin_remaining"),
]
