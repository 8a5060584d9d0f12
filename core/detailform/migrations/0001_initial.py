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

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


def audit_fields():
  return [
    ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
    ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
    ("created_by", models.ForeignKey(blank=True, editable=False, null=True,
      on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
    ("updated_by", models.ForeignKey(blank=True, editable=False, null=True,
      on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
  ]


class Migration(migrations.Migration):

  initial = True

  dependencies = [
    migrations.swappable_dependency(settings.AUTH_USER_MODEL),
  ]

  operations = [
    migrations.CreateModel(
      name="PermissionRole",
      fields=[
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        *audit_fields(),
        ("class_name", models.CharField(blank=True, db_index=True, max_length=100,
          help_text="Record type. Changing it turns the record into another variant.")),
        ("title", models.CharField(max_length=100, help_text="Display name of the role.")),
        ("only_admin_can_apply", models.BooleanField(default=False,
          help_text="If set, only administrators may change, delete or assign this role.")),
      ],
      options={
        "verbose_name": "permission role",
        "verbose_name_plural": "Permission Roles",
        "db_table": "permission_role",
        "ordering": ["title"],
      },
    ),
    migrations.CreateModel(
      name="AdminPermissionRole",
      fields=[],
      options={
        "verbose_name": "admin permission role",
        "proxy": True,
        "indexes": [],
        "constraints": [],
      },
      bases=("detailform.permissionrole",),
    ),
    migrations.CreateModel(
      name="PermissionRoleCode",
      fields=[
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("code", models.CharField(max_length=100,
          help_text="Permission code granted by the role, e.g. 'CMS_ACCESS'.")),
        ("role", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE,
          related_name="codes", to="detailform.permissionrole")),
      ],
      options={
        "verbose_name": "permission code",
        "db_table": "permission_role_code",
        "ordering": ["code"],
      },
    ),
    migrations.CreateModel(
      name="AccessGroup",
      fields=[
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        *audit_fields(),
        ("title", models.CharField(max_length=100, unique=True, help_text="Unique name of the group.")),
        ("description", models.CharField(blank=True, max_length=255, null=True,
          help_text="Optional description of who belongs to this group.")),
      ],
      options={
        "verbose_name": "access group",
        "verbose_name_plural": "Access Groups",
        "db_table": "access_group",
        "ordering": ["title"],
      },
    ),
    migrations.CreateModel(
      name="GroupRoleMembership",
      fields=[
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("priority", models.PositiveIntegerField(default=0,
          help_text="Order in which the group's roles are evaluated.")),
        ("group", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE,
          related_name="memberships", to="detailform.accessgroup")),
        ("role", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE,
          related_name="memberships", to="detailform.permissionrole")),
      ],
      options={
        "db_table": "group_role_membership",
        "ordering": ["priority"],
        "unique_together": {("group", "role")},
      },
    ),
    migrations.AddField(
      model_name="accessgroup",
      name="roles",
      field=models.ManyToManyField(blank=True, related_name="groups",
        through="detailform.GroupRoleMembership", to="detailform.permissionrole"),
    ),
  ]
