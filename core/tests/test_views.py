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

import json

import pytest
from django.urls import reverse

from detailform.models import (
  AccessGroup,
  AdminPermissionRole,
  GroupRoleMembership,
  PermissionRole,
  PermissionRoleCode,
)

HTMX = {"HTTP_HX_REQUEST": "true"}


@pytest.mark.django_db
def test_pages_require_login(client):
  resp = client.get(reverse("permissionrole_admin"))
  assert resp.status_code == 302
  assert resp["Location"].startswith("/accounts/login/")


@pytest.mark.django_db
def test_roles_page_lists_both_grids(admin_client, role, admin_role):
  resp = admin_client.get(reverse("permissionrole_admin"))

  assert resp.status_code == 200
  body = resp.content.decode("utf-8")
  assert 'id="grid-roles"' in body
  assert 'id="grid-open"' in body
  assert "Auditors" in body
  assert "<html" in body


@pytest.mark.django_db
def test_unknown_grid_is_not_found(admin_client):
  resp = admin_client.get("/security/roles/field/nope/item/1/edit")
  assert resp.status_code == 404


@pytest.mark.django_db
def test_full_page_edit_shows_breadcrumbs(admin_client, role, role_code):
  resp = admin_client.get(f"/security/roles/field/roles/item/{role.pk}/edit")

  assert resp.status_code == 200
  body = resp.content.decode("utf-8")
  assert '<a href="/security/roles/">Permission Roles</a>' in body
  assert 'id="form-fragment"' in body
  assert "CMS_ACCESS" in body


@pytest.mark.django_db
def test_htmx_edit_returns_fragment(admin_client, role):
  resp = admin_client.get(f"/security/roles/field/roles/item/{role.pk}/edit", **HTMX)

  body = resp.content.decode("utf-8")
  assert resp.status_code == 200
  assert "<html" not in body
  assert 'id="form-fragment"' in body


@pytest.mark.django_db
def test_save_through_url_shows_message(admin_client, role):
  url = f"/security/roles/field/roles/item/{role.pk}/edit"
  resp = admin_client.post(url, {"title": "Writers", "class_name": "PermissionRole", "action_doSave": "1"})

  assert resp.status_code == 200
  role.refresh_from_db()
  assert role.title == "Writers"
  assert "Saved permission role" in resp.content.decode("utf-8")


@pytest.mark.django_db
def test_save_records_acting_user(admin_client, admin_user, role):
  url = f"/security/roles/field/roles/item/{role.pk}/edit"
  admin_client.post(url, {"title": "Writers", "action_doSave": "1"})

  role.refresh_from_db()
  assert role.updated_by == admin_user


@pytest.mark.django_db
def test_create_nested_code_through_url(admin_client, role):
  url = f"/security/roles/field/roles/item/{role.pk}/field/codes/item/new"
  resp = admin_client.post(url, {"code": "REPORTS", "action_doSave": "1"})

  code = PermissionRoleCode.objects.get(code="REPORTS")
  assert code.role == role
  assert resp.status_code == 302
  assert resp["Location"] == f"/security/roles/field/roles/item/{role.pk}/field/codes/item/{code.pk}"

  follow = admin_client.get(resp["Location"])
  body = follow.content.decode("utf-8")
  assert follow.status_code == 200
  assert "Editors" in body
  assert "REPORTS" in body


@pytest.mark.django_db
def test_assign_role_to_group_with_priority(admin_client, group):
  url = reverse("accessgroup_admin") + f"field/groups/item/{group.pk}/field/roles/item/new"
  admin_client.post(url, {"title": "Publishers", "manymany__priority": "2", "action_doSave": "1"})

  membership = GroupRoleMembership.objects.get(group=group)
  assert membership.priority == 2
  assert list(AccessGroup.objects.get(pk=group.pk).roles.all()) == [membership.role]


@pytest.mark.django_db
def test_delete_then_page_shows_message(admin_client, role):
  url = f"/security/roles/field/roles/item/{role.pk}/edit"
  resp = admin_client.post(url, {"action_doDelete": "1"})

  assert resp.status_code == 302
  assert resp["Location"] == "/security/roles/"
  assert not PermissionRole.objects.filter(pk=role.pk).exists()

  page = admin_client.get(resp["Location"]).content.decode("utf-8")
  assert "Deleted permission role Editors" in page


@pytest.mark.django_db
def test_validation_error_fragment_over_htmx(admin_client, role):
  url = f"/security/roles/field/roles/item/{role.pk}/edit"
  resp = admin_client.post(url, {"title": "", "action_doSave": "1"}, **HTMX)

  assert resp.status_code == 200
  assert resp["HX-Retarget"] == "#form-fragment"
  assert "Title: This field is required." in resp.content.decode("utf-8")


@pytest.mark.django_db
def test_save_without_permission_is_forbidden(client, role, user_with_perms):
  client.force_login(user_with_perms("detailform.view_permissionrole"))
  url = f"/security/roles/field/roles/item/{role.pk}/edit"
  resp = client.post(url, {"title": "Hijacked", "action_doSave": "1"})

  assert resp.status_code == 403


@pytest.mark.django_db
def test_validation_error_redirects_to_local_referer(admin_client, role):
  url = f"/security/roles/field/roles/item/{role.pk}/edit"
  resp = admin_client.post(url, {"title": "", "action_doSave": "1"}, HTTP_REFERER=f"http://testserver{url}")

  assert resp.status_code == 302
  assert resp["Location"] == f"http://testserver{url}"


@pytest.mark.django_db
def test_foreign_referer_is_ignored(admin_client, role):
  url = f"/security/roles/field/roles/item/{role.pk}/edit"
  resp = admin_client.post(url, {"title": "", "action_doSave": "1"}, HTTP_REFERER="https://evil.example/")

  assert resp["Location"] == "/security/roles/"


@pytest.mark.django_db
def test_variant_record_viewable_with_base_model_permissions(client, user_with_perms):
  auditors = AdminPermissionRole.objects.create(title="Auditors")
  client.force_login(user_with_perms(
    "detailform.view_permissionrole",
    "detailform.add_permissionrole",
    "detailform.change_permissionrole",
    "detailform.delete_permissionrole",
  ))
  resp = client.get(f"/security/roles/field/roles/item/{auditors.pk}/view")

  assert resp.status_code == 200
  assert "Auditors" in resp.content.decode("utf-8")


@pytest.mark.django_db
def test_htmx_page_index_returns_grids_only(admin_client, role):
  resp = admin_client.get(reverse("permissionrole_admin"), **HTMX)

  body = resp.content.decode("utf-8")
  assert resp.status_code == 200
  assert "<html" not in body
  assert 'id="grid-roles"' in body
  assert 'id="grid-open"' in body


@pytest.mark.django_db
def test_htmx_delete_then_list_fragment_shows_message(admin_client, role):
  url = f"/security/roles/field/roles/item/{role.pk}/edit"
  resp = admin_client.post(url, {"action_doDelete": "1"}, **HTMX)

  assert resp.status_code == 200
  assert json.loads(resp["HX-Location"]) == {"path": "/security/roles/", "target": "#content"}
  assert not PermissionRole.objects.filter(pk=role.pk).exists()

  listing = admin_client.get("/security/roles/", **HTMX).content.decode("utf-8")
  assert "<html" not in listing
  assert listing.count("Deleted permission role Editors") == 1


@pytest.mark.django_db
def test_grid_links_and_form_submit_over_htmx(admin_client, role):
  page = admin_client.get(reverse("permissionrole_admin")).content.decode("utf-8")
  edit_link = f"/security/roles/field/roles/item/{role.pk}/edit"
  assert f'hx-get="{edit_link}" hx-target="#content"' in page
  assert 'hx-get="/security/roles/field/roles/item/new" hx-target="#content"' in page

  form = admin_client.get(edit_link, **HTMX).content.decode("utf-8")
  assert f'hx-post="/security/roles/field/roles/item/{role.pk}" hx-target="#content"' in form


@pytest.mark.django_db
def test_grid_heading_shows_record_count(admin_client, role, admin_role):
  body = admin_client.get(reverse("permissionrole_admin")).content.decode("utf-8")

  assert 'Permission Roles <span class="badge text-bg-secondary">2</span>' in body
  assert '<span class="badge text-bg-secondary">1</span>' in body


@pytest.mark.django_db
def test_post_to_view_url_is_not_found(admin_client, role):
  resp = admin_client.post(f"/security/roles/field/roles/item/{role.pk}/view", {"action_doDelete": "1"})

  assert resp.status_code == 404
  assert PermissionRole.objects.filter(pk=role.pk).exists()
