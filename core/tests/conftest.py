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
from django.contrib.auth.models import Permission
from django.contrib.messages import get_messages
from django.contrib.messages.storage.session import SessionStorage
from django.contrib.sessions.middleware import SessionMiddleware
from django.http import HttpResponse
from django.shortcuts import redirect

from generic import PageForm
from detailform.models import AccessGroup, PermissionRole, PermissionRoleCode
from detailform.navigation import Crumb, join_links


class FakePage:
  """Minimal top-level controller for driving item handlers directly."""
  is_toplevel_controller = True

  def __init__(self, url="/security/roles/", title="Permission Roles"):
    self.url = url
    self.title = title
    self.customised = []

  def link(self, action=None):
    return join_links(self.url, action)

  def breadcrumbs(self, unlinked=False):
    return [Crumb(self.title, None if unlinked else self.url)]

  def customise(self, context):
    self.customised.append(context)
    return HttpResponse(f"<page>{context.get('content') or ''}</page>")

  def redirect_back(self, request):
    return redirect(self.url)

  def get_edit_form(self):
    return PageForm()


@pytest.fixture
def page():
  return FakePage()


# -------------------------------------------------------------------
# Requests
# -------------------------------------------------------------------
@pytest.fixture
def make_request(rf, admin_user):
  """
  Build a request with session and message storage, as the middleware
  stack would. ``htmx=True`` marks it as a fragment request.
  """
  def _make(method="get", path="/security/roles/", data=None, user=None, htmx=False, **extra):
    if htmx:
      extra["HTTP_HX_REQUEST"] = "true"
    request = getattr(rf, method)(path, data or {}, **extra)
    SessionMiddleware(lambda r: HttpResponse()).process_request(request)
    request.session.save()
    request.user = user or admin_user
    request._messages = SessionStorage(request)
    return request
  return _make


@pytest.fixture
def flashed():
  """Returns a reader for the [(message text, extra tags)] queued on a request."""
  def _read(request):
    return [(str(m), m.extra_tags) for m in get_messages(request)]
  return _read


# -------------------------------------------------------------------
# Users
# -------------------------------------------------------------------
@pytest.fixture
def user_with_perms(db, django_user_model):
  """Factory for a staff user holding the given 'app.codename' permissions."""
  def _make(*perms, username="editor"):
    user = django_user_model.objects.create_user(username=username, password="p")
    for perm in perms:
      app_label, codename = perm.split(".")
      user.user_permissions.add(
        Permission.objects.get(content_type__app_label=app_label, codename=codename)
      )
    # drop the cached permission set
    return django_user_model.objects.get(pk=user.pk)
  return _make


# -------------------------------------------------------------------
# Records
# -------------------------------------------------------------------
@pytest.fixture
def role(db):
  return PermissionRole.objects.create(title="Editors")


@pytest.fixture
def admin_role(db):
  return PermissionRole.objects.create(title="Auditors", only_admin_can_apply=True)


@pytest.fixture
def role_code(role):
  return PermissionRoleCode.objects.create(role=role, code="CMS_ACCESS")


@pytest.fixture
def group(db):
  return AccessGroup.objects.create(title="Content team")
