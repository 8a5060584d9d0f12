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

import logging

from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import Http404
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils.http import url_has_allowed_host_and_scheme
from django.views import View

from detailform.conf import get_setting
from detailform.forms import add_form_message
from detailform.navigation import Crumb, join_links
from detailform.negotiation import is_fragment_request, negotiate

logger = logging.getLogger(__name__)

# ------------------------------------------------------------
# Utility helper
# ------------------------------------------------------------
def display_key(*parts):
  """Build a human-friendly composite key; ignores empty parts and casts to str."""
  cleaned = []
  for p in parts:
    if p is None:
      continue
    s = str(p).strip()
    if s:
      cleaned.append(s)
  return " · ".join(cleaned)


class PageForm:
  """Message target for the page's own form area."""
  name = "PageForm"

  def session_message(self, request, message, level="good"):
    add_form_message(request, self.name, message, level)

# ------------------------------------------------------------
# Generic page controller
# ------------------------------------------------------------
class GenericPageView(LoginRequiredMixin, View):
  """
  Top-level controller for a screen hosting one or more record grids.

  URLs below the page are routed as ``field/<grid name>/...`` to the grid
  named in the path. Nested item handlers find this view by walking their
  ``controller`` chain up to the first object with
  ``is_toplevel_controller = True``.
  """
  login_url = "/accounts/login/"
  redirect_field_name = "next"

  is_toplevel_controller = True
  url_name = None
  title = None
  template_name = None

  # --------------------------------------------------
  # Dispatch routing
  # --------------------------------------------------
  def get(self, request, remaining=""):
    return self.handle(request, remaining)

  def post(self, request, remaining=""):
    return self.handle(request, remaining)

  def handle(self, request, remaining=""):
    segments = [s for s in (remaining or "").split("/") if s]
    logger.debug("%s %s %s", self.__class__.__name__, request.method, "/".join(segments) or "index")
    if not segments:
      return self.index(request)

    if segments[0] == "field" and len(segments) > 1:
      grid = self.get_grids().get(segments[1])
      if grid is None:
        raise Http404(f"No grid named '{segments[1]}' on {self.__class__.__name__}")
      return grid.handle_request(request, segments[2:])

    raise Http404(f"Invalid action '{segments[0]}' for {self.__class__.__name__}")

  # --------------------------------------------------
  # Grids and navigation
  # --------------------------------------------------
  def get_grids(self) -> dict:
    """Return {name: RecordGrid}. Subclasses define the grids of their screen."""
    return {}

  def get_title(self) -> str:
    return str(self.title or self.__class__.__name__)

  def link(self, action=None) -> str:
    return join_links(reverse(self.url_name), action)

  def breadcrumbs(self, unlinked=False):
    return [Crumb(self.get_title(), None if unlinked else self.link())]

  def get_edit_form(self):
    return PageForm()

  def redirect_back(self, request):
    """Redirect to the referring page if it is local, else to the page itself."""
    referer = request.headers.get("Referer")
    if referer and url_has_allowed_host_and_scheme(
      referer, allowed_hosts={request.get_host()}, require_https=request.is_secure()
    ):
      return redirect(referer)
    return redirect(self.link())

  # --------------------------------------------------
  # Rendering
  # --------------------------------------------------
  def customise(self, context):
    """Render the full page around ``context`` (content, breadcrumbs, grids)."""
    ctx = {
      "page": self,
      "title": self.get_title(),
      "content": None,
      "grids": [],
    }
    ctx.update(context)
    if not ctx.get("breadcrumbs"):
      ctx["breadcrumbs"] = self.breadcrumbs()
    return render(self.request, self.template_name or get_setting("page_template"), ctx)

  def index(self, request):
    fragment = is_fragment_request(request)
    # pending messages are shown once, above the first grid
    grids = [
      grid.render(request, show_messages=fragment and i == 0)
      for i, grid in enumerate(self.get_grids().values())
    ]
    return negotiate(request, "".join(grids), lambda: self.customise({"grids": grids}))
