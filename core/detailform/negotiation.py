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

from django.http import HttpResponse
from django.http.response import HttpResponseBase
from django.shortcuts import redirect

from detailform.conf import get_setting


def is_fragment_request(request) -> bool:
  """
  Detect HTMX requests to decide whether to return HTML partials or a full page.

  HTMX sets the 'HX-Request' header to 'true' on asynchronous requests.
  """
  return request.headers.get("HX-Request", "").lower() == "true"


def add_fragment_hint(response, fragment: str, swap: str = None):
  """Name the fragment the client should refresh with this response."""
  response[get_setting("fragment_header")] = f"#{fragment}"
  if swap:
    response["HX-Reswap"] = swap
  return response


def fragment_redirect(request, url: str, fragment: str):
  """
  Redirect to ``url``. HTMX does not look at headers of 3xx responses, so
  fragment requests get a 200 with ``HX-Location`` instead, which loads
  ``url`` as a fragment into ``fragment``.
  """
  if is_fragment_request(request):
    response = HttpResponse(status=200)
    response["HX-Location"] = json.dumps({"path": url, "target": f"#{fragment}"})
    return response
  return redirect(url)


def negotiate(request, fragment_content, full_page_renderer):
  """
  Return the fragment as-is for fragment requests, otherwise let
  ``full_page_renderer`` wrap it into the page chrome.
  """
  if is_fragment_request(request):
    return HttpResponse(fragment_content)
  return full_page_renderer()


class ResponseNegotiator:
  """
  Chooses between named response producers.

  ``callbacks`` maps fragment names to zero-argument callables returning
  either an HttpResponse or markup. A 'default' entry is required and is
  used for full page requests and for fragments without a producer.
  """

  def __init__(self, callbacks: dict):
    if "default" not in callbacks:
      raise ValueError("ResponseNegotiator needs a 'default' callback.")
    self.callbacks = dict(callbacks)

  def respond(self, request, fragment=None, swap=None):
    if is_fragment_request(request):
      fragment = fragment or request.headers.get("HX-Target")
      if fragment and fragment in self.callbacks:
        result = self.callbacks[fragment]()
        response = result if isinstance(result, HttpResponseBase) else HttpResponse(result)
        return add_fragment_hint(response, fragment, swap)
    return self.callbacks["default"]()
