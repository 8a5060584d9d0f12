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


class Extensible:
  """
  Holds an explicit, per-instance list of extension objects.

  An extension is any object. Hooks are looked up by name on each
  extension and called only where the extension defines them, in
  registration order. There is no global registry: extensions are handed
  in when the component is configured.
  """

  def __init__(self, extensions=None):
    self.extensions = list(extensions or [])

  def add_extension(self, extension):
    self.extensions.append(extension)
    return self

  def extend(self, hook: str, *args, **kwargs) -> list:
    """Call ``hook`` on every extension defining it and collect the results."""
    results = []
    for extension in self.extensions:
      fn = getattr(extension, hook, None)
      if callable(fn):
        results.append(fn(*args, **kwargs))
    return results
