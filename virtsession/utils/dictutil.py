# This file is part of Virtsession
#
# Virtsession is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# Virtsession is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with Virtsession.  If not, see <http://www.gnu.org/licenses/>.

"""Dict tools."""

from copy import deepcopy


def override(a: dict, b: dict) -> dict:
    """
    Return copy of `a` overridden by `b` values.

    Nested dicts are overridden key by key, any other value in `b`
    replaces the value in `a`. Neither `a` nor `b` is modified.

    .. code-block:: shell-session

       >>> from virtsession.utils import dictutil
       >>> default = {'libvirt': {'uri': None, 'readonly': False}}
       >>> dictutil.override(default, {'libvirt': {'readonly': True}})
       {'libvirt': {'uri': None, 'readonly': True}}

    :param a: Dict with default values.
    :param b: Dict whose values take precedence.
    """
    result = deepcopy(a)
    for key, value in b.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = override(result[key], value)
        else:
            result[key] = deepcopy(value)
    return result
