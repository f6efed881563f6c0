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

"""Manage secrets."""

__all__ = ['Secret']

import libvirt

from .common import Handle
from .exceptions import ErrorCode, InvalidArgumentError
from .flags import SecretUsageType


class Secret(Handle):
    """
    Secret handle.

    Secret is identified by UUID and bound to an object by usage type
    and usage ID. For :attr:`SecretUsageType.VOLUME` the usage ID is a
    fully qualified volume path, there is only one secret for each path.
    Secret value is an opaque byte string stored apart from definition.
    """

    resource = 'secret'
    invalid_code = ErrorCode.INVALID_SECRET

    def _identify(self, native: libvirt.virSecret) -> str:
        return native.UUIDString()

    def uuid(self) -> str:
        """Secret UUID string."""
        with self._native_call('uuid') as native:
            return native.UUIDString()

    def xml(self) -> str:
        """Return secret XML description."""
        with self._native_call('xml') as native:
            return native.XMLDesc(0)

    def usage_id(self) -> str:
        """Return identifier of object the secret is used with."""
        with self._native_call('usage_id') as native:
            return native.usageID()

    def usage_type(self) -> SecretUsageType | int:
        """
        Return type of object the secret is used with.

        Usage types unknown to this library are returned as int.
        """
        with self._native_call('usage_type') as native:
            usage_type = native.usageType()
        try:
            return SecretUsageType(usage_type)
        except ValueError:
            return usage_type

    def set_value(self, value: bytes | str) -> None:
        """
        Set secret value.

        :param value: Secret material. String is encoded as UTF-8.
        """
        with self._native_call('set_value') as native:
            if isinstance(value, str):
                value = value.encode('utf-8')
            if not isinstance(value, bytes | bytearray):
                raise InvalidArgumentError(
                    'set_value: value must be bytes, not '
                    f'{type(value).__name__}',
                    code=ErrorCode.INVALID_ARG,
                    operation='set_value',
                )
            self.log.debug(
                '%s: setting value (%s bytes)', self._context, len(value)
            )
            native.setValue(bytes(value), 0)

    def value(self) -> bytes:
        """Return secret value."""
        with self._native_call('value') as native:
            return bytes(native.value(0))

    def undefine(self) -> None:
        """Delete secret definition. The handle is not released."""
        with self._native_call('undefine') as native:
            native.undefine()
