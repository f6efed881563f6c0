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

"""Manage storage volumes."""

__all__ = ['StorageVolume']

from pathlib import Path

import libvirt

from virtsession.common import Handle
from virtsession.exceptions import ErrorCode


class StorageVolume(Handle):
    """
    Storage volume handle.

    Only introspection is available, volume lifecycle is managed by
    libvirt storage pool.
    """

    resource = 'storage volume'
    invalid_code = ErrorCode.INVALID_STORAGE_VOL

    def _identify(self, native: libvirt.virStorageVol) -> str:
        return native.name()

    def name(self) -> str:
        """Volume name, unique within the pool."""
        with self._native_call('name') as native:
            return native.name()

    def key(self) -> str:
        """Volume key, unique within the host."""
        with self._native_call('key') as native:
            return native.key()

    def path(self) -> Path:
        """Volume path on host."""
        with self._native_call('path') as native:
            return Path(native.path())

    def xml(self) -> str:
        """Return volume XML description."""
        with self._native_call('xml') as native:
            return native.XMLDesc(0)
