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

"""Manage storage pools."""

__all__ = ['StoragePool', 'StoragePoolUsageInfo']

from pathlib import Path
from typing import NamedTuple

import libvirt
from lxml import etree

from virtsession import flags as vflags
from virtsession.common import Handle
from virtsession.exceptions import ErrorCode, InvalidArgumentError
from virtsession.flags import (
    StoragePoolBuildFlag,
    StoragePoolState,
    StorageXMLFlag,
)
from virtsession.translator import check_pointer

from .volume import StorageVolume


class StoragePoolUsageInfo(NamedTuple):
    """
    Storage pool usage info in bytes.

    For running pool ``allocation + available == capacity``. For inactive
    pool values are whatever libvirt reports, usually zeros.
    """

    capacity: int
    allocation: int
    available: int


class StoragePool(Handle):
    """Storage pool handle."""

    resource = 'storage pool'
    invalid_code = ErrorCode.INVALID_STORAGE_POOL

    def _identify(self, native: libvirt.virStoragePool) -> str:
        return native.name()

    def _info(self, operation: str) -> list[int]:
        with self._native_call(operation) as native:
            return native.info()

    def name(self) -> str:
        """Storage pool name."""
        with self._native_call('name') as native:
            return native.name()

    def uuid(self) -> str:
        """Storage pool UUID string."""
        with self._native_call('uuid') as native:
            return native.UUIDString()

    def xml(self, flags: StorageXMLFlag | int = StorageXMLFlag.DEFAULT) -> str:
        """Return storage pool XML description."""
        with self._native_call('xml') as native:
            flags = vflags.validate(StorageXMLFlag, flags, 'xml')
            return native.XMLDesc(flags)

    def target_path(self) -> Path | None:
        """Return storage pool target path or None if pool has no path."""
        xml = etree.fromstring(self.xml().encode())
        path = xml.xpath('/pool/target/path/text()')
        return Path(path[0]) if path else None

    def info_state(self) -> StoragePoolState | int:
        """
        Return storage pool state.

        States unknown to this library are returned as int.
        """
        state = self._info('info_state')[0]
        try:
            return StoragePoolState(state)
        except ValueError:
            return state

    def info_capacity(self) -> int:
        """Return storage pool capacity in bytes."""
        return self._info('info_capacity')[1]

    def info_allocation(self) -> int:
        """Return allocated space in bytes."""
        return self._info('info_allocation')[2]

    def info_available(self) -> int:
        """Return free space in bytes."""
        return self._info('info_available')[3]

    def get_usage_info(self) -> StoragePoolUsageInfo:
        """Return capacity, allocation and available space at once."""
        info = self._info('get_usage_info')
        return StoragePoolUsageInfo(
            capacity=info[1],
            allocation=info[2],
            available=info[3],
        )

    def is_active(self) -> bool:
        """Return True if storage pool is running."""
        with self._native_call('is_active') as native:
            return bool(native.isActive())

    def is_persistent(self) -> bool:
        """Return True if storage pool has persistent definition."""
        with self._native_call('is_persistent') as native:
            return bool(native.isPersistent())

    def create(self) -> None:
        """Start storage pool."""
        with self._native_call('create') as native:
            native.create(0)

    def build(
        self, flags: StoragePoolBuildFlag | int = StoragePoolBuildFlag.NEW
    ) -> None:
        """
        Build storage pool backing storage e.g. create target directory.

        :param flags: Combination of :class:`StoragePoolBuildFlag`.
        """
        with self._native_call('build') as native:
            flags = vflags.validate(StoragePoolBuildFlag, flags, 'build')
            native.build(flags)

    def refresh(self) -> None:
        """Refresh list of volumes in running storage pool."""
        with self._native_call('refresh') as native:
            native.refresh(0)

    def destroy(self) -> None:
        """Stop storage pool. Data is kept. The handle is not released."""
        with self._native_call('destroy') as native:
            native.destroy()

    def undefine(self) -> None:
        """Remove storage pool definition. The handle is not released."""
        with self._native_call('undefine') as native:
            native.undefine()

    def autostart(self) -> bool:
        """Return True if storage pool autostart is enabled."""
        with self._native_call('autostart') as native:
            return bool(native.autostart())

    def set_autostart(self, *, enabled: bool) -> None:
        """
        Set autostart flag for storage pool.

        :param enabled: Bool argument to set or unset autostart flag.
        """
        with self._native_call('set_autostart') as native:
            native.setAutostart(1 if enabled else 0)

    def list_storage_volumes(self) -> list[StorageVolume]:
        """Return volumes in storage pool. Caller must free every volume."""
        with self._native_call('list_storage_volumes') as native:
            volumes = check_pointer(
                native.listAllVolumes(0), 'list_storage_volumes'
            )
        return [self._spawn(StorageVolume, vol) for vol in volumes]

    def lookup_storage_volume_by_name(self, name: str) -> StorageVolume:
        """
        Get storage volume by name.

        :raise: :class:`NotFoundError` if there is no such volume.
        """
        with self._native_call('lookup_storage_volume_by_name') as native:
            if not isinstance(name, str) or not name:
                raise InvalidArgumentError(
                    'lookup_storage_volume_by_name: name must be a non-empty '
                    'string',
                    code=ErrorCode.INVALID_ARG,
                    operation='lookup_storage_volume_by_name',
                )
            vol = native.storageVolLookupByName(name)
        return self._spawn(StorageVolume, vol)
