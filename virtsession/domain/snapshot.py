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

"""Manage domain snapshots."""

__all__ = ['Snapshot']

import logging

import libvirt

from virtsession import flags as vflags
from virtsession.common import Handle
from virtsession.exceptions import ErrorCode
from virtsession.flags import (
    SnapshotDeleteFlag,
    SnapshotListFlag,
    SnapshotRevertFlag,
    SnapshotXMLFlag,
)
from virtsession.translator import check_pointer


class Snapshot(Handle):
    """
    Domain snapshot handle.

    Snapshots of a domain form a tree. The tree is not cached: parent
    and children are queried from libvirt on every call and each
    returned handle is owned by the caller.
    """

    resource = 'snapshot'
    invalid_code = ErrorCode.INVALID_DOMAIN_SNAPSHOT

    def __init__(
        self,
        native: libvirt.virDomainSnapshot,
        logger: logging.Logger | None = None,
        *,
        domain: libvirt.virDomain,
    ):
        """
        Initialise Snapshot.

        :param native: libvirt virDomainSnapshot object
        :param logger: Diagnostic sink.
        :param domain: libvirt virDomain object the snapshot belongs to
        """
        self._domain = domain
        super().__init__(native, logger)

    def _identify(self, native: libvirt.virDomainSnapshot) -> str:
        return native.getName()

    def _release(self, native: libvirt.virDomainSnapshot) -> None:
        self._domain = None

    def name(self) -> str:
        """Snapshot name, unique within the domain."""
        with self._native_call('name') as native:
            return native.getName()

    def xml(
        self, flags: SnapshotXMLFlag | int = SnapshotXMLFlag.DEFAULT
    ) -> str:
        """Return snapshot XML description."""
        with self._native_call('xml') as native:
            flags = vflags.validate(SnapshotXMLFlag, flags, 'xml')
            return native.getXMLDesc(flags)

    def parent(self) -> 'Snapshot':
        """
        Return parent snapshot.

        :raise: :class:`NotFoundError` with code
            :attr:`ErrorCode.NO_DOMAIN_SNAPSHOT` for a root snapshot.
        """
        with self._native_call('parent') as native:
            snap = native.getParent(0)
        return self._spawn(Snapshot, snap, domain=self._domain)

    def list_children(
        self, flags: SnapshotListFlag | int = SnapshotListFlag.DEFAULT
    ) -> list['Snapshot']:
        """
        List child snapshots. Caller must free every returned snapshot.

        :param flags: Combination of :class:`SnapshotListFlag` filters.
            Direct children are listed unless
            :attr:`SnapshotListFlag.DESCENDANTS` is set.
        """
        with self._native_call('list_children') as native:
            flags = vflags.validate(SnapshotListFlag, flags, 'list_children')
            snaps = check_pointer(
                native.listAllChildren(flags), 'list_children'
            )
        return [
            self._spawn(Snapshot, snap, domain=self._domain) for snap in snaps
        ]

    def has_metadata(self) -> bool:
        """Return True if libvirt keeps metadata for snapshot."""
        with self._native_call('has_metadata') as native:
            return bool(native.hasMetadata(0))

    def is_current(self) -> bool:
        """Return True if snapshot is current snapshot of its domain."""
        with self._native_call('is_current') as native:
            return bool(native.isCurrent(0))

    def revert(
        self, flags: SnapshotRevertFlag | int = SnapshotRevertFlag.DEFAULT
    ) -> None:
        """
        Revert domain to state captured by snapshot.

        :param flags: Combination of :class:`SnapshotRevertFlag`.
        """
        with self._native_call('revert') as native:
            flags = vflags.validate(SnapshotRevertFlag, flags, 'revert')
            self._domain.revertToSnapshot(native, flags)

    def delete(
        self, flags: SnapshotDeleteFlag | int = SnapshotDeleteFlag.DEFAULT
    ) -> None:
        """
        Delete snapshot. The handle is not released.

        :param flags: Combination of :class:`SnapshotDeleteFlag`.
        """
        with self._native_call('delete') as native:
            flags = vflags.validate(SnapshotDeleteFlag, flags, 'delete')
            native.delete(flags)
