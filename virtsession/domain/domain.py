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

"""Manage domains (virtual machines)."""

__all__ = ['Domain']

from typing import Any

import libvirt

from virtsession import flags as vflags
from virtsession.common import Handle
from virtsession.exceptions import (
    ErrorCode,
    InvalidArgumentError,
    UnsupportedOperationError,
)
from virtsession.flags import (
    DomainCreateFlag,
    DomainDestroyFlag,
    DomainUndefineFlag,
    DomainXMLFlag,
    SnapshotCreateFlag,
    SnapshotListFlag,
)
from virtsession.translator import check_pointer

from .snapshot import Snapshot


# virDomainGetID returns (unsigned int)-1 for inactive domain
NO_DOMAIN_ID = 0xFFFFFFFF


class Domain(Handle):
    """
    Domain handle.

    A domain is active (running) or inactive and persistent (has saved
    definition) or transient. Legal combinations are::

        inactive + persistent  --create-->   active + persistent
        active + persistent    --destroy-->  inactive + persistent
        inactive + persistent  --undefine--> gone (handle still valid)
        active + transient     --destroy-->  gone (handle still valid)

    Numeric ID is valid only while domain is active, name and UUID are
    stable.
    """

    resource = 'domain'
    invalid_code = ErrorCode.INVALID_DOMAIN

    def _identify(self, native: libvirt.virDomain) -> str:
        return native.name()

    def name(self) -> str:
        """Domain name."""
        with self._native_call('name') as native:
            return native.name()

    def uuid(self) -> str:
        """Domain UUID string."""
        with self._native_call('uuid') as native:
            return native.UUIDString()

    def id(self) -> int:
        """
        Return numeric ID of running domain.

        :raise: :class:`UnsupportedOperationError` if domain is inactive.
        """
        with self._native_call('id') as native:
            if native.isActive():
                domain_id = native.ID()
            else:
                domain_id = -1
            if domain_id < 0 or domain_id == NO_DOMAIN_ID:
                raise UnsupportedOperationError(
                    f'{self._context} is not running and has no ID',
                    code=ErrorCode.OPERATION_INVALID,
                    operation='id',
                )
        return domain_id

    def _query_state(self, operation: str, query: str) -> bool:
        with self._native_call(operation) as native:
            try:
                return bool(getattr(native, query)())
            except libvirt.libvirtError as e:
                if e.get_error_code() != libvirt.VIR_ERR_NO_DOMAIN:
                    raise
                self.log.debug(
                    '%s: domain is gone, %s is False', self._context, operation
                )
                return False

    def is_active(self) -> bool:
        """
        Return True if domain is running.

        Domain removed from hypervisor (e.g. destroyed transient domain)
        is reported as not running.
        """
        return self._query_state('is_active', 'isActive')

    def is_persistent(self) -> bool:
        """Return True if domain has persistent definition."""
        return self._query_state('is_persistent', 'isPersistent')

    def create(
        self, flags: DomainCreateFlag | int = DomainCreateFlag.DEFAULT
    ) -> None:
        """
        Start defined domain.

        :param flags: Combination of :class:`DomainCreateFlag`.
        """
        with self._native_call('create') as native:
            flags = vflags.validate(DomainCreateFlag, flags, 'create')
            native.createWithFlags(flags)

    def destroy(
        self, flags: DomainDestroyFlag | int = DomainDestroyFlag.DEFAULT
    ) -> None:
        """
        Stop running domain immediately.

        Transient domain disappears from hypervisor, persistent domain
        becomes inactive. The handle is not released.

        :param flags: Combination of :class:`DomainDestroyFlag`.
        """
        with self._native_call('destroy') as native:
            flags = vflags.validate(DomainDestroyFlag, flags, 'destroy')
            native.destroyFlags(flags)

    def undefine(
        self, flags: DomainUndefineFlag | int = DomainUndefineFlag.DEFAULT
    ) -> None:
        """
        Remove persistent definition.

        Running domain becomes transient, inactive domain disappears from
        hypervisor. The handle is not released.

        :param flags: Combination of :class:`DomainUndefineFlag`.
        """
        with self._native_call('undefine') as native:
            flags = vflags.validate(DomainUndefineFlag, flags, 'undefine')
            native.undefineFlags(flags)

    def xml(self, flags: DomainXMLFlag | int = DomainXMLFlag.DEFAULT) -> str:
        """Return domain XML description."""
        with self._native_call('xml') as native:
            flags = vflags.validate(DomainXMLFlag, flags, 'xml')
            return native.XMLDesc(flags)

    def autostart(self) -> bool:
        """Return True if domain autostart is enabled."""
        with self._native_call('autostart') as native:
            return bool(native.autostart())

    def set_autostart(self, *, enabled: bool) -> None:
        """
        Set autostart flag for domain.

        :param enabled: Bool argument to set or unset autostart flag.
        """
        with self._native_call('set_autostart') as native:
            native.setAutostart(1 if enabled else 0)

    def create_snapshot(
        self,
        xml: str,
        flags: SnapshotCreateFlag | int = SnapshotCreateFlag.DEFAULT,
    ) -> Snapshot:
        """
        Take snapshot of domain.

        :param xml: Snapshot XML description.
        :param flags: Combination of :class:`SnapshotCreateFlag`.
        """
        with self._native_call('create_snapshot') as native:
            if not isinstance(xml, str) or not xml:
                raise InvalidArgumentError(
                    'create_snapshot: XML description must be a non-empty '
                    'string',
                    code=ErrorCode.INVALID_ARG,
                    operation='create_snapshot',
                )
            flags = vflags.validate(
                SnapshotCreateFlag, flags, 'create_snapshot'
            )
            snap = check_pointer(
                native.snapshotCreateXML(xml, flags), 'create_snapshot'
            )
        return self._spawn_snapshot(snap, native)

    def list_snapshots(
        self, flags: SnapshotListFlag | int = SnapshotListFlag.DEFAULT
    ) -> list[Snapshot]:
        """
        List domain snapshots. Caller must free every returned snapshot.

        :param flags: Combination of :class:`SnapshotListFlag` filters.
            :attr:`SnapshotListFlag.ROOTS` selects root snapshots only.
        """
        with self._native_call('list_snapshots') as native:
            flags = vflags.validate(SnapshotListFlag, flags, 'list_snapshots')
            snaps = check_pointer(
                native.listAllSnapshots(flags), 'list_snapshots'
            )
        return [self._spawn_snapshot(snap, native) for snap in snaps]

    def lookup_snapshot_by_name(self, name: str) -> Snapshot:
        """
        Get domain snapshot by name.

        :raise: :class:`NotFoundError` if there is no such snapshot.
        """
        with self._native_call('lookup_snapshot_by_name') as native:
            if not isinstance(name, str) or not name:
                raise InvalidArgumentError(
                    'lookup_snapshot_by_name: name must be a non-empty string',
                    code=ErrorCode.INVALID_ARG,
                    operation='lookup_snapshot_by_name',
                )
            snap = native.snapshotLookupByName(name, 0)
        return self._spawn_snapshot(snap, native)

    def _spawn_snapshot(self, snap: Any, native: Any) -> Snapshot:
        return self._spawn(Snapshot, snap, domain=native)
