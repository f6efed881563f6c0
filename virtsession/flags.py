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

"""
Flag vocabularies accepted by hypervisor operations.

Every operation has a closed vocabulary. Values outside of it are
rejected by :func:`validate` before libvirt is called, so a bad flag
never changes hypervisor state.
"""

from enum import Enum, IntEnum, IntFlag
from functools import reduce
from operator import or_

import libvirt

from .exceptions import ErrorCode, InvalidArgumentError


class ConnectionMode(IntEnum):
    """Session access mode."""

    READ_WRITE = 0
    READ_ONLY = libvirt.VIR_CONNECT_RO


class DomainListFlag(IntFlag):
    """Filters for :meth:`Session.list_domains`."""

    ALL = 0
    ACTIVE = libvirt.VIR_CONNECT_LIST_DOMAINS_ACTIVE
    INACTIVE = libvirt.VIR_CONNECT_LIST_DOMAINS_INACTIVE
    PERSISTENT = libvirt.VIR_CONNECT_LIST_DOMAINS_PERSISTENT
    TRANSIENT = libvirt.VIR_CONNECT_LIST_DOMAINS_TRANSIENT
    RUNNING = libvirt.VIR_CONNECT_LIST_DOMAINS_RUNNING
    PAUSED = libvirt.VIR_CONNECT_LIST_DOMAINS_PAUSED
    SHUTOFF = libvirt.VIR_CONNECT_LIST_DOMAINS_SHUTOFF
    OTHER = libvirt.VIR_CONNECT_LIST_DOMAINS_OTHER
    MANAGEDSAVE = libvirt.VIR_CONNECT_LIST_DOMAINS_MANAGEDSAVE
    NO_MANAGEDSAVE = libvirt.VIR_CONNECT_LIST_DOMAINS_NO_MANAGEDSAVE
    AUTOSTART = libvirt.VIR_CONNECT_LIST_DOMAINS_AUTOSTART
    NO_AUTOSTART = libvirt.VIR_CONNECT_LIST_DOMAINS_NO_AUTOSTART
    HAS_SNAPSHOT = libvirt.VIR_CONNECT_LIST_DOMAINS_HAS_SNAPSHOT
    NO_SNAPSHOT = libvirt.VIR_CONNECT_LIST_DOMAINS_NO_SNAPSHOT


class DomainCreateFlag(IntFlag):
    """Flags for starting domains."""

    DEFAULT = libvirt.VIR_DOMAIN_NONE
    START_PAUSED = libvirt.VIR_DOMAIN_START_PAUSED
    AUTODESTROY = libvirt.VIR_DOMAIN_START_AUTODESTROY
    BYPASS_CACHE = libvirt.VIR_DOMAIN_START_BYPASS_CACHE
    FORCE_BOOT = libvirt.VIR_DOMAIN_START_FORCE_BOOT
    VALIDATE = libvirt.VIR_DOMAIN_START_VALIDATE


class DomainDestroyFlag(IntFlag):
    """Flags for :meth:`Domain.destroy`."""

    DEFAULT = libvirt.VIR_DOMAIN_DESTROY_DEFAULT
    GRACEFUL = libvirt.VIR_DOMAIN_DESTROY_GRACEFUL


class DomainUndefineFlag(IntFlag):
    """Flags for :meth:`Domain.undefine`."""

    DEFAULT = 0
    MANAGED_SAVE = libvirt.VIR_DOMAIN_UNDEFINE_MANAGED_SAVE
    SNAPSHOTS_METADATA = libvirt.VIR_DOMAIN_UNDEFINE_SNAPSHOTS_METADATA
    NVRAM = libvirt.VIR_DOMAIN_UNDEFINE_NVRAM
    KEEP_NVRAM = libvirt.VIR_DOMAIN_UNDEFINE_KEEP_NVRAM
    CHECKPOINTS_METADATA = libvirt.VIR_DOMAIN_UNDEFINE_CHECKPOINTS_METADATA


class DomainXMLFlag(IntFlag):
    """Flags for domain XML description."""

    DEFAULT = 0
    SECURE = libvirt.VIR_DOMAIN_XML_SECURE
    INACTIVE = libvirt.VIR_DOMAIN_XML_INACTIVE
    UPDATE_CPU = libvirt.VIR_DOMAIN_XML_UPDATE_CPU
    MIGRATABLE = libvirt.VIR_DOMAIN_XML_MIGRATABLE


class SecretListFlag(IntFlag):
    """Filters for :meth:`Session.list_secrets`."""

    ALL = 0
    EPHEMERAL = libvirt.VIR_CONNECT_LIST_SECRETS_EPHEMERAL
    NO_EPHEMERAL = libvirt.VIR_CONNECT_LIST_SECRETS_NO_EPHEMERAL
    PRIVATE = libvirt.VIR_CONNECT_LIST_SECRETS_PRIVATE
    NO_PRIVATE = libvirt.VIR_CONNECT_LIST_SECRETS_NO_PRIVATE


class SecretUsageType(IntEnum):
    """
    Type of object which uses a secret.

    libvirt may add usage types, so :meth:`Secret.usage_type` returns
    a plain int for values missing here.
    """

    NONE = libvirt.VIR_SECRET_USAGE_TYPE_NONE
    VOLUME = libvirt.VIR_SECRET_USAGE_TYPE_VOLUME
    CEPH = libvirt.VIR_SECRET_USAGE_TYPE_CEPH
    ISCSI = libvirt.VIR_SECRET_USAGE_TYPE_ISCSI
    TLS = libvirt.VIR_SECRET_USAGE_TYPE_TLS


class StoragePoolListFlag(IntFlag):
    """Filters for :meth:`Session.list_storage_pools`."""

    ALL = 0
    INACTIVE = libvirt.VIR_CONNECT_LIST_STORAGE_POOLS_INACTIVE
    ACTIVE = libvirt.VIR_CONNECT_LIST_STORAGE_POOLS_ACTIVE
    PERSISTENT = libvirt.VIR_CONNECT_LIST_STORAGE_POOLS_PERSISTENT
    TRANSIENT = libvirt.VIR_CONNECT_LIST_STORAGE_POOLS_TRANSIENT
    AUTOSTART = libvirt.VIR_CONNECT_LIST_STORAGE_POOLS_AUTOSTART
    NO_AUTOSTART = libvirt.VIR_CONNECT_LIST_STORAGE_POOLS_NO_AUTOSTART
    DIR = libvirt.VIR_CONNECT_LIST_STORAGE_POOLS_DIR
    FS = libvirt.VIR_CONNECT_LIST_STORAGE_POOLS_FS
    NETFS = libvirt.VIR_CONNECT_LIST_STORAGE_POOLS_NETFS
    LOGICAL = libvirt.VIR_CONNECT_LIST_STORAGE_POOLS_LOGICAL
    DISK = libvirt.VIR_CONNECT_LIST_STORAGE_POOLS_DISK
    ISCSI = libvirt.VIR_CONNECT_LIST_STORAGE_POOLS_ISCSI
    SCSI = libvirt.VIR_CONNECT_LIST_STORAGE_POOLS_SCSI
    MPATH = libvirt.VIR_CONNECT_LIST_STORAGE_POOLS_MPATH
    RBD = libvirt.VIR_CONNECT_LIST_STORAGE_POOLS_RBD
    ZFS = libvirt.VIR_CONNECT_LIST_STORAGE_POOLS_ZFS


class StoragePoolState(IntEnum):
    """
    Storage pool state.

    Reference:
    https://libvirt.org/html/libvirt-libvirt-storage.html#virStoragePoolState
    """

    INACTIVE = libvirt.VIR_STORAGE_POOL_INACTIVE
    BUILDING = libvirt.VIR_STORAGE_POOL_BUILDING
    RUNNING = libvirt.VIR_STORAGE_POOL_RUNNING
    DEGRADED = libvirt.VIR_STORAGE_POOL_DEGRADED
    INACCESSIBLE = libvirt.VIR_STORAGE_POOL_INACCESSIBLE


class StoragePoolBuildFlag(IntFlag):
    """Flags for :meth:`StoragePool.build`."""

    NEW = libvirt.VIR_STORAGE_POOL_BUILD_NEW
    REPAIR = libvirt.VIR_STORAGE_POOL_BUILD_REPAIR
    RESIZE = libvirt.VIR_STORAGE_POOL_BUILD_RESIZE
    NO_OVERWRITE = libvirt.VIR_STORAGE_POOL_BUILD_NO_OVERWRITE
    OVERWRITE = libvirt.VIR_STORAGE_POOL_BUILD_OVERWRITE


class StorageXMLFlag(IntFlag):
    """Flags for storage pool XML description."""

    DEFAULT = 0
    INACTIVE = libvirt.VIR_STORAGE_XML_INACTIVE


class SnapshotCreateFlag(IntFlag):
    """Flags for :meth:`Domain.create_snapshot`."""

    DEFAULT = 0
    REDEFINE = libvirt.VIR_DOMAIN_SNAPSHOT_CREATE_REDEFINE
    CURRENT = libvirt.VIR_DOMAIN_SNAPSHOT_CREATE_CURRENT
    NO_METADATA = libvirt.VIR_DOMAIN_SNAPSHOT_CREATE_NO_METADATA
    HALT = libvirt.VIR_DOMAIN_SNAPSHOT_CREATE_HALT
    DISK_ONLY = libvirt.VIR_DOMAIN_SNAPSHOT_CREATE_DISK_ONLY
    REUSE_EXT = libvirt.VIR_DOMAIN_SNAPSHOT_CREATE_REUSE_EXT
    QUIESCE = libvirt.VIR_DOMAIN_SNAPSHOT_CREATE_QUIESCE
    ATOMIC = libvirt.VIR_DOMAIN_SNAPSHOT_CREATE_ATOMIC
    LIVE = libvirt.VIR_DOMAIN_SNAPSHOT_CREATE_LIVE
    VALIDATE = libvirt.VIR_DOMAIN_SNAPSHOT_CREATE_VALIDATE


class SnapshotListFlag(IntFlag):
    """
    Filters for listing snapshots.

    ``DESCENDANTS`` and ``ROOTS`` share the same value: listing children
    of a snapshot treats it as "all descendants", listing snapshots of
    a domain treats it as "roots only".
    """

    DEFAULT = 0
    DESCENDANTS = libvirt.VIR_DOMAIN_SNAPSHOT_LIST_DESCENDANTS
    ROOTS = libvirt.VIR_DOMAIN_SNAPSHOT_LIST_ROOTS
    METADATA = libvirt.VIR_DOMAIN_SNAPSHOT_LIST_METADATA
    LEAVES = libvirt.VIR_DOMAIN_SNAPSHOT_LIST_LEAVES
    NO_LEAVES = libvirt.VIR_DOMAIN_SNAPSHOT_LIST_NO_LEAVES
    NO_METADATA = libvirt.VIR_DOMAIN_SNAPSHOT_LIST_NO_METADATA
    INACTIVE = libvirt.VIR_DOMAIN_SNAPSHOT_LIST_INACTIVE
    ACTIVE = libvirt.VIR_DOMAIN_SNAPSHOT_LIST_ACTIVE
    DISK_ONLY = libvirt.VIR_DOMAIN_SNAPSHOT_LIST_DISK_ONLY
    INTERNAL = libvirt.VIR_DOMAIN_SNAPSHOT_LIST_INTERNAL
    EXTERNAL = libvirt.VIR_DOMAIN_SNAPSHOT_LIST_EXTERNAL
    TOPOLOGICAL = libvirt.VIR_DOMAIN_SNAPSHOT_LIST_TOPOLOGICAL


class SnapshotRevertFlag(IntFlag):
    """Flags for :meth:`Snapshot.revert`."""

    DEFAULT = 0
    RUNNING = libvirt.VIR_DOMAIN_SNAPSHOT_REVERT_RUNNING
    PAUSED = libvirt.VIR_DOMAIN_SNAPSHOT_REVERT_PAUSED
    FORCE = libvirt.VIR_DOMAIN_SNAPSHOT_REVERT_FORCE


class SnapshotDeleteFlag(IntFlag):
    """Flags for :meth:`Snapshot.delete`."""

    DEFAULT = 0
    CHILDREN = libvirt.VIR_DOMAIN_SNAPSHOT_DELETE_CHILDREN
    METADATA_ONLY = libvirt.VIR_DOMAIN_SNAPSHOT_DELETE_METADATA_ONLY
    CHILDREN_ONLY = libvirt.VIR_DOMAIN_SNAPSHOT_DELETE_CHILDREN_ONLY


class SnapshotXMLFlag(IntFlag):
    """Flags for snapshot XML description."""

    DEFAULT = 0
    SECURE = libvirt.VIR_DOMAIN_SNAPSHOT_XML_SECURE


def _mask(flag_type: type[IntFlag]) -> int:
    return reduce(or_, (m.value for m in flag_type.__members__.values()), 0)


def validate(
    flag_type: type[Enum], value: int | None, operation: str
) -> int:
    """
    Check `value` against vocabulary of `flag_type` and return it as int.

    For :class:`IntFlag` vocabularies any combination of known bits is
    accepted. Other enumerations accept members only.

    :param flag_type: Flag enumeration of the operation.
    :param value: Flags passed by caller. None means no flags.
    :param operation: Operation name for error message.
    :raise: :class:`InvalidArgumentError`
    """
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(
            f'{operation}: flags must be {flag_type.__name__} or int, '
            f'not {type(value).__name__}',
            code=ErrorCode.INVALID_ARG,
            operation=operation,
        )
    flags = int(value)
    if issubclass(flag_type, IntFlag):
        valid = flags >= 0 and not flags & ~_mask(flag_type)
    else:
        valid = flags in {m.value for m in flag_type}
    if not valid:
        raise InvalidArgumentError(
            f'{operation}: unsupported {flag_type.__name__} value {flags:#x}',
            code=ErrorCode.INVALID_ARG,
            operation=operation,
        )
    return flags
