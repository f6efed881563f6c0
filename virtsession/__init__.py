"""Hypervisor session and resource handles library."""

__version__ = '0.1.0'

from .config import Config
from .domain import Domain, Snapshot
from .exceptions import (
    ConfigLoaderError,
    ErrorCode,
    ErrorKind,
    HypervisorError,
    InvalidArgumentError,
    NativeFailureError,
    NotFoundError,
    OperationDeniedError,
    SessionError,
    UnsupportedOperationError,
)
from .flags import (
    ConnectionMode,
    DomainCreateFlag,
    DomainDestroyFlag,
    DomainListFlag,
    DomainUndefineFlag,
    DomainXMLFlag,
    SecretListFlag,
    SecretUsageType,
    SnapshotCreateFlag,
    SnapshotDeleteFlag,
    SnapshotListFlag,
    SnapshotRevertFlag,
    SnapshotXMLFlag,
    StoragePoolBuildFlag,
    StoragePoolListFlag,
    StoragePoolState,
    StorageXMLFlag,
)
from .secret import Secret
from .session import (
    DomainCapabilities,
    NodeInfo,
    Session,
    register_error_handler,
)
from .storage import StoragePool, StoragePoolUsageInfo, StorageVolume
