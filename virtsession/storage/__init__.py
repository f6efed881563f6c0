"""Storage pools and volumes."""

from .pool import StoragePool, StoragePoolUsageInfo
from .volume import StorageVolume
