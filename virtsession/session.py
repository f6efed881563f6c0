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

"""Hypervisor session manager."""

__all__ = [
    'DomainCapabilities',
    'NodeInfo',
    'Session',
    'register_error_handler',
]

import logging
from typing import Any, NamedTuple
from uuid import UUID

import libvirt
from lxml import etree

from . import flags as vflags
from .common import Handle
from .config import Config
from .domain import Domain
from .exceptions import (
    ConfigLoaderError,
    ErrorCode,
    ErrorKind,
    HypervisorError,
    InvalidArgumentError,
    NativeFailureError,
    OperationDeniedError,
    SessionError,
    UnsupportedOperationError,
)
from .flags import (
    ConnectionMode,
    DomainCreateFlag,
    DomainListFlag,
    SecretListFlag,
    SecretUsageType,
    StoragePoolListFlag,
)
from .secret import Secret
from .storage import StoragePool
from .translator import check_pointer, check_status, native_call


log = logging.getLogger(__name__)


def _log_libvirt_error(ctx: Any, error: tuple | None) -> None:  # noqa: ARG001
    """Send libvirt diagnostics to logger instead of stderr."""
    if error:
        log.debug('libvirt: %s (code=%s)', error[2], error[0])


def register_error_handler() -> None:
    """
    Route libvirt diagnostics to :mod:`logging` instead of stderr.

    libvirt keeps one handler per process, so this replaces any handler
    set before. Call it once from the application entry point.
    """
    libvirt.registerErrorHandler(_log_libvirt_error, None)


class NodeInfo(NamedTuple):
    """
    Store hypervisor node info.

    See https://libvirt.org/html/libvirt-libvirt-host.html#virNodeInfo
    NOTE: memory unit in libvirt docs is wrong! Actual unit is MiB.
    """

    arch: str
    memory: int
    cpus: int
    mhz: int
    nodes: int
    sockets: int
    cores: int
    threads: int


class DomainCapabilities(NamedTuple):
    """Store domain capabilities info."""

    arch: str
    virt_type: str
    emulator: str
    machine: str
    max_vcpus: int


def _require_string(value: Any, what: str, operation: str) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidArgumentError(
            f'{operation}: {what} must be a non-empty string',
            code=ErrorCode.INVALID_ARG,
            operation=operation,
        )
    return value


def _require_uuid(value: Any, operation: str) -> str:
    if isinstance(value, UUID):
        return str(value)
    try:
        return str(UUID(_require_string(value, 'UUID', operation)))
    except ValueError as e:
        raise InvalidArgumentError(
            f'{operation}: malformed UUID {value!r}',
            code=ErrorCode.INVALID_ARG,
            operation=operation,
        ) from e


def _open_rejected(message: str, logger: logging.Logger) -> SessionError:
    logger.warning('open failed: %s', message)
    return SessionError(
        message,
        kind=ErrorKind.INVALID_ARGUMENT,
        code=ErrorCode.INVALID_ARG,
        operation='open',
    )


class Session(Handle):
    """
    Hypervisor session.

    The session is reference counted: it is opened with count 1, every
    extra owner calls :meth:`ref` and each owner calls :meth:`close`
    once. The connection is closed when the count reaches zero. Handles
    created by the session stay usable after that until they are freed,
    libvirt keeps the connection alive for them.

    .. code-block:: python

       with Session.open('qemu:///system') as session:
           with session.lookup_domain_by_name('vm1') as domain:
               domain.create()
    """

    resource = 'session'
    invalid_code = ErrorCode.INVALID_CONN

    def __init__(
        self,
        uri: str | None = None,
        mode: ConnectionMode | int = ConnectionMode.READ_WRITE,
        *,
        logger: logging.Logger | None = None,
    ):
        """
        Open connection to hypervisor.

        :param uri: libvirt connection URI. If None, libvirt picks the
            default URI.
        :param mode: Access mode.
        :param logger: Diagnostic sink shared with all handles created
            by this session.
        :raise: :class:`SessionError`
        """
        logger = logger or log
        if uri is not None and (not isinstance(uri, str) or not uri):
            raise _open_rejected(f'Invalid connection URI: {uri!r}', logger)
        try:
            mode = ConnectionMode(
                vflags.validate(ConnectionMode, mode, 'open')
            )
        except InvalidArgumentError as e:
            raise _open_rejected(str(e), logger) from e
        self._uri = uri
        self._mode = mode
        try:
            with native_call(
                f'open ({mode.name})', logger, context=f"session '{uri}'"
            ):
                if mode == ConnectionMode.READ_ONLY:
                    connection = libvirt.openReadOnly(uri)
                else:
                    connection = libvirt.open(uri)
                check_pointer(connection, 'open')
        except HypervisorError as e:
            raise SessionError(
                f'Cannot connect to {uri or "default URI"}: {e}',
                kind=e.kind or ErrorKind.NATIVE_FAILURE,
                code=e.code,
                domain=e.domain,
                operation='open',
            ) from e
        super().__init__(connection, logger)

    @classmethod
    def open(
        cls,
        uri: str,
        mode: ConnectionMode | int = ConnectionMode.READ_WRITE,
        *,
        logger: logging.Logger | None = None,
    ) -> 'Session':
        """
        Open session for URI.

        :param uri: Non-empty libvirt connection URI.
        :param mode: Access mode.
        :raise: :class:`SessionError`
        """
        if not isinstance(uri, str) or not uri:
            raise _open_rejected(
                f'Connection URI must be a non-empty string, got {uri!r}',
                logger or log,
            )
        return cls(uri, mode, logger=logger)

    @classmethod
    def open_default(
        cls,
        mode: ConnectionMode | int | None = None,
        *,
        config: Config | None = None,
        logger: logging.Logger | None = None,
    ) -> 'Session':
        """
        Open session using configured URI.

        URI and mode come from :class:`Config`. If no URI is configured
        libvirt default URI is used.

        :param mode: Access mode. Overrides configured mode.
        :param config: Configuration. Loaded from default location if None.
        :raise: :class:`SessionError`. Configuration load failure is
            raised as :class:`SessionError` chained to
            :class:`ConfigLoaderError`.
        """
        if config is None:
            try:
                config = Config()
            except ConfigLoaderError as e:
                raise _open_rejected(str(e), logger or log) from e
        if mode is None:
            mode = (
                ConnectionMode.READ_ONLY
                if config['libvirt']['readonly']
                else ConnectionMode.READ_WRITE
            )
        return cls(config['libvirt']['uri'], mode, logger=logger)

    def _identify(self, native: Any) -> str:  # noqa: ARG002
        return self._uri or 'default'

    def _release(self, native: libvirt.virConnect) -> None:
        check_status(native.close(), 'close')

    def _require_write(self, operation: str) -> None:
        if self._mode == ConnectionMode.READ_ONLY:
            raise OperationDeniedError(
                f'{operation}: operation forbidden for read only access',
                code=ErrorCode.OPERATION_DENIED,
                operation=operation,
            )

    @property
    def mode(self) -> ConnectionMode:
        """Session access mode."""
        return self._mode

    def close(self) -> int:
        """
        Drop one reference to session and return remaining count.

        Connection is closed when count reaches zero. Closing already
        closed session is not an error and returns 0.
        """
        return self.free()

    def is_alive(self) -> bool:
        """Return True if connection is alive."""
        with self._native_call('is_alive') as native:
            return bool(native.isAlive())

    def is_encrypted(self) -> bool:
        """Return True if connection transport is encrypted."""
        with self._native_call('is_encrypted') as native:
            return bool(native.isEncrypted())

    def is_secure(self) -> bool:
        """Return True if connection transport is secure."""
        with self._native_call('is_secure') as native:
            return bool(native.isSecure())

    def version(self) -> int:
        """
        Return hypervisor version.

        Format is ``major * 1,000,000 + minor * 1,000 + release``.
        """
        with self._native_call('version') as native:
            return native.getVersion()

    def lib_version(self) -> int:
        """Return libvirt version in the same format as :meth:`version`."""
        with self._native_call('lib_version') as native:
            return native.getLibVersion()

    def capabilities(self) -> str:
        """Return host capabilities XML description."""
        with self._native_call('capabilities') as native:
            return native.getCapabilities()

    def hostname(self) -> str:
        """Return hypervisor host name."""
        with self._native_call('hostname') as native:
            return native.getHostname()

    def type(self) -> str:
        """Return hypervisor driver name e.g. ``QEMU``."""
        with self._native_call('type') as native:
            return native.getType()

    def uri(self) -> str:
        """Return URI used to open session."""
        if self._uri:
            return self._uri
        with self._native_call('uri') as native:
            return native.getURI()

    def sysinfo(self) -> str:
        """
        Return host system information XML description.

        Some drivers (e.g. ``qemu:///session``) cannot read hardware
        info. Such failures are raised as
        :class:`UnsupportedOperationError` with native code preserved.
        """
        try:
            with self._native_call('sysinfo') as native:
                return native.getSysinfo(0)
        except NativeFailureError as e:
            raise UnsupportedOperationError(
                e.message, code=e.code, domain=e.domain, operation='sysinfo'
            ) from e

    def cpu_model_names(self, arch: str) -> list[str]:
        """
        Return names of CPU models supported for architecture.

        :param arch: Architecture name e.g. ``x86_64``.
        """
        with self._native_call('cpu_model_names') as native:
            _require_string(arch, 'architecture', 'cpu_model_names')
            return check_pointer(
                native.getCPUModelNames(arch, 0), 'cpu_model_names'
            )

    def max_vcpus(self, virt_type: str) -> int:
        """
        Return maximum number of vCPUs for virtualization type.

        :param virt_type: Virtualization type e.g. ``kvm``.
        """
        with self._native_call('max_vcpus') as native:
            _require_string(virt_type, 'virtualization type', 'max_vcpus')
            return check_status(native.getMaxVcpus(virt_type), 'max_vcpus')

    def get_node_info(self) -> NodeInfo:
        """Return information about hypervisor node."""
        with self._native_call('get_node_info') as native:
            info = native.getInfo()
        return NodeInfo(*info[:8])

    def get_domain_capabilities(
        self, arch: str | None = None, virt_type: str | None = None
    ) -> DomainCapabilities:
        """
        Return domain capabilities e.g. arch, virt, emulator, etc.

        :param arch: Architecture. Host architecture if None.
        :param virt_type: Virtualization type. Driver default if None.
        """
        with self._native_call('get_domain_capabilities') as native:
            xml = native.getDomainCapabilities(None, arch, None, virt_type, 0)
        prefix = '/domainCapabilities'
        caps = etree.fromstring(xml.encode())
        return DomainCapabilities(
            arch=caps.xpath(f'{prefix}/arch/text()')[0],
            virt_type=caps.xpath(f'{prefix}/domain/text()')[0],
            emulator=caps.xpath(f'{prefix}/path/text()')[0],
            machine=caps.xpath(f'{prefix}/machine/text()')[0],
            max_vcpus=int(caps.xpath(f'{prefix}/vcpu/@max')[0]),
        )

    def list_domains(
        self, flags: DomainListFlag | int = DomainListFlag.ALL
    ) -> list[Domain]:
        """
        List domains. Caller must free every returned domain.

        :param flags: Combination of :class:`DomainListFlag` filters.
        """
        with self._native_call('list_domains') as native:
            flags = vflags.validate(DomainListFlag, flags, 'list_domains')
            domains = check_pointer(
                native.listAllDomains(flags), 'list_domains'
            )
        return [self._spawn(Domain, dom) for dom in domains]

    def create_domain(
        self,
        xml: str,
        flags: DomainCreateFlag | int = DomainCreateFlag.DEFAULT,
    ) -> Domain:
        """
        Create and start transient domain.

        :param xml: Domain XML description.
        :param flags: Combination of :class:`DomainCreateFlag`.
        """
        with self._native_call('create_domain') as native:
            _require_string(xml, 'XML description', 'create_domain')
            flags = vflags.validate(DomainCreateFlag, flags, 'create_domain')
            self._require_write('create_domain')
            dom = check_pointer(native.createXML(xml, flags), 'create_domain')
        return self._spawn(Domain, dom)

    def define_domain(self, xml: str) -> Domain:
        """
        Define persistent domain without starting it.

        :param xml: Domain XML description.
        """
        with self._native_call('define_domain') as native:
            _require_string(xml, 'XML description', 'define_domain')
            self._require_write('define_domain')
            dom = check_pointer(native.defineXML(xml), 'define_domain')
        return self._spawn(Domain, dom)

    def lookup_domain_by_id(self, domain_id: int) -> Domain:
        """
        Get active domain by numeric ID.

        :raise: :class:`NotFoundError` if there is no such domain.
        """
        with self._native_call('lookup_domain_by_id') as native:
            if (
                isinstance(domain_id, bool)
                or not isinstance(domain_id, int)
                or domain_id < 0
            ):
                raise InvalidArgumentError(
                    f'lookup_domain_by_id: invalid domain ID {domain_id!r}',
                    code=ErrorCode.INVALID_ARG,
                    operation='lookup_domain_by_id',
                )
            dom = native.lookupByID(domain_id)
        return self._spawn(Domain, dom)

    def lookup_domain_by_name(self, name: str) -> Domain:
        """
        Get domain by name.

        :raise: :class:`NotFoundError` if there is no such domain.
        """
        with self._native_call('lookup_domain_by_name') as native:
            _require_string(name, 'domain name', 'lookup_domain_by_name')
            dom = native.lookupByName(name)
        return self._spawn(Domain, dom)

    def lookup_domain_by_uuid(self, uuid: str | UUID) -> Domain:
        """
        Get domain by UUID.

        :raise: :class:`NotFoundError` if there is no such domain.
        """
        with self._native_call('lookup_domain_by_uuid') as native:
            uuid = _require_uuid(uuid, 'lookup_domain_by_uuid')
            dom = native.lookupByUUIDString(uuid)
        return self._spawn(Domain, dom)

    def list_secrets(
        self, flags: SecretListFlag | int = SecretListFlag.ALL
    ) -> list[Secret]:
        """
        List secrets. Caller must free every returned secret.

        :param flags: Combination of :class:`SecretListFlag` filters.
        """
        with self._native_call('list_secrets') as native:
            flags = vflags.validate(SecretListFlag, flags, 'list_secrets')
            secrets = check_pointer(
                native.listAllSecrets(flags), 'list_secrets'
            )
        return [self._spawn(Secret, sec) for sec in secrets]

    def define_secret(self, xml: str) -> Secret:
        """
        Define secret or modify existing one.

        Secret value is not part of definition, use
        :meth:`Secret.set_value`.

        :param xml: Secret XML description.
        """
        with self._native_call('define_secret') as native:
            _require_string(xml, 'XML description', 'define_secret')
            self._require_write('define_secret')
            sec = check_pointer(
                native.secretDefineXML(xml, 0), 'define_secret'
            )
        return self._spawn(Secret, sec)

    def lookup_secret_by_uuid(self, uuid: str | UUID) -> Secret:
        """
        Get secret by UUID.

        :raise: :class:`NotFoundError` if there is no such secret.
        """
        with self._native_call('lookup_secret_by_uuid') as native:
            uuid = _require_uuid(uuid, 'lookup_secret_by_uuid')
            sec = native.secretLookupByUUIDString(uuid)
        return self._spawn(Secret, sec)

    def lookup_secret_by_usage(
        self, usage_type: SecretUsageType | int, usage_id: str
    ) -> Secret:
        """
        Get secret by its usage.

        :param usage_type: Type of object the secret is used with.
        :param usage_id: Usage identifier e.g. volume path for
            :attr:`SecretUsageType.VOLUME`.
        :raise: :class:`NotFoundError` if there is no such secret.
        """
        with self._native_call('lookup_secret_by_usage') as native:
            usage_type = vflags.validate(
                SecretUsageType, usage_type, 'lookup_secret_by_usage'
            )
            _require_string(usage_id, 'usage ID', 'lookup_secret_by_usage')
            sec = native.secretLookupByUsage(usage_type, usage_id)
        return self._spawn(Secret, sec)

    def list_storage_pools(
        self, flags: StoragePoolListFlag | int = StoragePoolListFlag.ALL
    ) -> list[StoragePool]:
        """
        List storage pools. Caller must free every returned pool.

        :param flags: Combination of :class:`StoragePoolListFlag` filters.
        """
        with self._native_call('list_storage_pools') as native:
            flags = vflags.validate(
                StoragePoolListFlag, flags, 'list_storage_pools'
            )
            pools = check_pointer(
                native.listAllStoragePools(flags), 'list_storage_pools'
            )
        return [self._spawn(StoragePool, pool) for pool in pools]

    def define_storage_pool(self, xml: str) -> StoragePool:
        """
        Define persistent storage pool without starting it.

        :param xml: Storage pool XML description.
        """
        with self._native_call('define_storage_pool') as native:
            _require_string(xml, 'XML description', 'define_storage_pool')
            self._require_write('define_storage_pool')
            pool = check_pointer(
                native.storagePoolDefineXML(xml, 0), 'define_storage_pool'
            )
        return self._spawn(StoragePool, pool)

    def lookup_storage_pool_by_name(self, name: str) -> StoragePool:
        """
        Get storage pool by name.

        :raise: :class:`NotFoundError` if there is no such pool.
        """
        with self._native_call('lookup_storage_pool_by_name') as native:
            _require_string(name, 'pool name', 'lookup_storage_pool_by_name')
            pool = native.storagePoolLookupByName(name)
        return self._spawn(StoragePool, pool)

    def lookup_storage_pool_by_uuid(self, uuid: str | UUID) -> StoragePool:
        """
        Get storage pool by UUID.

        :raise: :class:`NotFoundError` if there is no such pool.
        """
        with self._native_call('lookup_storage_pool_by_uuid') as native:
            uuid = _require_uuid(uuid, 'lookup_storage_pool_by_uuid')
            pool = native.storagePoolLookupByUUIDString(uuid)
        return self._spawn(StoragePool, pool)
