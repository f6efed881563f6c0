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

"""Exceptions."""

__all__ = [
    'ConfigLoaderError',
    'ErrorCode',
    'ErrorKind',
    'HypervisorError',
    'InvalidArgumentError',
    'NativeFailureError',
    'NotFoundError',
    'OperationDeniedError',
    'SessionError',
    'UnsupportedOperationError',
]

from enum import IntEnum, StrEnum

import libvirt


class ErrorKind(StrEnum):
    """Closed set of error kinds callers may branch on."""

    INVALID_ARGUMENT = 'invalid-argument'
    NOT_FOUND = 'not-found'
    OPERATION_DENIED = 'operation-denied'
    UNSUPPORTED_OPERATION = 'unsupported-operation'
    NATIVE_FAILURE = 'native-failure'


class ErrorCode(IntEnum):
    """
    Libvirt error codes known to this library.

    Values are the libvirt ones, so a code read from a native error compares
    equal to the matching member. Codes missing here are still preserved as
    plain integers on :class:`HypervisorError`.

    Reference:
    https://libvirt.org/html/libvirt-virterror.html#virErrorNumber
    """

    OK = libvirt.VIR_ERR_OK
    INTERNAL_ERROR = libvirt.VIR_ERR_INTERNAL_ERROR
    NO_MEMORY = libvirt.VIR_ERR_NO_MEMORY
    NO_SUPPORT = libvirt.VIR_ERR_NO_SUPPORT
    UNKNOWN_HOST = libvirt.VIR_ERR_UNKNOWN_HOST
    NO_CONNECT = libvirt.VIR_ERR_NO_CONNECT
    INVALID_CONN = libvirt.VIR_ERR_INVALID_CONN
    INVALID_DOMAIN = libvirt.VIR_ERR_INVALID_DOMAIN
    INVALID_ARG = libvirt.VIR_ERR_INVALID_ARG
    OPERATION_FAILED = libvirt.VIR_ERR_OPERATION_FAILED
    XML_ERROR = libvirt.VIR_ERR_XML_ERROR
    SYSTEM_ERROR = libvirt.VIR_ERR_SYSTEM_ERROR
    RPC = libvirt.VIR_ERR_RPC
    NO_DOMAIN = libvirt.VIR_ERR_NO_DOMAIN
    OPERATION_DENIED = libvirt.VIR_ERR_OPERATION_DENIED
    AUTH_FAILED = libvirt.VIR_ERR_AUTH_FAILED
    INVALID_STORAGE_POOL = libvirt.VIR_ERR_INVALID_STORAGE_POOL
    INVALID_STORAGE_VOL = libvirt.VIR_ERR_INVALID_STORAGE_VOL
    NO_STORAGE_POOL = libvirt.VIR_ERR_NO_STORAGE_POOL
    NO_STORAGE_VOL = libvirt.VIR_ERR_NO_STORAGE_VOL
    OPERATION_INVALID = libvirt.VIR_ERR_OPERATION_INVALID
    NO_SECRET = libvirt.VIR_ERR_NO_SECRET
    INVALID_SECRET = libvirt.VIR_ERR_INVALID_SECRET
    CONFIG_UNSUPPORTED = libvirt.VIR_ERR_CONFIG_UNSUPPORTED
    OPERATION_TIMEOUT = libvirt.VIR_ERR_OPERATION_TIMEOUT
    NO_DOMAIN_SNAPSHOT = libvirt.VIR_ERR_NO_DOMAIN_SNAPSHOT
    INVALID_DOMAIN_SNAPSHOT = libvirt.VIR_ERR_INVALID_DOMAIN_SNAPSHOT
    OPERATION_ABORTED = libvirt.VIR_ERR_OPERATION_ABORTED
    ARGUMENT_UNSUPPORTED = libvirt.VIR_ERR_ARGUMENT_UNSUPPORTED
    OPERATION_UNSUPPORTED = libvirt.VIR_ERR_OPERATION_UNSUPPORTED
    ACCESS_DENIED = libvirt.VIR_ERR_ACCESS_DENIED
    XML_DETAIL = libvirt.VIR_ERR_XML_DETAIL
    AGENT_UNRESPONSIVE = libvirt.VIR_ERR_AGENT_UNRESPONSIVE

    @classmethod
    def from_native(cls, code: int | None) -> 'ErrorCode | int':
        """Return known member for `code` or `code` itself."""
        if code is None:
            return cls.INTERNAL_ERROR
        try:
            return cls(code)
        except ValueError:
            return code


class HypervisorError(Exception):
    """
    Basic exception class.

    :ivar kind: :class:`ErrorKind` of the failure, None for errors that
        do not come from the hypervisor (e.g. configuration errors).
    :ivar code: :class:`ErrorCode` member, or the raw libvirt code if it
        is unknown to this library.
    :ivar domain: libvirt error domain (``VIR_FROM_*``) or None.
    :ivar operation: Name of the failed operation.
    """

    kind: ErrorKind | None = None

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | int = ErrorCode.INTERNAL_ERROR,
        domain: int | None = None,
        operation: str | None = None,
    ):
        """Initialise HypervisorError."""
        self.message = message
        self.code = ErrorCode.from_native(code)
        self.domain = domain
        self.operation = operation
        super().__init__(message)

    def __repr__(self) -> str:
        """Return error representation with kind and code."""
        return (
            f'{type(self).__name__}({self.message!r}, kind={self.kind}, '
            f'code={self.code!r}, operation={self.operation!r})'
        )


class ConfigLoaderError(HypervisorError):
    """Something went wrong when loading configuration."""

    def __init__(self, message: str):
        """Initialise ConfigLoaderError."""
        super().__init__(message, code=ErrorCode.OK)


class InvalidArgumentError(HypervisorError, ValueError):
    """Malformed identifier, empty descriptor or unrecognized flags."""

    kind = ErrorKind.INVALID_ARGUMENT


class NotFoundError(HypervisorError, LookupError):
    """Lookup or parent query matched no resource."""

    kind = ErrorKind.NOT_FOUND


class OperationDeniedError(HypervisorError, PermissionError):
    """Mutating operation refused, e.g. on a read-only session."""

    kind = ErrorKind.OPERATION_DENIED


class UnsupportedOperationError(HypervisorError):
    """Operation is not available for this connection or resource state."""

    kind = ErrorKind.UNSUPPORTED_OPERATION


class NativeFailureError(HypervisorError):
    """Any other libvirt failure. The native code is kept in `code`."""

    kind = ErrorKind.NATIVE_FAILURE


class SessionError(HypervisorError):
    """
    Something went wrong while connecting to libvirtd.

    Unlike the other errors the kind is not fixed by the class: it is
    taken from the native code, so a malformed URI is reported with
    :attr:`ErrorKind.INVALID_ARGUMENT` and an unreachable hypervisor
    with :attr:`ErrorKind.NATIVE_FAILURE`.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind = ErrorKind.NATIVE_FAILURE,
        code: ErrorCode | int = ErrorCode.NO_CONNECT,
        domain: int | None = None,
        operation: str | None = None,
    ):
        """Initialise SessionError."""
        self.kind = kind
        super().__init__(
            message, code=code, domain=domain, operation=operation
        )
