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
Translate libvirt failures into typed errors.

libvirt reports failures through a thread-local "last error". The Python
binding snapshots it into :class:`libvirt.libvirtError` at the moment the
failing call returns, and :func:`check_status` / :func:`check_pointer`
read it right after the call, before any other native call is made.
"""

__all__ = [
    'check_pointer',
    'check_status',
    'classify',
    'from_libvirt_error',
    'make_error',
    'native_call',
]

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TypeVar

import libvirt

from .exceptions import (
    ErrorCode,
    ErrorKind,
    HypervisorError,
    InvalidArgumentError,
    NativeFailureError,
    NotFoundError,
    OperationDeniedError,
    UnsupportedOperationError,
)


log = logging.getLogger(__name__)

T = TypeVar('T')

_KINDS = {
    ErrorCode.INVALID_ARG: ErrorKind.INVALID_ARGUMENT,
    ErrorCode.ARGUMENT_UNSUPPORTED: ErrorKind.INVALID_ARGUMENT,
    ErrorCode.XML_ERROR: ErrorKind.INVALID_ARGUMENT,
    ErrorCode.XML_DETAIL: ErrorKind.INVALID_ARGUMENT,
    ErrorCode.INVALID_CONN: ErrorKind.INVALID_ARGUMENT,
    ErrorCode.INVALID_DOMAIN: ErrorKind.INVALID_ARGUMENT,
    ErrorCode.INVALID_SECRET: ErrorKind.INVALID_ARGUMENT,
    ErrorCode.INVALID_STORAGE_POOL: ErrorKind.INVALID_ARGUMENT,
    ErrorCode.INVALID_STORAGE_VOL: ErrorKind.INVALID_ARGUMENT,
    ErrorCode.INVALID_DOMAIN_SNAPSHOT: ErrorKind.INVALID_ARGUMENT,
    ErrorCode.NO_DOMAIN: ErrorKind.NOT_FOUND,
    ErrorCode.NO_SECRET: ErrorKind.NOT_FOUND,
    ErrorCode.NO_STORAGE_POOL: ErrorKind.NOT_FOUND,
    ErrorCode.NO_STORAGE_VOL: ErrorKind.NOT_FOUND,
    ErrorCode.NO_DOMAIN_SNAPSHOT: ErrorKind.NOT_FOUND,
    ErrorCode.OPERATION_DENIED: ErrorKind.OPERATION_DENIED,
    ErrorCode.ACCESS_DENIED: ErrorKind.OPERATION_DENIED,
    ErrorCode.AUTH_FAILED: ErrorKind.OPERATION_DENIED,
    ErrorCode.NO_SUPPORT: ErrorKind.UNSUPPORTED_OPERATION,
    ErrorCode.OPERATION_UNSUPPORTED: ErrorKind.UNSUPPORTED_OPERATION,
    ErrorCode.CONFIG_UNSUPPORTED: ErrorKind.UNSUPPORTED_OPERATION,
    ErrorCode.OPERATION_INVALID: ErrorKind.UNSUPPORTED_OPERATION,
}

_ERRORS: dict[ErrorKind, type[HypervisorError]] = {
    ErrorKind.INVALID_ARGUMENT: InvalidArgumentError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.OPERATION_DENIED: OperationDeniedError,
    ErrorKind.UNSUPPORTED_OPERATION: UnsupportedOperationError,
    ErrorKind.NATIVE_FAILURE: NativeFailureError,
}


def classify(code: int | None) -> ErrorKind:
    """Return :class:`ErrorKind` for libvirt error code."""
    if code is None:
        return ErrorKind.NATIVE_FAILURE
    return _KINDS.get(code, ErrorKind.NATIVE_FAILURE)


def make_error(
    kind: ErrorKind,
    message: str,
    *,
    code: ErrorCode | int,
    domain: int | None = None,
    operation: str | None = None,
) -> HypervisorError:
    """Build exception instance of the class registered for `kind`."""
    return _ERRORS[kind](
        message, code=code, domain=domain, operation=operation
    )


def from_libvirt_error(
    exc: libvirt.libvirtError, operation: str | None = None
) -> HypervisorError:
    """
    Convert :class:`libvirt.libvirtError` to :class:`HypervisorError`.

    :param exc: Exception raised by libvirt binding.
    :param operation: Name of the operation which failed.
    """
    code = exc.get_error_code()
    message = exc.get_error_message() or str(exc)
    return make_error(
        classify(code),
        message,
        code=ErrorCode.from_native(code),
        domain=exc.get_error_domain(),
        operation=operation,
    )


def _last_error(operation: str) -> HypervisorError:
    err = libvirt.virGetLastError()
    if err is None:
        return NativeFailureError(
            f'{operation} failed without error details',
            code=ErrorCode.INTERNAL_ERROR,
            operation=operation,
        )
    code, domain, message = err[0], err[1], err[2]
    return make_error(
        classify(code),
        message or f'{operation} failed',
        code=ErrorCode.from_native(code),
        domain=domain,
        operation=operation,
    )


def check_status(ret: int, operation: str) -> int:
    """
    Raise typed error if native call returned ``-1`` status.

    :return: `ret` as is.
    """
    if ret == -1:
        raise _last_error(operation)
    return ret


def check_pointer(ptr: T | None, operation: str) -> T:
    """
    Raise typed error if native call returned NULL (None).

    :return: `ptr` as is.
    """
    if ptr is None:
        raise _last_error(operation)
    return ptr


@contextmanager
def native_call(
    operation: str,
    logger: logging.Logger | None = None,
    *,
    context: str | None = None,
) -> Iterator[None]:
    """
    Wrap native call, log its outcome and translate libvirt errors.

    .. code-block:: python

       with native_call('destroy', log, context="domain 'vm1'"):
           dom.destroyFlags(0)

    :param operation: Operation name used in logs and errors.
    :param logger: Diagnostic sink. Module logger is used if None.
    :param context: Resource description for log records.
    """
    logger = logger or log
    prefix = f'{context}: ' if context else ''
    logger.debug('%s%s...', prefix, operation)
    try:
        yield
    except libvirt.libvirtError as e:
        error = from_libvirt_error(e, operation)
        logger.warning(
            '%s%s failed: %s (code=%r)', prefix, operation, error, error.code
        )
        raise error from e
    except HypervisorError as e:
        logger.warning(
            '%s%s failed: %s (code=%r)', prefix, operation, e, e.code
        )
        raise
    logger.debug('%s%s done', prefix, operation)
