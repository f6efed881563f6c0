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

"""Common symbols."""

__all__ = ['EntityModel', 'Handle']

import logging
import threading
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from types import TracebackType
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict

from .exceptions import ErrorCode, InvalidArgumentError
from .translator import native_call


log = logging.getLogger(__name__)

H = TypeVar('H', bound='Handle')


class EntityModel(BaseModel):
    """Basic entity model. Extra fields are not allowed."""

    model_config = ConfigDict(extra='forbid')


class Handle(AbstractContextManager):
    """
    Local reference to one libvirt object.

    A handle owns an explicit reference count which starts at 1. Each
    additional owner calls :meth:`ref` and later :meth:`free` exactly
    once. When the count drops to zero the native object is released
    and every further operation fails with :class:`InvalidArgumentError`.
    Releasing a handle never deletes the resource from the hypervisor,
    use ``undefine()``, ``delete()`` or ``destroy()`` for that.

    Calling :meth:`free` on a fully released handle is accepted and
    returns 0, the same policy is applied by :meth:`Session.close`.

    Only the count is protected by a lock. Operations themselves are not
    serialized, callers sharing a handle must serialize state-changing
    calls on their own.

    :cvar str resource: Resource name used in log records and errors.
    :cvar ErrorCode invalid_code: Error code for calls on a released
        handle.
    """

    resource = 'handle'
    invalid_code = ErrorCode.INVALID_ARG

    def __init__(self, native: Any, logger: logging.Logger | None = None):
        """
        Initialise Handle.

        :param native: libvirt object.
        :param logger: Diagnostic sink. Module logger is used if None.
        """
        self._native = native
        self._refs = 1
        self._lock = threading.Lock()
        self.log = logger or log
        self._ident = self._identify(native)

    def __enter__(self: H) -> H:
        """Return handle object."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_traceback: TracebackType | None,
    ) -> None:
        """Drop the reference taken by this owner when leaving context."""
        self.free()

    def __repr__(self) -> str:
        """Return handle representation."""
        return f'<{type(self).__name__} {self._ident!r} refs={self._refs}>'

    def _identify(self, native: Any) -> str:  # noqa: ARG002
        """Return resource identity for logs. Must not fail."""
        return hex(id(self))

    def _release(self, native: Any) -> None:
        """Release native object. Called once, when count drops to zero."""

    @property
    def _context(self) -> str:
        return f"{self.resource} '{self._ident}'"

    @property
    def refs(self) -> int:
        """Current reference count."""
        return self._refs

    def is_released(self) -> bool:
        """Return True if reference count dropped to zero."""
        return self._refs == 0

    def _released_error(self, operation: str) -> InvalidArgumentError:
        return InvalidArgumentError(
            f'{self._context} is already released',
            code=self.invalid_code,
            operation=operation,
        )

    @contextmanager
    def _native_call(self, operation: str) -> Iterator[Any]:
        """
        Yield native object for one guarded call.

        libvirt errors raised inside the block are translated, outcome
        is logged to the diagnostic sink.
        """
        native = self._native
        if native is None:
            error = self._released_error(operation)
            self.log.warning(
                '%s: %s failed: %s', self._context, operation, error
            )
            raise error
        with native_call(operation, self.log, context=self._context):
            yield native

    def _spawn(self, handle_type: type[H], native: Any, **kwargs: Any) -> H:
        """Wrap native object into handle sharing this diagnostic sink."""
        return handle_type(native, logger=self.log, **kwargs)

    def ref(self) -> int:
        """
        Increment reference count and return the new value.

        Each call must be paired with one :meth:`free` call.
        """
        with self._lock:
            if self._refs == 0:
                error = self._released_error('ref')
            else:
                error = None
                self._refs += 1
                count = self._refs
        if error is not None:
            self.log.warning('%s: ref failed: %s', self._context, error)
            raise error
        self.log.debug(
            '%s: reference count incremented to %s', self._context, count
        )
        return count

    def free(self) -> int:
        """
        Decrement reference count and return the remaining value.

        The native object is released when the count reaches zero.
        """
        native = None
        with self._lock:
            if self._refs == 0:
                count = None
            else:
                self._refs -= 1
                count = self._refs
                if count == 0:
                    native, self._native = self._native, None
        if count is None:
            self.log.warning(
                '%s: already released, nothing to do', self._context
            )
            return 0
        if native is not None:
            self.log.debug('%s: releasing...', self._context)
            with native_call('release', self.log, context=self._context):
                self._release(native)
            self.log.debug('%s: released', self._context)
        else:
            self.log.debug(
                '%s: reference count decremented to %s', self._context, count
            )
        return count
