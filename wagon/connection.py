"""Lazy, thread-safe binding of a transport to its backend.

A ``LazyConnection`` owns one backend handle (bucket reference, transfer
manager, ...) per transport instance. Binding is double-checked: the fast
path reads the handle without locking, and only an unbound observation takes
the lock, re-checks and runs the factory. The factory therefore runs at most
once per session no matter how many threads race to open.

State machine::

    UNBOUND --open--> BINDING --ok--> BOUND --close--> CLOSED
       ^                 |                                |
       +----failure------+          <------open-----------+
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

from wagon.error_mapping import CONNECT, translate_error
from wagon.exceptions import WagonError

logger = logging.getLogger(__name__)

H = TypeVar("H")


class ConnectionState(str, Enum):
    UNBOUND = "unbound"
    BINDING = "binding"
    BOUND = "bound"
    CLOSED = "closed"


class LazyConnection(Generic[H]):
    """Exactly-once backend binding guarded by a per-instance lock.

    Args:
        name: Description used in error messages (usually the repository URL)
        backend_type: Backend identifier used for error translation
        factory: Builds the handle; may raise any exception
        teardown: Releases a handle; called outside the lock on close
    """

    def __init__(
        self,
        name: str,
        backend_type: str,
        factory: Callable[[], H],
        teardown: Optional[Callable[[H], None]] = None,
    ) -> None:
        self.name = name
        self.backend_type = backend_type
        self._factory = factory
        self._teardown = teardown
        self._handle: Optional[H] = None
        self._state = ConnectionState.UNBOUND
        self._lock = threading.Lock()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_bound(self) -> bool:
        return self._handle is not None

    def open(self) -> H:
        """Bind to the backend if not already bound and return the handle.

        Raises:
            AuthenticationError: If binding fails with an untyped exception
            WagonError: Typed errors raised by the factory, unchanged
        """
        handle = self._handle
        if handle is not None:
            return handle

        with self._lock:
            if self._handle is None:
                previous = self._state
                self._state = ConnectionState.BINDING
                try:
                    handle = self._factory()
                except WagonError:
                    self._state = previous
                    raise
                except Exception as exc:
                    self._state = previous
                    raise translate_error(
                        exc, self.backend_type, CONNECT, self.name
                    ) from exc
                self._handle = handle
                self._state = ConnectionState.BOUND
                logger.debug("Bound %s transport to %s", self.backend_type, self.name)
            return self._handle

    def handle(self) -> H:
        """Return the bound handle, binding lazily on first use."""
        return self.open()

    def close(self) -> None:
        """Release the handle. Safe to call repeatedly and from any thread."""
        with self._lock:
            handle = self._handle
            self._handle = None
            if self._state is not ConnectionState.UNBOUND or handle is not None:
                self._state = ConnectionState.CLOSED

        if handle is None or self._teardown is None:
            return

        try:
            self._teardown(handle)
            logger.debug("Released %s transport for %s", self.backend_type, self.name)
        except Exception as exc:
            logger.warning(
                "Failed to release %s transport for %s: %s",
                self.backend_type,
                self.name,
                exc,
            )
