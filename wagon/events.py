"""Transfer progress events and listener dispatch.

Events are purely observational: a listener that raises is logged and
skipped, and no transport behavior depends on listeners being present.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Protocol

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    INITIATED = "initiated"
    STARTED = "started"
    COMPLETED = "completed"
    ERROR = "error"


class RequestType(str, Enum):
    GET = "get"
    PUT = "put"


@dataclass
class Resource:
    """A repository resource addressed by its relative name.

    Attributes:
        name: Resource name relative to the repository base directory
        content_length: Size in bytes, when known
        last_modified: Last-modified time in epoch milliseconds, when known
    """

    name: str
    content_length: Optional[int] = None
    last_modified: Optional[int] = None

    @classmethod
    def from_file(cls, name: str, source: Path) -> "Resource":
        stat = source.stat()
        return cls(
            name=name,
            content_length=stat.st_size,
            last_modified=int(stat.st_mtime * 1000),
        )


@dataclass
class TransferEvent:
    resource: Resource
    event_type: EventType
    request_type: RequestType
    local_file: Optional[Path] = None
    exception: Optional[BaseException] = field(default=None, repr=False)


class TransferListener(Protocol):
    """Receives transfer events. All methods are optional to implement."""

    def transfer_initiated(self, event: TransferEvent) -> None:
        ...

    def transfer_started(self, event: TransferEvent) -> None:
        ...

    def transfer_completed(self, event: TransferEvent) -> None:
        ...

    def transfer_error(self, event: TransferEvent) -> None:
        ...

    def debug(self, message: str) -> None:
        ...


_HANDLERS = {
    EventType.INITIATED: "transfer_initiated",
    EventType.STARTED: "transfer_started",
    EventType.COMPLETED: "transfer_completed",
    EventType.ERROR: "transfer_error",
}


class TransferEventSupport:
    """Listener registry with ``fire_*`` helpers used by transports."""

    def __init__(self) -> None:
        self._listeners: List[TransferListener] = []
        self._listeners_lock = threading.Lock()

    def add_transfer_listener(self, listener: TransferListener) -> None:
        with self._listeners_lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_transfer_listener(self, listener: TransferListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def has_transfer_listener(self, listener: TransferListener) -> bool:
        with self._listeners_lock:
            return listener in self._listeners

    def _snapshot(self) -> List[TransferListener]:
        with self._listeners_lock:
            return list(self._listeners)

    def _dispatch(self, method: str, argument: object) -> None:
        for listener in self._snapshot():
            handler = getattr(listener, method, None)
            if handler is None:
                continue
            try:
                handler(argument)
            except Exception as exc:
                logger.warning(
                    "Transfer listener %s.%s failed: %s",
                    type(listener).__name__,
                    method,
                    exc,
                )

    def fire_transfer_event(
        self,
        resource: Resource,
        event_type: EventType,
        request_type: RequestType,
        local_file: Optional[Path] = None,
        exception: Optional[BaseException] = None,
    ) -> TransferEvent:
        event = TransferEvent(resource, event_type, request_type, local_file, exception)
        self._dispatch(_HANDLERS[event_type], event)
        return event

    def fire_get_initiated(self, resource: Resource, local_file: Path) -> None:
        self.fire_transfer_event(resource, EventType.INITIATED, RequestType.GET, local_file)

    def fire_get_started(self, resource: Resource, local_file: Path) -> None:
        self.fire_transfer_event(resource, EventType.STARTED, RequestType.GET, local_file)

    def fire_get_completed(self, resource: Resource, local_file: Path) -> None:
        self.fire_transfer_event(resource, EventType.COMPLETED, RequestType.GET, local_file)

    def fire_put_initiated(self, resource: Resource, local_file: Path) -> None:
        self.fire_transfer_event(resource, EventType.INITIATED, RequestType.PUT, local_file)

    def fire_put_started(self, resource: Resource, local_file: Path) -> None:
        self.fire_transfer_event(resource, EventType.STARTED, RequestType.PUT, local_file)

    def fire_put_completed(self, resource: Resource, local_file: Path) -> None:
        self.fire_transfer_event(resource, EventType.COMPLETED, RequestType.PUT, local_file)

    def fire_transfer_error(
        self,
        resource: Resource,
        exception: BaseException,
        request_type: RequestType,
        local_file: Optional[Path] = None,
    ) -> None:
        self.fire_transfer_event(
            resource, EventType.ERROR, request_type, local_file, exception
        )

    def fire_session_debug(self, message: str) -> None:
        logger.debug(message)
        self._dispatch("debug", message)
