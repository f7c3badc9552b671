"""Pytest configuration and fixtures."""

import logging
import sys
from pathlib import Path
from typing import List

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from wagon.events import TransferEvent  # noqa: E402


class RecordingListener:
    """Transfer listener that records every callback it receives."""

    def __init__(self) -> None:
        self.events: List[TransferEvent] = []
        self.messages: List[str] = []

    def transfer_initiated(self, event: TransferEvent) -> None:
        self.events.append(event)

    def transfer_started(self, event: TransferEvent) -> None:
        self.events.append(event)

    def transfer_completed(self, event: TransferEvent) -> None:
        self.events.append(event)

    def transfer_error(self, event: TransferEvent) -> None:
        self.events.append(event)

    def debug(self, message: str) -> None:
        self.messages.append(message)

    @property
    def kinds(self) -> List[str]:
        """``request/event`` pairs in firing order, e.g. ``get/started``."""
        return [
            f"{event.request_type.value}/{event.event_type.value}"
            for event in self.events
        ]


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mock AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def artifact(tmp_path):
    """A small local file to upload."""
    path = tmp_path / "upload" / "app-1.0.json"
    path.parent.mkdir(parents=True)
    path.write_text('{"name": "app", "version": "1.0"}', encoding="utf-8")
    return path


@pytest.fixture
def reset_logging():
    """Restore the root logger after a test configures logging."""
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
