"""Shared fixtures for the editor bridge test suite."""

import shutil
import sys
import tempfile
from pathlib import Path

import pytest

# Ensure the project root is on sys.path so 'bridge' package resolves
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


class RecordingHost:
    """A fake host that records every call the bridge makes on it."""

    def __init__(self, cwd: str = "/home/user/project"):
        self.cwd = cwd
        self.notifications: list[tuple[str, str]] = []
        self.status: dict[str, str] = {}
        self.context_messages: list[str] = []
        self.follow_ups: list[str] = []

    def notify(self, message, level):
        self.notifications.append((message, level))

    def set_status(self, key, text):
        self.status[key] = text

    def inject_context_message(self, content):
        self.context_messages.append(content)

    def inject_follow_up(self, content):
        self.follow_ups.append(content)

    def current_working_directory(self):
        return self.cwd

    @property
    def injected(self) -> list[str]:
        return self.context_messages + self.follow_ups


@pytest.fixture
def host():
    return RecordingHost()


@pytest.fixture
def socket_dir():
    """A short-lived directory for sockets.

    pytest's tmp_path can exceed the ~104 byte AF_UNIX path limit, so
    sockets live in a short directory under /tmp instead.
    """
    path = tempfile.mkdtemp(prefix="pb-", dir="/tmp")
    yield path
    shutil.rmtree(path, ignore_errors=True)
