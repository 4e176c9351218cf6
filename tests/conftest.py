"""
Pytest configuration and shared fixtures for lockhinter tests.

The supervisor is driven with in-memory stand-ins for logind, the bus
watcher and the process driver, so that the lock sequence can be tested
without a system bus or a real locker.
"""

import queue
import sys
from pathlib import Path

import pytest

# Add the source tree to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

import lockhinter


SESSION_PATH = "/org/freedesktop/login1/session/_31"
OWNER = ":1.7"


class FakeLogind:
    """Stands in for lockhinter.logind, recording every call."""

    def __init__(self, locked_hint=False, state="active"):
        self.locked_hint = locked_hint
        self.state = state
        self.calls = []
        self.transitions = []
        self.fail_on = {}

    def _maybe_fail(self, name, *args):
        error = self.fail_on.get((name, *args)) or self.fail_on.get(name)
        if error is not None:
            raise error

    def get_session_path(self, connection, owner, pid):
        self.calls.append(("get_session_path", owner, pid))
        self._maybe_fail("get_session_path")
        return SESSION_PATH

    def get_session_state(self, connection, owner, session_path):
        self.calls.append(("get_session_state", owner, session_path))
        self._maybe_fail("get_session_state")
        return lockhinter.SessionState(self.state, self.locked_hint)

    def set_locked_hint(self, connection, owner, session_path, value):
        self.calls.append(("set_locked_hint", owner, session_path, value))
        self._maybe_fail("set_locked_hint", value)
        self.transitions.append(value)
        self.locked_hint = value


class FakeProcess:
    pid = 4242


class FakeDriver:
    """Stands in for lockhinter.process."""

    def __init__(self, outcome=None):
        self.outcome = outcome or lockhinter.ExitOutcome(0, False)
        self.spawned = []
        self.waited = []
        self.spawn_error = None
        self.wait_error = None

    def spawn(self, locker):
        if self.spawn_error is not None:
            raise self.spawn_error
        self.spawned.append(locker)
        return FakeProcess()

    def wait(self, process):
        self.waited.append(process)
        if self.wait_error is not None:
            raise self.wait_error
        return self.outcome


class StopCounter:
    def __init__(self):
        self.count = 0

    def __call__(self):
        self.count += 1


@pytest.fixture
def logind():
    return FakeLogind()


@pytest.fixture
def driver():
    return FakeDriver()


@pytest.fixture
def stop():
    return StopCounter()


@pytest.fixture
def events():
    """A channel already holding one 'service appeared' event."""
    q = queue.Queue()
    q.put(lockhinter.BusConnection(object(), OWNER))
    return q


@pytest.fixture
def locker():
    return lockhinter.LockerSpec("swaylock", ("-f", "-c", "000000"))


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Isolate configuration lookup from the real environment."""
    for name in (
        "LOCKHINTER_BUS",
        "LOCKHINTER_SERVICE",
        "LOCKHINTER_CALL_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "home-config"))
    monkeypatch.setenv("XDG_CONFIG_DIRS", str(tmp_path / "etc"))
    return tmp_path
