"""
Tests for the logind calls, against a fake bus connection.
"""

import pytest

dbus = pytest.importorskip("dbus")

import lockhinter
import lockhinter.logind
from tests.conftest import OWNER, SESSION_PATH


class FakeConnection:
    """Records call_blocking invocations and returns canned replies."""

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def call_blocking(self, bus_name, object_path, dbus_interface, method, signature, args, timeout=-1.0):
        self.calls.append((bus_name, object_path, dbus_interface, method, signature, list(args), timeout))
        if self.error is not None:
            raise self.error
        return self.reply


def session_properties(**overrides):
    properties = {
        "State": dbus.String("active"),
        "LockedHint": dbus.Boolean(False),
        "Id": dbus.String("31"),
    }
    properties.update(overrides)
    return dbus.Dictionary({k: v for k, v in properties.items() if v is not None}, signature="sv")


class TestGetSessionPath:
    def test_returns_object_path(self):
        connection = FakeConnection(dbus.ObjectPath(SESSION_PATH))

        path = lockhinter.logind.get_session_path(connection, OWNER, 1234)

        assert path == SESSION_PATH
        bus_name, object_path, interface, method, signature, args, _timeout = connection.calls[0]
        assert bus_name == OWNER
        assert object_path == "/org/freedesktop/login1"
        assert interface == "org.freedesktop.login1.Manager"
        assert method == "GetSessionByPID"
        assert signature == "u"
        assert args == [1234]

    def test_uses_configured_timeout(self, monkeypatch):
        monkeypatch.setattr(lockhinter.config.settings, "call_timeout", 5.0)
        connection = FakeConnection(dbus.ObjectPath(SESSION_PATH))

        lockhinter.logind.get_session_path(connection, OWNER, 1234)

        assert connection.calls[0][-1] == 5.0

    def test_wrong_type(self):
        connection = FakeConnection(dbus.UInt32(7))

        with pytest.raises(lockhinter.ShapeError):
            lockhinter.logind.get_session_path(connection, OWNER, 1234)

    def test_transport_error(self):
        error = dbus.exceptions.DBusException(
            "PID 1234 does not belong to any known session",
            name="org.freedesktop.login1.NoSessionForPID",
        )
        connection = FakeConnection(error=error)

        with pytest.raises(lockhinter.TransportError) as excinfo:
            lockhinter.logind.get_session_path(connection, OWNER, 1234)

        assert "org.freedesktop.login1.NoSessionForPID" in str(excinfo.value)
        assert excinfo.value.__cause__ is error


class TestGetSessionState:
    def test_reads_state_and_hint(self):
        connection = FakeConnection(session_properties(LockedHint=dbus.Boolean(True)))

        state = lockhinter.logind.get_session_state(connection, OWNER, SESSION_PATH)

        assert state == lockhinter.SessionState("active", True)
        assert state.locked_hint is True
        _, object_path, interface, method, signature, args, _ = connection.calls[0]
        assert object_path == SESSION_PATH
        assert interface == "org.freedesktop.DBus.Properties"
        assert method == "GetAll"
        assert signature == "s"
        assert args == ["org.freedesktop.login1.Session"]

    def test_hint_false(self):
        connection = FakeConnection(session_properties())

        state = lockhinter.logind.get_session_state(connection, OWNER, SESSION_PATH)

        assert state.locked_hint is False

    @pytest.mark.parametrize("key", ["State", "LockedHint"])
    def test_missing_key(self, key):
        connection = FakeConnection(session_properties(**{key: None}))

        with pytest.raises(lockhinter.MissingFieldError) as excinfo:
            lockhinter.logind.get_session_state(connection, OWNER, SESSION_PATH)

        assert excinfo.value.key == key
        assert key in str(excinfo.value)

    def test_not_a_dictionary(self):
        connection = FakeConnection(dbus.String("active"))

        with pytest.raises(lockhinter.ShapeError):
            lockhinter.logind.get_session_state(connection, OWNER, SESSION_PATH)

    def test_hint_wrong_type(self):
        connection = FakeConnection(session_properties(LockedHint=dbus.String("yes")))

        with pytest.raises(lockhinter.ShapeError):
            lockhinter.logind.get_session_state(connection, OWNER, SESSION_PATH)

    def test_state_wrong_type(self):
        connection = FakeConnection(session_properties(State=dbus.UInt32(1)))

        with pytest.raises(lockhinter.ShapeError):
            lockhinter.logind.get_session_state(connection, OWNER, SESSION_PATH)


class TestSetLockedHint:
    @pytest.mark.parametrize("value", [True, False])
    def test_calls_session(self, value):
        connection = FakeConnection(None)

        lockhinter.logind.set_locked_hint(connection, OWNER, SESSION_PATH, value)

        bus_name, object_path, interface, method, signature, args, _ = connection.calls[0]
        assert bus_name == OWNER
        assert object_path == SESSION_PATH
        assert interface == "org.freedesktop.login1.Session"
        assert method == "SetLockedHint"
        assert signature == "b"
        assert args == [value]

    def test_permission_error_is_surfaced(self):
        connection = FakeConnection(
            error=dbus.exceptions.DBusException(
                "Permission denied", name="org.freedesktop.DBus.Error.AccessDenied"
            )
        )

        with pytest.raises(lockhinter.TransportError) as excinfo:
            lockhinter.logind.set_locked_hint(connection, OWNER, SESSION_PATH, True)

        assert "AccessDenied" in str(excinfo.value)
