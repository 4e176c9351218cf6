# lockhinter.logind - systemd-logind session calls
# Finds the session of this process, reads its LockedHint, and sets
# or clears it.  All calls are synchronous and are made from the
# worker thread, never from the GLib main loop thread.

import dbus
import dbus.exceptions

import lockhinter
import lockhinter.config
from lockhinter.logging import log

log = log.getChild('logind')

MANAGER_PATH = '/org/freedesktop/login1'
MANAGER_INTERFACE = 'org.freedesktop.login1.Manager'
SESSION_INTERFACE = 'org.freedesktop.login1.Session'
PROPERTIES_INTERFACE = 'org.freedesktop.DBus.Properties'

def call(connection, owner, object_path, interface, method, signature, args):
	log.trace('Calling %s.%s%r on %s (%s)', interface, method, tuple(args), object_path, owner)
	try:
		return connection.call_blocking(
			owner,
			object_path,
			interface,
			method,
			signature,
			args,
			timeout=lockhinter.config.settings.call_timeout,
		)
	except dbus.exceptions.DBusException as e:
		raise lockhinter.TransportError('%s.%s failed: %s: %s' % (
			interface, method, e.get_dbus_name(), e.get_dbus_message(),
		)) from e

# Ask logind for the object path of the session that pid belongs to.
def get_session_path(connection, owner, pid):
	reply = call(connection, owner, MANAGER_PATH, MANAGER_INTERFACE,
				 'GetSessionByPID', 'u', [dbus.UInt32(pid)])

	# We expect a single object path (which is a string).
	if not isinstance(reply, str):
		raise lockhinter.ShapeError('GetSessionByPID returned %r, expected an object path' % (reply,))

	log.debug('Process %d belongs to session %s.', pid, reply)
	return str(reply)

# Read the session's state string and LockedHint flag.
def get_session_state(connection, owner, session_path):
	properties = call(connection, owner, session_path, PROPERTIES_INTERFACE,
					  'GetAll', 's', [SESSION_INTERFACE])

	if not isinstance(properties, dict):
		raise lockhinter.ShapeError('GetAll returned %r, expected a dictionary' % (properties,))

	if 'State' not in properties:
		raise lockhinter.MissingFieldError('State')
	state = properties['State']
	if not isinstance(state, str):
		raise lockhinter.ShapeError('State is %r, expected a string' % (state,))

	if 'LockedHint' not in properties:
		raise lockhinter.MissingFieldError('LockedHint')
	locked_hint = properties['LockedHint']
	# dbus.Boolean is an int subclass, not a bool one.
	if not isinstance(locked_hint, (bool, dbus.Boolean)):
		raise lockhinter.ShapeError('LockedHint is %r, expected a boolean' % (locked_hint,))

	session_state = lockhinter.SessionState(str(state), bool(locked_hint))
	log.debug('Session %s: %s', session_path, session_state)
	return session_state

def set_locked_hint(connection, owner, session_path, value):
	call(connection, owner, session_path, SESSION_INTERFACE,
		 'SetLockedHint', 'b', [dbus.Boolean(value)])
