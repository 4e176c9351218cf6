# lockhinter.bus - D-Bus service discovery and the GLib main loop
# The main loop runs in the main thread, and only dispatches bus
# callbacks.  Everything else happens in the worker thread, which
# receives the logind connection through a queue.

import queue
import threading

import dbus
import dbus.exceptions
from dbus.mainloop.glib import DBusGMainLoop
from gi.repository import GLib

import lockhinter
from lockhinter.logging import log

log = log.getChild('bus')

class Dispatcher:
	def __init__(self):
		self.mainloop = GLib.MainLoop()
		self.stopped = False
		self.lock = threading.Lock()

	# Run the main loop in the calling thread, until stop() is called.
	def run(self):
		log.debug('Starting main loop.')
		self.mainloop.run()
		log.debug('Main loop exited.')

	# Ask the main loop to exit.  Safe to call from any thread, and
	# before run(); only the first call has any effect.
	def stop(self):
		with self.lock:
			if self.stopped:
				return
			self.stopped = True
		# Note: this works (without an explicit reference to a main
		# context) because the main loop is attached to the default
		# GLib context.
		GLib.idle_add(self.mainloop.quit)


class ServiceWatcher:
	def __init__(self, bus_type, name):
		self.bus_type = bus_type
		self.name = name

		# Owner changes, in arrival order.  The worker reads one.
		self.events = queue.Queue()

		self.dbus_mainloop = None
		self.bus = None
		self.watch = None

	def start(self):
		self.dbus_mainloop = DBusGMainLoop()
		try:
			# A private connection, so that we may close it when done.
			if self.bus_type == 'session':
				self.bus = dbus.SessionBus(mainloop=self.dbus_mainloop, private=True)
			else:
				self.bus = dbus.SystemBus(mainloop=self.dbus_mainloop, private=True)
			self.watch = self.bus.watch_name_owner(self.name, self.handle_owner_changed)
		except dbus.exceptions.DBusException as e:
			log.error('Unable to connect to the %s bus: %s', self.bus_type, e)
			self.events.put(lockhinter.BusConnection(None, None))

	def stop(self):
		if self.watch is not None:
			self.watch.cancel()
			self.watch = None
		if self.bus is not None:
			self.bus.close()
			self.bus = None
		self.dbus_mainloop = None

	# Deliver an absence event, so that a worker waiting for the
	# service gives up.
	def interrupt(self):
		self.events.put(lockhinter.BusConnection(None, None))

	# Runs in the GLib main loop thread.
	# Called with the current owner once the watch is set up, then on
	# every change; an empty owner means the name has no owner.
	def handle_owner_changed(self, owner):
		if owner:
			log.debug('%s appeared: owned by %s', self.name, owner)
			self.events.put(lockhinter.BusConnection(self.bus, str(owner)))
		else:
			log.debug('%s vanished', self.name)
			self.events.put(lockhinter.BusConnection(None, None))
