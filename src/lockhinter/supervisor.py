# lockhinter.supervisor - the worker's state machine
# Waits for logind, reads the session's LockedHint, runs the locker,
# and sets / clears the hint around it.
#
# The hint may only end up cleared if we set it and the locker exited
# cleanly.  Every failure path therefore either leaves the hint alone
# (before it was set) or leaves it set (after), never clears it.

import enum
import os
import threading

import lockhinter
from lockhinter.logging import log

log = log.getChild('supervisor')

class State(enum.Enum):
	WAIT_FOR_SERVICE = 'wait for service'
	RESOLVE_SESSION = 'resolve session'
	READ_STATE = 'read state'
	DECIDE = 'decide'
	SPAWN_CHILD = 'spawn child'
	ASSERT_HINT = 'assert hint'
	AWAIT_CHILD = 'await child'
	COMMIT_OR_SKIP = 'commit or skip'
	DONE = 'done'
	FAILED = 'failed'

REFUSAL_MESSAGE = 'This session already has LockedHint set.'

class Supervisor:
	'''Runs the whole lock sequence on the calling (worker) thread.

	Collaborators are passed in, so that the sequence can be driven
	without a bus or real processes:

	- events: a queue of lockhinter.BusConnection; exactly one is read.
	- session: provides get_session_path, get_session_state and
	  set_locked_hint (see lockhinter.logind).
	- driver: provides spawn and wait (see lockhinter.process).
	- stop: called exactly once, when a terminal state is reached.
	'''

	def __init__(self, events, session, driver, stop, check=False, force=False, locker=None):
		self.events = events
		self.session = session
		self.driver = driver
		self.stop = stop
		self.check = check
		self.force = force
		self.locker = locker

		self.state = None
		self.result = None

		# Popen of the locker, once started.
		self.process = None

		# Set by interrupt() if we were told to give up before the
		# locker was started.  Guarded by lock, together with process.
		self.interrupted = False
		self.lock = threading.Lock()

	def enter(self, state):
		log.trace('State: %s -> %s', self.state and self.state.value, state.value)
		self.state = state

	def fail(self, fmt, *args):
		log.error(fmt, *args)
		self.enter(State.FAILED)
		return lockhinter.RunResult(1, None)

	# Thread entry point.  Never raises.
	def run(self):
		try:
			self.result = self.run_states()
		except Exception:
			# A bug; still report failure and let the main loop exit.
			log.exception('Unexpected error in state %s:', self.state and self.state.value)
			self.enter(State.FAILED)
			self.result = lockhinter.RunResult(1, None)
		finally:
			self.stop()
		log.debug('Finished (%s), exit status %d.', self.state.value, self.result.status)
		return self.result

	# Called from the main thread when we receive a signal.  Returns
	# True if the locker has not been started (and now never will be),
	# False if it is already running.
	def interrupt(self):
		with self.lock:
			if self.process is not None:
				return False
			self.interrupted = True
			return True

	def run_states(self):
		self.enter(State.WAIT_FOR_SERVICE)
		bus = self.events.get()
		if bus.connection is None:
			return self.fail('Unable to get a D-Bus connection')
		if not bus.owner:
			return self.fail('No bus owner provided!')
		connection, owner = bus.connection, bus.owner

		self.enter(State.RESOLVE_SESSION)
		try:
			session_path = self.session.get_session_path(connection, owner, os.getpid())
		except lockhinter.LockHinterError as e:
			return self.fail('Unable to get session object path: %s', e)

		self.enter(State.READ_STATE)
		try:
			session_state = self.session.get_session_state(connection, owner, session_path)
		except lockhinter.LockHinterError as e:
			return self.fail('Unable to get session state: %s', e)

		if self.check:
			self.enter(State.DONE)
			if session_state.locked_hint:
				return lockhinter.RunResult(lockhinter.CHECK_LOCKED, 'TRUE')
			return lockhinter.RunResult(lockhinter.CHECK_UNLOCKED, 'FALSE')

		self.enter(State.DECIDE)
		if session_state.locked_hint:
			if not self.force:
				log.debug('Refusing to run: LockedHint is already set.')
				self.enter(State.DONE)
				return lockhinter.RunResult(1, REFUSAL_MESSAGE)
			log.info('LockedHint is already set; continuing anyway (forced).')

		if self.locker is None:
			return self.fail('No locker program provided!')

		self.enter(State.SPAWN_CHILD)
		with self.lock:
			if self.interrupted:
				return self.fail('Interrupted before starting the locker.')
			try:
				self.process = self.driver.spawn(self.locker)
			except lockhinter.ChildSpawnError as e:
				return self.fail('Unable to start command: %s', e)

		self.enter(State.ASSERT_HINT)
		try:
			self.session.set_locked_hint(connection, owner, session_path, True)
		except lockhinter.LockHinterError as e:
			log.security('The locker is running, but will not be supervised.')
			return self.fail('Unable to set LockedHint: %s', e)
		log.info('Set LockedHint on %s.', session_path)

		self.enter(State.AWAIT_CHILD)
		try:
			outcome = self.driver.wait(self.process)
		except lockhinter.ChildWaitError as e:
			log.security('Leaving LockedHint set: the locker\'s fate is unknown.')
			return self.fail('Unable to get return code for the locker: %s', e)

		self.enter(State.COMMIT_OR_SKIP)
		if outcome.is_clean():
			try:
				self.session.set_locked_hint(connection, owner, session_path, False)
			except lockhinter.LockHinterError as e:
				return self.fail('Unable to clear LockedHint: %s', e)
			log.info('Locker exited cleanly; cleared LockedHint on %s.', session_path)
		elif outcome.signaled:
			log.security('Locker was killed by a signal; leaving LockedHint set.')
		else:
			log.security('Locker exited with status %d; leaving LockedHint set.', outcome.code)

		# Our own exit status reports on the supervision, not on the
		# locker's exit status.
		self.enter(State.DONE)
		return lockhinter.RunResult(0, None)
