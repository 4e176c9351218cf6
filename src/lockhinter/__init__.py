# lockhinter - core definitions and command-line entry point
# Runs a screen locker and holds the systemd-logind LockedHint of the
# current session for as long as the locker runs.  The hint is only
# released when the locker exits cleanly, so that crashing or killing
# the locker never makes the session look unlocked.

import collections
import getopt
import signal
import sys
import threading

# -----------------------------------------------------------------------------
# Data

# A connection to the bus on which the logind service appeared, and the
# unique name of the service's owner.  Both are None when the service
# vanished (or could not be found at all).
BusConnection = collections.namedtuple('BusConnection', ['connection', 'owner'])

# A snapshot of the session's properties.
SessionState = collections.namedtuple('SessionState', ['state', 'locked_hint'])

# The locker program to run, and its arguments.
LockerSpec = collections.namedtuple('LockerSpec', ['executable', 'args'])

# How the locker terminated.  code is None if it was killed by a signal.
class ExitOutcome(collections.namedtuple('ExitOutcome', ['code', 'signaled'])):
	__slots__ = ()

	# Only a clean exit allows releasing the hint.
	def is_clean(self):
		return self.code == 0 and not self.signaled

# The final outcome of a run: our own exit status, and an optional line
# for standard output.
RunResult = collections.namedtuple('RunResult', ['status', 'output'])

# Exit statuses of check mode.  These are part of the command-line
# contract: scripts may test the hint with `lockhinter --check`.
CHECK_UNLOCKED = 0
CHECK_LOCKED = 1

# -----------------------------------------------------------------------------
# Exceptions

# Represents an expected failure mode, which is unlikely to be due to
# a bug in lockhinter.  In this case, we do not need to print an
# exception stack trace; just print the error message and quit.
class LockHinterError(Exception):
	pass

# Bad command line.
class UsageError(LockHinterError):
	pass

# Bad configuration file or environment.
class ConfigError(LockHinterError):
	pass

# The bus connection could not be used, or a call was rejected.
class TransportError(LockHinterError):
	pass

# A reply did not have the expected type.
class ShapeError(LockHinterError):
	pass

# A property dictionary lacked an expected key.
class MissingFieldError(LockHinterError):
	def __init__(self, key):
		super().__init__('value with key %s is missing from a dictionary' % (key,))
		self.key = key

class ChildSpawnError(LockHinterError):
	pass

class ChildWaitError(LockHinterError):
	pass

# -----------------------------------------------------------------------------
# Import lockhinter modules
# Placed after the declarations above, so that they can be used by the
# imported modules.  The D-Bus modules are imported on demand in run().

import lockhinter.config
import lockhinter.process
import lockhinter.supervisor
from lockhinter.logging import log

# -----------------------------------------------------------------------------
# Command line

Options = collections.namedtuple('Options', ['check', 'force', 'help', 'free'])

def usage(program='lockhinter'):
	return '''\
Usage: %s [options] [--] program [args...]

Runs program (a screen locker), setting the LockedHint property of the
current logind session while it runs.  The hint is cleared only if the
locker exits with status 0.

Options:
  -c, --check  do not run any locker, simply check whether LockedHint is set
               and output TRUE (exit status 1) or FALSE (exit status 0)
  -f, --force  do not exit if LockedHint is already set, clear upon exit
  -h, --help   show usage

Signals sent to lockhinter are not forwarded to the locker.  Once the
locker is running, SIGINT, SIGTERM and SIGHUP are ignored, so `kill` alone
will not end lockhinter; end the locker instead.
''' % (program,)

def parse_args(argv):
	# Options end at the first free argument, so that the locker's
	# own options are passed to it unmodified.
	try:
		opts, free = getopt.getopt(argv, 'cfh', ['check', 'force', 'help'])
	except getopt.GetoptError as e:
		raise UsageError(str(e)) from e

	flags = {opt for opt, _value in opts}
	return Options(
		check='-c' in flags or '--check' in flags,
		force='-f' in flags or '--force' in flags,
		help='-h' in flags or '--help' in flags,
		free=free,
	)

# Work out which locker to run.  Returns None in check mode.
def get_locker(options, settings):
	if options.check:
		if options.free:
			log.debug('Ignoring locker command line in check mode: %r', options.free)
		return None

	if options.free:
		return LockerSpec(options.free[0], tuple(options.free[1:]))

	if settings.locker:
		log.debug('Using configured locker: %r', settings.locker)
		return LockerSpec(settings.locker[0], tuple(settings.locker[1:]))

	raise UsageError('no locker program specified')

# -----------------------------------------------------------------------------
# Running

def run(check, force, locker, settings):
	import lockhinter.bus
	import lockhinter.logind

	dispatcher = lockhinter.bus.Dispatcher()
	watcher = lockhinter.bus.ServiceWatcher(settings.bus, settings.service)
	supervisor = lockhinter.supervisor.Supervisor(
		events=watcher.events,
		session=lockhinter.logind,
		driver=lockhinter.process,
		stop=dispatcher.stop,
		check=check,
		force=force,
		locker=locker,
	)

	# Signals are not forwarded to the locker.  Until it is started,
	# they abort the run; afterwards, the locker's exit decides.
	def interrupt(signalnum, _frame):
		if supervisor.interrupt():
			log.warning('Got signal %r before the locker was started - giving up.',
						signal.strsignal(signalnum))
			watcher.interrupt()
		else:
			log.warning('Got signal %r - not forwarded, still waiting for the locker to exit.',
						signal.strsignal(signalnum))

	previous_handlers = {}
	for signalnum in (signal.SIGINT, signal.SIGTERM, signal.SIGHUP):
		previous_handlers[signalnum] = signal.signal(signalnum, interrupt)

	try:
		watcher.start()
		worker = threading.Thread(target=supervisor.run, name='lockhinter-worker')
		worker.start()

		# Pump bus events until the worker reaches a terminal state.
		dispatcher.run()

		worker.join()
		watcher.stop()
	finally:
		for signalnum, handler in previous_handlers.items():
			signal.signal(signalnum, handler)
	return supervisor.result

# -----------------------------------------------------------------------------
# Entry point

def main(argv=None):
	if argv is None:
		argv = sys.argv[1:]

	try:
		options = parse_args(argv)
		if options.help:
			sys.stdout.write(usage())
			return 0

		lockhinter.config.load()
		settings = lockhinter.config.settings
		locker = get_locker(options, settings)
	except UsageError as e:
		log.critical('Usage error: %s', e)
		sys.stderr.write(usage())
		return 1
	except LockHinterError as e:
		log.critical('Fatal error: %s', e)
		return 1

	result = run(options.check, options.force or settings.force, locker, settings)
	if result.output is not None:
		sys.stdout.write(result.output + '\n')
		sys.stdout.flush()
	return result.status
