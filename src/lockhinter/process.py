# lockhinter.process - runs the locker
# Starts the locker and waits for it to exit.  There is no timeout,
# and the locker is never killed or signalled by us.

import signal
import subprocess

import lockhinter
from lockhinter.logging import log

log = log.getChild('process')

def spawn(locker):
	log.debug('Starting locker %r with arguments %r...', locker.executable, locker.args)
	try:
		process = subprocess.Popen([locker.executable, *locker.args])
	except OSError as e:
		raise lockhinter.ChildSpawnError('cannot run %r: %s' % (locker.executable, e)) from e
	log.debug('Started locker (PID %d).', process.pid)
	return process

def wait(process):
	try:
		returncode = process.wait()
	except OSError as e:
		raise lockhinter.ChildWaitError('cannot wait for PID %d: %s' % (process.pid, e)) from e

	# Popen reports death by signal N as -N.
	if returncode < 0:
		log.debug('Locker (PID %d) was killed by signal %s.', process.pid, signal.strsignal(-returncode))
		return lockhinter.ExitOutcome(None, True)

	log.debug('Locker (PID %d) exited with status %d.', process.pid, returncode)
	return lockhinter.ExitOutcome(returncode, False)
