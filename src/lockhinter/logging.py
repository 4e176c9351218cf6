# lockhinter.logging - logging implementation

import logging
import os

# Severity levels specific to lockhinter.
# SECURITY marks the places where the hint is deliberately left
# asserted (or a locker is left running without supervision).
TRACE = logging.DEBUG - 5
SECURITY = logging.ERROR - 5

logging.addLevelName(TRACE, 'TRACE')
logging.addLevelName(SECURITY, 'SECURITY')

# Define a class which implements the severity levels as methods
class Logger(logging.getLoggerClass()):
	def trace(self, *args, **kwargs):
		self.log(TRACE, *args, **kwargs)

	def security(self, *args, **kwargs):
		self.log(SECURITY, *args, **kwargs)

logging.setLoggerClass(Logger)

LEVELS = [
	logging.CRITICAL,
	logging.ERROR,
	SECURITY,
	logging.WARNING,
	logging.INFO,
	logging.DEBUG,
	TRACE,
]

# Map LOCKHINTER_VERBOSE (an offset from INFO) to a level, clamping
# out-of-range values instead of failing before logging is even set up.
def get_level(verbose):
	try:
		offset = int(verbose)
	except ValueError:
		offset = 0
	index = max(0, min(len(LEVELS) - 1, 4 + offset))
	return LEVELS[index]

logging.basicConfig(
	format=os.getenv('LOCKHINTER_LOG_FORMAT', '%(name)s: %(message)s'),
	level=get_level(os.getenv('LOCKHINTER_VERBOSE', '0')),
)
log = logging.getLogger('lockhinter')
