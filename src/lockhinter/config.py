# lockhinter.config - loads and validates the user's configuration

import importlib.util
import os
import sys

import lockhinter
from lockhinter.logging import log

BUS_TYPES = ('system', 'session')

class Settings:
	def __init__(self):
		self.reset()

	def reset(self):
		# Which bus to watch for logind.  'session' is only useful
		# for testing against a mock logind service.
		self.bus = os.getenv('LOCKHINTER_BUS', 'system')

		# Well-known bus name of the logind service.
		self.service = os.getenv('LOCKHINTER_SERVICE', 'org.freedesktop.login1')

		# Timeout of each D-Bus call, in seconds.  A negative value
		# selects the library default.
		self.call_timeout = os.getenv('LOCKHINTER_CALL_TIMEOUT', '-1')

		# Locker command line (a list of strings) to use when none is
		# given on the command line.
		self.locker = None

		# Same as --force.
		self.force = False

	# Check and normalize the settings, after the environment and the
	# configuration file had their say.
	def validate(self):
		if self.bus not in BUS_TYPES:
			raise lockhinter.ConfigError('Invalid bus %r - must be one of %r' % (self.bus, BUS_TYPES))

		if not isinstance(self.service, str) or not self.service:
			raise lockhinter.ConfigError('Invalid service name %r' % (self.service,))

		try:
			self.call_timeout = float(self.call_timeout)
		except (TypeError, ValueError) as e:
			raise lockhinter.ConfigError('Invalid call timeout %r' % (self.call_timeout,)) from e

		if self.locker is not None:
			if isinstance(self.locker, str) or \
			   not self.locker or \
			   not all(isinstance(arg, str) for arg in self.locker):
				raise lockhinter.ConfigError('Invalid locker %r - must be a non-empty list of strings' % (self.locker,))
			self.locker = list(self.locker)

		self.force = bool(self.force)

	def __str__(self):
		return 'bus: %s, service: %s, call timeout: %s, locker: %r, force: %s' % (
			self.bus,
			self.service,
			self.call_timeout,
			self.locker,
			self.force,
		)


settings = Settings()

# The user config module, if any.
module = None

def get_config_files():
	config_dirs = os.getenv('XDG_CONFIG_DIRS', '/etc').split(':')
	config_dirs = [os.getenv('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))] + config_dirs
	return [d + '/lockhinter/config.py' for d in config_dirs if d]

# (Re-)Load the configuration file, and apply it on top of the
# environment defaults.
def load():
	global module

	settings.reset()
	module = None

	for config_file in get_config_files():
		if os.path.exists(config_file):
			log.debug('Loading configuration from %r.', config_file)

			# https://docs.python.org/3/library/importlib.html#importing-a-source-file-directly
			module_name = 'lockhinter_user_config'
			spec = importlib.util.spec_from_file_location(module_name, config_file)
			module = importlib.util.module_from_spec(spec)
			sys.modules[module_name] = module
			try:
				spec.loader.exec_module(module)
				if hasattr(module, 'config'):
					module.config(settings)
			except Exception as e:
				raise lockhinter.ConfigError('Error in configuration file %r: %s' % (config_file, e)) from e
			break

	settings.validate()
	log.debug('Settings: %s', settings)
