# Sample lockhinter configuration file.
# Copy to ~/.config/lockhinter/config.py (or /etc/lockhinter/config.py
# for all users).

# The configuration file should define a function, config, which
# receives the settings object and may change it.  Command-line
# arguments take precedence over anything set here.

import os

def config(settings):
	# The locker to run when lockhinter is invoked without one, e.g.
	# from a key binding or an idle daemon:
	#
	#   swayidle timeout 300 lockhinter
	#
	# swaylock must not daemonize (no -f), or lockhinter would see it
	# exit right away and release the hint while the screen is still
	# locked.
	settings.locker = [
		'swaylock',
		'--show-failed-attempts',
		'--image', os.path.expanduser('~/data/images/wallpaper/blurred.png'),
	]

	# Run the locker even if the session is already marked as locked,
	# e.g. because a previous locker crashed and left the hint set.
	# settings.force = True

	# Give up on each D-Bus call after this many seconds, instead of
	# the library default.
	# settings.call_timeout = 10
