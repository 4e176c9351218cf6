from setuptools import setup

setup(
	name='lockhinter',
	version='0.1.0',
	description='Run a screen locker while holding the logind LockedHint',
	packages=['lockhinter'],
	package_dir={'':'src'},
	python_requires='>=3.8',
	install_requires=[
		'dbus-python',
		'PyGObject',
	],
	extras_require={
		'test': [
			'pytest',
		],
	},
	entry_points={
		'console_scripts': [
			'lockhinter=lockhinter:main',
		]
	}
)
