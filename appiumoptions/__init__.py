"""Capability options for Appium driver sessions.

Most users will use :py:class:`options.AppiumOptions` to build the
capabilities sent when creating a session, and :py:mod:`envconfig` to load
options from a TOML file and the environment.
"""

__version__ = "0.1.0"
