"""Palaver's configuration module.

The :class:`~palaver.config.Config` object provides an interface to access
the bot's configuration file. It exposes the configuration's sections through
its attributes as objects, which in turn expose their directives through
*their* attributes.

For example, this is how to access ``core.nick`` on a :class:`Config` object::

    >>> from palaver import config
    >>> settings = config.Config('/palaver/config.cfg')
    >>> settings.core.nick
    'Palaver'

The configuration file being:

.. code-block:: ini

    [core]
    nick = Palaver
    host = irc.libera.chat
    use_ssl = true
    port = 6697
    channels =
        "#palaver"

Each section is declared by a subclass of
:class:`~palaver.config.types.Section`. The ``[core]`` section, declared by
:class:`~palaver.config.core_section.CoreSection`, is always there; any other
section is added with :meth:`Config.define_section`.
"""
# Copyright 2024, The Palaver Developers
#
# Licensed under the Eiffel Forum License 2.
from __future__ import annotations

import configparser
import os

from . import core_section, types


__all__ = [
    'core_section',
    'types',
    'DEFAULT_HOMEDIR',
    'ConfigurationError',
    'ConfigurationNotFound',
    'Config',
]

DEFAULT_HOMEDIR = os.path.join(os.path.expanduser('~'), '.palaver')


class ConfigurationError(Exception):
    """Exception type for configuration errors.

    :param str value: a description of the error that has occurred
    """
    def __init__(self, value):
        super().__init__(value)
        self.value = value

    def __str__(self):
        return 'ConfigurationError: %s' % self.value


class ConfigurationNotFound(ConfigurationError):
    """Exception type for use when the configuration file cannot be found.

    :param str filename: file path that could not be found
    """
    def __init__(self, filename):
        super().__init__(None)
        self.filename = filename
        """Path to the configuration file that could not be found."""

    def __str__(self):
        return 'Unable to find the configuration file %s' % self.filename


class Config:
    """The bot's configuration.

    :param str filename: the configuration file to load and use to populate
                         this ``Config`` instance
    :param bool validate: if ``True``, validate values in the ``[core]``
                          section when it is loaded (optional; ``True`` by
                          default)
    :raise ConfigurationError: when the file can't be parsed

    The configuration object will load sections from the file at
    ``filename`` during initialization. Calling :meth:`save` writes any
    runtime changes to the loaded settings back to the same file.

    Only the ``[core]`` section (see :class:`~.core_section.CoreSection`) is
    added and made available by default. Other sections must be defined by
    the code that needs them, using :meth:`define_section`.
    """
    def __init__(self, filename, validate=True):
        self.filename = filename
        """The config object's associated file."""
        basename, _ = os.path.splitext(os.path.basename(filename))
        self.basename = basename
        """The config's base filename, i.e. the filename without the extension.

        If the filename is ``libera.config.cfg``, then the ``basename`` will
        be ``libera.config``.
        """
        self.parser = configparser.RawConfigParser(allow_no_value=True)
        """The configuration parser object that does the heavy lifting."""
        try:
            self.parser.read(self.filename, encoding='utf-8')
        except configparser.Error as err:
            raise ConfigurationError(
                'Unable to parse %s: %s' % (self.filename, err))
        self.define_section('core', core_section.CoreSection,
                            validate=validate)
        self.get = self.parser.get
        """Shortcut to :meth:`parser.get <configparser.ConfigParser.get>`."""

    @property
    def homedir(self):
        """The config file's home directory: where the file is."""
        return os.path.dirname(os.path.abspath(self.filename))

    def save(self):
        """Write all changes to the config file.

        .. note::

            Saving the config file will remove any comments that might have
            existed, as Python's :mod:`configparser` ignores them when
            parsing.

        """
        with open(self.filename, 'w', encoding='utf-8') as cfgfile:
            self.parser.write(cfgfile)

    def define_section(self, name, cls_, validate=True):
        """Expose the section ``name`` as an attribute, typed by ``cls_``.

        :param str name: name of the section in the file
        :param cls\\_: subclass of :class:`~.types.Section` declaring the
                      section's options
        :param bool validate: whether to check the section's options right
                              away (optional; defaults to ``True``)
        :raise ValueError: when ``cls_`` is not a section, when ``name`` is
                           already typed by another class, or when
                           ``validate`` is true and an option is missing or
                           invalid

        Defining the same section again with the same class is allowed, and
        validates it again.
        """
        if not (isinstance(cls_, type) and issubclass(cls_, types.Section)):
            raise ValueError('%r is not a configuration section' % cls_)
        current = getattr(self, name, None)
        if current is not None and type(current) is not cls_:
            raise ValueError('Section %s is already typed by %s'
                             % (name, type(current).__name__))
        setattr(self, name, cls_(self, name, validate=validate))

    def __contains__(self, name):
        return name in self.parser.sections()
