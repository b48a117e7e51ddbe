"""Typed options for the sections of a configuration file.

A section is declared as a subclass of :class:`Section`, with one
:class:`Option` (or one of its subclasses) per setting::

    class ServerSection(Section):
        host = Option('host', default='irc.libera.chat')
        port = Option('port', int, default=6667)
        use_ssl = FlagOption('use_ssl')
        channels = ListOption('channels')

Reading an option converts its text into a value; assigning a value stores
its text in the parser (``None`` removes the option from the file); and
:meth:`Config.save() <palaver.config.Config.save>` writes it all back.

The environment has the last word: the ``port`` option of the ``[server]``
section is read from ``PALAVER_SERVER_PORT`` whenever that variable is set.
"""
# Copyright 2024, The Palaver Developers
#
# Licensed under the Eiffel Forum License 2.
from __future__ import annotations

import os
from typing import Any, Callable, Optional


__all__ = [
    'REQUIRED',
    'Section',
    'Option',
    'FlagOption',
    'ListOption',
]

ENV_PREFIX = 'PALAVER'

REQUIRED = object()
"""Default of an option that has to be set, in the file or the environment."""


class Section:
    """A section of the configuration, with typed options.

    :param config: the configuration holding the section
    :param name: name of the section in the file
    :param validate: whether to read every option right away
    :raise ValueError: when ``validate`` is true and an option is missing or
                       invalid

    The section is added to the parser if the file doesn't have it yet.
    """
    def __init__(self, config, name: str, validate: bool = True):
        self._parser = config.parser
        self._name = name
        if not self._parser.has_section(name):
            self._parser.add_section(name)
        if validate:
            self.validate()

    @classmethod
    def options(cls) -> dict[str, Option]:
        """Get the options of the section, by attribute name."""
        options = {}
        for klass in reversed(cls.__mro__):
            for attr, value in vars(klass).items():
                if isinstance(value, Option):
                    options[attr] = value
        return options

    def validate(self) -> None:
        """Read each option once, so that errors show up early.

        :raise ValueError: when an option is missing or invalid
        """
        for attr in self.options():
            getattr(self, attr)

    def read_text(self, option: Option) -> Optional[str]:
        """Get the raw text of ``option``, or ``None`` when it isn't set."""
        env_name = option.env_name(self._name)
        if env_name in os.environ:
            return os.environ[env_name]
        if self._parser.has_option(self._name, option.name):
            return self._parser.get(self._name, option.name)
        return None


class Option:
    """A setting of a :class:`Section`, read and written as text.

    :param name: name of the option in the file
    :param convert: function turning the text into a value (optional; the
                    text is used as-is without it); it raises
                    :exc:`ValueError` for text it can't convert
    :param default: value of the option when it is not set; use
                    :data:`REQUIRED` for an option without default
    """
    def __init__(
        self,
        name: str,
        convert: Optional[Callable[[str], Any]] = None,
        default: Any = None,
    ):
        self.name = name
        self.convert = convert
        self.default = default

    def __repr__(self):
        return '<%s %s>' % (type(self).__name__, self.name)

    def env_name(self, section_name: str) -> str:
        """Name of the environment variable overriding this option."""
        return '_'.join(
            [ENV_PREFIX, section_name.upper(), self.name.upper()])

    def from_text(self, text: str) -> Any:
        if self.convert is None:
            return text
        return self.convert(text)

    def to_text(self, value: Any) -> str:
        return str(value)

    def __get__(self, section, owner=None):
        if section is None:
            return self

        text = section.read_text(self)
        if text is None:
            if self.default is REQUIRED:
                raise ValueError('Missing required value for %s.%s'
                                 % (section._name, self.name))
            return self.default

        try:
            return self.from_text(text)
        except ValueError as error:
            raise ValueError('Invalid value for %s.%s: %s'
                             % (section._name, self.name, error)) from error

    def __set__(self, section, value):
        if value is None:
            if self.default is REQUIRED:
                raise ValueError('Cannot unset required option %s.%s'
                                 % (section._name, self.name))
            section._parser.remove_option(section._name, self.name)
            return
        section._parser.set(section._name, self.name, self.to_text(value))


class FlagOption(Option):
    """An on/off setting.

    ``true``, ``yes``, ``on`` and ``1`` turn it on; ``false``, ``no``,
    ``off`` and ``0`` turn it off (in any case). Anything else is an error.
    """
    TRUE = frozenset(['true', 'yes', 'on', '1'])
    FALSE = frozenset(['false', 'no', 'off', '0'])

    def __init__(self, name: str, default: bool = False):
        super().__init__(name, default=default)

    def from_text(self, text: str) -> bool:
        flag = text.strip().lower()
        if flag in self.TRUE:
            return True
        if flag in self.FALSE:
            return False
        raise ValueError('%r is neither on nor off' % text)

    def to_text(self, value: Any) -> str:
        return 'true' if value else 'false'


class ListOption(Option):
    """A list of words, such as channel names.

    Words are separated by whitespace, usually one per line:

    .. code-block:: ini

        [core]
        channels =
            "#palaver"
            "#python"

    A word starting with ``#`` must be quoted, or the config parser would
    read the line as a comment. Quotes are removed when reading, and added
    back when writing.
    """
    def __init__(self, name: str):
        super().__init__(name, default=[])

    def __get__(self, section, owner=None):
        value = super().__get__(section, owner)
        if value is self.default:
            # never share the default between sections
            return list(value)
        return value

    def from_text(self, text: str) -> list[str]:
        words = []
        for word in text.split():
            if len(word) > 1 and word[0] == word[-1] == '"':
                word = word[1:-1]
            words.append(word)
        return words

    def to_text(self, value: Any) -> str:
        if isinstance(value, str):
            raise ValueError('%s must be a list, not a string' % self.name)
        words = [
            '"%s"' % word if word.startswith('#') else word
            for word in value
        ]
        if not words:
            return ''
        # one word per line; the first line stays empty
        return '\n' + '\n'.join(words)
