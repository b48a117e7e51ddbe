"""The ``[core]`` section: identity, server, and logging of the bot."""
# Copyright 2024, The Palaver Developers
#
# Licensed under the Eiffel Forum License 2.
from __future__ import annotations

from palaver.config.types import (
    FlagOption,
    ListOption,
    Option,
    REQUIRED,
    Section,
)


COMMAND_DEFAULT_PREFIX = '!'
"""Default prefix used for commands."""
DEFAULT_USERNAME = 'palaver'
"""Default username sent in the ``USER`` command."""
DEFAULT_REALNAME = 'Palaver IRC Bot'
"""Default real name sent in the ``USER`` command."""
DEFAULT_RECONNECT_DELAY = 1.0
"""Default delay, in seconds, before reconnecting after a lost connection."""
LOGGING_LEVELS = ['CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG']


def _parse_port(value):
    port = int(value)
    if not 0 < port < 65536:
        raise ValueError('Port must be between 1 and 65535, not %d' % port)
    return port


def _parse_delay(value):
    delay = float(value)
    if delay < 0:
        raise ValueError('Delay cannot be negative.')
    return delay


def _parse_logging_level(value):
    level = value.strip().upper()
    if level not in LOGGING_LEVELS:
        raise ValueError(
            'Logging level must be one of %s' % ', '.join(LOGGING_LEVELS))
    return level


class CoreSection(Section):
    """The config section used for configuring the bot itself.

    .. important::

        All **Required** values must be specified, or the bot will fail to
        start.

    """

    nick = Option('nick', default=REQUIRED)
    """The nickname of the bot.

    **Required.** It is sent in the ``NICK`` command, and the bot uses it to
    recognize messages sent to it privately.
    """

    host = Option('host', default='irc.libera.chat')
    """The IRC server to connect to.

    :default: ``irc.libera.chat``
    """

    port = Option('port', _parse_port, default=6667)
    """The port to connect on.

    :default: ``6667``, or ``6697`` is commonly used with ``use_ssl``
    """

    use_ssl = FlagOption('use_ssl', default=False)
    """Whether to upgrade the connection to TLS once connected."""

    verify_ssl = FlagOption('verify_ssl', default=True)
    """Whether to check the server's certificate and hostname.

    Ignored unless :attr:`use_ssl` is ``True``.
    """

    ca_certs = Option('ca_certs')
    """Path to a bundle of CA certificates to trust.

    The system's default CA store is used when this is not set.
    """

    server_password = Option('server_password')
    """The password sent to the server in a ``PASS`` command, if any."""

    user = Option('user', default=DEFAULT_USERNAME)
    """The "user" for the bot, sent in the ``USER`` command.

    :default: ``palaver``
    """

    name = Option('name', default=DEFAULT_REALNAME)
    """The "real name" of the bot, sent in the ``USER`` command.

    :default: ``Palaver IRC Bot``
    """

    channels = ListOption('channels')
    """List of channels for the bot to join once connected.

    The channels are joined in order. Each channel must be quoted, or the
    config parser would read it as a comment:

    .. code-block:: ini

        [core]
        channels =
            "#palaver"
            "#python"

    """

    prefix = Option('prefix', default=COMMAND_DEFAULT_PREFIX)
    """The prefix marking a channel message as a command.

    :default: ``!``

    This is a plain string, not a regular expression. Private messages are
    always read as commands, with or without the prefix.
    """

    reconnect_delay = Option(
        'reconnect_delay', _parse_delay, default=DEFAULT_RECONNECT_DELAY)
    """Delay in seconds before reconnecting after the connection is lost.

    :default: ``1.0``
    """

    logdir = Option('logdir')
    """Directory in which to place log files.

    No log file is written unless it is set. If the given value is not an
    absolute path, it will be interpreted relative to the directory
    containing the config file.
    """

    logging_level = Option(
        'logging_level', _parse_logging_level, default='INFO')
    """The lowest severity of logs to display.

    :default: ``INFO``, which shows every line sent and received
    """

    logging_format = Option(
        'logging_format',
        default='[%(asctime)s] %(name)-20s %(levelname)-8s - %(message)s')
    """The logging format string to use for logs.

    :default: ``[%(asctime)s] %(name)-20s %(levelname)-8s - %(message)s``
    """

    logging_datefmt = Option('logging_datefmt')
    """The format string to use for timestamps in logs.

    If not set, the ``datefmt`` argument is not provided, and :mod:`logging`
    will use the Python default.
    """
