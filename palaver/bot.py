""":mod:`palaver.bot` holds the :class:`Bot`, Palaver's IRC client engine.

A bot keeps one connection to an IRC server alive: it registers with the
server, joins its channels, answers the server's ``PING``, and reconnects
whenever the connection is lost. Everything else is up to the handlers
registered on it::

    from palaver.bot import Bot

    bot = Bot('Palaver', channels=['#palaver'])

    @bot.command('greet')
    def greet(message, name, args):
        message.reply('Hello, %s!' % (args[0] if args else message.sender))

    @bot.listen_for(r'\\bpython\\b')
    def python(message):
        message.reply('Did somebody say Python?')

    bot.run('irc.libera.chat', 6667)

"""
# Copyright 2024, The Palaver Developers
#
# Licensed under the Eiffel Forum License 2.
from __future__ import annotations

import asyncio
import enum
import functools
import logging
import re
from typing import Callable, Iterable, Optional, TYPE_CHECKING

from palaver import coretasks, rules
from palaver.config.core_section import (
    COMMAND_DEFAULT_PREFIX,
    DEFAULT_REALNAME,
    DEFAULT_RECONNECT_DELAY,
    DEFAULT_USERNAME,
)
from palaver.irc.backends import AsyncioBackend, UninitializedBackend
from palaver.irc.utils import LINE_TERMINATOR, LineBuffer


if TYPE_CHECKING:
    from palaver.config import Config
    from palaver.irc.abstract_backends import AbstractIRCBackend
    from palaver.message import Message


__all__ = ['Bot', 'ConnectionState']

LOGGER = logging.getLogger(__name__)


class ConnectionState(enum.Enum):
    """Where the bot is in its connection's lifecycle."""
    DISCONNECTED = 'disconnected'
    """No connection, and no attempt in progress."""
    CONNECTING = 'connecting'
    """Waiting for the connection (and its TLS handshake) to be established."""
    REGISTERED = 'registered'
    """Registration sent, waiting for the server to accept it."""
    READY = 'ready'
    """Registration accepted and channels joined."""


def _check_priority(priority: str) -> None:
    if priority not in rules.PRIORITIES:
        raise ValueError(
            'Priority must be one of %s, not %r'
            % (', '.join(rules.PRIORITIES), priority))


class Bot:
    """An IRC client engine.

    :param nick: nickname of the bot
    :param server_password: password sent in a ``PASS`` command (optional)
    :param username: username sent in the ``USER`` command
    :param realname: real name sent in the ``USER`` command
    :param channels: channels to join, in order, once registered
    :param host: IRC server to connect to
    :param port: port to connect on
    :param use_ssl: whether to upgrade the connection to TLS
    :param verify_ssl: whether to verify the server's certificate
    :param ca_certs: path to a bundle of CA certificates (optional)
    :param command_prefix: prefix marking a channel message as a command
    :param logger: logger receiving every line sent and received (optional;
                   defaults to the ``palaver.bot`` logger)
    :param reconnect_delay: delay in seconds before reconnecting after the
                            connection is lost
    :param loop: event loop to use (optional; defaults to the running loop)
    :param backend_class: class of the IRC backend to connect with (optional;
                          defaults to
                          :class:`~palaver.irc.backends.AsyncioBackend`)

    When both ``host`` and ``port`` are given, the bot starts connecting
    right away; this requires an event loop (either ``loop`` or a running
    one). Otherwise, use :meth:`connect`, or :meth:`run` which takes care of
    the event loop.
    """
    def __init__(
        self,
        nick: str,
        *,
        server_password: Optional[str] = None,
        username: str = DEFAULT_USERNAME,
        realname: str = DEFAULT_REALNAME,
        channels: Optional[Iterable[str]] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
        use_ssl: bool = False,
        verify_ssl: bool = True,
        ca_certs: Optional[str] = None,
        command_prefix: str = COMMAND_DEFAULT_PREFIX,
        logger: Optional[logging.Logger] = None,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        backend_class: Optional[type[AbstractIRCBackend]] = None,
    ):
        self._nick: str = nick
        self.server_password: Optional[str] = server_password
        self.username: str = username
        self.realname: str = realname
        self.channels: list[str] = list(channels or [])
        self.command_prefix: str = command_prefix
        self.reconnect_delay: float = reconnect_delay
        self.log: logging.Logger = logger or LOGGER
        self.settings: Optional[Config] = None
        """Configuration the bot was built from, if any."""

        # connection target
        self.host: Optional[str] = host
        self.port: Optional[int] = port
        self.use_ssl: bool = use_ssl
        self.verify_ssl: bool = verify_ssl
        self.ca_certs: Optional[str] = ca_certs

        # connection
        self._loop: Optional[asyncio.AbstractEventLoop] = loop
        self._backend_class: type[AbstractIRCBackend] = (
            backend_class or AsyncioBackend)
        self.backend: AbstractIRCBackend = UninitializedBackend(self)
        self._state: ConnectionState = ConnectionState.DISCONNECTED
        self._line_buffer: LineBuffer = LineBuffer()
        self._reconnect_timer: Optional[asyncio.TimerHandle] = None
        self._stopped: Optional[asyncio.Event] = None
        self.hasquit: bool = False
        """Whether the bot was closed on purpose (no reconnection then)."""

        # handlers
        self._line_rules: rules.Registry = rules.Registry()
        self._message_rules: rules.Registry = rules.Registry()
        self._commands: dict[str, Callable] = {}
        coretasks.setup(self)
        # derived messages only exist once every raw-line handler ran
        self._line_rules.register(
            coretasks.PRIVMSG_PREFILTER,
            coretasks.handle_privmsg,
            rules.PRIORITY_CORE_LAST,
        )

        if host and port:
            self.connect(host, port, use_ssl)

    @classmethod
    def from_config(cls, settings: Config, **kwargs) -> Bot:
        """Build a bot from its configuration ``settings``.

        :param settings: the bot's configuration
        :param kwargs: extra arguments for the constructor; they take
                       precedence over ``settings``
        :return: a bot that isn't connected yet; its :attr:`host` and
                 :attr:`port` come from ``settings``

        .. seealso::

            The :class:`~palaver.config.core_section.CoreSection` class
            documents each option.

        """
        core = settings.core
        options = {
            'server_password': core.server_password,
            'username': core.user,
            'realname': core.name,
            'channels': core.channels,
            'use_ssl': core.use_ssl,
            'verify_ssl': core.verify_ssl,
            'ca_certs': core.ca_certs,
            'command_prefix': core.prefix,
            'reconnect_delay': core.reconnect_delay,
        }
        options.update(kwargs)
        bot = cls(core.nick, **options)
        bot.host = core.host
        bot.port = core.port
        bot.settings = settings
        return bot

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    # properties

    @property
    def nick(self) -> str:
        """The bot's nickname."""
        return self._nick

    @property
    def state(self) -> ConnectionState:
        """The bot's :class:`ConnectionState`."""
        return self._state

    @property
    def ready(self) -> bool:
        """Whether the bot is registered and has joined its channels.

        This is ``False`` again as soon as the connection is lost.
        """
        return self._state is ConnectionState.READY

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        """The event loop used for connections and timers.

        :raise RuntimeError: when no loop was given to the bot, and there is
                             no running loop
        """
        if self._loop is not None:
            return self._loop
        return asyncio.get_running_loop()

    # connection

    def get_irc_backend(self) -> AbstractIRCBackend:
        """Build a backend for the current connection target."""
        return self._backend_class(
            self,
            self.host,
            self.port,
            use_ssl=self.use_ssl,
            verify_ssl=self.verify_ssl,
            ca_certs=self.ca_certs,
        )

    def connect(self, host: str, port: int, use_ssl: bool = False) -> None:
        """Connect to an IRC server.

        :param host: the server's hostname or IP address
        :param port: the port to connect on
        :param use_ssl: whether to upgrade the connection to TLS

        Any existing connection is closed first. The bot registers with the
        server as soon as the connection is established, and it keeps
        reconnecting to the same server every time the connection is lost,
        until :meth:`close` is called.
        """
        self.host = host
        self.port = port
        self.use_ssl = use_ssl
        self.hasquit = False
        self._cancel_reconnect()
        self._reconnect()

    def _reconnect(self) -> None:
        self._reconnect_timer = None
        self.log.info(
            'Connecting to %s:%s%s...',
            self.host, self.port, ' (TLS)' if self.use_ssl else '')
        self._release_backend()
        self._state = ConnectionState.CONNECTING
        self.backend = self.get_irc_backend()
        self.backend.open()

    def _release_backend(self) -> None:
        backend = self.backend
        self.backend = UninitializedBackend(self)
        self._line_buffer.clear()
        backend.close()

    def _cancel_reconnect(self) -> None:
        if self._reconnect_timer is not None:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None

    def _schedule_reconnect(self) -> None:
        self._cancel_reconnect()
        self.log.info('Reconnecting in %s seconds.', self.reconnect_delay)
        self._reconnect_timer = self.loop.call_later(
            self.reconnect_delay, self._reconnect)

    def close(self) -> None:
        """Close the connection for good.

        A pending reconnection is cancelled, and the bot won't reconnect
        until :meth:`connect` is called again. Handlers stay registered.
        Calling this more than once is harmless.
        """
        self.hasquit = True
        self._cancel_reconnect()
        if self._state is not ConnectionState.DISCONNECTED:
            self.log.info('Closing connection.')
        self._release_backend()
        self._state = ConnectionState.DISCONNECTED
        if self._stopped is not None:
            self._stopped.set()

    def quit(self, reason: Optional[str] = None) -> None:
        """Send a ``QUIT`` to the server, then :meth:`close` the connection.

        :param reason: quit message shown to other users (optional)
        """
        if self.backend.is_connected():
            if reason:
                self.send_line('QUIT :%s' % reason)
            else:
                self.send_line('QUIT')
        self.close()

    async def run_forever(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        use_ssl: Optional[bool] = None,
    ) -> None:
        """Connect, and stay connected until :meth:`close` is called.

        :param host: server to connect to (optional; defaults to
                     :attr:`host`)
        :param port: port to connect on (optional; defaults to :attr:`port`)
        :param use_ssl: whether to upgrade to TLS (optional; defaults to
                        :attr:`use_ssl`)
        :raise ValueError: when there is no server to connect to

        The connection is closed when this coroutine returns, or when it is
        cancelled.
        """
        host = host or self.host
        port = port or self.port
        if use_ssl is None:
            use_ssl = self.use_ssl
        if not host or not port:
            raise ValueError('No server to connect to.')

        own_loop = self._loop is None
        if own_loop:
            self._loop = asyncio.get_running_loop()
        self._stopped = asyncio.Event()
        try:
            self.connect(host, port, use_ssl)
            await self._stopped.wait()
        finally:
            self.close()
            self._stopped = None
            if own_loop:
                self._loop = None

    def run(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        use_ssl: Optional[bool] = None,
    ) -> None:
        """Run the bot in a new event loop (blocking call).

        This is :meth:`run_forever` for when there is no event loop running
        yet; see there for the parameters.
        """
        asyncio.run(self.run_forever(host, port, use_ssl))
        self.log.info('Bot stopped.')

    # backend events

    def on_connect(self) -> None:
        """Handle a freshly established (plain) connection.

        Over TLS, registration waits for :meth:`on_tls_handshake`.
        """
        self.log.info('Connected.')
        if self.use_ssl:
            self.log.debug('Waiting for TLS handshake.')
            self.backend.start_tls()
            return
        self._register()

    def on_tls_handshake(self) -> None:
        """Handle the completion of the TLS handshake."""
        self.log.debug('TLS handshake completed.')
        self._register()

    def on_data(self, data: bytes) -> None:
        """Handle a chunk of ``data`` received from the server.

        Each complete line is decoded and given to :meth:`on_message`. A line
        that can't be decoded is logged and skipped.
        """
        for raw in self._line_buffer.feed(data):
            try:
                line = self.backend.decode_line(raw)
            except ValueError:
                self.log.error('Unable to decode line from IRC server: %r', raw)
                continue
            self.on_message(line)

    def on_message(self, line: str) -> None:
        """Dispatch a ``line`` received from the server.

        Every handler registered with :meth:`on` (or :meth:`on_once`) whose
        pattern matches the line is called, in order of priority, then of
        registration. A ``PRIVMSG`` line is then turned into a message for the
        handlers registered with :meth:`listen_for`.
        """
        self.log.info('<< %s', line)
        for rule, match in self._line_rules.get_triggered(line):
            self.call(rule, line, self, line)

    def on_close(self) -> None:
        """Handle the loss of the connection.

        The bot is no longer ready, and it reconnects after
        :attr:`reconnect_delay` seconds, unless it was closed on purpose.
        """
        self.log.info('Connection lost.')
        self._release_backend()
        self._state = ConnectionState.DISCONNECTED
        if not self.hasquit:
            self._schedule_reconnect()

    # registration

    def _register(self) -> None:
        self.log.debug('Registering as %s.', self._nick)
        self._state = ConnectionState.REGISTERED
        if self.server_password:
            self.send_line('PASS %s' % self.server_password)
        self.send_line('NICK %s' % self._nick)
        self.send_line('USER %s 0 * :%s' % (self.username, self.realname))
        # any numeric reply addressed to our nick means we're in
        self.on_once(
            r'^:\S+ \d{3} %s( |$)' % re.escape(self._nick),
            self._on_registered,
        )

    def _on_registered(self, bot: Bot, line: str) -> None:
        self.log.debug('Registration accepted: %s', line)
        for channel in self.channels:
            self.join(channel)
        self._state = ConnectionState.READY
        self.log.debug('Ready.')

    # sending

    def send_line(self, line: str) -> None:
        """Send a raw ``line`` to the server.

        :param line: the line to send, without its terminator
        :raise ValueError: when ``line`` contains CR or LF; nothing is sent
        :raise RuntimeError: when the bot has no connection
        """
        if '\r' in line or '\n' in line:
            raise ValueError('Line contained NL or CR: %r' % line)

        if line.startswith('PASS '):
            self.log.info('>> PASS ********')
        else:
            self.log.info('>> %s', line)
        self.backend.irc_send(line.encode('utf-8') + LINE_TERMINATOR)

    def say(self, target: str, text: str) -> None:
        """Send ``text`` to ``target`` in a ``PRIVMSG``.

        :param target: a channel, or a nick
        :param text: the text to send
        :raise ValueError: when ``text`` contains CR or LF
        """
        self.send_line('PRIVMSG %s :%s' % (target, text))

    def join(self, channel: str) -> None:
        """Join a ``channel``."""
        self.send_line('JOIN %s' % channel)

    # handlers

    def on(
        self,
        pattern: rules.PatternType,
        callback: Optional[Callable] = None,
        *,
        flags: int = 0,
        priority: str = rules.PRIORITY_MEDIUM,
    ):
        """Call ``callback(bot, line)`` for each line matching ``pattern``.

        :param pattern: regular expression searched in each raw line
        :param callback: function to call (optional; without it, this method
                         returns a decorator)
        :param flags: regular expression flags (only with a string
                      ``pattern``)
        :param priority: one of :data:`~palaver.rules.PRIORITY_HIGH`,
                         :data:`~palaver.rules.PRIORITY_MEDIUM`, or
                         :data:`~palaver.rules.PRIORITY_LOW`
        :return: ``callback``
        :raise ValueError: when ``priority`` is not one of these

        Registering the same pattern again replaces its callback.
        """
        if callback is None:
            return functools.partial(
                self.on, pattern, flags=flags, priority=priority)
        _check_priority(priority)
        compiled = rules.compile_pattern(pattern, flags)
        self.log.debug('Setting line handler for %r.', compiled.pattern)
        self._line_rules.register(compiled, callback, priority)
        return callback

    def on_once(
        self,
        pattern: rules.PatternType,
        callback: Optional[Callable] = None,
        *,
        flags: int = 0,
        priority: str = rules.PRIORITY_MEDIUM,
    ):
        """Like :meth:`on`, but the handler is removed after its first call.

        The handler is removed only once ``callback`` returns without
        raising; it is never called twice, even for the other lines of the
        same chunk of data.
        """
        if callback is None:
            return functools.partial(
                self.on_once, pattern, flags=flags, priority=priority)
        _check_priority(priority)
        compiled = rules.compile_pattern(pattern, flags)
        self.log.debug('Setting one-shot line handler for %r.',
                       compiled.pattern)
        self._line_rules.register_once(compiled, callback, priority)
        return callback

    def listen_for(
        self,
        pattern: rules.PatternType,
        callback: Optional[Callable] = None,
        *,
        flags: int = 0,
        priority: str = rules.PRIORITY_MEDIUM,
    ):
        """Call ``callback(message, *groups)`` for matching messages.

        :param pattern: regular expression searched in each message's body
        :param callback: function to call with the
                         :class:`~palaver.message.Message` and the groups
                         captured by ``pattern`` (optional; without it, this
                         method returns a decorator)
        :param flags: regular expression flags (only with a string
                      ``pattern``)
        :param priority: the handler's priority
        :return: ``callback``
        """
        if callback is None:
            return functools.partial(
                self.listen_for, pattern, flags=flags, priority=priority)
        _check_priority(priority)
        compiled = rules.compile_pattern(pattern, flags)
        self.log.debug('Setting message handler for %r.', compiled.pattern)
        self._message_rules.register(compiled, callback, priority)
        return callback

    def remove(self, pattern: rules.PatternType, *, flags: int = 0) -> bool:
        """Remove the line handler registered for ``pattern``.

        :param pattern: the pattern given to :meth:`on` or :meth:`on_once`
        :param flags: the flags given with it
        :return: ``True`` if a handler was removed, ``False`` otherwise
        """
        compiled = rules.compile_pattern(pattern, flags)
        self.log.debug('Removing line handler for %r.', compiled.pattern)
        return self._line_rules.unregister(compiled)

    def stop_listening(
        self,
        pattern: rules.PatternType,
        *,
        flags: int = 0,
    ) -> bool:
        """Remove the message handler registered for ``pattern``.

        :return: ``True`` if a handler was removed, ``False`` otherwise
        """
        compiled = rules.compile_pattern(pattern, flags)
        self.log.debug('Removing message handler for %r.', compiled.pattern)
        return self._message_rules.unregister(compiled)

    def command(self, name: str, callback: Optional[Callable] = None):
        """Call ``callback(message, name, args)`` for the command ``name``.

        :param name: name of the command, without prefix
        :param callback: function to call (optional; without it, this method
                         returns a decorator)
        :return: ``callback``

        In a channel, a command is a message starting with the
        :attr:`command_prefix`, immediately followed by the command's name;
        in private, the prefix is optional. ``args`` is the list of words
        that follow the name. Registering a command again replaces its
        callback.
        """
        if callback is None:
            return functools.partial(self.command, name)
        self.log.debug('Setting command %r.', name)
        self._commands[name] = callback
        return callback

    def get_command(self, name: str) -> Optional[Callable]:
        """Get the callback of the command ``name``, if any."""
        return self._commands.get(name)

    # dispatch

    def dispatch_message(self, message: Message) -> None:
        """Call each message handler whose pattern matches ``message``."""
        for rule, match in self._message_rules.get_triggered(message.body):
            self.call(rule, message.raw, message, *match.groups())

    def call(self, rule: rules.Rule, text: str, *args) -> None:
        """Call the ``rule``'s callback with ``args``, isolating errors.

        :param rule: the rule to execute
        :param text: the line or message that triggered the rule
        :param args: arguments for the callback

        An exception raised by the callback is logged, and doesn't prevent
        the next callbacks from running.
        """
        try:
            rule.callback(*args)
        except Exception as error:
            self.error(rule, text, exception=error)

    def error(
        self,
        rule: Optional[rules.Rule] = None,
        text: Optional[str] = None,
        exception: Optional[BaseException] = None,
    ) -> None:
        """Called internally when a handler causes an error.

        :param rule: the rule whose callback failed (if available)
        :param text: the triggering line (if available)
        :param exception: the exception raised by the error (if available)
        """
        message = 'Unexpected error'
        if exception:
            message = '{} ({})'.format(message, exception)

        if rule:
            message = '{} in handler for {!r}'.format(
                message, rule.pattern.pattern)

        if text:
            message = '{}. Line was: {}'.format(message, text)

        self.log.exception(message)
