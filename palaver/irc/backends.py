""":mod:`palaver.irc.backends` defines Palaver's IRC connection handlers.

.. warning::

    This is all internal code. It is subject to change between versions
    without any advance warning.

    Please use the public APIs on :class:`bot <palaver.bot.Bot>`.

"""
# Copyright 2024, The Palaver Developers
#
# Licensed under the Eiffel Forum License 2.
from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Optional, TYPE_CHECKING

from .abstract_backends import AbstractIRCBackend


if TYPE_CHECKING:
    from palaver.bot import Bot


LOGGER = logging.getLogger(__name__)
READ_SIZE = 4096
"""Maximum number of bytes read from the socket at once."""


class UninitializedBackend(AbstractIRCBackend):
    """IRC Backend shim to use while the bot has no connection.

    :param bot: an instance of a bot that uses the backend

    This exists to intercept attempts to do "illegal" things without a
    connection, like sending messages to IRC before we even have a socket,
    or after it was lost.
    """
    def is_connected(self) -> bool:
        """Check if the backend is connected to an IRC server.

        **Always returns False:** This backend type is never connected.
        """
        return False

    def open(self) -> None:
        """Dummy connection method.

        Since this implementation is a placeholder and does not actually
        connect to IRC, it raises an error if it is ever called. The bot
        should switch to an appropriate backend type before trying to
        connect; not doing so is a bug.
        """
        raise RuntimeError("Attempt to open dummy backend that cannot connect.")

    def start_tls(self) -> None:
        """Dummy TLS upgrade method.

        There is no connection to upgrade, so this raises an error if it is
        ever called.
        """
        raise RuntimeError("Attempt to start TLS on unconnected backend.")

    def irc_send(self, data: bytes) -> None:
        """Dummy method to send IRC data.

        Since it is impossible to send data to IRC without an IRC connection,
        this implementation raises an error if it is ever called.

        Code that can be triggered by anything that isn't an IRC line (a
        timer, another service, etc.) should check
        :attr:`bot.ready <palaver.bot.Bot.ready>` before sending anything.
        """
        raise RuntimeError("Attempt to send data to unconnected backend.")

    def close(self) -> None:
        """Nothing to close: this is a no-op."""


class AsyncioBackend(AbstractIRCBackend):
    """IRC Backend implementation using :mod:`asyncio`.

    :param bot: an instance of a bot that uses the backend
    :param host: hostname/IP to connect to
    :param port: port to connect to
    :param use_ssl: if the connection must be upgraded to TLS or not
    :param verify_ssl: if the certificates must be verified; ignored if
                       ``use_ssl`` is not ``True``
    :param ca_certs: optional location to the CA certificates; ignored if
                     ``verify_ssl`` is ``False``

    The connection runs as a task of the bot's event loop (see
    :attr:`bot.loop <palaver.bot.Bot.loop>`), created by :meth:`open`.
    The task connects, upgrades to TLS if the bot asks for it from its
    ``on_connect`` callback, then reads from the socket until EOF. Each
    chunk read is given as-is to ``bot.on_data``: splitting the stream into
    lines is the bot's job.
    """
    def __init__(
        self,
        bot: Bot,
        host: str,
        port: int,
        use_ssl: bool = False,
        verify_ssl: bool = True,
        ca_certs: Optional[str] = None,
    ):
        super().__init__(bot)
        # connection parameters
        self._host: str = host
        self._port: int = port
        self._use_ssl: bool = use_ssl
        self._verify_ssl: bool = verify_ssl
        self._ca_certs: Optional[str] = ca_certs

        # connection flags
        self._connected: bool = False
        self._tls_requested: bool = False
        self._closed: bool = False

        # connection writer & reader
        self._writer: Optional[asyncio.StreamWriter] = None
        self._reader: Optional[asyncio.StreamReader] = None

        # connection task
        self._task: Optional[asyncio.Task] = None

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def use_ssl(self) -> bool:
        return self._use_ssl

    # backend interface

    def is_connected(self) -> bool:
        return self._connected

    def open(self) -> None:
        if self._task is not None:
            raise RuntimeError('Backend already opened.')
        LOGGER.debug('Attempt connection to %s:%s.', self._host, self._port)
        self._task = self.bot.loop.create_task(self._run())

    def start_tls(self) -> None:
        if self._writer is None:
            raise RuntimeError(
                'Writer not initialized. '
                'Are you sure the backend is running?')
        self._tls_requested = True

    def irc_send(self, data: bytes) -> None:
        if self._writer is None or not self._connected:
            raise RuntimeError(
                'Writer not initialized. '
                'Are you sure the backend is running?')

        try:
            self._writer.write(data)
        except (OSError, RuntimeError) as err:
            # the read loop will reach EOF and report the lost connection
            LOGGER.error('Unable to write to IRC server: %s', err)
            self._writer.close()

    def close(self) -> None:
        if self._closed:
            return
        LOGGER.debug('Closing connection to %s:%s.', self._host, self._port)
        self._closed = True
        self._connected = False
        if self._writer is not None:
            self._writer.close()
        if self._task is not None and not self._task.done():
            self._task.cancel()

    # TLS

    def get_ssl_context(self) -> ssl.SSLContext:
        """Return the TLS context used to upgrade the connection."""
        ssl_context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
        if self._verify_ssl and self._ca_certs is not None:
            ssl_context.load_verify_locations(self._ca_certs)
        elif not self._verify_ssl:
            # deactivate TLS verification for hostname & certificate
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE
        return ssl_context

    async def _negotiate_tls(self) -> None:
        if self._writer is None:
            raise RuntimeError(
                'Writer not initialized. '
                'Are you sure the backend is running?')

        LOGGER.debug('Starting TLS negotiation.')
        await self._writer.start_tls(
            self.get_ssl_context(),
            server_hostname=self._host,
        )
        LOGGER.debug('TLS handshake completed.')
        self.bot.on_tls_handshake()

    # read

    async def read_forever(self) -> None:
        """Main reading loop of the backend.

        This reads chunks of at most :data:`READ_SIZE` bytes from the
        reader and passes them to
        :meth:`bot.on_data(data) <palaver.bot.Bot.on_data>`, until the reader
        reaches EOF (i.e. connection closed).
        """
        if self._reader is None:
            raise RuntimeError(
                'Reader not initialized. '
                'Are you sure the backend is running?')

        while True:
            data = await self._reader.read(READ_SIZE)
            if not data:
                break
            self.bot.on_data(data)

    # run & connection

    def _notify_close(self) -> None:
        self._connected = False
        if self._closed:
            # the bot released this backend: it doesn't want to hear from it
            return
        self._closed = True
        self.bot.on_close()

    async def _run(self) -> None:
        # open connection
        try:
            reader, writer = await asyncio.open_connection(
                self._host, self._port,
            )
        except asyncio.CancelledError:
            LOGGER.debug('Connection attempt was cancelled.')
            return
        except OSError as err:
            LOGGER.error(
                'Unable to connect to %s:%s: %s',
                self._host, self._port, err,
            )
            self._notify_close()
            return

        if self._closed:
            # closed while connecting
            writer.close()
            return

        self._reader, self._writer = reader, writer

        # on socket connection
        LOGGER.debug('Connection established.')
        self._connected = True

        try:
            self.bot.on_connect()
            if self._tls_requested:
                await self._negotiate_tls()
            await self.read_forever()

        # task was cancelled, i.e. the backend was closed
        except asyncio.CancelledError:
            LOGGER.debug('Read task was cancelled.')

        # TLS error (certificate verification or handshake failure)
        except ssl.SSLError as err:
            LOGGER.error('Unable to negotiate TLS: %s', err)
            self.log_exception()

        # connection reset requires a log, but no exception log
        except ConnectionResetError as err:
            LOGGER.error('Connection reset on read: %s', err)

        # generic (connection) error requires a specific exception log
        except OSError as err:
            LOGGER.error('Connection error on read: %s', err)
            self.log_exception()

        except Exception as err:
            LOGGER.error('Unexpected error on read: %s', err)
            self.log_exception()

        # task done (connection closed without error)
        else:
            LOGGER.debug('Reader received EOF.')

        # nothing to read anymore
        LOGGER.debug('Shutting down writer.')
        writer.close()
        self._notify_close()
