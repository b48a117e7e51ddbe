""":mod:`palaver.irc.abstract_backends` defines the IRC backend interface.

A backend owns the network connection of a bot: it opens it, upgrades it to
TLS on request, writes raw bytes to it, and closes it. Everything it
observes is reported back to the bot through four callbacks:

* :meth:`bot.on_connect() <palaver.bot.Bot.on_connect>` once the plain
  connection is established,
* :meth:`bot.on_tls_handshake() <palaver.bot.Bot.on_tls_handshake>` once
  the TLS upgrade (requested with :meth:`~.AbstractIRCBackend.start_tls`)
  is completed,
* :meth:`bot.on_data(data) <palaver.bot.Bot.on_data>` for each chunk of
  bytes received,
* :meth:`bot.on_close() <palaver.bot.Bot.on_close>` when the connection is
  lost or could not be established at all.

.. warning::

    This is all internal code. It is subject to change between versions
    without any advance warning.

    Please use the public APIs on :class:`bot <palaver.bot.Bot>`.

"""
# Copyright 2024, The Palaver Developers
#
# Licensed under the Eiffel Forum License 2.
from __future__ import annotations

import abc
import logging
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from palaver.bot import Bot


class AbstractIRCBackend(abc.ABC):
    """Abstract class defining the interface and basic logic of an IRC backend.

    :param bot: the bot that owns this backend
    :type bot: :class:`palaver.bot.Bot`

    Some methods of this class **MUST** be overridden by a subclass, or the
    backend implementation will not function correctly.

    Once :meth:`close` has been called, a backend must not call any of the
    bot's callbacks anymore: the bot has already moved on, possibly to
    another backend.
    """
    def __init__(self, bot: Bot):
        self.bot: Bot = bot

    @abc.abstractmethod
    def is_connected(self) -> bool:
        """Tell if the backend is connected or not."""

    def log_exception(self) -> None:
        """Log an exception to ``palaver.exceptions``.

        The IRC backend must use this method to log any exception that isn't
        caught by the bot itself (i.e. while handling lines), such as
        connection errors, TLS errors, etc.
        """
        err_log = logging.getLogger('palaver.exceptions')
        err_log.exception('Exception in transport')
        err_log.error('----------------------------------------')

    @abc.abstractmethod
    def open(self) -> None:
        """Start connecting to the server (non-blocking).

        Once connected, the backend must call ``bot.on_connect``; if it fails
        to connect, it must call ``bot.on_close`` instead.
        """

    @abc.abstractmethod
    def start_tls(self) -> None:
        """Ask the backend to upgrade the connection to TLS.

        This is called by the bot from ``bot.on_connect``, before anything is
        sent. The backend must call ``bot.on_tls_handshake`` once the
        handshake is completed, and must not deliver any data before that.
        """

    @abc.abstractmethod
    def irc_send(self, data: bytes) -> None:
        """Send an IRC line as raw ``data``.

        :param bytes data: raw line to send, with its terminator

        Sending is best effort: a failure to write must be reported as a
        lost connection (through ``bot.on_close``), not raised to the caller.
        """

    @abc.abstractmethod
    def close(self) -> None:
        """Close the connection and release it.

        After this call, the backend won't call any of the bot's callbacks.
        """

    def decode_line(self, line: bytes) -> str:
        """Decode a raw IRC line from ``bytes`` to ``str``.

        :param line: a raw line, without its terminator
        :raise ValueError: when ``line`` can't be decoded

        UTF-8 is tried first, then CP-1252, which is still common among
        older clients.
        """
        # We can't trust clients to pass valid Unicode.
        try:
            data = str(line, encoding='utf-8')
        except UnicodeDecodeError:
            # not Unicode; let's try CP-1252
            try:
                data = str(line, encoding='cp1252')
            except UnicodeDecodeError:
                raise ValueError('Unable to decode data from server.')

        return data
