"""Messages: what somebody said, to whom, and where to answer.

A :class:`Message` is derived from a raw ``PRIVMSG`` line received from the
server. It is the object given to the handlers registered with
:meth:`bot.listen_for <palaver.bot.Bot.listen_for>` and
:meth:`bot.command <palaver.bot.Bot.command>`.
"""
# Copyright 2024, The Palaver Developers
#
# Licensed under the Eiffel Forum License 2.
from __future__ import annotations

import re
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from palaver.bot import Bot


__all__ = [
    'PRIVMSG_PATTERN',
    'Message',
]

PRIVMSG_PATTERN = re.compile(r'^:([^!]+)![^ ]+ PRIVMSG ([^ ]+) :(.*)$')
"""Shape of a line carrying a message.

The groups are, in order: the sender's nick, the target (a channel, or the
bot's own nick), and the text. The text may contain colons.
"""


class Message:
    """A message sent to a channel, or directly to the bot.

    :param bot: the bot that received the message
    :param source: where replies go: a channel, or the sender's nick
    :param sender: nick of who sent the message
    :param body: text of the message
    :param raw: the raw line the message comes from (optional)

    A message is immutable. Most of the time, it is built from a raw line by
    :meth:`from_line`.
    """
    __slots__ = ('_bot', '_source', '_sender', '_body', '_raw')

    def __init__(
        self,
        bot: Bot,
        source: str,
        sender: str,
        body: str,
        raw: str = '',
    ):
        self._bot = bot
        self._source = source
        self._sender = sender
        self._body = body
        self._raw = raw

    @classmethod
    def from_line(cls, bot: Bot, line: str) -> Message:
        """Derive a message from a raw ``PRIVMSG`` ``line``.

        :param bot: the bot that received the line
        :param line: raw line, as received from the server
        :raise ValueError: when ``line`` doesn't match
                           :data:`PRIVMSG_PATTERN`

        When the message targets the bot's own nick, it was sent privately:
        its :attr:`source` is then the sender, so that replies go back to
        them instead of to the bot itself::

            >>> msg = Message.from_line(bot, ':alice!a@host PRIVMSG #chan :hi')
            >>> msg.sender, msg.source, msg.body
            ('alice', '#chan', 'hi')
            >>> msg = Message.from_line(bot, ':alice!a@host PRIVMSG Palaver :hi')
            >>> msg.sender, msg.source, msg.is_private
            ('alice', 'alice', True)

        """
        result = PRIVMSG_PATTERN.match(line)
        if result is None:
            raise ValueError('Not a PRIVMSG line: %r' % line)

        sender, target, body = result.groups()
        source = sender if target == bot.nick else target
        return cls(bot, source, sender, body, raw=line)

    def __repr__(self):
        return '<Message from=%r source=%r body=%r>' % (
            self._sender, self._source, self._body)

    @property
    def bot(self) -> Bot:
        """The bot that received the message."""
        return self._bot

    @property
    def source(self) -> str:
        """Where replies go.

        This is the channel for a channel message, and the sender's nick for
        a private message.
        """
        return self._source

    @property
    def sender(self) -> str:
        """Nick of who sent the message."""
        return self._sender

    @property
    def body(self) -> str:
        """Text of the message."""
        return self._body

    @property
    def raw(self) -> str:
        """The raw line the message comes from."""
        return self._raw

    @property
    def is_private(self) -> bool:
        """Whether the message was sent directly to the bot."""
        return self._sender == self._source

    def reply(self, text: str) -> None:
        """Send ``text`` back to where the message came from.

        :param text: the reply; it can't contain CR or LF
        :raise ValueError: when ``text`` contains CR or LF
        """
        self._bot.say(self._source, text)
