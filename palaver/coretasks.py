"""Core handlers of the bot.

These handlers are what makes a bot stay connected and understand messages
and commands. They are installed by :class:`~palaver.bot.Bot` when it is
created, in the very same registries as any other handler: nothing prevents
a bot from replacing one of them by registering its own handler for the
same pattern.

.. important::

    These handlers are not intended to be called directly.

"""
# Copyright 2024, The Palaver Developers
#
# Licensed under the Eiffel Forum License 2.
from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from palaver import rules
from palaver.message import Message


if TYPE_CHECKING:
    from palaver.bot import Bot


LOGGER = logging.getLogger(__name__)

PING_PATTERN = re.compile(r'^ping( |$)', re.IGNORECASE)
"""Lines sent by the server to check that the client is still alive."""
PRIVMSG_PREFILTER = re.compile(r'^:[^\s]+ PRIVMSG ')
"""Lines that should be turned into a :class:`~palaver.message.Message`."""
ANY_MESSAGE = re.compile(r'.')
"""Message bodies that may hold a command: anything but an empty body."""
UNKNOWN_COMMAND_REPLY = "I don't understand that."
"""Reply sent when a message looks like a command but isn't one."""


def setup(bot: Bot) -> None:
    """Register the core handlers on ``bot``.

    The bot itself registers :func:`handle_privmsg`, with a priority that
    only core rules can use.
    """
    bot.on(PING_PATTERN, handle_ping, priority=rules.PRIORITY_HIGH)
    bot.listen_for(ANY_MESSAGE, handle_command)


def handle_ping(bot: Bot, line: str) -> None:
    """Answer a server's ``PING`` with a ``PONG``.

    The parameters of the ``PING`` (usually a token) are sent back as-is.
    """
    _, _, params = line.partition(' ')
    if params:
        bot.send_line('PONG %s' % params)
    else:
        bot.send_line('PONG')


def handle_privmsg(bot: Bot, line: str) -> None:
    """Derive a message from a ``PRIVMSG`` line and dispatch it.

    :raise ValueError: when the line doesn't have the expected shape
    """
    bot.dispatch_message(Message.from_line(bot, line))


def parse_command(prefix: str, body: str) -> tuple[str, list[str]]:
    """Split a command line into its name and arguments.

    :param prefix: the command prefix, removed from the start of ``body``
    :param body: text of the message
    :return: a 2-value tuple ``(name, args)``; ``name`` is empty when there
             is nothing after the prefix

    ::

        >>> parse_command('!', '!greet  bob alice')
        ('greet', ['bob', 'alice'])

    """
    if prefix and body.startswith(prefix):
        body = body[len(prefix):]
    tokens = body.split()
    if not tokens:
        return '', []
    return tokens[0], tokens[1:]


def handle_command(message: Message) -> None:
    """Run the command found in ``message``, if it is one.

    A message holds a command when it was sent privately, or when its body
    starts with the bot's command prefix. A command unknown to the bot gets
    the :data:`UNKNOWN_COMMAND_REPLY` reply.
    """
    bot = message.bot
    prefix = bot.command_prefix
    if not message.is_private and not message.body.startswith(prefix):
        return

    name, args = parse_command(prefix, message.body)
    callback = bot.get_command(name) if name else None
    if callback is None:
        LOGGER.debug('Unknown command %r from %s', name, message.sender)
        message.reply(UNKNOWN_COMMAND_REPLY)
        return

    callback(message, name, args)
