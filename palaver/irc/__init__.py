""":mod:`palaver.irc` is the transport layer of the engine.

It holds the backend interface (:mod:`palaver.irc.abstract_backends`), the
asyncio implementation of that interface (:mod:`palaver.irc.backends`), and
the low-level helpers used to turn a byte stream into IRC lines
(:mod:`palaver.irc.utils`).

.. warning::

    This is all internal code. It is subject to change between versions
    without any advance warning.

    Please use the public APIs on :class:`bot <palaver.bot.Bot>`.

"""
# Copyright 2024, The Palaver Developers
#
# Licensed under the Eiffel Forum License 2.
from __future__ import annotations
