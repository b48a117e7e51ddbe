"""Utilities for the IRC transport layer."""
# Copyright 2024, The Palaver Developers
#
# Licensed under the Eiffel Forum License 2.
from __future__ import annotations

from typing import Iterator


LINE_TERMINATOR = b'\r\n'
"""Byte sequence ending every IRC line, in both directions."""


class LineBuffer:
    """Reassemble complete IRC lines from arbitrarily split byte chunks.

    The network delivers bytes in chunks that do not respect line
    boundaries: a chunk may hold several lines, a single line may arrive
    across several chunks, and a terminator may itself be split in two.
    ``LineBuffer`` keeps the unterminated tail of what it received (the
    *backlog*) and hands out complete lines only::

        >>> buf = LineBuffer()
        >>> list(buf.feed(b'PING :a\\r\\nPIN'))
        [b'PING :a']
        >>> buf.backlog
        b'PIN'
        >>> list(buf.feed(b'G :b\\r\\n'))
        [b'PING :b']

    The concatenation of every chunk fed so far is always equal to the
    concatenation of every line handed out (each followed by the
    terminator) plus the backlog; in other words, how the stream is split
    into chunks never changes the resulting lines.

    .. note::

        There is no limit on the length of the backlog: a peer that never
        sends a terminator makes it grow without bound.

    """
    def __init__(self) -> None:
        self._backlog = b''

    @property
    def backlog(self) -> bytes:
        """Bytes received after the last complete line."""
        return self._backlog

    def feed(self, data: bytes) -> Iterator[bytes]:
        """Add a chunk of ``data`` and iterate over the completed lines.

        :param data: raw bytes received from the server
        :return: an iterator of complete lines, without their terminator

        The chunk is added to the backlog immediately, but lines are only
        removed from it as the iterator is consumed. An empty line (two
        consecutive terminators) is yielded as ``b''``.
        """
        self._backlog += data
        return self._drain()

    def _drain(self) -> Iterator[bytes]:
        while True:
            index = self._backlog.find(LINE_TERMINATOR)
            if index < 0:
                return
            line = self._backlog[:index]
            self._backlog = self._backlog[index + len(LINE_TERMINATOR):]
            yield line

    def clear(self) -> None:
        """Drop the backlog.

        Used when a connection goes away: a partial line from a previous
        connection must not be glued to the first line of the next one.
        """
        self._backlog = b''
