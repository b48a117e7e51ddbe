"""Tests for core ``palaver.irc.utils``"""
from __future__ import annotations

import pytest

from palaver.irc import utils


STREAM = (
    b'PING :irc.example.com\r\n'
    b':alice!a@example.com PRIVMSG #chan :hello: world\r\n'
    b'\r\n'
    b':irc.example.com NOTICE * :line\nwith LF only\r\n'
    b':irc.example.com 001 Pal'
)
EXPECTED_LINES = [
    b'PING :irc.example.com',
    b':alice!a@example.com PRIVMSG #chan :hello: world',
    b'',
    b':irc.example.com NOTICE * :line\nwith LF only',
]
EXPECTED_BACKLOG = b':irc.example.com 001 Pal'


def feed_all(buf, chunks):
    lines = []
    for chunk in chunks:
        lines.extend(buf.feed(chunk))
    return lines


def test_line_buffer_single_chunk():
    buf = utils.LineBuffer()

    assert list(buf.feed(STREAM)) == EXPECTED_LINES
    assert buf.backlog == EXPECTED_BACKLOG


@pytest.mark.parametrize('index', range(len(STREAM) + 1))
def test_line_buffer_split_anywhere(index):
    buf = utils.LineBuffer()

    lines = feed_all(buf, [STREAM[:index], STREAM[index:]])

    assert lines == EXPECTED_LINES
    assert buf.backlog == EXPECTED_BACKLOG


def test_line_buffer_byte_by_byte():
    buf = utils.LineBuffer()

    lines = feed_all(buf, [STREAM[i:i + 1] for i in range(len(STREAM))])

    assert lines == EXPECTED_LINES
    assert buf.backlog == EXPECTED_BACKLOG


def test_line_buffer_split_terminator():
    buf = utils.LineBuffer()

    assert list(buf.feed(b'PING :a\r')) == []
    assert buf.backlog == b'PING :a\r'
    assert list(buf.feed(b'\nPING :b')) == [b'PING :a']
    assert buf.backlog == b'PING :b'


def test_line_buffer_no_terminator():
    buf = utils.LineBuffer()

    assert list(buf.feed(b'PING')) == []
    assert list(buf.feed(b' :a')) == []
    assert buf.backlog == b'PING :a'


def test_line_buffer_empty_chunk():
    buf = utils.LineBuffer()

    assert list(buf.feed(b'')) == []
    assert buf.backlog == b''


def test_line_buffer_empty_lines():
    buf = utils.LineBuffer()

    assert list(buf.feed(b'\r\n\r\nPING\r\n')) == [b'', b'', b'PING']
    assert buf.backlog == b''


def test_line_buffer_feed_is_lazy():
    buf = utils.LineBuffer()

    lines = buf.feed(b'PING :a\r\nPING :b\r\n')
    # nothing is consumed yet
    assert buf.backlog == b'PING :a\r\nPING :b\r\n'

    assert next(lines) == b'PING :a'
    assert buf.backlog == b'PING :b\r\n'


def test_line_buffer_unconsumed_lines_kept():
    buf = utils.LineBuffer()

    buf.feed(b'PING :a\r\n')

    assert list(buf.feed(b'PING :b\r\n')) == [b'PING :a', b'PING :b']


def test_line_buffer_clear():
    buf = utils.LineBuffer()
    assert list(buf.feed(b'PING :a\r\n:irc.example.com 00')) == [b'PING :a']

    buf.clear()

    assert buf.backlog == b''
    assert list(buf.feed(b'1 Palaver :Welcome\r\n')) == [
        b'1 Palaver :Welcome']


def test_line_buffer_clear_while_iterating():
    buf = utils.LineBuffer()
    lines = buf.feed(b'PING :a\r\nPING :b\r\n')

    assert next(lines) == b'PING :a'
    buf.clear()

    assert list(lines) == []
