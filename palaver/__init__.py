"""
Palaver is a small, reusable IRC client engine, written in Python.

It keeps one connection to an IRC server alive, turns the server's byte
stream into lines and messages, and hands them to the handlers you register.
"""
#
# Copyright 2024, The Palaver Developers
#
# Licensed under the Eiffel Forum License 2.

from __future__ import annotations

from collections import namedtuple

from packaging.version import Version


__all__ = [
    'bot',
    'config',
    'irc',
    'logger',
    'message',
    'rules',
    'version_info',
]

__version__ = '0.1.0'


def _version_info(version=__version__):
    parsed = Version(version)
    major, minor, micro = (parsed.release + (0, 0))[:3]
    serial = 0

    if parsed.pre is not None:
        level, serial = parsed.pre
        level = {
            'a': 'alpha',
            'b': 'beta',
            'rc': 'candidate',
        }[level]
    elif parsed.dev is not None:
        level = 'alpha'
    else:
        level = 'final'

    VersionInfo = namedtuple('VersionInfo',
                             'major, minor, micro, releaselevel, serial')
    return VersionInfo(major, minor, micro, level, serial)


version_info = _version_info()
