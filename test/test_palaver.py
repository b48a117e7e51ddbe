"""Tests for the ``palaver`` package itself"""
from __future__ import annotations

import pytest

import palaver


@pytest.mark.parametrize('version, expected', [
    ('1.2.3', (1, 2, 3, 'final', 0)),
    ('1.2', (1, 2, 0, 'final', 0)),
    ('8.0.0a2', (8, 0, 0, 'alpha', 2)),
    ('8.0.0b1', (8, 0, 0, 'beta', 1)),
    ('8.0.0rc3', (8, 0, 0, 'candidate', 3)),
    ('8.0.0.dev0', (8, 0, 0, 'alpha', 0)),
])
def test_version_info(version, expected):
    assert tuple(palaver._version_info(version)) == expected


def test_version_info_current():
    info = palaver.version_info

    assert '%d.%d.%d' % (info.major, info.minor, info.micro) == (
        palaver.__version__)
    assert info.releaselevel == 'final'
