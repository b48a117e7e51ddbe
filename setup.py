#!/usr/bin/env python
from __future__ import annotations

import sys

try:
    from setuptools import setup, __version__ as setuptools_version
except ImportError:
    print(
        'You do not have setuptools, and can not install Palaver. The easiest '
        'way to fix this is to install pip by following the instructions at '
        'https://pip.readthedocs.io/en/latest/installing/',
        file=sys.stderr,
    )
    sys.exit(1)
else:
    version_info = setuptools_version.split('.')
    major = int(version_info[0])
    minor = int(version_info[1])

    if major < 30 or (major == 30 and minor < 3):
        print(
            'Your version of setuptools is outdated: version 30.3 or above '
            'is required to install Palaver. You can do that with '
            '"pip install -U setuptools"',
            file=sys.stderr,
        )
        sys.exit(1)

# We check Python's version ourselves in case someone installed Palaver on an
# old version of pip (<9.0.0), which doesn't know about `python_requires`.
if sys.version_info < (3, 11):
    raise ImportError('Palaver requires Python 3.11+.')


def read_reqs(path):
    with open(path, 'r') as fil:
        return [
            line.strip()
            for line in fil.readlines()
            if line.strip() and not line.startswith('#')
        ]


requires = read_reqs('requirements.txt')
dev_requires = requires + read_reqs('dev-requirements.txt')

setup(
    install_requires=requires, extras_require={"dev": dev_requires},
)
