"""Palaver Command Line main entrypoint: ``python -m palaver``."""
# Copyright 2024, The Palaver Developers
#
# Licensed under the Eiffel Forum License 2.
from __future__ import annotations

import sys

from palaver.cli.run import main


if __name__ == '__main__':
    sys.exit(main())
