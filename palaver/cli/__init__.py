# Copyright 2024, The Palaver Developers
#
# Licensed under the Eiffel Forum License 2.
