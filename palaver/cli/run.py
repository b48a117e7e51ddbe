"""
Palaver - an IRC client engine
Copyright 2024, The Palaver Developers
Licensed under the Eiffel Forum License 2.

Command line entry point: ``palaver -c <config>`` connects a bot built from
the configuration file, and keeps it connected until it is interrupted.
"""
from __future__ import annotations

import argparse
import logging
import os
import platform
import sys

from palaver import __version__, bot, config, logger


LOGGER = logging.getLogger(__name__)

ERR_CODE = 1
"""Error code: program exited with an error"""
CONFIG_ENV = 'PALAVER_CONFIG'
"""Environment variable naming the config to use when ``-c`` is not given."""
CONFIG_EXTENSION = '.cfg'


def build_parser():
    """Build an ``argparse.ArgumentParser`` for the bot"""
    parser = argparse.ArgumentParser(description='Palaver IRC Bot',
                                     usage='%(prog)s [options]')
    parser.add_argument(
        '-c', '--config',
        default=None,
        metavar='filename',
        dest='config',
        help='Configuration to use: a path to a file, or the name of a '
             '%s file in the config directory (default: %s, then '
             '"default")' % (CONFIG_EXTENSION, CONFIG_ENV))
    parser.add_argument(
        '--config-dir',
        default=config.DEFAULT_HOMEDIR,
        dest='configdir',
        help='Directory of named configurations (default: %(default)s)')
    parser.add_argument(
        '-V', '--version',
        action='version',
        version='%(prog)s {}'.format(__version__),
        help='Show version number and exit')
    return parser


def get_config_path(name, config_dir):
    """Get the path of the configuration called ``name``.

    :param str name: a path to an existing file, or the name of a config
    :param str config_dir: the directory of named configs
    :return: the path to use; the file may not exist

    A name without the ``.cfg`` extension gets it: ``libera`` is
    ``<config_dir>/libera.cfg``.
    """
    if os.path.isfile(name):
        return os.path.abspath(name)
    if not name.endswith(CONFIG_EXTENSION):
        name = name + CONFIG_EXTENSION
    return os.path.join(config_dir, name)


def load_settings(options):
    """Load the configuration selected by the command line ``options``.

    :param options: parsed arguments, from :func:`build_parser`
    :return: the bot's configuration
    :rtype: :class:`palaver.config.Config`
    :raise palaver.config.ConfigurationNotFound: when the file doesn't exist
    :raise palaver.config.ConfigurationError: when the file is invalid
    """
    name = options.config or os.environ.get(CONFIG_ENV) or 'default'
    filename = get_config_path(name, options.configdir)
    if not os.path.isfile(filename):
        raise config.ConfigurationNotFound(filename=filename)

    LOGGER.debug('Loading configuration from %s', filename)
    try:
        return config.Config(filename)
    except ValueError as err:
        raise config.ConfigurationError(str(err))


def print_version():
    """Print the bot's version and the Python version"""
    py_ver = '%s.%s.%s' % (sys.version_info.major,
                           sys.version_info.minor,
                           sys.version_info.micro)
    print('Palaver %s (running on Python %s)' % (__version__, py_ver))
    print('%s %s' % (platform.system(), platform.release()))


def run(settings):
    """Build a bot from ``settings`` and run it until it is interrupted.

    :param settings: the bot's configuration
    :type settings: :class:`palaver.config.Config`
    :return: the exit code
    """
    print_version()
    print("\nLoaded config file: {}".format(settings.filename))

    instance = bot.Bot.from_config(settings)
    try:
        instance.run()
    except KeyboardInterrupt:
        print("\n\nInterrupted")
    except Exception:
        LOGGER.exception('Critical exception in core')
        return ERR_CODE

    return 0


def main(argv=None):
    """Palaver run script entry point"""
    parser = build_parser()
    opts = parser.parse_args(argv)

    try:
        settings = load_settings(opts)
    except config.ConfigurationNotFound as error:
        print(
            'Welcome to Palaver!\n'
            'I can\'t seem to find the configuration file, '
            'so there is nothing to run.\n'
            'Create one with at least a [core] section and a nick, '
            'then try again.\n'
            '(%s)' % error,
            file=sys.stderr,
        )
        return ERR_CODE
    except config.ConfigurationError as error:
        print(error, file=sys.stderr)
        return ERR_CODE

    logger.setup_logging(settings)
    return run(settings)


if __name__ == '__main__':
    sys.exit(main())
