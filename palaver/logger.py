# Copyright 2024, The Palaver Developers
#
# Licensed under the Eiffel Forum License 2.
from __future__ import annotations

from logging.config import dictConfig
import os


def get_log_directory(settings):
    """Get the absolute path of the log directory, if there is one.

    :param settings: configuration settings object
    :type settings: :class:`palaver.config.Config`
    :return: the directory where log files are written, or ``None`` when
             ``core.logdir`` is not set
    """
    logdir = settings.core.logdir
    if not logdir:
        return None
    logdir = os.path.expanduser(logdir)
    if not os.path.isabs(logdir):
        logdir = os.path.join(settings.homedir, logdir)
    return logdir


def setup_logging(settings):
    """Set up logging based on the bot's configuration ``settings``.

    :param settings: configuration settings object
    :type settings: :class:`palaver.config.Config`

    Logs always go to the console (stderr). When ``core.logdir`` is set, they
    also go to a file rotated at midnight, and errors to a separate one.
    """
    log_directory = get_log_directory(settings)
    base_level = settings.core.logging_level or 'INFO'
    base_format = settings.core.logging_format
    base_datefmt = settings.core.logging_datefmt

    logging_config = {
        'version': 1,
        'formatters': {
            'palaver': {
                'format': base_format,
                'datefmt': base_datefmt,
            },
        },
        'loggers': {
            # all purpose, palaver root logger
            'palaver': {
                'level': base_level,
                'handlers': ['console'],
            },
            # transport exception logger
            'palaver.exceptions': {
                'level': 'INFO',
                'propagate': False,
                'handlers': ['console'],
            },
        },
        'handlers': {
            # output on stderr
            'console': {
                'level': 'DEBUG',
                'class': 'logging.StreamHandler',
                'formatter': 'palaver',
            },
        },
    }

    if log_directory is not None:
        os.makedirs(log_directory, exist_ok=True)
        logging_config['handlers'].update({
            # generic purpose log file
            'logfile': {
                'level': 'DEBUG',
                'class': 'logging.handlers.TimedRotatingFileHandler',
                'filename': os.path.join(
                    log_directory, settings.basename + '.palaver.log'),
                'when': 'midnight',
                'formatter': 'palaver',
            },
            # caught error log file
            'errorfile': {
                'level': 'ERROR',
                'class': 'logging.handlers.TimedRotatingFileHandler',
                'filename': os.path.join(
                    log_directory, settings.basename + '.error.log'),
                'when': 'midnight',
                'formatter': 'palaver',
            },
        })
        for logger_name in ('palaver', 'palaver.exceptions'):
            logging_config['loggers'][logger_name]['handlers'].extend(
                ['logfile', 'errorfile'])

    dictConfig(logging_config)
