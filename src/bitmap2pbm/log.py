import argparse
import logging
import sys


class Log:
    """
    Thin static facade over the package logger, configured once from the command line.
    """
    NAME = 'bitmap2pbm'
    FORMAT = '%(asctime)s %(levelname)-7s %(message)s'
    LEVELS = ['debug', 'info', 'warning', 'error']

    _logger = logging.getLogger(NAME)

    @staticmethod
    def add_args(parser: argparse.ArgumentParser):
        parser.add_argument('--log-level', default='warning', choices=Log.LEVELS, help='Logging verbosity')

    @staticmethod
    def setup(args):
        Log.setup_level(args.log_level)

    @staticmethod
    def setup_level(level: str):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(Log.FORMAT))

        # Repeated setup (tests, embedding) must not stack handlers
        for existing in list(Log._logger.handlers):
            Log._logger.removeHandler(existing)

        Log._logger.addHandler(handler)
        Log._logger.setLevel(getattr(logging, level.upper()))

    @staticmethod
    def debug(msg: str):
        Log._logger.debug(msg)

    @staticmethod
    def info(msg: str):
        Log._logger.info(msg)

    @staticmethod
    def warning(msg: str):
        Log._logger.warning(msg)

    @staticmethod
    def error(msg: str):
        Log._logger.error(msg)
