import logging.handlers
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from loguru import logger


def setup_logging(log_dir: Optional[Path], log_level: str, syslog: bool = False,
                  syslog_address: str = '/dev/log'):
    """
    Add the file and syslog sinks.
    :param log_dir: directory for the log file. No file logging if None.
    :param log_level: minimum level of the sinks
    :param syslog: also send messages to the local syslog daemon
    :param syslog_address: unix socket of syslog
    """
    format_string = '{time:HH:mm:ss} | {level} | {message}'
    if log_dir:
        if not os.path.isdir(log_dir):
            os.makedirs(log_dir, exist_ok=True)
        logger.add(Path(log_dir) / 'innobackup-runner.log',
                   format=format_string,
                   rotation='00:00',
                   retention='14 days',
                   level=log_level,
                   backtrace=True,
                   diagnose=True)
    if syslog:
        try:
            handler = logging.handlers.SysLogHandler(address=syslog_address)
        except OSError as e:
            logger.warning(f'Could not connect to syslog at {syslog_address}: {e}')
            return
        handler.ident = 'innobackup-runner: '
        logger.add(handler, format='{message}', level=log_level)


class Notifier(ABC):
    """
    Sink for human-readable status lines of a run.
    """

    @abstractmethod
    def notify(self, message: str, level: str = 'INFO') -> None:
        """
        Report one status line.
        :param message: text of the line
        :param level: loguru level name
        """
        pass


class LoguruNotifier(Notifier):
    """
    Sends status lines to loguru. Transport is up to the configured sinks.
    """

    def notify(self, message: str, level: str = 'INFO') -> None:
        logger.opt(depth=1).log(level, message)
