"""
Checks that MySQL is running and accepts the configured credentials.
"""
import os
import subprocess
from typing import Dict, List, Optional

from loguru import logger

from innobackup_runner.errors import DatabaseUnreachable


class DatabaseProbe:
    """
    Uses the mysqladmin and mysql clients to probe the server.
    """

    def __init__(self, host: str = '127.0.0.1', user: str = 'root',
                 password: Optional[str] = None,
                 mysqladmin: str = 'mysqladmin', mysql: str = 'mysql'):
        self._host = host
        self._user = user
        self._password = password
        self._mysqladmin = mysqladmin
        self._mysql = mysql

    def _env(self) -> Dict[str, str]:
        env = dict(os.environ)
        if self._password:
            # keeps the password out of the process list
            env['MYSQL_PWD'] = self._password
        return env

    def _run(self, cmd: List[str], stdin: Optional[str] = None) -> subprocess.CompletedProcess:
        logger.debug(f'Running {" ".join(cmd)}')
        try:
            return subprocess.run(cmd, input=stdin, capture_output=True, text=True,
                                  env=self._env(), check=False)
        except OSError as e:
            raise DatabaseUnreachable(f'HALTED : Could not run {cmd[0]}: {e}') from e

    def check(self) -> None:
        """
        :raises DatabaseUnreachable: if the server is down or the login fails
        """
        status = self._run([self._mysqladmin, f'--host={self._host}',
                            f'--user={self._user}', 'status'])
        if 'Uptime' not in status.stdout:
            raise DatabaseUnreachable('HALTED : MySQL does not appear to be running.')

        login = self._run([self._mysql, '-s', f'--host={self._host}', f'--user={self._user}'],
                          stdin='exit')
        if login.returncode != 0:
            raise DatabaseUnreachable(
                'HALTED : Supplied mysql username or password appears to be incorrect')
