"""
Unit tests for the MySQL probe (database.py).
"""

import subprocess

import pytest

from innobackup_runner import database
from innobackup_runner.database import DatabaseProbe
from innobackup_runner.errors import DatabaseUnreachable


class _FakeRun:
    """Replaces subprocess.run and answers like mysqladmin / mysql."""

    def __init__(self, status_out='Uptime: 4242  Threads: 1', login_code=0, missing=False):
        self.status_out = status_out
        self.login_code = login_code
        self.missing = missing
        self.calls = []

    def __call__(self, cmd, **kwargs):
        self.calls.append((cmd, kwargs))
        if self.missing:
            raise FileNotFoundError(cmd[0])
        if cmd[0] == 'mysqladmin':
            return subprocess.CompletedProcess(cmd, 0, stdout=self.status_out, stderr='')
        return subprocess.CompletedProcess(cmd, self.login_code, stdout='', stderr='')


class TestDatabaseProbe:

    def test_server_ok(self, monkeypatch):
        fake = _FakeRun()
        monkeypatch.setattr(database.subprocess, 'run', fake)

        DatabaseProbe(host='db', user='backup', password='secret').check()

        assert fake.calls[0][0] == ['mysqladmin', '--host=db', '--user=backup', 'status']
        assert fake.calls[1][0] == ['mysql', '-s', '--host=db', '--user=backup']
        assert fake.calls[1][1]['input'] == 'exit'
        assert fake.calls[0][1]['env']['MYSQL_PWD'] == 'secret'

    def test_server_down(self, monkeypatch):
        monkeypatch.setattr(database.subprocess, 'run', _FakeRun(status_out=''))

        with pytest.raises(DatabaseUnreachable, match='does not appear to be running'):
            DatabaseProbe().check()

    def test_wrong_credentials(self, monkeypatch):
        monkeypatch.setattr(database.subprocess, 'run', _FakeRun(login_code=1))

        with pytest.raises(DatabaseUnreachable, match='username or password'):
            DatabaseProbe().check()

    def test_client_not_installed(self, monkeypatch):
        monkeypatch.setattr(database.subprocess, 'run', _FakeRun(missing=True))

        with pytest.raises(DatabaseUnreachable):
            DatabaseProbe().check()

    def test_no_password_in_env(self, monkeypatch):
        monkeypatch.delenv('MYSQL_PWD', raising=False)
        fake = _FakeRun()
        monkeypatch.setattr(database.subprocess, 'run', fake)

        DatabaseProbe().check()

        assert 'MYSQL_PWD' not in fake.calls[0][1]['env']
