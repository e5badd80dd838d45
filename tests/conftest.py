"""
Shared pytest fixtures for innobackup-runner tests.

This module provides fixtures for:
- A backup destination with full and incr folders
- Helpers creating backup directories at given ages
- An in-memory notifier
- A fake backup engine
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Tuple

import pytest

from innobackup_runner.engine.base import EngineResult, ExecutionAdapter
from innobackup_runner.errors import EnginePrerequisiteMissing
from innobackup_runner.utils.config import RunnerConfig
from innobackup_runner.utils.datatypes import BackupId
from innobackup_runner.utils.logging import Notifier

NOW = datetime(2026, 10, 18, 12, 0, 0)


def backup_name(seconds_ago: int, now: datetime = NOW) -> str:
    """Directory name of a backup created seconds_ago before now."""
    return str(BackupId(now - timedelta(seconds=seconds_ago)))


class MemoryNotifier(Notifier):
    """Keeps all messages in memory."""

    def __init__(self):
        self.messages: List[Tuple[str, str]] = []

    def notify(self, message: str, level: str = 'INFO') -> None:
        self.messages.append((level, message))

    @property
    def lines(self) -> List[str]:
        return [message for _, message in self.messages]

    @property
    def errors(self) -> List[str]:
        return [message for level, message in self.messages
                if level in ('ERROR', 'CRITICAL')]


class FakeAdapter(ExecutionAdapter):
    """
    Creates empty backup directories instead of running innobackupex.
    """

    def __init__(self, now: datetime = NOW, success: bool = True,
                 apply_log_success: bool = True, installed: bool = True):
        self.now = now
        self.success = success
        self.apply_log_success = apply_log_success
        self.installed = installed
        self.calls = []

    def check_installed(self) -> None:
        if not self.installed:
            raise EnginePrerequisiteMissing('innobackupex not found')

    def _create(self, parent: Path) -> EngineResult:
        if not self.success:
            return EngineResult(success=False, output='InnoDB: Error\nfailed')
        path = Path(parent) / str(BackupId(self.now))
        path.mkdir()
        return EngineResult(success=True, artifact_path=path,
                            output=f"Backup created in directory '{path}'\ncompleted OK!")

    def run_full(self, target_dir, concurrency):
        self.calls.append(('full', target_dir, concurrency))
        return self._create(target_dir)

    def run_incremental(self, target_dir, base_dir, concurrency):
        self.calls.append(('incremental', target_dir, base_dir, concurrency))
        return self._create(target_dir)

    def apply_log(self, target_dir, concurrency):
        self.calls.append(('apply_log', target_dir, concurrency))
        return EngineResult(success=self.apply_log_success, artifact_path=target_dir,
                            output='completed OK!' if self.apply_log_success else 'failed')


@pytest.fixture(scope='function')
def destination(tmp_path):
    """
    Backup destination with empty full and incr folders.
    """
    dest = tmp_path / 'mysql'
    (dest / 'full').mkdir(parents=True)
    (dest / 'incr').mkdir()
    return dest


@pytest.fixture(scope='function')
def make_full(destination):
    """
    Create a full backup directory created seconds_ago before NOW.
    """
    def _make(seconds_ago: int) -> Path:
        path = destination / 'full' / backup_name(seconds_ago)
        path.mkdir()
        return path
    return _make


@pytest.fixture(scope='function')
def make_incremental(destination):
    """
    Create an incremental backup directory in the chain of a full backup.
    """
    def _make(full: Path, seconds_ago: int) -> Path:
        path = destination / 'incr' / full.name / backup_name(seconds_ago)
        path.mkdir(parents=True)
        return path
    return _make


@pytest.fixture(scope='function')
def notifier():
    return MemoryNotifier()


@pytest.fixture(scope='function')
def fake_engine():
    return FakeAdapter()


@pytest.fixture(scope='function')
def config(destination, tmp_path):
    """
    Config using the temporary destination and lock file.
    """
    return RunnerConfig(
        destination=destination,
        full_backup_life=86400,
        keep=7,
        parallel=4,
        check_database=False,
        lock_file=tmp_path / 'innobackup-runner.lock',
    )
