"""
Backup engine using the innobackupex wrapper of Percona XtraBackup.
"""
import os
import re
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional

from loguru import logger

from innobackup_runner.engine.base import EngineResult, ExecutionAdapter
from innobackup_runner.errors import EnginePrerequisiteMissing

SUCCESS_MARKER = 'completed OK!'
ARTIFACT_PATTERN = re.compile(r"Backup created in directory '([^']+)'")


class InnobackupexAdapter(ExecutionAdapter):
    """
    Runs innobackupex as a subprocess with lowered IO and CPU priority.
    """

    def __init__(self, host: str = '127.0.0.1', user: str = 'root',
                 password: Optional[str] = None, binary: str = 'innobackupex',
                 nice: bool = True):
        """
        :param host: default: 127.0.0.1
        :param user: default: root
        :param password: default: None
        :param binary: name or path of the innobackupex executable
        :param nice: run the engine with ionice / nice
        """
        self._host = host
        self._user = user
        self._password = password
        self.binary = binary
        self.nice = nice

    def check_installed(self) -> None:
        if not shutil.which(self.binary):
            raise EnginePrerequisiteMissing(
                f'{self.binary} not found, please ensure it is installed before proceeding.')

    def _priority_prefix(self, niceness: int) -> List[str]:
        if not self.nice:
            return []
        prefix = []
        if shutil.which('ionice'):
            prefix += ['ionice', '-c', '2', '-n', '7']
        if shutil.which('nice'):
            prefix += ['nice', '-n', str(niceness)]
        return prefix

    def _credentials(self, with_host: bool = True) -> List[str]:
        args = [f'--host={self._host}'] if with_host else []
        args.append(f'--user={self._user}')
        if self._password:
            args.append(f'--password={self._password}')
        return args

    def _execute(self, args: List[str], niceness: int = 10,
                 artifact: Optional[Path] = None) -> EngineResult:
        """
        Run innobackupex and evaluate its log.
        :param args: arguments for innobackupex
        :param niceness: value for nice
        :param artifact: artifact to report if the log does not name one
        :return: result with the full engine output
        """
        cmd = self._priority_prefix(niceness) + [self.binary] + args
        logger.debug(f'Running {" ".join(self._mask(cmd))}')
        fd, log_path = tempfile.mkstemp(prefix='innobackup-runner.', suffix='.tmp')
        try:
            with os.fdopen(fd, 'w+', encoding='utf-8', errors='replace') as log:
                try:
                    process = subprocess.run(cmd, stdout=log, stderr=subprocess.STDOUT,
                                             check=False)
                    return_code = process.returncode
                except OSError as e:
                    log.write(f'Failed to run {self.binary}: {e}\n')
                    return_code = None
                log.seek(0)
                output = log.read()
        finally:
            os.remove(log_path)

        lines = [line for line in output.splitlines() if line.strip()]
        success = return_code == 0 and bool(lines) and SUCCESS_MARKER in lines[-1]
        match = ARTIFACT_PATTERN.search(output)
        artifact_path = Path(match.group(1)) if match else artifact
        return EngineResult(success=success, artifact_path=artifact_path, output=output)

    def _mask(self, cmd: List[str]) -> List[str]:
        return ['--password=***' if x.startswith('--password=') else x for x in cmd]

    def run_full(self, target_dir: Path, concurrency: int) -> EngineResult:
        return self._execute(
            self._credentials() + [f'--parallel={concurrency}', str(target_dir)]
        )

    def run_incremental(self, target_dir: Path, base_dir: Path,
                        concurrency: int) -> EngineResult:
        return self._execute(
            self._credentials() + [
                f'--parallel={concurrency}',
                '--incremental', str(target_dir),
                f'--incremental-basedir={base_dir}',
            ]
        )

    def apply_log(self, target_dir: Path, concurrency: int) -> EngineResult:
        return self._execute(
            self._credentials(with_host=False) + [
                f'--parallel={concurrency}',
                '--apply-log',
                '--rebuild-indexes',
                '--redo-only',
                str(target_dir),
            ],
            niceness=15,
            artifact=Path(target_dir)
        )
