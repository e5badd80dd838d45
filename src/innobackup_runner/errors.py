"""
Errors of a backup run and the exit codes they map to.
"""
from enum import IntEnum


class ExitCode(IntEnum):
    """
    Process exit codes of the CLI.
    """
    SUCCESS = 0
    ENGINE_FAILED = 1
    # click exits with 2 on usage errors
    UNKNOWN_ARGUMENT = 2
    ALREADY_RUNNING = 3
    ENGINE_MISSING = 4
    DESTINATION_UNWRITABLE = 5
    DATABASE_UNREACHABLE = 6
    CONFIG_ERROR = 7


class RunnerError(Exception):
    """
    Base class for fatal errors of a run.
    """
    exit_code = ExitCode.ENGINE_FAILED


class AlreadyRunning(RunnerError):
    """
    Another instance holds the lock.
    """
    exit_code = ExitCode.ALREADY_RUNNING

    def __init__(self, pid: int or None = None):
        self.pid = pid
        super().__init__(f'Backup already running (pid {pid})' if pid else 'Backup already running')


class EnginePrerequisiteMissing(RunnerError):
    exit_code = ExitCode.ENGINE_MISSING


class DestinationUnwritable(RunnerError):
    exit_code = ExitCode.DESTINATION_UNWRITABLE


class DatabaseUnreachable(RunnerError):
    exit_code = ExitCode.DATABASE_UNREACHABLE


class ConfigError(RunnerError):
    exit_code = ExitCode.CONFIG_ERROR


class EngineInvocationFailed(RunnerError):
    """
    The engine ran but did not report success.
    """
    exit_code = ExitCode.ENGINE_FAILED

    def __init__(self, message: str, output: str = ''):
        super().__init__(message)
        self.output = output


class PruneFailure(Exception):
    """
    Deleting a backup generation failed. Not fatal for the run.
    """

    def __init__(self, backup_id, error: Exception):
        self.backup_id = backup_id
        self.error = error
        super().__init__(f'Could not delete {backup_id}: {error}')
