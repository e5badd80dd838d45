"""
One backup run: lock, checks, plan, engine, cleanup.
"""
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from innobackup_runner import chain, lock, planner, retention
from innobackup_runner.database import DatabaseProbe
from innobackup_runner.engine.base import EngineResult, ExecutionAdapter
from innobackup_runner.errors import DestinationUnwritable, EngineInvocationFailed
from innobackup_runner.utils.config import RunnerConfig
from innobackup_runner.utils.datatypes import BackupId, BackupKind, BackupPlan
from innobackup_runner.utils.logging import Notifier


class RunResult:
    """
    Summary of a successful run.
    """

    def __init__(self, plan: BackupPlan, artifact_path: Optional[Path],
                 deleted: List[BackupId]):
        self.plan = plan
        self.artifact_path = artifact_path
        self.deleted = deleted


def check_writable(directory: Path) -> None:
    """
    :raises DestinationUnwritable: if directory is missing or not writable
    """
    if not os.path.isdir(directory) or not os.access(directory, os.W_OK):
        raise DestinationUnwritable(f'{directory} does not exist or is not writable')


def _check_result(result: EngineResult, engine_name: str, notifier: Notifier) -> None:
    if result.success:
        return
    notifier.notify(f'{engine_name} failed:', level='ERROR')
    notifier.notify(f'Error output from {engine_name} :', level='ERROR')
    notifier.notify(result.output, level='ERROR')
    raise EngineInvocationFailed(f'{engine_name} did not report success', result.output)


def execute_plan(plan: BackupPlan, engine: ExecutionAdapter, config: RunnerConfig,
                 notifier: Notifier, apply_log: bool = False) -> EngineResult:
    """
    Run the engine for the given plan.
    :param plan: plan of this run
    :param engine: backup engine
    :param config: run config
    :param notifier: status sink
    :param apply_log: prepare a new full backup after creating it
    :return: result of the backup step
    :raises EngineInvocationFailed: if a step fails
    """
    if plan.kind is BackupKind.INCREMENTAL:
        notifier.notify(f'incremental : {plan.target_directory}')
        notifier.notify(f'incremental-basedir : {plan.base_directory}')
        result = engine.run_incremental(plan.target_directory, plan.base_directory,
                                        config.concurrency)
        _check_result(result, config.engine, notifier)
        return result

    result = engine.run_full(plan.target_directory, config.concurrency)
    _check_result(result, config.engine, notifier)
    if apply_log:
        notifier.notify('Prepare full backup')
        if result.artifact_path is None:
            raise EngineInvocationFailed(
                f'{config.engine} did not name the created backup, cannot prepare it',
                result.output)
        _check_result(engine.apply_log(result.artifact_path, config.concurrency),
                      config.engine, notifier)
    return result


def run_backup(config: RunnerConfig, engine: ExecutionAdapter, notifier: Notifier,
               force_full: bool = False, apply_log: Optional[bool] = None,
               database: Optional[DatabaseProbe] = None,
               clock: Callable[[], datetime] = datetime.now) -> RunResult:
    """
    Create a full or incremental backup and delete expired generations.
    Fatal errors are reported through the notifier and raised.
    :param config: run config
    :param engine: backup engine
    :param notifier: status sink
    :param force_full: always create a full backup
    :param apply_log: prepare new full backups. Taken from the config if None.
    :param database: probe for the server, skipped if None
    :param clock: source of the current time
    :return: summary of the run
    """
    apply_log = config.apply_log if apply_log is None else apply_log
    start = time.monotonic()
    try:
        with lock.locked(config.lock_file):
            engine.check_installed()
            check_writable(config.full_root)
            check_writable(config.incr_root)
            if database is not None:
                database.check()

            now = clock()
            state = chain.inspect(config.full_root, config.incr_root)
            plan = planner.decide(now, state, force_full, config.full_backup_life,
                                  config.skew_tolerance)
            if plan.kind is BackupKind.INCREMENTAL:
                notifier.notify('New incremental backup')
                try:
                    plan.target_directory.mkdir(exist_ok=True)
                except OSError as e:
                    raise DestinationUnwritable(
                        f'{plan.target_directory} could not be created: {e}') from e
                check_writable(plan.target_directory)
                if state.latest_incremental is None:
                    notifier.notify('This is the first incremental backup')
                else:
                    notifier.notify('This is a 2+ incremental backup')
            else:
                notifier.notify('New full backup')

            result = execute_plan(plan, engine, config, notifier, apply_log=apply_log)
            notifier.notify(f'Databases backed up successfully to : {result.artifact_path}')

            # the newest full backup is the base of the chain this run extended or created
            latest_full = chain.inspect(config.full_root, config.incr_root).latest_full
            deleted = retention.sweep(config.full_root, config.incr_root, clock(),
                                      config.retention_window, notifier,
                                      in_use=latest_full.id if latest_full else None)
    except (KeyboardInterrupt, SystemExit):
        notifier.notify('Backup interrupted', level='CRITICAL')
        raise
    except Exception as e:
        notifier.notify(str(e), level='CRITICAL')
        raise

    spent = int((time.monotonic() - start) // 60)
    notifier.notify(f'Backup took {spent} minutes')
    notifier.notify(f'Completed : {clock():%c}')
    return RunResult(plan, result.artifact_path, deleted)
