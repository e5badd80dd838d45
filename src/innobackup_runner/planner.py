"""
Decides whether a run creates a full or an incremental backup.
"""
from datetime import datetime

from innobackup_runner.chain import ChainState
from innobackup_runner.utils.datatypes import BackupKind, BackupPlan

# slack for clock and measurement differences
SKEW_TOLERANCE = 5


def decide(now: datetime, chain_state: ChainState, force_full: bool,
           full_backup_life: int, skew_tolerance: int = SKEW_TOLERANCE) -> BackupPlan:
    """
    Plan the next backup.
    An incremental backup is created if a full backup exists, no full backup
    is forced and the full backup is at most full_backup_life (+ tolerance)
    seconds old. force_full always starts a new chain.
    :param now: current time
    :param chain_state: result of chain.inspect
    :param force_full: ignore the rules for incremental backups
    :param full_backup_life: lifetime of a full backup in seconds
    :param skew_tolerance: tolerance in seconds
    :return: plan for this run
    """
    latest_full = chain_state.latest_full
    if (latest_full is not None
            and not force_full
            and latest_full.id.age(now) <= full_backup_life + skew_tolerance):
        return BackupPlan(
            kind=BackupKind.INCREMENTAL,
            target_directory=chain_state.chain_dir,
            base_directory=chain_state.incremental_base,
        )
    # innobackupex names the new backup directory itself
    return BackupPlan(kind=BackupKind.FULL, target_directory=chain_state.full_root)
