"""
Removes expired backup generations.
A generation is a full backup together with all of its incremental backups.
"""
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from innobackup_runner.chain import list_backup_ids, orphaned_chains
from innobackup_runner.errors import PruneFailure
from innobackup_runner.utils.datatypes import BackupId
from innobackup_runner.utils.logging import Notifier


@dataclass(frozen=True)
class RetentionWindow:
    """
    :param full_backup_life: lifetime of a full backup in seconds
    :param keep_generations: number of expired generations to keep
    """
    full_backup_life: int
    keep_generations: int

    @property
    def cutoff(self) -> int:
        """
        Age in seconds after which a generation gets deleted.
        """
        return self.full_backup_life * (self.keep_generations + 1)


def _remove_tree(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path)


def remove_generation(full_root: Path, incr_root: Path, backup_id: BackupId) -> None:
    """
    Delete the incremental chain of a full backup and the full backup itself.
    The full backup is only deleted after its chain is gone.
    :raises PruneFailure: if a directory could not be deleted
    """
    try:
        _remove_tree(Path(incr_root) / str(backup_id))
        _remove_tree(Path(full_root) / str(backup_id))
    except OSError as e:
        raise PruneFailure(backup_id, e) from e


def sweep(full_root: Path, incr_root: Path, now: datetime, window: RetentionWindow,
          notifier: Notifier, in_use: Optional[BackupId] = None) -> List[BackupId]:
    """
    Delete all generations older than the retention window.
    Failures are reported and do not stop the sweep.
    :param full_root: directory with full backups
    :param incr_root: directory with incremental chains
    :param now: current time
    :param window: retention settings
    :param notifier: receives a line per deleted or failed generation
    :param in_use: full backup of the generation the current run wrote to. Never deleted.
    :return: ids of the deleted full backups
    """
    notifier.notify(f'Cleaning up old backups (older than {window.cutoff // 60} minutes)')
    deleted = []
    for backup_id in list_backup_ids(full_root):
        if backup_id.age(now) <= window.cutoff:
            continue
        if backup_id == in_use:
            notifier.notify(f'keeping {backup_id}, its chain is in use', level='WARNING')
            continue
        notifier.notify(f'deleting {backup_id}')
        try:
            remove_generation(full_root, incr_root, backup_id)
        except PruneFailure as e:
            notifier.notify(str(e), level='ERROR')
            continue
        deleted.append(backup_id)

    for chain_dir in orphaned_chains(full_root, incr_root):
        notifier.notify(f'Full backup for {chain_dir} is missing! Deleting...', level='WARNING')
        try:
            shutil.rmtree(chain_dir)
        except OSError as e:
            notifier.notify(f'Could not delete {chain_dir}: {e}', level='ERROR')
    return deleted
