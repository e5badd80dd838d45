"""
Reads the backup directory tree and resolves incremental chains.

Layout:
    <destination>/full/<timestamp>/
    <destination>/incr/<full timestamp>/<timestamp>/
"""
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from innobackup_runner.utils.datatypes import BackupId, FullBackup, IncrementalBackup


class ChainState:
    """
    Latest full backup and the newest incremental backup of its chain.
    """

    def __init__(self, full_root: Path, incr_root: Path,
                 latest_full: Optional[FullBackup] = None,
                 latest_incremental: Optional[IncrementalBackup] = None):
        self.full_root = Path(full_root)
        self.incr_root = Path(incr_root)
        self.latest_full = latest_full
        self.latest_incremental = latest_incremental

    @property
    def chain_dir(self) -> Optional[Path]:
        """
        Directory holding the incremental backups of the latest full backup.
        """
        if not self.latest_full:
            return None
        return self.incr_root / str(self.latest_full.id)

    @property
    def incremental_base(self) -> Optional[Path]:
        """
        Base directory for the next incremental backup.
        The newest incremental backup continues the chain. Without one the
        full backup itself is the base.
        """
        if self.latest_incremental:
            return self.latest_incremental.path
        if self.latest_full:
            return self.latest_full.path
        return None


def list_backup_ids(root: Path) -> List[BackupId]:
    """
    Get the ids of all backup directories directly below root.
    Entries which are no backups are skipped.
    :param root: directory to scan
    :return: sorted list of ids, oldest first
    """
    root = Path(root)
    if not root.is_dir():
        return []
    ids = []
    for entry in root.iterdir():
        if not entry.is_dir():
            continue
        try:
            ids.append(BackupId.parse(entry.name))
        except ValueError:
            logger.warning(f'Invalid directory name in backup dir: {entry}')
    return sorted(ids)


def inspect(full_root: Path, incr_root: Path) -> ChainState:
    """
    Find the latest full backup and the head of its incremental chain.
    :param full_root: directory with full backups
    :param incr_root: directory with incremental chains
    :return: current chain state
    """
    state = ChainState(full_root, incr_root)
    full_ids = list_backup_ids(full_root)
    if not full_ids:
        return state
    state.latest_full = FullBackup(full_ids[-1], state.full_root)
    for inc_id in list_backup_ids(state.chain_dir):
        state.latest_full.add_incremental_backup(inc_id, state.chain_dir)
    state.latest_incremental = state.latest_full.latest_incremental_backup
    return state


def load_backup_sets(full_root: Path, incr_root: Path) -> Dict[BackupId, FullBackup]:
    """
    Get all existing full backups with their incremental backups.
    :param full_root: directory with full backups
    :param incr_root: directory with incremental chains
    :return: dict of all full backups
    """
    backups: Dict[BackupId, FullBackup] = {}
    for full_id in list_backup_ids(full_root):
        full_backup = FullBackup(full_id, Path(full_root))
        chain_dir = Path(incr_root) / str(full_id)
        for inc_id in list_backup_ids(chain_dir):
            full_backup.add_incremental_backup(inc_id, chain_dir)
        backups[full_id] = full_backup
    return backups


def orphaned_chains(full_root: Path, incr_root: Path) -> List[Path]:
    """
    Incremental chain directories without their full backup.
    :param full_root: directory with full backups
    :param incr_root: directory with incremental chains
    :return: list of chain directories
    """
    existing = set(list_backup_ids(full_root))
    return [Path(incr_root) / str(chain_id)
            for chain_id in list_backup_ids(incr_root)
            if chain_id not in existing]
