"""
Contains classes representing backup identifiers, backup sets and plans.
"""
from abc import ABC
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import total_ordering
from pathlib import Path
from typing import List, Optional

from .converters import format_timestamp, parse_dir_name


@total_ordering
class BackupId:
    """
    Sortable identifier of a backup. Wraps the creation timestamp
    encoded in the name of the backup directory.
    """

    def __init__(self, timestamp: datetime):
        self.timestamp = timestamp

    @classmethod
    def parse(cls, name: str or Path) -> 'BackupId':
        """
        Parse a directory name.
        :param name: name or path of a backup directory
        :return: backup id
        :raises ValueError: for names which are not backup timestamps
        """
        return cls(parse_dir_name(name))

    def age(self, now: datetime) -> float:
        """
        :param now: reference time
        :return: seconds passed between the creation of the backup and now
        """
        return (now - self.timestamp).total_seconds()

    def __str__(self):
        return format_timestamp(self.timestamp)

    def __repr__(self):
        return f'BackupId({self})'

    def __eq__(self, other):
        if not isinstance(other, BackupId):
            return NotImplemented
        return self.timestamp == other.timestamp

    def __lt__(self, other):
        if not isinstance(other, BackupId):
            return NotImplemented
        return self.timestamp < other.timestamp

    def __hash__(self):
        return hash(self.timestamp)


class Backup(ABC):
    """
    Abstract base class for backups.
    """

    def __init__(self, backup_id: BackupId, root: Path):
        """
        :param backup_id: id of the backup (= name of its directory)
        :param root: directory containing the backup directory
        """
        self.id = backup_id
        self.root = Path(root)

    def __str__(self):
        return f'Backup {self.id}'

    @property
    def path(self) -> Path:
        """
        directory of the backup
        """
        return self.root / str(self.id)

    @property
    def created_at(self) -> datetime:
        return self.id.timestamp

    @property
    def timestamp_str(self) -> str:
        """
        timestamp as string without seconds
        :return: timestamp as string
        """
        return self.created_at.strftime('%Y-%m-%d %H:%M')


class IncrementalBackup(Backup):
    """
    Represents incremental backups.
    """

    def __init__(self, parent: 'FullBackup', backup_id: BackupId, root: Path):
        """
        :param parent: full backup the chain belongs to
        :param backup_id: id of the backup
        :param root: chain directory (incr/<parent id>)
        """
        super().__init__(backup_id, root)
        self.parent = parent

    def __str__(self):
        return f'Incremental Backup {self.path}'

    @property
    def parent_full_id(self) -> BackupId:
        return self.parent.id

    @property
    def base_directory(self) -> Path:
        """
        Directory this backup was computed against.
        The full backup for the first one in a chain, the previous incremental otherwise.
        """
        predecessor = None
        for incremental in self.parent.incremental_backups:
            if incremental.id >= self.id:
                break
            predecessor = incremental
        return predecessor.path if predecessor else self.parent.path


class FullBackup(Backup):
    """
    Represents full backups.
    """

    def __init__(self, backup_id: BackupId, root: Path):
        super().__init__(backup_id, root)
        self.incremental_backups: List[IncrementalBackup] = []

    def __str__(self):
        return f'Full Backup {self.path}'

    def add_incremental_backup(self, backup_id: BackupId, root: Path) -> IncrementalBackup:
        """
        Attach an existing incremental backup to this chain and keep the chain sorted.
        :param backup_id: id of the incremental backup
        :param root: chain directory
        :return: created object
        """
        inc = IncrementalBackup(parent=self, backup_id=backup_id, root=root)
        self.incremental_backups.append(inc)
        self.incremental_backups.sort(key=lambda x: x.id)
        return inc

    @property
    def latest_incremental_backup(self) -> Optional[IncrementalBackup]:
        return self.incremental_backups[-1] if self.incremental_backups else None


class BackupKind(Enum):
    """
    Kind of backup created by a run.
    """
    FULL = 'full'
    INCREMENTAL = 'incremental'


@dataclass(frozen=True)
class BackupPlan:
    """
    Decision for one run.
    """
    kind: BackupKind
    target_directory: Path
    base_directory: Optional[Path] = None

    def __str__(self):
        if self.kind is BackupKind.INCREMENTAL:
            return (f'incremental backup into {self.target_directory} '
                    f'(base: {self.base_directory})')
        return f'full backup into {self.target_directory}'
