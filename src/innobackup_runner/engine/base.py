from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class EngineResult:
    """
    Outcome of one engine invocation.
    :param success: engine reported success
    :param artifact_path: directory of the created backup
    :param output: captured diagnostic output of the engine
    """
    success: bool
    artifact_path: Optional[Path] = None
    output: str = ''


class ExecutionAdapter(ABC):
    """
    ABC for backup engines.
    Implements how full and incremental backups are created and prepared.
    All calls block until the engine is done.
    """

    @abstractmethod
    def check_installed(self) -> None:
        """
        :raises EnginePrerequisiteMissing: if the engine cannot be run
        """
        pass

    @abstractmethod
    def run_full(self, target_dir: Path, concurrency: int) -> EngineResult:
        """
        Create a full backup. The engine creates the backup directory in target_dir.
        :param target_dir: directory with full backups
        :param concurrency: number of parallel workers of the engine
        """
        pass

    @abstractmethod
    def run_incremental(self, target_dir: Path, base_dir: Path,
                        concurrency: int) -> EngineResult:
        """
        Create an incremental backup on top of base_dir.
        :param target_dir: chain directory of the full backup
        :param base_dir: full backup or previous incremental backup
        :param concurrency: number of parallel workers of the engine
        """
        pass

    @abstractmethod
    def apply_log(self, target_dir: Path, concurrency: int) -> EngineResult:
        """
        Prepare a full backup for a restore.
        :param target_dir: directory of the full backup
        :param concurrency: number of parallel workers of the engine
        """
        pass
