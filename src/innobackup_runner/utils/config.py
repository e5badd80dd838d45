"""
config handling for dynaconf
"""
import os
from dataclasses import dataclass, fields
from importlib.resources import files
from pathlib import Path
from typing import Optional

from dynaconf import Dynaconf, ValidationError, Validator
from loguru import logger

from innobackup_runner.errors import ConfigError
from innobackup_runner.retention import RetentionWindow


def parse_config(config_folder: Path) -> Dynaconf:
    """
    Parse config with dynaconf.
    The default config is written to the folder if it does not exist yet.
    :param config_folder: folder with default.toml and config.toml
    :return: settings
    :raises ConfigError: if the default config cannot be created or the
        settings cannot be loaded or validated
    """
    config_folder = Path(config_folder)
    default_config = config_folder / 'default.toml'
    if not os.path.isfile(default_config):
        try:
            config_folder.mkdir(parents=True, exist_ok=True)
            with open(default_config, 'w', encoding='utf-8') as f:
                f.write(files('innobackup_runner.data').joinpath('default.toml').read_text())
        except OSError as e:
            raise ConfigError(f'Failed to create default config {default_config}. '
                              'Consider creating the folder writeable for this user '
                              f'or choose a different path. Error: {e}') from e
        logger.info(f'Created default config {default_config}')

    settings = Dynaconf(
        envvar_prefix='INNOBACKUP_RUNNER',
        settings_files=['default.toml', 'config.toml'],
        root_path=str(config_folder),
        merge_enabled=True,
        validators=[
            Validator('mysql.host', default='127.0.0.1'),
            Validator('mysql.user', default='root'),
            Validator('backup.destination', must_exist=True),
            Validator('backup.full_backup_life', cast=int, default=86400, gt=0),
            Validator('backup.keep', cast=int, default=7, gte=0),
            Validator('backup.skew_tolerance', cast=int, default=5, gte=0),
            Validator('backup.parallel', cast=int, default=0, gte=0),
        ]
    )
    try:
        settings.validators.validate()
    except ValidationError as e:
        raise ConfigError(f'Invalid configuration: {e}') from e
    except Exception as e:
        # settings files are loaded lazily, parse errors surface here
        raise ConfigError(f'Failed to load configuration from {config_folder}: {e}') from e
    return settings


@dataclass(frozen=True)
class RunnerConfig:
    """
    Settings of one run. Built once and passed to every component.
    """
    host: str = '127.0.0.1'
    user: str = 'root'
    password: Optional[str] = None
    destination: Path = Path('/home/.backup/mysql')
    full_backup_life: int = 86400
    keep: int = 7
    skew_tolerance: int = 5
    parallel: int = 0
    engine: str = 'innobackupex'
    nice: bool = True
    apply_log: bool = False
    check_database: bool = True
    lock_file: Path = Path('/tmp/innobackup-runner.lock')

    @property
    def full_root(self) -> Path:
        return self.destination / 'full'

    @property
    def incr_root(self) -> Path:
        return self.destination / 'incr'

    @property
    def concurrency(self) -> int:
        """
        parallel workers for the engine. Defaults to the number of processors.
        """
        return self.parallel or os.cpu_count() or 1

    @property
    def retention_window(self) -> RetentionWindow:
        return RetentionWindow(full_backup_life=self.full_backup_life,
                               keep_generations=self.keep)

    @classmethod
    def from_settings(cls, settings: Dynaconf, **overrides) -> 'RunnerConfig':
        """
        Freeze the settings. Overrides which are None are ignored.
        :param settings: parsed settings
        :param overrides: values taking precedence over the settings (CLI flags)
        :return: config
        :raises ConfigError: for invalid settings
        """
        try:
            values = dict(
                host=settings('mysql.host', default='127.0.0.1'),
                user=settings('mysql.user', default='root'),
                password=settings('mysql.password', default=None) or None,
                check_database=settings('mysql.check', cast=bool, default=True),
                destination=settings('backup.destination', cast=Path),
                full_backup_life=settings('backup.full_backup_life', cast=int, default=86400),
                keep=settings('backup.keep', cast=int, default=7),
                skew_tolerance=settings('backup.skew_tolerance', cast=int, default=5),
                parallel=settings('backup.parallel', cast=int, default=0),
                engine=settings('backup.engine', default='innobackupex'),
                nice=settings('backup.nice', cast=bool, default=True),
                apply_log=settings('backup.apply_log', cast=bool, default=False),
                lock_file=settings('backup.lock_file', cast=Path,
                                   default='/tmp/innobackup-runner.lock'),
            )
        except (ValidationError, ValueError, TypeError) as e:
            raise ConfigError(f'Invalid configuration: {e}') from e

        known = {f.name for f in fields(cls)}
        for key, value in overrides.items():
            if key not in known:
                raise ConfigError(f'Unknown setting: {key}')
            if value is not None:
                values[key] = value
        values['destination'] = Path(values['destination'])
        values['lock_file'] = Path(values['lock_file'])
        return cls(**values)
