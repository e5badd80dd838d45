"""
Creates full and incremental MySQL backups with innobackupex.
"""
import sys
from pathlib import Path

import click
from dynaconf import Dynaconf
from loguru import logger

from innobackup_runner.chain import load_backup_sets
from innobackup_runner.database import DatabaseProbe
from innobackup_runner.engine.innobackupex import InnobackupexAdapter
from innobackup_runner.errors import ExitCode, RunnerError
from innobackup_runner.orchestrator import run_backup
from innobackup_runner.utils.config import RunnerConfig, parse_config
from innobackup_runner.utils.logging import LoguruNotifier, setup_logging


class CtxArgs:
    """
    Cache object for arguments between click group and commands.
    """

    def __init__(self, config_folder: Path, settings: Dynaconf, config: RunnerConfig):
        self.config_folder = Path(config_folder)
        self.settings = settings
        self.config = config


@click.group()
@click.option(
    '-c',
    '--config-folder',
    help='Folder where the config files are stored. /etc/innobackup-runner by default.'
         ' Make sure that the user has read and write access to the folder.',
    default='/etc/innobackup-runner',
)
@click.option('-h', '--host', default=None, help='MySQL host. 127.0.0.1 by default.')
@click.option('-u', '--user', default=None, help='MySQL user. root by default.')
@click.option('-p', '--password', default=None, help='MySQL password.')
@click.option(
    '-d', '--destination',
    default=None, type=click.Path(file_okay=False, path_type=Path),
    help='Backup root containing the full and incr folders. /home/.backup/mysql by default.'
)
@click.pass_context
@click.version_option()
def main(ctx, config_folder, host, user, password, destination):
    """
    Create full and incremental MySQL backups with innobackupex.
    """
    notifier = LoguruNotifier()
    try:
        settings = parse_config(Path(config_folder))
        setup_logging(settings('logging.dir', default=None),
                      settings('logging.level', default='INFO'),
                      syslog=settings('logging.syslog', cast=bool, default=False))
        config = RunnerConfig.from_settings(settings, host=host, user=user,
                                            password=password, destination=destination)
    except RunnerError as e:
        notifier.notify(f'Error during config parsing! {e}', level='CRITICAL')
        sys.exit(e.exit_code)
    except Exception as e:
        notifier.notify(f'Error during config parsing! {e}', level='CRITICAL')
        sys.exit(ExitCode.CONFIG_ERROR)
    ctx.obj = CtxArgs(config_folder, settings, config)


@main.command('backup')
@click.option(
    '-f', '--full-backup', 'force_full',
    is_flag=True, show_default=True, default=False,
    help='Force a full backup and ignore the rules for creating incremental backups.'
)
@click.option(
    '-a', '--apply-log',
    is_flag=True, default=False,
    help='Prepare the new full backup for a restore (innobackupex --apply-log).'
)
@click.pass_context
def backup_command(ctx, force_full: bool, apply_log: bool):
    """
    Perform a backup.
    Depending on the age of the newest full backup, this will create a full
    or an incremental backup. Expired backups are deleted afterwards.
    """
    args: CtxArgs = ctx.obj
    config = args.config
    engine = InnobackupexAdapter(host=config.host, user=config.user,
                                 password=config.password, binary=config.engine,
                                 nice=config.nice)
    database = (DatabaseProbe(host=config.host, user=config.user, password=config.password)
                if config.check_database else None)
    try:
        run_backup(config, engine, LoguruNotifier(), force_full=force_full,
                   apply_log=apply_log or None, database=database)
    except RunnerError as e:
        # already reported by the orchestrator
        sys.exit(e.exit_code)
    except Exception as e:
        logger.exception(f'Backup failed! {e}')
        sys.exit(ExitCode.ENGINE_FAILED)


@main.command('list')
@click.pass_context
def list_command(ctx):
    """
    List all existing backups.
    """
    args: CtxArgs = ctx.obj
    config = args.config
    existing_backups = load_backup_sets(config.full_root, config.incr_root)
    if len(existing_backups) == 0:
        click.secho('None! You have to create a backup first...', fg='red',
                    file=sys.stderr)
        sys.exit(1)

    output = click.style('Listing backups:\n', fg='green', bold=True)
    for full_backup in sorted(existing_backups.values(), key=lambda x: x.id):
        output += click.style(f'{full_backup} @ {full_backup.timestamp_str}\n\t', fg='cyan')
        if len(full_backup.incremental_backups) == 0:
            output += click.style('No incremental backups.', fg='red')
        else:
            output += click.style('Incremental backups:', fg='bright_green')
        for incremental_backup in full_backup.incremental_backups:
            output += click.style(
                f'\n\t\t{incremental_backup.path} @ {incremental_backup.timestamp_str}'
                f' (base: {incremental_backup.base_directory.name})',
                fg='yellow'
            )
        output += '\n\n'
    output += (
        f'Full backups expire after {config.full_backup_life}s, '
        f'{config.keep} expired generations are kept.'
    )
    click.echo(output)


if __name__ == '__main__':
    main()
