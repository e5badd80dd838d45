"""
helpers for converting backup directory names to timestamps and back
"""
from datetime import datetime
from pathlib import Path

# directory naming used by innobackupex for new backups
TIMESTAMP_FORMAT = '%Y-%m-%d_%H-%M-%S'


def parse_timestamp(timestamp: str) -> datetime:
    """
    Convert the given timestamp string to a datetime object.
    Format: TIMESTAMP_FORMAT
    :param timestamp: timestamp to parse
    :return: parsed timestamp
    """
    return datetime.strptime(timestamp, TIMESTAMP_FORMAT)


def format_timestamp(timestamp: datetime) -> str:
    """
    Convert the given datetime object to the correct string.
    :param timestamp: datetime object
    :return: formatted time
    """
    return timestamp.strftime(TIMESTAMP_FORMAT)


def parse_dir_name(dir_path: str or Path) -> datetime:
    """
    Parse the name of a backup directory.
    Only the last path component is used.
    :param dir_path: path or name of the directory
    :return: creation timestamp of the backup
    :raises ValueError: if the name is not a backup timestamp
    """
    name = Path(dir_path).name
    try:
        return parse_timestamp(name)
    except ValueError:
        raise ValueError(f'Invalid backup directory name: {dir_path}') from None
