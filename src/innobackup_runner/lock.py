"""
File based lock preventing overlapping runs on one host.

The lock is an exclusive flock on the lock file, held for the whole run.
The kernel drops it when the process dies, so a lock file left behind by a
dead run is simply locked again. The file itself only records the pid of
the owner for error messages.
"""
import fcntl
import os
import signal
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from loguru import logger

from innobackup_runner.errors import AlreadyRunning


class LockHandle:
    """
    Token of an acquired lock.
    """

    def __init__(self, path: Path, pid: int, fd: int):
        self.path = Path(path)
        self.pid = pid
        self.fd = fd

    def __repr__(self):
        return f'LockHandle(path={self.path}, pid={self.pid})'


def _read_pid(path: Path) -> Optional[int]:
    try:
        return int(path.read_text(encoding='utf-8').strip())
    except FileNotFoundError:
        return None
    except ValueError:
        logger.warning(f'Lock file {path} does not contain a pid.')
        return None


def _same_file(path: Path, fd: int) -> bool:
    try:
        current = os.stat(path)
    except FileNotFoundError:
        return False
    opened = os.fstat(fd)
    return (current.st_dev, current.st_ino) == (opened.st_dev, opened.st_ino)


def _lock_file(path: Path) -> Optional[int]:
    """
    Open the lock file and take the exclusive flock without waiting.
    :param path: lock file
    :return: locked file descriptor or None if another process holds the lock
    """
    while True:
        fd = os.open(path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            os.close(fd)
            return None
        except OSError:
            os.close(fd)
            raise
        if _same_file(path, fd):
            return fd
        # the previous owner removed the file between our open and flock
        os.close(fd)


def acquire(path: Path) -> LockHandle:
    """
    Acquire the lock at path.
    A lock file of a dead process is stale and taken over.
    :param path: lock file
    :return: handle of the lock
    :raises AlreadyRunning: if a live process holds the lock
    """
    path = Path(path)
    fd = _lock_file(path)
    if fd is None:
        raise AlreadyRunning(_read_pid(path))

    pid = os.getpid()
    stale = _read_pid(path)
    if stale is not None and stale != pid:
        logger.warning(f'Taking over stale lock {path} (pid {stale}).')
    os.ftruncate(fd, 0)
    os.write(fd, f'{pid}\n'.encode())
    return LockHandle(path, pid, fd)


def release(handle: LockHandle) -> None:
    """
    Delete the lock file and drop the flock.
    A lock file which is not ours anymore is left alone.
    :param handle: handle returned by acquire
    """
    try:
        if _same_file(handle.path, handle.fd):
            handle.path.unlink(missing_ok=True)
        else:
            logger.warning(f'Lock file {handle.path} vanished before release.')
    finally:
        os.close(handle.fd)


def _raise_system_exit(signum, frame):
    raise SystemExit(128 + signum)


@contextmanager
def locked(path: Path) -> Iterator[LockHandle]:
    """
    Hold the lock for the duration of the with block.
    SIGTERM and SIGHUP are turned into SystemExit while the lock is held,
    so the lock is also released if the run gets killed.
    :param path: lock file
    """
    handle = acquire(path)
    previous = {}
    try:
        for signum in (signal.SIGTERM, signal.SIGHUP):
            try:
                previous[signum] = signal.signal(signum, _raise_system_exit)
            except ValueError:
                # not the main thread
                pass
        yield handle
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
        release(handle)
