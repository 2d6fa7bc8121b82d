import os
import sys
import logging
from pathlib import Path
from typing import Optional, TextIO

import psutil

logger = logging.getLogger(__name__)


class ProcessLock:
    """Cross-platform lock file guarding a single running engine"""

    def __init__(self, lockfile):
        self.lockfile = Path(lockfile)
        self.fp: Optional[TextIO] = None
        self.pid: Optional[int] = None

        self.lockfile.parent.mkdir(exist_ok=True, parents=True)

    @property
    def held(self) -> bool:
        return self.fp is not None

    def acquire(self) -> bool:
        """Take the lock, clearing a stale one left by a dead engine"""
        if self.held:
            return True

        if self.lockfile.exists() and not self._clear_stale_lock():
            return False

        try:
            self.fp = open(self.lockfile, "x", encoding="utf-8")
        except FileExistsError:
            logger.warning(f"⚠️ Another engine grabbed {self.lockfile} first")
            return False
        except OSError as e:
            logger.warning(f"⚠️ Could not create lock file {self.lockfile}: {e}")
            return False

        if sys.platform != "win32":
            try:
                import fcntl
                fcntl.flock(self.fp, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except OSError as e:
                logger.warning(f"⚠️ Could not lock {self.lockfile}: {e}")
                self.fp.close()
                self.fp = None
                return False

        self.pid = os.getpid()
        self.fp.write(str(self.pid))
        self.fp.flush()

        logger.info(f"🔒 Lock acquired (PID: {self.pid})")
        return True

    def _clear_stale_lock(self) -> bool:
        """True when the existing lock file was stale and has been removed"""
        try:
            existing_pid = int(self.lockfile.read_text(encoding="utf-8").strip())
        except (ValueError, OSError):
            existing_pid = None

        if existing_pid is not None and existing_pid != os.getpid() and psutil.pid_exists(existing_pid):
            logger.warning(f"⚠️ Engine already running (PID: {existing_pid})")
            return False

        logger.info(f"🧹 Removing stale lock (PID: {existing_pid})")
        try:
            self.lockfile.unlink()
        except FileNotFoundError:
            pass
        return True

    def release(self):
        """Release the lock and delete the lock file"""
        if not self.held:
            return

        if sys.platform != "win32":
            import fcntl
            fcntl.flock(self.fp, fcntl.LOCK_UN)

        self.fp.close()
        self.fp = None

        try:
            self.lockfile.unlink()
        except FileNotFoundError:
            pass

        logger.info(f"🔓 Lock released (PID: {self.pid})")

    def __enter__(self):
        if self.acquire():
            return self
        raise RuntimeError(f"Could not acquire lock {self.lockfile}")

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
