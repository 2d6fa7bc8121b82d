"""
Process Inspector - lists running processes and terminates them

Enumeration reports everything psutil can see; filtering belongs to the
classifier. Termination escalates from a graceful stop to a forced kill. A
process that vanishes between enumeration and the kill is the normal case, not
an error.
"""

import asyncio
import ctypes
import logging
import os
import sys
from abc import ABC, abstractmethod
from typing import List

import psutil

from lockedin.exceptions import EnumerationFailure, TerminationFailure
from lockedin.models import InspectorCapabilities, ProcessRecord

logger = logging.getLogger(__name__)


class ProcessInspector(ABC):
    """Platform capability the monitor and controller depend on"""

    @abstractmethod
    async def list_processes(self) -> List[ProcessRecord]:
        """Every running process; raises EnumerationFailure"""

    @abstractmethod
    async def terminate(self, pid: int, name: str) -> bool:
        """Graceful then forced termination; never raises"""

    @abstractmethod
    def capabilities(self) -> InspectorCapabilities:
        """What this inspector can do in the current environment"""


def is_elevated() -> bool:
    """Administrator on Windows, effective root elsewhere"""
    if sys.platform == "win32":
        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())
        except (AttributeError, OSError):
            return False
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


class PsutilProcessInspector(ProcessInspector):
    """psutil-backed inspector; blocking calls run in worker threads"""

    def __init__(self, grace_seconds: float = 2.0):
        self.grace_seconds = grace_seconds

    # ===== ENUMERATION =====

    def _list_processes_sync(self) -> List[ProcessRecord]:
        records = []
        try:
            for proc in psutil.process_iter(["pid", "name"]):
                try:
                    records.append(ProcessRecord(proc.info.get("name") or "", proc.info["pid"]))
                except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                    # Gone or hidden from us
                    pass
        except (psutil.Error, OSError) as e:
            raise EnumerationFailure(f"process listing failed: {e}") from e
        return records

    async def list_processes(self) -> List[ProcessRecord]:
        return await asyncio.to_thread(self._list_processes_sync)

    # ===== TERMINATION =====

    def _force_kill(self, proc: psutil.Process, name: str) -> None:
        try:
            proc.kill()
            proc.wait(timeout=self.grace_seconds)
        except psutil.NoSuchProcess:
            return
        except (psutil.AccessDenied, psutil.TimeoutExpired) as e:
            raise TerminationFailure(proc.pid, name, type(e).__name__) from e

    def _terminate_sync(self, pid: int, name: str) -> bool:
        try:
            proc = psutil.Process(pid)
        except psutil.NoSuchProcess:
            logger.debug(f"💨 {name} (PID {pid}) already exited")
            return True

        try:
            try:
                proc.terminate()
                gone, alive = psutil.wait_procs([proc], timeout=self.grace_seconds)
                if not alive:
                    logger.info(f"🛑 Closed {name} (PID {pid})")
                    return True
                logger.info(f"⏳ {name} (PID {pid}) ignored graceful stop, forcing")
            except psutil.NoSuchProcess:
                return True
            except psutil.AccessDenied:
                logger.info(f"🔐 Graceful stop of {name} (PID {pid}) denied, forcing")

            self._force_kill(proc, name)
            logger.info(f"💥 Killed {name} (PID {pid})")
            return True

        except TerminationFailure as e:
            logger.warning(f"⚠️ {e}")
            return False
        except (psutil.Error, OSError) as e:
            logger.warning(f"⚠️ {TerminationFailure(pid, name, str(e))}")
            return False

    async def terminate(self, pid: int, name: str) -> bool:
        return await asyncio.to_thread(self._terminate_sync, pid, name)

    # ===== CAPABILITIES =====

    def capabilities(self) -> InspectorCapabilities:
        return InspectorCapabilities(platform=sys.platform, elevated=is_elevated())
