"""
Process Monitor - periodic enumerate / classify / terminate loop

An APScheduler interval job calls tick() while a session is active. A tick
enumerates outside the engine lock, then classifies and dispatches
terminations under it. stop() bumps the run generation while the controller
holds that lock, so a tick that was already enumerating when the session ended
finds a stale generation and does nothing.
"""

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, List, Optional, Set

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from lockedin.exceptions import EnumerationFailure
from lockedin.models import Classification, NotificationKind, ProcessRecord, SessionCounters
from lockedin.services.classifier import classify
from lockedin.services.notifications import NotificationService
from lockedin.services.process_inspector import ProcessInspector
from lockedin.utils.text_utils import display_name

logger = logging.getLogger(__name__)

TICK_JOB_ID = 'process_monitor_tick'


@dataclass
class TickReport:
    """What one tick saw and did"""
    seen: int = 0
    blocked: List[ProcessRecord] = field(default_factory=list)
    restricted: List[ProcessRecord] = field(default_factory=list)
    skipped: bool = False

    @property
    def terminated_pids(self) -> List[int]:
        return [record.pid for record in self.blocked + self.restricted]


class ProcessMonitor:
    """Owns the scan loop for the lifetime of one session"""

    def __init__(self, inspector: ProcessInspector,
                 notifications: NotificationService,
                 lock: asyncio.Lock,
                 system_set: Iterable[str],
                 interval_seconds: float = 3.0):
        self.inspector = inspector
        self.notifications = notifications
        self.system_set: FrozenSet[str] = frozenset(system_set)
        self.interval_seconds = interval_seconds
        self.counters = SessionCounters()

        self._lock = lock
        self.own_pid = os.getpid()
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False
        self._generation = 0
        self._allow_list: FrozenSet[str] = frozenset()
        self._block_list_provider: Callable[[], Iterable[str]] = frozenset
        self._enforce_allow_list = False
        self._terminations: Set[asyncio.Task] = set()
        self.tick_count = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def enforce_allow_list(self) -> bool:
        return self._enforce_allow_list

    @property
    def allow_list(self) -> FrozenSet[str]:
        return self._allow_list

    # ===== LIFECYCLE =====

    def start(self, allow_list: Iterable[str],
              block_list_provider: Callable[[], Iterable[str]],
              enforce_allow_list: bool = False,
              schedule: bool = True) -> None:
        """Begin ticking; must be called from inside the running event loop"""
        if self._running:
            logger.warning("⚠️ Process monitor already running")
            return

        self._generation += 1
        self._allow_list = frozenset(allow_list)
        self._block_list_provider = block_list_provider
        self._enforce_allow_list = enforce_allow_list
        self._running = True

        if schedule:
            self._scheduler = AsyncIOScheduler(event_loop=asyncio.get_running_loop())
            self._scheduler.add_job(
                self.tick,
                IntervalTrigger(seconds=self.interval_seconds),
                id=TICK_JOB_ID,
                max_instances=1,
                coalesce=True,
                replace_existing=True
            )
            self._scheduler.start()

        mode = "enforcing allow-list" if enforce_allow_list else "block-list only"
        logger.info(f"👁️ Process monitor started ({mode}, every {self.interval_seconds}s)")

    def stop(self) -> None:
        """No tick runs termination logic once this returns"""
        if not self._running:
            return

        self._running = False
        self._generation += 1
        self._allow_list = frozenset()

        if self._scheduler is not None:
            try:
                self._scheduler.remove_job(TICK_JOB_ID)
            except JobLookupError:
                pass
            if self._scheduler.running:
                self._scheduler.shutdown(wait=False)
            self._scheduler = None

        logger.info(f"⏹️ Process monitor stopped after {self.tick_count} ticks")

    def reset_counters(self) -> None:
        self.counters.reset()
        self.tick_count = 0

    # ===== TICK =====

    async def tick(self) -> TickReport:
        if not self._running:
            return TickReport(skipped=True)
        generation = self._generation

        try:
            records = await self.inspector.list_processes()
        except EnumerationFailure as e:
            logger.warning(f"⚠️ Skipping tick, enumeration failed: {e}")
            return TickReport(skipped=True)

        async with self._lock:
            if not self._running or generation != self._generation:
                logger.debug("Tick finished after session ended, discarding")
                return TickReport(skipped=True)

            self.tick_count += 1
            report = TickReport(seen=len(records))
            block_list = frozenset(self._block_list_provider())

            for record in records:
                if not record.name.strip() or record.pid == self.own_pid:
                    continue

                verdict = classify(record.name, self._allow_list, block_list, self.system_set)

                if verdict is Classification.BLOCKED:
                    self._dispatch_termination(record)
                    self.counters.blocked_attempts += 1
                    report.blocked.append(record)
                    self.notifications.notify(
                        NotificationKind.BLOCKED,
                        f"Blocked {display_name(record.name)} from running"
                    )
                elif verdict is Classification.UNCLASSIFIED and self._enforce_allow_list:
                    self._dispatch_termination(record)
                    self.counters.distractions += 1
                    report.restricted.append(record)
                    self.notifications.notify(
                        NotificationKind.RESTRICTED,
                        f"Closed {display_name(record.name)}: not on this session's allow-list"
                    )

        if report.blocked or report.restricted:
            logger.info(
                f"🚫 Tick {self.tick_count}: {len(report.blocked)} blocked, "
                f"{len(report.restricted)} restricted of {report.seen} processes"
            )
        return report

    def _dispatch_termination(self, record: ProcessRecord) -> None:
        task = asyncio.create_task(self.inspector.terminate(record.pid, record.name))
        self._terminations.add(task)
        task.add_done_callback(self._terminations.discard)

    async def drain(self) -> None:
        """Wait for termination requests still in flight"""
        if self._terminations:
            await asyncio.gather(*list(self._terminations), return_exceptions=True)
