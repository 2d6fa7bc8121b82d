#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Locked In - Session Controller
Focus session state machine

IDLE -> ACTIVE on start(), ACTIVE -> IDLE on stop() or when the expiry timer
fires. Every state change, block-list mutation and monitor tick decision runs
under one asyncio.Lock, so the expiry timer and a manual stop can race freely:
whichever arrives second finds the controller idle and returns None.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Union

from lockedin.database import JsonStore
from lockedin.exceptions import EnumerationFailure
from lockedin.models import (
    EndReason,
    LaunchResult,
    NotificationKind,
    Session,
    SessionSettings,
    SessionState,
)
from lockedin.services.app_launcher import AppLauncher
from lockedin.services.classifier import matches
from lockedin.services.notifications import NotificationService
from lockedin.services.process_inspector import ProcessInspector
from lockedin.services.process_monitor import ProcessMonitor
from lockedin.utils.clock import Clock
from lockedin.utils.text_utils import normalize_name

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


class SessionController:
    """Starts and stops focus sessions and owns the block-list"""

    def __init__(self, store: JsonStore,
                 inspector: ProcessInspector,
                 launcher: AppLauncher,
                 monitor: ProcessMonitor,
                 notifications: NotificationService,
                 lock: asyncio.Lock,
                 clock: Optional[Clock] = None,
                 enforce_allow_list: bool = False,
                 launch_delay_seconds: float = 1.0,
                 history_limit: int = DEFAULT_HISTORY_LIMIT,
                 schedule_ticks: bool = True):
        self.store = store
        self.inspector = inspector
        self.launcher = launcher
        self.monitor = monitor
        self.notifications = notifications
        self.clock = clock or Clock()
        self.enforce_allow_list = enforce_allow_list
        self.launch_delay_seconds = launch_delay_seconds
        self.history_limit = history_limit
        self.schedule_ticks = schedule_ticks

        self._lock = lock
        self._state = SessionState.IDLE
        self._current: Optional[Session] = None
        self._expiry_task: Optional[asyncio.Task] = None
        self._last_id = 0

        # A failed load is an empty collection, never a startup failure
        self._block_list = set(store.load_block_list())
        # Every stored record, readable or not, is written back untouched
        self._records: List[Dict[str, Any]] = store.load_history()
        self._history: List[Session] = self._parse_history(self._records)

    def _parse_history(self, records: List[Dict[str, Any]]) -> List[Session]:
        history = []
        for record in records:
            try:
                history.append(Session.from_dict(record))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"⚠️ Keeping unreadable session record out of status: {e}")
        return history

    # ===== STATE =====

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ACTIVE

    @property
    def expiry_task(self) -> Optional[asyncio.Task]:
        return self._expiry_task

    def _next_id(self, now_ms: int) -> str:
        self._last_id = max(now_ms, self._last_id + 1)
        return str(self._last_id)

    # ===== START =====

    async def start(self, settings: Union[SessionSettings, Dict[str, Any]]) -> Session:
        if not isinstance(settings, SessionSettings):
            settings = SessionSettings.model_validate(settings)

        async with self._lock:
            if self.is_active:
                logger.info("🔁 Session already active, finishing it before starting a new one")
                await self._stop_locked(EndReason.REPLACED)

            now = self.clock.now_ms()
            session = Session(
                id=self._next_id(now),
                allowed_apps=list(settings.allowed_apps),
                duration_minutes=settings.duration_minutes,
                start_time=now,
                enforce_allow_list=self.enforce_allow_list,
            )
            logger.info(
                f"🎯 Starting focus session {session.id}: {session.duration_minutes} min, "
                f"allowed={session.allowed_apps or '[]'}"
            )

            await self._launch_allowed_apps(session.allowed_apps)

            self.monitor.reset_counters()
            self.monitor.start(
                allow_list=session.allowed_apps,
                block_list_provider=self.get_block_list,
                enforce_allow_list=session.enforce_allow_list,
                schedule=self.schedule_ticks,
            )

            self._current = session
            self._state = SessionState.ACTIVE
            remaining = max(0, session.expires_at - self.clock.now_ms()) / 1000
            self._expiry_task = asyncio.create_task(self._expire_after(session.id, remaining))
            return session.snapshot()

    async def _launch_allowed_apps(self, allowed_apps: List[str]) -> List[LaunchResult]:
        """Launch every allowed app that is not already running"""
        if not allowed_apps:
            return []

        try:
            running = [record.name for record in await self.inspector.list_processes()]
        except EnumerationFailure as e:
            logger.warning(f"⚠️ Could not check running apps, launching all: {e}")
            running = []

        to_launch = [app for app in allowed_apps if not any(matches(name, [app]) for name in running)]
        results = []
        for index, app in enumerate(to_launch):
            if index and self.launch_delay_seconds > 0:
                await self.clock.sleep(self.launch_delay_seconds)
            result = await self.launcher.launch(app)
            if not result.success:
                logger.warning(f"⚠️ Allowed app {app} did not start: {result.error}")
            results.append(result)
        return results

    async def _expire_after(self, session_id: str, seconds: float) -> None:
        try:
            await self.clock.sleep(seconds)
        except asyncio.CancelledError:
            logger.debug(f"⏹️ Expiry timer for session {session_id} cancelled")
            raise

        async with self._lock:
            if self._current is None or self._current.id != session_id:
                return
            logger.info(f"⏰ Session {session_id} reached its time limit")
            await self._stop_locked(EndReason.EXPIRED, from_timer=True)

    # ===== STOP =====

    async def stop(self, reason: EndReason = EndReason.MANUAL) -> Optional[Session]:
        async with self._lock:
            return await self._stop_locked(reason)

    async def _stop_locked(self, reason: EndReason, from_timer: bool = False) -> Optional[Session]:
        if not self.is_active or self._current is None:
            logger.debug("No active session to stop")
            return None

        if self._expiry_task is not None and not from_timer:
            self._expiry_task.cancel()
        self._expiry_task = None

        self.monitor.stop()

        session = self._current
        session.end_time = self.clock.now_ms()
        session.total_duration = session.end_time - session.start_time
        session.blocked_attempts = self.monitor.counters.blocked_attempts
        session.distractions = self.monitor.counters.distractions
        session.end_reason = reason.value

        finalized = session.snapshot()
        self._history.append(finalized)
        self._records.append(finalized.to_dict())
        self._save_history()

        self._current = None
        self._state = SessionState.IDLE
        self.monitor.reset_counters()

        minutes = round(finalized.total_duration / 60000)
        logger.info(
            f"✅ Session {finalized.id} ended ({reason.value}): {minutes} min, "
            f"{finalized.blocked_attempts} blocked, {finalized.distractions} distractions"
        )
        self.notifications.notify(
            NotificationKind.SESSION_COMPLETE,
            f"Focus session ended! Active time: {minutes} minutes"
        )
        return finalized.snapshot()

    def _save_history(self) -> None:
        if not self.store.save_history(self._records):
            logger.warning("⚠️ Session history kept in memory only until the next save")

    async def shutdown(self) -> Optional[Session]:
        """Stop any active session because the host is exiting"""
        session = await self.stop(EndReason.SHUTDOWN)
        await self.monitor.drain()
        await self.notifications.drain()
        return session

    # ===== STATUS =====

    def get_status(self) -> Dict[str, Any]:
        current = None
        if self._current is not None:
            view = self._current.snapshot()
            view.blocked_attempts = self.monitor.counters.blocked_attempts
            view.distractions = self.monitor.counters.distractions
            current = view.to_dict()

        return {
            'current': current,
            'history': [record.to_dict() for record in self._history[-self.history_limit:]],
        }

    # ===== BLOCK-LIST =====

    def get_block_list(self) -> List[str]:
        return sorted(self._block_list)

    async def add_to_block_list(self, app_name: str) -> bool:
        name = normalize_name(app_name)
        if not name:
            raise ValueError("application name must not be empty")

        async with self._lock:
            self._block_list.add(name)
            self.store.save_block_list(self._block_list)
        logger.info(f"🚫 Added {name} to block-list")
        return True

    async def remove_from_block_list(self, app_name: str) -> bool:
        name = normalize_name(app_name)
        if not name:
            raise ValueError("application name must not be empty")

        async with self._lock:
            self._block_list.discard(name)
            self.store.save_block_list(self._block_list)
        logger.info(f"♻️ Removed {name} from block-list")
        return True

    # ===== LAUNCH =====

    async def launch_app(self, app_name: str) -> LaunchResult:
        return await self.launcher.launch(app_name)
