# services/__init__.py

"""
Locked In engine services

FocusEngine builds the object graph once from an EngineConfig:
- JsonStore for the block-list and session history
- PsutilProcessInspector for enumeration and termination
- AppLauncher for starting allowed apps
- ProcessMonitor for the scan loop
- SessionController for the state machine
"""

import asyncio
import logging
from typing import Optional

from lockedin.config import EngineConfig
from lockedin.database import JsonStore
from lockedin.utils.clock import Clock

from .app_launcher import AppLauncher
from .classifier import build_system_set, classify
from .notifications import NotificationEvent, NotificationService
from .process_inspector import ProcessInspector, PsutilProcessInspector
from .process_monitor import ProcessMonitor, TickReport
from .session_controller import SessionController

logger = logging.getLogger(__name__)


class FocusEngine:
    """
    Explicit service object for the focus engine

    Dependencies can be injected for tests or alternative platforms; anything
    left out is built from the configuration.
    """

    def __init__(self, config: EngineConfig,
                 store: Optional[JsonStore] = None,
                 inspector: Optional[ProcessInspector] = None,
                 launcher: Optional[AppLauncher] = None,
                 clock: Optional[Clock] = None,
                 notifications: Optional[NotificationService] = None,
                 schedule_ticks: bool = True):
        self.config = config
        self.lock = asyncio.Lock()
        self.store = store or JsonStore(
            config.storage.data_dir,
            config.storage.backup_dir,
            config.storage.block_list_file,
            config.storage.history_file
        )
        self.inspector = inspector or PsutilProcessInspector(config.monitor.terminate_grace_seconds)
        self.launcher = launcher or AppLauncher()
        self.notifications = notifications or NotificationService()

        self.monitor = ProcessMonitor(
            inspector=self.inspector,
            notifications=self.notifications,
            lock=self.lock,
            system_set=build_system_set(config.monitor.extra_system_processes),
            interval_seconds=config.monitor.tick_interval_seconds
        )

        self.controller = SessionController(
            store=self.store,
            inspector=self.inspector,
            launcher=self.launcher,
            monitor=self.monitor,
            notifications=self.notifications,
            lock=self.lock,
            clock=clock,
            enforce_allow_list=config.monitor.enforce_allow_list,
            launch_delay_seconds=config.session.launch_delay_seconds,
            history_limit=config.session.history_limit,
            schedule_ticks=schedule_ticks
        )

        capabilities = self.inspector.capabilities()
        if not capabilities.elevated:
            logger.info("ℹ️ Running without elevated privileges, some processes may refuse to close")
        logger.info(f"✅ Focus engine ready ({capabilities.platform})")

    def health_check(self) -> dict:
        capabilities = self.inspector.capabilities()
        return {
            'status': 'healthy',
            'state': self.controller.state.value,
            'monitor_running': self.monitor.is_running,
            'elevated': capabilities.elevated,
            'platform': capabilities.platform,
            'store': self.store.get_stats()
        }

    async def close(self):
        await self.controller.shutdown()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


__all__ = [
    'AppLauncher',
    'FocusEngine',
    'NotificationEvent',
    'NotificationService',
    'ProcessInspector',
    'ProcessMonitor',
    'PsutilProcessInspector',
    'SessionController',
    'TickReport',
    'build_system_set',
    'classify'
]
