"""
Pytest configuration and fixtures for Locked In engine tests
"""

import asyncio

import pytest

from lockedin.config import EngineConfig
from lockedin.database import JsonStore
from lockedin.exceptions import EnumerationFailure
from lockedin.models import InspectorCapabilities, ProcessRecord
from lockedin.services import AppLauncher, FocusEngine, NotificationService
from lockedin.services.process_inspector import ProcessInspector
from lockedin.utils.clock import Clock

SYSTEM_SET = frozenset({"explorer", "svchost", "csrss"})


class FakeInspector(ProcessInspector):
    """Scripted process table"""

    def __init__(self, processes=None):
        self.processes = list(processes or [])
        self.fail_listing = False
        self.terminated = []
        self.list_calls = 0

    async def list_processes(self):
        self.list_calls += 1
        if self.fail_listing:
            raise EnumerationFailure("tasklist exited with status 1")
        return [ProcessRecord(name, pid) for name, pid in self.processes]

    async def terminate(self, pid, name):
        self.terminated.append(pid)
        return True

    def capabilities(self):
        return InspectorCapabilities(platform="test", elevated=False)


class ManualClock(Clock):
    """Virtual time: sleepers wake only when the test advances the clock"""

    def __init__(self, start_ms=1_700_000_000_000):
        self._now = start_ms
        self._sleepers = []

    def now_ms(self):
        return self._now

    async def sleep(self, seconds):
        if seconds <= 0:
            await asyncio.sleep(0)
            return
        future = asyncio.get_running_loop().create_future()
        self._sleepers.append((self._now + int(seconds * 1000), future))
        await future

    @property
    def pending(self):
        return len(self._sleepers)

    async def wait_for_sleepers(self, count=1):
        # Launches run in worker threads, so poll with real time
        for _ in range(500):
            if self.pending >= count:
                return
            await asyncio.sleep(0.01)
        raise AssertionError(f"expected {count} sleepers, have {self.pending}")

    def advance(self, seconds):
        self._now += int(seconds * 1000)
        for entry in list(self._sleepers):
            deadline, future = entry
            if deadline <= self._now:
                self._sleepers.remove(entry)
                if not future.done():
                    future.set_result(None)


class FakeSpawner:
    """Records commands; raises FileNotFoundError for the ones listed in failing"""

    def __init__(self, failing=None):
        self.commands = []
        self.failing = failing

    def __call__(self, command):
        self.commands.append(list(command))
        if self.failing is None or self.failing(list(command)):
            raise FileNotFoundError(f"[Errno 2] No such file or directory: '{command[0]}'")
        return object()


@pytest.fixture
def data_directory(tmp_path):
    data_dir = tmp_path / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


@pytest.fixture
def store(data_directory, tmp_path):
    return JsonStore(data_directory, tmp_path / "backups")


@pytest.fixture
def engine_config(tmp_path):
    return EngineConfig(environ={
        'LOCKEDIN_DATA_DIR': str(tmp_path / "data"),
        'LOCKEDIN_BACKUP_DIR': str(tmp_path / "backups"),
        'LOCKEDIN_LOG_DIR': str(tmp_path / "logs"),
        'LOCKEDIN_LOG_TO_FILE': 'false',
        'LOCKEDIN_LAUNCH_DELAY': '0',
        'LOCKEDIN_ENV': 'testing',
    })


@pytest.fixture
def inspector():
    return FakeInspector([("chrome.exe", 10), ("notepad.exe", 11), ("explorer.exe", 12)])


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def spawner():
    return FakeSpawner(failing=lambda command: False)


@pytest.fixture
def notifications():
    return NotificationService()


@pytest.fixture
def events(notifications):
    received = []
    notifications.subscribe(received.append)
    return received


@pytest.fixture
def make_engine(engine_config, inspector, clock, spawner, notifications):
    """Engine wired to fakes; ticks are driven by hand"""

    def factory(config=None, **overrides):
        config = config or engine_config
        config.ensure_directories()
        engine = FocusEngine(
            config,
            inspector=overrides.get('inspector', inspector),
            launcher=AppLauncher(spawner=overrides.get('spawner', spawner), platform='linux'),
            clock=clock,
            notifications=notifications,
            schedule_ticks=False,
        )
        engine.monitor.system_set = SYSTEM_SET
        engine.monitor.own_pid = -1
        return engine

    return factory


@pytest.fixture
def engine(make_engine):
    return make_engine()


@pytest.fixture
def controller(engine):
    return engine.controller
