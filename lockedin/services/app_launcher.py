"""
App Launcher - best-effort start of allowed applications

Each strategy either starts the app or raises. Strategies are tried in order
and the first one that does not raise wins; the launcher itself never raises.
No strategy hands the name to a shell interpreter: names reach the OS as a
single argument.
"""

import asyncio
import logging
import os
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from lockedin.exceptions import LaunchFailure
from lockedin.models import LaunchResult
from lockedin.utils.text_utils import normalize_name

logger = logging.getLogger(__name__)

Spawner = Callable[[Sequence[str]], object]
Runner = Callable[[Sequence[str]], int]
Opener = Callable[[str], object]

OPEN_TIMEOUT_SECONDS = 15


def spawn_detached(command: Sequence[str]):
    """Start a process that outlives the engine and shares none of its stdio"""
    kwargs = {
        'stdin': subprocess.DEVNULL,
        'stdout': subprocess.DEVNULL,
        'stderr': subprocess.DEVNULL,
        'close_fds': True,
    }
    if sys.platform == "win32":
        kwargs['creationflags'] = subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        kwargs['start_new_session'] = True
    return subprocess.Popen(list(command), **kwargs)


def run_checked(command: Sequence[str]) -> int:
    """Run a short-lived helper such as `open -a` and return its exit status"""
    completed = subprocess.run(
        list(command),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        timeout=OPEN_TIMEOUT_SECONDS,
    )
    return completed.returncode


def install_directories(platform: str) -> List[Path]:
    if platform == "win32":
        roots = [
            os.environ.get('ProgramFiles'),
            os.environ.get('ProgramFiles(x86)'),
            os.environ.get('LOCALAPPDATA'),
            os.environ.get('LOCALAPPDATA') and os.path.join(os.environ['LOCALAPPDATA'], 'Programs'),
        ]
    elif platform == "darwin":
        roots = ['/Applications', os.path.expanduser('~/Applications'), '/System/Applications']
    else:
        roots = ['/usr/bin', '/usr/local/bin', '/snap/bin', '/opt', os.path.expanduser('~/.local/bin')]
    return [Path(root) for root in roots if root]


class AppLauncher:
    """Launch an app by name with a fixed fallback chain"""

    def __init__(self, spawner: Optional[Spawner] = None,
                 platform: Optional[str] = None,
                 runner: Optional[Runner] = None,
                 opener: Optional[Opener] = None):
        self._spawn = spawner or spawn_detached
        self._run = runner or run_checked
        # os.startfile only exists on Windows
        self._open = opener or getattr(os, 'startfile', None)
        self.platform = platform or sys.platform

    # ===== STRATEGIES =====

    def _direct(self, name: str) -> None:
        self._spawn([name])

    def _executable_suffix(self, name: str) -> None:
        if self.platform != "win32":
            raise LaunchFailure("executable suffix only applies on Windows")
        if name.lower().endswith('.exe'):
            raise LaunchFailure(f"{name} already carries .exe")
        self._spawn([f"{name}.exe"])

    def _shell(self, name: str) -> None:
        """Resolve the name the way the desktop would, without a shell interpreter"""
        resolved = shutil.which(name)
        if resolved:
            self._spawn([resolved])
            return

        if self.platform == "darwin":
            status = self._run(['open', '-a', name])
            if status != 0:
                raise LaunchFailure(f"open -a {name} exited with status {status}")
            return

        if self.platform == "win32":
            if self._open is None:
                raise LaunchFailure("shell open is not available")
            self._open(name)
            return

        raise LaunchFailure(f"{name} not found on PATH")

    def _install_dir(self, name: str) -> None:
        for candidate in self._install_candidates(name):
            if candidate.exists():
                if candidate.suffix == '.app':
                    status = self._run(['open', str(candidate)])
                    if status != 0:
                        raise LaunchFailure(f"open {candidate} exited with status {status}")
                else:
                    self._spawn([str(candidate)])
                return
        raise LaunchFailure(f"{name} not found in any install directory")

    def _install_candidates(self, name: str) -> List[Path]:
        candidates = []
        for root in install_directories(self.platform):
            if self.platform == "win32":
                exe = name if name.lower().endswith('.exe') else f"{name}.exe"
                candidates.append(root / name / exe)
                candidates.append(root / exe)
            elif self.platform == "darwin":
                candidates.append(root / f"{name}.app")
                candidates.append(root / f"{name.title()}.app")
            else:
                candidates.append(root / name)
                candidates.append(root / name / name)
        return candidates

    def strategies(self) -> List[Tuple[str, Callable[[str], None]]]:
        return [
            ('direct', self._direct),
            ('executable-suffix', self._executable_suffix),
            ('shell', self._shell),
            ('install-dir', self._install_dir),
        ]

    # ===== LAUNCH =====

    def launch_sync(self, app_name: str) -> LaunchResult:
        name = (app_name or "").strip()
        if not normalize_name(name):
            return LaunchResult(success=False, error="empty application name")

        last_error = None
        for strategy_name, start in self.strategies():
            try:
                start(name)
            except LaunchFailure as e:
                last_error = str(e)
                logger.debug(f"↪️ {strategy_name} skipped for {name}: {e}")
                continue
            except (OSError, ValueError, subprocess.SubprocessError) as e:
                last_error = str(e)
                logger.debug(f"↪️ {strategy_name} failed for {name}: {e}")
                continue

            logger.info(f"🚀 Launched {name} via {strategy_name}")
            return LaunchResult(success=True, strategy=strategy_name)

        logger.warning(f"⚠️ Could not launch {name}: {last_error}")
        return LaunchResult(success=False, error=last_error)

    async def launch(self, app_name: str) -> LaunchResult:
        return await asyncio.to_thread(self.launch_sync, app_name)
