#!/usr/bin/env python3
"""
Locked In command line host

Usage: lockedin start --minutes 25 --allow notepad --allow code [--enforce]
       lockedin status [--json]
       lockedin block list|add NAME|remove NAME
       lockedin launch NAME
       lockedin capabilities
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
from typing import List, Optional

from pydantic import ValidationError

from lockedin import __version__
from lockedin.config import EngineConfig
from lockedin.exceptions import ConfigError
from lockedin.models import SessionSettings
from lockedin.services import FocusEngine, NotificationEvent
from lockedin.utils.datetime_utils import format_duration, format_millis
from lockedin.utils.logger import setup_logging
from lockedin.utils.process_lock import ProcessLock
from lockedin.utils.text_utils import truncate

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='lockedin', description='Focus session process control engine')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    commands = parser.add_subparsers(dest='command', required=True)

    start = commands.add_parser('start', help='run a focus session in the foreground')
    start.add_argument('--minutes', '-m', type=int, required=True, help='session length, 1-240')
    start.add_argument('--allow', '-a', action='append', default=[], metavar='APP',
                       help='application allowed during the session (repeatable)')
    policy = start.add_mutually_exclusive_group()
    policy.add_argument('--enforce', dest='enforce', action='store_true', default=None,
                        help='close everything that is not allowed or system-critical')
    policy.add_argument('--lax', dest='enforce', action='store_false',
                        help='only close block-listed applications')

    status = commands.add_parser('status', help='show recent sessions')
    status.add_argument('--json', action='store_true', help='print raw JSON')

    block = commands.add_parser('block', help='manage the block-list')
    block_commands = block.add_subparsers(dest='block_command', required=True)
    block_commands.add_parser('list', help='show blocked applications')
    block_add = block_commands.add_parser('add', help='block an application')
    block_add.add_argument('name')
    block_remove = block_commands.add_parser('remove', help='unblock an application')
    block_remove.add_argument('name')

    launch = commands.add_parser('launch', help='launch an application')
    launch.add_argument('name')

    commands.add_parser('capabilities', help='show what the engine can do here')
    return parser


def print_notification(event: NotificationEvent) -> None:
    icons = {'blocked': '🚫', 'restricted': '⛔', 'session-complete': '✅'}
    print(f"{icons.get(event.kind.value, '🔔')} {event.message}", flush=True)


async def run_session(engine: FocusEngine, settings: SessionSettings) -> int:
    controller = engine.controller
    session = await controller.start(settings)
    print(f"🎯 Focus session started for {session.duration_minutes} min. Press Ctrl+C to stop early.")

    loop = asyncio.get_running_loop()
    interrupted = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, interrupted.set)
        except (NotImplementedError, RuntimeError, ValueError):
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(interrupted.set))

    waiter = asyncio.create_task(interrupted.wait())
    pending = {waiter}
    if controller.expiry_task is not None:
        pending.add(controller.expiry_task)
    await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
    waiter.cancel()

    if controller.is_active:
        await controller.stop()
    await engine.close()

    history = controller.get_status()['history']
    if history:
        last = history[-1]
        print(
            f"📊 {format_duration(last['total_duration'])} focused, "
            f"{last['blocked_attempts']} blocked, {last['distractions']} distractions"
        )
    return 0


def print_status(engine: FocusEngine, as_json: bool) -> None:
    status = engine.controller.get_status()
    if as_json:
        print(json.dumps(status, indent=2))
        return

    tz = engine.config.session.timezone
    if not status['history']:
        print("📭 No sessions yet")
        return
    for record in status['history']:
        apps = truncate(", ".join(record['allowed_apps']) or "-", 48)
        print(
            f"{format_millis(record['start_time'], tz)}  {format_duration(record['total_duration']):>8}  "
            f"blocked={record['blocked_attempts']:<3} distractions={record['distractions']:<3} "
            f"[{record.get('end_reason') or '-'}] {apps}"
        )


async def dispatch(args, config: EngineConfig, lock: ProcessLock) -> int:
    engine = FocusEngine(config)
    engine.notifications.subscribe(print_notification)
    controller = engine.controller

    if args.command == 'start':
        if args.enforce is not None:
            controller.enforce_allow_list = args.enforce
        try:
            settings = SessionSettings(duration_minutes=args.minutes, allowed_apps=args.allow)
        except ValidationError as e:
            print(f"⚠️ Invalid session settings: {e.errors()[0]['msg']}")
            return 2
        if not lock.acquire():
            print("❌ Another focus session is already running")
            return 1
        try:
            return await run_session(engine, settings)
        finally:
            lock.release()

    if args.command == 'status':
        print_status(engine, args.json)
        return 0

    if args.command == 'block':
        if args.block_command == 'list':
            for name in controller.get_block_list():
                print(name)
            return 0
        if lock.lockfile.exists():
            print("ℹ️ A running session keeps its block-list until it ends")
        try:
            if args.block_command == 'add':
                await controller.add_to_block_list(args.name)
                print(f"🚫 Blocked {args.name.strip().lower()}")
            else:
                await controller.remove_from_block_list(args.name)
                print(f"♻️ Unblocked {args.name.strip().lower()}")
        except ValueError as e:
            print(f"⚠️ {e}")
            return 2
        return 0

    if args.command == 'launch':
        result = await controller.launch_app(args.name)
        print(json.dumps(result.to_dict()))
        return 0 if result.success else 1

    if args.command == 'capabilities':
        print(json.dumps(engine.health_check(), indent=2))
        return 0

    return 2


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = EngineConfig()
    except ConfigError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2

    config.ensure_directories()
    setup_logging(config)
    if config.is_development():
        logger.debug(f"Configuration: {json.dumps(config.to_dict())}")
    lock = ProcessLock(config.lock_file)
    return asyncio.run(dispatch(args, config, lock))


if __name__ == "__main__":
    sys.exit(main())
