#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Locked In - Engine Configuration
Centralized configuration with validation

Version: 1.0.0
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional
from dataclasses import dataclass, field
from enum import Enum

import pytz

from lockedin.exceptions import ConfigError

ENV_PREFIX = 'LOCKEDIN_'

# Scan cadence of the process monitor; not configurable
TICK_INTERVAL_SECONDS = 3.0


class Environment(Enum):
    """Runtime environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class LogLevel(Enum):
    """Logging levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class StorageConfig:
    """Where the block-list and session history live"""
    data_dir: Path
    backup_dir: Path
    block_list_file: str = "blocklist.json"
    history_file: str = "sessions.json"


@dataclass
class MonitorConfig:
    """Process monitor settings"""
    tick_interval_seconds: float = TICK_INTERVAL_SECONDS
    enforce_allow_list: bool = False
    terminate_grace_seconds: float = 2.0
    extra_system_processes: FrozenSet[str] = field(default_factory=frozenset)


@dataclass
class SessionConfig:
    """Session controller settings"""
    launch_delay_seconds: float = 1.0
    history_limit: int = 50
    timezone: str = "UTC"


class EngineConfig:
    """Main configuration class"""

    def __init__(self, environ: Optional[Dict[str, str]] = None):
        self._environ = os.environ if environ is None else environ
        self.environment = self._get_enum(Environment, 'ENV', 'development')
        self._load_config()
        self._validate_config()

    def _get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._environ.get(ENV_PREFIX + key, default)

    def _get_bool(self, key: str, default: str) -> bool:
        return str(self._get(key, default)).lower() in ('true', '1', 'yes', 'on')

    def _get_number(self, key: str, default: str, cast=float):
        raw = self._get(key, default)
        try:
            return cast(raw)
        except (TypeError, ValueError):
            raise ConfigError(f"{ENV_PREFIX}{key} must be a number, got {raw!r}")

    def _get_enum(self, enum_cls, key: str, default: str):
        raw = self._get(key, default)
        try:
            return enum_cls(raw)
        except ValueError:
            allowed = ", ".join(member.value for member in enum_cls)
            raise ConfigError(f"{ENV_PREFIX}{key}={raw!r} is not one of: {allowed}")

    def _load_config(self):
        """Load configuration from environment variables"""

        home = Path(self._get('HOME', str(Path.home() / '.lockedin'))).expanduser()

        # Directories
        self.data_dir = Path(self._get('DATA_DIR', str(home / 'data'))).expanduser()
        self.backup_dir = Path(self._get('BACKUP_DIR', str(home / 'backups'))).expanduser()
        self.log_dir = Path(self._get('LOG_DIR', str(home / 'logs'))).expanduser()
        self.lock_file = self.data_dir / 'engine.lock'

        self.storage = StorageConfig(
            data_dir=self.data_dir,
            backup_dir=self.backup_dir
        )

        extra = self._get('EXTRA_SYSTEM_PROCESSES', '') or ''
        self.monitor = MonitorConfig(
            enforce_allow_list=self._get_bool('ENFORCE_ALLOW_LIST', 'false'),
            terminate_grace_seconds=self._get_number('TERMINATE_GRACE', '2.0'),
            extra_system_processes=frozenset(
                name.strip().lower() for name in extra.split(',') if name.strip()
            )
        )

        self.session = SessionConfig(
            launch_delay_seconds=self._get_number('LAUNCH_DELAY', '1.0'),
            history_limit=self._get_number('HISTORY_LIMIT', '50', cast=int),
            timezone=self._get('TIMEZONE', 'UTC')
        )

        # Logging
        self.log_level = self._get_enum(LogLevel, 'LOG_LEVEL', 'INFO')
        self.log_to_file = self._get_bool('LOG_TO_FILE', 'true')
        self.log_format = self._get(
            'LOG_FORMAT',
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )

    def _validate_config(self):
        """Validate the loaded configuration"""
        errors = []

        if self.monitor.terminate_grace_seconds < 0:
            errors.append("TERMINATE_GRACE must not be negative")

        if self.session.launch_delay_seconds < 0:
            errors.append("LAUNCH_DELAY must not be negative")

        if self.session.history_limit <= 0:
            errors.append("HISTORY_LIMIT must be positive")

        try:
            pytz.timezone(self.session.timezone)
        except pytz.UnknownTimeZoneError:
            errors.append(f"TIMEZONE {self.session.timezone!r} is unknown")

        if errors:
            raise ConfigError("Configuration errors:\n" + "\n".join(f"• {error}" for error in errors))

    def ensure_directories(self):
        """Create the directories the engine writes to"""
        directories = [
            self.data_dir,
            self.backup_dir,
        ]
        if self.log_to_file:
            directories.append(self.log_dir)

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    def get_logging_config(self) -> Dict[str, Any]:
        """Build a logging.config.dictConfig dictionary"""
        handlers = ['console']
        if self.log_to_file:
            handlers.append('file')

        config = {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'default': {
                    'format': self.log_format,
                    'datefmt': '%Y-%m-%d %H:%M:%S'
                }
            },
            'handlers': {
                'console': {
                    'class': 'logging.StreamHandler',
                    'level': self.log_level.value,
                    'formatter': 'default',
                    'stream': sys.stderr
                }
            },
            'loggers': {
                '': {
                    'level': self.log_level.value,
                    'handlers': handlers,
                    'propagate': False
                },
                'apscheduler': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                }
            }
        }

        if self.log_to_file:
            config['handlers']['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'filename': str(self.log_dir / f"lockedin_{self.environment.value}.log"),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5,
                'encoding': 'utf-8'
            }

        return config

    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the configuration"""
        return {
            'environment': self.environment.value,
            'data_dir': str(self.data_dir),
            'backup_dir': str(self.backup_dir),
            'log_dir': str(self.log_dir),
            'monitor': {
                'tick_interval_seconds': self.monitor.tick_interval_seconds,
                'enforce_allow_list': self.monitor.enforce_allow_list,
                'terminate_grace_seconds': self.monitor.terminate_grace_seconds,
                'extra_system_processes': sorted(self.monitor.extra_system_processes)
            },
            'session': {
                'launch_delay_seconds': self.session.launch_delay_seconds,
                'history_limit': self.session.history_limit,
                'timezone': self.session.timezone
            },
            'log_level': self.log_level.value
        }


__all__ = [
    'EngineConfig',
    'Environment',
    'LogLevel',
    'MonitorConfig',
    'SessionConfig',
    'StorageConfig'
]
