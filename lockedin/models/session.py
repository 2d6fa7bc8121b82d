# models/session.py

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lockedin.utils.text_utils import unique_normalized

MIN_DURATION_MINUTES = 1
MAX_DURATION_MINUTES = 240

_MISSING = object()


class SessionSettings(BaseModel):
    """What the caller asks for when starting a session"""

    model_config = ConfigDict(populate_by_name=True)

    duration_minutes: int = Field(
        ...,
        alias='durationMinutes',
        ge=MIN_DURATION_MINUTES,
        le=MAX_DURATION_MINUTES,
    )
    allowed_apps: List[str] = Field(default_factory=list, alias='allowedApps')

    @field_validator('allowed_apps')
    @classmethod
    def normalize_apps(cls, v):
        return unique_normalized(v)


@dataclass
class Session:
    id: str
    allowed_apps: List[str]
    duration_minutes: int
    start_time: int
    end_time: Optional[int] = None
    total_duration: Optional[int] = None
    blocked_attempts: int = 0
    distractions: int = 0
    enforce_allow_list: bool = False
    end_reason: Optional[str] = None

    @property
    def is_finalized(self) -> bool:
        return self.end_time is not None

    @property
    def expires_at(self) -> int:
        return self.start_time + self.duration_minutes * 60 * 1000

    def snapshot(self) -> 'Session':
        """Independent copy, safe to hand to callers"""
        return replace(self, allowed_apps=list(self.allowed_apps))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'allowed_apps': list(self.allowed_apps),
            'duration_minutes': self.duration_minutes,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'total_duration': self.total_duration,
            'blocked_attempts': self.blocked_attempts,
            'distractions': self.distractions,
            'enforce_allow_list': self.enforce_allow_list,
            'end_reason': self.end_reason,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Session':
        """Accepts both the snake_case layout and the older camelCase one"""
        def pick(*keys, default=_MISSING):
            for key in keys:
                if key in data:
                    return data[key]
            if default is _MISSING:
                raise KeyError(keys[0])
            return default

        return cls(
            id=str(pick('id')),
            allowed_apps=list(pick('allowed_apps', 'allowedApps', default=[]) or []),
            duration_minutes=int(pick('duration_minutes', 'durationMinutes', 'duration')),
            start_time=int(pick('start_time', 'startTime')),
            end_time=pick('end_time', 'endTime', default=None),
            total_duration=pick('total_duration', 'totalDuration', default=None),
            blocked_attempts=int(pick('blocked_attempts', 'blockedAttempts', default=0)),
            distractions=int(pick('distractions', default=0)),
            enforce_allow_list=bool(pick('enforce_allow_list', 'enforceAllowList', default=False)),
            end_reason=pick('end_reason', 'endReason', default=None),
        )


@dataclass
class SessionCounters:
    blocked_attempts: int = 0
    distractions: int = 0

    def reset(self) -> None:
        self.blocked_attempts = 0
        self.distractions = 0
