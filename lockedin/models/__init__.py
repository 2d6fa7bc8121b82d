"""
Locked In - Models Package
Data models and enums for the focus engine
"""

from .enums import (
    Classification,
    EndReason,
    NotificationKind,
    SessionState
)

from .process import (
    InspectorCapabilities,
    LaunchResult,
    ProcessRecord
)

from .session import (
    MAX_DURATION_MINUTES,
    MIN_DURATION_MINUTES,
    Session,
    SessionCounters,
    SessionSettings
)

__all__ = [
    # Enums
    'Classification',
    'EndReason',
    'NotificationKind',
    'SessionState',

    # Process models
    'InspectorCapabilities',
    'LaunchResult',
    'ProcessRecord',

    # Session models
    'MAX_DURATION_MINUTES',
    'MIN_DURATION_MINUTES',
    'Session',
    'SessionCounters',
    'SessionSettings'
]
