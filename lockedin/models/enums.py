# models/enums.py

from enum import Enum


class SessionState(Enum):
    IDLE = "idle"
    ACTIVE = "active"


class Classification(Enum):
    SYSTEM_EXEMPT = "system_exempt"
    BLOCKED = "blocked"
    ALLOWED = "allowed"
    UNCLASSIFIED = "unclassified"


class NotificationKind(str, Enum):
    BLOCKED = "blocked"
    RESTRICTED = "restricted"
    SESSION_COMPLETE = "session-complete"


class EndReason(str, Enum):
    MANUAL = "manual"
    EXPIRED = "expired"
    REPLACED = "replaced"
    SHUTDOWN = "shutdown"
