"""
Locked In - Engine exceptions

Every failure the engine knows about is recovered locally; these types exist
so each layer can say what went wrong before the boundary that absorbs it.
"""


class FocusEngineError(Exception):
    """Base exception for the focus engine"""
    pass


class ConfigError(FocusEngineError):
    """Invalid configuration detected at startup"""
    pass


class EnumerationFailure(FocusEngineError):
    """Listing running processes failed"""
    pass


class TerminationFailure(FocusEngineError):
    """Graceful and forced termination of a process both failed"""

    def __init__(self, pid: int, name: str, reason: str):
        self.pid = pid
        self.name = name
        self.reason = reason
        super().__init__(f"could not terminate {name} (PID {pid}): {reason}")


class LaunchFailure(FocusEngineError):
    """A single launch strategy could not start the application"""
    pass


class PersistenceFailure(FocusEngineError):
    """Reading or writing a persisted document failed"""
    pass
