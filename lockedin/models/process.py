# models/process.py

from dataclasses import dataclass
from typing import NamedTuple, Optional


class ProcessRecord(NamedTuple):
    name: str
    pid: int


@dataclass(frozen=True)
class InspectorCapabilities:
    platform: str
    elevated: bool


@dataclass(frozen=True)
class LaunchResult:
    success: bool
    error: Optional[str] = None
    strategy: Optional[str] = None

    def to_dict(self) -> dict:
        result = {'success': self.success}
        if self.error is not None:
            result['error'] = self.error
        if self.strategy is not None:
            result['strategy'] = self.strategy
        return result
