from datetime import datetime
from typing import Optional

import pytz


def from_millis(ms: int, tz_name: str = "UTC") -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=pytz.utc).astimezone(pytz.timezone(tz_name))


def format_millis(ms: Optional[int], tz_name: str = "UTC", fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
    if ms is None:
        return "-"
    return from_millis(ms, tz_name).strftime(fmt)


def format_duration(ms: Optional[int]) -> str:
    if ms is None:
        return "-"
    total_seconds = int(ms // 1000)
    minutes, seconds = divmod(total_seconds, 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes:02d}m"
    return f"{minutes}m {seconds:02d}s"
