"""
Transfer rate and ETA estimation for uploads.

The reporter keeps a single previous ``(bytes, timestamp)`` sample; each
new sample replaces it, so the rate always reflects the most recent chunk.
"""

import math
from typing import Optional

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


class ProgressReporter:
    """Derives transfer rate and ETA from byte-count samples."""

    def __init__(self, total_bytes: int = 0) -> None:
        self._total_bytes = total_bytes
        self._bytes = 0
        self._prev_bytes: Optional[int] = None
        self._prev_time: Optional[float] = None
        self._rate = 0.0

    @property
    def total_bytes(self) -> int:
        return self._total_bytes

    @property
    def bytes_transferred(self) -> int:
        return self._bytes

    @property
    def rate(self) -> float:
        """Most recent transfer rate in bytes per second."""
        return self._rate

    @property
    def eta(self) -> Optional[float]:
        """Seconds until completion, or None while the rate is unknown."""
        if self._rate <= 0:
            return None
        return max(self._total_bytes - self._bytes, 0) / self._rate

    def reset(self, total_bytes: int, bytes_transferred: int, timestamp: float) -> None:
        """
        Prime the reporter with a baseline sample.

        Called when a transfer (re)starts so time spent paused does not
        drag the rate down.
        """
        self._total_bytes = total_bytes
        self._bytes = bytes_transferred
        self._prev_bytes = bytes_transferred
        self._prev_time = timestamp
        self._rate = 0.0

    def record(self, bytes_transferred: int, timestamp: float) -> float:
        """
        Feed a new sample and return the current rate.

        The rate is left unchanged when time has not advanced or the byte
        count went backwards.
        """
        if self._prev_time is not None and self._prev_bytes is not None:
            elapsed = timestamp - self._prev_time
            delta = bytes_transferred - self._prev_bytes
            if elapsed > 0 and delta >= 0:
                self._rate = delta / elapsed

        self._bytes = bytes_transferred
        self._prev_bytes = bytes_transferred
        self._prev_time = timestamp
        return self._rate

    def percentage(self) -> float:
        if self._total_bytes <= 0:
            return 0.0
        return min(self._bytes / self._total_bytes, 1.0) * 100.0


def format_duration(seconds: Optional[float]) -> str:
    """
    Format a duration as ``Ns``, ``Mm Ss`` or ``Hh Mm``.

    Unknown or invalid durations render as ``--``.
    """
    if seconds is None or not math.isfinite(seconds) or seconds < 0:
        return "--"

    if seconds < 60:
        return f"{int(seconds + 0.5)}s"
    if seconds < 3600:
        minutes, secs = divmod(int(seconds), 60)
        return f"{minutes}m {secs}s"
    hours, rest = divmod(int(seconds), 3600)
    return f"{hours}h {rest // 60}m"


def format_bytes(num_bytes: float) -> str:
    """Human-readable size using 1024-based units, e.g. ``1.5 MB``."""
    if num_bytes <= 0:
        return "0 B"
    exponent = 0
    value = float(num_bytes)
    while value >= 1024 and exponent < len(_SIZE_UNITS) - 1:
        value /= 1024
        exponent += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[exponent]}"


def format_speed(bytes_per_second: float) -> str:
    return f"{format_bytes(bytes_per_second)}/s"
