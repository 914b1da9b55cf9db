"""
Upload progress estimation and formatting.
"""

from .reporter import ProgressReporter, format_bytes, format_duration, format_speed

__all__ = [
    "ProgressReporter",
    "format_bytes",
    "format_duration",
    "format_speed",
]
