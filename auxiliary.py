#!/usr/bin/env python3
"""
Auxiliary utility functions for cargo-cleans

Provides the human-readable formatting shared by the store report and the
console output.
"""

import pathlib
from datetime import datetime
from typing import Optional

from tzlocal import get_localzone

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"


def format_bytes(size_bytes: int) -> str:
    """Format byte size into human-readable string

    Args:
        size_bytes: Size in bytes to format

    Returns:
        Formatted string like "1.2 GiB", "345 MiB", "12 KiB", or "789 B"
    """
    if size_bytes >= 1024**3:
        return f"{size_bytes / (1024**3):.1f} GiB"
    if size_bytes >= 1024**2:
        return f"{size_bytes / (1024**2):.1f} MiB"
    if size_bytes >= 1024:
        return f"{size_bytes / 1024:.1f} KiB"
    return f"{size_bytes} B"


def format_timestamp(timestamp: float, timezone=None) -> str:
    """Format a POSIX timestamp as local wall-clock time

    Args:
        timestamp: Seconds since the epoch
        timezone: Zone to render in (defaults to the platform's local zone)

    Returns:
        Formatted string like "2024-03-01 14:05"
    """
    tz = timezone or get_localzone()
    return datetime.fromtimestamp(timestamp, tz=tz).strftime(TIMESTAMP_FORMAT)


def format_path_for_display(path: str, home_path: Optional[str] = None) -> str:
    """Format file path for display by replacing home directory with ~

    Args:
        path: File path to format
        home_path: Home directory path (defaults to platform home)

    Returns:
        Path with home directory replaced by ~ if applicable
    """
    if home_path is None:
        home_path = str(pathlib.Path.home())

    return path.replace(home_path, "~")
