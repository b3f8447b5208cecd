#!/usr/bin/env python3
"""
Conversion helpers for building response models from ORM rows.
"""

from typing import Optional, Any
from datetime import datetime


def safe_score(value: Optional[Any], default: int = 0) -> int:
    """Stored score as an int in 0-100; unreadable values become default."""
    if value is None:
        return default

    try:
        return max(0, min(100, int(value)))
    except (ValueError, TypeError):
        return default


def id_str(value: Optional[Any]) -> Optional[str]:
    """UUID (or any id) as a string, keeping None."""
    if value is None:
        return None
    return str(value)


def safe_datetime_iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.isoformat()
