"""
Shared utility functions for the moderation engine.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def clamp_page(page: int, page_size: int, max_size: int) -> tuple[int, int, int]:
    """
    Normalise pagination arguments.
    
    Returns:
        (page, page_size, offset) with page >= 1 and 1 <= page_size <= max_size
    """
    page = max(1, int(page))
    page_size = min(max_size, max(1, int(page_size)))
    return page, page_size, (page - 1) * page_size
