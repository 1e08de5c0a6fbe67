"""Shared time helpers.

Rules are stamped in epoch milliseconds on disk, so ``epoch_ms`` lives next
to ``utc_now`` to keep every writer on the same clock.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current UTC timestamp."""
    return datetime.now(UTC)


def epoch_ms() -> int:
    """Return the current UTC timestamp in epoch milliseconds."""
    return int(utc_now().timestamp() * 1000)
