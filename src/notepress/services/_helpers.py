"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any


def now_utc() -> datetime:
    return datetime.now(UTC)


def now_iso() -> str:
    """Current UTC time as standard ISO 8601 (for commit messages, results)."""
    return now_utc().isoformat(timespec="seconds")


def field_summary(fields: list[Any]) -> list[dict[str, Any]]:
    """JSON-friendly description of a field list for CLI and host display."""
    return [field.model_dump(mode="json", by_alias=True, exclude_none=True) for field in fields]
