"""Shared helpers for repository classes."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PageSlice:
    """Pagination params used by list operations."""

    limit: int = 25
    offset: int = 0


def split_csv(raw: str | None) -> list[str]:
    """Split a comma-separated query value, dropping blanks and whitespace."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]
