"""Clamped selection indices for the graph and review views."""

from __future__ import annotations

from enum import Enum


class ViewMode(str, Enum):
    GRAPH = "graph"
    REVIEW = "review"


def clamp(index: int, size: int) -> int:
    """Pin ``index`` into ``[0, size - 1]``; 0 for an empty list."""
    if size <= 0:
        return 0
    return max(0, min(index, size - 1))


def move_up(index: int, size: int) -> int:
    return clamp(index - 1, size)


def move_down(index: int, size: int) -> int:
    return clamp(index + 1, size)
