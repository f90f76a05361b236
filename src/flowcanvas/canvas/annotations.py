"""Immutable annotation store keyed by annotation key."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType

from flowcanvas.models import FlowchartConfig


class AnnotationStore(Mapping[str, str]):
    """Insertion-ordered ``annotation_key -> text`` map.

    Every write returns a new store, so a snapshot handed to the renderer or
    the socket can never change underneath it.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, str] | None = None) -> None:
        self._data = MappingProxyType(dict(data or {}))

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"AnnotationStore({dict(self._data)!r})"

    def set(self, key: str, text: str) -> AnnotationStore:
        data = dict(self._data)
        data[key] = text
        return AnnotationStore(data)

    def non_empty_entries(self) -> list[tuple[str, str]]:
        """(key, text) pairs with non-empty text, in insertion order."""
        return [(k, v) for k, v in self._data.items() if v]

    def replace_from(self, config: FlowchartConfig) -> AnnotationStore:
        """Store to keep after ``config`` replaces the current one.

        Annotations survive a graph replacement unless the config carries its
        own map.
        """
        if config.annotations is None:
            return self
        return AnnotationStore(config.annotations)

    def as_dict(self) -> dict[str, str]:
        return dict(self._data)
