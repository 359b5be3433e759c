"""Holder credential manifest stores."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Protocol

from .models import ManifestEntry


class ManifestStore(Protocol):
    """Source of a holder's credentials for one match operation."""

    def snapshot(self) -> tuple[ManifestEntry, ...]:
        """Return a read-only view that does not change while matching."""
        ...


class InMemoryManifestStore:
    """Manifest store backed by a list; every snapshot is a copy."""

    def __init__(self, entries: Iterable[ManifestEntry] = ()) -> None:
        self._entries: list[ManifestEntry] = list(entries)

    @classmethod
    def from_dicts(cls, items: Iterable[Mapping[str, Any]]) -> InMemoryManifestStore:
        return cls(ManifestEntry.from_dict(item) for item in items)

    @classmethod
    def from_json_file(cls, path: str | Path) -> InMemoryManifestStore:
        with Path(path).open(encoding="utf-8") as handle:
            return cls.from_dicts(json.load(handle))

    def add(self, entry: ManifestEntry) -> None:
        self._entries.append(entry)

    def snapshot(self) -> tuple[ManifestEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
