"""
In-memory session + dataset storage, and the chart-data memo.

Nothing here survives a restart.
"""

from __future__ import annotations

import itertools
import json
from collections import OrderedDict
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from .models import ChartData, ShelfConfig


class StoredDataset(BaseModel):
    name: str
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    version: int
    truncated: bool = False
    created_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat() + "Z")


# ---------------------------------------------------------------------------
# Dataset store
# ---------------------------------------------------------------------------

# session_id -> {dataset name -> StoredDataset}
SESSIONS: Dict[str, Dict[str, StoredDataset]] = {}

_versions = itertools.count(1)


def get_session(session_id: str) -> Dict[str, StoredDataset]:
    if session_id not in SESSIONS:
        SESSIONS[session_id] = {}
    return SESSIONS[session_id]


def save_dataset(session_id: str, name: str, rows: List[Dict[str, Any]],
                 max_rows: int) -> StoredDataset:
    """Store (or replace) a dataset, keeping at most ``max_rows`` rows."""
    dataset = StoredDataset(
        name=name,
        rows=list(rows[:max_rows]),
        version=next(_versions),
        truncated=len(rows) > max_rows,
    )
    get_session(session_id)[name] = dataset
    return dataset


def get_dataset(session_id: str, name: str) -> Optional[StoredDataset]:
    return SESSIONS.get(session_id, {}).get(name)


# ---------------------------------------------------------------------------
# Chart memo
# ---------------------------------------------------------------------------

CacheKey = Tuple[str, str, int, str]


def cache_key(session_id: str, dataset: StoredDataset, shelves: ShelfConfig) -> CacheKey:
    """Key on dataset identity + the shelf configuration's value."""
    config = json.dumps(shelves.model_dump(mode="json"), sort_keys=True)
    return (session_id, dataset.name, dataset.version, config)


class ChartCache:
    """LRU memo of built charts."""

    def __init__(self, maxsize: int = 512):
        self.maxsize = maxsize
        self._entries: "OrderedDict[CacheKey, ChartData]" = OrderedDict()

    def get(self, key: CacheKey) -> Optional[ChartData]:
        cached = self._entries.get(key)
        if cached is not None:
            self._entries.move_to_end(key)
        return cached

    def set(self, key: CacheKey, value: ChartData) -> None:
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self.maxsize:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
