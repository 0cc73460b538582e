"""
app/services/archive_cache.py

Job-scoped cache for materialized archive sources.

Decompressing a large archive on every chunk invocation would dominate the
run time, so the decoded lines are kept per source reference until the job
finishes or the entry is invalidated. The cache is an explicit object handed
to the services, never module state.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from threading import Lock
from typing import Callable, Mapping

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 4


@dataclass(frozen=True)
class MaterializedSource:
    """
    Decoded data lines of one source plus its area-name lookup.

    ``lines`` holds ``(line_number, line)`` pairs for non-blank lines; the
    first pair is the header.
    """

    source_ref: str
    lines: tuple[tuple[int, str], ...]
    area_names: Mapping[str, str] = field(default_factory=dict)
    data_entry: str | None = None
    geography_entry: str | None = None

    @property
    def data_row_count(self) -> int:
        return max(0, len(self.lines) - 1)


class ArchiveCache:
    """
    Small LRU of materialized sources keyed by source reference.
    """

    def __init__(self, *, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        self._max_entries = max(1, max_entries)
        self._entries: OrderedDict[str, MaterializedSource] = OrderedDict()
        self._lock = Lock()

    def get_or_load(
        self,
        source_ref: str,
        loader: Callable[[], MaterializedSource],
    ) -> MaterializedSource:
        with self._lock:
            cached = self._entries.get(source_ref)
            if cached is not None:
                self._entries.move_to_end(source_ref)
                return cached

        loaded = loader()
        with self._lock:
            self._entries[source_ref] = loaded
            self._entries.move_to_end(source_ref)
            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.info("Archive cache evicted source_ref=%s", evicted)
        logger.info(
            "Archive cache loaded source_ref=%s rows=%s area_names=%s",
            source_ref,
            loaded.data_row_count,
            len(loaded.area_names),
        )
        return loaded

    def invalidate(self, source_ref: str) -> bool:
        with self._lock:
            return self._entries.pop(source_ref, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, source_ref: object) -> bool:
        with self._lock:
            return source_ref in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
