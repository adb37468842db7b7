"""
DataStore — in-memory statistics snapshot backed by pandas.

The snapshot is loaded lazily on first use and reloaded once it is older
than the cache TTL. A reload builds a brand-new DataFrame and swaps the
cache reference in one assignment, so readers only ever see a complete
snapshot. Two requests that both find the cache stale may both reload;
no lock is taken.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Mapping, Optional, Sequence

import pandas as pd

from immistats.config import CACHE_TTL_SECONDS, DATA_PATH, REGION_HIERARCHY
from immistats.data.loader import load_snapshot
from immistats.data.schemas import FilterCriteria, ImmigrationRecord


@dataclass(frozen=True)
class CacheState:
    snapshot: Optional[pd.DataFrame] = None
    loaded_at: Optional[float] = None


class SnapshotCache:
    """Holds one CacheState; every change replaces the whole state."""

    def __init__(self, ttl: float = CACHE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._state = CacheState()

    @property
    def state(self) -> CacheState:
        return self._state

    def is_fresh(self, state: CacheState) -> bool:
        if state.snapshot is None or state.loaded_at is None:
            return False
        return self._clock() - state.loaded_at < self.ttl

    def put(self, snapshot: pd.DataFrame) -> CacheState:
        state = CacheState(snapshot=snapshot, loaded_at=self._clock())
        self._state = state
        return state

    def invalidate(self) -> None:
        self._state = CacheState()


class DataStore:
    """Statistics snapshot with filtered accessors."""

    def __init__(
        self,
        data_path: Path = DATA_PATH,
        hierarchy: Mapping[str, Sequence[str]] = REGION_HIERARCHY,
        ttl: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.data_path = Path(data_path)
        self.hierarchy = hierarchy
        self.cache = SnapshotCache(ttl=ttl, clock=clock)
        self.load_count = 0

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> "DataStore":
        """Read the snapshot file and replace the cached snapshot."""
        self._reload()
        return self

    def _reload(self) -> CacheState:
        print(f"Loading statistics data from {self.data_path}...")
        snapshot = load_snapshot(self.data_path, self.hierarchy)
        state = self.cache.put(snapshot)
        self.load_count += 1
        print(f"  {len(snapshot):,} records across {snapshot['period'].nunique()} periods")
        return state

    def invalidate(self) -> None:
        """Drop the cached snapshot; the next read reloads."""
        self.cache.invalidate()
        print("Statistics cache invalidated")

    def snapshot(self) -> pd.DataFrame:
        """Current snapshot, reloading first if the cache is empty or stale.

        The cache state is read once, so a concurrent invalidate cannot
        leave this call without a snapshot.
        """
        state = self.cache.state
        if not self.cache.is_fresh(state):
            state = self._reload()
        return state.snapshot

    @property
    def is_loaded(self) -> bool:
        return self.cache.state.snapshot is not None

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def _apply_filter(self, df: pd.DataFrame, criteria: FilterCriteria) -> pd.DataFrame:
        """Predicate filter, then keep only the N most recent periods left."""
        mask = pd.Series(True, index=df.index)
        if criteria.region_code:
            mask &= df["region"] == criteria.region_code
        if criteria.category_code:
            mask &= df["category"] == criteria.category_code
        if criteria.status:
            mask &= df["status"] == criteria.status
        if criteria.start_period:
            mask &= df["period"] >= criteria.start_period
        if criteria.end_period:
            mask &= df["period"] <= criteria.end_period
        df = df[mask]

        if criteria.trailing_months:
            recent = sorted(df["period"].unique(), reverse=True)[:criteria.trailing_months]
            df = df[df["period"].isin(recent)]
        return df

    def get_all(self, criteria: FilterCriteria | None = None) -> pd.DataFrame:
        """Filtered snapshot rows.

        Always a new frame, so callers can never mutate the cached snapshot.
        """
        df = self.snapshot()
        if criteria:
            df = self._apply_filter(df, criteria)
        return df.copy()

    def records(self, criteria: FilterCriteria | None = None) -> Iterator[ImmigrationRecord]:
        df = self.get_all(criteria)
        for period, region, category, status, value in df.itertuples(index=False, name=None):
            yield ImmigrationRecord(period, region, category, status, int(value))

    # ------------------------------------------------------------------
    # Metadata queries
    # ------------------------------------------------------------------

    def periods(self) -> list[str]:
        """Distinct periods in the snapshot, oldest first."""
        df = self.snapshot()
        if df.empty:
            return []
        return sorted(df["period"].unique().tolist())

    def row_count(self) -> int:
        return len(self.snapshot())
