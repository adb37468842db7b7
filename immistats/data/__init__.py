"""Snapshot loading, deaggregation, and the cached in-memory store."""
from .loader import load_snapshot, deaggregate, extract_entries
from .store import DataStore, SnapshotCache, CacheState
from .schemas import FilterCriteria, EstimationRequest, EstimationResult, ImmigrationRecord, StatusCode
