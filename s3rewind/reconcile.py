# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3rewind Reconciliation - Fold a bucket's version history into per-key decisions.

Records arrive in whatever order the listing produces: newest-first,
oldest-first, interleaved with other keys, split across pages. The engine
never assumes first-seen is newest. For every key it keeps two facts:

- the best record dated at or before the target (the "past" record)
- whether any record dated after the target was seen

Both are updated with a pure max-reduction, so feeding the same records in
any order or page chunking gives the same mapping. The decision for a key
is only made in finalize(), after the whole stream has been read:

- a past record exists and it is a version  -> RESTORE that version
- a past record exists and it is a marker   -> DELETE (already gone at T)
- only future records                       -> DELETE (did not exist at T)
"""

from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Tuple

import structlog

from s3rewind.models import ResolvedEntry, VersionPage, VersionRecord
from s3rewind.timeparse import ensure_utc

RecordRank = Tuple[datetime, bool, str]


def record_rank(record: VersionRecord) -> RecordRank:
    """
    Total order used to pick the winning past record.

    Newer timestamps win. On equal timestamps a delete marker beats an
    object version, and records of the same kind fall back to the greatest
    version id, so the winner never depends on arrival order.
    """
    return (
        ensure_utc(record.last_modified),
        record.is_delete_marker,
        record.version_id or "",
    )


@dataclass
class _KeyState:
    best_past: VersionRecord | None = None
    saw_future: bool = False


class ReconciliationEngine:
    """
    Accumulates version records and resolves each key against a target time.

    The accumulator is private: callers only ingest() records and
    finalize() once the stream is exhausted.

    Example:
        engine = ReconciliationEngine(target)
        async for page in backend.list_version_pages(bucket):
            engine.ingest_page(page)
        resolved = engine.finalize()
    """

    def __init__(self, target: datetime, logger: Any = None):
        self._target = ensure_utc(target)
        self._state: Dict[str, _KeyState] = {}
        self._record_count = 0
        self._finalized: Mapping[str, ResolvedEntry] | None = None
        self._logger = logger or structlog.get_logger()

    @property
    def target(self) -> datetime:
        return self._target

    @property
    def key_count(self) -> int:
        return len(self._state)

    @property
    def record_count(self) -> int:
        return self._record_count

    @property
    def is_finalized(self) -> bool:
        return self._finalized is not None

    @property
    def changed_key_count(self) -> int:
        """Keys with at least one record dated after the target."""
        return sum(1 for state in self._state.values() if state.saw_future)

    def ingest(self, record: VersionRecord) -> None:
        """Fold one record into the state of its key."""
        if self._finalized is not None:
            raise RuntimeError("ReconciliationEngine already finalized")

        self._record_count += 1
        state = self._state.get(record.key)
        if state is None:
            state = self._state[record.key] = _KeyState()

        if ensure_utc(record.last_modified) > self._target:
            state.saw_future = True
            self._logger.debug(
                "record_after_target",
                key=record.key,
                version_id=record.version_id,
                delete_marker=record.is_delete_marker,
            )
            return

        if state.best_past is None or record_rank(record) > record_rank(state.best_past):
            state.best_past = record
            self._logger.debug(
                "record_selected",
                key=record.key,
                version_id=record.version_id,
                delete_marker=record.is_delete_marker,
                last_modified=record.last_modified.isoformat(),
            )

    def ingest_page(self, page: VersionPage) -> None:
        for record in page.versions:
            self.ingest(record)
        for record in page.delete_markers:
            self.ingest(record)

    def finalize(self) -> Mapping[str, ResolvedEntry]:
        """
        Resolve every key seen so far.

        Returns a read-only mapping; calling finalize() again returns the
        same mapping.
        """
        if self._finalized is not None:
            return self._finalized

        resolved: Dict[str, ResolvedEntry] = {}
        for key, state in self._state.items():
            resolved[key] = _resolve(key, state)

        self._finalized = MappingProxyType(resolved)

        restores = sum(1 for e in resolved.values() if e.version_id is not None)
        self._logger.info(
            "reconciliation_finalized",
            target=self._target.isoformat(),
            records=self._record_count,
            keys=len(resolved),
            restores=restores,
            deletes=len(resolved) - restores,
            changed_after_target=self.changed_key_count,
        )
        return self._finalized


def _resolve(key: str, state: _KeyState) -> ResolvedEntry:
    best = state.best_past
    if best is None:
        return ResolvedEntry.delete(key)
    if best.is_delete_marker:
        return ResolvedEntry.delete(key, best.last_modified)
    # S3 addresses objects written before versioning was enabled as "null"
    return ResolvedEntry.restore(key, best.version_id or "null", best.last_modified)


def reconcile(
    records: Iterable[VersionRecord],
    target: datetime,
    logger: Any = None,
) -> Mapping[str, ResolvedEntry]:
    """Fold an iterable of records into a resolved mapping."""
    engine = ReconciliationEngine(target, logger=logger)
    for record in records:
        engine.ingest(record)
    return engine.finalize()


def resolve_key(records: Iterable[VersionRecord], target: datetime) -> ResolvedEntry:
    """
    Resolve a single key's records.

    Raises:
        ValueError: If records is empty or mixes several keys
    """
    resolved = reconcile(records, target)
    if len(resolved) != 1:
        raise ValueError(f"Expected records for exactly one key, got {len(resolved)}")
    return next(iter(resolved.values()))
