# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3rewind Applier - Push a resolved mapping onto the live bucket.

Every key is independent: a RESTORE entry copies its version over the
current object, a DELETE entry deletes the current object. Operations run
concurrently under a semaphore, each key at most once. Nothing is rolled
back; a rerun with the same mapping converges to the same bucket state
because copy-from-version and delete are both idempotent in effect.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, Dict, List, Mapping

import structlog

from s3rewind.backend import VersionBackend
from s3rewind.config import ApplyErrorPolicy
from s3rewind.models import ResolvedEntry, RestoreAction


@dataclass
class ApplyResult:
    """Outcome of applying a resolved mapping."""

    total_keys: int
    dry_run: bool
    restored_keys: List[str] = field(default_factory=list)
    deleted_keys: List[str] = field(default_factory=list)
    # key -> error message
    failed: Dict[str, str] = field(default_factory=dict)
    # Keys never attempted because an earlier failure aborted the run
    skipped_keys: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def restored_count(self) -> int:
        return len(self.restored_keys)

    @property
    def deleted_count(self) -> int:
        return len(self.deleted_keys)

    @property
    def applied_count(self) -> int:
        return len(self.restored_keys) + len(self.deleted_keys)

    @property
    def failed_keys(self) -> List[str]:
        return sorted(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.skipped_keys


class RestoreApplier:
    """
    Applies ResolvedEntry decisions to a bucket through a VersionBackend.

    Args:
        backend: Storage backend
        bucket: Bucket to mutate
        max_concurrent_ops: Upper bound on in-flight operations
        error_policy: ABORT stops starting new operations after the first
            failure (in-flight ones finish); CONTINUE applies every key
        dry_run: Log planned operations without calling the backend
        logger: structlog logger for this run
    """

    def __init__(
        self,
        backend: VersionBackend,
        bucket: str,
        *,
        max_concurrent_ops: int = 10,
        error_policy: ApplyErrorPolicy = ApplyErrorPolicy.ABORT,
        dry_run: bool = False,
        logger: Any = None,
    ):
        if max_concurrent_ops < 1:
            raise ValueError(f"max_concurrent_ops must be >= 1, got {max_concurrent_ops}")
        self._backend = backend
        self._bucket = bucket
        self._max_concurrent_ops = max_concurrent_ops
        self._error_policy = error_policy
        self._dry_run = dry_run
        self._logger = logger or structlog.get_logger()

    async def apply_entry(self, entry: ResolvedEntry) -> None:
        """Issue the single backend call for one key."""
        if entry.action == RestoreAction.RESTORE:
            if self._dry_run:
                self._logger.info("would_restore", key=entry.key, version_id=entry.version_id)
                return
            await self._backend.copy_version_to_current(
                self._bucket, entry.key, entry.version_id
            )
            self._logger.info("object_restored", key=entry.key, version_id=entry.version_id)
        else:
            if self._dry_run:
                self._logger.info("would_delete", key=entry.key)
                return
            await self._backend.delete_object(self._bucket, entry.key)
            self._logger.info("object_deleted", key=entry.key)

    async def apply(
        self,
        resolved: Mapping[str, ResolvedEntry],
        result: ApplyResult | None = None,
    ) -> ApplyResult:
        """
        Apply every entry of a finalized mapping.

        Args:
            resolved: Finalized mapping from the ReconciliationEngine
            result: ApplyResult to record progress into as each key
                finishes; a fresh one is created when omitted

        Returns:
            ApplyResult; check .ok before treating the restore as complete
        """
        start_time = datetime.now(UTC)
        if result is None:
            result = ApplyResult(total_keys=len(resolved), dry_run=self._dry_run)
        else:
            result.total_keys = len(resolved)
            result.dry_run = self._dry_run
        semaphore = asyncio.Semaphore(self._max_concurrent_ops)
        stop = asyncio.Event()

        self._logger.info(
            "apply_started",
            bucket=self._bucket,
            keys=len(resolved),
            max_concurrent_ops=self._max_concurrent_ops,
            error_policy=self._error_policy.value,
            dry_run=self._dry_run,
        )

        async def apply_one(entry: ResolvedEntry) -> None:
            async with semaphore:
                if stop.is_set():
                    result.skipped_keys.append(entry.key)
                    return
                try:
                    await self.apply_entry(entry)
                except Exception as e:
                    result.failed[entry.key] = str(e)
                    self._logger.error(
                        "apply_key_failed",
                        key=entry.key,
                        action=entry.action.value,
                        version_id=entry.version_id,
                        error=str(e),
                    )
                    if self._error_policy == ApplyErrorPolicy.ABORT:
                        stop.set()
                    return

                if entry.action == RestoreAction.RESTORE:
                    result.restored_keys.append(entry.key)
                else:
                    result.deleted_keys.append(entry.key)

        await asyncio.gather(*[apply_one(resolved[key]) for key in sorted(resolved)])

        result.restored_keys.sort()
        result.deleted_keys.sort()
        result.skipped_keys.sort()
        result.duration_seconds = (datetime.now(UTC) - start_time).total_seconds()

        log = self._logger.info if result.ok else self._logger.error
        log(
            "apply_completed",
            bucket=self._bucket,
            restored=result.restored_count,
            deleted=result.deleted_count,
            failed=len(result.failed),
            skipped=len(result.skipped_keys),
            duration=result.duration_seconds,
            dry_run=self._dry_run,
        )
        return result
