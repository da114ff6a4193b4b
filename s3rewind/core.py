# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3rewind Core - Orchestrates a point-in-time restore.

A run has two strictly ordered phases:
1. Read the bucket's full version history into the ReconciliationEngine
2. Apply the finalized mapping with the RestoreApplier

No write is issued until the history has been read completely, so a
listing failure leaves the bucket untouched.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, UTC
from types import MappingProxyType
from typing import Any, List, Mapping

from s3rewind.apply import ApplyResult, RestoreApplier
from s3rewind.backend import VersionBackend, open_s3_backend
from s3rewind.config import RestoreConfig
from s3rewind.exceptions import (
    ApplyError,
    DeadlineExceededError,
    EnumerationError,
    S3RewindError,
)
from s3rewind.logs import make_logger
from s3rewind.models import ResolvedEntry
from s3rewind.reconcile import ReconciliationEngine


@dataclass
class RestoreResult:
    """Result of a restore run."""

    operation_id: str  # ULID
    bucket: str
    target_time: datetime
    dry_run: bool
    records_read: int
    keys_reconciled: int
    resolved: Mapping[str, ResolvedEntry]
    apply_result: ApplyResult
    duration_seconds: float

    @property
    def restored_count(self) -> int:
        return self.apply_result.restored_count

    @property
    def deleted_count(self) -> int:
        return self.apply_result.deleted_count

    @property
    def failed_keys(self) -> List[str]:
        return self.apply_result.failed_keys

    @property
    def skipped_keys(self) -> List[str]:
        return self.apply_result.skipped_keys

    @property
    def errors(self) -> List[str]:
        return [f"{key}: {error}" for key, error in sorted(self.apply_result.failed.items())]

    @property
    def ok(self) -> bool:
        return self.apply_result.ok


async def build_resolved_map(
    backend: VersionBackend,
    bucket: str,
    engine: ReconciliationEngine,
) -> Mapping[str, ResolvedEntry]:
    """
    Read the whole version history into the engine and finalize it.

    Raises:
        EnumerationError: If listing fails at any point; nothing is finalized
    """
    try:
        async for page in backend.list_version_pages(bucket):
            engine.ingest_page(page)
    except S3RewindError:
        raise
    except Exception as e:
        raise EnumerationError(
            f"Failed to list object versions: {e}",
            details={"bucket": bucket, "records_read": engine.record_count},
        ) from e

    return engine.finalize()


async def run_restore(
    config: RestoreConfig,
    backend: VersionBackend | None = None,
    logger: Any = None,
) -> RestoreResult:
    """
    Restore a bucket to config.target_time.

    This is the main entry point. It:
    1. Lists every object version and delete marker in the bucket
    2. Resolves each key to the version it had at the target time
    3. Copies that version over the current object, or deletes the key
       when it did not exist (or was deleted) at the target time

    Args:
        config: Restore configuration
        backend: Storage backend; an S3 backend is opened from config when omitted
        logger: structlog logger; built from config when omitted

    Returns:
        RestoreResult with per-phase details

    Raises:
        EnumerationError: If the version listing fails (no writes were made)
        ApplyError: If any key failed or was skipped; carries the RestoreResult
        DeadlineExceededError: If config.deadline_seconds elapsed; carries
            the partial RestoreResult
    """
    from ulid import ULID

    operation_id = str(ULID())
    log = (logger or make_logger(config)).bind(
        operation_id=operation_id, bucket=config.bucket
    )

    # Owned here so progress survives cancellation by the deadline
    start_time = datetime.now(UTC)
    engine = ReconciliationEngine(config.target_time, logger=log)
    apply_result = ApplyResult(total_keys=0, dry_run=config.dry_run)

    deadline = asyncio.timeout(config.deadline_seconds)
    try:
        async with deadline:
            if backend is not None:
                await _run(config, backend, log, engine, apply_result)
            else:
                async with open_s3_backend(config, logger=log) as s3_backend:
                    await _run(config, s3_backend, log, engine, apply_result)
    except TimeoutError as e:
        if not deadline.expired():
            raise
        result = _build_result(config, operation_id, engine, apply_result, start_time)
        finished = (
            set(apply_result.restored_keys)
            | set(apply_result.deleted_keys)
            | set(apply_result.failed)
        )
        apply_result.skipped_keys = sorted(set(result.resolved) - finished)
        log.error(
            "restore_deadline_exceeded",
            deadline_seconds=config.deadline_seconds,
            restored=result.restored_count,
            deleted=result.deleted_count,
            skipped=len(apply_result.skipped_keys),
        )
        raise DeadlineExceededError(
            "Restore did not finish before its deadline; applied keys were kept",
            result=result,
            details={
                "operation_id": operation_id,
                "deadline_seconds": config.deadline_seconds,
                "skipped_keys": len(apply_result.skipped_keys),
            },
        ) from e

    result = _build_result(config, operation_id, engine, apply_result, start_time)

    if not apply_result.ok:
        message = f"Failed to restore {len(apply_result.failed)} of {result.keys_reconciled} keys"
        if apply_result.failed:
            key = apply_result.failed_keys[0]
            message += f" ({key}: {apply_result.failed[key]})"
        raise ApplyError(
            message,
            result=result,
            details={
                "operation_id": operation_id,
                "failed_keys": apply_result.failed_keys,
                "skipped_keys": len(apply_result.skipped_keys),
            },
        )

    log.info(
        "restore_completed",
        keys=result.keys_reconciled,
        restored=result.restored_count,
        deleted=result.deleted_count,
        duration=result.duration_seconds,
    )
    return result


async def _run(
    config: RestoreConfig,
    backend: VersionBackend,
    log: Any,
    engine: ReconciliationEngine,
    apply_result: ApplyResult,
) -> None:
    log.info(
        "restore_started",
        target=config.target_time.isoformat(),
        dry_run=config.dry_run,
    )

    try:
        resolved = await build_resolved_map(backend, config.bucket, engine)
    except EnumerationError as e:
        log.error("version_listing_failed", error=str(e))
        raise

    applier = RestoreApplier(
        backend,
        config.bucket,
        max_concurrent_ops=config.max_concurrent_ops,
        error_policy=config.error_policy,
        dry_run=config.dry_run,
        logger=log,
    )
    await applier.apply(resolved, result=apply_result)


def _build_result(
    config: RestoreConfig,
    operation_id: str,
    engine: ReconciliationEngine,
    apply_result: ApplyResult,
    start_time: datetime,
) -> RestoreResult:
    # A run cut short during listing has no mapping; never finalize a partial history
    resolved = engine.finalize() if engine.is_finalized else MappingProxyType({})
    apply_result.restored_keys.sort()
    apply_result.deleted_keys.sort()
    apply_result.skipped_keys.sort()

    duration = (datetime.now(UTC) - start_time).total_seconds()
    return RestoreResult(
        operation_id=operation_id,
        bucket=config.bucket,
        target_time=config.target_time,
        dry_run=config.dry_run,
        records_read=engine.record_count,
        keys_reconciled=len(resolved),
        resolved=resolved,
        apply_result=apply_result,
        duration_seconds=duration,
    )
