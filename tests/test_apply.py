# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Applier Tests for s3rewind.

These tests verify the apply guarantees:
1. One backend call per key, matching its resolved action
2. Dry-run never touches the bucket
3. Abort policy stops new operations after the first failure
4. Continue policy applies everything and reports every failure
5. Concurrency stays within the configured bound
6. Applying the same mapping twice gives the same bucket state
"""

import asyncio

import pytest

from s3rewind.apply import ApplyResult, RestoreApplier
from s3rewind.config import ApplyErrorPolicy
from s3rewind.models import ResolvedEntry
from s3rewind.reconcile import reconcile

from tests.conftest import TARGET, FakeVersionBackend, version


def _mapping(*entries: ResolvedEntry) -> dict:
    return {entry.key: entry for entry in entries}


@pytest.mark.asyncio
async def test_restore_copies_and_delete_deletes():
    backend = FakeVersionBackend([version("key", -1, "versionid"), version("gone", 1, "v1")])
    applier = RestoreApplier(backend, "bucket")

    result = await applier.apply(
        _mapping(ResolvedEntry.restore("key", "versionid"), ResolvedEntry.delete("gone"))
    )

    assert sorted(backend.calls) == [
        ("copy", "bucket", "key", "versionid"),
        ("delete", "bucket", "gone"),
    ]
    assert result.restored_keys == ["key"]
    assert result.deleted_keys == ["gone"]
    assert result.ok
    assert result.applied_count == 2


@pytest.mark.asyncio
async def test_each_key_applied_exactly_once():
    records = [version(f"k{i}", -1, "v1") for i in range(30)]
    backend = FakeVersionBackend(records)
    result = await RestoreApplier(backend, "bucket", max_concurrent_ops=7).apply(
        reconcile(records, TARGET)
    )

    keys = [call[2] for call in backend.calls]
    assert sorted(keys) == sorted({r.key for r in records})
    assert result.restored_count == 30


@pytest.mark.asyncio
async def test_dry_run_makes_no_calls():
    backend = FakeVersionBackend([version("a", -1, "v1")])
    applier = RestoreApplier(backend, "bucket", dry_run=True)

    result = await applier.apply(
        _mapping(ResolvedEntry.restore("a", "v1"), ResolvedEntry.delete("b"))
    )

    assert backend.calls == []
    assert result.dry_run
    assert result.restored_keys == ["a"]
    assert result.deleted_keys == ["b"]


@pytest.mark.asyncio
async def test_abort_policy_stops_after_first_failure():
    records = [version(k, -1, "v1") for k in ("a", "b", "c", "d")]
    backend = FakeVersionBackend(records, fail_keys={"b"})
    applier = RestoreApplier(
        backend, "bucket", max_concurrent_ops=1, error_policy=ApplyErrorPolicy.ABORT
    )

    result = await applier.apply(reconcile(records, TARGET))

    assert result.restored_keys == ["a"]
    assert result.failed_keys == ["b"]
    assert "AccessDenied" in result.failed["b"]
    assert result.skipped_keys == ["c", "d"]
    assert not result.ok
    # c and d were never sent to the backend
    assert [call[2] for call in backend.calls] == ["a", "b"]


@pytest.mark.asyncio
async def test_continue_policy_applies_everything_and_collects_failures():
    records = [version(k, -1, "v1") for k in ("a", "b", "c", "d")]
    backend = FakeVersionBackend(records, fail_keys={"b", "d"})
    applier = RestoreApplier(
        backend, "bucket", max_concurrent_ops=1, error_policy=ApplyErrorPolicy.CONTINUE
    )

    result = await applier.apply(reconcile(records, TARGET))

    assert result.restored_keys == ["a", "c"]
    assert result.failed_keys == ["b", "d"]
    assert result.skipped_keys == []
    assert not result.ok


@pytest.mark.asyncio
async def test_failure_does_not_affect_other_keys():
    records = [version("good", -2, "v1"), version("good", 1, "v2"), version("bad", -1, "v1")]
    backend = FakeVersionBackend(records, fail_keys={"bad"})
    applier = RestoreApplier(
        backend, "bucket", max_concurrent_ops=4, error_policy=ApplyErrorPolicy.CONTINUE
    )

    await applier.apply(reconcile(records, TARGET))

    assert backend.current("good") == "v1"


@pytest.mark.asyncio
async def test_concurrency_is_bounded():
    records = [version(f"k{i}", -1, "v1") for i in range(20)]
    backend = FakeVersionBackend(records, op_delay=0.01)
    await RestoreApplier(backend, "bucket", max_concurrent_ops=3).apply(
        reconcile(records, TARGET)
    )

    assert backend.max_in_flight == 3


@pytest.mark.asyncio
async def test_applying_same_mapping_twice_is_idempotent():
    records = [
        version("file1", -2, "v1"),
        version("file1", 1, "v2"),
        version("file2", -3, "v1"),
        version("file3", 2, "v1"),
    ]
    backend = FakeVersionBackend(records)
    resolved = reconcile(records, TARGET)
    applier = RestoreApplier(backend, "bucket")

    await applier.apply(resolved)
    once = backend.snapshot()
    await applier.apply(resolved)
    twice = backend.snapshot()

    assert once == twice == {"file1": "v1", "file2": "v1", "file3": None}


@pytest.mark.asyncio
async def test_empty_mapping_is_a_successful_no_op():
    backend = FakeVersionBackend()
    result = await RestoreApplier(backend, "bucket").apply({})
    assert result.ok
    assert result.total_keys == 0
    assert backend.calls == []


def test_rejects_non_positive_concurrency():
    with pytest.raises(ValueError):
        RestoreApplier(FakeVersionBackend(), "bucket", max_concurrent_ops=0)


@pytest.mark.asyncio
async def test_progress_recorded_into_callers_result_survives_cancellation():
    records = [version(f"k{i}", -1, "v1") for i in range(5)]
    backend = FakeVersionBackend(records, op_delay=0.2)
    applier = RestoreApplier(backend, "bucket", max_concurrent_ops=1)
    progress = ApplyResult(total_keys=0, dry_run=False)

    with pytest.raises(TimeoutError):
        await asyncio.wait_for(applier.apply(reconcile(records, TARGET), result=progress), 0.3)

    assert progress.total_keys == 5
    assert progress.restored_keys == ["k0"]
    assert progress.failed == {}
