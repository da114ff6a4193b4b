# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Test fixtures for s3rewind tests.

Provides an in-memory version backend, record helpers, and a moto S3
server for end-to-end tests.
"""

import asyncio
import itertools
from datetime import datetime, timedelta, UTC
from typing import AsyncIterator, Dict, Iterable, List, Set, Tuple

import pytest

from s3rewind.exceptions import S3OperationError
from s3rewind.models import VersionPage, VersionRecord

# Fixed target instant used across tests
TARGET = datetime(2024, 3, 1, 12, 0, 0, tzinfo=UTC)


def at(hours: float) -> datetime:
    """Instant `hours` after TARGET (negative for before)."""
    return TARGET + timedelta(hours=hours)


def version(key: str, hours: float, version_id: str) -> VersionRecord:
    """Object version record dated relative to TARGET."""
    return VersionRecord(key=key, last_modified=at(hours), version_id=version_id)


def marker(key: str, hours: float, version_id: str | None = None) -> VersionRecord:
    """Delete marker record dated relative to TARGET."""
    return VersionRecord(
        key=key,
        last_modified=at(hours),
        version_id=version_id,
        is_delete_marker=True,
    )


def chunk(records: List[VersionRecord], size: int) -> List[VersionPage]:
    """Split records into listing pages of at most `size` records."""
    pages = []
    for start in range(0, len(records), size):
        part = records[start:start + size]
        pages.append(
            VersionPage(
                versions=tuple(r for r in part if not r.is_delete_marker),
                delete_markers=tuple(r for r in part if r.is_delete_marker),
            )
        )
    return pages


class FakeVersionBackend:
    """
    In-memory VersionBackend with a real per-key history.

    Object content is modelled as the id of the version it was first
    written as, so copying "v1" back makes current(key) == "v1" again.
    """

    def __init__(
        self,
        records: Iterable[VersionRecord] = (),
        *,
        page_size: int = 2,
        fail_listing_after_pages: int | None = None,
        fail_keys: Iterable[str] = (),
        op_delay: float = 0.0,
        list_delay: float = 0.0,
    ):
        self.records: List[VersionRecord] = list(records)
        self.contents: Dict[Tuple[str, str], str | None] = {
            (r.key, r.version_id): (None if r.is_delete_marker else r.version_id)
            for r in self.records
            if r.version_id is not None
        }
        self.page_size = page_size
        self.fail_listing_after_pages = fail_listing_after_pages
        self.fail_keys: Set[str] = set(fail_keys)
        self.op_delay = op_delay
        self.list_delay = list_delay
        self.calls: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    async def list_version_pages(self, bucket: str) -> AsyncIterator[VersionPage]:
        for number, page in enumerate(chunk(self.records, self.page_size)):
            if self.fail_listing_after_pages is not None and number >= self.fail_listing_after_pages:
                raise RuntimeError("listing failed: SlowDown")
            await asyncio.sleep(self.list_delay)
            yield page

    async def _operation(self, call: tuple) -> None:
        self.calls.append(call)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.op_delay)
            if call[2] in self.fail_keys:
                raise S3OperationError("AccessDenied", details={"key": call[2]})
        finally:
            self.in_flight -= 1

    def _append(self, key: str, content: str | None) -> None:
        new_id = f"r{next(self._ids)}"
        now = datetime.now(UTC) + timedelta(seconds=next(self._clock))
        self.records.append(
            VersionRecord(
                key=key,
                last_modified=now,
                version_id=new_id,
                is_delete_marker=content is None,
            )
        )
        self.contents[(key, new_id)] = content

    async def copy_version_to_current(self, bucket: str, key: str, version_id: str) -> None:
        await self._operation(("copy", bucket, key, version_id))
        self._append(key, self.contents[(key, version_id)])

    async def delete_object(self, bucket: str, key: str) -> None:
        await self._operation(("delete", bucket, key))
        self._append(key, None)

    def current(self, key: str) -> str | None:
        """Content of the key's newest record (None when deleted or absent)."""
        records = [r for r in self.records if r.key == key]
        if not records:
            return None
        latest = max(records, key=lambda r: r.last_modified)
        if latest.is_delete_marker:
            return None
        return self.contents[(key, latest.version_id)]

    def snapshot(self) -> Dict[str, str | None]:
        return {key: self.current(key) for key in sorted({r.key for r in self.records})}


@pytest.fixture
def target() -> datetime:
    return TARGET


@pytest.fixture
def scenario_records() -> List[VersionRecord]:
    """file1 written at T-2h and T-1h, file2 written at T-3h."""
    return [
        version("file1", -2, "v1"),
        version("file1", -1, "v2"),
        version("file2", -3, "v1"),
    ]


@pytest.fixture
def fake_backend(scenario_records) -> FakeVersionBackend:
    return FakeVersionBackend(scenario_records)


@pytest.fixture(scope="session")
def moto_endpoint() -> Iterable[str]:
    """
    Run moto's S3 as a local HTTP server.

    aiobotocore talks to it over real HTTP through endpoint_url, the same
    way it talks to MinIO or any other S3-compatible endpoint.
    """
    from moto.server import ThreadedMotoServer

    server = ThreadedMotoServer(ip_address="127.0.0.1", port=0)
    server.start()
    host, port = server.get_host_and_port()
    try:
        yield f"http://{host}:{port}"
    finally:
        server.stop()


@pytest.fixture
def aws_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Dummy credentials so botocore never looks at the real environment."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("AWS_PROFILE", raising=False)
