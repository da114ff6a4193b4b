# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3rewind Backend - The three storage primitives a restore needs.

VersionBackend is the narrow capability the engine and applier depend on:
list the version history, copy a historical version over the current
object, delete the current object. S3VersionBackend implements it on an
aiobotocore client; tests provide an in-memory implementation.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Protocol, runtime_checkable

import structlog
from aiobotocore.config import AioConfig
from aiobotocore.session import get_session
from botocore.exceptions import BotoCoreError, ClientError

from s3rewind.config import RestoreConfig
from s3rewind.exceptions import EnumerationError, S3OperationError
from s3rewind.models import VersionPage, VersionRecord


@runtime_checkable
class VersionBackend(Protocol):
    """Storage operations consumed by a restore."""

    def list_version_pages(self, bucket: str) -> AsyncIterator[VersionPage]:
        """Yield every page of the bucket's version history."""
        ...

    async def copy_version_to_current(
        self, bucket: str, key: str, version_id: str
    ) -> None:
        """Make the given historical version the current content of key."""
        ...

    async def delete_object(self, bucket: str, key: str) -> None:
        """Delete the current object (adds a delete marker when versioned)."""
        ...


def _error_code(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code", "")
    return type(exc).__name__


class S3VersionBackend:
    """VersionBackend over an aiobotocore S3 client."""

    def __init__(self, s3_client: Any, page_size: int = 1000, logger: Any = None):
        self._client = s3_client
        self._page_size = page_size
        self._logger = logger or structlog.get_logger()

    async def list_version_pages(self, bucket: str) -> AsyncIterator[VersionPage]:
        """
        Page through ListObjectVersions.

        Raises:
            EnumerationError: If any page fails; the run must not continue
                with a partial history
        """
        paginator = self._client.get_paginator("list_object_versions")
        page_number = 0

        try:
            async for raw_page in paginator.paginate(
                Bucket=bucket,
                PaginationConfig={"PageSize": self._page_size},
            ):
                page_number += 1
                page = VersionPage.from_response(raw_page)
                self._logger.debug(
                    "version_page_listed",
                    bucket=bucket,
                    page=page_number,
                    versions=len(page.versions),
                    delete_markers=len(page.delete_markers),
                )
                yield page
        except (ClientError, BotoCoreError) as e:
            raise EnumerationError(
                f"Failed to list object versions: {e}",
                details={
                    "bucket": bucket,
                    "pages_read": page_number,
                    "code": _error_code(e),
                },
            ) from e

    async def copy_version_to_current(
        self, bucket: str, key: str, version_id: str
    ) -> None:
        try:
            await self._client.copy_object(
                Bucket=bucket,
                Key=key,
                CopySource={"Bucket": bucket, "Key": key, "VersionId": version_id},
            )
        except (ClientError, BotoCoreError) as e:
            raise S3OperationError(
                f"Failed to copy version to current: {e}",
                details={
                    "bucket": bucket,
                    "key": key,
                    "version_id": version_id,
                    "code": _error_code(e),
                },
            ) from e

    async def delete_object(self, bucket: str, key: str) -> None:
        try:
            await self._client.delete_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise S3OperationError(
                f"Failed to delete object: {e}",
                details={"bucket": bucket, "key": key, "code": _error_code(e)},
            ) from e


def make_client_config(config: RestoreConfig) -> AioConfig:
    """
    Botocore client settings for a run.

    Throttling and transient faults are retried by botocore itself with
    backoff, so the applier only ever sees a call's final outcome.
    """
    s3_options = {"addressing_style": "path"} if config.endpoint_url else None
    return AioConfig(
        retries={"max_attempts": config.max_attempts, "mode": "standard"},
        s3=s3_options,
    )


@asynccontextmanager
async def open_s3_backend(
    config: RestoreConfig, logger: Any = None
) -> AsyncIterator[S3VersionBackend]:
    """
    Open an S3VersionBackend for the configured endpoint and region.

    Credentials come from the usual botocore chain (environment, shared
    config, instance metadata).
    """
    session = get_session()
    async with session.create_client(
        "s3",
        region_name=config.region,
        endpoint_url=config.endpoint_url,
        config=make_client_config(config),
    ) as s3_client:
        yield S3VersionBackend(
            s3_client,
            page_size=config.s3_list_batch_size,
            logger=logger,
        )


async def iter_version_records(
    backend: VersionBackend, bucket: str
) -> AsyncIterator[VersionRecord]:
    """Flatten a backend's pages into individual records."""
    async for page in backend.list_version_pages(bucket):
        for record in page.versions:
            yield record
        for record in page.delete_markers:
            yield record
