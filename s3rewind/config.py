# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3rewind Configuration - Immutable configuration data structures.

All configuration is frozen (immutable) after creation so the target time
and apply settings cannot drift while a restore is in progress.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List
import re


class ApplyErrorPolicy(str, Enum):
    """What the applier does after a key fails to restore."""

    ABORT = "abort"  # Stop issuing operations after the first failure
    CONTINUE = "continue"  # Apply every key, report all failures at the end


def _validate_bucket_name(bucket: str) -> bool:
    """
    Validate S3 bucket name according to AWS rules.

    Rules:
    - 3-63 characters
    - Lowercase letters, numbers, hyphens, periods
    - Must start and end with letter or number
    - No consecutive periods
    - Not formatted as IP address
    """
    if not bucket or len(bucket) < 3 or len(bucket) > 63:
        return False

    if not re.match(r"^[a-z0-9][a-z0-9.-]*[a-z0-9]$", bucket):
        return False

    if ".." in bucket:
        return False

    if re.match(r"^\d+\.\d+\.\d+\.\d+$", bucket):
        return False

    return True


def _validate_endpoint_url(url: str) -> bool:
    """Endpoint must be an http(s) URL with a host."""
    return bool(re.match(r"^https?://[^/\s]+", url))


@dataclass(frozen=True)
class RestoreConfig:
    """
    Immutable configuration for a point-in-time restore.

    target_time is always timezone-aware; naive values are rejected here
    and normalized by create_config()/parse_target_time() before they
    reach this class.
    """

    # Required: bucket to restore
    bucket: str

    # Required: instant the bucket should be rewound to
    target_time: datetime

    # AWS region (default: us-east-1)
    region: str = "us-east-1"

    # S3-compatible endpoint (MinIO, Ceph, moto, ...)
    endpoint_url: str | None = None

    # Maximum concurrent copy/delete operations
    max_concurrent_ops: int = 10

    # Page size for ListObjectVersions
    s3_list_batch_size: int = 1000

    # Behaviour after a per-key failure
    error_policy: ApplyErrorPolicy = ApplyErrorPolicy.ABORT

    # Report what would change without touching the bucket
    dry_run: bool = False

    # Emit debug-level logs for this run
    debug: bool = False

    # Botocore retry attempts per call (throttling, transient faults)
    max_attempts: int = 5

    # Overall deadline for the run in seconds (None = no deadline)
    deadline_seconds: float | None = None

    def __post_init__(self) -> None:
        """Validate configuration after creation."""
        errors: List[str] = []

        if not _validate_bucket_name(self.bucket):
            errors.append(f"Invalid bucket name: {self.bucket!r}")

        if not isinstance(self.target_time, datetime):
            errors.append(f"target_time must be a datetime, got {type(self.target_time).__name__}")
        elif self.target_time.tzinfo is None:
            errors.append("target_time must be timezone-aware")

        if self.endpoint_url is not None and not _validate_endpoint_url(self.endpoint_url):
            errors.append(f"Invalid endpoint_url: {self.endpoint_url!r}")

        if self.max_concurrent_ops < 1:
            errors.append(f"max_concurrent_ops must be >= 1, got {self.max_concurrent_ops}")

        if not 1 <= self.s3_list_batch_size <= 1000:
            errors.append(f"s3_list_batch_size must be 1-1000, got {self.s3_list_batch_size}")

        if self.max_attempts < 1:
            errors.append(f"max_attempts must be >= 1, got {self.max_attempts}")

        if self.deadline_seconds is not None and self.deadline_seconds <= 0:
            errors.append(f"deadline_seconds must be > 0, got {self.deadline_seconds}")

        if not isinstance(self.error_policy, ApplyErrorPolicy):
            errors.append(f"Invalid error_policy: {self.error_policy!r}")

        # Raise all errors at once
        if errors:
            from s3rewind.exceptions import ConfigurationError

            raise ConfigurationError(
                "Configuration validation failed",
                details={"errors": errors},
            )

    def with_updates(self, **kwargs) -> "RestoreConfig":
        """
        Create a new config with updated values.

        Since the config is frozen, this creates a new instance.
        """
        from dataclasses import asdict

        current = asdict(self)
        current.update(kwargs)
        return RestoreConfig(**current)
