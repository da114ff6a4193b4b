# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Environment-based configuration helpers and safety profiles.

These helpers are small, convenient wrappers around create_config() and
RestoreConfig.with_updates(). They make it easy to:

- Build a configuration from environment variables
- Apply ready-made safety profiles
"""

from __future__ import annotations

import os

from s3rewind.builder import create_config
from s3rewind.config import ApplyErrorPolicy, RestoreConfig
from s3rewind.errors import (
    explain_invalid_bool_env,
    explain_invalid_error_policy,
    explain_invalid_positive_int_env,
    explain_missing_bucket,
    explain_missing_target_time,
)
from s3rewind.exceptions import ConfigurationError

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(name: str, value: str | None) -> bool:
    if not value:
        return False
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(explain_invalid_bool_env(name, value))


def _parse_positive_int(name: str, value: str | None, default: int) -> int:
    if not value:
        return default
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_positive_int_env(name, value)) from exc
    if number < 1:
        raise ConfigurationError(explain_invalid_positive_int_env(name, value))
    return number


def _parse_error_policy(value: str | None) -> ApplyErrorPolicy:
    if not value:
        return ApplyErrorPolicy.ABORT
    try:
        return ApplyErrorPolicy(value.strip().lower())
    except ValueError as exc:
        raise ConfigurationError(explain_invalid_error_policy(value)) from exc


def create_config_from_env() -> RestoreConfig:
    """
    Create a RestoreConfig from environment variables.

    Required:
        - S3_BUCKET: Name of the versioned bucket to restore
        - S3REWIND_TARGET_TIME: Instant to restore to (RFC 3339 or flexible date)

    Optional environment variables:
        - AWS_REGION: AWS region (default: us-east-1)
        - S3REWIND_ENDPOINT_URL: S3-compatible endpoint (falls back to AWS_ENDPOINT_URL)
        - S3REWIND_MAX_CONCURRENT_OPS: Positive integer (default: 10)
        - S3REWIND_ERROR_POLICY: 'abort' | 'continue' (default: abort)
        - S3REWIND_DRY_RUN: Boolean (default: false)
        - S3REWIND_DEBUG: Boolean (default: false)
    """

    bucket = os.getenv("S3_BUCKET")
    if not bucket:
        raise ConfigurationError(explain_missing_bucket())

    target_time = os.getenv("S3REWIND_TARGET_TIME")
    if not target_time:
        raise ConfigurationError(explain_missing_target_time())

    region = os.getenv("AWS_REGION", "us-east-1")
    endpoint_url = os.getenv("S3REWIND_ENDPOINT_URL") or os.getenv("AWS_ENDPOINT_URL")
    max_concurrent_ops = _parse_positive_int(
        "S3REWIND_MAX_CONCURRENT_OPS", os.getenv("S3REWIND_MAX_CONCURRENT_OPS"), 10
    )
    error_policy = _parse_error_policy(os.getenv("S3REWIND_ERROR_POLICY"))
    dry_run = _parse_bool("S3REWIND_DRY_RUN", os.getenv("S3REWIND_DRY_RUN"))
    debug = _parse_bool("S3REWIND_DEBUG", os.getenv("S3REWIND_DEBUG"))

    return create_config(
        bucket=bucket,
        target_time=target_time,
        region=region,
        endpoint_url=endpoint_url,
        max_concurrent_ops=max_concurrent_ops,
        error_policy=error_policy,
        dry_run=dry_run,
        debug=debug,
    )


# ============================================================================
# Profiles
# ============================================================================

def safe_defaults(config: RestoreConfig) -> RestoreConfig:
    """
    Apply conservative, safety-first defaults.

    - Dry run (nothing is copied or deleted)
    - Abort at the first failed key
    """

    return config.with_updates(
        dry_run=True,
        error_policy=ApplyErrorPolicy.ABORT,
    )


def best_effort(config: RestoreConfig) -> RestoreConfig:
    """
    Apply a best-effort profile for large buckets.

    - Keep going after failed keys and report all of them at the end
    - At least 5 retry attempts per call for throttled endpoints
    """

    return config.with_updates(
        error_policy=ApplyErrorPolicy.CONTINUE,
        max_attempts=max(config.max_attempts, 5),
    )
