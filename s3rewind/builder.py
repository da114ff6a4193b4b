# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3rewind Builder - Functional builder pattern for configuration.

This module provides pure functions for building RestoreConfig objects.
Each function takes a config dict and returns a new dict with the
modification applied (immutable updates).
"""

from datetime import datetime
from typing import Any, Callable, Dict

from s3rewind.config import ApplyErrorPolicy, RestoreConfig
from s3rewind.errors import (
    explain_invalid_error_policy,
    explain_invalid_option,
    explain_missing_bucket,
    explain_missing_target_time,
)
from s3rewind.exceptions import ConfigurationError
from s3rewind.timeparse import parse_target_time


# Type alias for builder functions
ConfigDict = Dict[str, Any]
BuilderFunc = Callable[[ConfigDict], ConfigDict]


def create_empty_config() -> ConfigDict:
    """
    Create an initial empty configuration dictionary.

    Returns:
        Dict with default values for all configuration fields
    """
    return {
        "bucket": "",
        "target_time": None,
        "region": "us-east-1",
        "endpoint_url": None,
        "max_concurrent_ops": 10,
        "s3_list_batch_size": 1000,
        "error_policy": ApplyErrorPolicy.ABORT,
        "dry_run": False,
        "debug": False,
        "max_attempts": 5,
        "deadline_seconds": None,
    }


def with_bucket(config: ConfigDict, bucket_name: str) -> ConfigDict:
    """
    Set the S3 bucket name.

    Args:
        config: Current configuration dictionary
        bucket_name: Name of the versioned bucket to restore

    Returns:
        New configuration dictionary with bucket set
    """
    return {**config, "bucket": bucket_name}


def with_target_time(config: ConfigDict, target: str | datetime) -> ConfigDict:
    """
    Set the instant the bucket should be restored to.

    Args:
        config: Current configuration dictionary
        target: datetime or date string (RFC 3339 or flexible format)

    Returns:
        New configuration dictionary with target_time set

    Raises:
        ConfigurationError: If the string cannot be parsed
    """
    return {**config, "target_time": parse_target_time(target)}


def with_region(config: ConfigDict, region: str) -> ConfigDict:
    """
    Set the AWS region.

    Args:
        config: Current configuration dictionary
        region: AWS region (e.g., 'us-east-1', 'eu-west-1')

    Returns:
        New configuration dictionary with region set
    """
    return {**config, "region": region}


def with_endpoint_url(config: ConfigDict, endpoint_url: str | None) -> ConfigDict:
    """
    Point the client at an S3-compatible endpoint.

    Args:
        config: Current configuration dictionary
        endpoint_url: e.g. 'http://localhost:9000' for MinIO

    Returns:
        New configuration dictionary with endpoint_url set
    """
    return {**config, "endpoint_url": endpoint_url or None}


def with_max_concurrent_ops(config: ConfigDict, max_ops: int) -> ConfigDict:
    """
    Set the maximum number of concurrent copy/delete operations.

    Args:
        config: Current configuration dictionary
        max_ops: Maximum concurrent operations

    Returns:
        New configuration dictionary with max_concurrent_ops set
    """
    if max_ops < 1:
        raise ValueError(f"max_concurrent_ops must be >= 1, got {max_ops}")
    return {**config, "max_concurrent_ops": max_ops}


def with_s3_batch_size(config: ConfigDict, batch_size: int) -> ConfigDict:
    """
    Set the page size for version listing.

    Args:
        config: Current configuration dictionary
        batch_size: Number of entries to list per request

    Returns:
        New configuration dictionary with batch size set
    """
    if batch_size < 1 or batch_size > 1000:
        raise ValueError(f"s3_list_batch_size must be 1-1000, got {batch_size}")
    return {**config, "s3_list_batch_size": batch_size}


def with_max_attempts(config: ConfigDict, attempts: int) -> ConfigDict:
    """Set how many times botocore tries each call before giving up."""
    if attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {attempts}")
    return {**config, "max_attempts": attempts}


def with_deadline(config: ConfigDict, seconds: float | None) -> ConfigDict:
    """
    Bound the whole run (listing and apply) by a deadline.

    Operations already applied when the deadline fires are kept.
    """
    if seconds is not None and seconds <= 0:
        raise ValueError(f"deadline must be > 0 seconds, got {seconds}")
    return {**config, "deadline_seconds": seconds}


def dry_run_mode(config: ConfigDict) -> ConfigDict:
    """
    Report what would change without copying or deleting anything.

    Args:
        config: Current configuration dictionary

    Returns:
        New configuration dictionary with dry-run enabled
    """
    return {**config, "dry_run": True}


def execute_mode(config: ConfigDict) -> ConfigDict:
    """
    Apply the restore to the bucket (the default).

    WARNING: objects created after the target time will be deleted.
    """
    return {**config, "dry_run": False}


def continue_on_error(config: ConfigDict) -> ConfigDict:
    """
    Keep applying the remaining keys after a failure.

    All failed keys are reported at the end instead of stopping at the
    first one. Copy and delete are idempotent, so a rerun retries them.
    """
    return {**config, "error_policy": ApplyErrorPolicy.CONTINUE}


def abort_on_error(config: ConfigDict) -> ConfigDict:
    """Stop issuing operations after the first failed key (the default)."""
    return {**config, "error_policy": ApplyErrorPolicy.ABORT}


def debug_logging(config: ConfigDict, enabled: bool = True) -> ConfigDict:
    """Enable debug-level logging for runs using this config."""
    return {**config, "debug": enabled}


def build_config(config_dict: ConfigDict) -> RestoreConfig:
    """
    Validate and build an immutable RestoreConfig from a configuration dictionary.

    Args:
        config_dict: Configuration dictionary built using builder functions

    Returns:
        Validated, immutable RestoreConfig instance

    Raises:
        ConfigurationError: If validation fails
    """
    if not config_dict.get("bucket"):
        raise ConfigurationError(explain_missing_bucket())

    if config_dict.get("target_time") is None:
        raise ConfigurationError(explain_missing_target_time())

    return RestoreConfig(**config_dict)


def pipe(*funcs: BuilderFunc) -> BuilderFunc:
    """
    Compose multiple builder functions into a single function.

    This allows a more readable pipeline style:

        config = pipe(
            lambda c: with_bucket(c, "my-bucket"),
            lambda c: with_target_time(c, "2024-03-01T12:00:00Z"),
            dry_run_mode,
        )(create_empty_config())

    Args:
        *funcs: Builder functions to compose

    Returns:
        A single function that applies all functions in sequence
    """

    def composed(config: ConfigDict) -> ConfigDict:
        result = config
        for func in funcs:
            result = func(result)
        return result

    return composed


def build_from_steps(*steps: BuilderFunc) -> RestoreConfig:
    """
    Build config by applying a sequence of builder functions.

    Example:
        config = build_from_steps(
            lambda c: with_bucket(c, "my-bucket"),
            lambda c: with_target_time(c, "2024-03-01T12:00:00Z"),
            continue_on_error,
        )

    Args:
        *steps: Builder functions to apply in sequence

    Returns:
        Validated, immutable RestoreConfig instance
    """
    return build_config(pipe(*steps)(create_empty_config()))


def create_config(
    bucket: str,
    target_time: str | datetime,
    *,
    region: str = "us-east-1",
    endpoint_url: str | None = None,
    max_concurrent_ops: int = 10,
    error_policy: str | ApplyErrorPolicy = "abort",
    dry_run: bool = False,
    debug: bool = False,
    **kwargs: Any,
) -> RestoreConfig:
    """
    Create restore configuration from simple parameters.

    This is the recommended user-facing API for creating configurations.

    Args:
        bucket: S3 bucket name (required)
        target_time: Instant to restore to; datetime or date string (required)
        region: AWS region (default: "us-east-1")
        endpoint_url: S3-compatible endpoint URL (optional)
        max_concurrent_ops: Concurrent copy/delete operations (default: 10)
        error_policy: "abort" or "continue" (default: "abort")
        dry_run: Only report what would change (default: False)
        debug: Enable debug logging (default: False)
        **kwargs: Additional configuration options

    Returns:
        Validated, immutable RestoreConfig instance

    Example:
        config = create_config(
            bucket="my-bucket",
            target_time="2024-03-01T12:00:00Z",
            endpoint_url="http://localhost:9000",
            error_policy="continue",
        )
    """
    config_dict = create_empty_config()
    config_dict = with_bucket(config_dict, bucket)

    if target_time is None or (isinstance(target_time, str) and not target_time.strip()):
        raise ConfigurationError(explain_missing_target_time())
    config_dict = with_target_time(config_dict, target_time)

    if region:
        config_dict = with_region(config_dict, region)

    config_dict = with_endpoint_url(config_dict, endpoint_url)

    if isinstance(error_policy, str):
        try:
            error_policy = ApplyErrorPolicy(error_policy.lower())
        except ValueError as exc:
            raise ConfigurationError(explain_invalid_error_policy(error_policy)) from exc
    if error_policy == ApplyErrorPolicy.CONTINUE:
        config_dict = continue_on_error(config_dict)
    else:
        config_dict = abort_on_error(config_dict)

    config_dict = dry_run_mode(config_dict) if dry_run else execute_mode(config_dict)
    config_dict = debug_logging(config_dict, debug)

    try:
        config_dict = with_max_concurrent_ops(config_dict, max_concurrent_ops)

        # Numeric options go through their range-checking steps
        for key, value in kwargs.items():
            if key in _CHECKED_OPTIONS:
                config_dict = _CHECKED_OPTIONS[key](config_dict, value)
            elif key in config_dict:
                config_dict[key] = value
    except ValueError as exc:
        raise ConfigurationError(explain_invalid_option(exc)) from exc

    return build_config(config_dict)


_CHECKED_OPTIONS: Dict[str, Callable[[ConfigDict, Any], ConfigDict]] = {
    "s3_list_batch_size": with_s3_batch_size,
    "max_attempts": with_max_attempts,
    "deadline_seconds": with_deadline,
}
