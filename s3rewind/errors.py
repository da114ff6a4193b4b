# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Human-friendly error message helpers for s3rewind.

These helpers centralize wording for common configuration errors so that
the CLI, the environment loader and the config builder all present
consistent, actionable messages.
"""


def explain_missing_bucket() -> str:
    """
    Explain that no bucket was given.
    """

    return (
        "S3 bucket is not configured. "
        "Pass --bucket, set the S3_BUCKET environment variable, "
        "or pass bucket=... to create_config()."
    )


def explain_missing_target_time() -> str:
    """
    Explain that no target time was given.
    """

    return (
        "Target time is not configured. "
        "Pass --time, set the S3REWIND_TARGET_TIME environment variable, "
        "or pass target_time=... to create_config()."
    )


def explain_invalid_target_time(value: str | None) -> str:
    """
    Explain that the target time could not be parsed.
    """

    return (
        f"Invalid target time: {value!r}. "
        "Use RFC 3339 (e.g. 2006-01-02T15:04:05Z) or another unambiguous date such as "
        "'2024-03-01 12:00'. Times without a zone are treated as UTC."
    )


def explain_invalid_positive_int_env(name: str, value: str | None) -> str:
    """
    Explain that a numeric environment variable is invalid.
    """

    return f"Invalid {name} value: {value!r}. It must be a positive integer."


def explain_invalid_error_policy(value: str | None) -> str:
    """
    Explain that the apply error policy is unknown.
    """

    return (
        f"Invalid error policy: {value!r}. "
        "Expected 'abort' (stop at the first failed key) or 'continue' (apply every key)."
    )


def explain_invalid_bool_env(name: str, value: str | None) -> str:
    """
    Explain that a boolean environment variable is invalid.
    """

    return (
        f"Invalid {name} value: {value!r}. "
        "Expected one of: 1/0, true/false, yes/no, on/off."
    )


def explain_invalid_option(error: Exception) -> str:
    """
    Explain that a numeric option is out of range.
    """

    return (
        f"Invalid option: {error}. "
        "Concurrency and attempts must be at least 1, the listing page size 1-1000, "
        "and the deadline a positive number of seconds."
    )
