# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3rewind Exceptions - Custom exceptions for the s3rewind package.
"""

from typing import Any


class S3RewindError(Exception):
    """Base exception for all s3rewind errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(S3RewindError):
    """Raised when configuration is invalid."""

    pass


class EnumerationError(S3RewindError):
    """Raised when listing the bucket's version history fails."""

    pass


class S3OperationError(S3RewindError):
    """Raised when a single S3 copy or delete call fails."""

    pass


class ApplyError(S3RewindError):
    """
    Raised when one or more keys could not be restored.

    The run's RestoreResult is attached so callers can see which keys were
    applied before the failure and which were never attempted.
    """

    def __init__(self, message: str, result: Any, details: dict | None = None):
        self.result = result
        super().__init__(message, details)


class DeadlineExceededError(S3RewindError):
    """
    Raised when a run does not finish before its deadline.

    Carries the partial RestoreResult: keys already applied stay applied,
    and every key without a confirmed outcome (never started, or cancelled
    in flight) is listed as skipped.
    """

    def __init__(self, message: str, result: Any, details: dict | None = None):
        self.result = result
        super().__init__(message, details)
