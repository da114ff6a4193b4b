# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Target time parsing.

The restore target is accepted in RFC 3339 or any unambiguous format
python-dateutil understands. All results are timezone-aware; times given
without a zone are taken to be UTC, which is also how S3 reports
LastModified.
"""

from datetime import UTC, datetime

from dateutil import parser as date_parser

from s3rewind.errors import explain_invalid_target_time
from s3rewind.exceptions import ConfigurationError


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_target_time(value: str | datetime | None) -> datetime:
    """
    Parse a restore target time.

    Args:
        value: A datetime, or a string such as "2024-03-01T12:00:00Z",
               "2024-03-01 12:00:00+02:00" or "March 1 2024 12:00"

    Returns:
        Timezone-aware datetime in UTC

    Raises:
        ConfigurationError: If the value is empty or cannot be parsed
    """
    if isinstance(value, datetime):
        return ensure_utc(value)

    if value is None or not value.strip():
        raise ConfigurationError(explain_invalid_target_time(value))

    try:
        parsed = date_parser.isoparse(value.strip())
    except ValueError:
        try:
            parsed = date_parser.parse(value.strip())
        except (ValueError, OverflowError) as exc:
            raise ConfigurationError(explain_invalid_target_time(value)) from exc

    return ensure_utc(parsed)
