# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3rewind Models - Records read from the bucket and the decisions made about them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Tuple


class RestoreAction(str, Enum):
    """What to do with a key so it matches the target time."""

    RESTORE = "restore"  # Copy a historical version over the current object
    DELETE = "delete"  # Remove the current object


@dataclass(frozen=True)
class VersionRecord:
    """
    One historical state transition of a key.

    Object versions always carry a version_id. Delete markers usually do
    too (S3 returns one), but it is never used to address anything.
    """

    key: str
    last_modified: datetime
    version_id: str | None = None
    is_delete_marker: bool = False

    @classmethod
    def from_version_entry(cls, entry: Dict[str, Any]) -> "VersionRecord":
        """Build a record from a ListObjectVersions 'Versions' entry."""
        return cls(
            key=entry["Key"],
            last_modified=entry["LastModified"],
            version_id=entry.get("VersionId"),
            is_delete_marker=False,
        )

    @classmethod
    def from_delete_marker_entry(cls, entry: Dict[str, Any]) -> "VersionRecord":
        """Build a record from a ListObjectVersions 'DeleteMarkers' entry."""
        return cls(
            key=entry["Key"],
            last_modified=entry["LastModified"],
            version_id=entry.get("VersionId"),
            is_delete_marker=True,
        )


@dataclass(frozen=True)
class VersionPage:
    """One page of a version listing."""

    versions: Tuple[VersionRecord, ...] = ()
    delete_markers: Tuple[VersionRecord, ...] = ()

    @classmethod
    def from_response(cls, page: Dict[str, Any]) -> "VersionPage":
        return cls(
            versions=tuple(
                VersionRecord.from_version_entry(v) for v in page.get("Versions", [])
            ),
            delete_markers=tuple(
                VersionRecord.from_delete_marker_entry(m)
                for m in page.get("DeleteMarkers", [])
            ),
        )

    def __len__(self) -> int:
        return len(self.versions) + len(self.delete_markers)


@dataclass(frozen=True)
class ResolvedEntry:
    """The state a key must be put in to match the target time."""

    key: str
    action: RestoreAction
    version_id: str | None = None
    # Timestamp of the record that won; None when the key only has
    # records newer than the target
    last_modified: datetime | None = field(default=None, compare=False)

    @classmethod
    def restore(
        cls, key: str, version_id: str, last_modified: datetime | None = None
    ) -> "ResolvedEntry":
        return cls(key, RestoreAction.RESTORE, version_id, last_modified)

    @classmethod
    def delete(cls, key: str, last_modified: datetime | None = None) -> "ResolvedEntry":
        return cls(key, RestoreAction.DELETE, None, last_modified)
