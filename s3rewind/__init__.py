# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3rewind - Point-in-time restore for versioned S3 buckets.

Reads a bucket's complete version history, works out which version every
key had at a target instant, then copies those versions back over the
current objects and deletes keys that did not exist at that instant.
"""

__version__ = "0.1.0"

# Configuration creation (user-facing API)
from s3rewind.builder import create_config
from s3rewind.config import ApplyErrorPolicy, RestoreConfig

# Core functions
from s3rewind.core import RestoreResult, run_restore

# Building blocks
from s3rewind.apply import ApplyResult, RestoreApplier
from s3rewind.backend import S3VersionBackend, VersionBackend, open_s3_backend
from s3rewind.models import ResolvedEntry, RestoreAction, VersionPage, VersionRecord
from s3rewind.reconcile import ReconciliationEngine, reconcile

# Environment-based configuration and profiles (additional helpers)
from s3rewind.env import (
    create_config_from_env,
    safe_defaults,
    best_effort,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "create_config",
    "create_config_from_env",
    "safe_defaults",
    "best_effort",
    "RestoreConfig",
    "ApplyErrorPolicy",
    # Orchestration
    "run_restore",
    "RestoreResult",
    # Building blocks
    "ReconciliationEngine",
    "reconcile",
    "RestoreApplier",
    "ApplyResult",
    "VersionBackend",
    "S3VersionBackend",
    "open_s3_backend",
    "VersionRecord",
    "VersionPage",
    "ResolvedEntry",
    "RestoreAction",
]
