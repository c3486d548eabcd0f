"""
Infrastructure package for typeprobe.

Centralizes database connectivity concerns (URL building, scoped engines,
schema setup). Keep this layer focused on I/O and resource management,
decoupled from runner/orchestrator logic.
"""

from typeprobe.infrastructure.db_factory import (
    build_dsn,
    database_scope,
    init_schema,
    mask_password,
    to_sync_url,
)

__all__ = [
    "build_dsn",
    "database_scope",
    "init_schema",
    "mask_password",
    "to_sync_url",
]
