"""SQLAlchemy adapter package for walletflow."""

from __future__ import annotations

from .mappings import PreferenceEntry, create_all_tables, mapper_registry, start_mappers
from .repositories import SqlAlchemyPreferenceRepository
from .store import SqlAlchemyCredentialStore
from .unit_of_work import SqlAlchemyUnitOfWork, StartupError, shutdown, startup

__all__ = [
    "PreferenceEntry",
    "SqlAlchemyCredentialStore",
    "SqlAlchemyPreferenceRepository",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "create_all_tables",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
