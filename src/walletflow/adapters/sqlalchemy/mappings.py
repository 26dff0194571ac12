"""SQLAlchemy mapping metadata for persisted login preferences."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, Dialect, String, Table, TypeDecorator, orm
from sqlalchemy.orm import configure_mappers

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(eq=False)
class PreferenceEntry:
    """One key/value pair of the login preference store."""

    key: str
    value: str
    updated_at: datetime = field(default_factory=_utcnow)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()

preference_table = Table(
    "preference",
    mapper_registry.metadata,
    Column("key", String(64), primary_key=True),
    Column("value", String(512), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the preference store."""

    log.info("Starting SQLAlchemy mappers")
    mapper_registry.map_imperatively(PreferenceEntry, preference_table)
    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
