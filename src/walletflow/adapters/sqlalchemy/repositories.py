"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import delete, select

from walletflow.adapters.sqlalchemy.mappings import PreferenceEntry, preference_table

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.orm import Session


class SqlAlchemyPreferenceRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, key: str) -> str | None:
        entry = self.session.get(PreferenceEntry, key)
        return entry.value if entry is not None else None

    def set(self, key: str, value: str) -> None:
        entry = self.session.get(PreferenceEntry, key)
        if entry is None:
            self.session.add(PreferenceEntry(key=key, value=value))
            return
        entry.value = value
        entry.updated_at = datetime.now(UTC)

    def remove(self, keys: Iterable[str]) -> None:
        self.session.execute(delete(preference_table).where(preference_table.c.key.in_(list(keys))))

    def clear(self) -> None:
        self.session.execute(delete(preference_table))

    def keys(self) -> list[str]:
        return list(self.session.execute(select(preference_table.c.key)).scalars())
