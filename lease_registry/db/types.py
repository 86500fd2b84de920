"""
Module: lease_registry.db.types
Responsibility: Column type decorators shared by every model.  Centralizes
    how UUIDs and timestamps are stored so that the same values round-trip
    on PostgreSQL and SQLite.
Architecture position: Registry > DB.  May be imported by models/, services/
    and selectors/.  MUST NOT import from any of those layers.
"""

from datetime import timezone
from uuid import UUID

from sqlalchemy import DateTime, String
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """
    UUID type stored as String(36) for cross-database portability.

    Guarantees:
        - process_bind_param: UUID -> str on INSERT/UPDATE.
        - process_result_value: str -> UUID on SELECT.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return UUID(value)
        return None


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware UTC timestamp.

    Contract:
        Accepts only timezone-aware datetimes on bind and always returns
        timezone-aware UTC datetimes on load.  SQLite drops the offset when
        storing, so values are normalized to UTC before they are written.

    Raises:
        ValueError: on bind of a naive datetime.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"Naive datetime not allowed: {value!r}")
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

