"""SQLAlchemy table metadata for field stores, context graphs and diagnostic runs."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    orm,
)

from factweave.domain.model import RunStatus

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


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


class JsonText(TypeDecorator[Any]):
    """JSON document stored as text; decoding is left to the repository.

    Reads return the raw string so that a corrupt document surfaces as a load
    error for that one entity instead of failing the whole query.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        if isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), allow_nan=False)

    def process_result_value(self, value: str | None, dialect: Dialect) -> str | None:
        _ = dialect
        return value


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

field_store_table = Table(
    "field_store",
    mapper_registry.metadata,
    Column("entity_id", String, primary_key=True),
    Column("payload", JsonText, nullable=False),
    Column("version", Integer, nullable=False, default=0),
    Column("updated_at", UTCDateTime, nullable=False),
)

context_graph_table = Table(
    "context_graph",
    mapper_registry.metadata,
    Column("entity_id", String, primary_key=True),
    Column("payload", JsonText, nullable=False),
    Column("updated_at", UTCDateTime, nullable=False),
)

diagnostic_run_table = Table(
    "diagnostic_run",
    mapper_registry.metadata,
    Column("id", String, primary_key=True),
    Column("entity_id", String, nullable=False),
    Column("kind", String, nullable=False),
    Column("status", String, nullable=False, default=RunStatus.COMPLETED.value),
    Column("created_at", UTCDateTime, nullable=False),
    Column("raw_result", JsonText, nullable=True),
    Index("ix_diagnostic_run_entity_kind_created", "entity_id", "kind", "created_at"),
)


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the metadata without running migrations."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
