"""SQLAlchemy adapter package for factweave."""

from __future__ import annotations

from .mappings import (
    context_graph_table,
    create_all_tables,
    diagnostic_run_table,
    field_store_table,
    mapper_registry,
)
from .repositories import (
    SqlAlchemyContextGraphRepository,
    SqlAlchemyDiagnosticRunRepository,
    SqlAlchemyFieldStoreRepository,
)
from .unit_of_work import (
    SqlAlchemyContextUnitOfWork,
    StartupError,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyContextGraphRepository",
    "SqlAlchemyContextUnitOfWork",
    "SqlAlchemyDiagnosticRunRepository",
    "SqlAlchemyFieldStoreRepository",
    "StartupError",
    "context_graph_table",
    "create_all_tables",
    "diagnostic_run_table",
    "field_store_table",
    "mapper_registry",
    "shutdown",
    "startup",
]
