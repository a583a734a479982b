"""
Runtime schema bootstrap.

Creates every table and index that does not exist yet, one statement
per transaction, in foreign-key dependency order. Running it against
an already-initialised database is a no-op. A statement that fails
because the object already exists (for example when two workers boot
at the same time) is ignored; any other failure aborts the bootstrap.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.schema import CreateIndex, CreateTable

from portal.domain.brokerage.errors import SchemaBootstrapError
from portal.infrastructure.database.schema import INDEXES, metadata

logger = logging.getLogger(__name__)

DUPLICATE_OBJECT_SQLSTATE = "42P07"
REQUIRED_TABLE = "users"


@dataclass
class BootstrapReport:
    """Outcome of a schema bootstrap run.

    Attributes:
        dialect: Name of the database dialect.
        created_tables: Tables created by this run.
        existing_tables: Tables that were already present.
        created_indexes: Indexes created by this run.
    """

    dialect: str
    created_tables: list[str] = field(default_factory=list)
    existing_tables: list[str] = field(default_factory=list)
    created_indexes: list[str] = field(default_factory=list)


def is_duplicate_object_error(exc: SQLAlchemyError) -> bool:
    """Return True if ``exc`` reports an object that already exists."""
    orig = getattr(exc, "orig", None)
    if isinstance(exc, DBAPIError) and getattr(orig, "pgcode", None) == DUPLICATE_OBJECT_SQLSTATE:
        return True
    return "already exists" in str(orig if orig is not None else exc).lower()


def _execute_ddl(engine: Engine, statement, label: str) -> None:
    try:
        with engine.begin() as conn:
            conn.execute(statement)
    except SQLAlchemyError as exc:
        if is_duplicate_object_error(exc):
            logger.debug("Skipping %s: already exists", label)
            return
        raise SchemaBootstrapError(label, str(exc)) from exc


def bootstrap_schema(engine: Engine) -> BootstrapReport:
    """Create missing tables and indexes.

    Args:
        engine: Engine bound to the target database.

    Returns:
        A report of what was created and what already existed.

    Raises:
        SchemaBootstrapError: If a statement fails for any reason other
            than the object already existing, or if the users table is
            missing afterwards.
    """
    report = BootstrapReport(dialect=engine.dialect.name)
    inspector = inspect(engine)
    present = set(inspector.get_table_names())
    present_indexes = {
        index["name"] for name in present for index in inspector.get_indexes(name)
    }

    for table in metadata.sorted_tables:
        if table.name in present:
            report.existing_tables.append(table.name)
        _execute_ddl(engine, CreateTable(table, if_not_exists=True), f"table {table.name}")
        if table.name not in present:
            report.created_tables.append(table.name)

    for index in INDEXES:
        _execute_ddl(engine, CreateIndex(index, if_not_exists=True), f"index {index.name}")
        if index.name not in present_indexes:
            report.created_indexes.append(index.name)

    if not inspect(engine).has_table(REQUIRED_TABLE):
        raise SchemaBootstrapError(f"table {REQUIRED_TABLE}", "table missing after bootstrap")

    logger.info(
        "Schema bootstrap on %s: %d created, %d already present",
        report.dialect,
        len(report.created_tables),
        len(report.existing_tables),
    )
    return report
