"""
The inventory store: bulk read and keyed, all-or-nothing bulk update of the
flat `inventory_data` table through SQLAlchemy Core.
"""
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Mapping
from pydantic import ValidationError
from sqlalchemy import (
    Float,
    Integer,
    Numeric,
    String,
    bindparam,
    column,
    create_engine,
    inspect,
    select,
    table,
    text,
    update,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import ArgumentError, InterfaceError, NoSuchTableError, OperationalError
from sqlalchemy.sql.expression import TableClause

from . import settings
from .exceptions import SchemaMismatch, StorageUnavailable
from .schemas import (
    CATEGORICAL_COLUMNS,
    DECIMAL_PRECISION,
    DECIMAL_SCALE,
    DERIVED_COLUMNS,
    NUMERIC_COLUMNS,
    STATUS_MAX_LENGTH,
    DerivedFields,
    InventoryRecord,
)
from .utils import chunked

logger = logging.getLogger(__name__)

SOURCE_COLUMN_TYPES = {
    **{name: String(100) for name in CATEGORICAL_COLUMNS},
    **{name: Float() for name in NUMERIC_COLUMNS},
}
# Older extracts name the lead time column in the plural.
LEGACY_COLUMN_TYPES = {"Lead_times": Float()}

_decimal = Numeric(DECIMAL_PRECISION, DECIMAL_SCALE, asdecimal=False)
_status = String(STATUS_MAX_LENGTH)
DERIVED_COLUMN_TYPES = {
    "EOQ": _decimal,
    "Reorder_Point": _decimal,
    "Inventory_Turnover": _decimal,
    "Days_Sales_of_Inventory": Integer(),
    "Low_Stock_Status": _status,
    "Overstock_Status": _status,
    "Daily_Demand": _decimal,
    "Lead_Time_Demand": _decimal,
    "Safety_Stock": _decimal,
    "Movement_Flag": _status,
}

COLUMN_TYPES = {**SOURCE_COLUMN_TYPES, **LEGACY_COLUMN_TYPES, **DERIVED_COLUMN_TYPES}


class InventoryStore:
    """Reads source rows and writes derived KPI columns for one table."""

    def __init__(
        self,
        database_url: str | None = None,
        *,
        engine: Engine | None = None,
        table_name: str | None = None,
    ):
        self.table_name = table_name or settings.INVENTORY_TABLE
        if engine is None:
            url = database_url or settings.DATABASE_URL
            try:
                engine = create_engine(url)
            except ArgumentError as e:
                raise StorageUnavailable(f"Invalid database URL '{url}': {e}") from e
        self.engine = engine

    @contextmanager
    def _begin(self) -> Iterator[Connection]:
        """One connection and one transaction; any exception rolls it back."""
        try:
            conn = self.engine.connect()
        except (OperationalError, InterfaceError) as e:
            raise StorageUnavailable(
                f"Could not connect to {self.engine.url.render_as_string(hide_password=True)}: {e}"
            ) from e
        with conn:
            with conn.begin():
                yield conn

    def _existing_columns(self, conn: Connection) -> list[str]:
        try:
            return [col["name"] for col in inspect(conn).get_columns(self.table_name)]
        except NoSuchTableError as e:
            raise SchemaMismatch(f"Table '{self.table_name}' does not exist.") from e

    def _derived_names(self, present: list[str]) -> dict[str, str]:
        """Maps each derived column to the table's own spelling of it, ignoring case."""
        by_lower = {name.lower(): name for name in present}
        return {
            name: by_lower[name.lower()] for name in DERIVED_COLUMNS if name.lower() in by_lower
        }

    def _table(self, names: list[str]) -> TableClause:
        return table(
            self.table_name,
            *(column(name, COLUMN_TYPES[name]) for name in names if name in COLUMN_TYPES),
        )

    def ensure_derived_columns(self) -> list[str]:
        """
        Adds the derived KPI columns the table does not have yet.
        Already-present columns are left alone, so repeated runs are no-ops.
        """
        with self._begin() as conn:
            existing = {name.lower() for name in self._existing_columns(conn)}
            missing = [name for name in DERIVED_COLUMNS if name.lower() not in existing]
            preparer = conn.dialect.identifier_preparer
            for name in missing:
                column_type = DERIVED_COLUMN_TYPES[name].compile(dialect=conn.dialect)
                conn.execute(
                    text(
                        f"ALTER TABLE {preparer.quote(self.table_name)} "
                        f"ADD COLUMN {preparer.quote(name)} {column_type}"
                    )
                )

        if missing:
            logger.info(f"Added derived columns to '{self.table_name}': {', '.join(missing)}")
        else:
            logger.info(f"Derived columns already present on '{self.table_name}'.")
        return missing

    def read_all(self) -> list[InventoryRecord]:
        """All source records, ordered by SKU."""
        with self._begin() as conn:
            present = self._existing_columns(conn)
            readable = [
                name
                for name in present
                if name in SOURCE_COLUMN_TYPES or name in LEGACY_COLUMN_TYPES
            ]
            if "SKU" not in readable:
                raise SchemaMismatch(f"Table '{self.table_name}' has no SKU column.")
            source = self._table(readable)
            rows = conn.execute(select(*source.columns).order_by(source.c.SKU)).mappings().all()

        records = [InventoryRecord.model_validate(dict(row)) for row in rows]
        logger.info(f"Read {len(records)} records from '{self.table_name}'.")
        return records

    def read_derived(self) -> dict[str, dict[str, Any]]:
        """Current derived-column values per SKU (NULL until first computed)."""
        with self._begin() as conn:
            resolved = self._derived_names(self._existing_columns(conn))
            derived = table(
                self.table_name,
                column("SKU", SOURCE_COLUMN_TYPES["SKU"]),
                *(column(actual, DERIVED_COLUMN_TYPES[name]) for name, actual in resolved.items()),
            )
            rows = conn.execute(select(*derived.columns).order_by(derived.c.SKU)).mappings().all()
        return {
            row["SKU"]: {name: row[actual] for name, actual in resolved.items()} for row in rows
        }

    def bulk_update(self, batch: Mapping[str, Mapping[str, Any]]) -> int:
        """
        Writes every row of `batch` (SKU -> derived column values) in a
        single transaction. The whole batch is validated before anything is
        written; an unknown SKU or a failed statement rolls back every row.
        """
        validated: dict[str, dict[str, Any]] = {}
        for sku, values in batch.items():
            try:
                validated[sku] = DerivedFields.model_validate(dict(values)).to_columns()
            except ValidationError as e:
                raise SchemaMismatch(f"Derived fields for SKU {sku} do not fit the schema: {e}") from e

        with self._begin() as conn:
            resolved = self._derived_names(self._existing_columns(conn))
            absent = [name for name in DERIVED_COLUMNS if name not in resolved]
            if absent:
                raise SchemaMismatch(
                    f"Table '{self.table_name}' is missing derived columns: {', '.join(absent)}"
                )

            target = table(
                self.table_name,
                column("SKU", SOURCE_COLUMN_TYPES["SKU"]),
                *(column(resolved[name], DERIVED_COLUMN_TYPES[name]) for name in DERIVED_COLUMNS),
            )
            stored_skus = set(conn.execute(select(target.c.SKU)).scalars())
            unknown = sorted(set(validated) - stored_skus)
            if unknown:
                raise SchemaMismatch(f"SKUs not found in '{self.table_name}': {', '.join(unknown)}")

            statement = (
                update(target)
                .where(target.c.SKU == bindparam("key_sku"))
                .values({resolved[name]: bindparam(f"new_{name}") for name in DERIVED_COLUMNS})
            )
            params = [
                {"key_sku": sku, **{f"new_{name}": value for name, value in columns.items()}}
                for sku, columns in validated.items()
            ]
            for chunk in chunked(params, settings.UPDATE_CHUNK_SIZE):
                conn.execute(statement, list(chunk))

        logger.info(f"Updated derived fields for {len(params)} records in '{self.table_name}'.")
        return len(params)
