"""SQL database adapter backed by SQLAlchemy"""
import asyncio
import logging
import threading
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    MetaData, Table, create_engine, extract, func, inspect, select, text
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError, NoSuchTableError, SQLAlchemyError

from ..errors import ConfigurationError, DataSourceConnectionError
from ..models import (
    Aggregation, BackendQuery, ColumnSchema, PostgreSQLConfig, QueryFilter, Record, Schema,
    StructuredQuery
)
from ..query.executor import DATE_OPERATORS
from ..utils.json_encoder import normalize_records
from .base import DataSourceAdapter

logger = logging.getLogger(__name__)

NUMBER_TYPES = ("int", "numeric", "decimal", "real", "double", "float", "serial", "money")
STRING_TYPES = ("char", "text", "string", "clob", "uuid")
DATE_TYPES = ("date", "time")


def map_sql_type(sql_type: str) -> str:
    """Map a catalog column type to a schema type"""
    lowered = sql_type.lower()
    if "bool" in lowered:
        return "boolean"
    if any(name in lowered for name in DATE_TYPES):
        return "date"
    if any(name in lowered for name in NUMBER_TYPES):
        return "number"
    return "string"


# ============================================================================
# Structured query compilation
# ============================================================================

def _filter_clause(column, query_filter: QueryFilter):
    operator, value = query_filter.operator, query_filter.value
    if operator == "equals":
        return column == value
    if operator == "contains":
        return column.ilike(f"%{value}%")
    if operator == "starts_with":
        return column.ilike(f"{value}%")
    if operator == "ends_with":
        return column.ilike(f"%{value}")
    if operator in ("greater_than", "date_after"):
        return column > value
    if operator in ("less_than", "date_before"):
        return column < value
    if operator == "greater_equal":
        return column >= value
    if operator == "less_equal":
        return column <= value
    if operator == "date_equals":
        return func.date(column) == value
    if operator == "year_equals":
        if map_sql_type(str(column.type)) == "number":
            return column == int(value)
        return extract("year", column) == int(value)
    return None


def _aggregate_expression(table: Table, aggregation: Aggregation):
    if aggregation.function == "count":
        expression = func.count()
    else:
        if aggregation.column not in table.c:
            raise ConfigurationError(f"Unknown aggregation column: {aggregation.column}")
        function = {"sum": func.sum, "avg": func.avg, "max": func.max, "min": func.min}
        expression = function[aggregation.function](table.c[aggregation.column])
    return expression.label(aggregation.output_name)


def compile_structured_query(table: Table, query: StructuredQuery):
    """
    Build a SELECT statement equivalent to in-memory structured query execution.

    Unknown columns in filters are skipped, except date operators which
    fall back to the first date-typed column. Aggregate labels match the
    CSV executor's output field names.
    """
    columns = table.c
    date_columns = [column.name for column in columns if map_sql_type(str(column.type)) == "date"]

    conditions = []
    for query_filter in query.filters:
        name = query_filter.column
        if name not in columns:
            if query_filter.operator in DATE_OPERATORS and date_columns:
                name = date_columns[0]
            else:
                logger.warning(f"Filter column '{query_filter.column}' not in table, skipping")
                continue
        clause = _filter_clause(columns[name], query_filter)
        if clause is not None:
            conditions.append(clause)

    group_by = [columns[name] for name in (query.groupBy or []) if name in columns]
    aggregations = query.aggregations
    if group_by and not aggregations:
        aggregations = [Aggregation(function="count")]

    labelled = {}
    if aggregations:
        expressions = [_aggregate_expression(table, aggregation) for aggregation in aggregations]
        labelled = {expression.name: expression for expression in expressions}
        statement = select(*group_by, *expressions).select_from(table)
        if group_by:
            statement = statement.group_by(*group_by)
    else:
        selected = [columns[name] for name in query.select if name in columns]
        statement = select(*selected) if selected else select(table)

    if conditions:
        statement = statement.where(*conditions)

    if query.orderBy:
        order_name = query.orderBy.column
        order_column = columns[order_name] if order_name in columns else labelled.get(order_name)
        if order_column is None:
            logger.warning(f"Order column '{order_name}' not in table or aggregates, skipping")
        else:
            statement = statement.order_by(
                order_column.desc() if query.orderBy.direction == "desc" else order_column.asc()
            )

    if query.limit is not None:
        statement = statement.limit(query.limit)
    return statement


class SQLAdapter(DataSourceAdapter):
    """
    SQL adapter with one pooled engine per distinct connection string.

    Engines are reused across calls and only disposed by cleanup().
    """

    source_type = "postgresql"
    config_model = PostgreSQLConfig

    def __init__(self):
        self._engines: Dict[str, Engine] = {}
        self._lock = threading.Lock()

    def get_engine(self, connection_string: str) -> Engine:
        """Get or create the pooled engine for a connection string"""
        with self._lock:
            engine = self._engines.get(connection_string)
            if engine is None:
                try:
                    engine = create_engine(connection_string, pool_pre_ping=True)
                except (ArgumentError, ImportError) as e:
                    raise ConfigurationError(f"Invalid connection string: {e}") from e
                self._engines[connection_string] = engine
                logger.info(f"Created connection pool ({engine.dialect.name})")
            return engine

    def cleanup(self):
        """Dispose every pooled engine"""
        with self._lock:
            for engine in self._engines.values():
                engine.dispose()
            self._engines.clear()

    # ------------------------------------------------------------------------
    # Blocking implementations, run in a worker thread
    # ------------------------------------------------------------------------

    def _describe(self, config: PostgreSQLConfig) -> Schema:
        inspector = inspect(self.get_engine(config.connection_string))
        if not config.table_name:
            return Schema(columns=[], tables=inspector.get_table_names())
        columns = [
            ColumnSchema(
                name=column["name"],
                type=map_sql_type(str(column["type"])),
                nullable=column.get("nullable"),
            )
            for column in inspector.get_columns(config.table_name)
        ]
        return Schema(columns=columns, tableName=config.table_name)

    def _run(self, config: PostgreSQLConfig, query: BackendQuery) -> List[Record]:
        engine = self.get_engine(config.connection_string)
        if isinstance(query, StructuredQuery):
            if not config.table_name:
                raise ConfigurationError("Structured queries require 'table_name' in the SQL config")
            table = Table(config.table_name, MetaData(), autoload_with=engine)
            statement = compile_structured_query(table, query)
        else:
            statement = text(query)

        with engine.connect() as connection:
            result = connection.execute(statement)
            return normalize_records([dict(row._mapping) for row in result])

    def _ping(self, config: PostgreSQLConfig) -> bool:
        with self.get_engine(config.connection_string).connect() as connection:
            connection.execute(text("SELECT 1"))
        return True

    # ------------------------------------------------------------------------
    # Adapter interface
    # ------------------------------------------------------------------------

    async def get_schema(self, config: Dict[str, Any]) -> Schema:
        sql_config = self.parse_config(config)
        try:
            return await asyncio.to_thread(self._describe, sql_config)
        except NoSuchTableError as e:
            raise ConfigurationError(f"Table not found: {e}") from e
        except SQLAlchemyError as e:
            raise DataSourceConnectionError(f"Schema lookup failed: {e}") from e

    async def execute_query(self, config: Dict[str, Any], query: BackendQuery) -> List[Record]:
        sql_config = self.parse_config(config)
        try:
            results = await asyncio.to_thread(self._run, sql_config, query)
        except NoSuchTableError as e:
            raise ConfigurationError(f"Table not found: {e}") from e
        except SQLAlchemyError as e:
            raise DataSourceConnectionError(f"Query execution failed: {e}") from e
        logger.info(f"SQL query returned {len(results)} rows")
        return results

    async def validate_connection(self, config: Dict[str, Any]) -> bool:
        try:
            sql_config = self.parse_config(config)
            return await asyncio.to_thread(self._ping, sql_config)
        except Exception as e:
            logger.error(f"SQL connection check failed: {e}")
            return False

    def reference_schema(self, config: Dict[str, Any]) -> Optional[Schema]:
        """Static schema to use when the catalog is unreachable"""
        try:
            return self.parse_config(config).reference_schema
        except ConfigurationError:
            return None
