"""CSV file adapter"""
import asyncio
import logging
import os
from typing import Any, Dict, List, Tuple

import pandas as pd
from pydantic import ValidationError

from ..config import settings
from ..errors import ConfigurationError
from ..models import BackendQuery, ColumnSchema, CSVConfig, Record, Schema, StructuredQuery
from ..query.executor import execute_structured_query
from ..query.type_inference import convert_value, infer_type, sample_values
from .base import DataSourceAdapter

logger = logging.getLogger(__name__)


def coerce_structured_query(query: BackendQuery) -> StructuredQuery:
    """Accept a StructuredQuery or its JSON text"""
    if isinstance(query, StructuredQuery):
        return query
    try:
        return StructuredQuery.model_validate_json(query)
    except ValidationError as e:
        raise ConfigurationError(f"Expected a structured query, got text: {query[:100]}") from e


class CSVAdapter(DataSourceAdapter):
    """
    Reads the whole file on every call and queries it in memory.

    No index is kept between calls; CSV sources are small batch files.
    """

    source_type = "csv"
    config_model = CSVConfig

    def __init__(self, sample_size: int = None):
        self.sample_size = sample_size or settings.TYPE_SAMPLE_SIZE

    def _read_frame(self, config: CSVConfig) -> pd.DataFrame:
        if not os.path.isfile(config.file_path):
            raise ConfigurationError(f"CSV file not found: {config.file_path}")
        try:
            frame = pd.read_csv(
                config.file_path,
                sep=config.delimiter,
                header=0 if config.has_header else None,
                dtype=str,
                keep_default_na=False,
                encoding=config.encoding,
                skipinitialspace=True,
            )
        except pd.errors.EmptyDataError:
            return pd.DataFrame()
        except (pd.errors.ParserError, UnicodeDecodeError, OSError) as e:
            raise ConfigurationError(f"CSV file could not be read: {e}") from e

        if not config.has_header:
            frame.columns = [f"column_{index + 1}" for index in range(len(frame.columns))]
        else:
            frame.columns = [str(column).strip() for column in frame.columns]
        return frame

    async def load(self, config: Dict[str, Any]) -> Tuple[List[Record], Dict[str, str]]:
        """
        Parse the file into typed records.

        Returns:
            Records with converted cells, and the inferred type per column
        """
        csv_config = self.parse_config(config)
        frame = await asyncio.to_thread(self._read_frame, csv_config)
        raw_records = frame.to_dict(orient="records")
        columns = list(frame.columns)

        column_types = {
            column: infer_type(frame[column].tolist(), self.sample_size)
            for column in columns
        }
        records = [
            {column: convert_value(row[column], column_types[column]) for column in columns}
            for row in raw_records
        ]
        logger.debug(f"Loaded {len(records)} rows from {csv_config.file_path}: {column_types}")
        return records, column_types

    async def get_schema(self, config: Dict[str, Any]) -> Schema:
        csv_config = self.parse_config(config)
        frame = await asyncio.to_thread(self._read_frame, csv_config)
        columns = []
        for column in frame.columns:
            values = frame[column].tolist()
            columns.append(ColumnSchema(
                name=column,
                type=infer_type(values, self.sample_size),
                sampleValues=sample_values(values, settings.QUICK_SAMPLE_SIZE),
            ))
        return Schema(columns=columns, rowCount=len(frame))

    async def execute_query(self, config: Dict[str, Any], query: BackendQuery) -> List[Record]:
        structured = coerce_structured_query(query)
        records, column_types = await self.load(config)
        results = execute_structured_query(records, structured, column_types)
        logger.info(f"CSV query returned {len(results)} of {len(records)} rows")
        return results

    async def validate_connection(self, config: Dict[str, Any]) -> bool:
        try:
            csv_config = self.parse_config(config)
            if not os.path.isfile(csv_config.file_path) or os.path.getsize(csv_config.file_path) == 0:
                return False
            await asyncio.to_thread(self._read_frame, csv_config)
            return True
        except Exception as e:
            logger.error(f"CSV connection check failed: {e}")
            return False
