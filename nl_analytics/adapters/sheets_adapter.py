"""Spreadsheet adapter using the Sheets REST values endpoint"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..errors import DataSourceConnectionError
from ..models import BackendQuery, ColumnSchema, GoogleSheetsConfig, Record, Schema
from ..query.type_inference import is_empty, parse_date, parse_number
from .base import DataSourceAdapter

logger = logging.getLogger(__name__)

# Share of non-empty samples that must match for a non-text column
TYPE_MATCH_THRESHOLD = 0.8


def infer_sheet_column_type(samples: List[Any]) -> str:
    """
    Classify a spreadsheet column as number, date or text.

    Returns "string" for text so the result fits the common schema types.
    """
    values = [value for value in samples if not is_empty(value)]
    if not values:
        return "string"
    numeric = sum(1 for value in values if parse_number(value) is not None)
    if numeric / len(values) > TYPE_MATCH_THRESHOLD:
        return "number"
    dates = sum(1 for value in values if parse_date(value) is not None)
    if dates / len(values) > TYPE_MATCH_THRESHOLD:
        return "date"
    return "string"


def rows_to_records(rows: List[List[Any]]) -> List[Record]:
    """Turn header + data rows into header-keyed records; missing or blank cells become None"""
    if not rows:
        return []
    headers = [str(header) for header in rows[0]]
    records = []
    for row in rows[1:]:
        record = {}
        for index, header in enumerate(headers):
            value = row[index] if index < len(row) else None
            record[header] = None if is_empty(value) else value
        records.append(record)
    return records


class GoogleSheetsAdapter(DataSourceAdapter):
    """Reads spreadsheet ranges; the first row holds the headers"""

    source_type = "google_sheets"
    config_model = GoogleSheetsConfig

    def __init__(
        self,
        base_url: Optional[str] = None,
        sample_rows: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = (base_url or settings.SHEETS_API_BASE_URL).rstrip("/")
        self.sample_rows = sample_rows or settings.SHEETS_SAMPLE_ROWS
        self._transport = transport

    def _request_args(self, config: GoogleSheetsConfig) -> Dict[str, Any]:
        params, headers = {}, {}
        if config.access_token:
            headers["Authorization"] = f"Bearer {config.access_token}"
        elif config.api_key:
            params["key"] = config.api_key
        return {"params": params, "headers": headers}

    async def _get_values(self, config: GoogleSheetsConfig, cell_range: Optional[str] = None) -> List[List[Any]]:
        url = f"{self.base_url}/{config.spreadsheet_id}/values/{cell_range or config.range}"
        try:
            async with httpx.AsyncClient(timeout=settings.API_REQUEST_TIMEOUT, transport=self._transport) as client:
                response = await client.get(url, **self._request_args(config))
                response.raise_for_status()
                return response.json().get("values", [])
        except httpx.HTTPStatusError as e:
            raise DataSourceConnectionError(
                f"Spreadsheet request failed: {e.response.status_code} {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise DataSourceConnectionError(f"Spreadsheet request failed: {e}") from e

    async def get_schema(self, config: Dict[str, Any]) -> Schema:
        sheets_config = self.parse_config(config)
        rows = await self._get_values(sheets_config)
        if not rows:
            return Schema(columns=[], rowCount=0)

        headers, data_rows = rows[0], rows[1:]
        sample = data_rows[:self.sample_rows]
        columns = []
        for index, header in enumerate(headers):
            values = [row[index] if index < len(row) else None for row in sample]
            columns.append(ColumnSchema(
                name=str(header),
                type=infer_sheet_column_type(values),
                sampleValues=[value for value in values if not is_empty(value)][:3],
            ))
        return Schema(columns=columns, rowCount=len(data_rows))

    async def execute_query(self, config: Dict[str, Any], query: BackendQuery) -> List[Record]:
        sheets_config = self.parse_config(config)
        records = rows_to_records(await self._get_values(sheets_config))

        if isinstance(query, str) and ("where" in query.lower() or "filter" in query.lower()):
            return self._apply_simple_filters(records, query)
        return records

    def _apply_simple_filters(self, records: List[Record], query: str) -> List[Record]:
        # Known limitation: text filters are not parsed, every row is returned
        logger.warning(f"Spreadsheet text filters are not supported, returning all rows: {query[:100]}")
        return records

    async def validate_connection(self, config: Dict[str, Any]) -> bool:
        try:
            sheets_config = self.parse_config(config)
            await self._get_values(sheets_config, cell_range="A1:A1")
            return True
        except Exception as e:
            logger.error(f"Spreadsheet connection check failed: {e}")
            return False
