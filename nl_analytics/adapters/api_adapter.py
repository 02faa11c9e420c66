"""Generic JSON API adapter"""
import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..errors import DataSourceConnectionError
from ..models import APIConfig, BackendQuery, ColumnSchema, Record, Schema
from .base import DataSourceAdapter

logger = logging.getLogger(__name__)

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}")


def infer_json_type(value: Any) -> str:
    """Type of a decoded JSON scalar: number, boolean, date or string"""
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str) and ISO_DATE_PATTERN.match(value):
        return "date"
    return "string"


def coerce_to_records(payload: Any) -> List[Record]:
    """Coerce a decoded payload to a list of records"""
    if isinstance(payload, list):
        return [item if isinstance(item, dict) else {"value": item} for item in payload]
    if isinstance(payload, dict):
        return [payload]
    if payload is None:
        return []
    return [{"value": payload}]


class APIAdapter(DataSourceAdapter):
    """
    Fetches a JSON payload with a single HTTP call per operation.

    Queries are not applied client-side; the endpoint decides what it returns.
    """

    source_type = "api"
    config_model = APIConfig

    def __init__(self, timeout: Optional[int] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout or settings.API_REQUEST_TIMEOUT
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def _headers(self, config: APIConfig) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", **config.headers}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"
        return headers

    async def _fetch(self, config: APIConfig) -> Any:
        try:
            async with self._client() as client:
                response = await client.request(
                    config.method,
                    config.api_url,
                    headers=self._headers(config),
                    json=config.body if config.method == "POST" else None,
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise DataSourceConnectionError(
                f"API request failed: {e.response.status_code} {e.response.reason_phrase}"
            ) from e
        except httpx.HTTPError as e:
            raise DataSourceConnectionError(f"API request failed: {e}") from e
        except ValueError as e:
            raise DataSourceConnectionError(f"API returned invalid JSON: {e}") from e

    async def get_schema(self, config: Dict[str, Any]) -> Schema:
        api_config = self.parse_config(config)
        records = coerce_to_records(await self._fetch(api_config))
        if not records:
            return Schema(columns=[], rowCount=0)

        first = records[0]
        columns = [
            ColumnSchema(name=key, type=infer_json_type(value), sampleValues=[value])
            for key, value in first.items()
        ]
        return Schema(columns=columns, rowCount=len(records))

    async def execute_query(self, config: Dict[str, Any], query: BackendQuery) -> List[Record]:
        api_config = self.parse_config(config)
        records = coerce_to_records(await self._fetch(api_config))
        logger.info(f"API returned {len(records)} records from {api_config.api_url}")
        return records

    async def validate_connection(self, config: Dict[str, Any]) -> bool:
        try:
            api_config = self.parse_config(config)
            async with self._client() as client:
                response = await client.head(api_config.api_url, headers=self._headers(api_config))
            return response.is_success
        except Exception as e:
            logger.error(f"API connection check failed: {e}")
            return False
