"""Data source adapters, one per data source type"""
from typing import Dict, Optional

from ..errors import ConfigurationError
from .api_adapter import APIAdapter
from .base import DataSourceAdapter
from .csv_adapter import CSVAdapter
from .sheets_adapter import GoogleSheetsAdapter
from .sql_adapter import SQLAdapter


class AdapterRegistry:
    """Dispatches data source types to adapter instances"""

    def __init__(self, adapters: Optional[Dict[str, DataSourceAdapter]] = None):
        self._adapters: Dict[str, DataSourceAdapter] = adapters if adapters is not None else {
            "csv": CSVAdapter(),
            "google_sheets": GoogleSheetsAdapter(),
            "postgresql": SQLAdapter(),
            "api": APIAdapter(),
        }

    def register(self, source_type: str, adapter: DataSourceAdapter):
        self._adapters[source_type] = adapter

    def get(self, source_type: str) -> DataSourceAdapter:
        adapter = self._adapters.get(source_type)
        if adapter is None:
            raise ConfigurationError(f"Unsupported data source type: {source_type}")
        return adapter

    def cleanup(self):
        """Release pooled resources held by adapters"""
        for adapter in self._adapters.values():
            cleanup = getattr(adapter, "cleanup", None)
            if cleanup:
                cleanup()


__all__ = [
    "AdapterRegistry",
    "DataSourceAdapter",
    "APIAdapter",
    "CSVAdapter",
    "GoogleSheetsAdapter",
    "SQLAdapter",
]
