"""
Abstract interface for data source adapters
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from ..errors import ConfigurationError
from ..models import BackendQuery, Record, Schema

logger = logging.getLogger(__name__)


class DataSourceAdapter(ABC):
    """Abstract base class for data source adapters"""

    source_type: str = ""
    config_model: Type[BaseModel] = BaseModel

    def parse_config(self, config: Dict[str, Any]) -> BaseModel:
        """
        Validate raw data source config against this adapter's model

        Raises:
            ConfigurationError: If the config is missing or malformed
        """
        if isinstance(config, self.config_model):
            return config
        try:
            return self.config_model.model_validate(config or {})
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid {self.source_type} configuration: {e.errors()[0]['msg']}"
            ) from e

    @abstractmethod
    async def get_schema(self, config: Dict[str, Any]) -> Schema:
        """
        Describe the columns available from the data source

        Args:
            config: Type-specific connection parameters

        Returns:
            Schema with inferred column types
        """
        pass

    @abstractmethod
    async def execute_query(self, config: Dict[str, Any], query: BackendQuery) -> List[Record]:
        """
        Execute a backend query

        Args:
            config: Type-specific connection parameters
            query: Structured query, or literal SQL for SQL backends

        Returns:
            Uniform list of records
        """
        pass

    @abstractmethod
    async def validate_connection(self, config: Dict[str, Any]) -> bool:
        """
        Check the data source is reachable. Never raises.

        Args:
            config: Type-specific connection parameters

        Returns:
            True if reachable, False otherwise
        """
        pass

    def reference_schema(self, config: Dict[str, Any]) -> Optional[Schema]:
        """Static schema used when live schema lookup fails; none by default"""
        return None
