"""
Storage collaborator interface and an in-memory implementation
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from ..models import DataSource, Record

logger = logging.getLogger(__name__)


class StoredQuery(BaseModel):
    """Persisted record of a processed query"""
    id: str
    userId: str
    conversationId: str
    naturalLanguageQuery: str
    generatedQuery: Optional[Any] = None
    dataSourceId: Optional[str] = None
    results: List[Record] = Field(default_factory=list)
    executionTimeMs: Optional[int] = None
    createdAt: datetime


class StoredVisualization(BaseModel):
    """Persisted chart attached to a query"""
    id: str
    queryId: str
    type: str
    title: str
    config: Dict[str, Any] = Field(default_factory=dict)
    data: Dict[str, Any] = Field(default_factory=dict)
    createdAt: datetime


class StorageInterface(ABC):
    """Abstract base class for storage backends"""

    @abstractmethod
    async def create_query(self, **fields) -> StoredQuery:
        """
        Persist a processed query

        Args:
            **fields: StoredQuery fields except id and createdAt

        Returns:
            Stored query with its generated id
        """
        pass

    @abstractmethod
    async def create_visualization(self, **fields) -> StoredVisualization:
        """
        Persist a visualization

        Args:
            **fields: StoredVisualization fields except id and createdAt

        Returns:
            Stored visualization with its generated id
        """
        pass

    @abstractmethod
    async def get_data_source(self, data_source_id: str) -> Optional[DataSource]:
        """
        Get a data source by id

        Returns:
            Data source, or None if not found
        """
        pass

    @abstractmethod
    async def get_data_sources_by_user_id(self, user_id: str) -> List[DataSource]:
        """
        List a user's data sources in creation order
        """
        pass

    @abstractmethod
    async def create_data_source(self, **fields) -> DataSource:
        """
        Register a data source

        Args:
            **fields: DataSource fields except id and createdAt
        """
        pass

    @abstractmethod
    async def get_queries_by_conversation_id(self, conversation_id: str) -> List[StoredQuery]:
        """
        List the queries of a conversation in creation order
        """
        pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryStorage(StorageInterface):
    """Dict-backed storage; contents live for the process lifetime"""

    def __init__(self):
        self.data_sources: Dict[str, DataSource] = {}
        self.queries: Dict[str, StoredQuery] = {}
        self.visualizations: Dict[str, StoredVisualization] = {}

    async def create_query(self, **fields) -> StoredQuery:
        query = StoredQuery(id=str(uuid4()), createdAt=_now(), **fields)
        self.queries[query.id] = query
        return query

    async def create_visualization(self, **fields) -> StoredVisualization:
        visualization = StoredVisualization(id=str(uuid4()), createdAt=_now(), **fields)
        self.visualizations[visualization.id] = visualization
        return visualization

    async def get_data_source(self, data_source_id: str) -> Optional[DataSource]:
        return self.data_sources.get(data_source_id)

    async def get_data_sources_by_user_id(self, user_id: str) -> List[DataSource]:
        return [source for source in self.data_sources.values() if source.userId == user_id]

    async def create_data_source(self, **fields) -> DataSource:
        data_source = DataSource(id=fields.pop("id", None) or str(uuid4()), createdAt=_now(), **fields)
        self.data_sources[data_source.id] = data_source
        logger.info(f"Registered {data_source.type} data source '{data_source.name}' ({data_source.id})")
        return data_source

    async def get_queries_by_conversation_id(self, conversation_id: str) -> List[StoredQuery]:
        return [query for query in self.queries.values() if query.conversationId == conversation_id]
