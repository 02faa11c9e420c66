"""Collaborators shared by workflow nodes"""
from dataclasses import dataclass, field
from typing import Optional

from ..adapters import AdapterRegistry
from ..services.ai_collaborator import AICollaborator
from ..services.redis_publisher import ProgressPublisher
from ..services.schema_cache import SchemaCache
from ..services.storage import StorageInterface


@dataclass
class PipelineDependencies:
    """Explicitly injected collaborators; ai is None when no AI service is configured"""
    storage: StorageInterface
    adapters: AdapterRegistry = field(default_factory=AdapterRegistry)
    ai: Optional[AICollaborator] = None
    schema_cache: SchemaCache = field(default_factory=SchemaCache)
    publisher: ProgressPublisher = field(default_factory=ProgressPublisher)
