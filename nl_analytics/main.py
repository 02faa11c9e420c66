"""Main FastAPI application for the analytics query service"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
import redis.asyncio as aioredis

from .adapters import AdapterRegistry
from .config import settings
from .errors import ConfigurationError, NoDataSourceError, QueryProcessingError, SQLValidationError
from .models import CreateDataSourceRequest, DataSource, HealthCheckResponse, ProcessQueryRequest, ProcessedQuery
from .orchestrator import QueryOrchestrator
from .services.ai_collaborator import OllamaCollaborator
from .services.redis_publisher import create_publisher
from .services.storage import InMemoryStorage, StorageInterface
from .core_api.routes import router as core_api_router

# Set up logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    NoDataSourceError.error_code: 404,
    ConfigurationError.error_code: 400,
    SQLValidationError.error_code: 400,
}

# Create FastAPI app
app = FastAPI(
    title=settings.SERVICE_NAME,
    description="Natural language business analytics over CSV, spreadsheet, SQL and API sources",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(core_api_router)


# Global instances (created once)
_storage: Optional[StorageInterface] = None
_adapters: Optional[AdapterRegistry] = None
_orchestrator: Optional[QueryOrchestrator] = None


def get_storage() -> StorageInterface:
    """Get global storage instance"""
    global _storage
    if _storage is None:
        _storage = InMemoryStorage()
    return _storage


def get_adapters() -> AdapterRegistry:
    """Get global adapter registry"""
    global _adapters
    if _adapters is None:
        _adapters = AdapterRegistry()
    return _adapters


def get_orchestrator() -> QueryOrchestrator:
    """Get global orchestrator instance"""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = QueryOrchestrator(
            storage=get_storage(),
            adapters=get_adapters(),
            ai=OllamaCollaborator() if settings.AI_ENABLED else None,
            publisher=create_publisher()
        )
    return _orchestrator


@app.on_event("shutdown")
async def shutdown():
    """Release pooled database connections"""
    if _adapters is not None:
        _adapters.cleanup()


@app.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """
    Health check endpoint.

    Returns service health and dependency status.
    """
    dependencies = {"ai": "enabled" if settings.AI_ENABLED else "disabled"}

    if settings.PROGRESS_PUBLISHING_ENABLED:
        try:
            redis_client = aioredis.from_url(settings.REDIS_URL, socket_timeout=5)
            await redis_client.ping()
            await redis_client.close()
            dependencies["redis"] = "healthy"
        except Exception as e:
            logger.error(f"Redis health check failed: {e}")
            dependencies["redis"] = "unhealthy"

    status = "degraded" if "unhealthy" in dependencies.values() else "healthy"

    return HealthCheckResponse(
        status=status,
        service=settings.SERVICE_NAME,
        version="1.0.0",
        timestamp=datetime.now(timezone.utc).isoformat(),
        dependencies=dependencies
    )


@app.post("/api/v1/data-sources", response_model=DataSource, status_code=201)
async def create_data_source(
    request: CreateDataSourceRequest,
    storage: StorageInterface = Depends(get_storage)
):
    """Register a data source for a user"""
    return await storage.create_data_source(**request.model_dump())


@app.get("/api/v1/data-sources/{data_source_id}/validate")
async def validate_data_source(
    data_source_id: str,
    storage: StorageInterface = Depends(get_storage),
    adapters: AdapterRegistry = Depends(get_adapters)
):
    """Check a data source is reachable"""
    data_source = await storage.get_data_source(data_source_id)
    if data_source is None:
        raise HTTPException(status_code=404, detail=f"Data source not found: {data_source_id}")
    try:
        adapter = adapters.get(data_source.type)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"id": data_source_id, "valid": await adapter.validate_connection(data_source.config)}


@app.post("/api/v1/query", response_model=ProcessedQuery)
async def process_query(
    request: ProcessQueryRequest,
    orchestrator: QueryOrchestrator = Depends(get_orchestrator)
):
    """
    Answer a natural language question against the user's data source.

    Args:
        request: User, conversation, question and optional data source

    Returns:
        Results, visualization and insights
    """
    logger.info(f"Received query from user {request.userId}: {request.naturalLanguageQuery}")
    try:
        return await orchestrator.process_natural_language_query(
            user_id=request.userId,
            conversation_id=request.conversationId,
            natural_language_query=request.naturalLanguageQuery,
            data_source_id=request.dataSourceId
        )
    except QueryProcessingError as e:
        raise HTTPException(
            status_code=ERROR_STATUS_CODES.get(e.error_code, 500),
            detail={"error": str(e), "error_code": e.error_code}
        )


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": settings.SERVICE_NAME,
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "health": "/health",
            "data_sources": "/api/v1/data-sources",
            "query": "/api/v1/query",
            "core": "/core/v1"
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "nl_analytics.main:app",
        host=settings.SERVICE_HOST,
        port=settings.SERVICE_PORT,
        reload=True
    )
