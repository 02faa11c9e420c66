"""Persistence node"""
import logging
import time
from typing import Dict, Any

from ...models import PersistenceResult, StructuredQuery
from ..dependencies import PipelineDependencies
from ..state import QueryStage, WorkflowState

logger = logging.getLogger(__name__)


def synthesize_query_id() -> str:
    return f"query-{int(time.time() * 1000)}"


async def persist_results(state: WorkflowState, deps: PipelineDependencies) -> Dict[str, Any]:
    """
    Store the query and its visualization.

    Storage errors are logged and produce a degraded result; they never
    fail the request.

    Args:
        state: Current workflow state
        deps: Pipeline collaborators

    Returns:
        Updated state with persistence result
    """
    query_id = state["query_id"]
    backend_query = state.get("backend_query")
    visualization = state.get("visualization")

    logger.info(f"[{query_id}] ===== PERSISTER START =====")

    stored_query_id = None
    try:
        stored_query = await deps.storage.create_query(
            userId=state["user_id"],
            conversationId=state["conversation_id"],
            naturalLanguageQuery=state["natural_language_query"],
            generatedQuery=(
                backend_query.model_dump() if isinstance(backend_query, StructuredQuery) else backend_query
            ),
            dataSourceId=state["data_source"].id,
            results=state.get("query_results") or [],
            executionTimeMs=state.get("execution_time_ms"),
        )
        stored_query_id = stored_query.id

        visualization_id = None
        if visualization:
            stored_visualization = await deps.storage.create_visualization(
                queryId=stored_query_id,
                type=visualization.type,
                title=state["analysis"].intent,
                config=visualization.config.model_dump(exclude_none=True),
                data=visualization.data.model_dump(),
            )
            visualization_id = stored_visualization.id

        persistence = PersistenceResult(
            status="ok",
            query_id=stored_query_id,
            visualization_id=visualization_id
        )
        logger.info(f"[{query_id}] ===== PERSISTER END (SUCCESS) =====")

    except Exception as e:
        logger.error(f"[{query_id}] ===== PERSISTER END (DEGRADED) =====")
        logger.exception(f"[{query_id}] Persistence failed, keeping in-memory result: {e}")
        persistence = PersistenceResult(
            status="degraded",
            query_id=stored_query_id or synthesize_query_id(),
            reason=str(e)
        )

    return {
        "persistence": persistence,
        "stage": QueryStage.PERSISTED.value
    }
