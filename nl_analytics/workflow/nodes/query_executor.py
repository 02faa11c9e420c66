"""Query execution node"""
import logging
import time
from typing import Dict, Any

from ..dependencies import PipelineDependencies
from ..state import QueryStage, WorkflowState, failure

logger = logging.getLogger(__name__)


async def execute_query(state: WorkflowState, deps: PipelineDependencies) -> Dict[str, Any]:
    """
    Execute the backend query through the data source's adapter.

    Adapter errors are passed on unmodified; an empty result is not an error.

    Args:
        state: Current workflow state
        deps: Pipeline collaborators

    Returns:
        Updated state with query_results
    """
    query_id = state["query_id"]
    data_source = state["data_source"]

    logger.info(f"[{query_id}] ===== QUERY EXECUTOR START =====")

    try:
        await deps.publisher.publish_progress(
            query_id=query_id,
            stage="executing_query",
            message=f"Executing query against '{data_source.name}'..."
        )

        adapter = deps.adapters.get(data_source.type)
        started = time.perf_counter()
        results = await adapter.execute_query(data_source.config, state["backend_query"])
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        logger.info(f"[{query_id}] Query returned {len(results)} rows in {elapsed_ms}ms")
        if results:
            logger.info(f"[{query_id}] Result columns: {list(results[0].keys())}")
        else:
            logger.warning(f"[{query_id}] Query returned no results")

        logger.info(f"[{query_id}] ===== QUERY EXECUTOR END (SUCCESS) =====")

        return {
            "query_results": results,
            "execution_time_ms": elapsed_ms,
            "stage": QueryStage.EXECUTED.value
        }

    except Exception as e:
        logger.error(f"[{query_id}] ===== QUERY EXECUTOR END (ERROR) =====")
        logger.exception(f"[{query_id}] Query execution failed: {e}")
        return failure(e)
