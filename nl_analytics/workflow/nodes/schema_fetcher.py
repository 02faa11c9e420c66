"""Schema fetching node"""
import logging
from typing import Dict, Any

from ..dependencies import PipelineDependencies
from ..state import QueryStage, WorkflowState, failure

logger = logging.getLogger(__name__)


async def fetch_schema(state: WorkflowState, deps: PipelineDependencies) -> Dict[str, Any]:
    """
    Get the data source schema through the schema cache.

    Slow or failing schema lookups degrade to a stale, reference or
    empty schema instead of failing the request.

    Args:
        state: Current workflow state
        deps: Pipeline collaborators

    Returns:
        Updated state with schema and the tier it came from
    """
    query_id = state["query_id"]
    data_source = state["data_source"]

    logger.info(f"[{query_id}] ===== SCHEMA FETCHER START =====")

    try:
        await deps.publisher.publish_progress(
            query_id=query_id,
            stage="fetching_schema",
            message=f"Reading schema of '{data_source.name}'..."
        )

        adapter = deps.adapters.get(data_source.type)
        lookup = await deps.schema_cache.get(
            data_source.id,
            lambda: adapter.get_schema(data_source.config),
            static_schema=adapter.reference_schema(data_source.config)
        )

        logger.info(
            f"[{query_id}] Schema from {lookup.source}: "
            f"{[(column.name, column.type) for column in lookup.schema.columns]}"
        )
        logger.info(f"[{query_id}] ===== SCHEMA FETCHER END (SUCCESS) =====")

        return {
            "schema": lookup.schema,
            "schema_source": lookup.source,
            "stage": QueryStage.SCHEMA_FETCHED.value
        }

    except Exception as e:
        logger.exception(f"[{query_id}] ===== SCHEMA FETCHER END (ERROR) =====")
        return failure(e)
