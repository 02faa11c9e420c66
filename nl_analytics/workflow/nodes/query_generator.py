"""Backend query generation node"""
import logging
from typing import Dict, Any

from pydantic import ValidationError

from ...errors import SQLValidationError
from ...models import StructuredQuery
from ...query.fallback import generate_query_locally
from ...services.ai_collaborator import call_with_fallback
from ...utils.validators import clean_sql_response, ensure_safe_sql
from ..dependencies import PipelineDependencies
from ..state import QueryStage, WorkflowState, failure

logger = logging.getLogger(__name__)


async def generate_query(state: WorkflowState, deps: PipelineDependencies) -> Dict[str, Any]:
    """
    Generate the backend query with the AI collaborator or the local generator.

    SQL text is validated here and rejected without execution when unsafe.
    Structured queries from the local generator are used for every source
    type, including SQL sources.

    Args:
        state: Current workflow state
        deps: Pipeline collaborators

    Returns:
        Updated state with backend_query
    """
    query_id = state["query_id"]
    nl_query = state["natural_language_query"]
    analysis = state["analysis"]
    schema = state["schema"]
    source_type = state["data_source"].type

    logger.info(f"[{query_id}] ===== QUERY GENERATOR START =====")

    await deps.publisher.publish_progress(
        query_id=query_id,
        stage="generating_query",
        message="Generating data query..."
    )

    fallbacks = []

    def local_query() -> StructuredQuery:
        fallbacks.append(True)
        return generate_query_locally(analysis, schema)

    operation = (lambda: deps.ai.generate_query(nl_query, analysis, schema, source_type)) if deps.ai else None
    backend_query = await call_with_fallback(operation, local_query, "query generation")

    try:
        if isinstance(backend_query, str):
            if source_type == "postgresql":
                backend_query = ensure_safe_sql(clean_sql_response(backend_query))
            else:
                try:
                    backend_query = StructuredQuery.model_validate_json(backend_query)
                except ValidationError:
                    logger.warning(f"[{query_id}] AI returned text for a {source_type} source, using local query")
                    backend_query = local_query()
    except SQLValidationError as e:
        logger.error(f"[{query_id}] ===== QUERY GENERATOR END (ERROR) =====")
        logger.error(f"[{query_id}] {e}")
        return failure(e)

    query_source = "local" if fallbacks else "ai"
    logger.info(f"[{query_id}] Query ({query_source}): {backend_query}")
    logger.info(f"[{query_id}] ===== QUERY GENERATOR END (SUCCESS) =====")

    return {
        "backend_query": backend_query,
        "query_source": query_source,
        "stage": QueryStage.QUERY_GENERATED.value
    }
