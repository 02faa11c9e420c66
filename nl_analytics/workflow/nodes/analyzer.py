"""Natural language analysis node"""
import logging
from typing import Dict, Any

from ...query.fallback import analyze_locally
from ...services.ai_collaborator import call_with_fallback
from ..dependencies import PipelineDependencies
from ..state import QueryStage, WorkflowState

logger = logging.getLogger(__name__)


async def analyze_query(state: WorkflowState, deps: PipelineDependencies) -> Dict[str, Any]:
    """
    Analyze the natural language query, falling back to keyword rules.

    Args:
        state: Current workflow state
        deps: Pipeline collaborators

    Returns:
        Updated state with analysis
    """
    query_id = state["query_id"]
    nl_query = state["natural_language_query"]

    logger.info(f"[{query_id}] ===== ANALYZER START =====")
    logger.info(f"[{query_id}] NL query: {nl_query}")

    await deps.publisher.publish_progress(
        query_id=query_id,
        stage="analyzing_query",
        message="Analyzing natural language query..."
    )

    operation = (lambda: deps.ai.analyze(nl_query)) if deps.ai else None
    analysis = await call_with_fallback(operation, lambda: analyze_locally(nl_query), "analysis")

    logger.info(f"[{query_id}]   - Intent: {analysis.intent}")
    logger.info(f"[{query_id}]   - Query type: {analysis.queryType}")
    logger.info(f"[{query_id}]   - Entities: {analysis.entities}")
    logger.info(f"[{query_id}]   - Timeframe: {analysis.timeframe}")
    logger.info(f"[{query_id}] ===== ANALYZER END (SUCCESS) =====")

    return {
        "analysis": analysis,
        "stage": QueryStage.ANALYZED.value
    }
