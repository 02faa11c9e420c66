"""Insights generation node"""
import logging
from typing import Dict, Any

from ...query.fallback import generate_insights_locally
from ...services.ai_collaborator import call_with_fallback
from ..dependencies import PipelineDependencies
from ..state import QueryStage, WorkflowState

logger = logging.getLogger(__name__)


async def generate_insights(state: WorkflowState, deps: PipelineDependencies) -> Dict[str, Any]:
    """
    Produce insights with the AI collaborator, or structurally when it is
    unavailable. Empty results always get zero-result insights.

    Args:
        state: Current workflow state
        deps: Pipeline collaborators

    Returns:
        Updated state with insights
    """
    query_id = state["query_id"]
    nl_query = state["natural_language_query"]
    results = state.get("query_results") or []
    visualization = state.get("visualization")
    chart_data = visualization.data if visualization else None

    logger.info(f"[{query_id}] ===== INSIGHTS GENERATOR START =====")

    def local_insights():
        return generate_insights_locally(results, nl_query, chart_data)

    if not results:
        insights = local_insights()
    else:
        await deps.publisher.publish_progress(
            query_id=query_id,
            stage="generating_insights",
            message="Generating insights..."
        )
        operation = (
            (lambda: deps.ai.generate_insights(results, state["analysis"], nl_query)) if deps.ai else None
        )
        insights = await call_with_fallback(operation, local_insights, "insights")

    logger.info(f"[{query_id}] Summary: {insights.summary}")
    logger.info(f"[{query_id}] ===== INSIGHTS GENERATOR END (SUCCESS) =====")

    return {
        "insights": insights,
        "stage": QueryStage.INSIGHTED.value
    }
