"""Chart transformation node"""
import logging
from typing import Dict, Any

from ...charts.config_generator import (
    generate_chart_config, prepare_visualization_data, should_create_visualization
)
from ...charts.transformer import transform
from ...errors import TransformationError
from ...models import Visualization
from ..dependencies import PipelineDependencies
from ..state import QueryStage, WorkflowState

logger = logging.getLogger(__name__)


async def transform_chart(state: WorkflowState, deps: PipelineDependencies) -> Dict[str, Any]:
    """
    Shape results into a visualization when they are worth charting.

    Transformation failures leave the visualization empty; they never
    fail the request.

    Args:
        state: Current workflow state
        deps: Pipeline collaborators

    Returns:
        Updated state with visualization (possibly None)
    """
    query_id = state["query_id"]
    analysis = state["analysis"]
    results = state.get("query_results") or []

    logger.info(f"[{query_id}] ===== CHART TRANSFORMER START =====")

    if not should_create_visualization(analysis, results):
        logger.info(f"[{query_id}] No visualization for {len(results)} result(s) of a {analysis.queryType} query")
        return {"visualization": None, "stage": QueryStage.TRANSFORMED.value}

    await deps.publisher.publish_progress(
        query_id=query_id,
        stage="transforming_chart",
        message="Preparing visualization..."
    )

    chart_type = analysis.suggestedVisualization
    try:
        chart_data = transform(results, chart_type)
    except TransformationError as e:
        logger.warning(f"[{query_id}] Chart transformation skipped: {e}")
        return {"visualization": None, "stage": QueryStage.TRANSFORMED.value}

    config = generate_chart_config(chart_type, prepare_visualization_data(chart_type, results))
    visualization = Visualization(type=chart_type, data=chart_data, config=config)

    logger.info(f"[{query_id}] {chart_type} chart: {len(chart_data.labels)} labels, metrics={chart_data.metrics}")
    logger.info(f"[{query_id}] ===== CHART TRANSFORMER END (SUCCESS) =====")

    return {
        "visualization": visualization,
        "stage": QueryStage.TRANSFORMED.value
    }
