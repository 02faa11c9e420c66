"""Data source resolution node"""
import logging
from typing import Dict, Any

from ...errors import NoDataSourceError
from ..dependencies import PipelineDependencies
from ..state import QueryStage, WorkflowState, failure

logger = logging.getLogger(__name__)


async def resolve_data_source(state: WorkflowState, deps: PipelineDependencies) -> Dict[str, Any]:
    """
    Pick the data source for the query.

    Order: the explicit data source id, else the user's first active
    source, else the user's first source.

    Args:
        state: Current workflow state
        deps: Pipeline collaborators

    Returns:
        Updated state with data_source
    """
    query_id = state["query_id"]
    data_source_id = state.get("data_source_id")

    logger.info(f"[{query_id}] ===== SOURCE RESOLVER START =====")

    try:
        if data_source_id:
            data_source = await deps.storage.get_data_source(data_source_id)
        else:
            sources = await deps.storage.get_data_sources_by_user_id(state["user_id"])
            active = [source for source in sources if source.isActive]
            data_source = (active or sources or [None])[0]

        if data_source is None:
            raise NoDataSourceError("No data source available")

        logger.info(f"[{query_id}] Using {data_source.type} source '{data_source.name}' ({data_source.id})")
        logger.info(f"[{query_id}] ===== SOURCE RESOLVER END (SUCCESS) =====")

        return {
            "data_source": data_source,
            "stage": QueryStage.SOURCE_RESOLVED.value
        }

    except NoDataSourceError as e:
        logger.error(f"[{query_id}] ===== SOURCE RESOLVER END (ERROR) =====")
        return failure(e)
    except Exception as e:
        logger.exception(f"[{query_id}] Data source lookup failed: {e}")
        return failure(NoDataSourceError(f"No data source available: {e}"))
