"""Workflow state definition for LangGraph"""
from enum import Enum
from typing import TypedDict, Optional, List, Dict, Any

from ..models import (
    BackendQuery,
    DataSource,
    Insights,
    PersistenceResult,
    QueryAnalysis,
    Schema,
    Visualization
)


class QueryStage(str, Enum):
    """Pipeline stages; FAILED is terminal"""
    RECEIVED = "received"
    ANALYZED = "analyzed"
    SOURCE_RESOLVED = "source_resolved"
    SCHEMA_FETCHED = "schema_fetched"
    QUERY_GENERATED = "query_generated"
    EXECUTED = "executed"
    TRANSFORMED = "transformed"
    INSIGHTED = "insighted"
    PERSISTED = "persisted"
    DONE = "done"
    FAILED = "failed"


class WorkflowState(TypedDict, total=False):
    """
    State definition for LangGraph workflow.

    Each node receives the current state and returns the keys it updates.
    """

    # ========================================================================
    # Input (Set at workflow start)
    # ========================================================================
    query_id: str
    user_id: str
    conversation_id: str
    natural_language_query: str
    data_source_id: Optional[str]

    # ========================================================================
    # Intermediate Results (Updated by nodes)
    # ========================================================================
    analysis: Optional[QueryAnalysis]
    data_source: Optional[DataSource]
    schema: Optional[Schema]
    schema_source: Optional[str]
    backend_query: Optional[BackendQuery]
    query_source: Optional[str]
    query_results: Optional[List[Dict[str, Any]]]
    execution_time_ms: Optional[int]
    visualization: Optional[Visualization]
    insights: Optional[Insights]
    persistence: Optional[PersistenceResult]

    # ========================================================================
    # Control Flow
    # ========================================================================
    stage: str
    error: Optional[str]
    error_code: Optional[str]
    exception: Optional[BaseException]


def create_initial_state(
    query_id: str,
    user_id: str,
    conversation_id: str,
    natural_language_query: str,
    data_source_id: Optional[str] = None
) -> WorkflowState:
    """
    Create initial workflow state.

    Args:
        query_id: Identifier used for logging and progress channels
        user_id: Requesting user
        conversation_id: Conversation the query belongs to
        natural_language_query: User's natural language query
        data_source_id: Explicit data source, if the user picked one

    Returns:
        Initial workflow state
    """
    return WorkflowState(
        # Input
        query_id=query_id,
        user_id=user_id,
        conversation_id=conversation_id,
        natural_language_query=natural_language_query,
        data_source_id=data_source_id,

        # Intermediate (initialized to None)
        analysis=None,
        data_source=None,
        schema=None,
        schema_source=None,
        backend_query=None,
        query_source=None,
        query_results=None,
        execution_time_ms=None,
        visualization=None,
        insights=None,
        persistence=None,

        # Control flow
        stage=QueryStage.RECEIVED.value,
        error=None,
        error_code=None,
        exception=None
    )


def failure(exception: BaseException, error_code: Optional[str] = None) -> Dict[str, Any]:
    """State update moving the workflow to FAILED"""
    return {
        "stage": QueryStage.FAILED.value,
        "error": str(exception),
        "error_code": error_code or getattr(exception, "error_code", "INTERNAL_ERROR"),
        "exception": exception
    }
