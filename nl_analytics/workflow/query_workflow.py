"""LangGraph workflow for query processing"""
import logging
from typing import Any, Awaitable, Callable, Dict, Literal
from langgraph.graph import StateGraph, END

from .dependencies import PipelineDependencies
from .state import WorkflowState
from .nodes import (
    analyzer,
    source_resolver,
    schema_fetcher,
    query_generator,
    query_executor,
    chart_transformer,
    insights_generator,
    persister
)

logger = logging.getLogger(__name__)

NodeFunction = Callable[[WorkflowState, PipelineDependencies], Awaitable[Dict[str, Any]]]

# (name, node) in execution order
PIPELINE_NODES = [
    ("analyze", analyzer.analyze_query),
    ("resolve_source", source_resolver.resolve_data_source),
    ("fetch_schema", schema_fetcher.fetch_schema),
    ("generate_query", query_generator.generate_query),
    ("execute_query", query_executor.execute_query),
    ("transform_chart", chart_transformer.transform_chart),
    ("generate_insights", insights_generator.generate_insights),
    ("persist", persister.persist_results),
]


def check_for_errors(state: WorkflowState) -> Literal["continue", "error"]:
    """
    Check if any node has set an error in state.

    Args:
        state: Current workflow state

    Returns:
        "error" if error exists, "continue" otherwise
    """
    if state.get("error"):
        return "error"
    return "continue"


def _bind(node: NodeFunction, deps: PipelineDependencies):
    async def run(state: WorkflowState) -> Dict[str, Any]:
        return await node(state, deps)
    run.__name__ = node.__name__
    return run


def create_query_workflow(deps: PipelineDependencies):
    """
    Create and compile the LangGraph workflow for query processing.

    The workflow:
    1. Analyze the natural language query (AI or keyword fallback)
    2. Resolve the data source
    3. Fetch the schema (cached, with fallback tiers)
    4. Generate the backend query (AI or local generator), validating SQL
    5. Execute the query through the source's adapter
    6. Transform results into chart data
    7. Generate insights (AI or structural fallback)
    8. Persist query and visualization (failures degrade, never fail)

    Any node setting an error ends the run.

    Args:
        deps: Collaborators bound into every node

    Returns:
        Compiled workflow graph
    """
    workflow = StateGraph(WorkflowState)

    for name, node in PIPELINE_NODES:
        workflow.add_node(name, _bind(node, deps))

    workflow.set_entry_point(PIPELINE_NODES[0][0])

    for (name, _), (next_name, _) in zip(PIPELINE_NODES, PIPELINE_NODES[1:]):
        workflow.add_conditional_edges(
            name,
            check_for_errors,
            {
                "continue": next_name,
                "error": END
            }
        )

    workflow.add_edge(PIPELINE_NODES[-1][0], END)

    compiled = workflow.compile()

    logger.info("Query workflow compiled successfully")

    return compiled
