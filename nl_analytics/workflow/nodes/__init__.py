"""Workflow nodes, one per pipeline stage"""
from . import (
    analyzer,
    source_resolver,
    schema_fetcher,
    query_generator,
    query_executor,
    chart_transformer,
    insights_generator,
    persister
)

__all__ = [
    "analyzer",
    "source_resolver",
    "schema_fetcher",
    "query_generator",
    "query_executor",
    "chart_transformer",
    "insights_generator",
    "persister"
]
