"""
AI collaborator contract and its Ollama implementation.

The pipeline never depends on this collaborator succeeding: every
call goes through call_with_fallback, which substitutes the local
deterministic result on error or timeout.
"""
import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from ..config import settings
from ..models import BackendQuery, Insights, QueryAnalysis, Record, Schema, StructuredQuery
from ..prompts.analysis import (
    ANALYSIS_SYSTEM_PROMPT, INSIGHTS_SYSTEM_PROMPT, QUERY_SYSTEM_PROMPT, TITLE_SYSTEM_PROMPT,
    create_insights_prompt, create_query_prompt
)
from ..utils.validators import clean_sql_response
from .llm_client import OllamaClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AICollaborator(ABC):
    """Natural language understanding service consumed by the pipeline"""

    @abstractmethod
    async def analyze(self, text: str) -> QueryAnalysis:
        """Analyze a natural language query"""
        pass

    @abstractmethod
    async def generate_query(
        self,
        text: str,
        analysis: QueryAnalysis,
        schema: Schema,
        source_type: str
    ) -> BackendQuery:
        """Generate a structured query, or SQL text for SQL sources"""
        pass

    @abstractmethod
    async def generate_insights(
        self,
        results: List[Record],
        analysis: QueryAnalysis,
        text: str
    ) -> Insights:
        """Describe query results"""
        pass

    @abstractmethod
    async def generate_title(self, first_message: str) -> str:
        """Title a conversation from its first message"""
        pass


def parse_json_response(response_text: str) -> Any:
    """Parse model output as JSON, accepting a ```json fenced block"""
    try:
        return json.loads(response_text)
    except json.JSONDecodeError:
        if "```json" in response_text:
            block = response_text.split("```json")[1].split("```")[0]
            return json.loads(block.strip())
        if "```" in response_text:
            block = response_text.split("```")[1]
            return json.loads(block.strip())
        raise


class OllamaCollaborator(AICollaborator):
    """AI collaborator backed by a local Ollama model"""

    def __init__(self, client: Optional[OllamaClient] = None):
        self.client = client or OllamaClient()

    async def _complete(self, system_prompt: str, user_prompt: str, json_mode: bool) -> str:
        llm = self.client.get_llm(json_mode=json_mode)
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt}
        ]
        response = await llm.ainvoke(messages)
        response_text = response.content if hasattr(response, "content") else str(response)
        logger.info(f"LLM response ({len(response_text)} chars): {response_text[:200]}...")
        return response_text

    async def analyze(self, text: str) -> QueryAnalysis:
        response_text = await self._complete(ANALYSIS_SYSTEM_PROMPT, text, json_mode=True)
        return QueryAnalysis(**parse_json_response(response_text))

    async def generate_query(
        self,
        text: str,
        analysis: QueryAnalysis,
        schema: Schema,
        source_type: str
    ) -> BackendQuery:
        prompt = create_query_prompt(text, analysis.model_dump(), schema.model_dump(), source_type)
        if source_type == "postgresql":
            response_text = await self._complete(QUERY_SYSTEM_PROMPT, prompt, json_mode=False)
            return clean_sql_response(response_text)
        response_text = await self._complete(QUERY_SYSTEM_PROMPT, prompt, json_mode=True)
        return StructuredQuery(**parse_json_response(response_text))

    async def generate_insights(
        self,
        results: List[Record],
        analysis: QueryAnalysis,
        text: str
    ) -> Insights:
        prompt = create_insights_prompt(text, results, analysis.model_dump())
        response_text = await self._complete(INSIGHTS_SYSTEM_PROMPT, prompt, json_mode=True)
        insights = Insights(**parse_json_response(response_text))
        if not insights.keyInsights or not insights.recommendations:
            raise ValueError("Insights response is missing key insights or recommendations")
        return insights

    async def generate_title(self, first_message: str) -> str:
        response_text = await self._complete(TITLE_SYSTEM_PROMPT, first_message, json_mode=False)
        title = response_text.strip().strip('"')
        if not title:
            raise ValueError("Empty title")
        return title


async def call_with_fallback(
    operation: Optional[Callable[[], Awaitable[T]]],
    fallback: Callable[[], T],
    label: str,
    timeout: Optional[float] = None
) -> T:
    """
    Run an AI operation, substituting the local fallback on any failure.

    Args:
        operation: Coroutine function calling the collaborator, or None when absent
        fallback: Deterministic local computation
        label: Operation name for logging
        timeout: Seconds before giving up on the collaborator

    Returns:
        The AI result, or the fallback result
    """
    if operation is None:
        logger.info(f"AI collaborator not configured, using local {label}")
        return fallback()
    try:
        return await asyncio.wait_for(operation(), timeout=timeout or settings.AI_TIMEOUT)
    except asyncio.TimeoutError:
        logger.warning(f"AI {label} timed out, using local fallback")
    except Exception as e:
        logger.warning(f"AI {label} failed ({type(e).__name__}: {e}), using local fallback")
    return fallback()
