"""Query orchestrator: runs the pipeline and shapes its result"""
import logging
from typing import Optional
from uuid import uuid4

from .adapters import AdapterRegistry
from .errors import QueryProcessingError
from .models import ProcessedQuery
from .query.fallback import generate_title_locally
from .services.ai_collaborator import AICollaborator, call_with_fallback
from .services.redis_publisher import ProgressPublisher
from .services.schema_cache import SchemaCache
from .services.storage import StorageInterface
from .workflow.dependencies import PipelineDependencies
from .workflow.query_workflow import create_query_workflow
from .workflow.state import QueryStage, create_initial_state

logger = logging.getLogger(__name__)


class QueryOrchestrator:
    """
    Processes natural language queries end to end.

    All collaborators are injected. Without an AI collaborator, every AI
    step uses its deterministic local fallback.
    """

    def __init__(
        self,
        storage: StorageInterface,
        adapters: Optional[AdapterRegistry] = None,
        ai: Optional[AICollaborator] = None,
        schema_cache: Optional[SchemaCache] = None,
        publisher: Optional[ProgressPublisher] = None
    ):
        self.deps = PipelineDependencies(
            storage=storage,
            adapters=adapters or AdapterRegistry(),
            ai=ai,
            schema_cache=schema_cache or SchemaCache(),
            publisher=publisher or ProgressPublisher()
        )
        self.workflow = create_query_workflow(self.deps)

    async def process_natural_language_query(
        self,
        user_id: str,
        conversation_id: str,
        natural_language_query: str,
        data_source_id: Optional[str] = None
    ) -> ProcessedQuery:
        """
        Answer a natural language question.

        Args:
            user_id: Requesting user
            conversation_id: Conversation the query belongs to
            natural_language_query: The question
            data_source_id: Explicit data source; defaults to the user's active one

        Returns:
            Processed query with results, optional visualization and insights

        Raises:
            QueryProcessingError: When any stage fails; the cause is chained
        """
        run_id = str(uuid4())
        logger.info(f"[{run_id}] Processing query for user {user_id}: {natural_language_query}")

        initial_state = create_initial_state(
            query_id=run_id,
            user_id=user_id,
            conversation_id=conversation_id,
            natural_language_query=natural_language_query,
            data_source_id=data_source_id
        )
        final_state = await self.workflow.ainvoke(initial_state)

        if final_state.get("error"):
            logger.error(f"[{run_id}] Query failed ({final_state.get('error_code')}): {final_state['error']}")
            await self.deps.publisher.publish_progress(
                query_id=run_id,
                stage=QueryStage.FAILED.value,
                message=final_state["error"]
            )
            raise QueryProcessingError(
                final_state["error"],
                error_code=final_state.get("error_code")
            ) from final_state.get("exception")

        persistence = final_state["persistence"]
        await self.deps.publisher.publish_progress(
            query_id=run_id,
            stage=QueryStage.DONE.value,
            message="Query completed successfully",
            extra_data={"resultQueryId": persistence.query_id}
        )
        logger.info(f"[{run_id}] Query done (persistence={persistence.status})")

        return ProcessedQuery(
            queryId=persistence.query_id,
            results=final_state.get("query_results") or [],
            visualization=final_state.get("visualization"),
            insights=final_state["insights"],
            analysis=final_state.get("analysis"),
            persistence=persistence
        )

    async def generate_conversation_title(self, first_message: str) -> str:
        """Title for a new conversation; never fails"""
        operation = (lambda: self.deps.ai.generate_title(first_message)) if self.deps.ai else None
        return await call_with_fallback(
            operation,
            lambda: generate_title_locally(first_message),
            "title generation"
        )
