# Related activities pipeline
# Sequences detection, closure expansion and rewriting for an intercepted query

import logging
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from .closure import ClosureResolver
from .config import RelatedActivitiesSettings
from .detector import detect
from .exceptions import LookupFailure, UnexpectedQueryShape
from .interfaces import RecordStore
from .logging import StructuredLogger, get_logger
from .query import QueryExpression
from .rewriter import rewrite

RETRIEVE_MULTIPLE = "RetrieveMultiple"
QUERY_PARAMETER = "Query"


class PluginStage(IntEnum):
    PRE_VALIDATION = 10
    PRE_OPERATION = 20
    MAIN_OPERATION = 30
    POST_OPERATION = 40


class ExecutionMode(IntEnum):
    SYNCHRONOUS = 0
    ASYNCHRONOUS = 1


class ExecutionContext(BaseModel):
    """What the host tells a plugin about the message being processed."""

    message_name: str
    stage: PluginStage = PluginStage.PRE_OPERATION
    mode: ExecutionMode = ExecutionMode.SYNCHRONOUS
    depth: int = 1
    input_parameters: Dict[str, Any] = Field(default_factory=dict)
    output_parameters: Optional[Dict[str, Any]] = None
    parent_context: Optional["ExecutionContext"] = None


ExecutionContext.model_rebuild()


class PipelineState(str, Enum):
    IDLE = "idle"
    DETECTING = "detecting"
    EXPANDING = "expanding"
    REWRITING = "rewriting"


@dataclass
class PipelineResult:
    """
    Outcome of one pipeline run.

    ``query`` is the original object whenever ``changed`` is False.
    ``stopped_at`` is the last state entered before the run finished.
    """

    query: QueryExpression
    changed: bool
    stopped_at: PipelineState
    reason: str = ""


class RelatedActivitiesPipeline:
    """
    Rewrites activity subgrid queries to include related records.

    Every failure ends the run with the query unchanged; nothing is raised
    to the caller.
    """

    def __init__(
        self,
        store: RecordStore,
        settings: Optional[RelatedActivitiesSettings] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            store: Record store used for the closure lookups
            settings: Pipeline settings (defaults to RelatedActivitiesSettings.from_env())
            logger: Diagnostics sink (defaults to the pipeline module logger)
        """
        self.store = store
        self.settings = settings or RelatedActivitiesSettings.from_env()
        self.logger = logger or get_logger("pipeline")
        self.resolver = ClosureResolver(store, self.settings, self.logger)

    def process(self, query: QueryExpression, depth: int = 1) -> PipelineResult:
        """Run detection, expansion and rewriting over ``query``."""
        state = PipelineState.IDLE

        def unchanged(reason: str) -> PipelineResult:
            return PipelineResult(query=query, changed=False, stopped_at=state, reason=reason)

        if depth > self.settings.max_depth:
            self.logger.debug("Skipping nested invocation", metadata={"depth": depth})
            return unchanged("recursion")

        try:
            state = PipelineState.DETECTING
            match = detect(query, self.logger)
            if match is None:
                return unchanged("not applicable")

            state = PipelineState.EXPANDING
            closure = self.resolver.expand(match.seed)

            state = PipelineState.REWRITING
            rewritten = rewrite(query, match, closure, self.settings.channel_aliases())
        except LookupFailure as e:
            self.logger.warning(
                "Could not run the related record queries",
                metadata={"error": str(e), "cause": repr(e.__cause__)},
            )
            return unchanged("lookup failed")
        except UnexpectedQueryShape as e:
            self.logger.warning("Could not rewrite query", metadata={"error": str(e)})
            return unchanged("unexpected shape")
        except Exception as e:
            self.logger.error(
                f"Unexpected error while {state.value}",
                metadata={"error": str(e), "exception_type": type(e).__name__},
            )
            return unchanged("error")

        self.logger.info(
            "Rewrote activity query",
            metadata={"seed": match.seed.to_list(), "closure": closure.to_list()},
        )
        self._trace_queries(query, rewritten)
        return PipelineResult(query=rewritten, changed=True, stopped_at=state, reason="rewritten")

    def _trace_queries(self, before: QueryExpression, after: QueryExpression) -> None:
        # Condition values are not guaranteed to be JSON serializable
        if not self.logger.logger.isEnabledFor(logging.DEBUG):
            return
        try:
            self.logger.debug("Query before", metadata={"query": before.to_dict()})
            self.logger.debug("Query after", metadata={"query": after.to_dict()})
        except (TypeError, ValueError) as e:
            self.logger.warning(
                "Could not render queries for tracing",
                metadata={"error": str(e), "exception_type": type(e).__name__},
            )

    def execute(self, context: ExecutionContext) -> bool:
        """
        Plugin entry point.

        Replaces ``context.input_parameters["Query"]`` with the rewritten query
        when the context is a synchronous pre-operation RetrieveMultiple.

        Returns:
            True if the query was replaced
        """
        query = context.input_parameters.get(QUERY_PARAMETER)
        if (
            context.message_name != RETRIEVE_MULTIPLE
            or context.stage != PluginStage.PRE_OPERATION
            or context.mode != ExecutionMode.SYNCHRONOUS
            or not isinstance(query, QueryExpression)
        ):
            self.logger.debug(
                "Not expected context",
                metadata={"message": context.message_name, "stage": int(context.stage)},
            )
            return False

        result = self.process(query, context.depth)
        if result.changed:
            context.input_parameters[QUERY_PARAMETER] = result.query
        return result.changed
