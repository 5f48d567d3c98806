# Related activities main package initialization
# Exports the public API components for the library

from .closure import ClosureResolver
from .config import RelatedActivitiesSettings
from .detector import TriggerMatch, detect
from .exceptions import (
    EntityNotFound,
    InvalidIdentifier,
    LookupFailure,
    RelatedActivitiesError,
    UnexpectedQueryShape,
)
from .identifiers import IdentifierSet
from .interfaces import RecordStore
from .pipeline import (
    ExecutionContext,
    ExecutionMode,
    PipelineResult,
    PipelineState,
    PluginStage,
    RelatedActivitiesPipeline,
)
from .query import (
    ConditionExpression,
    ConditionOperator,
    FilterExpression,
    JoinOperator,
    LinkEntity,
    LogicalOperator,
    QueryExpression,
)
from .rewriter import rewrite
from .scrub import ScrubHtmlPlugin

# Define package version
__version__ = "0.1.0"

# Explicitly define public API
__all__ = [
    "RelatedActivitiesPipeline",
    "PipelineResult",
    "PipelineState",
    "ExecutionContext",
    "ExecutionMode",
    "PluginStage",
    "RelatedActivitiesSettings",
    "ClosureResolver",
    "TriggerMatch",
    "detect",
    "rewrite",
    "IdentifierSet",
    "RecordStore",
    "QueryExpression",
    "FilterExpression",
    "ConditionExpression",
    "LinkEntity",
    "ConditionOperator",
    "LogicalOperator",
    "JoinOperator",
    "ScrubHtmlPlugin",
    "RelatedActivitiesError",
    "LookupFailure",
    "UnexpectedQueryShape",
    "InvalidIdentifier",
    "EntityNotFound",
]
