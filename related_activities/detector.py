# Trigger detection for the related activities rewrite
# Recognizes the "activities regarding X" query a host issues for an activity subgrid

from dataclasses import dataclass, field
from typing import List, Optional

from . import schema
from .identifiers import IdentifierSet, is_identifier
from .logging import StructuredLogger, get_logger
from .query import ConditionExpression, ConditionOperator, QueryExpression

logger = get_logger("detector")

REGARDING_OPERATORS = (ConditionOperator.EQUAL, ConditionOperator.IN)


@dataclass
class TriggerMatch:
    """
    What the detector found in a matching query.

    Indices point into ``query.criteria.conditions`` of the query that was
    inspected.
    """

    null_condition: int
    regarding_conditions: List[int]
    seed: IdentifierSet = field(default_factory=IdentifierSet)

    @property
    def trigger_conditions(self) -> List[int]:
        """Every index the rewrite removes, highest first."""
        return sorted([self.null_condition, *self.regarding_conditions], reverse=True)


def is_null_condition(condition: ConditionExpression) -> bool:
    return (
        condition.entity_name is None
        and condition.attribute_name == schema.ACTIVITY_ID
        and condition.operator == ConditionOperator.NULL
    )


def is_regarding_condition(condition: ConditionExpression) -> bool:
    return (
        condition.entity_name is None
        and condition.attribute_name == schema.REGARDING_OBJECT_ID
        and condition.operator in REGARDING_OPERATORS
        and bool(condition.values)
        and all(is_identifier(value) for value in condition.values)
    )


def detect(query: QueryExpression, logger: StructuredLogger = logger) -> Optional[TriggerMatch]:
    """
    Check whether a query carries the trigger shape.

    The trigger is an ``activitypointer`` query whose top-level criteria hold
    exactly one ``activityid is null`` condition and at least one
    ``regardingobjectid`` equals/in condition over identifiers. Other
    conditions are left alone.

    Returns:
        The match, or None when the query is not a trigger
    """
    if query.entity_name != schema.ACTIVITY_ENTITY:
        logger.debug("Not an activity query", metadata={"entity": query.entity_name})
        return None

    conditions = query.criteria.conditions
    if len(conditions) < 2:
        logger.debug("Not enough conditions", metadata={"condition_count": len(conditions)})
        return None

    null_conditions: List[int] = []
    regarding_conditions: List[int] = []
    seed = IdentifierSet()

    for index, condition in enumerate(conditions):
        if is_null_condition(condition):
            null_conditions.append(index)
        elif is_regarding_condition(condition):
            regarding_conditions.append(index)
            seed.update(condition.values)
        else:
            logger.debug(
                f"Disregarding condition for {condition.attribute_name}",
                metadata={"index": index, "operator": condition.operator.value},
            )

    if len(null_conditions) != 1:
        logger.debug(
            "Expected exactly one triggering null condition",
            metadata={"null_condition_count": len(null_conditions)},
        )
        return None

    if not seed:
        logger.debug("No regarding identifiers found")
        return None

    logger.debug(
        "Found trigger conditions",
        metadata={"regarding_ids": seed.to_list(), "regarding_conditions": regarding_conditions},
    )
    return TriggerMatch(
        null_condition=null_conditions[0],
        regarding_conditions=regarding_conditions,
        seed=seed,
    )
