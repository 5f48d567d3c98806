# Query rewriting for the related activities rewrite
# Turns "activities regarding X" into "activities regarding or involving X's closure"

from typing import Dict, List, Optional

from . import schema
from .detector import TriggerMatch, is_null_condition, is_regarding_condition
from .exceptions import UnexpectedQueryShape
from .identifiers import IdentifierSet
from .query import (
    ConditionOperator,
    FilterExpression,
    JoinOperator,
    LogicalOperator,
    QueryExpression,
)


def _remove_trigger_conditions(query: QueryExpression, match: TriggerMatch) -> None:
    conditions = query.criteria.conditions
    expected = {match.null_condition: is_null_condition}
    expected.update((index, is_regarding_condition) for index in match.regarding_conditions)

    for index in match.trigger_conditions:
        if index >= len(conditions) or not expected[index](conditions[index]):
            raise UnexpectedQueryShape(
                f"Condition {index} is no longer a trigger condition"
            )
        del conditions[index]


def _exclude_channel_mirrors(query: QueryExpression, channel_aliases: Dict[str, str]) -> None:
    exclusion = FilterExpression(filter_operator=LogicalOperator.AND)
    for entity_name, alias in channel_aliases.items():
        link = query.add_link(
            entity_name, schema.ACTIVITY_ID, schema.ACTIVITY_ID, JoinOperator.LEFT_OUTER
        )
        link.entity_alias = alias
        link.link_criteria.add_condition(
            schema.COMMUNICATION_ACTIVITY_ID, ConditionOperator.NOT_NULL
        )
        exclusion.add_condition(schema.ACTIVITY_ID, ConditionOperator.NULL, entity_name=alias)
    query.criteria.add_filter(exclusion)


def _match_party_or_regarding(query: QueryExpression, closure: List[str]) -> None:
    party_link = query.add_link(
        schema.ACTIVITY_PARTY_ENTITY, schema.ACTIVITY_ID, schema.ACTIVITY_ID, JoinOperator.LEFT_OUTER
    )
    party_link.entity_alias = schema.ACTIVITY_PARTY_ALIAS
    party_link.link_criteria.add_condition(schema.PARTY_ID, ConditionOperator.IN, *closure)

    party_or_regarding = FilterExpression(filter_operator=LogicalOperator.OR)
    party_or_regarding.add_condition(
        schema.ACTIVITY_ID, ConditionOperator.NOT_NULL, entity_name=schema.ACTIVITY_PARTY_ALIAS
    )
    party_or_regarding.add_condition(schema.REGARDING_OBJECT_ID, ConditionOperator.IN, *closure)
    query.criteria.add_filter(party_or_regarding)


def rewrite(
    query: QueryExpression,
    match: TriggerMatch,
    closure: IdentifierSet,
    channel_aliases: Optional[Dict[str, str]] = None,
) -> QueryExpression:
    """
    Rewrite a triggering query to cover the whole closure.

    The query is copied first and the copy is returned; ``query`` itself is
    never touched, so a failure part way leaves the caller with the original.

    Steps:
    1. drop the trigger conditions found by the detector
    2. left outer join each channel type, keeping rows whose join came back
       empty (those rows are not subsystem mirrors)
    3. left outer join activity parties in the closure and keep rows with a
       party match or a regarding object in the closure
    4. mark the query distinct, since the joins can repeat an activity

    Raises:
        UnexpectedQueryShape: If the match no longer fits the query or the
            closure is empty
    """
    if not closure:
        raise UnexpectedQueryShape("Cannot rewrite a query for an empty closure")
    if channel_aliases is None:
        channel_aliases = dict(schema.CHANNEL_ALIASES)

    rewritten = query.model_copy(deep=True)
    identifiers = closure.to_list()

    _remove_trigger_conditions(rewritten, match)
    _exclude_channel_mirrors(rewritten, channel_aliases)
    _match_party_or_regarding(rewritten, identifiers)
    rewritten.distinct = True

    return rewritten
