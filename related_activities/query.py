# Query model for related_activities
# Mirrors the shape of a host "retrieve multiple" query expression

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class ConditionOperator(str, Enum):
    """Comparison operators understood by the rewrite."""

    EQUAL = "eq"
    NULL = "null"
    NOT_NULL = "not-null"
    IN = "in"
    UNDER = "under"


class LogicalOperator(str, Enum):
    AND = "and"
    OR = "or"


class JoinOperator(str, Enum):
    INNER = "inner"
    LEFT_OUTER = "left-outer"


# Number of values each operator carries: (minimum, maximum or None for unbounded)
_VALUE_COUNTS = {
    ConditionOperator.EQUAL: (1, 1),
    ConditionOperator.NULL: (0, 0),
    ConditionOperator.NOT_NULL: (0, 0),
    ConditionOperator.IN: (1, None),
    ConditionOperator.UNDER: (1, 1),
}


class ConditionExpression(BaseModel):
    """
    A single comparison against an attribute.

    ``entity_name`` holds the alias of a link when the condition applies to a
    joined record instead of the root entity.
    """

    attribute_name: str
    operator: ConditionOperator
    values: List[Any] = Field(default_factory=list)
    entity_name: Optional[str] = None

    @model_validator(mode="after")
    def _check_value_count(self) -> "ConditionExpression":
        low, high = _VALUE_COUNTS[self.operator]
        count = len(self.values)
        if count < low or (high is not None and count > high):
            expected = f"{low}" if low == high else f"at least {low}"
            raise ValueError(
                f"Operator '{self.operator.value}' takes {expected} value(s), got {count}"
            )
        return self


class FilterExpression(BaseModel):
    """An AND/OR combination of conditions and nested filters."""

    filter_operator: LogicalOperator = LogicalOperator.AND
    conditions: List[ConditionExpression] = Field(default_factory=list)
    filters: List["FilterExpression"] = Field(default_factory=list)

    def add_condition(
        self,
        attribute_name: str,
        operator: ConditionOperator,
        *values: Any,
        entity_name: Optional[str] = None,
    ) -> ConditionExpression:
        condition = ConditionExpression(
            attribute_name=attribute_name,
            operator=operator,
            values=list(values),
            entity_name=entity_name,
        )
        self.conditions.append(condition)
        return condition

    def add_filter(self, filter_expression: "FilterExpression") -> "FilterExpression":
        self.filters.append(filter_expression)
        return filter_expression


class LinkEntity(BaseModel):
    """A join from one entity to another, with its own criteria and nested joins."""

    link_from_entity_name: str
    link_from_attribute_name: str
    link_to_entity_name: str
    link_to_attribute_name: str
    join_operator: JoinOperator = JoinOperator.INNER
    entity_alias: Optional[str] = None
    link_criteria: FilterExpression = Field(default_factory=FilterExpression)
    link_entities: List["LinkEntity"] = Field(default_factory=list)

    @property
    def alias(self) -> str:
        """Name conditions use to refer to this join."""
        return self.entity_alias or self.link_to_entity_name

    def add_link(
        self,
        link_to_entity_name: str,
        link_from_attribute_name: str,
        link_to_attribute_name: str,
        join_operator: JoinOperator = JoinOperator.INNER,
    ) -> "LinkEntity":
        link = LinkEntity(
            link_from_entity_name=self.link_to_entity_name,
            link_from_attribute_name=link_from_attribute_name,
            link_to_entity_name=link_to_entity_name,
            link_to_attribute_name=link_to_attribute_name,
            join_operator=join_operator,
        )
        self.link_entities.append(link)
        return link


class QueryExpression(BaseModel):
    """
    Structured retrieve-multiple query.

    ``columns`` of None selects every attribute of the root entity.
    """

    entity_name: str
    columns: Optional[List[str]] = None
    criteria: FilterExpression = Field(default_factory=FilterExpression)
    link_entities: List[LinkEntity] = Field(default_factory=list)
    distinct: bool = False

    def add_link(
        self,
        link_to_entity_name: str,
        link_from_attribute_name: str,
        link_to_attribute_name: str,
        join_operator: JoinOperator = JoinOperator.INNER,
    ) -> LinkEntity:
        link = LinkEntity(
            link_from_entity_name=self.entity_name,
            link_from_attribute_name=link_from_attribute_name,
            link_to_entity_name=link_to_entity_name,
            link_to_attribute_name=link_to_attribute_name,
            join_operator=join_operator,
        )
        self.link_entities.append(link)
        return link

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the query to a plain dictionary.

        None values are left out, enums are rendered as their values.

        Returns:
            Dictionary representation suitable for logging
        """
        return self.model_dump(mode="json", exclude_none=True)


FilterExpression.model_rebuild()
LinkEntity.model_rebuild()
