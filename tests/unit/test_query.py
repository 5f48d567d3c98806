import pytest
from pydantic import ValidationError

from related_activities.query import (
    ConditionExpression,
    ConditionOperator,
    FilterExpression,
    JoinOperator,
    LogicalOperator,
    QueryExpression,
)


class TestConditionExpression:
    """Test value count rules on conditions."""

    def test_null_operators_take_no_values(self):
        """Test that null and not-null conditions reject values."""
        ConditionExpression(attribute_name="activityid", operator=ConditionOperator.NULL)
        ConditionExpression(attribute_name="activityid", operator=ConditionOperator.NOT_NULL)

        with pytest.raises(ValidationError):
            ConditionExpression(attribute_name="activityid", operator=ConditionOperator.NULL, values=["x"])

    def test_equal_takes_exactly_one_value(self):
        """Test that eq requires a single value."""
        condition = ConditionExpression(attribute_name="subject", operator="eq", values=["Visit"])
        assert condition.operator == ConditionOperator.EQUAL

        with pytest.raises(ValidationError):
            ConditionExpression(attribute_name="subject", operator=ConditionOperator.EQUAL)

        with pytest.raises(ValidationError):
            ConditionExpression(attribute_name="subject", operator=ConditionOperator.EQUAL, values=["a", "b"])

    def test_in_takes_one_or_more_values(self):
        """Test that in requires at least one value."""
        condition = ConditionExpression(attribute_name="partyid", operator=ConditionOperator.IN, values=["a", "b", "c"])
        assert condition.values == ["a", "b", "c"]

        with pytest.raises(ValidationError):
            ConditionExpression(attribute_name="partyid", operator=ConditionOperator.IN, values=[])

    def test_unknown_operator_rejected(self):
        """Test that operators outside the supported set fail validation."""
        with pytest.raises(ValidationError):
            ConditionExpression(attribute_name="subject", operator="like", values=["%a%"])


class TestQueryExpression:
    """Test the query builder helpers."""

    def test_defaults(self):
        """Test that a bare query selects everything with an empty AND filter."""
        query = QueryExpression(entity_name="activitypointer")

        assert query.columns is None
        assert query.criteria.filter_operator == LogicalOperator.AND
        assert query.criteria.conditions == []
        assert query.link_entities == []
        assert query.distinct is False

    def test_add_condition_and_filter(self):
        """Test building nested criteria."""
        query = QueryExpression(entity_name="activitypointer")
        condition = query.criteria.add_condition("regardingobjectid", ConditionOperator.EQUAL, "x")
        nested = query.criteria.add_filter(FilterExpression(filter_operator=LogicalOperator.OR))
        nested.add_condition("activityid", ConditionOperator.NOT_NULL, entity_name="party")

        assert query.criteria.conditions == [condition]
        assert query.criteria.filters[0].filter_operator == LogicalOperator.OR
        assert query.criteria.filters[0].conditions[0].entity_name == "party"

    def test_add_link(self):
        """Test that links record their source entity and default alias."""
        query = QueryExpression(entity_name="elcn_personalrelationship")
        link = query.add_link(
            "elcn_personalrelationshiptype", "elcn_relationshiptype1id", "elcn_personalrelationshiptypeid"
        )
        nested = link.add_link("elcn_status", "elcn_relationshipstatusid", "elcn_statusid", JoinOperator.LEFT_OUTER)

        assert link.link_from_entity_name == "elcn_personalrelationship"
        assert link.join_operator == JoinOperator.INNER
        assert link.alias == "elcn_personalrelationshiptype"
        assert nested.link_from_entity_name == "elcn_personalrelationshiptype"
        assert nested.join_operator == JoinOperator.LEFT_OUTER

        link.entity_alias = "reltype"
        assert link.alias == "reltype"

    def test_to_dict(self):
        """Test that to_dict drops None values and renders enums as strings."""
        query = QueryExpression(entity_name="account", columns=["accountid"])
        query.criteria.add_condition("accountid", ConditionOperator.UNDER, "abc")

        data = query.to_dict()

        assert data["entity_name"] == "account"
        assert data["criteria"]["filter_operator"] == "and"
        assert data["criteria"]["conditions"][0] == {
            "attribute_name": "accountid",
            "operator": "under",
            "values": ["abc"],
        }
        assert data["distinct"] is False

    def test_deep_copy_is_independent(self):
        """Test that model_copy(deep=True) shares no mutable state."""
        query = QueryExpression(entity_name="activitypointer")
        query.criteria.add_condition("activityid", ConditionOperator.NULL)

        copied = query.model_copy(deep=True)
        copied.criteria.conditions.clear()
        copied.add_link("email", "activityid", "activityid")

        assert len(query.criteria.conditions) == 1
        assert query.link_entities == []
