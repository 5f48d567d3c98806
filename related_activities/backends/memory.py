# In-memory record store implementation
# Evaluates query expressions against plain dict records, for testing and development

import copy
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..exceptions import EntityNotFound
from ..identifiers import to_identifier
from ..interfaces import RecordStore, Row
from ..logging import get_logger, with_logging
from ..query import (
    ConditionExpression,
    ConditionOperator,
    FilterExpression,
    JoinOperator,
    LinkEntity,
    LogicalOperator,
    QueryExpression,
)
from .. import schema

logger = get_logger("backends.memory")

# Entity -> (primary key attribute, parent attribute) for entities forming a hierarchy
DEFAULT_HIERARCHIES = {
    schema.ACCOUNT_ENTITY: (schema.ACCOUNT_ID, schema.PARENT_ACCOUNT_ID),
}

# Key of the root record inside a binding
_ROOT = ""

# alias -> (entity name, record or None for an unmatched outer join)
Binding = Dict[str, Tuple[str, Optional[Row]]]


def _same(left: Any, right: Any) -> bool:
    """Compare two attribute values, treating identifiers case- and type-insensitively."""
    left_id, right_id = to_identifier(left), to_identifier(right)
    if left_id is not None and right_id is not None:
        return left_id == right_id
    return left == right


class InMemoryRecordStore(RecordStore):
    """
    In-memory implementation of RecordStore.

    Records are grouped by entity name. Querying an entity that was never
    registered raises EntityNotFound, the same way a real store rejects an
    unknown table. Only the root entity's attributes are returned; use
    ``distinct`` to collapse the duplicates joins produce.
    """

    def __init__(
        self,
        records: Optional[Dict[str, Iterable[Row]]] = None,
        hierarchies: Optional[Dict[str, Tuple[str, str]]] = None,
    ):
        self._records: Dict[str, List[Row]] = {}
        self._hierarchies = dict(DEFAULT_HIERARCHIES if hierarchies is None else hierarchies)
        for entity_name, rows in (records or {}).items():
            self.register(entity_name)
            for row in rows:
                self.add(entity_name, row)

    def register(self, entity_name: str) -> None:
        """Make an entity known to the store, with no records."""
        self._records.setdefault(entity_name, [])

    def add(self, entity_name: str, record: Row) -> None:
        """Add a record, registering its entity if needed."""
        self._records.setdefault(entity_name, []).append(copy.deepcopy(record))

    def _rows(self, entity_name: str) -> List[Row]:
        try:
            return self._records[entity_name]
        except KeyError:
            raise EntityNotFound(f"Entity {entity_name} not found") from None

    @with_logging
    def run_query(self, query: QueryExpression) -> List[Row]:
        bindings: List[Binding] = [
            {_ROOT: (query.entity_name, record)} for record in self._rows(query.entity_name)
        ]
        for link in query.link_entities:
            bindings = self._join(bindings, link, _ROOT)

        rows: List[Row] = []
        for binding in bindings:
            if not self._matches(query.criteria, _ROOT, binding):
                continue
            row = self._project(binding[_ROOT][1], query.columns)
            if query.distinct and row in rows:
                continue
            rows.append(row)

        logger.debug(
            f"Evaluated query on {query.entity_name}",
            metadata={"entity": query.entity_name, "result_count": len(rows)},
        )
        return rows

    @staticmethod
    def _project(record: Row, columns: Optional[List[str]]) -> Row:
        if columns is None:
            return copy.deepcopy(record)
        return {column: copy.deepcopy(record.get(column)) for column in columns}

    def _join(self, bindings: List[Binding], link: LinkEntity, source_alias: str) -> List[Binding]:
        targets = self._rows(link.link_to_entity_name)
        joined: List[Binding] = []

        for binding in bindings:
            source = binding[source_alias][1]
            source_value = None if source is None else source.get(link.link_from_attribute_name)

            matches: List[Binding] = []
            if source_value is not None:
                for target in targets:
                    if not _same(target.get(link.link_to_attribute_name), source_value):
                        continue
                    candidate = {**binding, link.alias: (link.link_to_entity_name, target)}
                    if not self._matches(link.link_criteria, link.alias, candidate):
                        continue
                    expanded = [candidate]
                    for nested in link.link_entities:
                        expanded = self._join(expanded, nested, link.alias)
                    matches.extend(expanded)

            if matches:
                joined.extend(matches)
            elif link.join_operator == JoinOperator.LEFT_OUTER:
                joined.append(self._unmatched(binding, link))

        return joined

    def _unmatched(self, binding: Binding, link: LinkEntity) -> Binding:
        """Binding for a left outer join with no partner: the link and its nested links are empty."""
        unmatched = {**binding, link.alias: (link.link_to_entity_name, None)}
        for nested in link.link_entities:
            unmatched = self._unmatched(unmatched, nested)
        return unmatched

    def _matches(self, filter_expression: FilterExpression, scope: str, binding: Binding) -> bool:
        results = [
            self._check(condition, scope, binding) for condition in filter_expression.conditions
        ] + [
            self._matches(nested, scope, binding) for nested in filter_expression.filters
        ]
        if not results:
            return True
        if filter_expression.filter_operator == LogicalOperator.OR:
            return any(results)
        return all(results)

    def _check(self, condition: ConditionExpression, scope: str, binding: Binding) -> bool:
        alias = scope if condition.entity_name is None else condition.entity_name
        if alias not in binding:
            raise ValueError(f"Condition refers to unknown alias '{alias}'")
        entity_name, record = binding[alias]
        value = None if record is None else record.get(condition.attribute_name)

        operator = condition.operator
        if operator == ConditionOperator.NULL:
            return value is None
        if operator == ConditionOperator.NOT_NULL:
            return value is not None
        if operator == ConditionOperator.EQUAL:
            return value is not None and _same(value, condition.values[0])
        if operator == ConditionOperator.IN:
            return value is not None and any(_same(value, v) for v in condition.values)
        if operator == ConditionOperator.UNDER:
            return record is not None and self._is_under(entity_name, record, condition.values[0])
        raise ValueError(f"Unsupported operator {operator}")

    def _is_under(self, entity_name: str, record: Row, ancestor: Any) -> bool:
        """Whether ``ancestor`` appears anywhere above ``record`` in its entity's hierarchy."""
        if entity_name not in self._hierarchies:
            raise ValueError(f"Entity {entity_name} has no hierarchy")
        id_attribute, parent_attribute = self._hierarchies[entity_name]
        by_id = {
            to_identifier(row.get(id_attribute)): row for row in self._rows(entity_name)
        }

        seen = set()
        parent = to_identifier(record.get(parent_attribute))
        while parent is not None and parent not in seen:
            if _same(parent, ancestor):
                return True
            seen.add(parent)
            parent_record = by_id.get(parent)
            parent = None if parent_record is None else to_identifier(parent_record.get(parent_attribute))
        return False
