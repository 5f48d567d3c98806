# Closure expansion for the related activities rewrite
# Widens the seed identifiers with current spouses and descendant organizations

from typing import List, Optional

from . import schema
from .config import RelatedActivitiesSettings
from .exceptions import InvalidIdentifier, LookupFailure
from .identifiers import IdentifierSet
from .interfaces import RecordStore, Row
from .logging import StructuredLogger, get_logger
from .query import (
    ConditionOperator,
    FilterExpression,
    JoinOperator,
    QueryExpression,
)


def spouse_lookup(seed: IdentifierSet, status: str = "Current") -> QueryExpression:
    """
    Build the query for current spousal relationships of any seed identifier.

    The relationship must have a type flagged spousal whose status is named
    ``status``; both are checked through inner joins.
    """
    query = QueryExpression(
        entity_name=schema.RELATIONSHIP_ENTITY,
        columns=[schema.PERSON1_ID, schema.PERSON2_ID, schema.RELATIONSHIP_ID],
    )
    person_filter = query.criteria.add_filter(FilterExpression())
    person_filter.add_condition(schema.PERSON1_ID, ConditionOperator.IN, *seed)

    type_link = query.add_link(
        schema.RELATIONSHIP_TYPE_ENTITY,
        schema.RELATIONSHIP_TYPE_LINK,
        schema.RELATIONSHIP_TYPE_ID,
        JoinOperator.INNER,
    )
    type_link.link_criteria.add_condition(schema.IS_SPOUSAL, ConditionOperator.EQUAL, True)

    status_link = type_link.add_link(
        schema.STATUS_ENTITY,
        schema.RELATIONSHIP_STATUS_LINK,
        schema.STATUS_ID,
        JoinOperator.INNER,
    )
    status_link.link_criteria.add_condition(schema.STATUS_NAME, ConditionOperator.EQUAL, status)
    return query


def descendant_lookup(identifier: str) -> QueryExpression:
    """Build the query for every organization beneath ``identifier``."""
    query = QueryExpression(entity_name=schema.ACCOUNT_ENTITY, columns=[schema.ACCOUNT_ID])
    query.criteria.add_condition(schema.ACCOUNT_ID, ConditionOperator.UNDER, identifier)
    return query


class ClosureResolver:
    """
    Expands a seed identifier set through the record store.

    One spousal lookup covers the whole seed; one descendant lookup runs per
    seed identifier. Both read the original seed only, so spouses of
    descendant organizations (and the like) are not chased: the number of
    store calls stays fixed at ``1 + len(seed)`` whatever comes back.
    """

    def __init__(
        self,
        store: RecordStore,
        settings: Optional[RelatedActivitiesSettings] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self.store = store
        self.settings = settings or RelatedActivitiesSettings()
        self.logger = logger or get_logger("closure")

    def expand(self, seed: IdentifierSet) -> IdentifierSet:
        """
        Compute the closure of ``seed``.

        Returns:
            A new set holding the seed identifiers, then spouses, then
            descendant organizations

        Raises:
            LookupFailure: If any store call fails or returns an unusable row;
                nothing of the partial closure is kept
        """
        closure = seed.copy()
        if not seed:
            return closure

        spouses = self._run(spouse_lookup(seed, self.settings.spousal_status), schema.PERSON2_ID)
        added = closure.update(spouses)
        self.logger.debug("Added spouses", metadata={"found": len(spouses), "added": added})

        if self.settings.include_descendants:
            for identifier in seed:
                organizations = self._run(descendant_lookup(identifier), schema.ACCOUNT_ID)
                added = closure.update(organizations)
                self.logger.debug(
                    "Added descendant organizations",
                    metadata={"parent": identifier, "found": len(organizations), "added": added},
                )

        return closure

    def _run(self, query: QueryExpression, attribute: str) -> List[str]:
        try:
            rows: List[Row] = self.store.run_query(query)
        except Exception as e:
            raise LookupFailure(
                f"Lookup on {query.entity_name} failed: {e}"
            ) from e

        identifiers = IdentifierSet()
        try:
            for row in rows:
                identifiers.add(row.get(attribute))
        except (InvalidIdentifier, AttributeError, TypeError) as e:
            raise LookupFailure(
                f"Lookup on {query.entity_name} returned unusable rows for {attribute}"
            ) from e
        return identifiers.to_list()
