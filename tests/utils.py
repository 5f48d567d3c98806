import io
import logging
import uuid
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from related_activities.query import ConditionOperator, QueryExpression


def new_id() -> str:
    """Create a fresh record identifier."""
    return str(uuid.uuid4())


def activity_query(*regarding_ids: Any,
                   operator: ConditionOperator = ConditionOperator.EQUAL,
                   null_condition: bool = True,
                   columns: Optional[List[str]] = None) -> QueryExpression:
    """
    Build the query a host issues for an activity subgrid.

    Args:
        regarding_ids: Identifiers for the regarding condition; with the
            equals operator each one gets its own condition
        operator: Operator of the regarding condition(s)
        null_condition: Whether to include the "activityid is null" trigger
        columns: Columns to select

    Returns:
        The activitypointer query
    """
    query = QueryExpression(
        entity_name="activitypointer",
        columns=columns if columns is not None else ["activityid", "subject", "regardingobjectid"],
    )
    if null_condition:
        query.criteria.add_condition("activityid", ConditionOperator.NULL)
    if operator == ConditionOperator.IN:
        query.criteria.add_condition("regardingobjectid", operator, *regarding_ids)
    else:
        for regarding_id in regarding_ids:
            query.criteria.add_condition("regardingobjectid", operator, regarding_id)
    return query


@contextmanager
def capture_logs():
    """
    Context manager to capture logs during tests.

    Yields:
        A list that will contain the captured log records
    """
    captured_logs = []
    handler = logging.StreamHandler(io.StringIO())
    handler.emit = lambda record: captured_logs.append(record)

    logger = logging.getLogger("related_activities")
    level = logger.level
    logger.setLevel(logging.DEBUG)
    logger.addHandler(handler)

    try:
        yield captured_logs
    finally:
        logger.removeHandler(handler)
        logger.setLevel(level)


def get_metadata_from_logs(logs: List[logging.LogRecord],
                           message_contains: Optional[str] = None) -> Dict[str, Any]:
    """
    Merge the metadata of captured log records.

    Args:
        logs: List of captured log records
        message_contains: Optional substring to filter logs by message content

    Returns:
        Dictionary of metadata from matching log records
    """
    matching_logs = logs
    if message_contains:
        matching_logs = [log for log in logs if message_contains in str(log.msg)]

    metadata = {}
    for log in matching_logs:
        metadata.update(getattr(log, "metadata", {}))
    return metadata
