# Custom exceptions for the related_activities package
# Provides specific error types for different failure scenarios


class RelatedActivitiesError(Exception):
    """Base exception for all related_activities errors."""

    pass


class LookupFailure(RelatedActivitiesError, RuntimeError):
    """Raised when a record store lookup used to expand the closure fails."""

    pass


class UnexpectedQueryShape(RelatedActivitiesError, ValueError):
    """Raised when a query no longer has the shape the rewrite expects."""

    pass


class InvalidIdentifier(RelatedActivitiesError, ValueError):
    """Raised when a value cannot be interpreted as a record identifier."""

    pass


class EntityNotFound(RelatedActivitiesError, KeyError):
    """Raised when a record store has no records of the requested entity."""

    pass
