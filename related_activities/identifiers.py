# Identifier handling for related_activities
# Record identifiers are GUIDs, carried around as canonical lowercase strings

import uuid
from typing import Any, Iterable, Iterator, List, Optional

from .exceptions import InvalidIdentifier


def to_identifier(value: Any) -> Optional[str]:
    """
    Normalize a value to a canonical identifier string.

    Accepts ``uuid.UUID`` instances, strings holding a GUID (with or without
    braces), and entity references (mappings with an ``id`` key).

    Returns:
        The identifier as a lowercase hyphenated string, or None if the value
        is not an identifier
    """
    if isinstance(value, dict):
        value = value.get("id")
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, str):
        try:
            return str(uuid.UUID(value.strip()))
        except ValueError:
            return None
    return None


def require_identifier(value: Any) -> str:
    """Like to_identifier, but raise InvalidIdentifier instead of returning None."""
    identifier = to_identifier(value)
    if identifier is None:
        raise InvalidIdentifier(f"Not a record identifier: {value!r}")
    return identifier


def is_identifier(value: Any) -> bool:
    return to_identifier(value) is not None


class IdentifierSet:
    """
    Ordered, duplicate-free collection of record identifiers.

    Membership is by normalized identifier, so ``UUID(x)``, ``str(x).upper()``
    and ``{"id": x}`` all name the same member. Iteration follows first
    insertion, which keeps rewritten queries deterministic; equality with
    another IdentifierSet ignores order.
    """

    def __init__(self, identifiers: Optional[Iterable[Any]] = None):
        self._members: dict = {}
        if identifiers is not None:
            self.update(identifiers)

    def add(self, value: Any) -> bool:
        """
        Add an identifier.

        Returns:
            True if the identifier was not already a member

        Raises:
            InvalidIdentifier: If the value is not an identifier
        """
        identifier = require_identifier(value)
        if identifier in self._members:
            return False
        self._members[identifier] = None
        return True

    def update(self, values: Iterable[Any]) -> int:
        """Add every value, returning how many were new."""
        return sum(1 for value in values if self.add(value))

    def copy(self) -> "IdentifierSet":
        return IdentifierSet(self._members)

    def to_list(self) -> List[str]:
        return list(self._members)

    def __contains__(self, value: Any) -> bool:
        identifier = to_identifier(value)
        return identifier is not None and identifier in self._members

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._members))

    def __len__(self) -> int:
        return len(self._members)

    def __bool__(self) -> bool:
        return bool(self._members)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, IdentifierSet):
            return self._members.keys() == other._members.keys()
        return NotImplemented

    def __repr__(self) -> str:
        return f"IdentifierSet({self.to_list()!r})"
