"""Field-alias accessors for schema-less upstream documents.

One semantic value can live under several field names. Each alias is an
accessor function; lists of accessors are tried in priority order and the first
non-empty value wins.
"""

from typing import Any, Callable, Mapping, Optional, Sequence

Accessor = Callable[[Mapping[str, Any]], Any]


def field(name: str) -> Accessor:
    """Accessor for a top-level field."""

    def accessor(record: Mapping[str, Any]) -> Any:
        return record.get(name)

    return accessor


def nested(parent: str, name: str) -> Accessor:
    """Accessor for a field of a nested mapping."""

    def accessor(record: Mapping[str, Any]) -> Any:
        inner = record.get(parent)
        return inner.get(name) if isinstance(inner, Mapping) else None

    return accessor


def first_item(parent: str, name: str) -> Accessor:
    """Accessor for a field of the first mapping in a nested list."""

    def accessor(record: Mapping[str, Any]) -> Any:
        items = record.get(parent)
        if isinstance(items, (list, tuple)) and items and isinstance(items[0], Mapping):
            return items[0].get(name)
        return None

    return accessor


def is_present(value: Any) -> bool:
    """Check that a resolved value is neither missing nor blank."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def is_identifier(value: Any) -> bool:
    """Check that a resolved value can identify an item (0 and false cannot)."""
    return is_present(value) and bool(value)


def resolve_first(
    record: Any,
    accessors: Sequence[Accessor],
    present: Callable[[Any], bool] = is_present,
) -> Optional[Any]:
    """
    Resolve a value through ordered accessors.

    Args:
        record: Raw document; anything but a mapping resolves to None
        accessors: Accessor functions in priority order
        present: Predicate a value must satisfy to win

    Returns:
        First non-empty value, or None
    """
    if not isinstance(record, Mapping):
        return None
    for accessor in accessors:
        value = accessor(record)
        if present(value):
            return value
    return None
