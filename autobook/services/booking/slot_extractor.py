"""Slot extraction from schema-less search documents.

The upstream search endpoint does not have a fixed response schema: slot lists
show up under different container names, and slot records name their fields
differently between versions. Extraction runs in two phases:

1. Shallow scan over a fixed list of container paths, accepting entries that
   expose an inventory identifier.
2. Deep fallback (only when the scan found nothing): an identity-tracked
   depth-first walk over the whole document. Shared or cyclic substructures are
   visited once. A mapping that has both a start-like key and an
   inventory-id-like key is recorded and not descended into.

Every raw record is then normalized through ordered alias accessors. Records
without an inventory identifier or a start time are dropped. Distinct records
describing the same slot are kept: upstream can list one start time under
several inventory items.
"""

from datetime import datetime
from typing import Any, Iterator, List, Mapping, Optional, Sequence, Tuple

from ...constants import BookingDefaults
from .aliases import Accessor, field, is_identifier, nested, resolve_first
from .models import CandidateSlot
from .window_matcher import parse_slot_start

# Top-level container fields commonly used for result lists, in scan order
CONTAINER_FIELDS: Tuple[str, ...] = (
    "slots",
    "availableSlots",
    "available_slots",
    "results",
    "data",
    "inventoryItems",
    "items",
    "timeSlots",
    "available",
)


# Ordered alias accessors; the first non-empty value wins. A zero or false
# inventory id falls through to the next alias.
INVENTORY_ID_ACCESSORS: Tuple[Accessor, ...] = (
    field("inventoryItemId"),
    field("inventory_item_id"),
    nested("inventoryItem", "id"),
    nested("inventoryItem", "inventoryItemId"),
)
# Aliases that mark a record as a slot during the shallow scan
SCAN_ACCESSORS: Tuple[Accessor, ...] = INVENTORY_ID_ACCESSORS[:3]
START_ACCESSORS: Tuple[Accessor, ...] = tuple(
    field(name) for name in ("start", "startDateTime", "time", "slotStart", "start_time", "from")
)
END_ACCESSORS: Tuple[Accessor, ...] = tuple(
    field(name) for name in ("end", "endDateTime", "slotEnd", "end_time", "to")
)
DURATION_ACCESSORS: Tuple[Accessor, ...] = tuple(
    field(name) for name in ("durationMinutes", "duration", "duration_minutes", "playingTime")
)
AVAILABLE_ACCESSORS: Tuple[Accessor, ...] = tuple(
    field(name) for name in ("available", "isAvailable", "is_available")
)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_composite(value: Any) -> bool:
    return isinstance(value, Mapping) or _is_sequence(value)


def _scan_containers(doc: Any) -> Iterator[Any]:
    yield doc
    if isinstance(doc, Mapping):
        for name in CONTAINER_FIELDS:
            yield doc.get(name)


def _shallow_scan(doc: Any) -> List[Mapping[str, Any]]:
    found: List[Mapping[str, Any]] = []
    seen = set()

    def scan(entries: Sequence[Any]) -> None:
        for entry in entries:
            if not isinstance(entry, Mapping) or id(entry) in seen:
                continue
            if resolve_first(entry, SCAN_ACCESSORS, is_identifier) is not None:
                seen.add(id(entry))
                found.append(entry)

    for container in _scan_containers(doc):
        if _is_sequence(container):
            scan(container)
        elif isinstance(container, Mapping):
            for value in container.values():
                if _is_sequence(value):
                    scan(value)
    return found


def _looks_like_slot(keys: Sequence[str]) -> bool:
    lowered = [key.lower() for key in keys]
    has_start = "start" in keys or any("start" in key for key in lowered)
    has_inventory_id = "inventoryItemId" in keys or any(
        "inventory" in key and "id" in key for key in lowered
    )
    return has_start and has_inventory_id


def _deep_search(doc: Any) -> List[Mapping[str, Any]]:
    found: List[Mapping[str, Any]] = []
    visited = set()
    stack: List[Any] = [doc]

    while stack:
        node = stack.pop()
        if not _is_composite(node) or id(node) in visited:
            continue
        visited.add(id(node))

        if isinstance(node, Mapping):
            if _looks_like_slot([str(key) for key in node.keys()]):
                found.append(node)
                continue
            children = list(node.values())
        else:
            children = list(node)

        # Reversed so children are visited in document order
        stack.extend(reversed(children))
    return found


def _coerce_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _resolve_duration(record: Mapping[str, Any], start: Optional[datetime]) -> int:
    duration = _coerce_int(resolve_first(record, DURATION_ACCESSORS))
    if duration and duration > 0:
        return duration

    end_value = resolve_first(record, END_ACCESSORS)
    end = parse_slot_start(end_value) if isinstance(end_value, str) else None
    if start and end and end > start:
        return int((end - start).total_seconds() // 60)

    return BookingDefaults.SLOT_DURATION_MINUTES


def normalize_slot(record: Mapping[str, Any]) -> Optional[CandidateSlot]:
    """
    Normalize a raw slot record.

    Args:
        record: Raw slot-like mapping

    Returns:
        CandidateSlot, or None if inventory id or start cannot be resolved
    """
    inventory_id = resolve_first(record, INVENTORY_ID_ACCESSORS, is_identifier)
    start = resolve_first(record, START_ACCESSORS)
    if inventory_id is None or start is None:
        return None

    start_text = str(start).strip()
    available = resolve_first(record, AVAILABLE_ACCESSORS)

    return CandidateSlot(
        inventory_id=str(inventory_id).strip(),
        start=start_text,
        duration_minutes=_resolve_duration(record, parse_slot_start(start_text)),
        available=available if isinstance(available, bool) else None,
        raw=record,
    )


def find_slot_records(doc: Any) -> List[Mapping[str, Any]]:
    """
    Locate raw slot records in a search document.

    Args:
        doc: Raw search document (mappings and sequences, possibly cyclic)

    Returns:
        Raw records in discovery order
    """
    records = _shallow_scan(doc)
    if records:
        return records
    return _deep_search(doc)


def extract_slots(doc: Any) -> List[CandidateSlot]:
    """
    Extract normalized candidate slots from a search document.

    Never raises for malformed input: unusable records are skipped.

    Args:
        doc: Raw search document

    Returns:
        Candidate slots in discovery order
    """
    slots: List[CandidateSlot] = []
    for record in find_slot_records(doc):
        slot = normalize_slot(record)
        if slot is not None:
            slots.append(slot)
    return slots
