"""Schema-agnostic field mapping over decoded JSON.

Resolves each slot of an extraction target against an arbitrary JSON tree
by synonym-keyed depth-first search, then coerces the found value to the
slot's declared type. Unresolvable slots keep their defaults; one bad
field never aborts the rest of the mapping.

The tree is the plain ``json.loads`` value: dict, list, str, int, float,
bool or None. Everything here is a pure function of that value.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

import structlog

from medparse.models.extraction import ExtractionSlot, ExtractionTarget, SlotType
from medparse.services.extraction.synonyms import SynonymTable

logger = structlog.get_logger()

LEADING_NUMBER = re.compile(r"^\s*([-+]?\d+(?:\.\d+)?)")

# Preferred item field for a bare string entry of an object list
DESCRIPTION_FIELD = "description"


@dataclass
class MappingOutcome:
    """Populated data plus the names of slots actually found in the tree."""

    data: Dict[str, Any] = field(default_factory=dict)
    resolved: List[str] = field(default_factory=list)

    @property
    def resolved_any(self) -> bool:
        return bool(self.resolved)


def find_value(tree: Any, keys: Sequence[str]) -> Any:
    """Depth-first search for the first of ``keys`` in a JSON tree.

    At each object, every key is tried directly before descending into
    nested objects and arrays. Null values count as absent.

    Returns:
        The matched value, or None if the tree is exhausted.
    """
    if isinstance(tree, Mapping):
        for key in keys:
            value = tree.get(key)
            if value is not None:
                return value
        children = tree.values()
    elif isinstance(tree, list):
        children = tree
    else:
        return None

    for child in children:
        if isinstance(child, (Mapping, list)):
            found = find_value(child, keys)
            if found is not None:
                return found
    return None


def flatten_strings(value: Any) -> List[str]:
    """Every leaf string of a JSON value, in document order."""
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, Mapping):
        value = list(value.values())
    if isinstance(value, list):
        leaves: List[str] = []
        for item in value:
            leaves.extend(flatten_strings(item))
        return leaves
    return []


def coerce_number(value: Any) -> Optional[float]:
    """Numbers pass through; numeric strings are parsed; anything else is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        match = LEADING_NUMBER.match(value)
        if match:
            return float(match.group(1))
    return None


def coerce_string(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        parts = [coerce_string(item) for item in value]
        return "，".join(p for p in parts if p)
    return None


def coerce_string_list(value: Any) -> Optional[List[str]]:
    """Arrays verbatim, a single string wrapped, objects flattened to leaves."""
    if isinstance(value, list):
        items: List[str] = []
        for item in value:
            if isinstance(item, str):
                items.append(item)
            elif isinstance(item, (int, float)) and not isinstance(item, bool):
                items.append(str(item))
            elif isinstance(item, (Mapping, list)):
                items.extend(flatten_strings(item))
        return items
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, Mapping):
        return flatten_strings(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return [str(value)]
    return None


def wrap_text_entry(text: str, slot: ExtractionSlot) -> Dict[str, Any]:
    """Turn a bare string into one object-list entry."""
    entry = {f.name: f.default_value() for f in slot.item_fields}
    target_field = DESCRIPTION_FIELD
    if DESCRIPTION_FIELD not in entry:
        target_field = next(
            (f.name for f in slot.item_fields if f.slot_type == SlotType.STRING),
            DESCRIPTION_FIELD,
        )
    entry[target_field] = text
    return entry


class FieldMapper:
    """Maps a decoded JSON tree onto an extraction target."""

    def __init__(self, synonyms: Optional[SynonymTable] = None) -> None:
        self.synonyms = synonyms or SynonymTable()

    def map(self, tree: Any, target: ExtractionTarget) -> MappingOutcome:
        """Resolve every target slot by synonym search.

        Args:
            tree: Decoded JSON value of any shape.
            target: Caller-controlled result shape.

        Returns:
            MappingOutcome with one entry per slot.
        """
        outcome = MappingOutcome()
        for slot in target.slots:
            value, found = self._resolve(tree, tree, slot, outcome, prefix="")
            outcome.data[slot.name] = value

        logger.debug(
            "fields_mapped",
            target=target.name,
            resolved=len(outcome.resolved),
            slots=len(target.slots),
        )
        return outcome

    def map_exact(self, obj: Mapping[str, Any], target: ExtractionTarget) -> Dict[str, Any]:
        """Coerce a target-shaped object in place of synonym search.

        Keys outside the target are preserved, so a well-formed response
        round-trips unchanged.
        """
        data = dict(obj)
        for slot in target.slots:
            data[slot.name] = self._coerce_exact(obj.get(slot.name), slot)
        return data

    def matches_target(self, obj: Any, target: ExtractionTarget) -> bool:
        """True when every required slot name is a top-level key."""
        if not isinstance(obj, Mapping):
            return False
        return all(slot.name in obj for slot in target.slots if slot.required)

    def _resolve(
        self,
        root: Any,
        scope: Any,
        slot: ExtractionSlot,
        outcome: MappingOutcome,
        prefix: str,
    ) -> tuple[Any, bool]:
        path = f"{prefix}{slot.name}"
        raw = find_value(scope, self.synonyms.keys_for(slot))

        if slot.slot_type == SlotType.NESTED_OBJECT:
            return self._resolve_nested(root, raw, slot, outcome, path)

        if raw is None:
            return slot.default_value(), False

        value = self._coerce(raw, slot)
        if value is None or value == [] or value == "":
            return slot.default_value(), False

        outcome.resolved.append(path)
        return value, True

    def _resolve_nested(
        self,
        root: Any,
        raw: Any,
        slot: ExtractionSlot,
        outcome: MappingOutcome,
        path: str,
    ) -> tuple[Dict[str, Any], bool]:
        nested: Dict[str, Any] = {}
        any_found = False
        for child in slot.children:
            value, found = (None, False)
            if isinstance(raw, (Mapping, list)):
                value, found = self._resolve(root, raw, child, outcome, f"{path}.")
            if not found:
                # Providers often flatten sub-fields to the top level
                value, found = self._resolve(root, root, child, outcome, f"{path}.")
            nested[child.name] = value
            any_found = any_found or found
        return nested, any_found

    def _coerce(self, raw: Any, slot: ExtractionSlot) -> Any:
        if slot.slot_type == SlotType.NUMBER:
            return coerce_number(raw)
        if slot.slot_type == SlotType.STRING:
            return coerce_string(raw)
        if slot.slot_type == SlotType.STRING_LIST:
            return coerce_string_list(raw)
        if slot.slot_type == SlotType.OBJECT_LIST:
            return self._coerce_object_list(raw, slot)
        return None

    def _coerce_object_list(self, raw: Any, slot: ExtractionSlot) -> Optional[List[Dict[str, Any]]]:
        if isinstance(raw, str):
            return [wrap_text_entry(raw, slot)] if raw.strip() else []
        if isinstance(raw, Mapping):
            if self._has_item_field(raw, slot):
                return [self._coerce_item(raw, slot)]
            return [wrap_text_entry(text, slot) for text in flatten_strings(raw)]
        if not isinstance(raw, list):
            return None

        entries: List[Dict[str, Any]] = []
        for item in raw:
            if isinstance(item, Mapping):
                entries.append(self._coerce_item(item, slot))
            elif isinstance(item, str) and item.strip():
                entries.append(wrap_text_entry(item, slot))
        return entries

    def _has_item_field(self, item: Mapping[str, Any], slot: ExtractionSlot) -> bool:
        return any(
            key in item for f in slot.item_fields for key in self.synonyms.keys_for(f)
        )

    def _coerce_item(self, item: Mapping[str, Any], slot: ExtractionSlot) -> Dict[str, Any]:
        if not slot.item_fields:
            return dict(item)
        entry: Dict[str, Any] = {}
        for item_field in slot.item_fields:
            raw = None
            for key in self.synonyms.keys_for(item_field):
                if item.get(key) is not None:
                    raw = item[key]
                    break
            value = self._coerce(raw, item_field) if raw is not None else None
            entry[item_field.name] = value if value is not None else item_field.default_value()
        return entry

    def _coerce_exact(self, raw: Any, slot: ExtractionSlot) -> Any:
        if slot.slot_type == SlotType.NESTED_OBJECT:
            base = dict(raw) if isinstance(raw, Mapping) else {}
            for child in slot.children:
                base[child.name] = self._coerce_exact(base.get(child.name), child)
            return base

        if slot.slot_type == SlotType.OBJECT_LIST and isinstance(raw, list):
            entries: List[Any] = []
            for item in raw:
                if isinstance(item, Mapping):
                    entry = dict(item)
                    for item_field in slot.item_fields:
                        entry[item_field.name] = self._coerce_exact(
                            item.get(item_field.name), item_field
                        )
                    entries.append(entry)
                elif isinstance(item, str):
                    entries.append(wrap_text_entry(item, slot))
            return entries

        if raw is None:
            return slot.default_value()
        value = self._coerce(raw, slot)
        return value if value is not None else slot.default_value()
