"""Heading-based mining of non-JSON LLM responses.

When a response is prose, its sections usually still start with the same
labels the JSON keys would have used ("立即行动：", "Diet:", "## 饮食建议").
A heading is a synonym at the start of a line, optionally decorated with
markdown, followed by a colon, whitespace or the end of the line. Its span
runs until a blank line or the next heading.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import structlog

from medparse.models.extraction import ExtractionSlot, ExtractionTarget, SlotType
from medparse.services.extraction.field_mapper import (
    MappingOutcome,
    coerce_number,
    wrap_text_entry,
)
from medparse.services.extraction.synonyms import SynonymTable

logger = structlog.get_logger()

BULLET_PATTERN = re.compile(r"^\s*(?:[-*•·]+|\d+[.、)）]|[（(]\d+[)）])\s*")
INLINE_SEPARATOR = re.compile(r"[；;]")


@dataclass
class Section:
    """One heading and the text captured under it."""

    label: str
    inline: str = ""
    body: List[str] = field(default_factory=list)

    def items(self) -> List[str]:
        """Inline remainder and body lines as clean list entries."""
        items: List[str] = []
        if self.inline:
            items.extend(INLINE_SEPARATOR.split(self.inline))
        items.extend(self.body)
        cleaned = [BULLET_PATTERN.sub("", item).strip() for item in items]
        return [item for item in cleaned if item]

    def text(self) -> str:
        if self.inline:
            return self.inline.strip()
        return "\n".join(line.strip() for line in self.body).strip()


class TextSectionMiner:
    """Populates target slots from labelled sections of free text."""

    def __init__(self, synonyms: Optional[SynonymTable] = None) -> None:
        self.synonyms = synonyms or SynonymTable()

    def sections(self, text: str, target: ExtractionTarget) -> List[Section]:
        """Split text into labelled sections using every slot synonym."""
        heading = self._heading_pattern(target)
        if heading is None:
            return []

        sections: List[Section] = []
        current: Optional[Section] = None
        for line in text.splitlines():
            match = heading.match(line)
            if match:
                current = Section(label=match.group("label"), inline=(match.group("rest") or "").strip())
                sections.append(current)
                continue
            if not line.strip():
                current = None
                continue
            if current is not None:
                current.body.append(line)
        return sections

    def mine(self, text: str, target: ExtractionTarget) -> MappingOutcome:
        """Fill slots from matching sections.

        Slots without a matching section keep their defaults and are not
        reported as resolved.
        """
        sections = self.sections(text, target)
        by_label: Dict[str, List[Section]] = {}
        for section in sections:
            by_label.setdefault(section.label.lower(), []).append(section)

        outcome = MappingOutcome()
        for slot in target.slots:
            outcome.data[slot.name] = self._fill(slot, by_label, outcome, prefix="")

        logger.debug(
            "text_sections_mined",
            target=target.name,
            sections=len(sections),
            resolved=len(outcome.resolved),
        )
        return outcome

    def _fill(
        self,
        slot: ExtractionSlot,
        by_label: Dict[str, List[Section]],
        outcome: MappingOutcome,
        prefix: str,
    ):
        path = f"{prefix}{slot.name}"
        if slot.slot_type == SlotType.NESTED_OBJECT:
            return {
                child.name: self._fill(child, by_label, outcome, prefix=f"{path}.")
                for child in slot.children
            }

        matched = self._sections_for(slot, by_label)
        if not matched:
            return slot.default_value()

        value = self._value_from_sections(slot, matched)
        if value is None or value == [] or value == "":
            return slot.default_value()
        outcome.resolved.append(path)
        return value

    def _sections_for(
        self, slot: ExtractionSlot, by_label: Dict[str, List[Section]]
    ) -> List[Section]:
        matched: List[Section] = []
        for key in self.synonyms.keys_for(slot):
            matched.extend(by_label.get(key.lower(), []))
        return matched

    @staticmethod
    def _value_from_sections(slot: ExtractionSlot, sections: List[Section]):
        if slot.slot_type == SlotType.STRING_LIST:
            items: List[str] = []
            for section in sections:
                items.extend(i for i in section.items() if i not in items)
            return items
        if slot.slot_type == SlotType.OBJECT_LIST:
            entries = []
            for section in sections:
                entries.extend(wrap_text_entry(item, slot) for item in section.items())
            return entries
        if slot.slot_type == SlotType.NUMBER:
            for section in sections:
                number = coerce_number(section.text())
                if number is not None:
                    return number
            return None
        for section in sections:
            text = section.text()
            if text:
                return text
        return None

    def _heading_pattern(self, target: ExtractionTarget) -> Optional[re.Pattern]:
        labels = sorted(set(self._labels(target.slots)), key=len, reverse=True)
        if not labels:
            return None
        alternatives = "|".join(re.escape(label) for label in labels)
        return re.compile(
            r"^\s*(?:#+\s*)?(?:\d+[.、]\s*)?(?:\*\*)?"
            rf"(?P<label>{alternatives})"
            r"\s*(?:\*\*)?(?:\s*[：:]\s*(?:\*\*)?\s*|\s+|\s*$)(?P<rest>.*)",
            re.IGNORECASE,
        )

    def _labels(self, slots: List[ExtractionSlot]) -> List[str]:
        labels: List[str] = []
        for slot in slots:
            if slot.slot_type == SlotType.NESTED_OBJECT:
                labels.extend(self._labels(slot.children))
            else:
                labels.extend(self.synonyms.keys_for(slot))
        return labels


def text_prefix(text: str, length: int) -> Tuple[str, bool]:
    """First ``length`` characters of the stripped text, and whether it was cut."""
    stripped = text.strip()
    if len(stripped) <= length:
        return stripped, False
    return stripped[:length] + "...", True
