"""Extraction data models for the resilient structured-result extractor.

This module defines the data structures for:
- Extraction slots and targets (the caller-controlled result shape)
- The fallback strategy marker
- Extraction results (a populated target plus degradation metadata)
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SlotType(str, Enum):
    """Declared type of one slot in an extraction target."""

    STRING = "string"
    NUMBER = "number"
    STRING_LIST = "string_list"
    OBJECT_LIST = "object_list"
    NESTED_OBJECT = "nested_object"


class ExtractionStrategy(str, Enum):
    """How far down the fallback chain the extractor had to go."""

    DIRECT_JSON = "DirectJson"
    RECOVERED_JSON = "RecoveredJson"
    FIELD_MAPPED = "FieldMapped"
    TEXT_REGEX = "TextRegex"
    SYNTHESIZED = "Synthesized"


class ExtractionSlot(BaseModel):
    """One named slot of an extraction target

    Examples:
        - ``healthScore`` as a number, also found under ``健康评分``
        - ``recommendations`` as a nested object of string lists
        - ``riskFactors`` as a list of ``{type, probability, description}``
    """

    name: str = Field(..., min_length=1, description="Key in the populated result")
    slot_type: SlotType = Field(default=SlotType.STRING)
    synonyms: List[str] = Field(
        default_factory=list,
        description="Alternate key names the provider may use for this slot",
    )
    default: Any = Field(
        default=None, description="Value used when the slot cannot be resolved"
    )
    required: bool = Field(
        default=True,
        description="Whether a response must carry this key to count as target-shaped",
    )
    text_prefix_fallback: bool = Field(
        default=False,
        description="Fill from a prefix of the raw text when nothing else matches",
    )
    children: List["ExtractionSlot"] = Field(
        default_factory=list, description="Sub-slots of a nested_object slot"
    )
    item_fields: List["ExtractionSlot"] = Field(
        default_factory=list, description="Fields of each object_list entry"
    )

    @property
    def keys(self) -> List[str]:
        """Every key this slot answers to, its own name first."""
        return [self.name] + [s for s in self.synonyms if s != self.name]

    def default_value(self) -> Any:
        """Declared default, or the empty value for the slot type."""
        if self.slot_type == SlotType.NESTED_OBJECT:
            base = dict(self.default) if isinstance(self.default, dict) else {}
            for child in self.children:
                base.setdefault(child.name, child.default_value())
            return base
        if self.default is not None:
            if isinstance(self.default, list):
                return list(self.default)
            return self.default
        if self.slot_type == SlotType.NUMBER:
            return 0.0
        if self.slot_type in (SlotType.STRING_LIST, SlotType.OBJECT_LIST):
            return []
        return ""


class ExtractionTarget(BaseModel):
    """A caller-defined result shape: a tree of named slots."""

    name: str = Field(default="analysis", min_length=1)
    slots: List[ExtractionSlot] = Field(default_factory=list)

    def defaults(self) -> Dict[str, Any]:
        """The declared-defaults object for this target."""
        return {slot.name: slot.default_value() for slot in self.slots}

    @property
    def slot_names(self) -> List[str]:
        return [slot.name for slot in self.slots]

    def slot(self, name: str) -> Optional[ExtractionSlot]:
        for slot in self.slots:
            if slot.name == name:
                return slot
        return None


class ExtractionResult(BaseModel):
    """One populated instance of an extraction target

    ``degraded`` is False only for a direct JSON parse; callers use it and
    ``strategy_used`` to decide whether to show a partial-result notice.
    """

    target_name: str
    data: Dict[str, Any] = Field(default_factory=dict)
    degraded: bool = False
    strategy_used: ExtractionStrategy
    warnings: List[str] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "target_name": "health_analysis",
                "data": {"summary": "整体良好", "healthScore": 82},
                "degraded": True,
                "strategy_used": "FieldMapped",
                "warnings": [],
            }
        }
    )

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    @model_validator(mode="after")
    def validate_degraded_flag(self) -> "ExtractionResult":
        if self.strategy_used == ExtractionStrategy.DIRECT_JSON and self.degraded:
            raise ValueError("A direct JSON parse cannot be degraded")
        return self


ExtractionSlot.model_rebuild()
