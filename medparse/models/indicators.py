"""Numeric lab-indicator model.

Indicators come either from an LLM indicator-parsing call or from the
emergency regex miner, and feed result synthesis when the analysis
response is unusable.
"""

from typing import Literal, Union

from pydantic import BaseModel, Field

IndicatorStatus = Literal["normal", "high", "low", "critical"]

DEFAULT_NORMAL_RANGE = "参考医生评估"


class NumericalIndicator(BaseModel):
    """A single lab value such as ``WBC 6.2 10^9/L``."""

    name: str = Field(..., min_length=1, description="Indicator name")
    value: Union[float, str] = Field(..., description="Measured value")
    unit: str = Field(default="", description="Measurement unit")
    normal_range: str = Field(
        default=DEFAULT_NORMAL_RANGE, description="Reference range as printed"
    )
    status: IndicatorStatus = Field(default="normal")

    @property
    def is_abnormal(self) -> bool:
        return self.status != "normal"

    def describe(self) -> str:
        """Human-readable value, e.g. ``6.2 10^9/L``."""
        value = self.value
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return f"{value} {self.unit}".strip()
