from typing import Dict, List, Literal

from pydantic import BaseModel, Field, field_validator, model_validator


class LayoutSettings(BaseModel):
    """Tolerances and thresholds for reading-order reconstruction"""

    row_tolerance_px: float = Field(
        default=10.0,
        ge=0.0,
        description="Max y difference for two fragments to share a visual row",
    )
    column_bias_px: float = Field(
        default=50.0,
        ge=0.0,
        description="Left bias applied to the page midline for column detection",
    )
    high_confidence: float = Field(default=0.9, ge=0.0, le=1.0)
    medium_confidence: float = Field(default=0.7, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def validate_thresholds(self) -> "LayoutSettings":
        if self.medium_confidence > self.high_confidence:
            raise ValueError("medium_confidence must not exceed high_confidence")
        return self


class ExtractionSettings(BaseModel):
    """Defaults used by the extractor's text fallbacks"""

    summary_prefix_length: int = Field(default=200, ge=1, le=5000)
    default_score: float = Field(default=70.0, ge=0.0, le=100.0)
    default_summary: str = Field(default="健康分析已完成")
    max_synthesized_findings: int = Field(default=10, ge=1, le=100)
    extra_synonyms: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Additional keys per slot name, appended to the built-in synonyms",
    )


class ConcurrencyConfig(BaseModel):
    """Concurrency configuration for batch document processing"""

    max_concurrent_documents: int = Field(default=3, ge=1, le=20)

    # Thin retry around provider calls
    provider_retry_attempts: int = Field(default=3, ge=1, le=10)
    provider_retry_min_wait_seconds: float = Field(default=1.0, ge=0.0)
    provider_retry_max_wait_seconds: float = Field(default=10.0, ge=0.0)


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class MedParseConfig(BaseModel):
    """Root configuration loaded from YAML"""

    layout: LayoutSettings = Field(default_factory=LayoutSettings)
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
