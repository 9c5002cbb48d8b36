"""Batch processing models.

Defines per-document jobs and outcomes, the batch summary and the
comprehensive multi-report view built from it.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from medparse.models.extraction import ExtractionResult
from medparse.models.ocr import ParseQuality


class DocumentJob(BaseModel):
    """One uploaded document to push through OCR, normalization and extraction"""

    document_id: str = Field(..., min_length=1)
    file_name: str = Field(default="")
    payload: Any = Field(
        default=None, description="Opaque input handed to the OCR provider"
    )
    edited_texts: Optional[List[str]] = Field(
        default=None,
        description="User-corrected line texts; when set, OCR is skipped",
    )


class DocumentOutcome(BaseModel):
    """Result of one document's pipeline, correlated by document_id"""

    document_id: str
    file_name: str = ""
    status: Literal["success", "failed"]
    extraction: Optional[ExtractionResult] = None
    quality: Optional[ParseQuality] = None
    nothing_detected: bool = False
    error: Optional[str] = None
    duration_seconds: float = Field(default=0.0, ge=0.0)


class BatchSummary(BaseModel):
    """Statistics and outcomes for one batch run"""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    degraded: int = 0
    outcomes: List[DocumentOutcome] = Field(default_factory=list)
    duration_seconds: float = 0.0

    def outcome_for(self, document_id: str) -> Optional[DocumentOutcome]:
        for outcome in self.outcomes:
            if outcome.document_id == document_id:
                return outcome
        return None


class RiskEntry(BaseModel):
    type: str = ""
    probability: str = ""
    description: str = ""
    affected_documents: List[str] = Field(default_factory=list)


class ComprehensiveReport(BaseModel):
    """Merged view over every successful document of a batch"""

    total_reports: int = 0
    success_count: int = 0
    failed_count: int = 0
    overall_health_score: int = 0
    combined_findings: List[str] = Field(default_factory=list)
    combined_recommendations: Dict[str, List[str]] = Field(default_factory=dict)
    risk_factors: List[RiskEntry] = Field(default_factory=list)
