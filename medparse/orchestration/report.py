"""Comprehensive report over the successful documents of a batch."""

import math
from typing import Any, Dict, List

import structlog

from medparse.models.batch import BatchSummary, ComprehensiveReport, RiskEntry

logger = structlog.get_logger()

RECOMMENDATION_CATEGORIES = ("immediate", "lifestyle", "diet", "exercise", "followUp")


def _unique(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))


def _strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str) and item]


def build_comprehensive_report(summary: BatchSummary) -> ComprehensiveReport:
    """Merge the extraction results of a batch into one report.

    Only successful documents with an extraction contribute. Findings and
    recommendations are de-duplicated preserving first appearance; risk
    factors sharing a description are merged and list every document
    they were reported for.

    Args:
        summary: Output of ``BatchPipeline.run``.

    Returns:
        ComprehensiveReport with the averaged health score.
    """
    analyzed = [
        outcome
        for outcome in summary.outcomes
        if outcome.status == "success" and outcome.extraction is not None
    ]

    scores: List[float] = []
    findings: List[str] = []
    recommendations: Dict[str, List[str]] = {c: [] for c in RECOMMENDATION_CATEGORIES}
    risks: Dict[str, RiskEntry] = {}

    for outcome in analyzed:
        data = outcome.extraction.data
        label = outcome.file_name or outcome.document_id

        score = data.get("healthScore")
        if isinstance(score, (int, float)) and not isinstance(score, bool):
            scores.append(float(score))
        else:
            scores.append(0.0)

        findings.extend(_strings(data.get("keyFindings")))

        advice = data.get("recommendations")
        if isinstance(advice, dict):
            for category, items in advice.items():
                recommendations.setdefault(category, []).extend(_strings(items))

        for risk in data.get("riskFactors") or []:
            if not isinstance(risk, dict):
                continue
            description = str(risk.get("description", ""))
            entry = risks.get(description)
            if entry is None:
                risks[description] = RiskEntry(
                    type=str(risk.get("type", "")),
                    probability=str(risk.get("probability", "")),
                    description=description,
                    affected_documents=[label],
                )
            elif label not in entry.affected_documents:
                entry.affected_documents.append(label)

    overall = math.floor(sum(scores) / len(scores) + 0.5) if scores else 0

    report = ComprehensiveReport(
        total_reports=summary.total,
        success_count=len(analyzed),
        failed_count=summary.failed,
        overall_health_score=overall,
        combined_findings=_unique(findings),
        combined_recommendations={k: _unique(v) for k, v in recommendations.items()},
        risk_factors=list(risks.values()),
    )

    logger.info(
        "comprehensive_report_built",
        documents=report.success_count,
        overall_health_score=report.overall_health_score,
        risk_factors=len(report.risk_factors),
    )
    return report
