"""Health-analysis specific post-processing.

Fills the derived fields of the health-analysis target that the LLM rarely
returns in the requested form: overall status from the score band, risk
entries from short/long-term risk lists, and a key-findings fallback.
"""

from typing import Any, Dict, List

from medparse.models.extraction import ExtractionResult, ExtractionStrategy


def overall_status(score: float) -> str:
    if score >= 85:
        return "健康状况优秀"
    if score >= 70:
        return "健康状况良好"
    if score >= 55:
        return "需要关注"
    return "建议就医"


def _band(score: float, high_below: float, medium_below: float) -> str:
    if score < high_below:
        return "高"
    if score < medium_below:
        return "中"
    return "低"


def finalize_health_analysis(result: ExtractionResult) -> ExtractionResult:
    """Derive status, risk and findings fields of a health-analysis result.

    Synthesized results are returned as they are; they already describe
    the indicators they were built from.

    Args:
        result: Output of the extractor for the health-analysis target.

    Returns:
        A new result with derived fields filled in.
    """
    if result.strategy_used == ExtractionStrategy.SYNTHESIZED:
        return result

    data: Dict[str, Any] = dict(result.data)
    score = data.get("healthScore")
    if not isinstance(score, (int, float)) or isinstance(score, bool):
        score = 70
    summary = data.get("summary") or ""

    if not data.get("keyFindings"):
        abnormal = list(data.get("abnormalIndicators") or [])
        if abnormal:
            data["keyFindings"] = abnormal[:3]
        else:
            clipped = summary[:100] + ("..." if len(summary) > 100 else "")
            data["keyFindings"] = [
                f"健康评分：{score:g}分",
                f"风险等级：{data.get('riskLevel') or '中等风险'}",
                clipped,
            ]

    recommendations = dict(data.get("recommendations") or {})
    lifestyle: List[str] = list(recommendations.get("lifestyle") or [])
    for extra in list(data.get("sleepAdvice") or []) + list(data.get("stressManagement") or []):
        if extra not in lifestyle:
            lifestyle.append(extra)
    follow_up: List[str] = list(recommendations.get("followUp") or [])
    for extra in data.get("medicalAdvice") or []:
        if extra not in follow_up:
            follow_up.append(extra)
    if recommendations or lifestyle or follow_up:
        recommendations["lifestyle"] = lifestyle
        recommendations["followUp"] = follow_up
        data["recommendations"] = recommendations

    if not data.get("riskFactors"):
        data["riskFactors"] = [
            {"type": "短期风险", "probability": _band(score, 60, 80), "description": risk}
            for risk in data.get("shortTermRisks") or []
        ] + [
            {"type": "长期风险", "probability": _band(score, 50, 70), "description": risk}
            for risk in data.get("longTermRisks") or []
        ]

    if not data.get("overallStatus"):
        data["overallStatus"] = overall_status(score)

    return result.model_copy(update={"data": data})
