"""Last-resort result synthesis from independently parsed indicators.

When the analysis response yields nothing usable, the numeric indicators
parsed on a separate path (LLM indicator call or the emergency miner) still
say something true about the report. This module turns them into minimal
findings and risk entries so the result screen is never blank.
"""

from typing import Any, Dict, Iterable, List, Optional

import structlog
from pydantic import ValidationError

from medparse.models.config import ExtractionSettings
from medparse.models.extraction import ExtractionSlot, ExtractionTarget, SlotType
from medparse.models.indicators import NumericalIndicator
from medparse.services.extraction.field_mapper import wrap_text_entry
from medparse.services.indicators.status import assess_status

logger = structlog.get_logger()

STATUS_LABELS = {"high": "偏高", "low": "偏低", "critical": "危急"}
STATUS_PROBABILITY = {"critical": "高", "high": "中", "low": "中"}


def coerce_indicators(context: Any) -> List[NumericalIndicator]:
    """Accept indicator models, dicts, or a mapping holding an indicator list."""
    if context is None:
        return []
    if isinstance(context, dict):
        for key in ("numerical_indicators", "indicators", "numericalIndicators"):
            if isinstance(context.get(key), list):
                context = context[key]
                break
        else:
            context = [context]
    if not isinstance(context, (list, tuple)):
        return []

    indicators: List[NumericalIndicator] = []
    for item in context:
        if isinstance(item, NumericalIndicator):
            indicators.append(item)
            continue
        if not isinstance(item, dict):
            continue
        try:
            indicators.append(NumericalIndicator(**_normalize_keys(item)))
        except ValidationError as e:
            logger.debug("context_indicator_skipped", error=str(e))
    return indicators


def _normalize_keys(item: Dict[str, Any]) -> Dict[str, Any]:
    data = dict(item)
    if "normalRange" in data and "normal_range" not in data:
        data["normal_range"] = data.pop("normalRange")
    return data


class ResultSynthesizer:
    """Builds a minimal, honest result from indicator data."""

    def __init__(self, settings: Optional[ExtractionSettings] = None) -> None:
        self.settings = settings or ExtractionSettings()

    def synthesize(
        self,
        target: ExtractionTarget,
        indicators: Iterable[NumericalIndicator],
    ) -> Optional[Dict[str, Any]]:
        """Populate the target from indicators.

        Returns:
            Result data, or None when there are no indicators to work from.
        """
        indicators = list(indicators)
        if not indicators:
            return None

        assessed = [(indicator, assess_status(indicator)) for indicator in indicators]
        abnormal = [(i, s) for i, s in assessed if s != "normal"]
        findings = self._findings(assessed, abnormal)

        data = target.defaults()
        findings_slot = self._first_slot(target.slots, SlotType.STRING_LIST)
        risk_slot = self._first_slot(target.slots, SlotType.OBJECT_LIST)
        summary_slot = next(
            (s for s in target.slots if s.text_prefix_fallback), None
        ) or self._first_slot(target.slots, SlotType.STRING)

        if findings_slot is not None:
            data[findings_slot.name] = findings
        if risk_slot is not None:
            data[risk_slot.name] = [
                self._risk_entry(indicator, status, risk_slot)
                for indicator, status in abnormal
            ]
        if summary_slot is not None:
            data[summary_slot.name] = (
                f"AI分析暂不可用，以下结果根据{len(indicators)}项检测指标生成，"
                f"其中{len(abnormal)}项超出参考范围，建议咨询专业医生。"
            )

        logger.info(
            "result_synthesized",
            target=target.name,
            indicators=len(indicators),
            abnormal=len(abnormal),
        )
        return data

    def _findings(self, assessed, abnormal) -> List[str]:
        limit = self.settings.max_synthesized_findings
        if abnormal:
            return [
                f"{indicator.name}{STATUS_LABELS[status]}：{indicator.describe()}"
                f"（参考范围：{indicator.normal_range}）"
                for indicator, status in abnormal[:limit]
            ]
        findings = [f"{len(assessed)}项检测指标均在参考范围内"]
        findings.extend(
            f"{indicator.name}：{indicator.describe()}"
            for indicator, _ in assessed[: limit - 1]
        )
        return findings

    @staticmethod
    def _risk_entry(
        indicator: NumericalIndicator, status: str, slot: ExtractionSlot
    ) -> Dict[str, Any]:
        entry = wrap_text_entry(
            f"{indicator.name}{STATUS_LABELS[status]}（{indicator.describe()}）", slot
        )
        field_names = {f.name for f in slot.item_fields}
        if "type" in field_names:
            entry["type"] = "指标异常"
        if "probability" in field_names:
            entry["probability"] = STATUS_PROBABILITY[status]
        return entry

    @staticmethod
    def _first_slot(
        slots: List[ExtractionSlot], slot_type: SlotType
    ) -> Optional[ExtractionSlot]:
        return next((s for s in slots if s.slot_type == slot_type), None)
