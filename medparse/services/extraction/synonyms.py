"""Synonym table and the default health-analysis target.

The analysis LLM is asked for fixed field names but answers in whatever
shape and language it likes. Each logical field maps to every key name it
has been seen under, Chinese and English.
"""

from typing import Dict, Iterable, List, Mapping, Optional

from medparse.models.extraction import ExtractionSlot, ExtractionTarget, SlotType

DEFAULT_SYNONYMS: Dict[str, List[str]] = {
    "summary": ["健康状况", "整体评估", "综合分析", "总结", "概述", "summary", "整体健康状况评估"],
    "healthScore": ["健康评分", "评分", "健康分数", "healthScore", "score"],
    "keyFindings": ["关键发现", "主要发现", "重要发现", "主要关注点", "keyFindings", "findings"],
    "riskLevel": ["风险等级", "风险级别", "风险评估", "riskLevel"],
    "immediate": ["立即行动", "即时建议", "紧急建议", "immediate"],
    "lifestyle": ["生活方式", "生活习惯", "生活建议", "lifestyle"],
    "diet": ["饮食调整", "饮食建议", "饮食与营养", "diet", "营养补充建议", "饮食时间安排"],
    "exercise": ["运动方案", "运动建议", "锻炼建议", "exercise", "有氧运动计划", "力量训练建议", "日常活动增加"],
    "followUp": ["复查计划", "随访建议", "后续计划", "年度体检", "followUp"],
    "shortTermRisks": ["短期风险", "近期风险", "shortTermRisks"],
    "longTermRisks": ["长期风险", "远期风险", "longTermRisks"],
    "preventive": ["预防措施", "预防建议", "preventive"],
    "abnormalIndicators": ["异常指标分析", "严重异常", "轻度异常", "需要监测", "abnormalIndicators"],
    "systemEvaluation": ["系统评估", "心血管系统", "代谢系统", "肝肾功能", "免疫系统"],
    "medicalAdvice": ["医疗建议", "专科咨询", "药物提醒", "medicalAdvice"],
    "healthPlanning": ["健康规划", "30天计划", "3个月目标"],
    "sleepAdvice": ["睡眠优化", "睡眠建议", "sleepAdvice"],
    "stressManagement": ["压力管理", "减压方法", "stressManagement"],
    "recommendations": ["建议", "健康建议", "调理建议", "recommendations"],
    "riskFactors": ["风险因素", "风险因子", "riskFactors", "risks"],
    "overallStatus": ["整体状态", "总体状态", "overallStatus", "status"],
}


class SynonymTable:
    """Lookup from a slot name to every key it may appear under."""

    def __init__(self, entries: Optional[Mapping[str, Iterable[str]]] = None) -> None:
        source = DEFAULT_SYNONYMS if entries is None else entries
        self._entries: Dict[str, List[str]] = {
            name: list(keys) for name, keys in source.items()
        }

    def keys_for(self, slot: ExtractionSlot) -> List[str]:
        """Slot name first, then declared synonyms, then table entries."""
        keys: List[str] = []
        for key in slot.keys + self._entries.get(slot.name, []):
            if key not in keys:
                keys.append(key)
        return keys

    def extend(self, name: str, keys: Iterable[str]) -> None:
        """Append keys for a slot name, skipping ones already present."""
        existing = self._entries.setdefault(name, [])
        for key in keys:
            if key not in existing:
                existing.append(key)

    def __contains__(self, name: str) -> bool:
        return name in self._entries


def _list_slot(name: str, required: bool = True) -> ExtractionSlot:
    return ExtractionSlot(name=name, slot_type=SlotType.STRING_LIST, required=required)


def build_health_analysis_target() -> ExtractionTarget:
    """The result shape the report screens render."""
    return ExtractionTarget(
        name="health_analysis",
        slots=[
            ExtractionSlot(
                name="summary",
                slot_type=SlotType.STRING,
                default="健康分析已完成",
                text_prefix_fallback=True,
            ),
            ExtractionSlot(name="healthScore", slot_type=SlotType.NUMBER, default=70),
            _list_slot("keyFindings"),
            ExtractionSlot(
                name="riskLevel",
                slot_type=SlotType.STRING,
                default="中等风险",
                required=False,
            ),
            ExtractionSlot(
                name="recommendations",
                slot_type=SlotType.NESTED_OBJECT,
                children=[
                    _list_slot("immediate"),
                    _list_slot("lifestyle"),
                    _list_slot("diet"),
                    _list_slot("exercise"),
                    _list_slot("followUp"),
                ],
            ),
            ExtractionSlot(
                name="riskFactors",
                slot_type=SlotType.OBJECT_LIST,
                item_fields=[
                    ExtractionSlot(name="type", synonyms=["类型", "风险类型"]),
                    ExtractionSlot(name="probability", synonyms=["概率", "可能性"]),
                    ExtractionSlot(name="description", synonyms=["描述", "说明"]),
                ],
            ),
            _list_slot("shortTermRisks", required=False),
            _list_slot("longTermRisks", required=False),
            _list_slot("abnormalIndicators", required=False),
            _list_slot("sleepAdvice", required=False),
            _list_slot("stressManagement", required=False),
            _list_slot("medicalAdvice", required=False),
            ExtractionSlot(name="overallStatus", slot_type=SlotType.STRING, required=False),
        ],
    )
