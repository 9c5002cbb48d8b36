"""Resilient extraction of structured results from LLM responses.

Usage:
    from medparse.services.extraction import (
        ResilientExtractor,
        build_health_analysis_target,
    )

    result = ResilientExtractor().extract(response_text, build_health_analysis_target())
    if result.degraded:
        show_partial_result_notice()
"""

from medparse.services.extraction.extractor import ExtractionAttempt, ResilientExtractor
from medparse.services.extraction.field_mapper import FieldMapper, find_value
from medparse.services.extraction.health import finalize_health_analysis
from medparse.services.extraction.json_recovery import recover_json, strip_code_fences
from medparse.services.extraction.synonyms import (
    DEFAULT_SYNONYMS,
    SynonymTable,
    build_health_analysis_target,
)
from medparse.services.extraction.synthesis import ResultSynthesizer
from medparse.services.extraction.text_fallback import TextSectionMiner

__all__ = [
    "ResilientExtractor",
    "ExtractionAttempt",
    "FieldMapper",
    "find_value",
    "TextSectionMiner",
    "ResultSynthesizer",
    "SynonymTable",
    "DEFAULT_SYNONYMS",
    "build_health_analysis_target",
    "finalize_health_analysis",
    "recover_json",
    "strip_code_fences",
]
