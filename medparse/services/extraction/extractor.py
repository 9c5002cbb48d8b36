"""Resilient structured-result extractor.

Maps a free-form LLM response onto a caller-controlled target shape through
an ordered chain of strategies, first success wins:

1. DirectJson     - the trimmed response parses and is target-shaped
2. RecoveredJson  - a balanced JSON value recovered from fences/prose is target-shaped
3. FieldMapped    - any parsed JSON, resolved slot by slot via the synonym table
4. TextRegex      - labelled sections mined from prose
5. Synthesized    - minimal findings built from fallback indicator data

Each strategy is a plain function of one ``ExtractionAttempt`` returning an
``ExtractionResult`` or None, so the control flow stays flat and every stage
is testable on its own. ``extract`` never raises for the shape of the
response; only a target without slots is rejected.
"""

from functools import cached_property
from typing import Any, Callable, List, Optional

import structlog

from medparse.models.config import ExtractionSettings
from medparse.models.extraction import (
    ExtractionResult,
    ExtractionStrategy,
    ExtractionTarget,
    SlotType,
)
from medparse.services.extraction.field_mapper import FieldMapper
from medparse.services.extraction.json_recovery import parse_direct, recover_json
from medparse.services.extraction.synonyms import SynonymTable
from medparse.services.extraction.synthesis import ResultSynthesizer, coerce_indicators
from medparse.services.extraction.text_fallback import TextSectionMiner, text_prefix
from medparse.utils.exceptions import InvalidTargetError, UnparsableResponseError

logger = structlog.get_logger()


class ExtractionAttempt:
    """One extract call: the inputs plus lazily parsed JSON shared by strategies."""

    def __init__(
        self,
        raw_response: Optional[str],
        target: ExtractionTarget,
        fallback_context: Any = None,
    ) -> None:
        self.raw = raw_response if isinstance(raw_response, str) else ""
        self.target = target
        self.fallback_context = fallback_context

    @cached_property
    def direct(self) -> Any:
        try:
            return parse_direct(self.raw)
        except UnparsableResponseError:
            return None

    @cached_property
    def recovered(self) -> Any:
        try:
            return recover_json(self.raw)
        except UnparsableResponseError:
            return None

    @property
    def parsed(self) -> Any:
        """First usable JSON value: the direct parse, else the recovered one."""
        if isinstance(self.direct, (dict, list)):
            return self.direct
        if isinstance(self.recovered, (dict, list)):
            return self.recovered
        return None


Strategy = Callable[[ExtractionAttempt], Optional[ExtractionResult]]


class ResilientExtractor:
    """Best-effort mapping of LLM output onto an extraction target."""

    def __init__(
        self,
        settings: Optional[ExtractionSettings] = None,
        synonyms: Optional[SynonymTable] = None,
    ) -> None:
        """Initialize extractor.

        Args:
            settings: Text-fallback defaults and extra synonyms per slot.
            synonyms: Key synonym table; defaults to the built-in table.
        """
        self.settings = settings or ExtractionSettings()
        self.synonyms = synonyms or SynonymTable()
        for name, keys in self.settings.extra_synonyms.items():
            self.synonyms.extend(name, keys)
        self.mapper = FieldMapper(self.synonyms)
        self.miner = TextSectionMiner(self.synonyms)
        self.synthesizer = ResultSynthesizer(self.settings)

        self.strategies: List[Strategy] = [
            self.direct_json,
            self.recovered_json,
            self.field_mapped,
            self.text_regex,
            self.synthesized,
        ]

    def extract(
        self,
        raw_response: Optional[str],
        target: ExtractionTarget,
        fallback_context: Any = None,
    ) -> ExtractionResult:
        """Populate ``target`` from ``raw_response``.

        Args:
            raw_response: Raw LLM text; may be JSON, fenced JSON, prose or empty.
            target: Caller-controlled result shape.
            fallback_context: Optional indicator data used for synthesis.

        Returns:
            ExtractionResult; ``degraded`` unless the response was direct JSON.

        Raises:
            InvalidTargetError: If the target declares no slots.
        """
        if not target.slots:
            raise InvalidTargetError(f"Extraction target '{target.name}' has no slots")

        attempt = ExtractionAttempt(raw_response, target, fallback_context)

        for strategy in self.strategies:
            result = strategy(attempt)
            if result is not None:
                logger.info(
                    "response_extracted",
                    target=target.name,
                    strategy=result.strategy_used.value,
                    degraded=result.degraded,
                )
                return result

        return self.declared_defaults(attempt)

    def direct_json(self, attempt: ExtractionAttempt) -> Optional[ExtractionResult]:
        if not self.mapper.matches_target(attempt.direct, attempt.target):
            return None
        return ExtractionResult(
            target_name=attempt.target.name,
            data=self.mapper.map_exact(attempt.direct, attempt.target),
            degraded=False,
            strategy_used=ExtractionStrategy.DIRECT_JSON,
        )

    def recovered_json(self, attempt: ExtractionAttempt) -> Optional[ExtractionResult]:
        if attempt.direct is not None:
            # Parsed fine but not target-shaped; field mapping handles it
            return None
        if not self.mapper.matches_target(attempt.recovered, attempt.target):
            return None
        return ExtractionResult(
            target_name=attempt.target.name,
            data=self.mapper.map_exact(attempt.recovered, attempt.target),
            degraded=True,
            strategy_used=ExtractionStrategy.RECOVERED_JSON,
        )

    def field_mapped(self, attempt: ExtractionAttempt) -> Optional[ExtractionResult]:
        tree = attempt.parsed
        if tree is None:
            return None
        outcome = self.mapper.map(tree, attempt.target)
        if not outcome.resolved_any:
            logger.warning("field_mapping_found_nothing", target=attempt.target.name)
            return None
        return ExtractionResult(
            target_name=attempt.target.name,
            data=outcome.data,
            degraded=True,
            strategy_used=ExtractionStrategy.FIELD_MAPPED,
        )

    def text_regex(self, attempt: ExtractionAttempt) -> Optional[ExtractionResult]:
        if not attempt.raw.strip():
            return None
        outcome = self.miner.mine(attempt.raw, attempt.target)
        if not outcome.resolved_any:
            return None
        return ExtractionResult(
            target_name=attempt.target.name,
            data=self._fill_scalar_fallbacks(attempt, outcome.data, outcome.resolved),
            degraded=True,
            strategy_used=ExtractionStrategy.TEXT_REGEX,
        )

    def synthesized(self, attempt: ExtractionAttempt) -> Optional[ExtractionResult]:
        indicators = coerce_indicators(attempt.fallback_context)
        data = self.synthesizer.synthesize(attempt.target, indicators)
        if data is None:
            return None
        return ExtractionResult(
            target_name=attempt.target.name,
            data=data,
            degraded=True,
            strategy_used=ExtractionStrategy.SYNTHESIZED,
            warnings=["analysis_response_unusable"],
        )

    def declared_defaults(self, attempt: ExtractionAttempt) -> ExtractionResult:
        """Terminal outcome when no strategy produced anything.

        Non-blank prose still yields its prefix as the summary and the
        default score. A blank response, or JSON none of whose keys could be
        mapped, yields the declared defaults.
        """
        target = attempt.target
        if attempt.parsed is None and attempt.raw.strip():
            logger.warning("response_unstructured", target=target.name)
            return ExtractionResult(
                target_name=target.name,
                data=self._fill_scalar_fallbacks(attempt, target.defaults(), []),
                degraded=True,
                strategy_used=ExtractionStrategy.TEXT_REGEX,
                warnings=["no_sections_found"],
            )

        if attempt.parsed is not None:
            logger.warning("response_json_unmapped", target=target.name)
            warning = "unmapped_json_response"
        else:
            logger.warning("response_unparsable", target=target.name)
            warning = "unparsable_response"

        data = target.defaults()
        for slot in target.slots:
            if slot.text_prefix_fallback and slot.default is None:
                data[slot.name] = self.settings.default_summary
        return ExtractionResult(
            target_name=target.name,
            data=data,
            degraded=True,
            strategy_used=ExtractionStrategy.SYNTHESIZED,
            warnings=[warning],
        )

    def _fill_scalar_fallbacks(
        self,
        attempt: ExtractionAttempt,
        data: dict,
        resolved: List[str],
    ) -> dict:
        for slot in attempt.target.slots:
            if slot.name in resolved:
                continue
            if slot.text_prefix_fallback:
                data[slot.name], _ = text_prefix(
                    attempt.raw, self.settings.summary_prefix_length
                )
            elif slot.slot_type == SlotType.NUMBER and slot.default is None:
                data[slot.name] = self.settings.default_score
        return data
