"""Emergency numeric-indicator mining straight from OCR text.

Last line of defense when the indicator-parsing LLM call is unavailable or
returns nothing usable: a fixed list of common lab-value patterns, then one
generic ``label: number unit`` pattern. Results are de-duplicated by
indicator name, first match wins, and known aliases (``WBC``, ``白细胞``)
collapse onto one canonical name.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import structlog

from medparse.models.indicators import DEFAULT_NORMAL_RANGE, NumericalIndicator
from medparse.services.indicators.status import assess_status

logger = structlog.get_logger()

_VALUE = r"(?P<value>\d+(?:\.\d+)?)"
_SEP = r"[：: \t]*"
_POWER_UNIT = r"(?:[*×xX]\s*)?10\s*\^?\s*{exp}\s*/\s*L"


@dataclass(frozen=True)
class KnownIndicator:
    """A lab value with a fixed name, aliases and unit pattern."""

    name: str
    aliases: Tuple[str, ...]
    unit_pattern: str
    unit: str

    @property
    def pattern(self) -> re.Pattern:
        names = "|".join(re.escape(a) for a in (self.name,) + self.aliases)
        return re.compile(
            rf"(?<![A-Za-z])(?:{names}){_SEP}{_VALUE}[ \t]*(?P<unit>{self.unit_pattern})",
            re.IGNORECASE,
        )


KNOWN_INDICATORS: Tuple[KnownIndicator, ...] = (
    # Complete blood count
    KnownIndicator("红细胞", ("RBC",), _POWER_UNIT.format(exp="12"), "10^12/L"),
    KnownIndicator("白细胞", ("WBC",), _POWER_UNIT.format(exp="9"), "10^9/L"),
    KnownIndicator("血红蛋白", ("HGB", "Hb"), r"g\s*/\s*L", "g/L"),
    KnownIndicator("血小板", ("PLT",), _POWER_UNIT.format(exp="9"), "10^9/L"),
    # Biochemistry
    KnownIndicator("总胆固醇", ("TC",), r"mmol\s*/\s*L", "mmol/L"),
    KnownIndicator("甘油三酯", ("TG",), r"mmol\s*/\s*L", "mmol/L"),
    KnownIndicator("血糖", ("GLU",), r"mmol\s*/\s*L", "mmol/L"),
    KnownIndicator("尿酸", ("UA",), r"[uμµ]mol\s*/\s*L", "umol/L"),
)

GENERIC_PATTERN = re.compile(
    r"(?P<name>[A-Za-z一-鿿][A-Za-z一-鿿()（）\-]{0,29})"
    r"[：: \t]+"
    + _VALUE
    + r"[ \t]*(?P<unit>(?:[*×]\s*)?10\^?\d+\s*/\s*L|[A-Za-zμµ%][A-Za-z0-9μµ%/^.]*)"
)

# Optional flag arrow and printed reference range right after the unit
TRAILER_PATTERN = re.compile(
    r"[ \t]*(?P<flag>[↑↓])?[ \t]*"
    r"(?P<range>\d+(?:\.\d+)?[ \t]*(?:-|~|～)[ \t]*\d+(?:\.\d+)?)?"
    r"[ \t]*(?P<flag_after>[↑↓])?"
)

_ALIASES: Dict[str, str] = {
    alias.lower(): known.name
    for known in KNOWN_INDICATORS
    for alias in (known.name,) + known.aliases
}


def canonical_name(name: str) -> str:
    """Map a known alias onto its canonical indicator name."""
    cleaned = name.strip()
    return _ALIASES.get(cleaned.lower(), cleaned)


def mine_indicators(text: str) -> List[NumericalIndicator]:
    """Scan raw text for lab values.

    Args:
        text: Raw OCR text (lines joined by newlines).

    Returns:
        Indicators in discovery order, one per name.
    """
    if not text:
        return []

    found: Dict[str, NumericalIndicator] = {}

    for known in KNOWN_INDICATORS:
        for match in known.pattern.finditer(text):
            if known.name in found:
                break
            found[known.name] = _build(text, match, known.name, known.unit)

    for match in GENERIC_PATTERN.finditer(text):
        name = canonical_name(match.group("name"))
        if name in found:
            continue
        found[name] = _build(text, match, name, match.group("unit").strip())

    indicators = list(found.values())
    logger.info("indicators_mined", count=len(indicators))
    return indicators


def _build(text: str, match: re.Match, name: str, unit: str) -> NumericalIndicator:
    trailer = TRAILER_PATTERN.match(text, match.end())
    normal_range, status = _read_trailer(trailer)
    indicator = NumericalIndicator(
        name=name,
        value=float(match.group("value")),
        unit=unit,
        normal_range=normal_range,
        status=status,
    )
    if status == "normal":
        indicator = indicator.model_copy(update={"status": assess_status(indicator)})
    return indicator


def _read_trailer(trailer: Optional[re.Match]) -> Tuple[str, str]:
    if trailer is None:
        return DEFAULT_NORMAL_RANGE, "normal"
    flag = trailer.group("flag") or trailer.group("flag_after")
    status = {"↑": "high", "↓": "low"}.get(flag or "", "normal")
    normal_range = trailer.group("range")
    return (normal_range.replace(" ", "") if normal_range else DEFAULT_NORMAL_RANGE), status
