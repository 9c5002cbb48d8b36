"""Numeric lab-indicator helpers: emergency mining and status assessment."""

from medparse.services.indicators.miner import (
    KNOWN_INDICATORS,
    canonical_name,
    mine_indicators,
)
from medparse.services.indicators.status import assess_status, parse_range

__all__ = [
    "KNOWN_INDICATORS",
    "canonical_name",
    "mine_indicators",
    "assess_status",
    "parse_range",
]
