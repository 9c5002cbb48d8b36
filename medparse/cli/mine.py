"""Mine command: pull lab indicators straight from OCR text."""

from pathlib import Path

import typer

from medparse.cli.utils import display_info, echo_json, handle_errors
from medparse.services.indicators import mine_indicators


@handle_errors
def mine_command(
    text_path: Path = typer.Argument(..., exists=True, help="Plain OCR text file"),
):
    """Scan raw text for known lab values without calling an LLM."""
    indicators = mine_indicators(text_path.read_text(encoding="utf-8"))
    abnormal = sum(1 for indicator in indicators if indicator.is_abnormal)
    display_info(f"Found {len(indicators)} indicators, {abnormal} abnormal")
    echo_json([indicator.model_dump() for indicator in indicators])
