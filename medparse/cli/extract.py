"""Extract command: LLM response text to a structured health analysis."""

from pathlib import Path
from typing import Optional

import typer

from medparse.cli.utils import (
    display_warning,
    echo_json,
    handle_errors,
    load_config,
    read_json_file,
)
from medparse.services.extraction import (
    ResilientExtractor,
    build_health_analysis_target,
    finalize_health_analysis,
)


@handle_errors
def extract_command(
    response_path: Path = typer.Argument(..., exists=True, help="Raw LLM response"),
    indicators_path: Optional[Path] = typer.Option(
        None, "--indicators", "-i", help="Indicator JSON used when the response is unusable"
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file"
    ),
    finalize: bool = typer.Option(
        True, "--finalize/--no-finalize", help="Derive status and risk fields"
    ),
):
    """Map a free-form LLM response onto the health-analysis shape."""
    config = load_config(config_path)
    fallback = read_json_file(indicators_path) if indicators_path else None

    extractor = ResilientExtractor(config.extraction)
    result = extractor.extract(
        response_path.read_text(encoding="utf-8"),
        build_health_analysis_target(),
        fallback_context=fallback,
    )
    if finalize:
        result = finalize_health_analysis(result)

    if result.degraded:
        display_warning(
            f"Partial result recovered via {result.strategy_used.value}"
        )

    echo_json(result.model_dump(mode="json"))
