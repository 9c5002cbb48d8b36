"""Normalize command: Azure Read JSON to ordered lines."""

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
from medparse.services.layout import (
    LayoutNormalizer,
    filter_texts_by_confidence,
    parse_azure_read_result,
)


@handle_errors
def normalize_command(
    ocr_path: Path = typer.Argument(..., exists=True, help="Azure Read result JSON"),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file"
    ),
    text_only: bool = typer.Option(
        False, "--text", help="Print the ordered text instead of JSON"
    ),
    min_confidence: Optional[float] = typer.Option(
        None, "--min-confidence", help="Drop lines below this confidence (text mode)"
    ),
):
    """Put OCR lines into reading order and report their quality."""
    config = load_config(config_path)
    normalizer = LayoutNormalizer(config.layout)
    document = normalizer.normalize(parse_azure_read_result(read_json_file(ocr_path)))

    if document.is_empty:
        display_warning("Nothing detected: the OCR result contains no text lines")

    if text_only:
        if min_confidence is None:
            typer.echo(document.text)
        else:
            typer.echo("\n".join(filter_texts_by_confidence(document, min_confidence)))
        return

    echo_json(
        {
            "lines": [line.model_dump() for line in document.lines],
            "quality": document.quality.model_dump(),
            "nothing_detected": document.is_empty,
        }
    )
