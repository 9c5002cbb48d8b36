"""medparse CLI Package.

Usage:
    python -m medparse.cli normalize ocr_result.json --text
    python -m medparse.cli extract response.txt --indicators indicators.json
    python -m medparse.cli mine report.txt
    python -m medparse.cli validate config/medparse.yaml
"""

import typer

from medparse.cli.extract import extract_command
from medparse.cli.mine import mine_command
from medparse.cli.normalize import normalize_command
from medparse.cli.validate import validate_command

# Create main app
app = typer.Typer(help="medparse: OCR layout normalization and resilient result extraction")

app.command(name="normalize")(normalize_command)
app.command(name="extract")(extract_command)
app.command(name="mine")(mine_command)
app.command(name="validate")(validate_command)

__all__ = [
    "app",
    "normalize_command",
    "extract_command",
    "mine_command",
    "validate_command",
]
