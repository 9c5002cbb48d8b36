"""Shared CLI utilities.

Provides common functionality for all CLI commands.
"""

import functools
import json
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import typer

from medparse.models.config import MedParseConfig
from medparse.observability.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)
from medparse.services.config_manager import ConfigManager
from medparse.utils.exceptions import ConfigValidationError

# Logs go to stderr; stdout carries command output only
configure_logging(json_output=False)
logger = get_logger("cli")

# Type variable for decorator
F = TypeVar("F", bound=Callable)


def load_config(config_path: Optional[Path]) -> MedParseConfig:
    """Load configuration, or the built-in defaults when no path is given.

    Args:
        config_path: Optional path to a YAML configuration file.

    Returns:
        Validated MedParseConfig.

    Raises:
        typer.Exit: If configuration is missing or invalid.
    """
    if config_path is None:
        return MedParseConfig()

    config_manager = ConfigManager(config_path=str(config_path))
    try:
        config = config_manager.load_config()
    except (FileNotFoundError, ConfigValidationError) as e:
        display_error(f"Configuration Error: {e}")
        raise typer.Exit(code=1)

    configure_logging(
        level=config.logging.level, json_output=config.logging.json_output
    )
    return config


def read_json_file(path: Path) -> Any:
    """Read a UTF-8 JSON file.

    Raises:
        typer.Exit: If the file is not valid JSON.
    """
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        display_error(f"Invalid JSON in {path}: {e}")
        raise typer.Exit(code=1)


def echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


def handle_errors(func: F) -> F:
    """Decorator for consistent error handling.

    Binds the command name to every log entry of the invocation, catches
    exceptions and displays user-friendly error messages on stderr.

    Args:
        func: Function to wrap.

    Returns:
        Wrapped function with error handling.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        bind_context(command=func.__name__)
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except Exception as e:
            logger.exception("command_failed")
            display_error(f"Error: {e}")
            raise typer.Exit(code=1)
        finally:
            clear_context()

    return wrapper  # type: ignore[return-value]


def display_success(message: str) -> None:
    typer.secho(message, fg=typer.colors.GREEN, err=True)


def display_warning(message: str) -> None:
    typer.secho(message, fg=typer.colors.YELLOW, err=True)


def display_error(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)


def display_info(message: str) -> None:
    typer.secho(message, fg=typer.colors.CYAN, err=True)
