import os
from pathlib import Path
from string import Template
from typing import Optional

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from medparse.models.config import MedParseConfig
from medparse.utils.exceptions import ConfigValidationError

logger = structlog.get_logger()


class ConfigManager:
    """Loads and validates medparse configuration from YAML"""

    def __init__(
        self,
        config_path: str = "config/medparse.yaml",
        load_env: bool = True,
    ):
        self.config_path = Path(config_path)
        self.load_env = load_env
        self.env_loaded = False
        self._config: Optional[MedParseConfig] = None

    def load_config(self) -> MedParseConfig:
        """Load and validate configuration"""
        if self._config is not None:
            return self._config

        # 1. Load environment
        if self.load_env and not self.env_loaded:  # pragma: no cover
            load_dotenv()
            self.env_loaded = True

        # 2. Check file existence
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        # 3. Read YAML
        try:
            raw_content = self.config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigValidationError(f"Failed to read config file: {e}")

        # 4. Substitute ${VAR} references from the environment
        try:
            substituted = Template(raw_content).safe_substitute(os.environ)
            config_data = yaml.safe_load(substituted) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Failed to parse YAML: {e}")

        if not isinstance(config_data, dict):
            raise ConfigValidationError("Configuration root must be a mapping")

        # 5. Validate with Pydantic
        try:
            self._config = MedParseConfig(**config_data)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid configuration: {e}")

        logger.info(
            "config_loaded",
            path=str(self.config_path),
            max_concurrent_documents=self._config.concurrency.max_concurrent_documents,
        )
        return self._config

    def load_or_default(self) -> MedParseConfig:
        """Load the file if it exists, otherwise fall back to built-in defaults"""
        if not self.config_path.exists():
            logger.info("config_defaults_used", path=str(self.config_path))
            self._config = MedParseConfig()
            return self._config
        return self.load_config()
