"""Handles loading configuration from YAML files and the environment."""

import yaml
import os
import logging
import tempfile
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional, Tuple
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

API_KEY_ENV = "OPENAI_API_KEY"
BASE_URL_ENV = "OPENAI_BASE_URL"
FONTS_DIR_ENVS = ("CAPTIONER_FONTS_DIR",)

class ConfigLoader:
    """Loads configuration settings from a YAML file."""

    def load_config(self, config_path: str) -> dict:
        """
        Loads configuration from the specified YAML file path.

        Args:
            config_path: The path to the YAML configuration file.

        Returns:
            A dictionary containing the loaded configuration settings.
            An empty file yields an empty dictionary.

        Raises:
            FileNotFoundError: If the configuration file does not exist.
            ConfigurationError: If the file cannot be parsed as YAML or
                              if there are other reading errors.
        """
        logger.info(f"Attempting to load configuration from: {config_path}")
        if not os.path.exists(config_path):
            logger.error(f"Configuration file not found at path: {config_path}")
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        if not os.path.isfile(config_path):
            logger.error(f"Configuration path is not a file: {config_path}")
            raise ConfigurationError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Invalid YAML format in {config_path}: {e}") from e
        except OSError as e:
            logger.error(f"Error reading configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Could not read configuration file {config_path}: {e}") from e

        if config is None:
            config = {}
        if not isinstance(config, dict):
            logger.error(f"Configuration file {config_path} did not load as a dictionary (root object).")
            raise ConfigurationError(f"Invalid YAML structure in {config_path}. Root must be a mapping (dictionary).")
        logger.info(f"Configuration loaded successfully from {config_path}")
        return config


@dataclass(frozen=True)
class AppConfig:
    """Every setting a run needs, gathered once from file, environment and CLI."""
    api_key: str
    api_base_url: str = "https://api.openai.com/v1"
    request_timeout: float = 300.0

    whisper_model: str = "whisper-1"
    chunk_seconds: int = 600
    translate_model: str = "gpt-4o-mini"
    translate_batch_size: int = 60
    source_language: str = "ja"
    source_language_name: str = "Japanese"
    target_language: str = "zh-TW"
    target_language_name: str = "Traditional Chinese (Taiwan)"

    max_attempts: int = 5
    backoff_base_seconds: float = 1.0

    temp_dir: str = tempfile.gettempdir()
    log_dir: str = "logs"
    log_file: str = "captioner.log"
    ffmpeg_path: Optional[str] = None

    bilingual: bool = True
    burn_in: bool = True
    font_dir: Optional[str] = "./fonts"
    font_name: str = "Noto Sans CJK TC"
    font_size: Optional[int] = None
    env_font_dirs: Tuple[str, ...] = ()

    show_progress: bool = True

    def __post_init__(self):
        if not self.api_key:
            raise ConfigurationError(f"Set the {API_KEY_ENV} environment variable for API access.")
        if self.chunk_seconds <= 0:
            raise ConfigurationError(f"chunk_seconds must be positive, got {self.chunk_seconds}")
        if self.translate_batch_size <= 0:
            raise ConfigurationError(f"translate_batch_size must be positive, got {self.translate_batch_size}")
        if self.max_attempts <= 0:
            raise ConfigurationError(f"max_attempts must be positive, got {self.max_attempts}")

    @property
    def effective_font_size(self) -> int:
        return self.font_size or (30 if self.bilingual else 36)

    def with_overrides(self, **overrides: Any) -> "AppConfig":
        """Returns a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_sources(cls, config: Optional[Dict[str, Any]] = None, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """
        Builds the configuration from a loaded YAML mapping and the environment.

        The API key and base URL come from the environment only; font
        directory overrides from the environment are kept for font lookup.
        Unknown YAML keys are ignored with a warning.

        Raises:
            ConfigurationError: If the API key is missing or a value is invalid.
        """
        config = dict(config or {})
        environ = os.environ if environ is None else environ
        known = {f.name for f in fields(cls)} - {"api_key", "env_font_dirs"}

        values: Dict[str, Any] = {}
        for key, value in config.items():
            if key in known:
                values[key] = value
            else:
                logger.warning(f"Ignoring unknown configuration key: {key}")

        if environ.get(BASE_URL_ENV):
            values["api_base_url"] = environ[BASE_URL_ENV]
        env_font_dirs = tuple(environ[name] for name in FONTS_DIR_ENVS if environ.get(name))

        try:
            return cls(api_key=environ.get(API_KEY_ENV, ""), env_font_dirs=env_font_dirs, **values)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
