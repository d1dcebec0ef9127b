"""
Configuration management for template composer with validation.
"""
import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from dotenv import load_dotenv
from jinja2 import select_autoescape
from pydantic import BaseModel, Field, field_validator, model_validator

from ..error.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "TEMPLATE_COMPOSER_"


class CompileMode(str, Enum):
    """Whether compiled templates are cached between renders."""
    PRODUCTION = "production"
    DEVELOPMENT = "development"

    @classmethod
    def from_value(cls, value: Union[str, "CompileMode"]) -> "CompileMode":
        """Convert a mode name (any case) or member into a CompileMode."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        valid = [mode.value for mode in cls]
        raise ValueError(f"Invalid compile mode '{value}'. Must be one of: {valid}")


# Process-wide default, read by every manager without an explicit mode
_compile_mode: CompileMode = CompileMode.PRODUCTION


def set_compile_mode(mode: Union[str, CompileMode]) -> CompileMode:
    """
    Set the process-wide default compile mode.
    
    Intended to be called once at startup, before templates are rendered
    concurrently. Managers configured with an explicit mode ignore it.
    
    Args:
        mode: CompileMode member or its name
        
    Returns:
        The mode now in effect
    """
    global _compile_mode
    _compile_mode = CompileMode.from_value(mode)
    logger.info(f"Template compile mode set to {_compile_mode.value}")
    return _compile_mode


def get_compile_mode() -> CompileMode:
    """Return the process-wide default compile mode."""
    return _compile_mode


class ComposerConfiguration(BaseModel):
    """Configuration for template composition and rendering."""
    
    # None defers to the process-wide default
    compile_mode: Optional[CompileMode] = Field(default=None, description="Compile mode override")
    
    # Delimiters, chosen so literal Jinja-style markers in content pass through
    block_start_string: str = "[%"
    block_end_string: str = "%]"
    variable_start_string: str = "[["
    variable_end_string: str = "]]"
    comment_start_string: str = "[#"
    comment_end_string: str = "#]"
    
    # Rendering settings
    encoding: str = Field(default="utf-8", description="Encoding for template files and binary output")
    # True or False for every template, or the file extensions escaped as HTML
    autoescape: Union[bool, List[str]] = Field(default_factory=lambda: ["html", "xml"])
    strict_undefined: bool = Field(default=True, description="Raise on undefined template variables")
    trim_blocks: bool = False
    lstrip_blocks: bool = False
    keep_trailing_newline: bool = True
    
    # Cache settings
    max_cached_compositions: Optional[int] = Field(default=None, description="Per-call cache size limit", ge=1)
    
    # Logging settings
    log_level: str = "INFO"
    log_file: Optional[str] = None
    json_logging: bool = False

    @field_validator("compile_mode", mode="before")
    @classmethod
    def validate_compile_mode(cls, value: Any) -> Optional[CompileMode]:
        """Accept mode names in any case."""
        if value is None or value == "":
            return None
        return CompileMode.from_value(value)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        value_upper = value.upper()
        if value_upper not in valid_levels:
            raise ValueError(f"Invalid log level '{value}'. Must be one of: {valid_levels}")
        return value_upper

    @field_validator(
        "block_start_string", "block_end_string",
        "variable_start_string", "variable_end_string",
        "comment_start_string", "comment_end_string",
    )
    @classmethod
    def validate_delimiter(cls, value: str) -> str:
        """Delimiters must be non-empty."""
        if not value or not value.strip():
            raise ValueError("Template delimiters must not be empty")
        return value

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, value: str) -> str:
        """Validate that the encoding is known."""
        try:
            "".encode(value)
        except LookupError:
            raise ValueError(f"Unknown encoding '{value}'")
        return value

    @model_validator(mode="after")
    def validate_distinct_delimiters(self) -> 'ComposerConfiguration':
        """Start delimiters must be pairwise distinct for the lexer."""
        starts = [
            self.block_start_string,
            self.variable_start_string,
            self.comment_start_string,
        ]
        if len(set(starts)) != len(starts):
            raise ValueError(f"Block, variable and comment start delimiters must differ: {starts}")
        return self

    @property
    def environment_options(self) -> Dict[str, Any]:
        """Keyword arguments for a Jinja2 Environment."""
        return {
            "block_start_string": self.block_start_string,
            "block_end_string": self.block_end_string,
            "variable_start_string": self.variable_start_string,
            "variable_end_string": self.variable_end_string,
            "comment_start_string": self.comment_start_string,
            "comment_end_string": self.comment_end_string,
            "autoescape": select_autoescape(self.autoescape) if isinstance(self.autoescape, list) else self.autoescape,
            "trim_blocks": self.trim_blocks,
            "lstrip_blocks": self.lstrip_blocks,
            "keep_trailing_newline": self.keep_trailing_newline,
        }

    def effective_compile_mode(self) -> CompileMode:
        """Return the configured mode, falling back to the process-wide default."""
        return self.compile_mode or get_compile_mode()

    class Config:
        """Pydantic configuration."""
        validate_assignment = True  # Validate when attributes are assigned


def ensure_composer_config(config: Union[ComposerConfiguration, Dict[str, Any], None] = None) -> ComposerConfiguration:
    """Ensure a valid composer configuration."""
    if isinstance(config, ComposerConfiguration):
        return config
        
    if config is None:
        config = {}
        
    if not isinstance(config, dict):
        raise ConfigurationError(f"Invalid configuration type: {type(config).__name__}")
        
    try:
        return ComposerConfiguration(**config)
    except Exception as e:
        raise ConfigurationError(f"Invalid configuration: {str(e)}") from e


def load_config_file(file_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load configuration from a file (YAML or JSON).
    
    Args:
        file_path: Path to the configuration file
        
    Returns:
        Dictionary with configuration
        
    Raises:
        ConfigurationError: If the file is not found or cannot be parsed
    """
    path = Path(file_path).expanduser()
    
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {file_path}")
    
    if path.suffix not in (".yaml", ".yml", ".json"):
        raise ConfigurationError(f"Unsupported config file format: {file_path}")
    
    try:
        content = path.read_text(encoding='utf-8')
        
        if path.suffix in (".yaml", ".yml"):
            loaded_config = yaml.safe_load(content) or {}
        else:
            loaded_config = json.loads(content) or {}
        
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML format in {file_path}: {str(e)}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON format in {file_path}: {str(e)}") from e
    except OSError as e:
        raise ConfigurationError(f"Error reading config file {file_path}: {str(e)}") from e
    
    if not isinstance(loaded_config, dict):
        raise ConfigurationError(f"Configuration in {file_path} must be a mapping")
        
    logger.debug(f"Loaded configuration from {file_path}")
    return loaded_config


def load_configuration_from_env(prefix: str = ENV_PREFIX, dotenv_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Collect configuration values from environment variables.
    
    A `.env` file is loaded first without overriding variables that are
    already set.
    
    Args:
        prefix: Prefix for environment variables to consider
        dotenv_path: Optional explicit .env file location
        
    Returns:
        Dictionary of field name to raw string value
    """
    load_dotenv(dotenv_path=dotenv_path, override=False)
    
    fields = set(ComposerConfiguration.model_fields)
    config: Dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue
        name = key[len(prefix):].lower()
        if name in fields:
            config[name] = value
        else:
            logger.debug(f"Ignoring unknown configuration variable {key}")
    return config


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two configuration dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if isinstance(value, dict) and key in result and isinstance(result[key], dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    env_prefix: str = ENV_PREFIX,
    defaults: Optional[Dict[str, Any]] = None,
) -> ComposerConfiguration:
    """
    Load configuration from defaults, an optional file and the environment.
    
    Later sources take precedence: defaults, then file, then environment.
    
    Args:
        config_path: Path to a YAML or JSON configuration file
        env_prefix: Prefix for environment variables to consider
        defaults: Default configuration values
        
    Returns:
        Validated ComposerConfiguration
    """
    config = dict(defaults or {})
    
    if config_path:
        logger.info(f"Loading configuration from {config_path}")
        config = merge_configs(config, load_config_file(config_path))
        
    config = merge_configs(config, load_configuration_from_env(env_prefix))
    return ensure_composer_config(config)
