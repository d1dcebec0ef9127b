"""
Configuration components for template composer.
"""
from .configuration import (
    CompileMode,
    ComposerConfiguration,
    set_compile_mode,
    get_compile_mode,
    ensure_composer_config,
    load_config_file,
    load_configuration_from_env,
    load_config,
    merge_configs,
)

__all__ = [
    "CompileMode",
    "ComposerConfiguration",
    "set_compile_mode",
    "get_compile_mode",
    "ensure_composer_config",
    "load_config_file",
    "load_configuration_from_env",
    "load_config",
    "merge_configs",
]
