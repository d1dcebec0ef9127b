"""
Template Composer: compose a base template with block files and cache the result.
"""
from .config import CompileMode, ComposerConfiguration, get_compile_mode, load_config, set_compile_mode
from .error import (
    ConfigurationError,
    FunctionRegistrationError,
    GlobCompositionError,
    RenderError,
    SourceReadError,
    TemplateComposerError,
)
from .templates import ComposedTemplate, parse

__version__ = "0.1.0"

__all__ = [
    "ComposedTemplate",
    "parse",
    "CompileMode",
    "ComposerConfiguration",
    "set_compile_mode",
    "get_compile_mode",
    "load_config",
    "TemplateComposerError",
    "ConfigurationError",
    "SourceReadError",
    "FunctionRegistrationError",
    "GlobCompositionError",
    "RenderError",
]
