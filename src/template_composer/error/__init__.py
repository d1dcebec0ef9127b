"""
Error handling utilities and exceptions.
"""
from .exceptions import (
    ErrorContext,
    TemplateComposerError,
    ConfigurationError,
    SourceReadError,
    FunctionRegistrationError,
    GlobCompositionError,
    RenderError
)

__all__ = [
    'ErrorContext',
    'TemplateComposerError',
    'ConfigurationError',
    'SourceReadError',
    'FunctionRegistrationError',
    'GlobCompositionError',
    'RenderError'
]
