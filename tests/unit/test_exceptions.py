"""
Unit tests for the exception hierarchy.
"""
from template_composer.error import (
    ErrorContext,
    FunctionRegistrationError,
    GlobCompositionError,
    RenderError,
    SourceReadError,
    TemplateComposerError,
)


def test_str_includes_context():
    error = SourceReadError("cannot read", context=ErrorContext(component="loader", operation="load"))

    assert str(error) == "cannot read [in loader.load]"


def test_str_without_context():
    error = RenderError("failed")

    assert str(error) == "failed"
    assert error.details == {}


def test_hierarchy():
    assert issubclass(GlobCompositionError, SourceReadError)
    for error_class in (SourceReadError, FunctionRegistrationError, RenderError):
        assert issubclass(error_class, TemplateComposerError)
