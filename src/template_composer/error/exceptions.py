"""
Centralized exception definitions for template composer.
"""

class ErrorContext:
    """Context information for errors."""
    
    def __init__(self, component: str = None, operation: str = None, **kwargs):
        self.component = component
        self.operation = operation
        self.details = kwargs

class TemplateComposerError(Exception):
    """Base class for all template composer errors."""
    
    def __init__(self, message: str, context: ErrorContext = None, details: dict = None):
        super().__init__(message)
        self.context = context or ErrorContext()
        self.details = details or {}
        
    def __str__(self):
        base_str = super().__str__()
        if self.context.component and self.context.operation:
            return f"{base_str} [in {self.context.component}.{self.context.operation}]"
        return base_str

class ConfigurationError(TemplateComposerError):
    """Error in configuration."""
    pass

class SourceReadError(TemplateComposerError):
    """Base template or block file could not be found, read or parsed."""
    pass

class FunctionRegistrationError(TemplateComposerError):
    """A registered function cannot be bound into the template environment."""
    pass

class GlobCompositionError(SourceReadError):
    """A per-call block glob failed to match or parse."""
    pass

class RenderError(TemplateComposerError):
    """Error while rendering a compiled template or writing its output."""
    pass
