"""
Composed template manager with block merging and compiled-template caching.
"""
import io
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable, Dict, IO, List, Optional, Sequence, Tuple, Union

from jinja2 import Environment, Template
from pydantic import BaseModel

from ..config.configuration import CompileMode, ComposerConfiguration, ensure_composer_config
from ..error.exceptions import (
    ErrorContext,
    GlobCompositionError,
    RenderError,
)
from .cache import CompositionCache, composition_key
from .loader import bind_functions, clone_template, create_environment, load_template_file, merge_glob
from .locking import ReaderWriterLock

logger = logging.getLogger(__name__)


class ComposedTemplate:
    """
    A base template file plus block files and functions, compiled on demand.
    
    Registration calls only record intent and mark the template dirty; the
    next render recompiles. In production mode the compiled base and every
    per-call composition are cached until the next recompile. In development
    mode every render recompiles from the files on disk.
    
    All state is guarded by one readers-writer lock: registration and
    compilation are exclusive, rendering is shared.
    """
    
    def __init__(self, base_path: Union[str, Path], config: Union[ComposerConfiguration, Dict[str, Any], None] = None):
        """
        Initialize a composed template. No files are read until first use.
        
        Args:
            base_path: Path of the base template file
            config: Optional configuration (model or dict)
        """
        self._base_path = str(base_path)
        self.config = ensure_composer_config(config)
        self._functions: Dict[str, Callable[..., Any]] = {}
        self._blocks: List[str] = []
        self._dirty = False
        self._env: Optional[Environment] = None
        self._compiled: Optional[Template] = None
        self._cache = CompositionCache(max_size=self.config.max_cached_compositions)
        self._lock = ReaderWriterLock()
        
    def __repr__(self) -> str:
        return f"ComposedTemplate({self._base_path!r}, blocks={self._blocks!r})"
        
    @property
    def base_path(self) -> str:
        return self._base_path
        
    @property
    def always_blocks(self) -> Tuple[str, ...]:
        with self._lock.read_lock():
            return tuple(self._blocks)
            
    @property
    def functions(self) -> Dict[str, Callable[..., Any]]:
        with self._lock.read_lock():
            return dict(self._functions)
            
    @property
    def dirty(self) -> bool:
        """True when the next render must recompile the base template."""
        return self._dirty or self._compiled is None
        
    @property
    def compile_mode(self) -> CompileMode:
        return self.config.effective_compile_mode()
        
    @property
    def cached_compositions(self) -> int:
        return len(self._cache)
        
    def register_blocks(self, *globs: str) -> "ComposedTemplate":
        """
        Add block file globs merged into every render, in order.
        
        Args:
            globs: Glob patterns of block files
            
        Returns:
            self, for chaining
        """
        with self._lock.write_lock():
            self._blocks.extend(globs)
            self._dirty = True
        return self
        
    def register_function(self, name: str, func: Callable[..., Any]) -> "ComposedTemplate":
        """
        Register a function callable from templates, replacing any previous one.
        
        The function is validated when the template is next compiled.
        
        Args:
            name: Name used in templates
            func: Callable to expose
            
        Returns:
            self, for chaining
        """
        with self._lock.write_lock():
            self._functions[name] = func
            self._dirty = True
        return self
        
    def invalidate(self) -> None:
        """Force a recompile on the next render."""
        with self._lock.write_lock():
            self._dirty = True
            
    def compile(self) -> None:
        """
        Recompile the base template with all registered functions and blocks.
        
        On failure the previously compiled base is kept, the template stays
        dirty and the error is raised.
        
        Raises:
            SourceReadError: If the base file or a block file cannot be loaded
            FunctionRegistrationError: If a registered function is invalid
        """
        with self._lock.write_lock():
            logger.info(f"Compiling {self._base_path} {self._blocks}", extra={"template": self._base_path})
            
            try:
                env = create_environment(self.config, os.path.dirname(os.path.abspath(self._base_path)))
                # Filters are resolved while parsing, so functions go in first
                bind_functions(env, self._functions)
                template = load_template_file(env, self._base_path, self.config.encoding)
                for pattern in self._blocks:
                    merge_glob(template, env, pattern, self.config.encoding)
            except Exception as e:
                self._dirty = True
                logger.error(f"Failed to compile {self._base_path}: {e}", extra={"template": self._base_path})
                raise
                
            self._env = env
            self._compiled = template
            self._dirty = False
            self._cache.invalidate()
            
    def _resolve_composition(self, globs: Sequence[str], mode: CompileMode) -> Template:
        """Return the base merged with per-call globs, cached by glob order."""
        key = composition_key(globs)
        if mode == CompileMode.PRODUCTION:
            cached = self._cache.get(key)
            if cached is not None:
                return cached
                
        logger.debug(f"Compiling {list(globs)}", extra={"template": self._base_path})
        template = clone_template(self._compiled)
        for pattern in globs:
            merge_glob(template, self._env, pattern, self.config.encoding, error_class=GlobCompositionError)
            
        self._cache.set(key, template)
        return template
        
    def execute(self, output: IO, context: Any = None, *globs: str) -> None:
        """
        Render the template into a stream.
        
        Args:
            output: Text stream, or binary stream receiving encoded output
            context: Template variables (mapping, pydantic model or object)
            globs: Extra block globs layered on top for this call only
            
        Raises:
            SourceReadError: If compilation fails
            FunctionRegistrationError: If a registered function is invalid
            GlobCompositionError: If a per-call glob fails to match or parse
            RenderError: If rendering or writing the output fails
        """
        mode = self.compile_mode
        if self.dirty or mode == CompileMode.DEVELOPMENT:
            self.compile()
            
        # Shared lock so a concurrent compile is never observed half done
        with self._lock.read_lock():
            if globs:
                template = self._resolve_composition(globs, mode)
            else:
                template = self._compiled
                
            _stream(template, output, context, self.config.encoding)
            
    def render(self, context: Any = None, *globs: str) -> str:
        """Render the template and return the output as a string."""
        buffer = io.StringIO()
        self.execute(buffer, context, *globs)
        return buffer.getvalue()


# Values rendered as a whole rather than by attribute
_SCALAR_TYPES = (str, bytes, bytearray, int, float, complex, bool, list, tuple, set, frozenset)


def _template_vars(context: Any) -> Dict[str, Any]:
    """
    Turn an execute context into template variables.
    
    Mappings are used as they are. Other objects expose every public
    attribute, properties included, and are also available whole as `ctx`.
    Scalars, collections and classes are only available as `ctx`.
    """
    if context is None:
        return {}
    if isinstance(context, Mapping):
        return dict(context)
    if hasattr(context, "_asdict") and isinstance(context, tuple):
        return {"ctx": context, **context._asdict()}
    if isinstance(context, type) or isinstance(context, _SCALAR_TYPES):
        return {"ctx": context}
        
    # Model plumbing such as model_dump stays hidden
    hidden = set(dir(BaseModel)) if isinstance(context, BaseModel) else set()
    variables: Dict[str, Any] = {"ctx": context}
    for name in dir(context):
        if name.startswith("_") or name in hidden:
            continue
        try:
            variables[name] = getattr(context, name)
        except AttributeError:
            # Unset slot or descriptor without a value
            continue
    return variables


def _stream(template: Template, output: IO, context: Any, encoding: str) -> None:
    """Write rendered chunks to output as they are produced."""
    binary = isinstance(output, (io.RawIOBase, io.BufferedIOBase))
    try:
        for chunk in template.generate(_template_vars(context)):
            output.write(chunk.encode(encoding) if binary else chunk)
    except Exception as e:
        logger.error(f"Error rendering template {template.name}: {e}", extra={"template": template.name})
        raise RenderError(
            f"Failed to render template {template.name}: {e}",
            context=ErrorContext(component="ComposedTemplate", operation="execute"),
            details={"template": template.name}
        ) from e


def parse(base_path: Union[str, Path], config: Union[ComposerConfiguration, Dict[str, Any], None] = None) -> ComposedTemplate:
    """
    Create a composed template for a base file.
    
    Args:
        base_path: Path of the base template file
        config: Optional configuration (model or dict)
        
    Returns:
        New ComposedTemplate; nothing is read until first use
    """
    return ComposedTemplate(base_path, config)
