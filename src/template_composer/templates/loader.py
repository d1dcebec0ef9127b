"""
Loading template files into Jinja2 and merging block definitions.
"""
import glob
import keyword
import logging
import os
from collections import ChainMap
from pathlib import Path
from typing import Any, Callable, Dict, List, Type, Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template, TemplateSyntaxError, Undefined

from ..config.configuration import ComposerConfiguration
from ..error.exceptions import ErrorContext, FunctionRegistrationError, SourceReadError

logger = logging.getLogger(__name__)


def create_environment(config: ComposerConfiguration, search_path: Union[str, Path]) -> Environment:
    """
    Create a Jinja2 environment for one compilation.
    
    Args:
        config: Composer configuration supplying delimiters and render options
        search_path: Directory used to resolve include/import/extends names
        
    Returns:
        Configured Jinja2 environment
    """
    return Environment(
        loader=FileSystemLoader(str(search_path), encoding=config.encoding),
        undefined=StrictUndefined if config.strict_undefined else Undefined,
        **config.environment_options
    )


def load_template_file(
    env: Environment,
    path: Union[str, Path],
    encoding: str = "utf-8",
    error_class: Type[SourceReadError] = SourceReadError
) -> Template:
    """
    Read and compile a single template file.
    
    Args:
        env: Environment to compile in
        path: File to load
        encoding: Source encoding
        error_class: Exception raised on failure
        
    Returns:
        Compiled template named after the file's base name
        
    Raises:
        SourceReadError: If the file cannot be read or has a syntax error
    """
    path = Path(path)
    context = ErrorContext(component="loader", operation="load_template_file", path=str(path))
    
    try:
        source = path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as e:
        raise error_class(f"Cannot read template {path}: {e}", context=context, details={"path": str(path)}) from e
        
    try:
        code = env.compile(source, name=path.name, filename=str(path))
    except TemplateSyntaxError as e:
        raise error_class(
            f"Syntax error in template {path} at line {e.lineno}: {e.message}",
            context=context,
            details={"path": str(path), "line": e.lineno}
        ) from e
        
    return env.template_class.from_code(env, code, env.make_globals(None))


def expand_glob(pattern: str, error_class: Type[SourceReadError] = SourceReadError) -> List[str]:
    """
    Expand a glob pattern into the files it matches, in lexical order.
    
    Raises:
        SourceReadError: If the pattern matches no files
    """
    matches = sorted(path for path in glob.glob(pattern) if os.path.isfile(path))
    if not matches:
        raise error_class(
            f"Pattern matches no files: {pattern}",
            context=ErrorContext(component="loader", operation="expand_glob"),
            details={"pattern": pattern}
        )
    return matches


def _skip_block(context):
    return iter(())


def top_level_exports(
    template: Template,
    error_class: Type[SourceReadError] = SourceReadError
) -> Dict[str, Any]:
    """
    Evaluate a block file's top-level macros, sets and imports.
    
    The file's own blocks are not rendered, so block bodies may refer to
    render-time variables. Top-level statements only see globals.
    
    Returns:
        Names the file exports
    """
    context = template.new_context()
    context.blocks = {name: [_skip_block] for name in context.blocks}
    try:
        for _ in template.root_render_func(context):
            pass
    except Exception as e:
        raise error_class(
            f"Cannot evaluate top-level definitions in {template.filename}: {e}",
            context=ErrorContext(component="loader", operation="top_level_exports"),
            details={"path": template.filename}
        ) from e
    return context.get_exported()


def merge_glob(
    target: Template,
    env: Environment,
    pattern: str,
    encoding: str = "utf-8",
    error_class: Type[SourceReadError] = SourceReadError
) -> List[str]:
    """
    Merge the definitions of every file matching a pattern into a template.
    
    Files are merged in lexical order; a block defined again replaces the
    earlier definition. Top-level macros, sets and imports of the files
    become globals of the target. Nothing is merged unless every matching
    file parses and evaluates.
    
    Args:
        target: Template whose blocks are replaced
        env: Environment the target was compiled in
        pattern: Glob pattern of block files
        encoding: Source encoding
        error_class: Exception raised on failure
        
    Returns:
        The files that were merged
    """
    paths = expand_glob(pattern, error_class)
    blocks = {}
    exports: Dict[str, Any] = {}
    for path in paths:
        template = load_template_file(env, path, encoding, error_class)
        exports.update(top_level_exports(template, error_class))
        blocks.update(template.blocks)
        
    target.blocks.update(blocks)
    if exports:
        # A new layer, so clones never write into the globals they share
        target.globals = ChainMap(exports, target.globals)
    logger.debug(f"Merged blocks {sorted(blocks)} and names {sorted(exports)} from {pattern}")
    return paths


def clone_template(template: Template) -> Template:
    """
    Copy a compiled template so its blocks can be replaced independently.
    
    Compiled code and globals are shared; the block table is copied.
    """
    clone = object.__new__(type(template))
    clone.__dict__.update(template.__dict__)
    clone.blocks = dict(template.blocks)
    clone._module = None
    return clone


def bind_functions(env: Environment, functions: Dict[str, Callable[..., Any]]) -> None:
    """
    Make functions callable from templates, both as globals and as filters.
    
    Raises:
        FunctionRegistrationError: If a name is not a valid identifier or a
            value is not callable
    """
    context = ErrorContext(component="loader", operation="bind_functions")
    for name, func in functions.items():
        if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
            raise FunctionRegistrationError(
                f"Function name {name!r} is not a valid identifier",
                context=context,
                details={"name": name}
            )
        if not callable(func):
            raise FunctionRegistrationError(
                f"Value for function {name!r} is not callable: {type(func).__name__}",
                context=context,
                details={"name": name}
            )
            
    for name, func in functions.items():
        env.globals[name] = func
        env.filters[name] = func
