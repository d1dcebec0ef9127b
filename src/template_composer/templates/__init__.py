"""
Composed template system with block merging and compiled-template caching.
"""

from .manager import ComposedTemplate, parse
from .cache import CompositionCache, composition_key
from .locking import ReaderWriterLock

__all__ = [
    'ComposedTemplate',
    'parse',
    'CompositionCache',
    'composition_key',
    'ReaderWriterLock',
]
