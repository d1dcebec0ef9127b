"""
Cache of compiled per-call template compositions.
"""
import itertools
import logging
import threading
from typing import Dict, Optional, Sequence, Tuple

from jinja2 import Template

logger = logging.getLogger(__name__)

CompositionKey = Tuple[str, ...]


def composition_key(globs: Sequence[str]) -> CompositionKey:
    """
    Build the cache key for an ordered sequence of block globs.
    
    Order is significant: later globs override blocks of earlier ones, so
    the same globs in a different order form a different composition.
    Patterns are kept separate so no pattern text can make two lists collide.
    """
    return tuple(globs)


class CompositionCache:
    """
    Cache mapping glob-set keys to composed templates.
    
    Entries are dropped wholesale whenever the base template is recompiled.
    Access is serialized by an internal mutex because lookups happen while
    many renders share the manager's read lock.
    """
    
    def __init__(self, max_size: Optional[int] = None):
        """
        Initialize composition cache.
        
        Args:
            max_size: Maximum number of compositions, unbounded when None
        """
        self.cache: Dict[CompositionKey, Template] = {}
        self.max_size = max_size
        self.access_times: Dict[CompositionKey, int] = {}
        self._clock = itertools.count()
        self._lock = threading.Lock()
        
    def get(self, key: CompositionKey) -> Optional[Template]:
        """
        Get a cached composition by key.
        
        Args:
            key: Cache key
            
        Returns:
            Cached template or None if not found
        """
        with self._lock:
            template = self.cache.get(key)
            if template is not None:
                self.access_times[key] = next(self._clock)
            return template
        
    def set(self, key: CompositionKey, value: Template) -> None:
        """
        Add a composition to the cache.
        
        Args:
            key: Cache key
            value: Composed template
        """
        with self._lock:
            if self.max_size and len(self.cache) >= self.max_size and key not in self.cache:
                # Remove least recently used item
                lru_key = min(self.access_times, key=self.access_times.get)
                del self.cache[lru_key]
                del self.access_times[lru_key]
                logger.debug(f"Evicted composition '{lru_key}' from cache")
                
            self.cache[key] = value
            self.access_times[key] = next(self._clock)
        
    def invalidate(self) -> None:
        """Drop every cached composition."""
        with self._lock:
            count = len(self.cache)
            self.cache.clear()
            self.access_times.clear()
        if count:
            logger.debug(f"Invalidated {count} cached compositions")
            
    def __contains__(self, key: CompositionKey) -> bool:
        with self._lock:
            return key in self.cache
            
    def __len__(self) -> int:
        with self._lock:
            return len(self.cache)
