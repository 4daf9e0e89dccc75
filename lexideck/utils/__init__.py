"""Utility helpers package."""

from lexideck.utils.cache import FileFallbackCache, MemoryFallbackCache, build_cache_filename

__all__ = ["FileFallbackCache", "MemoryFallbackCache", "build_cache_filename"]
