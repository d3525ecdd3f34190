"""In-process caches: generic TTL cache, token cache, chart pages."""

from recordcrate.application.cache.base_cache import BaseCache, InMemoryCache
from recordcrate.application.cache.token_cache import CachedToken, TokenCache

__all__ = ["BaseCache", "CachedToken", "InMemoryCache", "TokenCache"]
