from src.infrastructure.cache.redis_cache import CacheService

__all__ = ["CacheService"]
