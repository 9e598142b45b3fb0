from .redis_store import RedisStoreAdapter

__all__ = ["RedisStoreAdapter"]
