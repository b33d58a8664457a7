"""
Cache decorators for easy function result caching.
"""
import hashlib
import json
from functools import wraps
from typing import Callable, Any
from campus_events.cache import redis_client
from campus_events.core.logging import logger


def cached(key_prefix: str, expire: int = 300):
    """
    Decorator to cache function results with configurable TTL.

    Args:
        key_prefix: Prefix for the cache key
        expire: Expiration time in seconds (default: 300 = 5 minutes)

    Usage:
        @cached('events:list', expire=300)
        async def list_events(db):
            return events
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            cache = redis_client.cache
            cache_key = f"{key_prefix}:{_generate_key_from_args(args, kwargs)}"

            cached_value = await cache.get(cache_key)
            if cached_value is not None:
                logger.debug(f"Cache hit for key: {cache_key}")
                return cached_value

            logger.debug(f"Cache miss for key: {cache_key}")
            result = await func(*args, **kwargs)

            if result is not None:
                await cache.set(cache_key, result, expire)

            return result
        return wrapper
    return decorator


def _generate_key_from_args(args: tuple, kwargs: dict) -> str:
    """
    Generate a unique cache key from function arguments.

    Args:
        args: Positional arguments
        kwargs: Keyword arguments

    Returns:
        MD5 hash of the arguments
    """
    # Skip SQLAlchemy session objects
    filtered_args = [arg for arg in args if 'Session' not in str(type(arg))]

    key_data = {
        'args': [str(arg) for arg in filtered_args],
        'kwargs': {k: str(v) for k, v in kwargs.items() if 'Session' not in str(type(v))}
    }
    key_string = json.dumps(key_data, sort_keys=True)

    return hashlib.md5(key_string.encode()).hexdigest()
