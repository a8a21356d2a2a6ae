"""
Cache utilities for the confidence pool
Provides a caching decorator for read-only routes and invalidation helpers
"""

import functools

from flask import current_app, request

from confidence_pool import cache


def make_cache_key(*args, **kwargs):
    """Generate a cache key from request path, query string and arguments"""
    path = request.path
    query = "_".join(f"{k}_{v}" for k, v in sorted(request.args.items()))
    args_str = "_".join(str(arg) for arg in args)
    kwargs_str = "_".join(f"{k}_{v}" for k, v in sorted(kwargs.items()))
    return f"{path}_{query}_{args_str}_{kwargs_str}".replace("/", "_")


def cached_route(timeout=300, key_prefix="view"):
    """
    Decorator for caching route responses

    Only successful responses are stored, so a 400 for a bad query string
    never shadows a later good one.

    Args:
        timeout: Cache timeout in seconds (default 5 minutes)
        key_prefix: Prefix for cache key
    """

    def decorator(f):
        @functools.wraps(f)
        def wrapped(*args, **kwargs):
            cache_key = f"{key_prefix}_{make_cache_key(*args, **kwargs)}"

            result = cache.get(cache_key)
            if result is not None:
                current_app.logger.debug(f"Cache hit for key: {cache_key}")
                return result

            result = f(*args, **kwargs)
            if not isinstance(result, tuple):
                cache.set(cache_key, result, timeout=timeout)
                current_app.logger.debug(f"Cache set for key: {cache_key}")

            return result

        return wrapped

    return decorator


def invalidate_scoreboards():
    """
    Drop cached scoreboards after picks or results change.

    SimpleCache cannot delete by pattern, so the whole cache is cleared;
    only scoreboards are cached, which keeps that cheap.
    """
    try:
        cache.clear()
        current_app.logger.debug("Scoreboard cache cleared")
    except Exception as e:
        current_app.logger.error(f"Failed to clear cache: {e}")
