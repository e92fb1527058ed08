"""
Redis-backed cache for read-mostly lookups such as product snapshots.

Keys look like ``{prefix}:{namespace}:{key}``. Values are stored as JSON;
Decimals and dates come back with their original types. When Redis is
disabled or unreachable every read is a miss and writes are dropped.
"""

import json
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

import redis
from flask import Flask, current_app
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

_DECIMAL_TAG = '__decimal__'
_DATE_TAG = '__date__'


def _encode(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return {_DECIMAL_TAG: str(obj)}
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, date):
        return {_DATE_TAG: obj.isoformat()}
    raise TypeError(f"Cannot cache a value of type {type(obj).__name__}")


def _decode(dct: Dict[str, Any]) -> Any:
    if _DECIMAL_TAG in dct:
        return Decimal(dct[_DECIMAL_TAG])
    if _DATE_TAG in dct:
        return date.fromisoformat(dct[_DATE_TAG])
    return dct


class CacheService:
    """Namespaced JSON cache with graceful degradation."""

    def __init__(self, app: Optional[Flask] = None):
        self.client: Optional[redis.Redis] = None
        self.prefix = 'orders'
        self.default_ttl = 60

        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Connect to Redis unless caching is disabled in the config."""
        self.prefix = app.config.get('CACHE_KEY_PREFIX', 'orders')
        self.default_ttl = app.config.get('CACHE_DEFAULT_TTL', 60)

        if not app.config.get('CACHE_ENABLED', True):
            logger.info("[CACHE] Disabled via config")
            return

        redis_url = app.config.get('REDIS_URL', 'redis://redis:6379/0')
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=3,
            socket_timeout=3,
            retry_on_timeout=True,
            health_check_interval=30
        )
        try:
            client.ping()
        except RedisError as e:
            logger.warning(f"[CACHE] Redis unreachable at {redis_url}: {e}. Caching disabled.")
            return

        self.client = client
        logger.info(f"[CACHE] Connected to {redis_url}")

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def key(self, namespace: str, key: str) -> str:
        return f"{self.prefix}:{namespace}:{key}"

    def get(self, namespace: str, key: str) -> Optional[Any]:
        """Cached value, or None on a miss."""
        if not self.enabled:
            return None
        try:
            raw = self.client.get(self.key(namespace, key))
        except RedisError as e:
            logger.warning(f"[CACHE] Read failed for {namespace}:{key}: {e}")
            return None
        if raw is None:
            return None

        try:
            return json.loads(raw, object_hook=_decode)
        except ValueError:
            logger.warning(f"[CACHE] Dropping unreadable entry {namespace}:{key}")
            self.delete(namespace, key)
            return None

    def set(self, namespace: str, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store a JSON-serialisable value; returns False when nothing was written."""
        if not self.enabled:
            return False
        try:
            payload = json.dumps(value, default=_encode)
        except TypeError as e:
            logger.warning(f"[CACHE] Not caching {namespace}:{key}: {e}")
            return False
        try:
            self.client.setex(self.key(namespace, key), ttl or self.default_ttl, payload)
        except RedisError as e:
            logger.warning(f"[CACHE] Write failed for {namespace}:{key}: {e}")
            return False
        return True

    def delete(self, namespace: str, key: str) -> bool:
        if not self.enabled:
            return False
        try:
            self.client.delete(self.key(namespace, key))
        except RedisError as e:
            logger.warning(f"[CACHE] Delete failed for {namespace}:{key}: {e}")
            return False
        return True

    def memoize(
        self,
        namespace: str,
        key: str,
        loader: Callable[[], Any],
        ttl: Optional[int] = None
    ) -> Any:
        """Cache-aside read: return the cached value or load and store it."""
        cached = self.get(namespace, key)
        if cached is not None:
            return cached
        value = loader()
        if value is not None:
            self.set(namespace, key, value, ttl)
        return value


def init_cache(app: Flask) -> CacheService:
    """Create the cache for this app and register it as an extension."""
    cache = CacheService(app)
    app.extensions['cache'] = cache
    return cache


def get_cache() -> CacheService:
    """The cache of the current app."""
    cache = current_app.extensions.get('cache')
    if cache is None:
        raise RuntimeError("Cache not initialized.")
    return cache
