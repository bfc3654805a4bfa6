"""
Redis cache for the menu list and single orders.

Every method degrades to a no-op when Redis is disabled or unreachable, so the
API keeps working from the database alone.
"""
import json
import logging
import time
from typing import Any, Dict, List, Optional

import redis

from config import (
    MENU_CACHE_TTL,
    ORDER_CACHE_TTL,
    REDIS_ENABLED,
    REDIS_HOST,
    REDIS_PORT,
    REDIS_RETRY_INTERVAL,
)

logger = logging.getLogger(__name__)

MENU_KEY = "menu:active"
ORDER_KEY = "order:{}"


class RedisClient:
    """Lazily connected Redis wrapper"""

    def __init__(
        self,
        host: str = REDIS_HOST,
        port: int = REDIS_PORT,
        enabled: bool = REDIS_ENABLED,
        retry_interval: float = REDIS_RETRY_INTERVAL,
    ):
        self.redis_host = host
        self.redis_port = port
        self.enabled = enabled
        self.retry_interval = retry_interval
        self.retry_at = 0.0
        self.client = None

    def connect(self):
        if not self.enabled:
            return None
        # after a failure stay offline until retry_at
        if self.client is None and time.monotonic() >= self.retry_at:
            try:
                client = redis.Redis(
                    host=self.redis_host,
                    port=self.redis_port,
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_timeout=5
                )
                client.ping()
                self.client = client
            except redis.RedisError as e:
                logger.warning("Could not connect to Redis at %s:%s: %s", self.redis_host, self.redis_port, e)
                self.mark_down()
        return self.client

    def mark_down(self):
        self.client = None
        self.retry_at = time.monotonic() + self.retry_interval

    def is_available(self) -> bool:
        client = self.connect()
        if client is None:
            return False
        try:
            client.ping()
            return True
        except redis.RedisError as e:
            logger.warning("Redis stopped responding: %s", e)
            self.mark_down()
            return False

    # ========== Menu ==========

    def cache_menu(self, items: List[Dict], ttl: int = MENU_CACHE_TTL) -> bool:
        if not self.is_available():
            return False
        try:
            self.client.setex(MENU_KEY, ttl, json.dumps(items, default=str))
            return True
        except redis.RedisError as e:
            logger.warning("Failed to cache menu: %s", e)
            return False

    def get_cached_menu(self) -> Optional[List[Dict]]:
        if not self.is_available():
            return None
        try:
            cached = self.client.get(MENU_KEY)
            if cached:
                return json.loads(cached)
        except redis.RedisError as e:
            logger.warning("Failed to read menu from cache: %s", e)
        return None

    def invalidate_menu_cache(self) -> bool:
        """Called on every menu create/update/delete"""
        if not self.is_available():
            return False
        try:
            self.client.delete(MENU_KEY)
            return True
        except redis.RedisError as e:
            logger.warning("Failed to invalidate menu cache: %s", e)
            return False

    # ========== Orders ==========

    def cache_order(self, order_id: int, order_data: Dict, ttl: int = ORDER_CACHE_TTL) -> bool:
        if not self.is_available():
            return False
        try:
            self.client.setex(ORDER_KEY.format(order_id), ttl, json.dumps(order_data, default=str))
            return True
        except redis.RedisError as e:
            logger.warning("Failed to cache order %s: %s", order_id, e)
            return False

    def get_cached_order(self, order_id: int) -> Optional[Dict]:
        if not self.is_available():
            return None
        try:
            cached = self.client.get(ORDER_KEY.format(order_id))
            if cached:
                return json.loads(cached)
        except redis.RedisError as e:
            logger.warning("Failed to read order %s from cache: %s", order_id, e)
        return None

    def invalidate_order_cache(self, order_id: int) -> bool:
        if not self.is_available():
            return False
        try:
            self.client.delete(ORDER_KEY.format(order_id))
            return True
        except redis.RedisError as e:
            logger.warning("Failed to invalidate order %s cache: %s", order_id, e)
            return False

    def invalidate_all_orders_cache(self) -> bool:
        """Cached orders embed menu data, so menu edits drop all of them"""
        if not self.is_available():
            return False
        try:
            keys = self.client.keys(ORDER_KEY.format("*"))
            if keys:
                self.client.delete(*keys)
            return True
        except redis.RedisError as e:
            logger.warning("Failed to invalidate order caches: %s", e)
            return False

    def get_cache_info(self) -> Dict[str, Any]:
        if not self.enabled:
            return {"status": "disabled"}
        if not self.is_available():
            return {"status": "unavailable"}
        try:
            return {
                "status": "available",
                "menu_cached": bool(self.client.exists(MENU_KEY)),
                "cached_orders_count": len(self.client.keys(ORDER_KEY.format("*"))),
            }
        except redis.RedisError as e:
            return {"status": "error", "error": str(e)}


redis_client = RedisClient()
