"""
Best-effort key/value persistence for client-scoped state (carts, favorites).

Values are JSON-serialized. Read failures fall back to the caller's default
and write failures are logged and swallowed: this state is a convenience
cache, never the record of truth.
"""
import json
import logging
from typing import Any

import redis

from core.config import settings

logger = logging.getLogger(__name__)


class ClientStorage:
    def __init__(self, client):
        self.client = client

    def load(self, key: str, default: Any = None) -> Any:
        try:
            raw = self.client.get(key)
        except redis.RedisError as exc:
            logger.warning("Failed to read %s: %s", key, exc)
            return default
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding unreadable value stored under %s", key)
            return default

    def save(self, key: str, value: Any) -> None:
        try:
            self.client.set(key, json.dumps(value))
        except (redis.RedisError, TypeError, ValueError) as exc:
            logger.error("Failed to save %s: %s", key, exc)

    def delete(self, key: str) -> None:
        try:
            self.client.delete(key)
        except redis.RedisError as exc:
            logger.error("Failed to delete %s: %s", key, exc)


def get_client_storage() -> ClientStorage:
    return ClientStorage(redis.from_url(settings.REDIS_URL, decode_responses=True))
