from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog
from redis.asyncio import Redis

from .exceptions import DraftCorrupted

DRAFT_STORAGE_KEY = "onboarding-storage"
DRAFT_VERSION = 0


class KeyValueStore(Protocol):
    """Byte-oriented key-value store holding persisted drafts."""

    async def get(self, key: str) -> bytes | None:
        ...

    async def set(self, key: str, value: bytes) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


@dataclass
class InMemoryKeyValueStore:
    items: dict[str, bytes] = field(default_factory=dict)

    async def get(self, key: str) -> bytes | None:
        return self.items.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self.items[key] = value

    async def delete(self, key: str) -> None:
        self.items.pop(key, None)


class RedisKeyValueStore:
    def __init__(self, redis: Redis, *, ttl_seconds: int | None = None) -> None:
        self._redis = redis
        self._ttl_seconds = ttl_seconds

    async def get(self, key: str) -> bytes | None:
        value = await self._redis.get(key)
        if value is None:
            return None
        return value if isinstance(value, bytes) else str(value).encode()

    async def set(self, key: str, value: bytes) -> None:
        await self._redis.set(key, value, ex=self._ttl_seconds)

    async def delete(self, key: str) -> None:
        await self._redis.delete(key)


def encode_draft(state: Mapping[str, Any]) -> bytes:
    return json.dumps({"state": dict(state), "version": DRAFT_VERSION}, ensure_ascii=False).encode()


def decode_draft(raw: bytes) -> dict[str, Any]:
    try:
        payload = json.loads(raw)
    except (UnicodeDecodeError, ValueError) as exc:
        raise DraftCorrupted(f"Draft is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise DraftCorrupted("Draft envelope is not an object")
    state = payload.get("state", {})
    if not isinstance(state, dict):
        raise DraftCorrupted("Draft state is not an object")
    return state


class DraftStore:
    """Owns the persisted draft of one wizard run.

    The draft is read from the key-value store once and then served from
    memory; every merge writes through before the in-memory copy changes.
    """

    def __init__(self, kv: KeyValueStore, *, key: str = DRAFT_STORAGE_KEY) -> None:
        self._kv = kv
        self._key = key
        self._state: dict[str, Any] | None = None
        self._hydrated = False
        self._logger = structlog.get_logger("draft_store")

    @property
    def key(self) -> str:
        return self._key

    async def load(self) -> dict[str, Any] | None:
        if not self._hydrated:
            self._state = await self._read()
            self._hydrated = True
        if self._state is None:
            return None
        return dict(self._state)

    async def merge(self, partial: Mapping[str, Any]) -> None:
        current = await self.load() or {}
        current.update(partial)
        await self._kv.set(self._key, encode_draft(current))
        self._state = current
        self._logger.debug("draft_merged", key=self._key, fields=sorted(partial))

    async def clear(self) -> None:
        await self._kv.delete(self._key)
        self._state = None
        self._hydrated = True
        self._logger.info("draft_cleared", key=self._key)

    async def _read(self) -> dict[str, Any] | None:
        raw = await self._kv.get(self._key)
        if raw is None:
            return None
        try:
            return decode_draft(raw)
        except DraftCorrupted as exc:
            self._logger.warning("draft_corrupted", key=self._key, error=str(exc))
            return None
