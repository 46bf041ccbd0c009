"""Record store adapters for users and roles.

The access-control layer talks to persistence through :class:`RecordStore`,
a generic find/get/insert/update/delete interface keyed by record id.

Adapters:
- ``InMemoryRecordStore`` — process-local store (tests, single-process tools).
- ``RedisRecordStore`` — JSON records in Redis, one key per record
  (``{prefix}:{collection}:{id}``).

Every record carries an integer ``version``. ``update()`` accepts an
``expected_version`` and raises :class:`ConflictError` when the stored record
has moved on; the caller retries with a fresh read, nothing is merged.
"""

from __future__ import annotations

import copy
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError, WatchError

from .config import AccessConfig
from .exceptions import ConfigurationError, ConflictError, NotFoundError, StorageError

logger = logging.getLogger(__name__)

PROFILES = "profiles"
ROLES = "roles"

Record = dict[str, Any]


def _matches(record: Record, filters: Optional[dict[str, Any]]) -> bool:
    if not filters:
        return True
    return all(record.get(key) == value for key, value in filters.items())


class RecordStore(ABC):
    """Generic persistence interface consumed by the access-control layer."""

    @abstractmethod
    async def find(self, collection: str, filters: Optional[dict[str, Any]] = None) -> list[Record]:
        """Return records whose top-level fields equal every filter value."""
        raise NotImplementedError

    @abstractmethod
    async def get(self, collection: str, record_id: str) -> Optional[Record]:
        raise NotImplementedError

    @abstractmethod
    async def insert(self, collection: str, record: Record) -> Record:
        """Insert a new record; ``ConflictError`` if the id exists."""
        raise NotImplementedError

    @abstractmethod
    async def update(
        self,
        collection: str,
        record_id: str,
        values: Record,
        expected_version: Optional[int] = None,
    ) -> Record:
        """Merge ``values`` into a record and bump its version."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, collection: str, record_id: str) -> None:
        """Delete a record; ``NotFoundError`` if it does not exist."""
        raise NotImplementedError


class InMemoryRecordStore(RecordStore):
    """Dict-backed store. Records are copied on the way in and out."""

    def __init__(self, data: Optional[dict[str, list[Record]]] = None) -> None:
        self._collections: dict[str, dict[str, Record]] = {}
        for collection, records in (data or {}).items():
            for record in records:
                stored = copy.deepcopy(record)
                stored.setdefault("version", 1)
                self._collections.setdefault(collection, {})[str(stored["id"])] = stored

    async def find(self, collection: str, filters: Optional[dict[str, Any]] = None) -> list[Record]:
        records = self._collections.get(collection, {}).values()
        return [copy.deepcopy(r) for r in records if _matches(r, filters)]

    async def get(self, collection: str, record_id: str) -> Optional[Record]:
        record = self._collections.get(collection, {}).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def insert(self, collection: str, record: Record) -> Record:
        if "id" not in record:
            raise StorageError("Record has no id", collection=collection)
        records = self._collections.setdefault(collection, {})
        record_id = str(record["id"])
        if record_id in records:
            raise ConflictError(f"{collection}/{record_id} already exists", collection=collection, id=record_id)
        stored = copy.deepcopy(record)
        stored["version"] = 1
        records[record_id] = stored
        return copy.deepcopy(stored)

    async def update(
        self,
        collection: str,
        record_id: str,
        values: Record,
        expected_version: Optional[int] = None,
    ) -> Record:
        records = self._collections.get(collection, {})
        current = records.get(record_id)
        if current is None:
            raise NotFoundError(f"{collection}/{record_id} not found", collection=collection, id=record_id)
        if expected_version is not None and current.get("version") != expected_version:
            raise ConflictError(
                f"{collection}/{record_id} changed (expected v{expected_version}, found v{current.get('version')})",
                collection=collection,
                id=record_id,
            )
        updated = {**current, **copy.deepcopy(values), "id": current["id"]}
        updated["version"] = int(current.get("version", 0)) + 1
        records[record_id] = updated
        return copy.deepcopy(updated)

    async def delete(self, collection: str, record_id: str) -> None:
        records = self._collections.get(collection, {})
        if record_id not in records:
            raise NotFoundError(f"{collection}/{record_id} not found", collection=collection, id=record_id)
        del records[record_id]


class RedisRecordStore(RecordStore):
    """Record store on Redis (redis.asyncio), one JSON value per record.

    Updates use ``WATCH``/``MULTI`` so a concurrent writer between read and
    write surfaces as :class:`ConflictError`.
    """

    def __init__(self, client: "aioredis.Redis", prefix: str = "clinicaccess") -> None:
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_config(cls, config: AccessConfig) -> "RedisRecordStore":
        if not config.redis_url:
            raise ConfigurationError("REDIS_URL is not set; cannot build RedisRecordStore")
        client = aioredis.from_url(config.redis_url, decode_responses=True)
        return cls(client, prefix=config.key_prefix)

    def _key(self, collection: str, record_id: str) -> str:
        return f"{self._prefix}:{collection}:{record_id}"

    @staticmethod
    def _decode(raw: Optional[str]) -> Optional[Record]:
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            raise StorageError(f"Corrupt record: {e}") from e

    async def find(self, collection: str, filters: Optional[dict[str, Any]] = None) -> list[Record]:
        try:
            keys = [key async for key in self._client.scan_iter(match=self._key(collection, "*"))]
            if not keys:
                return []
            values = await self._client.mget(keys)
        except RedisError as e:
            raise StorageError(f"Redis find failed: {e}", collection=collection) from e
        records = [self._decode(raw) for raw in values]
        return [r for r in records if r is not None and _matches(r, filters)]

    async def get(self, collection: str, record_id: str) -> Optional[Record]:
        try:
            raw = await self._client.get(self._key(collection, record_id))
        except RedisError as e:
            raise StorageError(f"Redis get failed: {e}", collection=collection) from e
        return self._decode(raw)

    async def insert(self, collection: str, record: Record) -> Record:
        if "id" not in record:
            raise StorageError("Record has no id", collection=collection)
        record_id = str(record["id"])
        stored = {**record, "version": 1}
        try:
            created = await self._client.set(self._key(collection, record_id), json.dumps(stored), nx=True)
        except RedisError as e:
            raise StorageError(f"Redis insert failed: {e}", collection=collection) from e
        if not created:
            raise ConflictError(f"{collection}/{record_id} already exists", collection=collection, id=record_id)
        return stored

    async def update(
        self,
        collection: str,
        record_id: str,
        values: Record,
        expected_version: Optional[int] = None,
    ) -> Record:
        key = self._key(collection, record_id)
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                await pipe.watch(key)
                current = self._decode(await pipe.get(key))
                if current is None:
                    raise NotFoundError(f"{collection}/{record_id} not found", collection=collection, id=record_id)
                if expected_version is not None and current.get("version") != expected_version:
                    raise ConflictError(
                        f"{collection}/{record_id} changed (expected v{expected_version}, found v{current.get('version')})",
                        collection=collection,
                        id=record_id,
                    )
                updated = {**current, **values, "id": current["id"]}
                updated["version"] = int(current.get("version", 0)) + 1
                pipe.multi()
                pipe.set(key, json.dumps(updated))
                await pipe.execute()
        except WatchError as e:
            raise ConflictError(f"{collection}/{record_id} modified concurrently", collection=collection, id=record_id) from e
        except RedisError as e:
            raise StorageError(f"Redis update failed: {e}", collection=collection) from e
        return updated

    async def delete(self, collection: str, record_id: str) -> None:
        try:
            removed = await self._client.delete(self._key(collection, record_id))
        except RedisError as e:
            raise StorageError(f"Redis delete failed: {e}", collection=collection) from e
        if not removed:
            raise NotFoundError(f"{collection}/{record_id} not found", collection=collection, id=record_id)

    async def close(self) -> None:
        await self._client.aclose()


__all__ = [
    "PROFILES",
    "ROLES",
    "InMemoryRecordStore",
    "RecordStore",
    "RedisRecordStore",
]
