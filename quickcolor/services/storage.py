"""
QuickColor Key-Value Storage
Namespaced async stores for JSON-serializable state: in-memory, JSON files
on disk and Redis.
"""
import asyncio
import json
import os
import re
import tempfile
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from quickcolor.services.results import PersistenceError
from quickcolor.utils.logging import get_logger

KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$")


class StoreType(str, Enum):
    MEMORY = "memory"
    FILE = "file"
    REDIS = "redis"


def _serialize(key: str, value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError) as e:
        raise PersistenceError(f"Value for key {key!r} is not JSON serializable: {e}")


def _deserialize(key: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as e:
        raise PersistenceError(f"Corrupt data stored under key {key!r}: {e}")


class Store(ABC):
    """
    Abstract base class for namespaced key-value stores.

    Values are arbitrary JSON-serializable structures. A missing key reads as
    None. Backend failures and unreadable data raise PersistenceError.
    """

    def __init__(self, namespace: str):
        self.namespace = namespace

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Get value for key, or None if absent."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Set value for key, overwriting any previous value."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete key. Returns True iff a value existed."""
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if key exists."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove every key owned by this store's namespace."""
        pass

    async def close(self) -> None:
        """Release backend resources."""
        pass


class MemoryStore(Store):
    """In-process store holding serialized JSON, so callers never share references."""

    def __init__(self, namespace: str = "@quickcolor"):
        super().__init__(namespace)
        self._data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return None if raw is None else _deserialize(key, raw)

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = _serialize(key, value)

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        return key in self._data

    async def clear(self) -> None:
        self._data.clear()


class JsonFileStore(Store):
    """
    One ``<key>.json`` file per key under ``<root>/<namespace>/``.

    Writes go to a temporary file that atomically replaces the target.
    File I/O runs in worker threads.
    """

    def __init__(self, root: Union[str, Path], namespace: str = "@quickcolor"):
        super().__init__(namespace)
        self.directory = Path(root).expanduser() / namespace

    def _path(self, key: str) -> Path:
        if not KEY_PATTERN.match(key):
            raise PersistenceError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def _read(self, key: str) -> Optional[Any]:
        path = self._path(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceError(f"Failed to read {path}: {e}")
        return _deserialize(key, raw)

    def _write(self, key: str, value: Any) -> None:
        path = self._path(key)
        payload = _serialize(key, value)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(f"Failed to write {path}: {e}")

    def _remove(self, key: str) -> bool:
        path = self._path(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PersistenceError(f"Failed to delete {path}: {e}")

    def _clear(self) -> None:
        if not self.directory.exists():
            return
        try:
            for path in self.directory.glob("*.json"):
                path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Failed to clear {self.directory}: {e}")

    async def get(self, key: str) -> Optional[Any]:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._write, key, value)

    async def delete(self, key: str) -> bool:
        return await asyncio.to_thread(self._remove, key)

    async def exists(self, key: str) -> bool:
        return await asyncio.to_thread(self._path(key).exists)

    async def clear(self) -> None:
        await asyncio.to_thread(self._clear)


class RedisStore(Store):
    """Redis store; keys are stored as ``<namespace>:<key>``."""

    def __init__(self, namespace: str = "@quickcolor",
                 redis_url: str = "redis://localhost:6379/0",
                 client: Optional[aioredis.Redis] = None):
        super().__init__(namespace)
        self._owns_client = client is None
        self.redis_client = client or aioredis.from_url(redis_url, decode_responses=True)

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self.redis_client.get(self._key(key))
        except RedisError as e:
            raise PersistenceError(f"Redis get failed for key {key}: {e}")
        return None if raw is None else _deserialize(key, raw)

    async def set(self, key: str, value: Any) -> None:
        payload = _serialize(key, value)
        try:
            await self.redis_client.set(self._key(key), payload)
        except RedisError as e:
            raise PersistenceError(f"Redis set failed for key {key}: {e}")

    async def delete(self, key: str) -> bool:
        try:
            return bool(await self.redis_client.delete(self._key(key)))
        except RedisError as e:
            raise PersistenceError(f"Redis delete failed for key {key}: {e}")

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self.redis_client.exists(self._key(key)))
        except RedisError as e:
            raise PersistenceError(f"Redis exists failed for key {key}: {e}")

    async def clear(self) -> None:
        """Delete only this namespace's keys, never the whole database."""
        try:
            keys = [key async for key in self.redis_client.scan_iter(match=f"{self.namespace}:*")]
            if keys:
                await self.redis_client.delete(*keys)
        except RedisError as e:
            raise PersistenceError(f"Redis clear failed: {e}")

    async def close(self) -> None:
        if self._owns_client:
            await self.redis_client.aclose()


def create_store(store_type: Union[StoreType, str] = StoreType.MEMORY,
                 namespace: str = "@quickcolor",
                 root: Optional[Union[str, Path]] = None,
                 redis_url: Optional[str] = None,
                 client: Optional[aioredis.Redis] = None) -> Store:
    """
    Build the store for a backend tag. Resolved once at startup.

    Raises:
        ValueError: For an unknown tag or a file store without ``root``
    """
    store_type = StoreType(store_type)

    if store_type == StoreType.MEMORY:
        store: Store = MemoryStore(namespace)
    elif store_type == StoreType.FILE:
        if root is None:
            raise ValueError("File store requires a root directory")
        store = JsonFileStore(root, namespace)
    else:
        store = RedisStore(namespace, redis_url or "redis://localhost:6379/0", client=client)

    get_logger().info(f"Using {store_type.value} store", {"namespace": namespace})
    return store
