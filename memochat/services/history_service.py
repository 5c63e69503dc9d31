import json
import logging
from typing import AsyncContextManager, List, Optional, Protocol, Sequence

import redis.asyncio as aioredis
from fastapi import Depends
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from redis.exceptions import LockError, RedisError

from memochat.core.config import Settings, get_settings
from memochat.core.errors import StorageCorruptionError, StorageError
from memochat.core.redis import get_redis
from memochat.models.schemas import ChatTurn

logger = logging.getLogger(__name__)

_turns_adapter = TypeAdapter(List[ChatTurn])


class KeyValueBackend(Protocol):
    """String-keyed, string-valued async store holding the conversations."""

    async def get(self, key: str) -> Optional[str]: ...

    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None: ...

    async def delete(self, key: str) -> None: ...

    def lock(self, key: str) -> AsyncContextManager: ...


class RedisKeyValueBackend:
    def __init__(
        self,
        client: aioredis.Redis,
        lock_timeout: float = 60.0,
        lock_blocking_timeout: float = 30.0,
    ):
        self._client = client
        self._lock_timeout = lock_timeout
        self._lock_blocking_timeout = lock_blocking_timeout

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._client.get(key)
        except RedisError as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        try:
            if ttl_seconds:
                await self._client.setex(key, ttl_seconds, value)
            else:
                await self._client.set(key, value)
        except RedisError as e:
            raise StorageError(f"Failed to write {key}: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except RedisError as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e

    def lock(self, key: str) -> AsyncContextManager:
        return _RedisSessionLock(
            self._client.lock(
                f"lock:{key}",
                timeout=self._lock_timeout,
                blocking_timeout=self._lock_blocking_timeout,
            )
        )


class _RedisSessionLock:
    """Translates lock failures into StorageError."""

    def __init__(self, lock):
        self._lock = lock

    async def __aenter__(self):
        try:
            acquired = await self._lock.acquire()
        except (LockError, RedisError) as e:
            raise StorageError(f"Failed to acquire session lock: {e}") from e
        if not acquired:
            raise StorageError("Timed out waiting for session lock")
        return self

    async def __aexit__(self, exc_type, exc, tb):
        try:
            await self._lock.release()
        except LockError:
            # Expired while held; another request may already own it.
            logger.warning(f"Session lock {self._lock.name} expired before release")
        return False


def serialize_history(turns: Sequence[ChatTurn]) -> str:
    return json.dumps([turn.model_dump() for turn in turns])


def deserialize_history(data: str) -> List[ChatTurn]:
    try:
        return _turns_adapter.validate_json(data)
    except PydanticValidationError as e:
        raise StorageCorruptionError(f"Stored conversation is malformed: {e}") from e


def truncate_history(turns: Sequence[ChatTurn], window: int) -> List[ChatTurn]:
    """Keep the most recent ``window`` turns, oldest dropped first."""
    if window <= 0:
        return []
    return list(turns[-window:])


class HistoryStore:
    """Conversation history persisted as one JSON array per session."""

    def __init__(
        self,
        backend: KeyValueBackend,
        key_prefix: str = "chat:",
        ttl_seconds: Optional[int] = None,
        reset_corrupt: bool = False,
    ):
        self.backend = backend
        self.key_prefix = key_prefix
        self.ttl_seconds = ttl_seconds
        self.reset_corrupt = reset_corrupt

    def key_for(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    async def load(self, session_id: str) -> List[ChatTurn]:
        key = self.key_for(session_id)
        data = await self.backend.get(key)
        if not data:
            return []
        try:
            return deserialize_history(data)
        except StorageCorruptionError:
            if not self.reset_corrupt:
                raise
            logger.warning(f"Discarding unreadable history stored under {key}")
            return []

    async def save(self, session_id: str, turns: Sequence[ChatTurn]) -> None:
        await self.backend.put(self.key_for(session_id), serialize_history(turns), self.ttl_seconds)

    async def clear(self, session_id: str) -> None:
        await self.backend.delete(self.key_for(session_id))

    def session_lock(self, session_id: str) -> AsyncContextManager:
        return self.backend.lock(self.key_for(session_id))


def get_history_store(settings: Settings = Depends(get_settings)) -> HistoryStore:
    backend = RedisKeyValueBackend(
        get_redis(),
        lock_timeout=settings.lock_timeout_seconds,
        lock_blocking_timeout=settings.lock_blocking_timeout_seconds,
    )
    return HistoryStore(
        backend,
        key_prefix=settings.history_key_prefix,
        ttl_seconds=settings.session_ttl_seconds,
        reset_corrupt=settings.reset_corrupt_history,
    )
