import asyncio
import os
import sys
from collections import defaultdict
from typing import Dict, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from memochat.core.config import Settings, get_settings
from memochat.core.errors import InferenceError, StorageError
from memochat.main import app
from memochat.models.schemas import ChatTurn, GenerationParams
from memochat.services.history_service import HistoryStore, get_history_store
from memochat.services.inference_service import get_inference_client


class InMemoryBackend:
    """Key-value backend double; keeps raw strings so tests can compare bytes."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, Optional[int]] = {}
        self.calls: List[str] = []
        self.fail_on: set = set()
        self._locks = defaultdict(asyncio.Lock)

    def _check(self, op: str):
        self.calls.append(op)
        if op in self.fail_on:
            raise StorageError(f"backend {op} unavailable")

    async def get(self, key: str) -> Optional[str]:
        self._check("get")
        return self.data.get(key)

    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        self._check("put")
        self.data[key] = value
        self.ttls[key] = ttl_seconds

    async def delete(self, key: str) -> None:
        self._check("delete")
        self.data.pop(key, None)

    def lock(self, key: str):
        self.calls.append("lock")
        return self._locks[key]


class ScriptedInference:
    """Inference client double that replays canned replies and records prompts."""

    def __init__(self, replies=None, error: Optional[Exception] = None, delay: float = 0.0):
        self.replies = list(replies or [])
        self.error = error
        self.delay = delay
        self.calls: List[tuple] = []

    async def generate(self, messages: List[ChatTurn], params: GenerationParams) -> Optional[str]:
        self.calls.append((list(messages), params))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise InferenceError(str(self.error))
        if not self.replies:
            return "ok"
        return self.replies.pop(0)


@pytest.fixture
def test_settings():
    """Settings with library defaults, independent of the local .env file"""
    return Settings(
        _env_file=None,
        gemini_api_key="test-key",
        session_locking=False,
        reset_corrupt_history=False,
    )


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def store(backend):
    return HistoryStore(backend, key_prefix="chat:")


@pytest.fixture
def inference():
    return ScriptedInference()


@pytest.fixture
async def client(store, inference, test_settings):
    app.dependency_overrides[get_history_store] = lambda: store
    app.dependency_overrides[get_inference_client] = lambda: inference
    app.dependency_overrides[get_settings] = lambda: test_settings
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_turns():
    """Alternating user/assistant turns numbered from 0"""

    def build(count: int) -> List[ChatTurn]:
        roles = ("user", "assistant")
        return [ChatTurn(role=roles[i % 2], content=f"turn {i}") for i in range(count)]

    return build
