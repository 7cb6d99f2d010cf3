"""Shared test fixtures and mock implementations."""

from __future__ import annotations

import fnmatch
import threading
from typing import Any, Callable, Iterable, List, Optional, Sequence

import numpy as np
import pytest

from superminhash import RedisSignatureStore, SuperMinHash


class FakePipeline:
    """Buffers SET commands until ``execute`` is called."""

    def __init__(self, client: "FakeRedis", *, fail_on_execute: bool = False) -> None:
        self._client = client
        self._commands: list[tuple[str, bytes]] = []
        self._fail_on_execute = fail_on_execute
        self.reset_called = False

    def set(self, key: str, value: bytes) -> None:
        self._commands.append((key, value))

    def execute(self) -> None:
        if self._fail_on_execute:
            raise ConnectionError("Simulated Redis failure")
        for key, value in self._commands:
            self._client.set(key, value)
        self._client.pipeline_executions += 1

    def reset(self) -> None:
        self._commands.clear()
        self.reset_called = True


class FakeRedis:
    """Thread-safe in-memory stand-in for the subset of redis-py the store uses."""

    def __init__(self, *, fail_on_execute: bool = False) -> None:
        self.data: dict[str, bytes] = {}
        self.pipeline_executions: int = 0
        self.pipelines: list[FakePipeline] = []
        self._fail_on_execute = fail_on_execute
        self._lock = threading.Lock()

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self.data[key] = bytes(value)

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self.data.get(key)

    def mget(self, keys: Sequence[str]) -> List[Optional[bytes]]:
        with self._lock:
            return [self.data.get(key) for key in keys]

    def delete(self, *keys: Any) -> int:
        removed = 0
        with self._lock:
            for key in keys:
                text = key.decode("utf-8") if isinstance(key, bytes) else key
                if self.data.pop(text, None) is not None:
                    removed += 1
        return removed

    def scan_iter(self, match: str = "*") -> Iterable[bytes]:
        with self._lock:
            keys = list(self.data)
        # redis-py returns bytes keys when decode_responses=False
        return [key.encode("utf-8") for key in keys if fnmatch.fnmatchcase(key, match)]

    def pipeline(self) -> FakePipeline:
        pipe = FakePipeline(self, fail_on_execute=self._fail_on_execute)
        self.pipelines.append(pipe)
        return pipe


def _cycling_draw(values: Sequence[float]) -> Callable[[], float]:
    state = {"index": 0}

    def _draw() -> float:
        value = values[state["index"] % len(values)]
        state["index"] += 1
        return value

    return _draw


@pytest.fixture
def cycling_draw():
    """Factory for draw functions that repeat a fixed list of floats forever."""
    return _cycling_draw


@pytest.fixture
def fake_redis() -> FakeRedis:
    """Fresh in-memory Redis client."""
    return FakeRedis()


@pytest.fixture
def failing_redis() -> FakeRedis:
    """In-memory client whose pipelines fail on execute."""
    return FakeRedis(fail_on_execute=True)


@pytest.fixture
def store(fake_redis: FakeRedis) -> RedisSignatureStore:
    """Signature store backed by the in-memory client."""
    return RedisSignatureStore(client=fake_redis, prefix="test")


@pytest.fixture
def make_minhash():
    """Factory for populated sketches with small test defaults."""

    def _make(
        elements: Iterable[Any] = ("a", "b", "c"),
        signature_size: int = 64,
        seed: int = 42,
    ) -> SuperMinHash:
        return SuperMinHash.from_iterable(elements, signature_size=signature_size, seed=seed)

    return _make


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random generator for deterministic tests."""
    return np.random.default_rng(12345)
