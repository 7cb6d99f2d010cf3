from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple

import redis

from superminhash.core.main import SuperMinHash

logger = logging.getLogger(__name__)

SignatureItem = Tuple[str, SuperMinHash]


class RedisSignatureStore:
    """Thin wrapper around redis-py for keeping serialized signatures."""

    def __init__(
        self,
        *,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        prefix: str = "superminhash",
        max_connections: int = 50,
        client: Optional[Any] = None,
    ) -> None:
        """
        Connect to Redis, or wrap an already configured client.

        Parameters:
            host, port, db, password: Connection settings for the pool.
            prefix: Namespace for every key written by this store.
            max_connections: Size limit of the connection pool.
            client: Pre-built redis-compatible client. When given, no pool is
                created and ``close`` leaves the client alone.
        """
        self.prefix = prefix
        self._pool: Optional[redis.ConnectionPool] = None
        if client is not None:
            self._client = client
        else:
            # Binary values, so responses are never decoded
            self._pool = redis.ConnectionPool(
                host=host,
                port=port,
                db=db,
                password=password,
                decode_responses=False,
                max_connections=max_connections,
            )
            self._client = redis.Redis(connection_pool=self._pool)

    @property
    def client(self) -> Any:  # pragma: no cover - simple accessor
        return self._client

    def signature_key(self, key: str) -> str:
        """Compute the Redis key for a stored signature."""
        return f"{self.prefix}:signature:{key}"

    def save(self, key: str, minhash: SuperMinHash) -> None:
        """Store one signature under ``key``, replacing any previous value."""
        self._client.set(self.signature_key(key), minhash.serialize())
        logger.debug("Stored signature %r (%d slots)", key, minhash.signature_size)

    def save_many(self, items: Iterable[SignatureItem]) -> None:
        """Store a batch of signatures via Redis pipelining."""
        normalized = list(items)
        if not normalized:
            return
        with self.pipeline() as pipe:
            for key, minhash in normalized:
                pipe.set(self.signature_key(key), minhash.serialize())
        logger.debug("Stored %d signatures", len(normalized))

    def load(self, key: str) -> Optional[SuperMinHash]:
        """Fetch the signature stored under ``key``, or None if absent."""
        raw = self._client.get(self.signature_key(key))
        if raw is None:
            return None
        return SuperMinHash.deserialize(raw)

    def load_many(self, keys: Sequence[str]) -> List[Optional[SuperMinHash]]:
        """Fetch several signatures in one round trip; missing keys yield None."""
        if not keys:
            return []
        raw_values = self._client.mget([self.signature_key(key) for key in keys])
        return [
            None if raw is None else SuperMinHash.deserialize(raw)
            for raw in raw_values
        ]

    def compare(self, first_key: str, second_key: str) -> float:
        """
        Estimate the similarity of two stored signatures.

        Raises:
            KeyError: If either key has no stored signature.
        """
        first_raw, second_raw = self._client.mget(
            [self.signature_key(first_key), self.signature_key(second_key)]
        )
        for key, raw in ((first_key, first_raw), (second_key, second_raw)):
            if raw is None:
                logger.warning("No stored signature for key %r", key)
                raise KeyError(key)
        return SuperMinHash.compare_serialized(first_raw, second_raw)

    def delete(self, keys: Iterable[str]) -> int:
        """Remove stored signatures; return how many existed."""
        redis_keys = [self.signature_key(key) for key in keys]
        if not redis_keys:
            return 0
        return int(self._client.delete(*redis_keys))

    def keys(self) -> List[str]:
        """List the user-facing keys of every stored signature."""
        marker = self.signature_key("")
        found = []
        for raw_key in self._client.scan_iter(match=f"{marker}*"):
            text = raw_key.decode("utf-8") if isinstance(raw_key, bytes) else raw_key
            found.append(text[len(marker):])
        return sorted(found)

    @contextmanager
    def pipeline(self) -> Iterator[Any]:
        """Context manager for Redis pipelines with automatic execution."""
        pipe = self._client.pipeline()
        try:
            yield pipe
            pipe.execute()
        except Exception as e:
            logger.error(f"Failed to execute Redis pipeline: {e}")
            raise
        finally:
            pipe.reset()

    def clear(self) -> None:
        """Delete all keys under the configured prefix."""
        pattern = f"{self.prefix}:*"
        keys = list(self._client.scan_iter(match=pattern))
        if keys:
            self._client.delete(*keys)

    def close(self) -> None:
        """Release pooled connections; injected clients are left open."""
        if self._pool is not None:
            self._pool.disconnect()

    def __enter__(self) -> "RedisSignatureStore":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
