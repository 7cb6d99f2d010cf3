"""
Seeded random streams for the permutation engine.

Each element gets its own reproducible stream of uniform floats in ``[0, 1)``
keyed by a seed string. The seed string is digested with BLAKE2b and fed to
numpy's PCG64 generator, which yields the same sequence on every platform.
"""

from __future__ import annotations

import hashlib
from typing import Callable, Iterator

import numpy as np

RandomStreamFactory = Callable[[str], Iterator[float]]

DEFAULT_CHUNK_SIZE = 64


def seed_from_string(seed_string: str) -> int:
    """Derive a 128-bit integer seed from ``seed_string``."""
    digest = hashlib.blake2b(seed_string.encode("utf-8"), digest_size=16).digest()
    return int.from_bytes(digest, "little")


def seeded_stream(
    seed_string: str,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[float]:
    """
    Yield an endless, reproducible stream of floats in ``[0, 1)``.

    Floats are drawn from the generator ``chunk_size`` at a time. Each double
    consumes exactly one generator output, so the sequence does not depend
    on the chunk size.

    Args:
        seed_string: Key for the stream. Equal strings give equal streams.
        chunk_size: Number of floats pulled from numpy per refill.

    Raises:
        ValueError: If ``chunk_size`` is not positive.

    Example:
        >>> stream = seeded_stream("42:token")
        >>> first = next(stream)
        >>> 0.0 <= first < 1.0
        True
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be greater than zero")
    return _iter_uniform(np.random.default_rng(seed_from_string(seed_string)), chunk_size)


def _iter_uniform(rng: np.random.Generator, chunk_size: int) -> Iterator[float]:
    while True:
        # tolist() hands back Python floats, which are cheaper to consume one by one
        yield from rng.random(chunk_size).tolist()
