from __future__ import annotations

from superminhash._config.config import (
    DEFAULT_SEED,
    DEFAULT_SIGNATURE_SIZE,
    MAX_HASH_VALUE,
    MAX_INPUT_LENGTH,
    SketchConfig,
)
from superminhash.core.main import SuperMinHash
from superminhash.errors import (
    ComparisonError,
    ConstructionError,
    DeserializationError,
    DeserializationInvalidSizeError,
    DeserializationLengthMismatchError,
    DeserializationTooShortError,
    InputTooLargeError,
    SeedMismatchError,
    SizeMismatchError,
    SuperMinHashError,
)
from superminhash.hash.canonical import canonicalize
from superminhash.hash.permutation import adjust_max_bucket_index
from superminhash.hash.stream import seeded_stream
from superminhash.storage.redis import RedisSignatureStore

__all__ = [
    "SuperMinHash",
    "SketchConfig",
    "RedisSignatureStore",
    "canonicalize",
    "seeded_stream",
    "adjust_max_bucket_index",
    "DEFAULT_SIGNATURE_SIZE",
    "DEFAULT_SEED",
    "MAX_HASH_VALUE",
    "MAX_INPUT_LENGTH",
    "SuperMinHashError",
    "ConstructionError",
    "InputTooLargeError",
    "ComparisonError",
    "SeedMismatchError",
    "SizeMismatchError",
    "DeserializationError",
    "DeserializationTooShortError",
    "DeserializationInvalidSizeError",
    "DeserializationLengthMismatchError",
]
