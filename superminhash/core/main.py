"""
SuperMinHash sketch: streaming Jaccard-similarity signatures.

This module provides the SuperMinHash class that ties together all sketch components:
- Element canonicalization (canonicalize)
- Per-element seeded random streams (seeded_stream)
- The pruned partial Fisher-Yates permutation (process_element)
- Similarity estimation and the fixed binary codec

Architecture overview:
    1. Element -> canonical string -> "seed:canonical" seed string
    2. Seed string -> random stream -> permutation engine -> signature slots
    3. Two signatures -> fraction of agreeing slots -> Jaccard estimate

Key features:
    - Fixed O(m) memory regardless of how many elements are added
    - Order- and batching-independent signatures
    - Lossless binary round trip for storage or transmission
    - Injectable canonicalizer and random stream factory
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from superminhash._config.config import (
    DEFAULT_SEED,
    DEFAULT_SIGNATURE_SIZE,
    MAX_HASH_VALUE,
    MAX_INPUT_LENGTH,
    SketchConfig,
)
from superminhash.errors import InputTooLargeError
from superminhash.hash.canonical import Canonicalizer, canonicalize
from superminhash.hash.permutation import process_element
from superminhash.hash.stream import RandomStreamFactory, seeded_stream
from superminhash.io.binary import BytesLike, DecodedSignature, decode_signature, encode_signature
from superminhash.similarity import estimate_similarity, jaccard_estimate

logger = logging.getLogger(__name__)


class SuperMinHash:
    """
    Fixed-size signature of a set, built one element at a time.

    Every slot holds the smallest synthetic rank any added element has offered
    it. Two sketches built with the same ``signature_size`` and ``seed`` agree
    at a slot with probability equal to the Jaccard index of their sets, so
    the fraction of agreeing slots estimates that index with variance
    proportional to ``1 / signature_size``.

    Parameters
    ----------
    signature_size : int, default=256
        Number of slots ``m``. Must be a positive integer.

    seed : int, default=42
        Scopes the hash family. Only sketches with equal seeds are comparable.
        Must fit in an unsigned 32-bit integer.

    canonicalizer : callable, optional
        Maps an element to the string that keys its random stream. Defaults to
        :func:`superminhash.hash.canonical.canonicalize`.

    stream_factory : callable, optional
        Maps a seed string to an iterator of uniform floats in ``[0, 1)``.
        Defaults to :func:`superminhash.hash.stream.seeded_stream`.

    Examples
    --------
    >>> first = SuperMinHash.from_iterable(["a", "b", "c", "d", "e"], 1024)
    >>> second = SuperMinHash.from_iterable(["c", "d", "e", "f", "g"], 1024)
    >>> estimate = first.similarity(second)  # true Jaccard is 3/7

    Sketches can be shipped as bytes and compared later:

    >>> restored = SuperMinHash.compare_serialized(first.serialize(), second.serialize())
    >>> restored == estimate
    True
    """

    DEFAULT_SIGNATURE_SIZE = DEFAULT_SIGNATURE_SIZE
    DEFAULT_SEED = DEFAULT_SEED

    def __init__(
        self,
        signature_size: int = DEFAULT_SIGNATURE_SIZE,
        seed: int = DEFAULT_SEED,
        *,
        canonicalizer: Optional[Canonicalizer] = None,
        stream_factory: Optional[RandomStreamFactory] = None,
    ) -> None:
        self._config = SketchConfig(signature_size=signature_size, seed=seed)
        self._canonicalizer = canonicalizer or canonicalize
        self._stream_factory = stream_factory or seeded_stream

        self._signature: NDArray[np.uint32] = np.full(
            self._config.signature_size, MAX_HASH_VALUE, dtype=np.uint32
        )
        self._empty = True

    # ---------------------------------------------------------------------
    # Configuration accessors
    # ---------------------------------------------------------------------

    @property
    def signature_size(self) -> int:
        return self._config.signature_size

    @property
    def seed(self) -> int:
        return self._config.seed

    @property
    def config(self) -> SketchConfig:
        return self._config

    # ---------------------------------------------------------------------
    # Public ingestion API
    # ---------------------------------------------------------------------

    def add(self, elements: Iterable[Any]) -> None:
        """
        Fold every element of ``elements`` into the signature.

        Elements are consumed lazily and never buffered. Each one is processed
        independently, so adding a collection in one call, over several calls,
        or in any order yields the same signature. Adding an empty iterable is
        a no-op and leaves the sketch empty.

        The update is all-or-nothing: slots are rewritten only after the last
        element has been processed, so a failure part-way through leaves the
        sketch exactly as it was.

        Parameters
        ----------
        elements : Iterable[Any]
            Strings, numbers, booleans, lists, dicts or any other value the
            canonicalizer accepts.

        Raises
        ------
        InputTooLargeError
            If an element's canonical form exceeds 100 000 characters.
        TypeError
            If the canonicalizer cannot represent an element.
        """
        working = self._signature.tolist()
        processed = 0

        for element in elements:
            stream = iter(self._stream_factory(self._seed_string(element)))
            process_element(working, stream.__next__)
            processed += 1

        if not processed:
            return

        self._signature[:] = working
        self._empty = False
        logger.debug(
            "Added %d elements to %d-slot signature (seed=%d)",
            processed,
            self.signature_size,
            self.seed,
        )

    # ---------------------------------------------------------------------
    # Comparison
    # ---------------------------------------------------------------------

    def similarity(self, other: "SuperMinHash") -> float:
        """
        Estimate the Jaccard similarity between this sketch's set and ``other``'s.

        Returns 1.0 when both sketches are empty and 0.0 when exactly one is.
        Otherwise defers to :meth:`jaccard_index`.

        Raises
        ------
        SeedMismatchError
            If both sketches are populated but were built with different seeds.
        SizeMismatchError
            If both sketches are populated but differ in signature size.
        """
        return estimate_similarity(
            self._signature,
            self._config,
            self._empty,
            other._signature,
            other._config,
            other._empty,
        )

    def jaccard_index(self, other: "SuperMinHash") -> float:
        """
        Return the fraction of slots on which both signatures agree.

        Unlike :meth:`similarity` the empty flags are ignored; two untouched
        signatures agree everywhere.

        Raises
        ------
        SeedMismatchError
            If the sketches were built with different seeds.
        SizeMismatchError
            If the sketches differ in signature size.
        """
        return jaccard_estimate(self._signature, self._config, other._signature, other._config)

    # ---------------------------------------------------------------------
    # Accessors
    # ---------------------------------------------------------------------

    def get_signature(self) -> NDArray[np.uint32]:
        """Return a copy of the signature values."""
        return self._signature.copy()

    def is_empty(self) -> bool:
        return self._empty

    def copy(self) -> "SuperMinHash":
        """Independent sketch with the same state and collaborators."""
        clone = self.__class__(
            self.signature_size,
            self.seed,
            canonicalizer=self._canonicalizer,
            stream_factory=self._stream_factory,
        )
        clone._signature[:] = self._signature
        clone._empty = self._empty
        return clone

    def stats(self) -> Dict[str, Any]:
        """
        Return a configuration and fill snapshot for monitoring and debugging.

        ``populated_slots`` counts slots that no longer hold the unset
        sentinel.
        """
        return {
            "signature_size": self.signature_size,
            "seed": self.seed,
            "empty": self._empty,
            "populated_slots": int(np.count_nonzero(self._signature != MAX_HASH_VALUE)),
        }

    # ---------------------------------------------------------------------
    # Persistence helpers
    # ---------------------------------------------------------------------

    def serialize(self) -> bytes:
        """Encode size, seed, empty flag and signature in the fixed binary layout."""
        return encode_signature(self._signature, self.seed, self._empty)

    @classmethod
    def deserialize(cls, data: BytesLike) -> "SuperMinHash":
        """
        Rebuild a sketch from bytes produced by :meth:`serialize`.

        Raises
        ------
        DeserializationTooShortError
            If fewer than 9 bytes are supplied.
        DeserializationInvalidSizeError
            If the declared signature size is zero.
        DeserializationLengthMismatchError
            If the buffer length disagrees with the declared signature size.
        """
        return cls._from_decoded(decode_signature(data))

    @classmethod
    def compare_serialized(cls, first: BytesLike, second: BytesLike) -> float:
        """Deserialize two buffers and return their :meth:`similarity`."""
        return cls.deserialize(first).similarity(cls.deserialize(second))

    @classmethod
    def from_raw_signature(
        cls,
        signature: Sequence[int],
        seed: int,
        empty: bool = False,
    ) -> "SuperMinHash":
        """
        Wrap existing signature values without validating them.

        The signature size is taken from ``len(signature)``. Intended for
        values produced elsewhere and trusted by the caller.
        """
        values = np.asarray(signature, dtype=np.uint32).reshape(-1)
        minhash = cls(values.shape[0], seed)
        minhash._signature[:] = values
        minhash._empty = empty
        return minhash

    @classmethod
    def from_iterable(
        cls,
        elements: Iterable[Any],
        signature_size: int = DEFAULT_SIGNATURE_SIZE,
        seed: int = DEFAULT_SEED,
    ) -> "SuperMinHash":
        """Build a sketch and add ``elements`` in one call."""
        minhash = cls(signature_size, seed)
        minhash.add(elements)
        return minhash

    # ---------------------------------------------------------------------
    # Python protocols
    # ---------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SuperMinHash):
            return NotImplemented
        return (
            self._config == other._config
            and self._empty == other._empty
            and bool(np.array_equal(self._signature, other._signature))
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return (
            "SuperMinHash("
            f"signature_size={self.signature_size}, "
            f"seed={self.seed}, "
            f"empty={self._empty}"
            ")"
        )

    def __getstate__(self) -> Dict[str, Any]:
        """
        Pickle through the binary codec.

        Injected collaborators are not persisted; an unpickled sketch uses the
        default canonicalizer and stream factory.
        """
        return {"data": self.serialize()}

    def __setstate__(self, state: Dict[str, Any]) -> None:
        restored = self.__class__._from_decoded(decode_signature(state["data"]))
        self.__dict__ = restored.__dict__

    # ---------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------

    @classmethod
    def _from_decoded(cls, decoded: DecodedSignature) -> "SuperMinHash":
        minhash = cls(decoded.signature_size, decoded.seed)
        minhash._signature[:] = decoded.signature
        minhash._empty = decoded.empty
        return minhash

    def _seed_string(self, element: Any) -> str:
        serialized = self._canonicalizer(element)
        if len(serialized) > MAX_INPUT_LENGTH:
            raise InputTooLargeError(MAX_INPUT_LENGTH, len(serialized))
        return f"{self.seed}:{serialized}"
