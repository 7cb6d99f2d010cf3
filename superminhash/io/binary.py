"""
Fixed binary layout for persisting and transmitting signatures.

Layout (little-endian)::

    offset 0 : uint32      signature size m
    offset 4 : uint32      seed
    offset 8 : uint8       empty flag (0 = empty, nonzero = populated)
    offset 9 : m x uint32  signature values

A buffer is always exactly ``9 + 4 * m`` bytes long.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Union

import numpy as np
from numpy.typing import NDArray

from superminhash._config.config import HEADER_SIZE
from superminhash.errors import (
    DeserializationInvalidSizeError,
    DeserializationLengthMismatchError,
    DeserializationTooShortError,
)

BytesLike = Union[bytes, bytearray, memoryview]

_HEADER = struct.Struct("<IIB")
_VALUE_DTYPE = np.dtype("<u4")


@dataclass(frozen=True)
class DecodedSignature:
    """Fields recovered from a serialized signature."""

    signature: NDArray[np.uint32]
    seed: int
    empty: bool

    @property
    def signature_size(self) -> int:
        return int(self.signature.shape[0])


def encode_signature(signature: NDArray[np.uint32], seed: int, empty: bool) -> bytes:
    """Pack a signature and its metadata into the fixed binary layout."""
    values = np.asarray(signature, dtype=_VALUE_DTYPE).reshape(-1)
    header = _HEADER.pack(values.shape[0], seed, 0 if empty else 1)
    return header + values.tobytes()


def decode_signature(data: BytesLike) -> DecodedSignature:
    """
    Unpack a buffer produced by :func:`encode_signature`.

    Every check runs before any signature value is read. Values themselves
    are not validated; any 32-bit pattern is accepted.

    Raises:
        DeserializationTooShortError: Fewer than 9 bytes.
        DeserializationInvalidSizeError: Declared signature size is zero.
        DeserializationLengthMismatchError: Buffer length disagrees with the
            declared size.
    """
    buffer = bytes(data)
    if len(buffer) < HEADER_SIZE:
        raise DeserializationTooShortError()

    signature_size, seed, empty_flag = _HEADER.unpack_from(buffer, 0)
    if signature_size <= 0:
        raise DeserializationInvalidSizeError()

    expected_length = HEADER_SIZE + 4 * signature_size
    if len(buffer) != expected_length:
        raise DeserializationLengthMismatchError(expected_length, len(buffer))

    values = np.frombuffer(
        buffer, dtype=_VALUE_DTYPE, count=signature_size, offset=HEADER_SIZE
    ).astype(np.uint32)
    return DecodedSignature(signature=values, seed=seed, empty=empty_flag == 0)
