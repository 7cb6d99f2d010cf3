"""
The config module holds package-wide configurables and provides
a uniform API for working with them.
"""

from __future__ import annotations

from dataclasses import dataclass
from numbers import Integral

from superminhash.errors import ConstructionError

DEFAULT_SIGNATURE_SIZE = 256
DEFAULT_SEED = 42

# Sentinel for slots that no element has reached yet; also the rank modulus.
MAX_HASH_VALUE = 0xFFFFFFFF

# Upper bound on the canonical string of a single element.
MAX_INPUT_LENGTH = 100_000

# uint32 size + uint32 seed + uint8 empty flag
HEADER_SIZE = 9


@dataclass(frozen=True)
class SketchConfig:
    """
    Immutable pair of parameters that scopes a signature.

    Two signatures can only be compared when both their ``signature_size``
    and ``seed`` match exactly. The seed is written as an unsigned 32-bit
    integer on the wire, so it must fit that range.

    Attributes:
        signature_size: Number of slots ``m``. Estimator variance is
                        proportional to ``1 / m``.
        seed: Integer mixed into every element's seed string.

    Example:
        >>> SketchConfig(signature_size=128, seed=7)
        SketchConfig(signature_size=128, seed=7)
    """

    signature_size: int = DEFAULT_SIGNATURE_SIZE
    seed: int = DEFAULT_SEED

    def __post_init__(self) -> None:
        size = self.signature_size
        if isinstance(size, bool) or not isinstance(size, Integral) or size <= 0:
            raise ConstructionError("Signature size must be a positive integer")

        seed = self.seed
        if isinstance(seed, bool) or not isinstance(seed, Integral):
            raise ConstructionError("Seed must be an integer")
        if not 0 <= seed <= MAX_HASH_VALUE:
            raise ConstructionError(
                f"Seed must fit in an unsigned 32-bit integer; received {seed}"
            )

        # Normalise numpy integers so equality and hashing behave predictably
        object.__setattr__(self, "signature_size", int(size))
        object.__setattr__(self, "seed", int(seed))

    @property
    def serialized_size(self) -> int:
        """Number of bytes produced when serializing a signature of this config."""
        return HEADER_SIZE + 4 * self.signature_size
