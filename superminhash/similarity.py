from __future__ import annotations

import numpy as np

from superminhash._config.config import SketchConfig
from superminhash.errors import SeedMismatchError, SizeMismatchError


def check_comparable(first: SketchConfig, second: SketchConfig) -> None:
    """Raise unless two configs produce comparable signatures."""
    if first.seed != second.seed:
        raise SeedMismatchError()
    if first.signature_size != second.signature_size:
        raise SizeMismatchError()


def signature_agreement(first: np.ndarray, second: np.ndarray) -> float:
    """Return the fraction of slots where ``first`` and ``second`` hold the same value."""
    a = np.asarray(first, dtype=np.uint32).reshape(-1)
    b = np.asarray(second, dtype=np.uint32).reshape(-1)
    if a.shape != b.shape:
        raise SizeMismatchError()
    return float(np.count_nonzero(a == b)) / a.shape[0]


def estimate_similarity(
    first_signature: np.ndarray,
    first_config: SketchConfig,
    first_empty: bool,
    second_signature: np.ndarray,
    second_config: SketchConfig,
    second_empty: bool,
) -> float:
    """
    Estimate the Jaccard similarity of the sets behind two signatures.

    Two empty sets are identical (1.0); an empty and a non-empty set share
    nothing (0.0). Otherwise the fraction of agreeing slots is an unbiased
    estimate of the Jaccard index.
    """
    if first_empty or second_empty:
        return 1.0 if first_empty and second_empty else 0.0
    return jaccard_estimate(first_signature, first_config, second_signature, second_config)


def jaccard_estimate(
    first_signature: np.ndarray,
    first_config: SketchConfig,
    second_signature: np.ndarray,
    second_config: SketchConfig,
) -> float:
    """Fraction of agreeing slots, after checking seed and size match."""
    check_comparable(first_config, second_config)
    return signature_agreement(first_signature, second_signature)
