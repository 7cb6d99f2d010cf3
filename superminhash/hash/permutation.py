"""
Permutation engine for SuperMinHash signatures.

Each element drives a partial Fisher-Yates shuffle over the ``m`` signature
slots. Step ``j`` of the shuffle lands on one not-yet-visited slot and offers
it the candidate rank ``(random_value + j) mod MAX_HASH_VALUE``. A slot keeps
the smallest rank it has ever been offered.

Because every candidate at step ``j`` is at least ``j`` (barring the rare
modular wrap), the scan can stop as soon as no slot's clamped bucket
``min(value, m - 1)`` reaches the current position: later steps could not
lower any slot. The bucket histogram tracks exactly that bound.

Algorithm per element:
    1. Derive the bucket histogram from the signature as it stands
    2. For j = 0, 1, ... while j <= max_bucket_index:
       a. draw a random rank and a random index r in [j, m)
       b. swap positions j and r (materialising both lazily)
       c. offer rank + j to slot positions[j]
       d. move the slot between buckets and shrink max_bucket_index
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, MutableSequence, Sequence

import numpy as np

from superminhash._config.config import MAX_HASH_VALUE

DrawFn = Callable[[], float]


def adjust_max_bucket_index(current_max: int, bucket_counts: Sequence[int]) -> int:
    """
    Lower ``current_max`` past every empty bucket, stopping at zero.

    Example:
        >>> adjust_max_bucket_index(2, [0, 0, 3])
        2
        >>> adjust_max_bucket_index(2, [3, 0, 0])
        0
    """
    new_max = current_max
    while new_max > 0 and bucket_counts[new_max] == 0:
        new_max -= 1
    return new_max


@dataclass
class ElementContext:
    """
    Scratch state for processing a single element.

    A context is built fresh for every element and thrown away afterwards,
    so nothing leaks from one element's shuffle into the next.

    Attributes:
        positions: Partial permutation of ``range(m)``. Only indices that the
                   shuffle has touched are present; a missing index maps to
                   itself.
        bucket_counts: ``bucket_counts[b]`` is the number of slots whose value
                       clamps to bucket ``b``. Always sums to ``m``.
        max_bucket_index: Largest bucket with a non-zero count. Never grows
                          while the element is processed.
    """

    bucket_counts: List[int]
    max_bucket_index: int
    positions: Dict[int, int] = field(default_factory=dict)

    @classmethod
    def from_signature(cls, signature: Sequence[int]) -> "ElementContext":
        """Build the bucket histogram for ``signature`` as it currently stands."""
        size = len(signature)
        clamped = np.minimum(np.asarray(signature, dtype=np.int64), size - 1)
        bucket_counts = np.bincount(clamped, minlength=size).tolist()
        return cls(
            bucket_counts=bucket_counts,
            max_bucket_index=adjust_max_bucket_index(size - 1, bucket_counts),
        )

    def swap(self, first: int, second: int) -> int:
        """Swap two positions, materialising them on first touch; return the new ``positions[first]``."""
        positions = self.positions
        first_value = positions.get(first, first)
        second_value = positions.get(second, second)
        positions[first] = second_value
        positions[second] = first_value
        return second_value

    def move_slot(self, previous_bucket: int, new_bucket: int) -> None:
        """Move one slot from ``previous_bucket`` down to ``new_bucket``."""
        # Decrement before increment, then re-derive the maximum
        self.bucket_counts[previous_bucket] -= 1
        self.bucket_counts[new_bucket] += 1
        self.max_bucket_index = adjust_max_bucket_index(
            self.max_bucket_index, self.bucket_counts
        )


def process_element(
    signature: MutableSequence[int],
    draw: DrawFn,
    *,
    prune: bool = True,
) -> int:
    """
    Fold one element's random stream into ``signature`` in place.

    Args:
        signature: Mutable sequence of ``m`` slot values. Values only ever
                   decrease.
        draw: Returns the next float in ``[0, 1)`` of the element's stream.
        prune: Stop once no slot can still improve. With ``prune=False`` all
               ``m`` permutation steps run; the resulting signature is the
               same, only slower.

    Returns:
        Number of permutation steps executed (between 1 and ``m``).
    """
    size = len(signature)
    last_bucket = size - 1
    context = ElementContext.from_signature(signature)

    current_position = 0
    while current_position <= (context.max_bucket_index if prune else last_bucket):
        random_value = int(draw() * MAX_HASH_VALUE)
        random_position = current_position + int(draw() * (size - current_position))

        slot = context.swap(current_position, random_position)
        candidate = (random_value + current_position) % MAX_HASH_VALUE

        current_value = signature[slot]
        if candidate < current_value:
            previous_bucket = min(current_value, last_bucket)
            signature[slot] = candidate
            if current_position < previous_bucket:
                context.move_slot(previous_bucket, current_position)

        current_position += 1

    return current_position
