"""
Exception hierarchy for superminhash.

Every error is a ``ValueError`` subclass, so code that already guards calls
with ``except ValueError`` keeps working while newer code can target the
precise failure.
"""

from __future__ import annotations


class SuperMinHashError(ValueError):
    """Base class for all errors raised by this package."""


class ConstructionError(SuperMinHashError):
    """Raised when a sketch is configured with an invalid size or seed."""


class InputTooLargeError(SuperMinHashError):
    """Raised when an element's canonical form exceeds the length cap."""

    def __init__(self, limit: int, length: int) -> None:
        super().__init__(f"Input exceeds maximum length of {limit} characters")
        self.limit = limit
        self.length = length


class ComparisonError(SuperMinHashError):
    """Raised when two signatures cannot be compared."""


class SeedMismatchError(ComparisonError):
    def __init__(self) -> None:
        super().__init__("Cannot compare signatures generated with different seeds")


class SizeMismatchError(ComparisonError):
    def __init__(self) -> None:
        super().__init__("Can only compare signatures of the same size")


class DeserializationError(SuperMinHashError):
    """Raised when a binary buffer does not hold a valid signature."""


class DeserializationTooShortError(DeserializationError):
    def __init__(self) -> None:
        super().__init__("Invalid binary data: too short")


class DeserializationInvalidSizeError(DeserializationError):
    def __init__(self) -> None:
        super().__init__("Invalid binary data: signature size must be positive")


class DeserializationLengthMismatchError(DeserializationError):
    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Invalid binary data: expected length {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual
