"""128-bit integer marshalling between Python ints and the engine's two-word form.

The engine stores HUGEINT values as a pair of 64-bit words: a signed upper
half and an unsigned lower half. Python integers are arbitrary precision, so
the pair is reconstructed exactly as ``(high << 64) | low``.

Example:
    >>> wide = to_wide(98233720368547758080000)
    >>> wide
    WideInteger(high=5325, low=4808176044395724800)
    >>> from_wide(wide)
    98233720368547758080000
"""

from __future__ import annotations

from dataclasses import dataclass

WORD_BITS = 64
LOW_MASK = (1 << WORD_BITS) - 1

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
UINT64_MAX = LOW_MASK

WIDE_MIN = -(1 << 127)
WIDE_MAX = (1 << 127) - 1


@dataclass(frozen=True, slots=True)
class WideInteger:
    """A 128-bit signed integer split into its engine representation.

    Attributes:
        high: Upper 64 bits, signed.
        low: Lower 64 bits, unsigned.
    """

    high: int
    low: int

    def __post_init__(self) -> None:
        if not INT64_MIN <= self.high <= INT64_MAX:
            raise ValueError(f"high word out of signed 64-bit range: {self.high}")
        if not 0 <= self.low <= UINT64_MAX:
            raise ValueError(f"low word out of unsigned 64-bit range: {self.low}")

    @classmethod
    def from_int(cls, value: int) -> WideInteger:
        """Split an integer in the 128-bit signed range."""
        return to_wide(value)

    def to_int(self) -> int:
        """Reassemble the Python integer."""
        return (self.high << WORD_BITS) | self.low

    def __int__(self) -> int:
        return self.to_int()


def to_wide(value: int) -> WideInteger:
    """Convert an integer to its (high, low) pair.

    Args:
        value: Integer in ``[-2**127, 2**127 - 1]``.

    Returns:
        The WideInteger whose reassembly equals ``value``.

    Raises:
        TypeError: If value is not an int (bool is rejected too).
        ValueError: If value does not fit in 128 signed bits.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected int, got {type(value).__name__}")
    if not WIDE_MIN <= value <= WIDE_MAX:
        raise ValueError(f"value does not fit in 128 signed bits: {value}")
    return WideInteger(high=value >> WORD_BITS, low=value & LOW_MASK)


def from_wide(wide: WideInteger | tuple[int, int]) -> int:
    """Convert a (high, low) pair back to an integer.

    Accepts either a WideInteger or a plain ``(high, low)`` tuple; tuples are
    validated the same way.

    Raises:
        ValueError: If ``low`` is negative or wider than 64 bits, or ``high``
            is outside the signed 64-bit range.
    """
    if not isinstance(wide, WideInteger):
        high, low = wide
        wide = WideInteger(high=high, low=low)
    return wide.to_int()
