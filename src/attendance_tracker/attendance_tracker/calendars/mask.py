"""Month presence mask.

Bit ``day - 1`` of a 31-bit integer is set when the employee was present on
``day``. Days are not checked against the real length of the month; the
recorder only ever sets days that exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..core.constants import MASK_WIDTH

FULL_MASK = (1 << MASK_WIDTH) - 1


def _check_day(day: int) -> int:
    if isinstance(day, bool) or not isinstance(day, int) or not 1 <= day <= MASK_WIDTH:
        raise ValueError(f"day must be an int in [1, {MASK_WIDTH}], got {day!r}")
    return day


def _check_mask(mask: int) -> int:
    if isinstance(mask, bool) or not isinstance(mask, int) or not 0 <= mask <= FULL_MASK:
        raise ValueError(f"mask must fit in {MASK_WIDTH} bits, got {mask!r}")
    return mask


def set_day(mask: int, day: int) -> int:
    return _check_mask(mask) | (1 << (_check_day(day) - 1))


def count_set(mask: int) -> int:
    return bin(_check_mask(mask)).count("1")


def decode(mask: int) -> set[int]:
    mask = _check_mask(mask)
    return {bit + 1 for bit in range(MASK_WIDTH) if mask >> bit & 1}


@dataclass(frozen=True)
class DayMask:
    """Immutable fixed-width day set."""

    bits: int = 0

    def __post_init__(self) -> None:
        _check_mask(self.bits)

    @classmethod
    def from_days(cls, days: Iterable[int]) -> "DayMask":
        bits = 0
        for day in days:
            bits = set_day(bits, day)
        return cls(bits)

    def set_day(self, day: int) -> "DayMask":
        bits = set_day(self.bits, day)
        return self if bits == self.bits else DayMask(bits)

    def count(self) -> int:
        return count_set(self.bits)

    def days(self) -> frozenset[int]:
        return frozenset(decode(self.bits))

    def to_string(self) -> str:
        """Exactly MASK_WIDTH characters of '0'/'1', day 1 first."""
        return "".join("1" if self.bits >> bit & 1 else "0" for bit in range(MASK_WIDTH))

    def __str__(self) -> str:
        return self.to_string()
