"""Stateless hashing used in place of seeded random generators.

Every draw is a pure function of its integer key, so generated content never
depends on how many draws came before it.
"""

_MASK64 = (1 << 64) - 1
_GOLDEN_GAMMA = 0x9E3779B97F4A7C15


def _splitmix64(value: int) -> int:
    value = (value + _GOLDEN_GAMMA) & _MASK64
    value = ((value ^ (value >> 30)) * 0xBF58476D1CE4E5B9) & _MASK64
    value = ((value ^ (value >> 27)) * 0x94D049BB133111EB) & _MASK64
    return value ^ (value >> 31)


def hash_ints(*values: int) -> int:
    h = 0
    for value in values:
        # Negative keys wrap to their 64-bit two's complement.
        h = _splitmix64(h ^ (int(value) & _MASK64))
    return h


def unit_float(*values: int) -> float:
    return (hash_ints(*values) >> 11) / float(1 << 53)


def randint(low: int, high: int, *values: int) -> int:
    if high < low:
        raise ValueError(f"empty range [{low}, {high}]")
    return low + hash_ints(*values) % (high - low + 1)


def percent(*values: int) -> int:
    return hash_ints(*values) % 100


def to_signed32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value >= (1 << 31) else value
