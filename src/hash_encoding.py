"""
Bit-vector <-> digit-string codec.

- Bits are packed MSB-first: bit index 0 becomes the most significant bit
  of the integer, i.e. position `bit_count - 1`.
- Digits are lowercase `0-9a-z`, as Java's BigInteger.toString(radix).
- Strings are left-padded with '0' to `digit_length(bit_count, radix)` so all
  hashes of one configuration share the same length.
"""

from __future__ import annotations

import math
from functools import lru_cache

import numpy as np
from numpy.typing import ArrayLike, NDArray

from errors import InvalidConfigurationError

MIN_RADIX = 2
MAX_RADIX = 36

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_FORMAT_SPECS = {2: "b", 8: "o", 10: "d", 16: "x"}


def _check_radix(radix: int) -> None:
    if not MIN_RADIX <= radix <= MAX_RADIX:
        raise InvalidConfigurationError(
            f"radix must be in [{MIN_RADIX}, {MAX_RADIX}], got {radix}"
        )


@lru_cache(maxsize=256)
def digit_length(bit_count: int, radix: int) -> int:
    """
    ceil(bit_count / log2(radix)), i.e. the smallest k with
    radix**k >= 2**bit_count. The float estimate is corrected with exact
    integer comparisons so powers of two never round the wrong way.
    """
    _check_radix(radix)
    if bit_count < 0:
        raise InvalidConfigurationError(f"bit_count must be >= 0, got {bit_count}")
    if radix & (radix - 1) == 0:
        per_digit = radix.bit_length() - 1
        return -(-bit_count // per_digit)
    if bit_count == 0:
        return 0
    target = 1 << bit_count
    k = max(1, math.ceil(bit_count / math.log2(radix)))
    below = radix ** (k - 1)
    if below >= target:
        return k - 1
    if below * radix < target:
        return k + 1
    return k


def pack_bits(bits: ArrayLike) -> int:
    """Pack a boolean vector into an unsigned int, index 0 = MSB."""
    flat: NDArray[np.bool_] = np.asarray(bits, dtype=bool).ravel()
    packed = np.packbits(flat.astype(np.uint8), bitorder="big")
    value = int.from_bytes(packed.tobytes(), byteorder="big", signed=False)
    # packbits zero-fills the tail of the last byte
    return value >> (packed.size * 8 - flat.size)


def unpack_bits(value: int, bit_count: int) -> NDArray[np.bool_]:
    """Inverse of `pack_bits` for a known bit count."""
    if value < 0 or value >> bit_count:
        raise InvalidConfigurationError(
            f"value does not fit in {bit_count} bits"
        )
    n_bytes = (bit_count + 7) // 8
    raw = (value << (n_bytes * 8 - bit_count)).to_bytes(n_bytes, byteorder="big")
    bits = np.unpackbits(np.frombuffer(raw, dtype=np.uint8), count=bit_count)
    return bits.astype(bool)


def to_radix(value: int, radix: int) -> str:
    """Render a non-negative int in `radix` with lowercase digits, no padding."""
    _check_radix(radix)
    if value < 0:
        raise ValueError("negative values are not encoded")
    fmt = _FORMAT_SPECS.get(radix)
    if fmt is not None:
        return format(value, fmt)
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, radix)
        out.append(_DIGITS[rem])
    return "".join(reversed(out))


def encode_bits(bits: ArrayLike, radix: int) -> str:
    """
    Encode a bit vector as a fixed-width digit string.

    Raises:
        InvalidConfigurationError: radix outside [2, 36].
    """
    _check_radix(radix)
    flat = np.asarray(bits, dtype=bool).ravel()
    digits = to_radix(pack_bits(flat), radix)
    return digits.rjust(digit_length(flat.size, radix), "0")


def decode_digits(digits: str, radix: int, bit_count: int) -> NDArray[np.bool_]:
    """Recover the bit vector from a hash string produced by `encode_bits`."""
    _check_radix(radix)
    try:
        value = int(digits, radix)
    except ValueError as exc:
        raise InvalidConfigurationError(
            f"{digits!r} is not a base-{radix} number"
        ) from exc
    return unpack_bits(value, bit_count)
