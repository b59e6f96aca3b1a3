"""Compaction: Bit-packing of submission values into uint256 words.

A submission packs many small values into few 256-bit words. Values of a
given kind all use the same slot width; slot ``i`` lives in word
``i // slots_per_word`` at bit offset ``(i % slots_per_word) * bit_length``,
least significant slot first.

Slot widths:
    - prices: 32 bits, stored as ``value`` with ``price = value * 10**decimals``
    - decimals: 8 bits
    - block numbers and timestamps: 64 bits
    - signer info: 16 bits; slot 0 is the signer count, slots 1..n the
      roster indexes of the participating signers

.. code-block:: python

    >>> words = compact_values([1, 2, 3], PRICE_BIT_LENGTH)
    >>> uncompact_value(words, 2, PRICE_BIT_LENGTH)
    3
    >>> compact_price(1500 * FLOAT_PRECISION)
    (15, 32)
    >>> decode_signer_info(encode_signer_info([0, 3]))
    [0, 3]
"""

from __future__ import annotations

from .Errors import PriceOverflow

# Canonical price precision: every price is a 30-decimal fixed-point integer.
FLOAT_PRECISION = 10**30

WORD_BIT_LENGTH = 256
MAX_UINT256 = 2**WORD_BIT_LENGTH - 1

PRICE_BIT_LENGTH = 32
DECIMAL_BIT_LENGTH = 8
BLOCK_NUMBER_BIT_LENGTH = 64
TIMESTAMP_BIT_LENGTH = 64
SIGNER_INDEX_BIT_LENGTH = 16

# Slot 0 of the signer info word holds the count, leaving 15 index slots.
MAX_SIGNERS = WORD_BIT_LENGTH // SIGNER_INDEX_BIT_LENGTH - 1

# Largest decimal exponent an 8-bit slot can carry.
MAX_DECIMALS = 2**DECIMAL_BIT_LENGTH - 1


def _bitmask(bit_length: int) -> int:
    return (1 << bit_length) - 1


def _slots_per_word(bit_length: int) -> int:
    if bit_length <= 0 or WORD_BIT_LENGTH % bit_length != 0:
        raise ValueError(f"Invalid slot bit length: {bit_length}")
    return WORD_BIT_LENGTH // bit_length


def required_words(count: int, bit_length: int) -> int:
    """Number of words needed to hold ``count`` slots of ``bit_length`` bits."""
    slots = _slots_per_word(bit_length)
    return (count + slots - 1) // slots


def compact_values(values: list[int], bit_length: int) -> list[int]:
    """Pack values into uint256 words.

    :param values: Unsigned values, each below ``2**bit_length``.
    :param bit_length: Slot width in bits (must divide 256).
    :returns: Packed words.
    :raises ValueError: If a value does not fit its slot.
    """
    slots = _slots_per_word(bit_length)
    mask = _bitmask(bit_length)
    words = [0] * required_words(len(values), bit_length)
    for i, value in enumerate(values):
        if value < 0 or value > mask:
            raise ValueError(f"Value {value} does not fit in {bit_length} bits")
        words[i // slots] |= value << ((i % slots) * bit_length)
    return words


def uncompact_value(words: list[int], index: int, bit_length: int) -> int:
    """Extract slot ``index`` from packed words.

    :param words: Packed uint256 words.
    :param index: Slot index.
    :param bit_length: Slot width in bits.
    :returns: The slot value.
    :raises IndexError: If the slot lies beyond the supplied words.
    """
    slots = _slots_per_word(bit_length)
    word_index = index // slots
    if index < 0 or word_index >= len(words):
        raise IndexError(f"Slot {index} is beyond {len(words)} compacted words")
    bit_offset = (index - word_index * slots) * bit_length
    return (words[word_index] >> bit_offset) & _bitmask(bit_length)


def expand_price(value: int, decimals: int) -> int:
    """Rescale a compacted price slot to 30-decimal fixed point.

    :raises PriceOverflow: If the result does not fit in uint256.
    """
    price = value * 10**decimals
    if price > MAX_UINT256:
        raise PriceOverflow(value, decimals)
    return price


def compact_price(price: int) -> tuple[int, int]:
    """Split a 30-decimal price into a 32-bit slot value and decimal exponent.

    Picks the largest exponent that divides the price exactly, then checks the
    remaining value fits the slot, so ``expand_price`` reproduces the input.

    :param price: Price at 30-decimal precision.
    :returns: (value, decimals).
    :raises ValueError: If the price is negative or needs more than 32 bits of
        significant digits.
    """
    if price < 0:
        raise ValueError(f"Price must be non-negative: {price}")
    if price == 0:
        return 0, 0
    value, decimals = price, 0
    while value % 10 == 0 and decimals < MAX_DECIMALS:
        value //= 10
        decimals += 1
    if value > _bitmask(PRICE_BIT_LENGTH):
        raise ValueError(
            f"Price {price} has too many significant digits for a "
            f"{PRICE_BIT_LENGTH}-bit slot"
        )
    return value, decimals


def price_to_slot(price: int, decimals: int) -> int:
    """Compact a 30-decimal price with a given decimal exponent.

    :raises ValueError: If the exponent drops non-zero digits or the result
        does not fit a 32-bit slot.
    """
    if not 0 <= decimals <= MAX_DECIMALS:
        raise ValueError(f"Decimals out of range: {decimals}")
    value, remainder = divmod(price, 10**decimals)
    if remainder or value < 0:
        raise ValueError(f"Price {price} is not a multiple of 10**{decimals}")
    if value > _bitmask(PRICE_BIT_LENGTH):
        raise ValueError(f"Price {price} does not fit a {PRICE_BIT_LENGTH}-bit slot at 10**{decimals}")
    return value


def common_decimals(prices: list[int]) -> int:
    """Largest decimal exponent that compacts every price exactly."""
    non_zero = [compact_price(p)[1] for p in prices if p != 0]
    return min(non_zero) if non_zero else 0


def encode_signer_info(indexes: list[int]) -> int:
    """Build the signer info word from roster indexes.

    :raises ValueError: If there are more than MAX_SIGNERS indexes or an index
        does not fit in 16 bits.
    """
    if len(indexes) > MAX_SIGNERS:
        raise ValueError(f"At most {MAX_SIGNERS} signers, got {len(indexes)}")
    (info,) = compact_values([len(indexes), *indexes], SIGNER_INDEX_BIT_LENGTH)
    return info


def decode_signer_info(info: int) -> list[int]:
    """Return the roster indexes encoded in a signer info word.

    The count is capped at MAX_SIGNERS slots; callers check the raw count with
    :func:`signer_count` first.
    """
    count = min(signer_count(info), MAX_SIGNERS)
    return [uncompact_value([info], i + 1, SIGNER_INDEX_BIT_LENGTH) for i in range(count)]


def signer_count(info: int) -> int:
    """Return the signer count held in slot 0 of a signer info word."""
    return info & _bitmask(SIGNER_INDEX_BIT_LENGTH)
