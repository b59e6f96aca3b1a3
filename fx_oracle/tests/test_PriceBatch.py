"""Unit tests for PriceBatch."""

import pytest

from fx_oracle.src.Compaction import (
    BLOCK_NUMBER_BIT_LENGTH,
    DECIMAL_BIT_LENGTH,
    FLOAT_PRECISION,
    PRICE_BIT_LENGTH,
    TIMESTAMP_BIT_LENGTH,
    decode_signer_info,
    signer_count,
    uncompact_value,
)
from fx_oracle.src.Deployment import FX_TOKENS
from fx_oracle.src.PriceBatch import (
    PriceBatchBuilder,
    oracle_salt,
    price_digest,
    recover_signer,
    sign_digest,
)

NGN = FX_TOKENS["NGN"]
ARS = FX_TOKENS["ARS"]


class TestDigest:
    """Test the signed message."""

    def test_sign_and_recover(self, signer_a) -> None:
        """A signed digest recovers the signer address."""
        digest = price_digest(421614, NGN, 100, 100, 1_700_000_000, 30, 1500, 1500)
        signature = sign_digest(signer_a, digest)

        assert len(signature) == 65
        assert recover_signer(digest, signature) == signer_a.address

    def test_digest_binds_fields(self) -> None:
        """Changing any signed field changes the digest."""
        base = price_digest(421614, NGN, 100, 100, 0, 30, 1500, 1500)
        assert price_digest(421614, ARS, 100, 100, 0, 30, 1500, 1500) != base
        assert price_digest(421614, NGN, 100, 100, 0, 30, 1500, 1501) != base
        assert price_digest(421614, NGN, 100, 101, 0, 30, 1500, 1500) != base
        assert price_digest(421614, NGN, 100, 100, 0, 29, 1500, 1500) != base

    def test_salt_binds_chain(self) -> None:
        """Digests differ across chains."""
        assert oracle_salt(1) != oracle_salt(421614)
        assert price_digest(1, NGN, 1, 1, 0, 0, 1, 1) != price_digest(2, NGN, 1, 1, 0, 0, 1, 1)

    def test_recover_wrong_length(self) -> None:
        """Signatures must be 65 bytes."""
        with pytest.raises(ValueError, match="65 bytes"):
            recover_signer(b"\x00" * 32, b"\x00" * 64)


class TestPriceBatchBuilder:
    """Test building submissions."""

    def test_single_token_two_signers(self, signer_a, signer_b) -> None:
        """One token signed by two signers fills every field."""
        builder = PriceBatchBuilder(421614)
        builder.add_price(NGN, 1500 * FLOAT_PRECISION)

        params = builder.build([(0, signer_a), (1, signer_b)], min_block=100, timestamp=1_700_000_000)

        assert params.tokens == [NGN]
        assert signer_count(params.signer_info) == 2
        assert decode_signer_info(params.signer_info) == [0, 1]
        assert len(params.signatures) == 2
        assert uncompact_value(params.compacted_min_oracle_block_numbers, 0, BLOCK_NUMBER_BIT_LENGTH) == 100
        assert uncompact_value(params.compacted_max_oracle_block_numbers, 0, BLOCK_NUMBER_BIT_LENGTH) == 100
        assert uncompact_value(params.compacted_oracle_timestamps, 0, TIMESTAMP_BIT_LENGTH) == 1_700_000_000

        decimals = uncompact_value(params.compacted_decimals, 0, DECIMAL_BIT_LENGTH)
        min_slot = uncompact_value(params.compacted_min_prices, 1, PRICE_BIT_LENGTH)
        assert min_slot * 10**decimals == 1500 * FLOAT_PRECISION

    def test_signatures_token_major(self, signer_a, signer_b) -> None:
        """signatures[i * n + j] is signer j's signature for token i."""
        builder = PriceBatchBuilder(421614)
        builder.add_price(NGN, 1500 * FLOAT_PRECISION)
        builder.add_price(ARS, 1195 * FLOAT_PRECISION, 1205 * FLOAT_PRECISION)

        params = builder.build([(0, signer_a), (1, signer_b)], min_block=50, max_block=52, timestamp=7)

        decimals = uncompact_value(params.compacted_decimals, 1, DECIMAL_BIT_LENGTH)
        min_slot = uncompact_value(params.compacted_min_prices, 3, PRICE_BIT_LENGTH)
        max_slot = uncompact_value(params.compacted_max_prices, 3, PRICE_BIT_LENGTH)
        digest = price_digest(421614, ARS, 50, 52, 7, decimals, min_slot, max_slot)

        assert recover_signer(digest, params.signatures[3]) == signer_b.address
        assert min_slot * 10**decimals == 1195 * FLOAT_PRECISION
        assert max_slot * 10**decimals == 1205 * FLOAT_PRECISION

    def test_per_signer_prices(self, signer_a, signer_b) -> None:
        """Each signer's quote lands in its own slot."""
        builder = PriceBatchBuilder(421614)
        builder.add_signer_prices(
            NGN,
            [(1495 * FLOAT_PRECISION, 1500 * FLOAT_PRECISION), (1498 * FLOAT_PRECISION, 1505 * FLOAT_PRECISION)],
        )

        params = builder.build([(0, signer_a), (1, signer_b)], min_block=1)

        decimals = uncompact_value(params.compacted_decimals, 0, DECIMAL_BIT_LENGTH)
        mins = [uncompact_value(params.compacted_min_prices, j, PRICE_BIT_LENGTH) * 10**decimals for j in range(2)]
        maxs = [uncompact_value(params.compacted_max_prices, j, PRICE_BIT_LENGTH) * 10**decimals for j in range(2)]
        assert mins == [1495 * FLOAT_PRECISION, 1498 * FLOAT_PRECISION]
        assert maxs == [1500 * FLOAT_PRECISION, 1505 * FLOAT_PRECISION]

    def test_per_signer_count_mismatch(self, signer_a, signer_b) -> None:
        """Per-signer quotes must match the signer count."""
        builder = PriceBatchBuilder(421614)
        builder.add_signer_prices(NGN, [(1, 1), (2, 2), (3, 3)])
        with pytest.raises(ValueError, match="3 quotes for 2 signers"):
            builder.build([(0, signer_a), (1, signer_b)], min_block=1)

    def test_empty_signer_prices(self) -> None:
        """Per-signer quotes cannot be empty."""
        with pytest.raises(ValueError):
            PriceBatchBuilder(1).add_signer_prices(NGN, [])

    def test_uncompactable_price(self, signer_a) -> None:
        """Prices that do not fit a slot fail the build."""
        builder = PriceBatchBuilder(421614).add_price(NGN, 123456789012)
        with pytest.raises(ValueError):
            builder.build([(0, signer_a)], min_block=1)

    def test_duplicate_tokens_kept(self, signer_a) -> None:
        """The builder leaves duplicate checks to the oracle."""
        builder = PriceBatchBuilder(421614)
        builder.add_price(NGN, FLOAT_PRECISION).add_price(NGN.lower(), 2 * FLOAT_PRECISION)

        params = builder.build([(0, signer_a)], min_block=1)

        assert params.tokens == [NGN, NGN]
