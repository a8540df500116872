"""
Stake Ledger Host and Hash Tests
"""

import pytest

from stakeledger.constants import HASH_MAX
from stakeledger.crypto.hash import rand_from_digest, rand_from_seed, sha3_256
from stakeledger.errors import InvalidAmountError, InvalidParameterError
from stakeledger.node.host import HostError, HostLedger


class TestHostLedger:
    """Tests for the in-memory host."""

    def test_advance(self):
        host = HostLedger()
        assert host.advance(5) == 5
        assert host.advance() == 6

    def test_height_never_decreases(self):
        with pytest.raises(InvalidParameterError):
            HostLedger(height=3).advance(-1)

    def test_credit_and_collect(self, addr_a):
        host = HostLedger()
        host.credit(addr_a, 100)
        host.collect(addr_a, 40)

        assert host.balance_of(addr_a) == 60
        assert host.escrow == 40

    def test_credit_rejects_non_positive(self, addr_a):
        with pytest.raises(InvalidAmountError):
            HostLedger().credit(addr_a, 0)

    def test_context_checks_balance(self, addr_a):
        host = HostLedger(height=7)
        host.credit(addr_a, 10)

        ctx = host.context(addr_a, 10)
        assert (ctx.height, ctx.caller, ctx.value) == (7, addr_a, 10)

        with pytest.raises(HostError):
            host.context(addr_a, 11)

    def test_transfer_from_escrow(self, addr_a, addr_b):
        host = HostLedger(escrow=50)
        host.transfer(addr_b, 30)

        assert host.escrow == 20
        assert host.balance_of(addr_b) == 30

        with pytest.raises(HostError):
            host.transfer(addr_a, 21)

    def test_burn(self):
        host = HostLedger(escrow=50)
        host.burn(20)
        assert host.escrow == 30


class TestRandomness:
    """Tests for seed-derived random values."""

    def test_sha3_known_vector(self):
        """SHA3-256 of the empty string (FIPS 202)."""
        assert sha3_256(b"").hex() == (
            "a7ffc6f8bf1ed76651c14756a061d662f580ff4de43b49fa82d80a4b80f8434a"
        )

    def test_rand_from_seed_in_range(self):
        for seed in (b"", b"block-1", bytes(64)):
            assert 0 <= rand_from_seed(seed) <= HASH_MAX

    def test_rand_from_seed_deterministic(self):
        assert rand_from_seed(b"epoch-7") == rand_from_seed(b"epoch-7")
        assert rand_from_seed(b"epoch-7") != rand_from_seed(b"epoch-8")

    def test_rand_from_digest_big_endian(self):
        assert rand_from_digest(b"\x00" * 31 + b"\x01") == 1
        assert rand_from_digest(b"\xff" * 32) == HASH_MAX

    def test_rand_from_digest_wrong_size(self):
        with pytest.raises(ValueError):
            rand_from_digest(b"\x00" * 31)
