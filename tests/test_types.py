"""
Stake Ledger Type Tests
"""

import pytest

from stakeledger.core.context import CallContext
from stakeledger.core.types import Address


class TestAddress:
    """Tests for participant addresses."""

    def test_create(self):
        addr = Address(bytes(range(32)))
        assert len(addr.data) == 32
        assert bytes(addr) == bytes(range(32))

    def test_wrong_length(self):
        with pytest.raises(ValueError):
            Address(b"\x01" * 31)

    def test_wrong_type(self):
        with pytest.raises(TypeError):
            Address("00" * 32)

    def test_hex_roundtrip(self, addr_a):
        assert Address.from_hex(addr_a.hex()) == addr_a
        assert Address.from_hex("0x" + addr_a.hex()) == addr_a

    def test_ordering_is_bytewise(self, addr_a, addr_b):
        """Ordering follows the raw bytes."""
        low = Address(b"\x00" + b"\xff" * 31)
        high = Address(b"\x01" + b"\x00" * 31)

        assert low < high
        assert addr_a < addr_b
        assert sorted([addr_b, addr_a]) == [addr_a, addr_b]

    def test_hashable(self, addr_a):
        """Equal addresses collapse in sets and dict keys."""
        copy = Address(bytes(addr_a.data))
        assert {addr_a, copy} == {addr_a}

    def test_short(self, addr_a):
        assert addr_a.short() == "0a" * 8

    def test_zero(self):
        assert Address.zero().data == bytes(32)


class TestCallContext:
    """Tests for call contexts."""

    def test_defaults(self, addr_a):
        ctx = CallContext(height=5, caller=addr_a)
        assert ctx.value == 0

    def test_negative_height(self, addr_a):
        with pytest.raises(ValueError):
            CallContext(height=-1, caller=addr_a)
