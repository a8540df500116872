"""
Stake Ledger Identity Types

Participants are identified by a fixed-size raw address.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from stakeledger.constants import ADDRESS_SIZE


@dataclass(frozen=True, slots=True)
class Address:
    """
    Participant identity.

    SIZE: 32 bytes
    ORDERING: lexicographic over the raw bytes (election tie-break)
    SERIALIZATION: raw bytes, hex on the wire
    """
    data: bytes = field(default_factory=lambda: bytes(ADDRESS_SIZE))

    def __post_init__(self):
        if not isinstance(self.data, (bytes, bytearray)):
            raise TypeError(f"Address data must be bytes, got {type(self.data).__name__}")
        if len(self.data) != ADDRESS_SIZE:
            raise ValueError(f"Address must be {ADDRESS_SIZE} bytes, got {len(self.data)}")

    def __bytes__(self) -> bytes:
        return bytes(self.data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Address):
            return self.data == other.data
        return False

    def __lt__(self, other: "Address") -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self.data < other.data

    def __hash__(self) -> int:
        return hash(self.data)

    def __repr__(self) -> str:
        return f"Address({self.data.hex()[:16]}...)"

    def hex(self) -> str:
        return self.data.hex()

    def short(self) -> str:
        """Abbreviated hex for log lines."""
        return self.data.hex()[:16]

    @classmethod
    def from_hex(cls, hex_string: str) -> Address:
        if hex_string.startswith("0x"):
            hex_string = hex_string[2:]
        return cls(bytes.fromhex(hex_string))

    @classmethod
    def zero(cls) -> Address:
        return cls(bytes(ADDRESS_SIZE))
