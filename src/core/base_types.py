"""Core type definitions for chain reads and routing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from eth_utils.address import is_address, to_checksum_address

from core.ids import truncate_address


@dataclass(frozen=True)
class Address:
    """Ethereum address with validation and checksumming."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise TypeError("Address value must be a string")
        if not is_address(self.value):
            raise ValueError("Invalid Ethereum address")
        object.__setattr__(self, "value", to_checksum_address(self.value))

    @classmethod
    def from_string(cls, s: str) -> "Address":
        return cls(s)

    @property
    def checksum(self) -> str:
        return self.value

    @property
    def lower(self) -> str:
        return self.value.lower()

    @property
    def short(self) -> str:
        return truncate_address(self.value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Address):
            return self.lower == other.lower
        if isinstance(other, str):
            return self.lower == other.lower()
        return False

    def __hash__(self) -> int:
        return hash(self.lower)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CallRequest:
    """A read-only eth_call against a contract."""

    to: Address
    data: bytes
    sender: Optional[Address] = None

    def to_dict(self) -> dict:
        """Convert to the JSON-RPC call object."""
        payload: dict[str, object] = {
            "to": self.to.checksum,
            "data": f"0x{self.data.hex()}",
        }
        if self.sender is not None:
            payload["from"] = self.sender.checksum
        return payload
