"""
Core data types for factory discovery.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from web3 import Web3

from .signatures import FactoryVariant


def _to_topic_bytes(topic: Union[bytes, str]) -> bytes:
    if isinstance(topic, str):
        return Web3.to_bytes(hexstr=topic)
    return bytes(topic)


@dataclass(frozen=True)
class LogEntry:
    """
    A raw event log as returned by the RPC provider.

    Attributes:
        address: Checksum address of the emitting contract
        topics: Indexed topics, topic0 first (32 bytes each)
        block_number: Height the log was included at, None if pending
    """

    address: str
    topics: Tuple[bytes, ...]
    block_number: Optional[int] = None

    @classmethod
    def create(
        cls,
        address: str,
        topics,
        block_number: Optional[int] = None,
    ) -> "LogEntry":
        """Build a LogEntry, normalising the address and topics."""
        return cls(
            address=Web3.to_checksum_address(address),
            topics=tuple(_to_topic_bytes(t) for t in topics),
            block_number=block_number,
        )

    @classmethod
    def from_web3(cls, log: Mapping[str, Any]) -> "LogEntry":
        """Convert a web3 LogReceipt into a LogEntry."""
        return cls.create(
            address=log["address"],
            topics=log["topics"],
            block_number=log.get("blockNumber"),
        )


@dataclass(frozen=True)
class FactoryRecord:
    """
    A contract identified as a factory of a known AMM template.

    Attributes:
        variant: Factory template the contract matches
        address: Checksum address of the factory contract
        creation_block: Height of the first creation event seen from it
    """

    variant: FactoryVariant
    address: str
    creation_block: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variant": self.variant.value,
            "address": self.address,
            "creation_block": self.creation_block,
        }


@dataclass
class AggregationEntry:
    """A discovered factory and the number of creation events seen after it."""

    factory: FactoryRecord
    event_count: int = 0
