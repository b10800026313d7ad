"""
Known AMM factory templates and the creation events they emit.

Each supported factory family is identified by a FactoryVariant and is
recognised on-chain by the topic0 of its pool/pair creation event.
"""

from enum import Enum
from typing import Dict, Iterable, List, Union

from web3 import Web3

from .exceptions import ConfigurationError, UnknownEventSignatureError

PAIR_CREATED_EVENT = "PairCreated(address,address,address,uint256)"
POOL_CREATED_EVENT = "PoolCreated(address,address,uint24,int24,address)"

PAIR_CREATED_EVENT_SIGNATURE = bytes(Web3.keccak(text=PAIR_CREATED_EVENT))
POOL_CREATED_EVENT_SIGNATURE = bytes(Web3.keccak(text=POOL_CREATED_EVENT))


class FactoryVariant(Enum):
    """Supported AMM factory templates."""

    UNISWAP_V2 = "uniswap_v2"
    UNISWAP_V3 = "uniswap_v3"

    @classmethod
    def from_name(cls, name: str) -> "FactoryVariant":
        """
        Parse a variant from a config or command-line name.

        Accepts the enum value ("uniswap_v2"), the member name ("UNISWAP_V2")
        or the short form ("v2"), case-insensitively.
        """
        key = name.strip().lower()
        for variant in cls:
            if key in (variant.value, variant.name.lower(), variant.value[-2:]):
                return variant
        known = ", ".join(v.value for v in cls)
        raise ConfigurationError(
            f"Unknown factory variant '{name}' (expected one of: {known})",
            {"variant": name},
        )


_EVENT_SIGNATURES: Dict[FactoryVariant, bytes] = {
    FactoryVariant.UNISWAP_V2: PAIR_CREATED_EVENT_SIGNATURE,
    FactoryVariant.UNISWAP_V3: POOL_CREATED_EVENT_SIGNATURE,
}

_VARIANTS_BY_SIGNATURE: Dict[bytes, FactoryVariant] = {
    sig: variant for variant, sig in _EVENT_SIGNATURES.items()
}


def signature_for(variant: FactoryVariant) -> bytes:
    """Return the 32-byte creation event topic for a factory variant."""
    return _EVENT_SIGNATURES[variant]


def variant_for_signature(topic: Union[bytes, str]) -> FactoryVariant:
    """
    Resolve a log's topic0 back to the factory variant that emits it.

    Args:
        topic: 32-byte topic, or its 0x-prefixed hex string

    Raises:
        UnknownEventSignatureError: If no known variant emits this event
    """
    if isinstance(topic, str):
        topic = Web3.to_bytes(hexstr=topic)
    variant = _VARIANTS_BY_SIGNATURE.get(bytes(topic))
    if variant is None:
        topic_hex = Web3.to_hex(topic)
        raise UnknownEventSignatureError(
            f"No known factory emits event {topic_hex}", topic=topic_hex
        )
    return variant


def topic_filter(variants: Iterable[FactoryVariant]) -> List[str]:
    """
    Build the topic0 alternatives matching any of the given variants.

    Duplicates are dropped and the caller's order is kept.
    """
    topics: List[str] = []
    for variant in variants:
        topic = Web3.to_hex(signature_for(variant))
        if topic not in topics:
            topics.append(topic)
    return topics
