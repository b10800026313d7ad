"""
AMM factory discovery.

Finds the contracts on a chain that behave as factories of known AMM
templates by scanning the historical log for the pool/pair creation events
each template emits.
"""

PROJECT_NAME = "amm-factory-discovery"

from factory_discovery.version import __version__
from factory_discovery.discovery import (
    AggregationTable,
    BlockRangeScanner,
    FactoryClassifier,
    discover_factories,
    filter_by_threshold,
    iter_block_windows,
    scan_factories,
)
from factory_discovery.exceptions import (
    ConfigurationError,
    FactoryDiscoveryError,
    MissingBlockNumberError,
    ProviderError,
    UnknownEventSignatureError,
)
from factory_discovery.provider import RpcProvider, Web3Provider
from factory_discovery.signatures import (
    FactoryVariant,
    signature_for,
    variant_for_signature,
)
from factory_discovery.types import AggregationEntry, FactoryRecord, LogEntry

__all__ = [
    "PROJECT_NAME",
    "__version__",
    "AggregationEntry",
    "AggregationTable",
    "BlockRangeScanner",
    "ConfigurationError",
    "FactoryClassifier",
    "FactoryDiscoveryError",
    "FactoryRecord",
    "FactoryVariant",
    "LogEntry",
    "MissingBlockNumberError",
    "ProviderError",
    "RpcProvider",
    "UnknownEventSignatureError",
    "Web3Provider",
    "discover_factories",
    "filter_by_threshold",
    "iter_block_windows",
    "scan_factories",
    "signature_for",
    "variant_for_signature",
]
