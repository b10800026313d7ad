"""
Factory discovery by scanning historical creation events.

Walks the chain from genesis to head in fixed-size block windows, asking the
provider for every log whose topic0 is a known pool/pair creation event. Each
emitting contract is classified as a factory of the matching template, and
the number of creation events seen after its first one is counted. Only
factories whose count reaches the caller's threshold are returned.

The whole run is sequential: one provider request at a time, windows in
increasing block order. That ordering is what makes creation_block the height
of the first matching log for every factory.
"""

import logging
import time
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple, TypeVar

from .exceptions import (
    MissingBlockNumberError,
    ProviderError,
    UnknownEventSignatureError,
)
from .metrics import DiscoveryMetrics
from .provider import RpcProvider
from .signatures import FactoryVariant, topic_filter, variant_for_signature
from .types import AggregationEntry, FactoryRecord, LogEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")


def iter_block_windows(head: int, step: int) -> Iterator[Tuple[int, int]]:
    """
    Yield the inclusive (from_block, to_block) windows covering [0, head].

    Each window starts exactly `step` blocks after the previous one; only the
    last window's end is clamped to `head`. Iteration stops once the next
    start reaches `head`, so a head that lands exactly on a window boundary
    is not queried on its own.
    """
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")

    from_block = 0
    while from_block < head:
        to_block = min(from_block + step - 1, head)
        yield from_block, to_block
        from_block += step


class AggregationTable:
    """Discovered factories keyed by address, with their event counts."""

    def __init__(self):
        self._entries: Dict[str, AggregationEntry] = {}

    def get(self, address: str) -> Optional[AggregationEntry]:
        return self._entries.get(address)

    def insert(self, factory: FactoryRecord) -> AggregationEntry:
        """Add a newly discovered factory with a count of zero."""
        if factory.address in self._entries:
            raise ValueError(f"Factory {factory.address} is already tracked")
        entry = AggregationEntry(factory=factory)
        self._entries[factory.address] = entry
        return entry

    def entries(self) -> List[AggregationEntry]:
        return list(self._entries.values())

    def counts(self) -> Dict[str, int]:
        """Map of factory address to event count."""
        return {addr: entry.event_count for addr, entry in self._entries.items()}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, address: str) -> bool:
        return address in self._entries

    def __iter__(self) -> Iterator[AggregationEntry]:
        return iter(self._entries.values())


class FactoryClassifier:
    """
    Classifies creation logs into an AggregationTable.

    The log that first reveals a factory creates its record with a count of
    zero; every later log from the same address adds one. A factory that
    emitted a single creation event in the scanned range therefore ends with
    a count of 0.
    """

    def __init__(
        self, table: AggregationTable, metrics: Optional[DiscoveryMetrics] = None
    ):
        self.table = table
        self.metrics = metrics

    def classify(self, log: LogEntry) -> AggregationEntry:
        """
        Record one creation log.

        Raises:
            UnknownEventSignatureError: If a new address's topic0 is not a
                known creation event
            MissingBlockNumberError: If a new address's log has no block number
        """
        logger.debug(f"Found matching event at factory {log.address}")

        entry = self.table.get(log.address)
        if entry is not None:
            entry.event_count += 1
            logger.debug(
                f"Increasing factory {log.address} AMMs to {entry.event_count}"
            )
            if self.metrics:
                self.metrics.record_known_factory_event()
            return entry

        if not log.topics:
            raise UnknownEventSignatureError(
                f"Log from {log.address} carries no topics", address=log.address
            )

        try:
            variant = variant_for_signature(log.topics[0])
        except UnknownEventSignatureError as e:
            e.address = log.address
            raise

        if log.block_number is None:
            raise MissingBlockNumberError(
                f"Creation log from {log.address} has no block number",
                address=log.address,
            )

        factory = FactoryRecord(
            variant=variant,
            address=log.address,
            creation_block=int(log.block_number),
        )
        logger.info(
            f"Discovered new {variant.value} factory {log.address} "
            f"(block {factory.creation_block})"
        )
        if self.metrics:
            self.metrics.record_new_factory(variant.value)
        return self.table.insert(factory)


class BlockRangeScanner:
    """
    Queries creation logs window by window from genesis to the chain head.

    Args:
        provider: Chain access used for the head height and log queries
        variants: Factory templates whose creation events are searched for
        step: Number of blocks per log query
    """

    def __init__(
        self,
        provider: RpcProvider,
        variants: Sequence[FactoryVariant],
        step: int,
        metrics: Optional[DiscoveryMetrics] = None,
    ):
        if step <= 0:
            raise ValueError(f"step must be positive, got {step}")
        self.provider = provider
        self.variants = list(variants)
        self.step = step
        self.metrics = metrics
        self.topics = topic_filter(self.variants)

    def scan(self, table: AggregationTable) -> int:
        """
        Feed every matching log from block 0 to head into `table`.

        Returns:
            Number of windows queried

        Raises:
            ProviderError: If the height or any log query fails
        """
        classifier = FactoryClassifier(table, self.metrics)
        head = self._call("eth_blockNumber", self.provider.current_height)
        logger.debug(f"Event signatures: {self.topics}")
        logger.info(f"Chain head at block {head:,}")

        windows = 0
        for from_block, to_block in iter_block_windows(head, self.step):
            logger.info(f"Searching blocks {from_block}-{to_block}")
            logs = self._call(
                "eth_getLogs",
                lambda: self.provider.get_logs(self.topics, from_block, to_block),
            )
            windows += 1
            if self.metrics:
                self.metrics.record_window()

            for log in logs:
                classifier.classify(log)

        return windows

    def _call(self, method: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(
                f"Provider call {method} failed: {e}", method=method
            ) from e


def filter_by_threshold(
    table: AggregationTable, threshold: int
) -> List[FactoryRecord]:
    """
    Select factories whose event count is at least `threshold`.

    A threshold of 0 selects every discovered factory. The order of the
    returned records is unspecified.
    """
    logger.debug(f"Checking threshold {threshold}")
    filtered = []
    for entry in table:
        address = entry.factory.address
        if entry.event_count >= threshold:
            logger.debug(
                f"Factory {address} has {entry.event_count} AMMs => adding"
            )
            filtered.append(entry.factory)
        else:
            logger.debug(
                f"Factory {address} has {entry.event_count} AMMs => skipping"
            )
    return filtered


def _validate_arguments(variants: Sequence[FactoryVariant], step: int):
    if not variants:
        raise ValueError("At least one factory variant is required")
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")


def scan_factories(
    variants: Sequence[FactoryVariant],
    provider: RpcProvider,
    step: int,
    metrics: Optional[DiscoveryMetrics] = None,
) -> AggregationTable:
    """
    Scan the whole chain and return the finished aggregation table.

    Raises:
        ValueError: If no variants are given or step is not positive
        ProviderError: If the provider fails
        MissingBlockNumberError: If a creation log has no block number
        UnknownEventSignatureError: If a log matches no known variant
    """
    _validate_arguments(variants, step)

    start_time = time.perf_counter()
    table = AggregationTable()
    windows = BlockRangeScanner(provider, variants, step, metrics).scan(table)
    duration = time.perf_counter() - start_time

    if metrics:
        metrics.record_scan_duration(duration)
    logger.info(
        f"Scanned {windows} windows in {duration:.2f}s, "
        f"found {len(table)} candidate factories"
    )
    return table


def discover_factories(
    variants: Sequence[FactoryVariant],
    threshold: int,
    provider: RpcProvider,
    step: int,
    metrics: Optional[DiscoveryMetrics] = None,
) -> List[FactoryRecord]:
    """
    Discover factory contracts of the given templates.

    Args:
        variants: Factory templates to look for
        threshold: Minimum number of creation events after the first one
        provider: Chain access
        step: Blocks per log query
        metrics: Optional metrics sink

    Returns:
        Factories meeting the threshold, in no particular order

    Raises:
        ValueError: On a negative threshold, empty variants or non-positive step
        ProviderError: If the provider fails; no partial result is returned
        MissingBlockNumberError: If a creation log has no block number
        UnknownEventSignatureError: If a log matches no known variant
    """
    if threshold < 0:
        raise ValueError(f"threshold must not be negative, got {threshold}")

    logger.info(
        f"Discovering new factories (threshold={threshold}, step={step}, "
        f"variants={[v.value for v in variants]})"
    )
    table = scan_factories(variants, provider, step, metrics)
    factories = filter_by_threshold(table, threshold)
    logger.info(f"All factories discovered: {len(factories)} meet the threshold")
    return factories
