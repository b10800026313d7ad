"""
RPC provider interface used by the discovery scan.

The scanner only needs the chain head and a bounded log query, so any object
with those two methods can be plugged in. Web3Provider is the production
implementation backed by web3.py.
"""

import logging
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from web3 import Web3

from .exceptions import ProviderError
from .types import LogEntry

logger = logging.getLogger(__name__)


@runtime_checkable
class RpcProvider(Protocol):
    """Protocol for the read-only chain access discovery relies on."""

    def current_height(self) -> int:
        """Get the current chain head block number."""
        ...

    def get_logs(
        self, topics: Sequence[str], from_block: int, to_block: int
    ) -> List[LogEntry]:
        """Get logs whose topic0 is any of `topics` in [from_block, to_block]."""
        ...


class Web3Provider:
    """RpcProvider backed by a web3.py connection."""

    def __init__(self, w3: Web3, endpoint: Optional[str] = None):
        self.w3 = w3
        self.endpoint = endpoint

    @classmethod
    def from_url(cls, rpc_url: str, timeout: float = 30) -> "Web3Provider":
        """
        Connect to an HTTP(S) RPC endpoint.

        Raises:
            ProviderError: If the node cannot be reached
        """
        w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        try:
            connected = w3.is_connected()
        except Exception as e:
            raise ProviderError(
                f"Failed to connect to RPC at {rpc_url}: {e}",
                endpoint=rpc_url,
                method="is_connected",
            ) from e
        if not connected:
            raise ProviderError(
                f"Failed to connect to RPC at {rpc_url}",
                endpoint=rpc_url,
                method="is_connected",
            )
        logger.info(f"Connected to RPC at {rpc_url}")
        return cls(w3, endpoint=rpc_url)

    def current_height(self) -> int:
        try:
            return int(self.w3.eth.block_number)
        except Exception as e:
            raise ProviderError(
                f"Failed to get block number: {e}",
                endpoint=self.endpoint,
                method="eth_blockNumber",
            ) from e

    def get_logs(
        self, topics: Sequence[str], from_block: int, to_block: int
    ) -> List[LogEntry]:
        # A nested list in topic position 0 means "any of these".
        log_filter = {
            "fromBlock": from_block,
            "toBlock": to_block,
            "topics": [list(topics)],
        }
        try:
            logs = self.w3.eth.get_logs(log_filter)
        except Exception as e:
            raise ProviderError(
                f"Failed to get logs for blocks {from_block}-{to_block}: {e}",
                endpoint=self.endpoint,
                method="eth_getLogs",
                details={"from_block": from_block, "to_block": to_block},
            ) from e
        return [LogEntry.from_web3(log) for log in logs]
