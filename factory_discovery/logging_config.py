"""
Logging configuration for discovery runs.

Log lines go to stderr so that stdout carries only the discovery results
(table or JSON) and can be piped.

Usage:
    from factory_discovery import logging_config
    logging_config.setup()
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(message)s"

# web3 logs every JSON-RPC request at DEBUG; a full scan issues thousands.
RPC_LOGGERS = ("web3.providers", "web3.manager", "web3.RequestManager", "urllib3")


def setup(level=logging.INFO, stream=None, show_rpc=False):
    """
    Route all logging to a single console handler.

    Args:
        level: Level for the root and factory_discovery loggers
        stream: Output stream, stderr by default
        show_rpc: Keep per-request web3/urllib3 logs at `level`
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(stream if stream is not None else sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%H:%M:%S"))
    root.addHandler(console)

    rpc_level = level if show_rpc else max(level, logging.WARNING)
    for name in RPC_LOGGERS:
        logging.getLogger(name).setLevel(rpc_level)

    logging.getLogger("factory_discovery").setLevel(level)


def setup_minimal():
    """Only warnings and errors."""
    setup(level=logging.WARNING)


def setup_debug():
    """Every classified log, threshold decision and RPC request."""
    setup(level=logging.DEBUG, show_rpc=True)
