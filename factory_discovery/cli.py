#!/usr/bin/env python3
"""
Factory discovery CLI

Scans the chain's history for pool/pair creation events and prints the
contracts that behave as factories of the known AMM templates.

Usage:
    # Both templates, every candidate factory
    discover-factories --rpc https://mainnet.base.org

    # V2 factories with at least 50 pairs after their first one
    discover-factories --config discovery.yaml --variant v2 --threshold 50

    # JSON to stdout for scripting (logs stay on stderr)
    discover-factories --config discovery.yaml --json > factories.json

    # Also dump Prometheus metrics for the run
    discover-factories --rpc https://mainnet.base.org --metrics-file scan.prom
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from prometheus_client import CollectorRegistry
from tabulate import tabulate

from . import logging_config
from .config import DiscoveryConfig, load_config, validate_discovery_config
from .discovery import discover_factories
from .exceptions import FactoryDiscoveryError
from .metrics import DiscoveryMetrics
from .provider import Web3Provider
from .types import FactoryRecord
from .utils import format_duration, safe_json_dump, write_text_file
from .version import get_version

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="discover-factories",
        description="Discover AMM factory contracts from their creation events",
    )
    parser.add_argument("--config", help="Path to YAML discovery configuration")
    parser.add_argument("--rpc", help="RPC URL (overrides config and env var)")
    parser.add_argument(
        "--variant",
        action="append",
        dest="variants",
        help="Factory template to discover (uniswap_v2, uniswap_v3); repeatable",
    )
    parser.add_argument(
        "--threshold",
        type=int,
        help="Minimum creation events after a factory's first one",
    )
    parser.add_argument("--step", type=int, help="Blocks per log query")
    parser.add_argument("--output", help="Write discovered factories to a JSON file")
    parser.add_argument(
        "--metrics-file", help="Write Prometheus metrics for the run to this file"
    )
    parser.add_argument(
        "--json", action="store_true", help="Print results as JSON instead of a table"
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--debug", action="store_true", help="Verbose logging")
    verbosity.add_argument(
        "--quiet", action="store_true", help="Only log warnings and errors"
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {get_version()}"
    )
    return parser


def resolve_config(args: argparse.Namespace) -> DiscoveryConfig:
    """Merge the config file (if any) with command-line overrides."""
    config = load_config(args.config) if args.config else DiscoveryConfig()

    overrides = {}
    if args.rpc:
        overrides["rpc_url"] = args.rpc
    if args.variants:
        overrides["variants"] = args.variants
    if args.threshold is not None:
        overrides["threshold"] = args.threshold
    if args.step is not None:
        overrides["step"] = args.step
    if args.output:
        overrides["output"] = args.output
    if args.metrics_file:
        overrides["metrics_file"] = args.metrics_file

    if not overrides:
        return config
    return validate_discovery_config({**config.model_dump(), **overrides})


def print_factories(factories: List[FactoryRecord], json_output: bool = False):
    # Display order only; discovery results carry no ordering.
    ordered = sorted(factories, key=lambda f: (f.creation_block, f.address))

    if json_output:
        print(safe_json_dump([f.to_dict() for f in ordered]))
        return

    if not ordered:
        print("No factories met the threshold.")
        return

    rows = [[f.variant.value, f.address, f"{f.creation_block:,}"] for f in ordered]
    print(
        tabulate(
            rows, headers=["Variant", "Address", "Creation Block"], tablefmt="grid"
        )
    )
    print(f"\n{len(ordered)} factories discovered")


def write_output(factories: List[FactoryRecord], output: Path):
    path = write_text_file(
        output, safe_json_dump([factory.to_dict() for factory in factories])
    )
    logger.info(f"Wrote {len(factories)} factories to {path}")


def write_metrics(metrics: DiscoveryMetrics, metrics_file: Path):
    path = write_text_file(metrics_file, metrics.export())
    logger.info(f"Wrote scan metrics to {path}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.debug:
        logging_config.setup_debug()
    elif args.quiet:
        logging_config.setup_minimal()
    else:
        logging_config.setup()

    load_dotenv()

    try:
        config = resolve_config(args)
        provider = Web3Provider.from_url(
            config.resolve_rpc_url(), timeout=config.request_timeout
        )

        # Per-run registry; counters cover this scan only.
        metrics = DiscoveryMetrics(CollectorRegistry())
        start_time = time.perf_counter()
        factories = discover_factories(
            config.factory_variants(),
            config.threshold,
            provider,
            config.step,
            metrics,
        )
        logger.info(
            f"Discovery finished in {format_duration(time.perf_counter() - start_time)}"
        )

        if config.output:
            write_output(factories, config.output)
        if config.metrics_file:
            write_metrics(metrics, config.metrics_file)
    except (FactoryDiscoveryError, ValueError) as e:
        logger.error(f"Factory discovery failed: {e}")
        return 1
    except OSError as e:
        logger.error(f"Failed to write results: {e}")
        return 1

    print_factories(factories, json_output=args.json)
    return 0


if __name__ == "__main__":
    sys.exit(main())
