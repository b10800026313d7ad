"""
Integration tests for the discover-factories CLI
"""

import json
import logging
from unittest.mock import Mock, patch

import pytest
import yaml
from web3 import Web3

from factory_discovery.cli import main
from factory_discovery.exceptions import ProviderError
from factory_discovery.signatures import (
    PAIR_CREATED_EVENT_SIGNATURE,
    POOL_CREATED_EVENT_SIGNATURE,
)
from factory_discovery.types import LogEntry
from factory_discovery.version import __version__

V2_FACTORY = Web3.to_checksum_address("0x" + "11" * 20)
V3_FACTORY = Web3.to_checksum_address("0x" + "22" * 20)


@pytest.fixture
def provider():
    """Provider with one busy V2 factory and one single-pool V3 factory"""
    logs = [
        LogEntry.create(V2_FACTORY, [PAIR_CREATED_EVENT_SIGNATURE], 100),
        LogEntry.create(V2_FACTORY, [PAIR_CREATED_EVENT_SIGNATURE], 150),
        LogEntry.create(V2_FACTORY, [PAIR_CREATED_EVENT_SIGNATURE], 220),
        LogEntry.create(V3_FACTORY, [POOL_CREATED_EVENT_SIGNATURE], 180),
    ]
    fake = Mock()
    fake.current_height.return_value = 300

    def get_logs(topics, from_block, to_block):
        wanted = {Web3.to_bytes(hexstr=t) for t in topics}
        return [
            log
            for log in logs
            if from_block <= log.block_number <= to_block and log.topics[0] in wanted
        ]

    fake.get_logs.side_effect = get_logs
    return fake


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo the console handler the CLI installs on the root logger"""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def web3_provider(provider):
    with patch("factory_discovery.cli.Web3Provider") as mock_cls:
        mock_cls.from_url.return_value = provider
        yield mock_cls


def test_json_output(web3_provider, capsys):
    exit_code = main(["--rpc", "http://node", "--step", "100", "--json"])

    assert exit_code == 0
    web3_provider.from_url.assert_called_once_with("http://node", timeout=30)
    results = json.loads(capsys.readouterr().out)
    assert results == [
        {"variant": "uniswap_v2", "address": V2_FACTORY, "creation_block": 100},
        {"variant": "uniswap_v3", "address": V3_FACTORY, "creation_block": 180},
    ]


def test_threshold_filters_single_pool_factory(web3_provider, capsys):
    exit_code = main(["--rpc", "http://node", "--threshold", "1", "--json"])

    assert exit_code == 0
    results = json.loads(capsys.readouterr().out)
    assert [r["address"] for r in results] == [V2_FACTORY]


def test_variant_selection(web3_provider, capsys):
    exit_code = main(["--rpc", "http://node", "--variant", "v3", "--json"])

    assert exit_code == 0
    results = json.loads(capsys.readouterr().out)
    assert [r["variant"] for r in results] == ["uniswap_v3"]


def test_table_output(web3_provider, capsys):
    assert main(["--rpc", "http://node"]) == 0
    out = capsys.readouterr().out
    assert "Creation Block" in out
    assert V2_FACTORY in out
    assert "2 factories discovered" in out


def test_config_file_and_output(web3_provider, tmp_path, capsys):
    output = tmp_path / "results" / "factories.json"
    config_path = tmp_path / "discovery.yaml"
    config_path.write_text(
        yaml.safe_dump(
            {
                "rpc_url": "http://configured-node",
                "threshold": 5,
                "step": 50,
                "request_timeout": 10,
                "output": str(output),
            }
        )
    )

    # Command-line threshold overrides the file's.
    exit_code = main(["--config", str(config_path), "--threshold", "2"])

    assert exit_code == 0
    web3_provider.from_url.assert_called_once_with(
        "http://configured-node", timeout=10
    )
    written = json.loads(output.read_text())
    assert [r["address"] for r in written] == [V2_FACTORY]


def test_provider_failure_exit_code(web3_provider, provider, capsys):
    provider.get_logs.side_effect = ProviderError("node unavailable")

    assert main(["--rpc", "http://node"]) == 1
    assert capsys.readouterr().out == ""


def test_missing_rpc_url(web3_provider, monkeypatch):
    monkeypatch.delenv("RPC_URL", raising=False)
    with patch("factory_discovery.cli.load_dotenv"):
        assert main([]) == 1
    web3_provider.from_url.assert_not_called()


def test_invalid_step(web3_provider):
    assert main(["--rpc", "http://node", "--step", "0"]) == 1


def test_json_stdout_stays_parseable_with_info_logging(web3_provider, capsys):
    exit_code = main(["--rpc", "http://node", "--step", "100", "--json"])

    assert exit_code == 0
    captured = capsys.readouterr()
    results = json.loads(captured.out)
    assert {r["address"] for r in results} == {V2_FACTORY, V3_FACTORY}
    assert "Searching blocks 0-99" in captured.err
    assert "Chain head at block 300" in captured.err


def test_quiet_suppresses_info_logs(web3_provider, capsys):
    assert main(["--rpc", "http://node", "--json", "--quiet"]) == 0
    captured = capsys.readouterr()
    json.loads(captured.out)
    assert "Searching blocks" not in captured.err


def test_unwritable_output_exit_code(web3_provider, tmp_path, capsys):
    blocker = tmp_path / "results"
    blocker.write_text("not a directory")

    exit_code = main(["--rpc", "http://node", "--output", str(blocker / "out.json")])

    assert exit_code == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Failed to write results" in captured.err


def test_metrics_file(web3_provider, tmp_path):
    metrics_file = tmp_path / "metrics" / "scan.prom"

    exit_code = main(
        ["--rpc", "http://node", "--step", "100", "--metrics-file", str(metrics_file)]
    )

    assert exit_code == 0
    exposition = metrics_file.read_text()
    assert "factory_discovery_windows_scanned_total 3.0" in exposition
    assert 'factory_discovery_logs_classified_total{outcome="known"} 2.0' in exposition
    assert "factory_discovery_scan_duration_seconds_count 1.0" in exposition


def test_version(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["--version"])
    assert exc_info.value.code == 0
    assert capsys.readouterr().out.strip() == f"discover-factories {__version__}"
