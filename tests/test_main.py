"""Tests for the entry point and its exit-code mapping."""

import sys
from argparse import Namespace
from pathlib import Path
from unittest.mock import Mock, patch

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from community_analytics.config import Config
from community_analytics.errors import ConfigurationError, ConfigurationMissingError, UpstreamError
from community_analytics.main import generate_analytics


def _args(**overrides) -> Namespace:
    values = {
        "org": "CircuitVerse",
        "days": 180,
        "max_repos": 15,
        "output": "out/analytics.json",
        "log_level": "INFO",
    }
    values.update(overrides)
    return Namespace(**values)


def _config() -> Config:
    return Config(organization="CircuitVerse", token="secret", output_path=Path("out/analytics.json"))


def test_generate_analytics_success(capsys):
    """Verify a successful run wires components, publishes the snapshot and returns 0."""
    config = _config()
    run = Mock()
    run.failed_repositories = []
    orchestrator = Mock()
    orchestrator.run.return_value = run
    sink = Mock()
    sink.publish.return_value = Path("out/analytics.json")

    with patch("community_analytics.main.parse_args", return_value=_args()) as parse_args_mock, patch(
        "community_analytics.main.load_config", return_value=config
    ) as load_config_mock, patch(
        "community_analytics.main.GitHubClient"
    ) as client_ctor_mock, patch(
        "community_analytics.main.AnalyticsOrchestrator", return_value=orchestrator
    ) as orchestrator_ctor_mock, patch(
        "community_analytics.main.JsonFileSink", return_value=sink
    ) as sink_ctor_mock, patch(
        "community_analytics.main.generate_summary", return_value="SUMMARY"
    ) as summary_mock:
        exit_code = generate_analytics([])

    assert exit_code == 0
    parse_args_mock.assert_called_once_with([])
    load_config_mock.assert_called_once_with(
        organization="CircuitVerse",
        days=180,
        max_repositories=15,
        output_path="out/analytics.json",
    )
    client_ctor_mock.assert_called_once_with(config=config)
    orchestrator_ctor_mock.assert_called_once_with(config=config, client=client_ctor_mock.return_value)
    sink_ctor_mock.assert_called_once_with(config.output_path)
    sink.publish.assert_called_once_with(run.snapshot)
    summary_mock.assert_called_once_with(run.snapshot, 180)
    output = capsys.readouterr().out
    assert "SUMMARY" in output
    assert "analytics.json" in output


def test_generate_analytics_missing_token_skips_cleanly():
    """Verify a missing credential exits with 0 before any client is created."""
    with patch("community_analytics.main.parse_args", return_value=_args()), patch(
        "community_analytics.main.load_config",
        side_effect=ConfigurationMissingError("GITHUB_TOKEN is not set."),
    ), patch("community_analytics.main.GitHubClient") as client_ctor_mock:
        exit_code = generate_analytics([])

    assert exit_code == 0
    client_ctor_mock.assert_not_called()


def test_generate_analytics_invalid_configuration_returns_configuration_exit_code():
    """Verify invalid configuration values map to exit code 2."""
    with patch("community_analytics.main.parse_args", return_value=_args()), patch(
        "community_analytics.main.load_config",
        side_effect=ConfigurationError("Invalid value for 'organization'"),
    ):
        exit_code = generate_analytics([])

    assert exit_code == 2


def test_generate_analytics_upstream_error_returns_upstream_exit_code():
    """Verify an upstream failure escaping the run maps to exit code 4."""
    orchestrator = Mock()
    orchestrator.run.side_effect = UpstreamError("GitHub API 401", status_code=401, body="Bad credentials")

    with patch("community_analytics.main.parse_args", return_value=_args()), patch(
        "community_analytics.main.load_config", return_value=_config()
    ), patch("community_analytics.main.GitHubClient"), patch(
        "community_analytics.main.AnalyticsOrchestrator", return_value=orchestrator
    ), patch("community_analytics.main.JsonFileSink") as sink_ctor_mock:
        exit_code = generate_analytics([])

    assert exit_code == 4
    sink_ctor_mock.assert_not_called()


def test_generate_analytics_unexpected_error_returns_generic_exit_code():
    """Verify unexpected exceptions are mapped to the generic non-zero exit code."""
    with patch("community_analytics.main.parse_args", side_effect=RuntimeError("boom")):
        exit_code = generate_analytics([])

    assert exit_code == 1
