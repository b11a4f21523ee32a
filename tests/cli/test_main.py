"""Tests for the CLI entry point and gateway lifecycle."""

from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner

from booksearch.cli.main import cli, connect_gateway, create_gateway
from booksearch.config import SearchSettings
from booksearch.search import BackendError, QueryError
from booksearch.search.backends.memory import MemoryGateway
from booksearch.search.backends.whoosh import WhooshGateway


class TestCLIEntryPoint:
    """Test the main CLI entry point."""

    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "ordered-proximity" in result.output
        for command in ("search", "get", "add", "delete", "stats"):
            assert command in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "booksearch version" in result.output

    def test_invalid_config_file(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("backend: carrier-pigeon\n")

        result = CliRunner().invoke(cli, ["--config", str(path), "stats"])

        assert result.exit_code == 1
        assert "Error loading configuration" in result.output

    def test_unreachable_backend(self, config_file):
        gateway = Mock()
        gateway.ping.return_value = False

        with patch("booksearch.cli.main.create_gateway", return_value=gateway):
            result = CliRunner().invoke(cli, ["--config", str(config_file), "stats"])

        assert result.exit_code == 1
        assert "not reachable after 2 attempts" in result.output
        assert gateway.ping.call_count == 2

    def test_gateway_closed_after_command(self, config_file):
        gateway = MemoryGateway()
        gateway.close = Mock()

        with patch("booksearch.cli.main.create_gateway", return_value=gateway):
            result = CliRunner().invoke(cli, ["--config", str(config_file), "stats"])

        assert result.exit_code == 0, result.output
        gateway.close.assert_called_once()

    def test_debug_reraises(self, config_file):
        gateway = Mock()
        gateway.ping.return_value = True
        gateway.get_statistics.side_effect = RuntimeError("boom")

        with patch("booksearch.cli.main.create_gateway", return_value=gateway):
            result = CliRunner().invoke(
                cli, ["--debug", "--config", str(config_file), "stats"]
            )

        assert isinstance(result.exception, RuntimeError)

    def test_memory_backend_option(self):
        result = CliRunner().invoke(cli, ["--backend", "memory", "--no-color", "stats"])

        assert result.exit_code == 0, result.output
        assert "MemoryGateway" in result.output


class TestCreateGateway:
    """Test gateway construction from settings."""

    def test_memory(self):
        assert isinstance(create_gateway(SearchSettings(backend="memory")), MemoryGateway)

    def test_whoosh(self, tmp_path):
        settings = SearchSettings(backend="whoosh", index_dir=str(tmp_path / "index"))

        gateway = create_gateway(settings)
        try:
            assert isinstance(gateway, WhooshGateway)
            assert gateway.index_dir == tmp_path / "index"
        finally:
            gateway.close()

    def test_elasticsearch(self):
        from booksearch.search.backends.elastic import ElasticsearchGateway

        settings = SearchSettings(backend="elasticsearch", index_name="library")

        gateway = create_gateway(settings)

        assert isinstance(gateway, ElasticsearchGateway)
        assert gateway.index_name == "library"


class TestConnectGateway:
    """Test the health-check retry loop."""

    def test_returns_once_healthy(self):
        gateway = Mock()
        gateway.ping.side_effect = [False, False, True]

        with patch("booksearch.cli.main.time.sleep") as sleep:
            assert connect_gateway(gateway, retries=5, interval=3.0) is gateway

        assert gateway.ping.call_count == 3
        sleep.assert_called_with(3.0)
        assert sleep.call_count == 2

    def test_gives_up(self):
        gateway = Mock()
        gateway.ping.return_value = False

        with patch("booksearch.cli.main.time.sleep"):
            with pytest.raises(BackendError):
                connect_gateway(gateway, retries=3, interval=0)

        assert gateway.ping.call_count == 3

    def test_query_error_is_not_backend_error(self):
        assert not issubclass(QueryError, BackendError)
