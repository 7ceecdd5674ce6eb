"""Tests for the command line interface."""

import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from post_catalog import __version__, config
from post_catalog.cli.main import app

runner = CliRunner()


@pytest.fixture
def workdir(monkeypatch):
    """Point the store at a temporary database and ignore local settings."""
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.setattr(config, "ENV_PATHS", [])
        for name in ("TELEGRAM_TOKEN", "TELEGRAM_CHAT_ID", "POST_CATALOG_CONFIG"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("DATABASE_URL", str(Path(tmpdir) / "cli.db"))
        yield Path(tmpdir)


class TestCli:
    """Tests for top-level commands."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_init_db(self, workdir: Path) -> None:
        """Test init-db creates the database file."""
        result = runner.invoke(app, ["init-db"])
        assert result.exit_code == 0
        assert (workdir / "cli.db").exists()

    def test_check_config_without_listener(self, workdir: Path) -> None:
        """Test check-config reports a missing token without failing."""
        result = runner.invoke(app, ["check-config"])
        assert result.exit_code == 0
        assert "TELEGRAM_TOKEN is required" in result.output
        assert "cli.db" in result.output

    def test_check_config_invalid_value(self, workdir: Path, monkeypatch) -> None:
        """Test a malformed setting fails check-config."""
        monkeypatch.setenv("RELAY_CAPACITY", "lots")
        result = runner.invoke(app, ["check-config"])
        assert result.exit_code == 1


class TestIngestCli:
    """Tests for the ingest sub-commands."""

    def test_parse_valid_post(self, workdir: Path) -> None:
        """Test a valid post is shown as a record."""
        post = workdir / "post.txt"
        post.write_text("Name: Foo\nType: Library\nTags: #go #backend #us")

        result = runner.invoke(app, ["ingest", "parse", str(post), "--url", "http://x"])
        assert result.exit_code == 0
        assert "Foo" in result.output
        assert "go, backend, us" in result.output

    def test_parse_rejected_post(self, workdir: Path) -> None:
        """Test a post missing a field is rejected."""
        post = workdir / "post.txt"
        post.write_text("Name: Foo\nTags: a")

        result = runner.invoke(app, ["ingest", "parse", str(post), "--url", "http://x"])
        assert result.exit_code == 1
        assert "type" in result.output

    def test_parse_missing_file(self, workdir: Path) -> None:
        result = runner.invoke(app, ["ingest", "parse", str(workdir / "nope.txt")])
        assert result.exit_code == 1

    def test_listen_requires_credentials(self, workdir: Path) -> None:
        """Test listen refuses to start without a channel."""
        result = runner.invoke(app, ["ingest", "listen"])
        assert result.exit_code == 1
        assert "TELEGRAM_TOKEN" in result.output

    def test_stats_empty_store(self, workdir: Path) -> None:
        """Test stats on a fresh database."""
        runner.invoke(app, ["init-db"])
        result = runner.invoke(app, ["ingest", "stats"])
        assert result.exit_code == 0
        assert "Posts:" in result.output
