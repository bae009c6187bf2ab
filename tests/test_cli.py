"""Tests for the click entry point."""

from click.testing import CliRunner

from glowroot_exporter.main import cli


def test_snapshot_mock_without_config(tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(tmp_path / "missing.yaml"), "--mock", "snapshot"])
    assert result.exit_code == 0, result.output
    assert "glowroot_group_info" in result.output
    assert "glowroot_member_of_group" in result.output


def test_missing_config_is_fatal(tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(tmp_path / "missing.yaml"), "snapshot"])
    assert result.exit_code == 1
    assert "Error loading config" in result.output


def test_unreachable_server_snapshot_fails(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text(
        "server:\n"
        "  glowroot_url: http://127.0.0.1:1\n"
        "  request_timeout_seconds: 0.5\n"
    )
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(config), "snapshot"])
    assert result.exit_code == 1
    assert "Could not list agent rollups" in result.output


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "glowroot-exporter" in result.output
