"""CLI tests."""
from typer.testing import CliRunner

from docsentinel import __version__
from docsentinel.cli import app

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_plugins():
    result = runner.invoke(app, ["plugins"])
    assert result.exit_code == 0
    assert "AllMaxTime" in result.output
    assert "LogThreadDump" in result.output


def test_show(tmp_path):
    (tmp_path / "sentinel.yaml").write_text(
        "ENABLED: true\nPOLLING_INTERVAL_MINUTES: 5\nPROTOCOL:\n  - agent_protocol.yaml\n  - missing.yaml\n"
    )
    (tmp_path / "agent_protocol.yaml").write_text(
        "ENABLED: true\n"
        "ACTION: Recover\n"
        "RULE_ID:\n"
        "  - LONG\n"
        "LONG_RULE: AnyMaxTime\n"
        "LONG_PLACE_MATCHER: thePlace\n"
        "LONG_TIME_LIMIT_MINUTES: 30\n"
    )
    result = runner.invoke(app, ["show", "--config-dir", str(tmp_path)])
    assert result.exit_code == 0
    assert "enabled" in result.output
    assert "polling every 5 minutes" in result.output
    assert "AnyMaxTime" in result.output
    assert "LONG" in result.output
    assert "missing.yaml" in result.output


def test_show_without_configuration(tmp_path):
    result = runner.invoke(app, ["show", "-c", str(tmp_path)])
    assert result.exit_code == 1
    assert "Error" in result.output
