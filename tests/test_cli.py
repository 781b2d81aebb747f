"""Tests for the md2word-mcp command line."""

from __future__ import annotations

import json

from typer.testing import CliRunner

from md2word_mcp import cli

runner = CliRunner()


def test_show_config_prints_settings(monkeypatch):
    monkeypatch.setenv("BASEPATH", "/docs")

    result = runner.invoke(cli.app, ["show-config"])

    assert result.exit_code == 0
    config = json.loads(result.stdout)
    assert config["basepath"] == "/docs"
    assert "file_expiry_minutes" in config


def test_serve_passes_overrides_to_uvicorn(monkeypatch):
    captured = {}

    def fake_run(app, host, port, log_config):
        captured.update(app=app, host=host, port=port)

    monkeypatch.setattr(cli.uvicorn, "run", fake_run)

    result = runner.invoke(cli.app, ["serve", "--port", "8123", "--basepath", "/x"])

    assert result.exit_code == 0
    assert captured["port"] == 8123
    assert captured["host"] == "0.0.0.0"
    assert captured["app"].state.settings.basepath == "/x"
