# tests/integration/test_cli.py
"""
CLI smoke tests (no network).

Without API keys both remote providers are unavailable, so `compare` runs the
fallback path; with the mock provider in the primary slot it reports
filename-derived findings.
"""

from __future__ import annotations

import json

import main
from tests.utils import make_png


def test_compare_without_keys_reports_fallback(tmp_path, capsys, design_png, website_png):
    code = main.main(["--log-level", "ERROR", "compare", str(design_png), str(website_png)])
    out = capsys.readouterr().out
    assert code == 0
    assert "AI analysis unavailable" in out
    assert "Primary Button Color Mismatch" in out


def test_compare_json_with_mock_provider(tmp_path, capsys, monkeypatch, design_png):
    monkeypatch.setenv("PIXELMATCH_PRIMARY_PROVIDER", "mock")
    site = make_png(tmp_path, "live_color.png")
    code = main.main(["compare", str(design_png), str(site), "--project-name", "Docs", "--json"])
    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    assert payload["comparison"]["used_fallback"] is False
    assert [d["type"] for d in payload["discrepancies"]] == ["color"]
    assert payload["discrepancies"][0]["status"] == "open"


def test_show_and_activities_with_database(tmp_path, capsys, monkeypatch, design_png, website_png):
    monkeypatch.setenv("PIXELMATCH_USE_DATABASE", "1")
    monkeypatch.setenv("PIXELMATCH_DATABASE_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("PIXELMATCH_PRIMARY_PROVIDER", "mock")

    assert main.main(["compare", str(design_png), str(website_png), "--project-name", "Site", "--json"]) == 0
    comparison_id = json.loads(capsys.readouterr().out)["comparison"]["id"]

    assert main.main(["show", str(comparison_id)]) == 0
    detail = json.loads(capsys.readouterr().out)
    assert detail["id"] == comparison_id
    assert detail["used_fallback"] is True

    assert main.main(["activities", "1"]) == 0
    feed = json.loads(capsys.readouterr().out)
    assert [a["type"] for a in feed] == ["comparison_run", "project_created"]


def test_unknown_comparison_exits_nonzero(capsys):
    assert main.main(["show", "77"]) == 1
    assert "Comparison 77 not found" in capsys.readouterr().err


def test_provider_flag_selects_secondary_slot(monkeypatch):
    args = main.parse_args(["compare", "a.png", "b.png", "--provider", "anthropic"])
    assert main._settings_for(args).provider_preference == "secondary"
    args = main.parse_args(["compare", "a.png", "b.png", "--provider", "primary"])
    assert main._settings_for(args).provider_preference == "primary"
