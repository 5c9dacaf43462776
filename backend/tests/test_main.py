"""Tests for the command-line entry point."""

import pytest

from main import build_parser, cmd_render, telemetry_dsn

SHA = "3f9a2c71d0b84e6fa15c9e07b2d4a8f16c0e5b93"


def test_render_writes_svg(export_dir, capsys):
    args = build_parser().parse_args(
        [
            "render",
            SHA,
            "anza-xyz/agave",
            "Fix rent",
            "octocat",
            "--size",
            "320",
            "--out",
            str(export_dir),
        ]
    )
    assert cmd_render(args) == 0

    out = export_dir / "shard-3f9a2c71.svg"
    doc = out.read_text(encoding="utf-8")
    assert 'viewBox="0 0 320 320"' in doc
    assert "octocat" in doc
    printed = capsys.readouterr().out
    assert "Lineage: Agave" in printed
    assert str(out) in printed


def test_render_rejects_bad_identifier(export_dir, capsys):
    args = build_parser().parse_args(["render", "zzzz", "x/y", "--out", str(export_dir)])
    assert cmd_render(args) == 2
    assert "not hexadecimal" in capsys.readouterr().err
    assert list(export_dir.iterdir()) == []


def test_render_rejects_missing_out_dir(export_dir, capsys):
    missing = export_dir / "nope"
    args = build_parser().parse_args(["render", SHA, "x/y", "--out", str(missing)])
    assert cmd_render(args) == 2
    assert "does not exist" in capsys.readouterr().err


def test_command_is_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_telemetry_disabled_without_consent(monkeypatch, tmp_path):
    monkeypatch.setattr("main.app_home", lambda: str(tmp_path))
    monkeypatch.setenv("SENTRY_DSN", "https://key@example.invalid/1")
    assert telemetry_dsn() == ""

    (tmp_path / "telemetry_consent").write_text("yes\n")
    assert telemetry_dsn() == "https://key@example.invalid/1"

    (tmp_path / "telemetry_consent").write_text("no")
    assert telemetry_dsn() == ""
