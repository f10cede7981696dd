from pathlib import Path

import pytest
from typer.testing import CliRunner

from wextrunk import __version__
from wextrunk.cli import app

pytestmark = pytest.mark.usefixtures("isolate_logging")


def test_cli_shows_help() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "WebExtension" in result.output


def test_cli_version_command() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.output.strip() == f"wextrunk version {__version__}"


def test_cli_version_flag() -> None:
    result = CliRunner().invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_run_reads_trunk_environment(trunk_dirs: tuple[Path, Path]) -> None:
    source, staging = trunk_dirs
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["run"],
        env={
            "TRUNK_SOURCE_DIR": str(source),
            "TRUNK_STAGING_DIR": str(staging),
            "TRUNK_SERVE_PORT": "4321",
            "WEXTRUNK_TARGET": "",
        },
    )
    assert result.exit_code == 0, result.output
    assert "popup.html" in result.output
    assert not (staging / "index.html").exists()
    assert "127.0.0.1:4321" in (staging / "popup_html_shim.js").read_text(encoding="utf-8")


def test_run_options_override_environment(trunk_dirs: tuple[Path, Path]) -> None:
    source, staging = trunk_dirs
    result = CliRunner().invoke(
        app,
        [
            "run",
            "--source-dir",
            str(source),
            "--staging-dir",
            str(staging),
            "--target",
            "firefox",
            "--keep-index",
        ],
        env={"WEXTRUNK_TARGET": "chrome"},
    )
    assert result.exit_code == 0, result.output
    assert (staging / "index.html").exists()
    assert '"firefox"' in (staging / "manifest.json").read_text(encoding="utf-8")


def test_run_fails_with_exit_code_on_error(trunk_dirs: tuple[Path, Path]) -> None:
    source, staging = trunk_dirs
    result = CliRunner().invoke(
        app,
        ["run", "--source-dir", str(source), "--staging-dir", str(staging), "--target", "safari"],
    )
    assert result.exit_code == 1
    assert "Error: No manifest matches target 'safari'" in result.output


def test_run_requires_staging_dir(tmp_path: Path) -> None:
    result = CliRunner().invoke(app, ["run", "--source-dir", str(tmp_path)], env={"TRUNK_STAGING_DIR": None})
    assert result.exit_code != 0


def test_inspect_lists_outputs(trunk_dirs: tuple[Path, Path]) -> None:
    _, staging = trunk_dirs
    result = CliRunner().invoke(app, ["inspect", str(staging / "index.html")], env={"COLUMNS": "200"})
    assert result.exit_code == 0, result.output
    for name in ("popup", "options", "content.js", "manifest"):
        assert name in result.output
    assert "auto-reload found" in result.output
    # inspect never writes
    assert sorted(p.name for p in staging.iterdir()) == ["index.html"]


def test_inspect_reports_errors(tmp_path: Path) -> None:
    index = tmp_path / "index.html"
    index.write_text("<html></html>", encoding="utf-8")
    result = CliRunner().invoke(app, ["inspect", str(index)])
    assert result.exit_code == 1
    assert "No manifest was selected" in result.output
