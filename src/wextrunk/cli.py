"""CLI interface for wextrunk."""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from wextrunk import __version__
from wextrunk.errors import WextrunkError
from wextrunk.ingest.metadata import collect_metadata_from_file
from wextrunk.model.config import (
    DEFAULT_INDEX_NAME,
    DEFAULT_SERVE_ADDRESS,
    DEFAULT_SERVE_PORT,
    DEFAULT_WS_BASE,
    ENV_SERVE_ADDRESS,
    ENV_SERVE_PORT,
    ENV_SOURCE_DIR,
    ENV_STAGING_DIR,
    ENV_TARGET,
    ENV_WS_BASE,
    RunConfig,
)
from wextrunk.pipeline import run_pipeline
from wextrunk.template.script import ScriptTemplate

app = typer.Typer(
    name="wextrunk",
    help="Split Trunk's index.html into WebExtension pages, scripts and manifest.",
    no_args_is_help=True,
)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(show_path=False, show_time=False)],
        force=True,
    )


def _fail(exc: Exception) -> typer.Exit:
    typer.secho(f"Error: {exc}", err=True, fg=typer.colors.RED)
    return typer.Exit(1)


@app.command()
def run(
    source_dir: Annotated[
        Path,
        typer.Option(
            "--source-dir",
            envvar=ENV_SOURCE_DIR,
            help="Directory the manifest href is resolved against",
            file_okay=False,
        ),
    ],
    staging_dir: Annotated[
        Path,
        typer.Option(
            "--staging-dir",
            envvar=ENV_STAGING_DIR,
            help="Trunk staging directory holding index.html; outputs are written here",
            file_okay=False,
        ),
    ],
    target: Annotated[
        str | None,
        typer.Option(
            "--target",
            envvar=ENV_TARGET,
            help="Select the manifest whose target attribute matches (default: the default manifest)",
        ),
    ] = None,
    serve_address: Annotated[
        str,
        typer.Option("--serve-address", envvar=ENV_SERVE_ADDRESS, help="trunk serve address"),
    ] = DEFAULT_SERVE_ADDRESS,
    serve_port: Annotated[
        str,
        typer.Option("--serve-port", envvar=ENV_SERVE_PORT, help="trunk serve port"),
    ] = DEFAULT_SERVE_PORT,
    ws_base: Annotated[
        str,
        typer.Option("--ws-base", envvar=ENV_WS_BASE, help="Auto-reload websocket base path"),
    ] = DEFAULT_WS_BASE,
    index: Annotated[
        str,
        typer.Option("--index", help="Name of Trunk's output HTML in the staging directory"),
    ] = DEFAULT_INDEX_NAME,
    keep_index: Annotated[
        bool,
        typer.Option("--keep-index/--remove-index", help="Keep the input HTML after a successful run"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """
    Post-build hook: write pages, shim scripts, scripts and manifest.json.

    Intended to run as a Trunk post_build hook, where TRUNK_SOURCE_DIR,
    TRUNK_STAGING_DIR and the TRUNK_SERVE_* variables are set by Trunk.

    Example Trunk.toml:

        [[hooks]]
        stage = "post_build"
        command = "wextrunk"
        command_arguments = ["run"]
    """
    setup_logging(verbose)
    config = RunConfig.from_cli(
        source_dir=source_dir,
        staging_dir=staging_dir,
        target=target,
        serve_address=serve_address,
        serve_port=serve_port,
        ws_base=ws_base,
        index=index,
        keep_index=keep_index,
    )

    try:
        summary = run_pipeline(config)
    except WextrunkError as exc:
        raise _fail(exc) from exc

    for path in summary.written:
        typer.echo(f"✅ {path}")


@app.command()
def inspect(
    index: Annotated[
        Path,
        typer.Argument(
            help="Path to a Trunk-generated index.html",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    target: Annotated[
        str | None,
        typer.Option("--target", envvar=ENV_TARGET, help="Manifest target to select"),
    ] = None,
) -> None:
    """Show what a run would produce from INDEX, without writing anything."""
    try:
        extraction = collect_metadata_from_file(index, target)
        template = ScriptTemplate.parse(extraction.script_contents)
    except WextrunkError as exc:
        raise _fail(exc) from exc

    table = Table(title=f"wextrunk outputs for {index.name}")
    table.add_column("Kind")
    table.add_column("Output")
    table.add_column("wasm-fn")
    table.add_column("Reload")
    table.add_column("Notes")

    for page in extraction.html_pages:
        table.add_row(
            "page",
            page.html,
            page.wasm_fn,
            "no" if page.no_reload else "yes",
            f"name={page.name}, shim={page.shim_filename}",
        )
    for script in extraction.scripts:
        table.add_row(
            "script",
            script.js,
            script.wasm_fn,
            "no" if script.no_reload else "yes",
            "background" if script.background_script else "",
        )
    table.add_row("manifest", "manifest.json", "", "", f"from {extraction.manifest.href}")

    console = Console()
    console.print(table)
    console.print(
        f"Inline script: dispatch event {'found' if template.dispatch_event else 'absent'}, "
        f"auto-reload {'found' if template.auto_reload is not None else 'absent'}"
    )


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"wextrunk version {__version__}")


def version_callback(value: bool) -> None:
    """Version callback for --version flag."""
    if value:
        typer.echo(f"wextrunk version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """
    wextrunk - turn Trunk's single index.html into a WebExtension.

    Declare outputs in index.html with data-wextrunk links:

    - rel="htmlpage": name, html, wasm-fn, optional no-reload
    - rel="script": js, wasm-fn, optional no-reload, background-script
    - rel="manifest": href, optional target, optional default

    Elements carrying data-wextrunk-include="<page name>" only survive
    into the named pages.
    """
    pass


if __name__ == "__main__":  # pragma: no cover - executed only via `python -m`
    app()
