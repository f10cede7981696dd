"""End-to-end wextrunk run: collect from index.html, then write every output."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from wextrunk.builder.outputs import write_html_page, write_manifest, write_script
from wextrunk.errors import FileSystemError
from wextrunk.ingest.metadata import collect_metadata_from_file
from wextrunk.model.config import RunConfig
from wextrunk.template.script import ScriptTemplate

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    manifest: Path
    scripts: list[Path] = field(default_factory=list)
    pages: list[Path] = field(default_factory=list)
    shims: list[Path] = field(default_factory=list)
    removed_index: Path | None = None
    elapsed: float = 0.0

    @property
    def written(self) -> list[Path]:
        return [self.manifest, *self.scripts, *self.shims, *self.pages]


def run_pipeline(config: RunConfig) -> RunSummary:
    """Split ``<staging>/index.html`` into the configured extension outputs.

    Extraction completes before anything is rendered; outputs are then written
    in declaration order, scripts first, each page after its shim.

    Raises:
        WextrunkError: On any failure; partial outputs are left in place
    """
    start = time.perf_counter()
    logger.debug("Run configuration: %s", config.to_dict())

    index_path = config.index_path
    extraction = collect_metadata_from_file(index_path, config.target)

    summary = RunSummary(
        manifest=write_manifest(extraction.manifest, config.source_dir, config.staging_dir)
    )

    template = ScriptTemplate.parse(extraction.script_contents)
    logger.debug(
        "Parsed inline script (dispatch event: %s, auto-reload: %s)",
        "yes" if template.dispatch_event else "no",
        "yes" if template.auto_reload is not None else "no",
    )

    for script in extraction.scripts:
        summary.scripts.append(write_script(script, config.staging_dir, template, config.serve))

    for page in extraction.html_pages:
        shim_path, html_path = write_html_page(
            page, config.staging_dir, template, extraction.html_template, config.serve
        )
        summary.shims.append(shim_path)
        summary.pages.append(html_path)

    if not config.keep_index and index_path in summary.written:
        logger.warning("Keeping %s: it was rewritten as one of the outputs", index_path)
    elif not config.keep_index:
        try:
            index_path.unlink()
        except OSError as exc:
            raise FileSystemError(index_path, "remove", exc) from exc
        summary.removed_index = index_path

    summary.elapsed = time.perf_counter() - start
    logger.info("Wextrunk finished in %.3fs", summary.elapsed)
    return summary


__all__ = ["RunSummary", "run_pipeline"]
