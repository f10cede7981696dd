from __future__ import annotations

import logging
import shutil
from pathlib import Path

from wextrunk.errors import FileSystemError
from wextrunk.model.config import ServeConfig
from wextrunk.template.script import ScriptTemplate
from wextrunk.transform.html_page import rewrite_page_html
from wextrunk.types import ManifestSelection, PageDeclaration, ScriptDeclaration

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"


def write_script(
    script: ScriptDeclaration,
    staging_dir: Path,
    template: ScriptTemplate,
    serve: ServeConfig | None = None,
) -> Path:
    """Render ``script`` (a declared script or a page shim) into the staging directory."""
    js_path = staging_dir / script.js
    try:
        js_path.parent.mkdir(parents=True, exist_ok=True)
        with js_path.open("w", encoding="utf-8") as f:
            template.render(
                f,
                script.wasm_fn,
                no_reload=script.no_reload,
                background=script.background_script,
                serve=serve,
            )
    except OSError as exc:
        raise FileSystemError(js_path, "write script", exc) from exc
    logger.debug(
        "Wrote %s (wasm-fn=%s, reload=%s, background=%s)",
        js_path,
        script.wasm_fn,
        not script.no_reload,
        script.background_script,
    )
    return js_path


def write_html_page(
    page: PageDeclaration,
    staging_dir: Path,
    template: ScriptTemplate,
    html_template: str,
    serve: ServeConfig | None = None,
) -> tuple[Path, Path]:
    """Write the page's shim script, then the page itself.

    Returns:
        (shim_path, html_path)
    """
    shim = page.shim_script
    shim_path = write_script(shim, staging_dir, template, serve)

    html_path = staging_dir / page.html
    try:
        html_path.parent.mkdir(parents=True, exist_ok=True)
        with html_path.open("w", encoding="utf-8") as f:
            rewrite_page_html(html_template, page.name, f"/{shim.js}", f.write)
    except OSError as exc:
        raise FileSystemError(html_path, "write page", exc) from exc
    logger.debug("Wrote page %s to %s", page.name, html_path)
    return shim_path, html_path


def write_manifest(manifest: ManifestSelection, source_dir: Path, staging_dir: Path) -> Path:
    """Copy the selected manifest, unchanged, to ``<staging>/manifest.json``."""
    src = source_dir / manifest.href
    dest = staging_dir / MANIFEST_FILENAME
    try:
        shutil.copyfile(src, dest)
    except OSError as exc:
        raise FileSystemError(src, "copy manifest", exc, dest=dest) from exc
    logger.debug("Copied manifest %s to %s", src, dest)
    return dest


__all__ = [
    "MANIFEST_FILENAME",
    "write_html_page",
    "write_manifest",
    "write_script",
]
