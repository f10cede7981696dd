from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ScriptDeclaration:
    """A script file to emit into the staging directory.

    - js: output filename, relative to the staging directory
    - wasm_fn: exported wasm function the script awaits after init
    - no_reload: omit the auto-reload snippet
    - background_script: wrap the body in an async IIFE (service workers
      disallow top-level await)
    """

    js: str
    wasm_fn: str
    no_reload: bool = False
    background_script: bool = False


@dataclass(frozen=True)
class PageDeclaration:
    """An HTML page to emit, cloned from the cleaned index.html template."""

    name: str
    html: str
    wasm_fn: str
    no_reload: bool = False

    @property
    def shim_filename(self) -> str:
        return f"{self.html.replace('.', '_')}_shim.js"

    @property
    def shim_script(self) -> ScriptDeclaration:
        return ScriptDeclaration(
            js=self.shim_filename,
            wasm_fn=self.wasm_fn,
            no_reload=self.no_reload,
            background_script=False,
        )


@dataclass(frozen=True)
class ManifestSelection:
    href: str
    target: str | None = None


@dataclass(frozen=True)
class ExtractionResult:
    """Everything collected by the single pass over index.html."""

    html_pages: tuple[PageDeclaration, ...]
    scripts: tuple[ScriptDeclaration, ...]
    manifest: ManifestSelection
    html_template: str
    script_contents: str
