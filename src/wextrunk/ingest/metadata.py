"""First pass over Trunk's index.html.

Collects the ``data-wextrunk`` declarations (pages, scripts, manifests),
pulls out the inline bootstrap script, and produces the cleaned HTML
template every output page is rendered from.
"""

from __future__ import annotations

import logging
from pathlib import Path

from wextrunk.errors import (
    AmbiguousManifestError,
    FileSystemError,
    MissingAttributeError,
    NoManifestError,
)
from wextrunk.transform.rewriter import (
    Element,
    ElementHandler,
    HtmlRewriter,
    Selector,
    TextChunk,
    TextHandler,
)
from wextrunk.types import (
    ExtractionResult,
    ManifestSelection,
    PageDeclaration,
    ScriptDeclaration,
)

logger = logging.getLogger(__name__)

METADATA_ATTRIBUTE = "data-wextrunk"
READ_CHUNK_SIZE = 16384

_INLINE_SCRIPT = Selector(tag="script", lacks=("src",))


def _required(el: Element, rel: str, attribute: str) -> str:
    value = el.get_attribute(attribute)
    if value is None:
        raise MissingAttributeError(rel, attribute)
    return value


class MetadataCollector:
    """Handler state for a single collection pass."""

    def __init__(self, target: str | None = None) -> None:
        self.target = target or None
        self.html_pages: list[PageDeclaration] = []
        self.scripts: list[ScriptDeclaration] = []
        self.manifest: ManifestSelection | None = None
        self._default_href: str | None = None
        self._script_parts: list[str] = []
        self._template_parts: list[str] = []

    def rewriter(self) -> HtmlRewriter:
        return HtmlRewriter(
            self._template_parts.append,
            element_handlers=[
                ElementHandler(Selector(tag="link", has=(METADATA_ATTRIBUTE,)), self.on_metadata_link),
                ElementHandler(_INLINE_SCRIPT, self.on_inline_script_tag),
            ],
            text_handlers=[TextHandler(_INLINE_SCRIPT, self.on_inline_script_text)],
        )

    def on_metadata_link(self, el: Element) -> None:
        rel = el.get_attribute("rel")
        if rel == "htmlpage":
            page = PageDeclaration(
                name=_required(el, rel, "name"),
                html=_required(el, rel, "html"),
                wasm_fn=_required(el, rel, "wasm-fn"),
                no_reload=el.has_attribute("no-reload"),
            )
            logger.debug("Declared page %s -> %s", page.name, page.html)
            self.html_pages.append(page)
        elif rel == "script":
            script = ScriptDeclaration(
                js=_required(el, rel, "js"),
                wasm_fn=_required(el, rel, "wasm-fn"),
                no_reload=el.has_attribute("no-reload"),
                background_script=el.has_attribute("background-script"),
            )
            logger.debug("Declared script %s", script.js)
            self.scripts.append(script)
        elif rel == "manifest":
            self._consider_manifest(el)
        else:
            logger.warning("Ignoring %s link with unknown rel %r", METADATA_ATTRIBUTE, rel)
        el.remove()

    def _consider_manifest(self, el: Element) -> None:
        if el.has_attribute("default"):
            # Two default manifests are a broken index.html whatever the target
            href = _required(el, "manifest", "href")
            if self._default_href is not None:
                raise AmbiguousManifestError(self._default_href, href)
            self._default_href = href

        if self.target is not None:
            selected = el.get_attribute("target") == self.target
        else:
            selected = el.has_attribute("default")
        if not selected:
            return

        href = _required(el, "manifest", "href")
        if self.manifest is not None:
            raise AmbiguousManifestError(self.manifest.href, href, self.target)
        logger.debug("Selected manifest %s", href)
        self.manifest = ManifestSelection(href=href, target=el.get_attribute("target"))

    def on_inline_script_text(self, chunk: TextChunk) -> None:
        self._script_parts.append(chunk.text)
        chunk.remove()

    def on_inline_script_tag(self, el: Element) -> None:
        # Trunk sometimes emits a bare <script> whose content is also collected
        if not el.attributes:
            el.remove()

    def result(self) -> ExtractionResult:
        if self.manifest is None:
            raise NoManifestError(self.target)
        return ExtractionResult(
            html_pages=tuple(self.html_pages),
            scripts=tuple(self.scripts),
            manifest=self.manifest,
            html_template="".join(self._template_parts),
            script_contents="".join(self._script_parts),
        )


def collect_metadata(html: str, target: str | None = None) -> ExtractionResult:
    """Collect declarations and the inline script from an index.html document.

    Args:
        html: Trunk's index.html contents
        target: Requested manifest target; empty or None selects the default manifest

    Raises:
        MissingAttributeError: A declaration lacks a required attribute
        AmbiguousManifestError: More than one manifest was selected
        NoManifestError: No manifest was selected
    """
    collector = MetadataCollector(target)
    rewriter = collector.rewriter()
    rewriter.write(html)
    rewriter.end()
    return collector.result()


def collect_metadata_from_file(path: Path, target: str | None = None) -> ExtractionResult:
    """Stream ``path`` through the collector in fixed-size chunks."""
    collector = MetadataCollector(target)
    rewriter = collector.rewriter()
    try:
        with path.open("r", encoding="utf-8") as f:
            while chunk := f.read(READ_CHUNK_SIZE):
                rewriter.write(chunk)
    except OSError as exc:
        raise FileSystemError(path, "read", exc) from exc
    rewriter.end()

    result = collector.result()
    logger.info(
        "Collected %d page(s), %d script(s) and manifest %s from %s",
        len(result.html_pages),
        len(result.scripts),
        result.manifest.href,
        path,
    )
    return result


__all__ = [
    "METADATA_ATTRIBUTE",
    "MetadataCollector",
    "collect_metadata",
    "collect_metadata_from_file",
]
