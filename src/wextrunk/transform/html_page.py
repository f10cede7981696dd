"""Per-page rewrite of the cleaned index.html template.

WebExtensions reject inline scripts, preload links and subresource
integrity checks, so each output page gets:

- ``link[rel=modulepreload]`` / ``link[rel=preload]`` removed
- ``integrity`` attributes stripped
- the nonce-carrying script tag pointed at the page's shim script
- ``data-wextrunk-include`` elements kept only on the pages they name
"""

from __future__ import annotations

import logging

from wextrunk.transform.rewriter import (
    Element,
    ElementHandler,
    HtmlRewriter,
    Selector,
    Sink,
)

logger = logging.getLogger(__name__)

INCLUDE_ATTRIBUTE = "data-wextrunk-include"
PRELOAD_RELS = frozenset({"modulepreload", "preload"})


class PageRewrite:
    def __init__(self, page_name: str, shim_src: str) -> None:
        self.page_name = page_name
        self.shim_src = shim_src
        self.injected = 0

    def handlers(self) -> list[ElementHandler]:
        return [
            ElementHandler(Selector(tag="link", equals={"rel": PRELOAD_RELS}), self.drop),
            ElementHandler(Selector(has=("integrity",)), self.strip_integrity),
            ElementHandler(Selector(tag="script", has=("nonce",)), self.inject_shim),
            ElementHandler(Selector(has=(INCLUDE_ATTRIBUTE,)), self.filter_include),
        ]

    @staticmethod
    def drop(el: Element) -> None:
        el.remove()

    @staticmethod
    def strip_integrity(el: Element) -> None:
        el.remove_attribute("integrity")

    def inject_shim(self, el: Element) -> None:
        # The nonce marks the script tag Trunk injected the bootstrap into
        el.remove_attribute("nonce")
        el.set_attribute("src", self.shim_src)
        self.injected += 1

    def filter_include(self, el: Element) -> None:
        if self.page_name not in el.get_attributes(INCLUDE_ATTRIBUTE):
            el.remove()
        el.remove_attribute(INCLUDE_ATTRIBUTE)


def rewrite_page_html(html_template: str, page_name: str, shim_src: str, sink: Sink) -> None:
    """Render ``html_template`` for one page, writing the result to ``sink``."""
    rewrite = PageRewrite(page_name, shim_src)
    rewriter = HtmlRewriter(sink, element_handlers=rewrite.handlers())
    rewriter.write(html_template)
    rewriter.end()

    if rewrite.injected == 0:
        logger.warning("Page %s: no script tag with a nonce found; shim %s is not referenced", page_name, shim_src)
    elif rewrite.injected > 1:
        logger.warning("Page %s: %d nonce script tags all point at %s", page_name, rewrite.injected, shim_src)


def render_page_html(html_template: str, page_name: str, shim_src: str) -> str:
    out: list[str] = []
    rewrite_page_html(html_template, page_name, shim_src, out.append)
    return "".join(out)


__all__ = [
    "INCLUDE_ATTRIBUTE",
    "PRELOAD_RELS",
    "PageRewrite",
    "render_page_html",
    "rewrite_page_html",
]
