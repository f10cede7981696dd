from __future__ import annotations

from wextrunk.transform.rewriter import (
    Element,
    ElementHandler,
    HtmlRewriter,
    Selector,
    TextChunk,
    TextHandler,
    rewrite_html,
)

DOCUMENT = """<!DOCTYPE html>
<html lang="en">
<head><meta charset='utf-8'><title>A and B</title></head>
<body class=main>
<!-- note -->
<p data-x="1" hidden>&#169; 2024 &lt;ok&gt; &amp; more</p>
<script>if (a < b) { x(); }</script>
<br/>
<img src="a.png" alt='x' />
</body>
</html>
"""


def test_untouched_markup_passes_through_unchanged() -> None:
    assert rewrite_html(DOCUMENT) == DOCUMENT


def test_end_tags_and_references_keep_their_source_text() -> None:
    html = (
        '<DIV Class="x">a &copy b &#169 c &amp; d<BR></DIV >'
        "<!bogus><UL><LI>one</Li ></UL>"
    )
    assert rewrite_html(html) == html


def test_chunked_feeding_matches_whole_document() -> None:
    out: list[str] = []
    rewriter = HtmlRewriter(out.append)
    for i in range(0, len(DOCUMENT), 5):
        rewriter.write(DOCUMENT[i : i + 5])
    rewriter.end()
    assert "".join(out) == DOCUMENT


def test_removed_element_drops_content_and_end_tag() -> None:
    html = "<div><section id='x'><p>gone <b>too</b></p></section><p>kept</p></div>"
    out = rewrite_html(
        html,
        element_handlers=[ElementHandler(Selector(tag="section"), lambda el: el.remove())],
    )
    assert out == "<div><p>kept</p></div>"


def test_removed_void_element() -> None:
    out = rewrite_html(
        '<head><link rel="x"><meta a="b"></head>',
        element_handlers=[ElementHandler(Selector(tag="link"), lambda el: el.remove())],
    )
    assert out == '<head><meta a="b"></head>'


def test_handlers_still_see_removed_content() -> None:
    seen: list[str] = []

    def on_text(chunk: TextChunk) -> None:
        seen.append(chunk.text)

    out = rewrite_html(
        "<script>one</script><script>two</script>",
        element_handlers=[
            ElementHandler(Selector(tag="script"), lambda el: el.remove()),
        ],
        text_handlers=[TextHandler(Selector(tag="script"), on_text)],
    )
    assert out == ""
    assert "".join(seen) == "onetwo"


def test_attribute_edits_reserialize_tag() -> None:
    def edit(el: Element) -> None:
        el.remove_attribute("nonce")
        el.set_attribute("src", "/shim.js")

    out = rewrite_html(
        '<script type="module" nonce="abc"></script>',
        element_handlers=[ElementHandler(Selector(tag="script", has=("nonce",)), edit)],
    )
    assert out == '<script type="module" src="/shim.js"></script>'


def test_set_attribute_escapes_value() -> None:
    out = rewrite_html(
        "<a href=x>",
        element_handlers=[ElementHandler(Selector(tag="a"), lambda el: el.set_attribute("title", 'a"b'))],
    )
    assert out == '<a href="x" title="a&quot;b">'


def test_self_closing_tag_keeps_slash_after_edit() -> None:
    out = rewrite_html(
        '<link rel="stylesheet" integrity="sha" />',
        element_handlers=[ElementHandler(Selector(has=("integrity",)), lambda el: el.remove_attribute("integrity"))],
    )
    assert out == '<link rel="stylesheet" />'


def test_repeated_attributes_are_preserved() -> None:
    captured: list[Element] = []
    html = '<p data-inc="a" data-inc="b">x</p>'
    out = rewrite_html(html, element_handlers=[ElementHandler(Selector(tag="p"), captured.append)])
    assert out == html
    el = captured[0]
    assert el.get_attribute("data-inc") == "a"
    assert el.get_attributes("data-inc") == ["a", "b"]
    el.remove_attribute("data-inc")
    assert not el.has_attribute("data-inc")


def test_valueless_attribute_reads_as_empty_string() -> None:
    el = Element("link", [("default", None), ("href", "m.json")], "<link default href=m.json>")
    assert el.has_attribute("default")
    assert el.get_attribute("default") == ""
    assert el.get_attribute("target") is None


def test_selector_matching() -> None:
    el = Element("link", [("rel", "preload"), ("href", "x")], "")
    assert Selector(tag="link", equals={"rel": frozenset({"preload", "modulepreload"})}).matches(el)
    assert Selector(tag="link", equals={"rel": "preload"}).matches(el)
    assert not Selector(tag="link", equals={"rel": "stylesheet"}).matches(el)
    assert not Selector(tag="link", lacks=("href",)).matches(el)
    assert not Selector(tag="script").matches(el)
    assert Selector(has=("href",)).matches(el)


def test_text_handler_only_applies_to_innermost_element() -> None:
    def drop(chunk: TextChunk) -> None:
        chunk.remove()

    out = rewrite_html(
        "<div>keep<span>drop</span>keep</div>",
        text_handlers=[TextHandler(Selector(tag="span"), drop)],
    )
    assert out == "<div>keep<span></span>keep</div>"


def _drop(selector: Selector) -> list[ElementHandler]:
    return [ElementHandler(selector, lambda el: el.remove())]


def test_block_start_closes_removed_paragraph() -> None:
    out = rewrite_html(
        '<body><p class="gone">text<div id="app">shared</div></body></html>',
        element_handlers=_drop(Selector(tag="p")),
    )
    assert out == '<body><div id="app">shared</div></body></html>'


def test_sibling_list_item_closes_removed_item() -> None:
    out = rewrite_html(
        '<ul><li class="gone">a<li>b</ul><div id="app"></div>',
        element_handlers=_drop(Selector(tag="li", has=("class",))),
    )
    assert out == '<ul><li>b</ul><div id="app"></div>'


def test_implied_closes_cascade_through_table_cells() -> None:
    out = rewrite_html(
        "<table><tr><td class=gone>a<td>b<tr><td>c</table><p>after",
        element_handlers=_drop(Selector(tag="td", has=("class",))),
    )
    assert out == "<table><tr><td>b<tr><td>c</table><p>after"


def test_end_tag_of_ancestor_ends_removal() -> None:
    out = rewrite_html(
        "<body><section><p class=gone>text</section><p>kept</p></body>",
        element_handlers=_drop(Selector(tag="p", has=("class",))),
    )
    assert out == "<body><section></section><p>kept</p></body>"


def test_unclosed_removed_element_at_end_of_input() -> None:
    out = rewrite_html(
        '<body><div id="app"></div><aside class="gone">trailing <b>text',
        element_handlers=_drop(Selector(tag="aside")),
    )
    assert out == '<body><div id="app"></div>'


def test_paragraph_not_closed_by_inline_start() -> None:
    out = rewrite_html(
        "<p class=gone>a <span>b</span> c</p><p>kept</p>",
        element_handlers=_drop(Selector(tag="p", has=("class",))),
    )
    assert out == "<p>kept</p>"
