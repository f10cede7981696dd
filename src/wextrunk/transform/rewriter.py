"""Streaming HTML rewriter.

Markup is fed in chunks and echoed to a sink as it is parsed. Registered
handlers may drop elements, edit attributes or swallow text; anything they
leave alone is passed through exactly as it appeared in the input.

Both passes over Trunk's index.html (metadata collection and per-page
rendering) are expressed as a set of handlers on this rewriter.
"""

from __future__ import annotations

import html
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from html.parser import HTMLParser

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

# Open elements closed by the start of another element, without an end tag
_CLOSES_P = frozenset(
    {
        "address",
        "article",
        "aside",
        "blockquote",
        "details",
        "dialog",
        "dd",
        "div",
        "dl",
        "dt",
        "fieldset",
        "figcaption",
        "figure",
        "footer",
        "form",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "hgroup",
        "hr",
        "li",
        "main",
        "menu",
        "nav",
        "ol",
        "p",
        "pre",
        "section",
        "table",
        "ul",
    }
)
_CLOSES_CELL = frozenset({"td", "th", "tr", "tbody", "thead", "tfoot"})
IMPLIED_END_TAGS: Mapping[str, frozenset[str]] = {
    "p": _CLOSES_P,
    "li": frozenset({"li"}),
    "dt": frozenset({"dt", "dd"}),
    "dd": frozenset({"dt", "dd"}),
    "option": frozenset({"option", "optgroup"}),
    "optgroup": frozenset({"optgroup"}),
    "tr": frozenset({"tr", "tbody", "thead", "tfoot"}),
    "td": _CLOSES_CELL,
    "th": _CLOSES_CELL,
    "thead": frozenset({"tbody", "tfoot"}),
    "tbody": frozenset({"tbody", "tfoot"}),
}

Sink = Callable[[str], None]


class Element:
    """A start tag seen by the rewriter, editable by element handlers."""

    def __init__(
        self,
        tag: str,
        attributes: Iterable[tuple[str, str | None]],
        raw: str,
        *,
        self_closing: bool = False,
    ) -> None:
        self.tag = tag
        self.self_closing = self_closing
        self.removed = False
        self._attributes = list(attributes)
        self._raw = raw
        self._modified = False

    @property
    def attributes(self) -> list[tuple[str, str | None]]:
        return list(self._attributes)

    def has_attribute(self, name: str) -> bool:
        return any(key == name for key, _ in self._attributes)

    def get_attribute(self, name: str) -> str | None:
        """Return the first value of ``name``; valueless attributes yield ``""``."""
        for key, value in self._attributes:
            if key == name:
                return value or ""
        return None

    def get_attributes(self, name: str) -> list[str]:
        """Return every value of a (possibly repeated) attribute."""
        return [value or "" for key, value in self._attributes if key == name]

    def set_attribute(self, name: str, value: str) -> None:
        for idx, (key, _) in enumerate(self._attributes):
            if key == name:
                self._attributes[idx] = (name, value)
                break
        else:
            self._attributes.append((name, value))
        self._modified = True

    def remove_attribute(self, name: str) -> None:
        """Remove every instance of ``name``."""
        kept = [(key, value) for key, value in self._attributes if key != name]
        if len(kept) != len(self._attributes):
            self._attributes = kept
            self._modified = True

    def remove(self) -> None:
        """Drop the element, including its content and end tag, from the output."""
        self.removed = True

    def to_html(self) -> str:
        if not self._modified and self._raw:
            return self._raw
        parts = [f"<{self.tag}"]
        for key, value in self._attributes:
            if value is None:
                parts.append(f" {key}")
            else:
                parts.append(f' {key}="{html.escape(value, quote=True)}"')
        parts.append(" />" if self.self_closing else ">")
        return "".join(parts)

    def __repr__(self) -> str:
        return f"Element({self.tag!r}, {self._attributes!r})"


class TextChunk:
    """A run of text inside an element, as delivered by the parser."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.removed = False

    def remove(self) -> None:
        self.removed = True


@dataclass(frozen=True)
class Selector:
    """Minimal CSS-like element selector.

    - tag: element name, or None for any element
    - has: attributes that must be present
    - lacks: attributes that must be absent
    - equals: attribute values that must match; a collection of strings
      accepts any of them
    """

    tag: str | None = None
    has: tuple[str, ...] = ()
    lacks: tuple[str, ...] = ()
    equals: Mapping[str, str | frozenset[str]] = field(default_factory=dict)

    def matches(self, element: Element) -> bool:
        if self.tag is not None and element.tag != self.tag:
            return False
        if not all(element.has_attribute(name) for name in self.has):
            return False
        if any(element.has_attribute(name) for name in self.lacks):
            return False
        for name, expected in self.equals.items():
            value = element.get_attribute(name)
            if value is None:
                return False
            if isinstance(expected, str):
                if value != expected:
                    return False
            elif value not in expected:
                return False
        return True


@dataclass(frozen=True)
class ElementHandler:
    selector: Selector
    callback: Callable[[Element], None]


@dataclass(frozen=True)
class TextHandler:
    """Called for text whose innermost open element matches ``selector``."""

    selector: Selector
    callback: Callable[[TextChunk], None]


class HtmlRewriter(HTMLParser):
    """Single-pass rewriter: ``write()`` chunks, then ``end()``.

    End tags, comments and declarations are echoed from the input text rather
    than rebuilt from what the parser reports, so case, whitespace and
    unterminated entity references survive. End tags the document leaves
    implied (``<p>`` before a ``<div>``, sibling ``<li>`` and the like) close
    the open element without producing output.
    """

    def __init__(
        self,
        sink: Sink,
        *,
        element_handlers: Iterable[ElementHandler] = (),
        text_handlers: Iterable[TextHandler] = (),
    ) -> None:
        super().__init__(convert_charrefs=False)
        self._sink = sink
        self._element_handlers = list(element_handlers)
        self._text_handlers = list(text_handlers)
        self._stack: list[Element] = []
        # Stack depth of the outermost removed element currently open
        self._suppress_depth: int | None = None
        # Output of the construct being parsed, replaced by its source text
        self._captured: list[str] | None = None
        # Index in rawdata where the construct being handled starts
        self._offset = 0

    def write(self, chunk: str) -> None:
        self.feed(chunk)

    def end(self) -> None:
        self.close()

    def _write(self, text: str) -> None:
        if self._captured is not None:
            self._captured.append(text)
        else:
            self._sink(text)

    def _emit(self, text: str) -> None:
        if self._suppress_depth is None:
            self._write(text)

    def _passthrough(self, parse: Callable[..., int], i: int, *args: int) -> int:
        outer, self._captured = self._captured, []
        try:
            k = parse(i, *args)
        finally:
            emitted, self._captured = self._captured, outer
        if emitted:
            self._write(self.rawdata[i:k] if k > i else "".join(emitted))
        return k

    def _truncate(self, depth: int) -> None:
        del self._stack[depth:]
        if self._suppress_depth is not None and depth < self._suppress_depth:
            self._suppress_depth = None

    def _close_implied(self, tag: str) -> None:
        while self._stack and tag in IMPLIED_END_TAGS.get(self._stack[-1].tag, ()):
            self._truncate(len(self._stack) - 1)

    def _open(self, tag: str, attrs: list[tuple[str, str | None]], self_closing: bool) -> Element:
        self._close_implied(tag)
        element = Element(tag, attrs, self.get_starttag_text() or "", self_closing=self_closing)
        for handler in self._element_handlers:
            if handler.selector.matches(element):
                handler.callback(element)
        if not element.removed:
            self._emit(element.to_html())
        return element

    # Parser hooks whose output is replaced by the source text

    def goahead(self, end: bool) -> None:
        self._offset = 0
        super().goahead(end)

    def updatepos(self, i: int, j: int) -> int:
        self._offset = j
        return super().updatepos(i, j)

    def parse_endtag(self, i: int) -> int:
        return self._passthrough(super().parse_endtag, i)

    def parse_comment(self, i: int, report: int = 1) -> int:
        return self._passthrough(super().parse_comment, i, report)

    def parse_bogus_comment(self, i: int, report: int = 1) -> int:
        return self._passthrough(super().parse_bogus_comment, i, report)

    def parse_html_declaration(self, i: int) -> int:
        return self._passthrough(super().parse_html_declaration, i)

    def parse_pi(self, i: int) -> int:
        return self._passthrough(super().parse_pi, i)

    # Content handlers

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        element = self._open(tag, attrs, self_closing=False)
        if tag in VOID_ELEMENTS:
            return
        self._stack.append(element)
        if element.removed and self._suppress_depth is None:
            self._suppress_depth = len(self._stack)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._open(tag, attrs, self_closing=True)

    def handle_endtag(self, tag: str) -> None:
        for idx in range(len(self._stack) - 1, -1, -1):
            if self._stack[idx].tag == tag:
                break
        else:
            # Stray end tag: nothing to close, pass it through
            self._emit(f"</{tag}>")
            return

        if self._suppress_depth is not None and idx < self._suppress_depth - 1:
            # Closes a kept ancestor of the removed element
            self._truncate(idx)
            self._emit(f"</{tag}>")
            return
        self._emit(f"</{tag}>")
        self._truncate(idx)

    def handle_data(self, data: str) -> None:
        if self._stack and self._text_handlers:
            chunk = TextChunk(data)
            parent = self._stack[-1]
            for handler in self._text_handlers:
                if handler.selector.matches(parent):
                    handler.callback(chunk)
            if chunk.removed:
                return
            data = chunk.text
        self._emit(data)

    def _reference(self, ref: str) -> str:
        raw = self.rawdata
        if raw.startswith(ref, self._offset) and not raw.startswith(";", self._offset + len(ref)):
            return ref
        return f"{ref};"

    def handle_entityref(self, name: str) -> None:
        self._emit(self._reference(f"&{name}"))

    def handle_charref(self, name: str) -> None:
        self._emit(self._reference(f"&#{name}"))

    def handle_comment(self, data: str) -> None:
        self._emit(f"<!--{data}-->")

    def handle_decl(self, decl: str) -> None:
        self._emit(f"<!{decl}>")

    def handle_pi(self, data: str) -> None:
        self._emit(f"<?{data}>")

    def unknown_decl(self, data: str) -> None:
        self._emit(f"<![{data}]>")


def rewrite_html(
    markup: str,
    *,
    element_handlers: Iterable[ElementHandler] = (),
    text_handlers: Iterable[TextHandler] = (),
) -> str:
    """Run the rewriter over a complete document and return the output."""
    out: list[str] = []
    rewriter = HtmlRewriter(
        out.append, element_handlers=element_handlers, text_handlers=text_handlers
    )
    rewriter.write(markup)
    rewriter.end()
    return "".join(out)


__all__ = [
    "Element",
    "ElementHandler",
    "HtmlRewriter",
    "IMPLIED_END_TAGS",
    "Selector",
    "TextChunk",
    "TextHandler",
    "VOID_ELEMENTS",
    "rewrite_html",
]
