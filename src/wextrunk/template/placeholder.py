from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from io import StringIO
from typing import TextIO

from wextrunk.errors import MissingMarkerError

TRUNK_ADDRESS = "{{__TRUNK_ADDRESS__}}"
TRUNK_WS_BASE = "{{__TRUNK_WS_BASE__}}"


@dataclass(frozen=True)
class PlaceholderTemplate:
    """Text split around an ordered list of placeholder tokens.

    ``segments`` always holds one more entry than ``placeholders``; rendering
    interleaves segments with the substituted values.
    """

    placeholders: tuple[str, ...]
    segments: tuple[str, ...]

    @classmethod
    def parse(
        cls, text: str, placeholders: Sequence[str], *, context: str = "template"
    ) -> PlaceholderTemplate:
        """Split ``text`` at the first occurrence of each placeholder, in order.

        Each placeholder is searched for after the end of the previous one.

        Raises:
            MissingMarkerError: If a placeholder does not occur
        """
        segments: list[str] = []
        pos = 0
        for token in placeholders:
            start = text.find(token, pos)
            if start == -1:
                raise MissingMarkerError(token, context)
            segments.append(text[pos:start])
            pos = start + len(token)
        segments.append(text[pos:])
        return cls(placeholders=tuple(placeholders), segments=tuple(segments))

    def render(self, out: TextIO, *values: str) -> None:
        if len(values) != len(self.placeholders):
            raise ValueError(
                f"Expected {len(self.placeholders)} values, got {len(values)}"
            )
        for segment, value in zip(self.segments, values):
            out.write(segment)
            out.write(value)
        out.write(self.segments[-1])

    def render_to_string(self, *values: str) -> str:
        buf = StringIO()
        self.render(buf, *values)
        return buf.getvalue()


def parse_reload_template(text: str) -> PlaceholderTemplate:
    """Parse Trunk's auto-reload snippet around its address and websocket base tokens."""
    return PlaceholderTemplate.parse(
        text, (TRUNK_ADDRESS, TRUNK_WS_BASE), context="Trunk auto-reload script"
    )


__all__ = [
    "PlaceholderTemplate",
    "TRUNK_ADDRESS",
    "TRUNK_WS_BASE",
    "parse_reload_template",
]
