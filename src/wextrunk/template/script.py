"""Template for the scripts generated from Trunk's inline bootstrap script.

Trunk inlines a module script that imports the wasm-bindgen glue, awaits
``init()``, and dispatches ``TrunkApplicationStarted``; in dev builds an
auto-reload snippet follows. The text is split once into fragments, and each
output script is rendered from them with its own entry function, reload and
wrapper settings.

Two ways of locating the fragments are supported:

- explicit boundary comments ``// @wextrunk:v1:<fragment>`` (fragments
  ``import``, ``init``, ``dispatch``, ``reload``), when present;
- otherwise, the textual shape of Trunk's output: the first ``import``
  statement, the ``dispatchEvent`` line, or the end of the ``.wasm');``
  init call when no event is dispatched.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from io import StringIO
from typing import TextIO

from wextrunk.errors import MissingMarkerError
from wextrunk.model.config import ServeConfig
from wextrunk.template.placeholder import PlaceholderTemplate, parse_reload_template

logger = logging.getLogger(__name__)

CONTEXT = "Trunk inline script output"
STATEMENT_END = ";\n"
DISPATCH_EVENT = "\ndispatchEvent"
WASM_PATH_END = ".wasm');\n"

BACKGROUND_PREAMBLE = "(async () => {\n\n"
BACKGROUND_EPILOGUE = "\n\n})();\n"

MARKER_VERSION = 1
_MARKER_RE = re.compile(r"^[ \t]*//[ \t]*@wextrunk:v(?P<version>\d+):(?P<name>[\w-]+)[ \t]*\n?", re.MULTILINE)
_FRAGMENTS = ("import", "init", "dispatch", "reload")

# init('path') -> init({module_or_path: 'path'}); wasm-bindgen warns on the bare form
_INIT_CALL_RE = re.compile(r"""\binit\(\s*(?P<arg>'[^'\n]*'|"[^"\n]*")\s*\)""")


def normalize_init_call(text: str) -> str:
    """Rewrite ``init(<string literal>)`` calls to the keyed-object form."""
    return _INIT_CALL_RE.sub(r"init({module_or_path: \g<arg>})", text)


def _line(text: str) -> str:
    text = text.strip()
    return f"{text}\n" if text else ""


@dataclass(frozen=True)
class ScriptTemplate:
    import_line: str
    init: str
    dispatch_event: str
    auto_reload: PlaceholderTemplate | None

    @classmethod
    def parse(cls, script_contents: str) -> ScriptTemplate:
        """Split the collected inline script into its fragments.

        Raises:
            MissingMarkerError: If a fragment boundary cannot be located
        """
        if _MARKER_RE.search(script_contents):
            return cls._parse_marked(script_contents)
        return cls._parse_heuristic(script_contents)

    @classmethod
    def _parse_heuristic(cls, text: str) -> ScriptTemplate:
        import_start = text.find("import")
        if import_start == -1:
            raise MissingMarkerError("import", CONTEXT)
        import_end = text.find(STATEMENT_END, import_start)
        if import_end == -1:
            raise MissingMarkerError("end of import statement", CONTEXT)
        import_end += 1

        dispatch_start = text.find(DISPATCH_EVENT, import_end)
        dispatch_end = -1
        if dispatch_start != -1:
            dispatch_start += 1
            dispatch_end = text.find(STATEMENT_END, dispatch_start)
        if dispatch_end != -1:
            dispatch_end += len(STATEMENT_END)
        else:
            # No TrunkApplicationStarted event in this build; init ends at the wasm path
            init_end = text.find(WASM_PATH_END, import_end)
            if init_end == -1:
                raise MissingMarkerError(f"dispatchEvent or {WASM_PATH_END!r}", CONTEXT)
            logger.debug("No dispatchEvent found; splitting after the wasm init call")
            dispatch_start = dispatch_end = init_end + len(WASM_PATH_END)

        reload_contents = text[dispatch_end:]
        return cls(
            import_line=_line(text[import_start:import_end]),
            init=_line(normalize_init_call(text[import_end:dispatch_start])),
            dispatch_event=text[dispatch_start:dispatch_end],
            auto_reload=parse_reload_template(reload_contents) if "function" in reload_contents else None,
        )

    @classmethod
    def _parse_marked(cls, text: str) -> ScriptTemplate:
        markers = list(_MARKER_RE.finditer(text))
        fragments: dict[str, str] = {}
        for idx, match in enumerate(markers):
            version = int(match.group("version"))
            if version != MARKER_VERSION:
                raise MissingMarkerError(f"@wextrunk:v{MARKER_VERSION} markers (found v{version})", CONTEXT)
            name = match.group("name")
            if name not in _FRAGMENTS:
                logger.warning("Ignoring unknown script fragment marker %r", name)
                continue
            end = markers[idx + 1].start() if idx + 1 < len(markers) else len(text)
            fragments[name] = fragments.get(name, "") + text[match.end() : end]

        for required in ("import", "init"):
            if not fragments.get(required, "").strip():
                raise MissingMarkerError(f"@wextrunk:v{MARKER_VERSION}:{required}", CONTEXT)

        reload_contents = fragments.get("reload", "")
        return cls(
            import_line=_line(fragments["import"]),
            init=_line(normalize_init_call(fragments["init"])),
            dispatch_event=_line(fragments.get("dispatch", "")),
            auto_reload=parse_reload_template(reload_contents) if reload_contents.strip() else None,
        )

    def render(
        self,
        out: TextIO,
        wasm_fn: str,
        *,
        no_reload: bool = False,
        background: bool = False,
        serve: ServeConfig | None = None,
    ) -> None:
        """Write a complete script calling ``wasm.<wasm_fn>()`` after init.

        Background scripts are wrapped in an async IIFE, since service workers
        do not allow top-level await.
        """
        serve = serve or ServeConfig()
        out.write(self.import_line)
        if background:
            out.write(BACKGROUND_PREAMBLE)
        out.write(self.init)
        out.write(f"await wasm.{wasm_fn}();\n")
        out.write(self.dispatch_event)
        if not no_reload and self.auto_reload is not None:
            self.auto_reload.render(out, serve.address_with_port, serve.ws_base)
        if background:
            out.write(BACKGROUND_EPILOGUE)

    def render_to_string(
        self,
        wasm_fn: str,
        *,
        no_reload: bool = False,
        background: bool = False,
        serve: ServeConfig | None = None,
    ) -> str:
        buf = StringIO()
        self.render(buf, wasm_fn, no_reload=no_reload, background=background, serve=serve)
        return buf.getvalue()


__all__ = [
    "BACKGROUND_EPILOGUE",
    "BACKGROUND_PREAMBLE",
    "MARKER_VERSION",
    "ScriptTemplate",
    "normalize_init_call",
]
