import logging
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


TRUNK_BOOTSTRAP = """
import init, * as bindings from '/wextrunk-1a2b.js';
const wasm = await init('/wextrunk-1a2b_bg.wasm');

window.wasmBindings = bindings;

dispatchEvent(new CustomEvent("TrunkApplicationStarted", {detail: {wasm}}));
"""

TRUNK_AUTO_RELOAD = """"use strict";

(function () {

    const address = '{{__TRUNK_ADDRESS__}}';
    const base = '{{__TRUNK_WS_BASE__}}';
    let protocol = '';
    protocol =
        protocol
            ? protocol
            : window.location.protocol === 'https:'
                ? 'wss'
                : 'ws';
    const url = protocol + '://' + address + base + '.well-known/trunk/ws';

    class Overlay {
        constructor() {
            this._overlay = document.createElement("div");
        }
    }

    function reload() {
        window.location.reload();
    }

    const ws = new WebSocket(url);
    ws.onmessage = (ev) => {
        const msg = JSON.parse(ev.data);
        if (msg.reload) {
            reload();
        }
    };
})()
"""

TRUNK_INDEX_HTML = f"""<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8" />
    <title>wextrunk</title>
    <link data-wextrunk rel="htmlpage" name="popup" html="popup.html" wasm-fn="popup_page" />
    <link data-wextrunk rel="htmlpage" name="options" html="options.html" wasm-fn="options_page" no-reload />
    <link data-wextrunk rel="script" js="background.js" wasm-fn="background_script" background-script no-reload />
    <link data-wextrunk rel="script" js="content.js" wasm-fn="content_script" />
    <link data-wextrunk rel="manifest" href="manifest.json" default />
    <link data-wextrunk rel="manifest" href="manifest.firefox.json" target="firefox" />
    <link rel="stylesheet" href="/output-1a2b.css" integrity="sha384-abc" />
<link rel="modulepreload" href="/wextrunk-1a2b.js" crossorigin="anonymous" integrity="sha384-def"><link rel="preload" href="/wextrunk-1a2b_bg.wasm" crossorigin="anonymous" integrity="sha384-ghi" as="fetch" type="application/wasm"></head>
  <body>
    <p data-wextrunk-include="popup">popup only</p>
    <p data-wextrunk-include="options">options only</p>
    <p data-wextrunk-include="popup" data-wextrunk-include="options">shared</p>
    <div id="app"></div>
<script type="module" nonce="Zm9v">{TRUNK_BOOTSTRAP}</script><script>{TRUNK_AUTO_RELOAD}</script></body>
</html>
"""


@pytest.fixture
def trunk_index_html() -> str:
    return TRUNK_INDEX_HTML


@pytest.fixture
def trunk_script_contents() -> str:
    """Inline script text as collected from TRUNK_INDEX_HTML."""
    return TRUNK_BOOTSTRAP + TRUNK_AUTO_RELOAD


@pytest.fixture
def trunk_dirs(tmp_path: Path) -> tuple[Path, Path]:
    """A source directory with two manifests and a staging directory with index.html."""
    source = tmp_path / "src"
    staging = tmp_path / "dist"
    source.mkdir()
    staging.mkdir()
    (source / "manifest.json").write_text('{"manifest_version": 3, "name": "chrome"}\n', encoding="utf-8")
    (source / "manifest.firefox.json").write_text(
        '{"manifest_version": 2, "name": "firefox"}\n', encoding="utf-8"
    )
    (staging / "index.html").write_text(TRUNK_INDEX_HTML, encoding="utf-8")
    return source, staging


@pytest.fixture
def isolate_logging():
    """Isolate logging configuration between tests.

    The CLI installs a RichHandler on the root logger; restore the original
    handlers afterwards so later tests are unaffected.
    """
    original_handlers = logging.root.handlers[:]
    original_level = logging.root.level

    logging.root.handlers.clear()
    logging.root.addHandler(logging.NullHandler())

    yield

    logging.root.handlers.clear()
    logging.root.handlers.extend(original_handlers)
    logging.root.setLevel(original_level)
