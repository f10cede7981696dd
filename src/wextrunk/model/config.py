"""Run configuration for wextrunk.

Trunk passes its settings to build hooks through environment variables.
The CLI reads them (via the option ``envvar`` names below) and builds a
RunConfig once, which is then threaded into the renderers as plain values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_SERVE_ADDRESS = "127.0.0.1"
DEFAULT_SERVE_PORT = "8080"
DEFAULT_WS_BASE = "/"
DEFAULT_INDEX_NAME = "index.html"

# Environment set by Trunk for hooks, plus our own target selector
ENV_SOURCE_DIR = "TRUNK_SOURCE_DIR"
ENV_STAGING_DIR = "TRUNK_STAGING_DIR"
ENV_SERVE_ADDRESS = "TRUNK_SERVE_ADDRESS"
ENV_SERVE_PORT = "TRUNK_SERVE_PORT"
ENV_WS_BASE = "TRUNK_SERVE_WS_BASE"
ENV_TARGET = "WEXTRUNK_TARGET"


@dataclass(frozen=True)
class ServeConfig:
    """Location of the `trunk serve` dev server, used by the auto-reload snippet."""

    address: str = DEFAULT_SERVE_ADDRESS
    port: str = DEFAULT_SERVE_PORT
    ws_base: str = DEFAULT_WS_BASE

    @property
    def address_with_port(self) -> str:
        return f"{self.address}:{self.port}"


@dataclass(frozen=True)
class RunConfig:
    source_dir: Path
    staging_dir: Path
    target: str | None = None
    serve: ServeConfig = field(default_factory=ServeConfig)
    index_name: str = DEFAULT_INDEX_NAME
    keep_index: bool = False

    def __post_init__(self) -> None:
        # An empty target means "no target requested"
        if not self.target:
            object.__setattr__(self, "target", None)

    @property
    def index_path(self) -> Path:
        return self.staging_dir / self.index_name

    @classmethod
    def from_cli(
        cls,
        *,
        source_dir: Path,
        staging_dir: Path,
        target: str | None = None,
        serve_address: str | None = None,
        serve_port: str | None = None,
        ws_base: str | None = None,
        index: str | None = None,
        keep_index: bool = False,
    ) -> RunConfig:
        """Build a RunConfig from CLI argument values.

        Empty serve settings fall back to the defaults, so a hook environment
        that exports ``TRUNK_SERVE_PORT=""`` still renders a usable address.

        Args:
            source_dir: Directory the manifest href is resolved against
            staging_dir: Trunk staging directory holding the input HTML
            target: Requested manifest target; empty means none
            serve_address: trunk serve address
            serve_port: trunk serve port
            ws_base: Auto-reload websocket base path
            index: Name of the input HTML inside ``staging_dir``
            keep_index: Keep the input HTML after a successful run
        """
        return cls(
            source_dir=Path(source_dir),
            staging_dir=Path(staging_dir),
            target=target,
            serve=ServeConfig(
                address=serve_address or DEFAULT_SERVE_ADDRESS,
                port=serve_port or DEFAULT_SERVE_PORT,
                ws_base=ws_base or DEFAULT_WS_BASE,
            ),
            index_name=index or DEFAULT_INDEX_NAME,
            keep_index=keep_index,
        )

    def to_dict(self) -> dict[str, str | bool | None]:
        """Convert to dictionary for logging."""
        return {
            "source_dir": str(self.source_dir),
            "staging_dir": str(self.staging_dir),
            "target": self.target,
            "serve_address": self.serve.address_with_port,
            "ws_base": self.serve.ws_base,
            "index_name": self.index_name,
            "keep_index": self.keep_index,
        }


__all__ = [
    "DEFAULT_INDEX_NAME",
    "DEFAULT_SERVE_ADDRESS",
    "DEFAULT_SERVE_PORT",
    "DEFAULT_WS_BASE",
    "ENV_SERVE_ADDRESS",
    "ENV_SERVE_PORT",
    "ENV_SOURCE_DIR",
    "ENV_STAGING_DIR",
    "ENV_TARGET",
    "ENV_WS_BASE",
    "RunConfig",
    "ServeConfig",
]
