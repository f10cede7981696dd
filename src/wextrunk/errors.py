"""Exceptions raised while splitting index.html.

Every error is fatal for the current run. Components raise; the CLI turns
any ``WextrunkError`` into an error message and a non-zero exit status.
"""

from __future__ import annotations

from pathlib import Path


class WextrunkError(Exception):
    """Base class for all wextrunk failures."""


class MissingAttributeError(WextrunkError):
    """A ``data-wextrunk`` link lacks an attribute its ``rel`` requires."""

    def __init__(self, rel: str, attribute: str) -> None:
        self.rel = rel
        self.attribute = attribute
        super().__init__(f"{rel} link must have a '{attribute}' attribute")


class MissingMarkerError(WextrunkError):
    """An expected marker was not found in Trunk's script output."""

    def __init__(self, marker: str, context: str) -> None:
        self.marker = marker
        self.context = context
        super().__init__(f"Could not find {marker!r} in {context}")


class AmbiguousManifestError(WextrunkError):
    def __init__(self, first: str, second: str, target: str | None = None) -> None:
        self.first = first
        self.second = second
        self.target = target
        if target:
            msg = f"Multiple manifests were selected for target '{target}'"
        else:
            msg = "Multiple default manifests were selected"
        super().__init__(f"{msg} ({first}, {second}), but only one is allowed")


class NoManifestError(WextrunkError):
    def __init__(self, target: str | None = None) -> None:
        self.target = target
        if target:
            msg = f"No manifest matches target '{target}'."
        else:
            msg = (
                "No manifest was selected, but one is required. Mark a manifest as "
                "default, or specify a target with the WEXTRUNK_TARGET environment variable."
            )
        super().__init__(msg)


class FileSystemError(WextrunkError):
    """Reading, writing, copying or deleting a file failed."""

    def __init__(
        self,
        path: Path,
        action: str,
        cause: Exception | None = None,
        *,
        dest: Path | None = None,
    ) -> None:
        self.path = path
        self.action = action
        self.cause = cause
        self.dest = dest
        msg = f"Failed to {action} {path}"
        if dest is not None:
            msg += f" to {dest}"
        if cause is not None:
            msg += f": {cause}"
        super().__init__(msg)


__all__ = [
    "AmbiguousManifestError",
    "FileSystemError",
    "MissingAttributeError",
    "MissingMarkerError",
    "NoManifestError",
    "WextrunkError",
]
