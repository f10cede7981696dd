from __future__ import annotations

__all__ = [
    "PlaceholderTemplate",
    "ScriptTemplate",
    "normalize_init_call",
    "parse_reload_template",
]

from .placeholder import PlaceholderTemplate as PlaceholderTemplate
from .placeholder import parse_reload_template as parse_reload_template
from .script import ScriptTemplate as ScriptTemplate
from .script import normalize_init_call as normalize_init_call
