"""Typed path parameters: ``{name}``, ``{name:int}``, ``{name:float}``, ``{name:path}``."""

from collections.abc import Callable
from typing import Any

# Converter name -> (pattern a single segment must match, parser)
CONVERTERS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "str": (r"[^/]+", str),
    "int": (r"\d+", int),
    "float": (r"\d+(?:\.\d+)?", float),
    # Consumes the rest of the path, slashes included
    "path": (r".+", str),
}


def convert_param(value: str, param_type: str) -> Any:
    """Parse a captured segment with the named converter."""
    _, parse = CONVERTERS[param_type]
    return parse(value)
