"""Event definition compilation and attribute extraction."""

from .compiler import (
    ATTRIBUTE_SEPARATOR,
    EventDefinition,
    RawEventDefinition,
    compile_definitions,
    sorted_by_name,
)

__all__ = [
    "ATTRIBUTE_SEPARATOR",
    "EventDefinition",
    "RawEventDefinition",
    "compile_definitions",
    "sorted_by_name",
]
