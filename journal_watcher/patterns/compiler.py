"""
Pattern compiler for notable-event definitions.

Turns raw event definitions (event name, line pattern, named attribute
patterns) into compiled matchers. Compilation is all-or-nothing: a single bad
pattern rejects the whole definition set.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..errors import ConfigError

ATTRIBUTE_SEPARATOR = ", "


@dataclass(frozen=True)
class RawEventDefinition:
    """An event definition as read from the pattern file."""

    event: str
    pattern: str
    attribute_patterns: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class EventDefinition:
    """A compiled event definition."""

    name: str
    line_pattern: re.Pattern
    attribute_patterns: Dict[str, re.Pattern] = field(default_factory=dict)

    def matches(self, line: str) -> bool:
        """Check whether the line pattern occurs anywhere in the line."""
        return self.line_pattern.search(line) is not None

    def extract_attributes(self, line: str) -> Dict[str, str]:
        """
        Apply every attribute pattern to a line.

        Capture groups 1..N of a matching pattern are joined with ", " in
        group order. Groups that did not participate in the match contribute
        an empty string. Attributes whose pattern does not match are left out.

        Args:
            line: Line that matched this definition

        Returns:
            Attribute name to extracted value
        """
        attributes: Dict[str, str] = {}
        for attribute, pattern in self.attribute_patterns.items():
            match = pattern.search(line)
            if match is None:
                continue
            attributes[attribute] = ATTRIBUTE_SEPARATOR.join(
                group or "" for group in match.groups()
            )
        return attributes


def _compile(pattern: str, event: str, attribute: Optional[str] = None) -> re.Pattern:
    try:
        return re.compile(pattern)
    except (re.error, TypeError) as e:
        if attribute is None:
            message = f"Could not parse top-level regex '{pattern}' for event '{event}': {e}"
        else:
            message = (
                f"Could not parse regex '{pattern}' for attribute '{attribute}' "
                f"in event '{event}': {e}"
            )
        raise ConfigError(message, event=event, pattern=pattern, attribute=attribute) from e


def compile_definitions(definitions: Sequence[RawEventDefinition]) -> List[EventDefinition]:
    """
    Compile raw event definitions.

    Args:
        definitions: Raw definitions in file order

    Returns:
        Compiled definitions in the same order

    Raises:
        ConfigError: If a name is empty or duplicated, or any pattern fails to compile
    """
    compiled: List[EventDefinition] = []
    seen = set()

    for raw in definitions:
        if not raw.event:
            raise ConfigError("Event definitions must have a non-empty name", pattern=raw.pattern)
        if raw.event in seen:
            raise ConfigError(f"Duplicate event name '{raw.event}'", event=raw.event)
        seen.add(raw.event)

        line_pattern = _compile(raw.pattern, raw.event)
        attribute_patterns = {
            attribute: _compile(pattern, raw.event, attribute)
            for attribute, pattern in raw.attribute_patterns.items()
        }

        compiled.append(
            EventDefinition(
                name=raw.event,
                line_pattern=line_pattern,
                attribute_patterns=attribute_patterns,
            )
        )

    return compiled


def sorted_by_name(definitions: Sequence[EventDefinition]) -> List[EventDefinition]:
    """Return definitions ordered by event name."""
    return sorted(definitions, key=lambda d: d.name)
