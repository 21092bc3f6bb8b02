"""
Loader for event definition files.

Definition files are JSON or YAML documents holding a list of records:

    - event: service_restart
      pattern: "Started .* service"
      attribute_patterns:
        service: "Started (.*) service"
"""

import json
import yaml
import logging
from pathlib import Path
from typing import Any, List, Union

from ..errors import ConfigError
from ..patterns.compiler import RawEventDefinition, EventDefinition, compile_definitions

logger = logging.getLogger(__name__)

JSON_SUFFIXES = (".json",)
YAML_SUFFIXES = (".yaml", ".yml")


class DefinitionLoader:
    """Loads raw event definitions from JSON or YAML files."""

    @staticmethod
    def read_document(path: Path) -> Any:
        """
        Read and deserialize a definition file.

        Args:
            path: Path to a .json, .yaml or .yml file

        Returns:
            Deserialized document

        Raises:
            ConfigError: On unsupported extension, unreadable file or syntax errors
        """
        suffix = path.suffix.lower()
        if suffix not in JSON_SUFFIXES + YAML_SUFFIXES:
            raise ConfigError(f"Patterns file must be a .json or .yaml file: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                if suffix in JSON_SUFFIXES:
                    return json.load(f)
                return yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"Cannot read patterns file {path}: {e}") from e
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigError(f"Invalid patterns file {path}: {e}") from e

    @staticmethod
    def parse_records(document: Any) -> List[RawEventDefinition]:
        """
        Convert a deserialized document into raw definitions.

        Args:
            document: Top-level list of definition records

        Returns:
            Raw definitions in document order
        """
        if not isinstance(document, list):
            raise ConfigError("Patterns file must contain a list of event definitions")

        definitions = []
        for index, record in enumerate(document):
            if not isinstance(record, dict):
                raise ConfigError(f"Definition #{index} is not a mapping")

            event = record.get("event")
            pattern = record.get("pattern")
            if not isinstance(event, str) or not isinstance(pattern, str):
                raise ConfigError(
                    f"Definition #{index} needs string 'event' and 'pattern' fields",
                    event=event if isinstance(event, str) else None,
                )

            attribute_patterns = record.get("attribute_patterns") or {}
            if not isinstance(attribute_patterns, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in attribute_patterns.items()
            ):
                raise ConfigError(
                    f"'attribute_patterns' of event '{event}' must map names to pattern strings",
                    event=event,
                )

            definitions.append(
                RawEventDefinition(
                    event=event,
                    pattern=pattern,
                    attribute_patterns=dict(attribute_patterns),
                )
            )

        return definitions


def load_raw_definitions(path: Union[str, Path]) -> List[RawEventDefinition]:
    """Read raw definitions from a pattern file."""
    path = Path(path)
    definitions = DefinitionLoader.parse_records(DefinitionLoader.read_document(path))
    logger.info(f"Loaded {len(definitions)} event definitions from {path}")
    return definitions


def load_definitions(path: Union[str, Path]) -> List[EventDefinition]:
    """
    Load and compile definitions in one step.

    Args:
        path: Path to the pattern file

    Returns:
        Compiled definitions in file order
    """
    return compile_definitions(load_raw_definitions(path))
