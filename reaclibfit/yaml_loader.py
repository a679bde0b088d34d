from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import yaml

from .exceptions import UnopenedFileException


class NoBoolSafeLoader(yaml.SafeLoader):
    """YAML loader that avoids implicit boolean conversion (e.g., 'NO')."""


# Strip the bool resolver so reaction labels such as "n + NO" stay strings.
for first, mappings in list(NoBoolSafeLoader.yaml_implicit_resolvers.items()):
    NoBoolSafeLoader.yaml_implicit_resolvers[first] = [
        (tag, regexp) for tag, regexp in mappings if tag != "tag:yaml.org,2002:bool"
    ]


def safe_load_no_bool(text: str):
    """Load YAML text without implicit bool conversions."""
    return yaml.load(text, Loader=NoBoolSafeLoader)


def load_database(filename: str | Path) -> Dict[str, Any]:
    """Read a reaction database file into a mapping keyed by reaction label."""
    path = Path(filename)
    if not path.exists():
        raise UnopenedFileException(f"Could not load database file {filename}")
    try:
        raw = path.read_text()
        data = safe_load_no_bool(raw.replace("\t", " "))
    except yaml.YAMLError as exc:
        raise UnopenedFileException(f"Failed to parse {filename}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise UnopenedFileException(f"Database file {filename} is not a mapping of reactions")
    return data
