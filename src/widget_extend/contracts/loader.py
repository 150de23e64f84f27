"""Schema loading and descriptor validation helpers."""

from __future__ import annotations

import copy
import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import jsonschema

from .errors import ParseError

_SCHEMA_ROOT = Path(__file__).resolve().parent / "schemas"
DESCRIPTOR_SCHEMA = "package_descriptor.schema.json"


@lru_cache(maxsize=None)
def _load_schema_cached(schema_name: str) -> Dict[str, Any]:
    resolved = (_SCHEMA_ROOT / schema_name).resolve()
    if not str(resolved).startswith(str(_SCHEMA_ROOT)):
        raise ValueError("Schema path escapes the schemas directory")
    return json.loads(resolved.read_text("utf-8"))


def load_schema(schema_name: str) -> Dict[str, Any]:
    """Return a copy of the bundled JSON schema named *schema_name*."""

    return copy.deepcopy(_load_schema_cached(schema_name))


@lru_cache(maxsize=None)
def _compiled(schema_name: str) -> Any:
    schema = _load_schema_cached(schema_name)
    validator_cls = jsonschema.validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _error_path(error: jsonschema.ValidationError) -> str:
    components: List[str] = ["$"]
    for part in error.absolute_path:
        if isinstance(part, int):
            components.append(f"[{part}]")
        else:
            components.append(f".{part}")
    return "".join(components)


def validate_descriptor(payload: Any, *, source: str = "package.json") -> None:
    """Raise :class:`ParseError` when *payload* is not a valid package descriptor."""

    validator = _compiled(DESCRIPTOR_SCHEMA)
    errors = sorted(validator.iter_errors(payload), key=lambda err: list(err.absolute_path))
    if errors:
        first = errors[0]
        raise ParseError(f"{source}: {_error_path(first)}: {first.message}")


__all__ = ["DESCRIPTOR_SCHEMA", "load_schema", "validate_descriptor"]
