"""Safety policy loader with schema validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import jsonschema
import yaml
from pydantic import ValidationError

from .exceptions import PolicyLoadError
from .models import SafetyPolicy, SafetyTier
from .safety import default_safety_policy

TIER_VALUES = [tier.value for tier in SafetyTier]

SAFETY_POLICY_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "bmad2vibe safety policy",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "persona_overrides": {
            "type": "object",
            "description": "Module name -> persona or workflow name -> tier",
            "additionalProperties": {
                "type": "object",
                "additionalProperties": {"type": "string", "enum": TIER_VALUES},
            },
        },
        "tier_tools": {
            "type": "object",
            "description": "Tier -> ordered tool names",
            "propertyNames": {"enum": TIER_VALUES},
            "additionalProperties": {
                "type": "array",
                "items": {"type": "string"},
            },
        },
        "destructive_markers": {
            "type": "array",
            "items": {"type": "string"},
        },
        "replace_overrides": {
            "type": "boolean",
            "description": "Replace the stock overrides instead of extending them",
        },
    },
}


def _merge_with_defaults(data: dict[str, Any]) -> dict[str, Any]:
    """Layer user policy data over the stock policy."""
    base = default_safety_policy().model_dump(mode="json")

    if data.get("replace_overrides", False):
        overrides: dict[str, dict[str, str]] = {}
    else:
        overrides = base["persona_overrides"]
    for module, table in data.get("persona_overrides", {}).items():
        overrides[module] = {**overrides.get(module, {}), **table}

    return {
        "persona_overrides": overrides,
        "tier_tools": {**base["tier_tools"], **data.get("tier_tools", {})},
        "destructive_markers": data.get(
            "destructive_markers",
            base["destructive_markers"],
        ),
    }


def load_safety_policy(path: Path) -> SafetyPolicy:
    """Load a safety policy YAML file on top of the stock policy.

    Args:
        path: YAML file with any of ``persona_overrides``, ``tier_tools``,
            ``destructive_markers`` and ``replace_overrides``

    Returns:
        Validated safety policy

    Raises:
        PolicyLoadError: If the file cannot be read, parsed or validated
    """
    path = Path(path)
    if not path.exists():
        msg = f"Safety policy file not found: {path}"
        raise PolicyLoadError(msg)

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        msg = f"Failed to parse safety policy YAML: {e}"
        raise PolicyLoadError(msg) from e
    except OSError as e:
        msg = f"Failed to read safety policy file: {e}"
        raise PolicyLoadError(msg) from e

    if data is None:
        data = {}

    try:
        jsonschema.validate(data, SAFETY_POLICY_SCHEMA)
    except jsonschema.ValidationError as e:
        msg = f"Schema validation failed: {e.message}"
        raise PolicyLoadError(
            msg,
            details={"path": list(e.absolute_path), "file": str(path)},
        ) from e

    try:
        return SafetyPolicy.model_validate(_merge_with_defaults(data))
    except ValidationError as e:
        msg = f"Safety policy validation failed: {e}"
        raise PolicyLoadError(msg) from e
