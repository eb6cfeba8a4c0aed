"""
Runtime variant table for boundary fields.

Each concrete boundary-field class registers under its `type_name`; boundary
records select the variant with their `type` key.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from core.errors import ConfigurationError
from core.registry import VolField
from core.types import PatchGeometry

logger = logging.getLogger(__name__)

_PATCH_FIELD_TYPES: Dict[str, type] = {}


def register_patch_field(cls: type) -> type:
    """Class decorator: add `cls` to the variant table under `cls.type_name`."""
    name = getattr(cls, "type_name", None)
    if not name:
        raise ValueError(f"{cls.__name__} must define a non-empty type_name.")
    existing = _PATCH_FIELD_TYPES.get(name)
    if existing is not None and existing is not cls:
        raise ValueError(f"Patch field type '{name}' already registered by {existing.__name__}.")
    _PATCH_FIELD_TYPES[name] = cls
    return cls


def patch_field_types() -> List[str]:
    return sorted(_PATCH_FIELD_TYPES)


def new_patch_field(
    patch: PatchGeometry,
    internal: VolField,
    entries: Mapping[str, Any],
    **context: Any,
):
    """
    Build the boundary field selected by entries["type"].

    Extra keyword `context` (e.g. an external wave model) is forwarded to the
    variant's `from_entries`.
    """
    if "type" not in entries:
        logger.error("Boundary record for patch '%s' of '%s' has no 'type'.", patch.name, internal.name)
        raise ConfigurationError("type", f"Boundary record for patch '{patch.name}' has no 'type' entry.")
    type_name = str(entries["type"])
    cls = _PATCH_FIELD_TYPES.get(type_name)
    if cls is None:
        raise ConfigurationError(
            "type",
            f"Unknown patch field type '{type_name}' on patch '{patch.name}'. "
            f"Valid types: {patch_field_types()}",
        )
    return cls.from_entries(patch, internal, entries, **context)
