"""
Field registry shared by the patch fields of one mesh (or one sub-domain).

Responsibilities:
- Own the volume fields (internal values + per-patch boundary fields) and the
  per-patch surface fields (face fluxes) of a case.
- Answer read-only lookups by name: patch fields, surface patch values, and
  "which field on this patch provides capability X".

Patch fields only ever read from the registry. Structural changes (adding or
removing fields) are the host's business and must not happen during an
evaluation pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

import numpy as np

from .errors import LinkedFieldError
from .types import FloatArray

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class VolField:
    """Cell-centred field: internal values plus one boundary field per patch."""

    name: str
    internal: np.ndarray
    registry: Optional["FieldRegistry"] = None
    boundary: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Field name must be provided.")
        self.internal = np.asarray(self.internal, dtype=np.float64)


@dataclass(slots=True)
class FieldRegistry:
    """Registry of volume and surface fields keyed by name."""

    time: float = 0.0
    vol_fields: Dict[str, VolField] = field(default_factory=dict)
    surface_fields: Dict[str, Dict[str, FloatArray]] = field(default_factory=dict)

    # ------------------------------------------------------------------
    # Host-side setup
    # ------------------------------------------------------------------
    def add_vol_field(self, name: str, internal) -> VolField:
        if name in self.vol_fields:
            raise ValueError(f"Field '{name}' is already registered.")
        vf = VolField(name=name, internal=internal, registry=self)
        self.vol_fields[name] = vf
        return vf

    def add_surface_field(self, name: str, patch_values: Dict[str, Any]) -> None:
        self.surface_fields[name] = {
            patch: np.asarray(vals, dtype=np.float64).reshape(-1) for patch, vals in patch_values.items()
        }

    # ------------------------------------------------------------------
    # Read-only lookups
    # ------------------------------------------------------------------
    def lookup_patch_field(self, field_name: str, patch_name: str) -> Any:
        """Return the boundary field of `field_name` on `patch_name`."""
        vf = self.vol_fields.get(field_name)
        if vf is None:
            logger.error("Field '%s' not found in registry (patch '%s').", field_name, patch_name)
            raise LinkedFieldError(field_name, f"Field '{field_name}' not found in registry.")
        pf = vf.boundary.get(patch_name)
        if pf is None:
            logger.error("Field '%s' has no boundary field on patch '%s'.", field_name, patch_name)
            raise LinkedFieldError(
                field_name, f"Field '{field_name}' has no boundary field on patch '{patch_name}'."
            )
        return pf

    def lookup_surface_patch(self, field_name: str, patch_name: str) -> FloatArray:
        """Return the face values of surface field `field_name` on `patch_name`."""
        patches = self.surface_fields.get(field_name)
        if patches is None or patch_name not in patches:
            logger.error("Surface field '%s' not available on patch '%s'.", field_name, patch_name)
            raise LinkedFieldError(
                field_name, f"Surface field '{field_name}' not available on patch '{patch_name}'."
            )
        return patches[patch_name]

    def iter_patch_fields(self, patch_name: str) -> Iterator[Any]:
        for vf in self.vol_fields.values():
            pf = vf.boundary.get(patch_name)
            if pf is not None:
                yield pf

    def find_patch_capability(self, patch_name: str, capability: str) -> Optional[Any]:
        """
        Return the first boundary field on `patch_name` that declares
        `capability`, or None.
        """
        for pf in self.iter_patch_fields(patch_name):
            if capability in getattr(pf, "capabilities", ()):
                return pf
        return None
