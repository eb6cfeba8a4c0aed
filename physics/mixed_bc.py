"""
Generic mixed (Robin-type blend) boundary field on one patch.

Face value:
    value = f * refValue + (1 - f) * (C_i + refGrad / delta)
where f is the per-face value fraction (1 = Dirichlet, 0 = Neumann), C_i the
adjacent cell value and delta the inverse face-to-cell distance.

Subclasses overwrite ref_value / ref_grad / value_fraction in update_coeffs()
and then call MixedPatchField.update_coeffs(). The coefficient accessors give
the per-face (internal, boundary) pairs that matrix assembly consumes.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, ClassVar, Dict, FrozenSet, Mapping, Optional

import numpy as np

from core.errors import ConfigurationError
from core.registry import VolField
from core.types import FloatArray, PatchGeometry, PatchMapper
from physics.patch_field_table import register_patch_field

logger = logging.getLogger(__name__)


def _read_face_array(entries: Mapping[str, Any], key: str, shape: tuple) -> Optional[np.ndarray]:
    """Read an optional per-face array entry; uniform scalars are broadcast."""
    if key not in entries:
        return None
    try:
        arr = np.asarray(entries[key], dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(key, f"Entry '{key}' is not numeric: {exc}") from exc
    if arr.ndim == 0 or arr.shape == shape[1:]:
        return np.broadcast_to(arr, shape).copy()
    if arr.shape != shape:
        raise ConfigurationError(key, f"Entry '{key}' has shape {arr.shape}, expected {shape}")
    return arr.copy()


@register_patch_field
class MixedPatchField:
    """Mixed boundary field: per-face blend of a fixed value and a fixed gradient."""

    type_name: ClassVar[str] = "mixed"
    capabilities: ClassVar[FrozenSet[str]] = frozenset()

    def __init__(
        self,
        patch: PatchGeometry,
        internal: VolField,
        *,
        ref_value=None,
        ref_grad=None,
        value_fraction=None,
        value=None,
    ) -> None:
        self.patch = patch
        self.internal_field = internal
        shape = self.face_shape
        self.ref_value = self._init_array(ref_value, shape, "ref_value")
        self.ref_grad = self._init_array(ref_grad, shape, "ref_grad")
        self.value_fraction = self._init_array(value_fraction, (patch.size,), "value_fraction")
        if value is None:
            self.value = self.patch_internal_field()
        else:
            self.value = self._init_array(value, shape, "value")
        self._updated = False

    @staticmethod
    def _init_array(values, shape: tuple, label: str) -> np.ndarray:
        if values is None:
            return np.zeros(shape, dtype=np.float64)
        arr = np.array(values, dtype=np.float64)
        if arr.ndim == 0:
            return np.full(shape, float(arr))
        if arr.shape != shape:
            raise ValueError(f"{label} shape {arr.shape} != {shape}")
        return arr

    @classmethod
    def from_entries(
        cls,
        patch: PatchGeometry,
        internal: VolField,
        entries: Mapping[str, Any],
        **context: Any,
    ) -> "MixedPatchField":
        """Construct from a boundary record; missing arrays start at zero."""
        shape = (patch.size,) + internal.internal.shape[1:]
        return cls(
            patch,
            internal,
            ref_value=_read_face_array(entries, "refValue", shape),
            ref_grad=_read_face_array(entries, "refGradient", shape),
            value_fraction=_read_face_array(entries, "valueFraction", (patch.size,)),
            value=_read_face_array(entries, "value", shape),
        )

    # ------------------------------------------------------------------
    # Copies
    # ------------------------------------------------------------------
    def clone(self, internal: Optional[VolField] = None) -> "MixedPatchField":
        """Copy of this field; with `internal`, rebound to another internal field."""
        new = copy.copy(self)
        for name in ("ref_value", "ref_grad", "value_fraction", "value"):
            setattr(new, name, getattr(self, name).copy())
        if internal is not None:
            new.internal_field = internal
        return new

    def clone_onto(
        self,
        patch: PatchGeometry,
        internal: VolField,
        mapper: PatchMapper,
    ) -> "MixedPatchField":
        """Copy of this field mapped onto a new or changed patch."""
        if mapper.size != patch.size:
            raise ValueError(
                f"Mapper size {mapper.size} does not match patch '{patch.name}' size {patch.size}"
            )
        new = copy.copy(self)
        new.patch = patch
        new.internal_field = internal
        for name in ("ref_value", "ref_grad", "value_fraction", "value"):
            setattr(new, name, mapper(getattr(self, name)))
        new._updated = False
        return new

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def size(self) -> int:
        return self.patch.size

    @property
    def face_shape(self) -> tuple:
        return (self.patch.size,) + self.internal_field.internal.shape[1:]

    @property
    def registry(self):
        return self.internal_field.registry

    @property
    def updated(self) -> bool:
        return self._updated

    def patch_internal_field(self) -> np.ndarray:
        return self.internal_field.internal[self.patch.face_cells].copy()

    def _per_face(self, arr: FloatArray) -> np.ndarray:
        """Reshape an (nF,) array to broadcast against (nF, ...) face values."""
        return arr.reshape(arr.shape + (1,) * (self.ref_value.ndim - 1))

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------
    def update_coeffs(self) -> None:
        self._updated = True

    def evaluate(self) -> np.ndarray:
        """Update coefficients if needed and set the face values."""
        if not self._updated:
            self.update_coeffs()
        f = self._per_face(self.value_fraction)
        delta = self._per_face(self.patch.delta_coeffs)
        self.value = f * self.ref_value + (1.0 - f) * (self.patch_internal_field() + self.ref_grad / delta)
        self._updated = False
        return self.value

    def sn_grad(self) -> np.ndarray:
        f = self._per_face(self.value_fraction)
        delta = self._per_face(self.patch.delta_coeffs)
        return f * (self.ref_value - self.patch_internal_field()) * delta + (1.0 - f) * self.ref_grad

    def value_internal_coeffs(self) -> np.ndarray:
        return np.broadcast_to(1.0 - self._per_face(self.value_fraction), self.face_shape).copy()

    def value_boundary_coeffs(self) -> np.ndarray:
        f = self._per_face(self.value_fraction)
        delta = self._per_face(self.patch.delta_coeffs)
        return f * self.ref_value + (1.0 - f) * self.ref_grad / delta

    def gradient_internal_coeffs(self) -> np.ndarray:
        coeffs = -self.value_fraction * self.patch.delta_coeffs
        return np.broadcast_to(self._per_face(coeffs), self.face_shape).copy()

    def gradient_boundary_coeffs(self) -> np.ndarray:
        f = self._per_face(self.value_fraction)
        delta = self._per_face(self.patch.delta_coeffs)
        return f * delta * self.ref_value + (1.0 - f) * self.ref_grad

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------
    def write(self, entries: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Append this field's record to `entries` (a new dict when omitted)."""
        out: Dict[str, Any] = {} if entries is None else entries
        out["type"] = self.type_name
        out["refValue"] = self.ref_value.tolist()
        out["refGradient"] = self.ref_grad.tolist()
        out["valueFraction"] = self.value_fraction.tolist()
        out["value"] = self.value.tolist()
        return out

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(patch={self.patch.name!r}, field={self.internal_field.name!r}, nF={self.size})"
