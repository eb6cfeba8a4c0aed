"""
Wave velocity boundary condition (type ``waveVelocity``).

Adapter between an external wave model and the patch: it is the field the
phase-fraction and pressure conditions couple to. It provides
- face_flux(): the patch flux, read from the registry (positive inflow);
- phase_fraction(t, points): the wave model's own alpha(t, points) when it
  has one, otherwise the level-set fraction under the wave surface;
- update_coeffs(): wave velocity fixed on inflow faces; on outflow faces the
  velocity is only released (zero gradient) when a wave-pressure condition
  is active on the same patch, otherwise it stays fixed.

Record entries (optional): phi (flux field, default phi). The wave model is
passed in as `waves=` context.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Dict, FrozenSet, Mapping, Optional

import numpy as np

from case_io.dictionary import read_word
from core.errors import ConfigurationError
from core.registry import VolField
from core.types import FloatArray, PatchGeometry
from physics.mixed_bc import MixedPatchField
from physics.patch_field_table import register_patch_field
from physics.wave_protocols import WAVE_PRESSURE, WAVE_VELOCITY, WaveModel

logger = logging.getLogger(__name__)

VERTICAL_AXIS = 2


def level_set_fraction(height: FloatArray, points: FloatArray) -> FloatArray:
    """1 where a point lies on or below the wave surface, 0 above it."""
    height = np.asarray(height, dtype=np.float64).reshape(-1)
    z = np.asarray(points, dtype=np.float64).reshape(-1, 3)[:, VERTICAL_AXIS]
    if height.shape != z.shape:
        raise ValueError(f"Wave height shape {height.shape} != point count {z.shape}")
    return (z <= height).astype(np.float64)


@register_patch_field
class WaveVelocityPatchField(MixedPatchField):
    """Velocity set by a superposition of wave models."""

    type_name: ClassVar[str] = "waveVelocity"
    capabilities: ClassVar[FrozenSet[str]] = frozenset({WAVE_VELOCITY})

    def __init__(
        self,
        patch: PatchGeometry,
        internal: VolField,
        waves: WaveModel,
        *,
        phi_name: str = "phi",
        **arrays: Any,
    ) -> None:
        if waves is None:
            raise ConfigurationError("waves", f"waveVelocity on patch '{patch.name}' needs a wave model.")
        super().__init__(patch, internal, **arrays)
        self._waves = waves
        self.phi_name = phi_name

    @classmethod
    def from_entries(
        cls,
        patch: PatchGeometry,
        internal: VolField,
        entries: Mapping[str, Any],
        **context: Any,
    ) -> "WaveVelocityPatchField":
        base = MixedPatchField.from_entries(patch, internal, entries)
        return cls(
            patch,
            internal,
            context.get("waves"),
            phi_name=read_word(entries, "phi", "phi"),
            ref_value=base.ref_value,
            ref_grad=base.ref_grad,
            value_fraction=base.value_fraction,
            value=base.value,
        )

    @property
    def waves(self) -> WaveModel:
        return self._waves

    def face_flux(self) -> FloatArray:
        flux = self.registry.lookup_surface_patch(self.phi_name, self.patch.name)
        if flux.shape != (self.size,):
            raise ValueError(f"Flux '{self.phi_name}' shape {flux.shape} != ({self.size},) on patch '{self.patch.name}'")
        return flux

    def phase_fraction(self, t: float, points: FloatArray) -> FloatArray:
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        model_alpha = getattr(self._waves, "alpha", None)
        if model_alpha is None:
            return level_set_fraction(self._waves.height(t, points), points)
        alpha = np.asarray(model_alpha(t, points), dtype=np.float64).reshape(-1)
        if alpha.shape != (points.shape[0],):
            raise ValueError(f"Wave alpha shape {alpha.shape} != point count ({points.shape[0]},)")
        return alpha

    def update_coeffs(self) -> None:
        if self.updated:
            return
        t = self.registry.time
        self.ref_value[:] = np.asarray(self._waves.velocity(t, self.patch.face_centres), dtype=np.float64)
        self.ref_grad[:] = 0.0
        if self.registry.find_patch_capability(self.patch.name, WAVE_PRESSURE) is not None:
            self.value_fraction[:] = (self.face_flux() >= 0.0).astype(np.float64)
        else:
            self.value_fraction[:] = 1.0
        super().update_coeffs()

    def write(self, entries: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        out = super().write(entries)
        if self.phi_name != "phi":
            out["phi"] = self.phi_name
        return out
