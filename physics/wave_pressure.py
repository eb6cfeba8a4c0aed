"""
Wave pressure boundary condition (type ``wavePressure``).

Complements waveVelocity: pressure is fixed to the wave model on outflow
faces and left free (zero gradient) on inflow faces, where the velocity is
fixed instead. Its presence on a patch is what switches waveAlpha outflow
faces to the fixed-gradient strategy.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Dict, FrozenSet, Mapping, Optional

import numpy as np

from case_io.dictionary import read_word
from core.errors import LinkedFieldError
from core.registry import VolField
from core.types import PatchGeometry
from physics.mixed_bc import MixedPatchField
from physics.patch_field_table import register_patch_field
from physics.wave_protocols import WAVE_PRESSURE, WAVE_VELOCITY

logger = logging.getLogger(__name__)


@register_patch_field
class WavePressurePatchField(MixedPatchField):
    """Pressure set by the wave model of the coupled velocity condition."""

    type_name: ClassVar[str] = "wavePressure"
    capabilities: ClassVar[FrozenSet[str]] = frozenset({WAVE_PRESSURE})

    def __init__(self, patch: PatchGeometry, internal: VolField, *, U_name: str = "U", **arrays: Any) -> None:
        super().__init__(patch, internal, **arrays)
        self.U_name = U_name

    @classmethod
    def from_entries(
        cls,
        patch: PatchGeometry,
        internal: VolField,
        entries: Mapping[str, Any],
        **context: Any,
    ) -> "WavePressurePatchField":
        base = MixedPatchField.from_entries(patch, internal, entries)
        return cls(
            patch,
            internal,
            U_name=read_word(entries, "U", "U"),
            ref_value=base.ref_value,
            ref_grad=base.ref_grad,
            value_fraction=base.value_fraction,
            value=base.value,
        )

    def update_coeffs(self) -> None:
        if self.updated:
            return
        Up = self.registry.lookup_patch_field(self.U_name, self.patch.name)
        if WAVE_VELOCITY not in getattr(Up, "capabilities", ()):
            logger.error("wavePressure on '%s' coupled to non-wave velocity '%s'.", self.patch.name, self.U_name)
            raise LinkedFieldError(
                self.U_name,
                f"Velocity condition '{self.U_name}' on patch '{self.patch.name}' is not wave-aware.",
            )
        t = self.registry.time
        self.ref_value[:] = np.asarray(Up.waves.pressure(t, self.patch.face_centres), dtype=np.float64)
        self.ref_grad[:] = 0.0
        self.value_fraction[:] = (Up.face_flux() < 0.0).astype(np.float64)
        super().update_coeffs()

    def write(self, entries: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        out = super().write(entries)
        if self.U_name != "U":
            out["U"] = self.U_name
        return out
