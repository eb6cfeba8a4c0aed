"""
Wave phase-fraction boundary condition (type ``waveAlpha``).

Sets the phase fraction on a patch to the value given by the wave model held
by the coupled velocity condition, and picks each face's regime from the
sign of the face flux every update:

- inflow faces (flux >= 0): fixed value = wave phase fraction at the face;
- outflow faces (flux < 0) without a wave-pressure condition on the patch:
  * inletOutlet on:  pass-through (zero gradient, the interior value leaves);
  * inletOutlet off: fixed value = wave phase fraction (may be more accurate,
    may also be unstable);
- outflow faces with a wave-pressure condition on the patch: fixed gradient
  (alphan - alpha) * delta, the wave model differenced between the face and
  the adjacent cell centre. The pressure condition already fixes the value
  on those faces.

Record entries (all optional):

    U           coupled velocity field name      (default U)
    liquid      phase fraction is the liquid's   (default true)
    inletOutlet pass-through on outflow faces    (default true)

All per-face state (ref_value / ref_grad / value_fraction / regimes) is
overwritten on every update; nothing carries over between calls.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Dict, FrozenSet, Mapping, Optional

import numpy as np

from case_io.dictionary import boundary_config_entries, parse_boundary_config
from core.errors import LinkedFieldError
from core.registry import VolField
from core.types import BoundaryConfig, FaceRegime, FloatArray, PatchGeometry
from physics.mixed_bc import MixedPatchField
from physics.patch_field_table import register_patch_field
from physics.wave_protocols import WAVE_PRESSURE, WAVE_VELOCITY, WaveVelocityLike

logger = logging.getLogger(__name__)


def classify_faces(flux: FloatArray, inlet_outlet: bool, wave_pressure: bool) -> np.ndarray:
    """
    Regime of every face from the flux sign and the two switches.

    Pure function of its inputs; returns an int8 array of FaceRegime codes.
    """
    flux = np.asarray(flux, dtype=np.float64).reshape(-1)
    if np.any(np.isnan(flux)):
        raise ValueError("Face flux contains NaN; cannot classify inflow/outflow.")
    if wave_pressure:
        outflow_regime = FaceRegime.FIXED_GRADIENT
    elif inlet_outlet:
        outflow_regime = FaceRegime.INLET_OUTLET
    else:
        outflow_regime = FaceRegime.FIXED_VALUE
    return np.where(flux >= 0.0, int(FaceRegime.FIXED_VALUE), int(outflow_regime)).astype(np.int8)


@register_patch_field
class WaveAlphaPatchField(MixedPatchField):
    """Phase fraction set by a superposition of wave models."""

    type_name: ClassVar[str] = "waveAlpha"
    capabilities: ClassVar[FrozenSet[str]] = frozenset()

    def __init__(
        self,
        patch: PatchGeometry,
        internal: VolField,
        config: Optional[BoundaryConfig] = None,
        **arrays: Any,
    ) -> None:
        super().__init__(patch, internal, **arrays)
        self._config = config if config is not None else BoundaryConfig()
        self.regimes = np.zeros(patch.size, dtype=np.int8)

    @classmethod
    def from_entries(
        cls,
        patch: PatchGeometry,
        internal: VolField,
        entries: Mapping[str, Any],
        **context: Any,
    ) -> "WaveAlphaPatchField":
        config = parse_boundary_config(entries)
        # Linked fields may not be registered yet; coefficients are set on the
        # first update_coeffs(), not here.
        base = MixedPatchField.from_entries(patch, internal, entries)
        return cls(
            patch,
            internal,
            config,
            ref_value=base.ref_value,
            ref_grad=base.ref_grad,
            value_fraction=base.value_fraction,
            value=base.value,
        )

    def clone(self, internal: Optional[VolField] = None) -> "WaveAlphaPatchField":
        new = super().clone(internal)
        new.regimes = self.regimes.copy()
        return new

    def clone_onto(self, patch, internal, mapper) -> "WaveAlphaPatchField":
        new = super().clone_onto(patch, internal, mapper)
        new.regimes = np.zeros(patch.size, dtype=np.int8)
        return new

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------
    @property
    def config(self) -> BoundaryConfig:
        return self._config

    @property
    def liquid(self) -> bool:
        return self._config.liquid

    @property
    def U_name(self) -> str:
        return self._config.U

    @property
    def inlet_outlet(self) -> bool:
        return self._config.inlet_outlet

    def _wave_velocity(self) -> WaveVelocityLike:
        """Resolve the coupled velocity condition; it must carry a wave model."""
        registry = self.registry
        if registry is None:
            raise LinkedFieldError(
                self.U_name, f"Field '{self.internal_field.name}' is not registered; cannot look up '{self.U_name}'."
            )
        Up = registry.lookup_patch_field(self.U_name, self.patch.name)
        if WAVE_VELOCITY not in getattr(Up, "capabilities", ()):
            logger.error(
                "Velocity field '%s' on patch '%s' is %s, which has no wave model.",
                self.U_name,
                self.patch.name,
                type(Up).__name__,
            )
            raise LinkedFieldError(
                self.U_name,
                f"Velocity condition '{self.U_name}' on patch '{self.patch.name}' is not wave-aware.",
            )
        return Up

    def _wave_pressure_active(self) -> bool:
        return self.registry.find_patch_capability(self.patch.name, WAVE_PRESSURE) is not None

    def _phase_fraction(self, Up: WaveVelocityLike, points: FloatArray) -> FloatArray:
        alpha = np.asarray(Up.phase_fraction(self.registry.time, points), dtype=np.float64).reshape(-1)
        if alpha.shape != (self.size,):
            raise ValueError(
                f"Wave phase fraction shape {alpha.shape} != ({self.size},) on patch '{self.patch.name}'"
            )
        return alpha if self.liquid else 1.0 - alpha

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------
    def alpha(self, Up: Optional[WaveVelocityLike] = None) -> FloatArray:
        """Modelled phase fraction at the patch face centres."""
        Up = self._wave_velocity() if Up is None else Up
        return self._phase_fraction(Up, self.patch.face_centres)

    def alphan(self, Up: Optional[WaveVelocityLike] = None) -> FloatArray:
        """Modelled phase fraction at the centres of the adjacent cells."""
        Up = self._wave_velocity() if Up is None else Up
        return self._phase_fraction(Up, self.patch.cell_centres)

    def update_coeffs(self) -> None:
        if self.updated:
            return

        Up = self._wave_velocity()
        flux = np.asarray(Up.face_flux(), dtype=np.float64).reshape(-1)
        if flux.shape != (self.size,):
            raise ValueError(f"Face flux shape {flux.shape} != ({self.size},) on patch '{self.patch.name}'")

        wave_pressure = self._wave_pressure_active()
        regimes = classify_faces(flux, self.inlet_outlet, wave_pressure)
        fixed_value = regimes == FaceRegime.FIXED_VALUE
        fixed_gradient = regimes == FaceRegime.FIXED_GRADIENT

        alpha = self.alpha(Up)
        self.ref_value[:] = alpha
        self.value_fraction[:] = fixed_value.astype(np.float64)
        self.ref_grad[:] = 0.0
        if np.any(fixed_gradient):
            grad = (self.alphan(Up) - alpha) * self.patch.delta_coeffs
            self.ref_grad[fixed_gradient] = grad[fixed_gradient]
        self.regimes = regimes

        logger.debug(
            "waveAlpha '%s' on '%s' (t=%.6g, wavePressure=%s): fixedValue=%d inletOutlet=%d fixedGradient=%d",
            self.internal_field.name,
            self.patch.name,
            self.registry.time,
            wave_pressure,
            int(np.count_nonzero(regimes == FaceRegime.FIXED_VALUE)),
            int(np.count_nonzero(regimes == FaceRegime.INLET_OUTLET)),
            int(np.count_nonzero(fixed_gradient)),
        )

        super().update_coeffs()

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------
    def write(self, entries: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        out = super().write(entries)
        out.update(boundary_config_entries(self._config))
        return out
