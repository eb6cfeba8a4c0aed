"""
Query contracts for the wave model and the wave-aware boundary fields.

The wave kinematics themselves live outside this repository. Anything that
satisfies `WaveModel` can drive the wave boundary conditions; anything that
satisfies `WaveVelocityLike` and declares the `WAVE_VELOCITY` capability can
be coupled to the phase-fraction condition.
"""

from __future__ import annotations

from typing import Collection, Protocol

from core.types import FloatArray

# Capability tags declared by patch fields and queried through the registry.
WAVE_VELOCITY = "waveVelocity"
WAVE_PRESSURE = "wavePressure"


class WaveModel(Protocol):
    """
    Protocol for a (superposed) wave model evaluated at arbitrary points.

    `points` is always an (n, 3) array of coordinates [m]; `t` is the
    simulation time [s].
    """

    def height(self, t: float, points: FloatArray) -> FloatArray:
        """Free-surface elevation above each point's horizontal position, (n,) [m]."""
        ...

    def velocity(self, t: float, points: FloatArray) -> FloatArray:
        """Fluid velocity at each point, (n, 3) [m/s]."""
        ...

    def pressure(self, t: float, points: FloatArray) -> FloatArray:
        """Kinematic pressure at each point, (n,) [m^2/s^2]."""
        ...


class WaveVelocityLike(Protocol):
    """What the phase-fraction condition needs from its coupled velocity condition."""

    capabilities: Collection[str]

    def face_flux(self) -> FloatArray:
        """Signed face flux on the patch, (nF,), positive into the domain [m^3/s]."""
        ...

    def phase_fraction(self, t: float, points: FloatArray) -> FloatArray:
        """Liquid fraction of the wave model at each point, (n,) in [0, 1]."""
        ...


class PhaseFractionWaveModel(WaveModel, Protocol):
    """
    Wave model that also reports its own liquid fraction.

    Optional extension of `WaveModel`: when present, `alpha` is used in place
    of the binary level set, so faces and cells cut by the surface can carry
    intermediate fractions.
    """

    def alpha(self, t: float, points: FloatArray) -> FloatArray:
        """Liquid fraction at each point, (n,) in [0, 1]."""
        ...
