"""
Strongly typed containers for patch geometry, patch mapping and the wave
phase-fraction boundary configuration.

Global shape and sign conventions (law of the land):
- nF: number of faces on the patch
- face_centres.shape == cell_centres.shape == normals.shape == (nF, 3)
- face_cells.shape == (nF,); indices into the owning field's internal values
- normals are unit vectors pointing out of the domain
- face flux is positive INTO the domain: flux >= 0 inflow, flux < 0 outflow
- the vertical axis is z (index 2); the liquid sits below the wave surface
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional

import numpy as np
from numpy.typing import NDArray

FloatArray = NDArray[np.float64]
IntArray = NDArray[np.int64]

DEFAULT_U_NAME = "U"


class FaceRegime(IntEnum):
    """Numerical regime applied to one patch face during one update."""

    FIXED_VALUE = 0
    INLET_OUTLET = 1  # pass-through: zero gradient on outflow
    FIXED_GRADIENT = 2


@dataclass(frozen=True, slots=True)
class BoundaryConfig:
    """
    Settings of the wave phase-fraction condition.

    Attributes
    ----------
    U : str
        Name of the coupled velocity field.
    liquid : bool
        True when the phase fraction is that of the liquid under the wave.
    inlet_outlet : bool
        Outflow strategy when no wave-pressure condition is present:
        pass-through (True) or fixed wave value (False).
    """

    U: str = DEFAULT_U_NAME
    liquid: bool = True
    inlet_outlet: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.U, str) or not self.U:
            raise TypeError("U must be a non-empty field name.")
        if not isinstance(self.liquid, bool):
            raise TypeError("liquid must be bool (loader must coerce switches).")
        if not isinstance(self.inlet_outlet, bool):
            raise TypeError("inlet_outlet must be bool (loader must coerce switches).")


@dataclass(slots=True)
class PatchGeometry:
    """
    Per-face geometry of one boundary patch.

    Attributes
    ----------
    name : str
        Patch name; the key used for registry lookups.
    face_centres : FloatArray
        (nF, 3) face centre coordinates [m].
    cell_centres : FloatArray
        (nF, 3) centres of the cells adjacent to each face [m].
    normals : FloatArray
        (nF, 3) outward unit normals.
    face_cells : IntArray
        (nF,) adjacent cell index of each face.
    """

    name: str
    face_centres: FloatArray
    cell_centres: FloatArray
    normals: FloatArray
    face_cells: IntArray
    _delta_coeffs: Optional[FloatArray] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Patch name must be provided.")
        self.face_centres = np.asarray(self.face_centres, dtype=np.float64).reshape(-1, 3)
        nF = self.face_centres.shape[0]
        self.cell_centres = np.asarray(self.cell_centres, dtype=np.float64).reshape(-1, 3)
        self.normals = np.asarray(self.normals, dtype=np.float64).reshape(-1, 3)
        self.face_cells = np.asarray(self.face_cells, dtype=np.int64).reshape(-1)

        for label, arr in (
            ("cell_centres", self.cell_centres),
            ("normals", self.normals),
        ):
            if arr.shape != (nF, 3):
                raise ValueError(f"{label} shape {arr.shape} != ({nF}, 3) on patch '{self.name}'")
        if self.face_cells.shape != (nF,):
            raise ValueError(f"face_cells shape {self.face_cells.shape} != ({nF},) on patch '{self.name}'")
        if not (np.all(np.isfinite(self.face_centres)) and np.all(np.isfinite(self.cell_centres))):
            raise ValueError(f"Non-finite coordinates on patch '{self.name}'")

        mag = np.linalg.norm(self.normals, axis=1)
        if np.any(mag <= 0.0):
            raise ValueError(f"Zero-length face normal on patch '{self.name}'")
        self.normals = self.normals / mag[:, None]

    @property
    def size(self) -> int:
        return int(self.face_centres.shape[0])

    @property
    def delta_coeffs(self) -> FloatArray:
        """Inverse normal distance from each face centre to its cell centre [1/m]."""
        if self._delta_coeffs is None:
            dist = np.einsum("ij,ij->i", self.normals, self.face_centres - self.cell_centres)
            if np.any(~np.isfinite(dist)) or np.any(dist <= 0.0):
                raise ValueError(
                    f"Non-positive face-to-cell distance on patch '{self.name}'; "
                    "check normal orientation."
                )
            self._delta_coeffs = 1.0 / dist
        return self._delta_coeffs


@dataclass(frozen=True, slots=True)
class PatchMapper:
    """Direct addressing: new face i takes the data of old face addressing[i]."""

    addressing: IntArray

    def __post_init__(self) -> None:
        addr = np.asarray(self.addressing, dtype=np.int64).reshape(-1)
        if np.any(addr < 0):
            raise ValueError("PatchMapper addressing must be non-negative.")
        object.__setattr__(self, "addressing", addr)

    @property
    def size(self) -> int:
        return int(self.addressing.size)

    def __call__(self, values: np.ndarray) -> np.ndarray:
        values = np.asarray(values)
        if self.size and int(self.addressing.max()) >= values.shape[0]:
            raise ValueError(
                f"PatchMapper addresses face {int(self.addressing.max())} "
                f"but source has only {values.shape[0]} faces."
            )
        return values[self.addressing].copy()
