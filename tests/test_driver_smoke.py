"""
Smoke tests for driver/run_wave_patch.py and core/logging_utils.py.

Tests:
1. A two-face flume case runs end to end and writes one YAML per field
2. The written waveAlpha record re-reads to the same configuration
3. Unresolvable coupled velocity, malformed wave model paths and non-mapping
   case files return 2
4. Log level resolution from the environment and the single console level
"""

from __future__ import annotations

import logging

import numpy as np
import pytest
import yaml

from case_io.dictionary import load_boundary_field, parse_boundary_config
from core.errors import ConfigurationError
from core.logging_utils import get_log_level_from_env, setup_logging
from core.types import BoundaryConfig, FaceRegime
from driver.run_wave_patch import build_case, evaluate_case, run_case


class _StillWater:
    """Flat free surface at z = level, fluid at rest, hydrostatic pressure."""

    def __init__(self, level: float = 0.5):
        self.level = level

    def height(self, t, points):
        return np.full(points.shape[0], self.level)

    def velocity(self, t, points):
        return np.zeros((points.shape[0], 3))

    def pressure(self, t, points):
        return 9.81 * (self.level - points[:, 2])


def _case_dict(alpha_record=None, *, with_pressure: bool = True) -> dict:
    alpha_record = alpha_record or {"type": "waveAlpha", "inletOutlet": False}
    fields = {
        "U": {"internal": [[0.0, 0.0, 0.0]] * 2, "boundaryField": {"inlet": {"type": "waveVelocity"}}},
        "alpha.water": {"internal": [0.5, 0.5], "boundaryField": {"inlet": alpha_record}},
    }
    if with_pressure:
        fields["p_rgh"] = {"internal": [0.0, 0.0], "boundaryField": {"inlet": {"type": "wavePressure"}}}
    return {
        "case": {"id": "flume"},
        "time": 1.5,
        "patches": {
            "inlet": {
                "face_centres": [[0.0, 0.5, 0.25], [0.0, 0.5, 0.75]],
                "cell_centres": [[0.1, 0.5, 0.25], [0.1, 0.5, 0.75]],
                "normals": [[-1.0, 0.0, 0.0], [-1.0, 0.0, 0.0]],
                "face_cells": [0, 1],
            }
        },
        "surface_fields": {"phi": {"inlet": [0.2, -0.2]}},
        "fields": fields,
    }


def _write_case(tmp_path, raw: dict):
    path = tmp_path / "flume.yaml"
    path.write_text(yaml.safe_dump(raw, sort_keys=False), encoding="utf-8")
    return path


def test_build_and_evaluate_case():
    registry = build_case(_case_dict(), waves=_StillWater())
    records = evaluate_case(registry)

    assert registry.time == pytest.approx(1.5)
    assert set(records) == {"U", "alpha.water", "p_rgh"}

    bc = registry.lookup_patch_field("alpha.water", "inlet")
    assert bc.regimes.tolist() == [FaceRegime.FIXED_VALUE, FaceRegime.FIXED_GRADIENT]
    # Lower face is under water, upper face is dry; no wave slope so no gradient.
    np.testing.assert_allclose(records["alpha.water"]["inlet"]["refValue"], [1.0, 0.0])
    np.testing.assert_allclose(records["alpha.water"]["inlet"]["refGradient"], [0.0, 0.0])
    np.testing.assert_allclose(records["alpha.water"]["inlet"]["value"], [1.0, 0.5])


def test_run_case_writes_boundary_fields(tmp_path):
    path = _write_case(tmp_path, _case_dict({"type": "waveAlpha", "U": "U", "liquid": False}))
    out_dir = tmp_path / "out"

    assert run_case(path, waves=_StillWater(), output_dir=out_dir, log_level="WARNING") == 0

    for name in ("U", "alpha.water", "p_rgh"):
        assert (out_dir / f"{name}.yaml").is_file()

    records = load_boundary_field(out_dir / "alpha.water.yaml")
    assert records["inlet"]["type"] == "waveAlpha"
    assert parse_boundary_config(records["inlet"]) == BoundaryConfig(liquid=False)
    # Gas fraction: complement of the liquid level set.
    np.testing.assert_allclose(records["inlet"]["refValue"], [0.0, 1.0])


def test_run_case_missing_velocity_returns_2(tmp_path):
    path = _write_case(tmp_path, _case_dict({"type": "waveAlpha", "U": "U2"}, with_pressure=False))
    assert run_case(path, waves=_StillWater(), output_dir=tmp_path / "out") == 2
    assert not (tmp_path / "out").exists()


def test_run_case_bad_wave_model_path_returns_2(tmp_path):
    raw = _case_dict()
    raw["waves"] = {"model": "no_colon_here"}
    path = _write_case(tmp_path, raw)
    assert run_case(path, output_dir=tmp_path / "out") == 2


def test_log_level_from_env(monkeypatch):
    monkeypatch.delenv("WAVEBC_LOG_LEVEL", raising=False)
    monkeypatch.delenv("WAVEBC_DEBUG", raising=False)
    assert get_log_level_from_env("WARNING") == logging.WARNING

    monkeypatch.setenv("WAVEBC_DEBUG", "yes")
    assert get_log_level_from_env("WARNING") == logging.DEBUG

    monkeypatch.setenv("WAVEBC_LOG_LEVEL", "error")
    assert get_log_level_from_env("WARNING") == logging.ERROR


def test_run_case_non_mapping_file_returns_2(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    assert run_case(path, waves=_StillWater(), output_dir=tmp_path / "out") == 2


@pytest.mark.parametrize("field_raw", [[0.5, 0.5], "alpha.water", 3.0])
def test_build_case_rejects_non_mapping_field_record(field_raw):
    raw = _case_dict(with_pressure=False)
    raw["fields"]["alpha.water"] = field_raw
    with pytest.raises(ConfigurationError, match="fields.alpha.water") as excinfo:
        build_case(raw, waves=_StillWater())
    assert excinfo.value.key == "fields.alpha.water"


def test_setup_logging_sets_one_level():
    root = logging.getLogger()
    saved = root.level
    try:
        setup_logging(level=logging.DEBUG)
        assert root.level == logging.DEBUG
        setup_logging(level=logging.ERROR)
        assert root.level == logging.ERROR
    finally:
        root.setLevel(saved)
