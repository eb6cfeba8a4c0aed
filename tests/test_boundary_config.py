"""
Configuration record of the waveAlpha boundary field.

Tests:
1. Defaults and parsing of switches / names
2. Malformed entries raise ConfigurationError naming the key
3. write -> parse reproduces the configuration, defaults omitted
4. waveAlpha write() contributes exactly the configuration keys
5. YAML boundaryField round trip through case_io.dictionary
"""

from __future__ import annotations

import itertools

import numpy as np
import pytest

from case_io.dictionary import (
    boundary_config_entries,
    dump_boundary_field,
    load_boundary_field,
    parse_boundary_config,
    read_switch,
)
from core.errors import ConfigurationError
from core.registry import FieldRegistry
from core.types import BoundaryConfig, PatchGeometry
from physics.mixed_bc import MixedPatchField
from physics.wave_alpha import WaveAlphaPatchField


def _make_alpha_field(config: BoundaryConfig | None = None) -> WaveAlphaPatchField:
    patch = PatchGeometry(
        name="inlet",
        face_centres=[[0.0, 0.0, 0.0], [0.0, 1.0, 0.0]],
        cell_centres=[[0.5, 0.0, 0.0], [0.5, 1.0, 0.0]],
        normals=[[-1.0, 0.0, 0.0], [-1.0, 0.0, 0.0]],
        face_cells=[0, 1],
    )
    registry = FieldRegistry()
    alpha = registry.add_vol_field("alpha.water", np.array([0.2, 0.4]))
    return WaveAlphaPatchField(patch, alpha, config)


def test_defaults():
    cfg = parse_boundary_config({})
    assert cfg == BoundaryConfig()
    assert cfg.U == "U"
    assert cfg.liquid is True
    assert cfg.inlet_outlet is True


def test_parse_all_keys():
    cfg = parse_boundary_config({"type": "waveAlpha", "U": "U.air", "liquid": "no", "inletOutlet": "off"})
    assert cfg == BoundaryConfig(U="U.air", liquid=False, inlet_outlet=False)


@pytest.mark.parametrize(
    "raw, expected",
    [(True, True), (False, False), (1, True), (0, False), ("yes", True), ("On", True), (" false ", False)],
)
def test_read_switch_words(raw, expected):
    assert read_switch({"liquid": raw}, "liquid", default=not expected) is expected


@pytest.mark.parametrize(
    "entries, key",
    [
        ({"liquid": "maybe"}, "liquid"),
        ({"inletOutlet": 2}, "inletOutlet"),
        ({"inletOutlet": None}, "inletOutlet"),
        ({"U": ""}, "U"),
        ({"U": 3}, "U"),
    ],
)
def test_malformed_entries_name_the_key(entries, key):
    with pytest.raises(ConfigurationError, match=key) as excinfo:
        parse_boundary_config(entries)
    assert excinfo.value.key == key


def test_non_mapping_record_raises():
    with pytest.raises(ConfigurationError):
        parse_boundary_config(["U", "U"])


def test_config_is_immutable():
    cfg = BoundaryConfig()
    with pytest.raises(AttributeError):
        cfg.liquid = False  # type: ignore[misc]


@pytest.mark.parametrize(
    "U, liquid, inlet_outlet",
    list(itertools.product(["U", "U.water"], [True, False], [True, False])),
)
def test_write_then_read_reproduces_config(U, liquid, inlet_outlet):
    cfg = BoundaryConfig(U=U, liquid=liquid, inlet_outlet=inlet_outlet)
    assert parse_boundary_config(boundary_config_entries(cfg)) == cfg


def test_write_omits_defaults():
    assert boundary_config_entries(BoundaryConfig()) == {}
    assert boundary_config_entries(BoundaryConfig(inlet_outlet=False)) == {"inletOutlet": False}


def test_patch_field_write_adds_only_config_keys():
    cfg = BoundaryConfig(U="U2", liquid=False, inlet_outlet=False)
    bc = _make_alpha_field(cfg)

    base_keys = set(MixedPatchField.write(bc).keys())
    out = bc.write()

    assert set(out) - base_keys == {"U", "liquid", "inletOutlet"}
    assert out["type"] == "waveAlpha"
    assert parse_boundary_config(out) == cfg


def test_from_entries_reads_config_and_arrays():
    bc = _make_alpha_field()
    rebuilt = WaveAlphaPatchField.from_entries(
        bc.patch,
        bc.internal_field,
        {"type": "waveAlpha", "liquid": False, "value": [0.5, 0.25], "valueFraction": 1.0},
    )
    assert rebuilt.config == BoundaryConfig(liquid=False)
    np.testing.assert_allclose(rebuilt.value, [0.5, 0.25])
    np.testing.assert_allclose(rebuilt.value_fraction, [1.0, 1.0])


def test_yaml_boundary_field_round_trip(tmp_path):
    cfg = BoundaryConfig(U="U.water", liquid=True, inlet_outlet=False)
    bc = _make_alpha_field(cfg)

    path = dump_boundary_field(tmp_path / "alpha.water.yaml", {"inlet": bc.write()})
    records = load_boundary_field(path)

    assert list(records) == ["inlet"]
    assert parse_boundary_config(records["inlet"]) == cfg
    np.testing.assert_allclose(records["inlet"]["value"], bc.value)


def test_load_boundary_field_rejects_non_mapping(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("boundaryField:\n  inlet: [1, 2]\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="inlet"):
        load_boundary_field(path)
