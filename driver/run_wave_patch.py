"""
Driver: evaluate the wave boundary fields of a case at one time level.

Responsibilities:
- Load the case YAML (time, patches, surface fluxes, fields with per-patch
  boundary records, wave model import path).
- Build the field registry and every boundary field through the variant table.
- Run update_coeffs() + evaluate() on every boundary field; log the face
  regimes of waveAlpha patches.
- Write each field's boundaryField block back as YAML.

Case YAML layout:

    case: {id: flume}
    time: 0.0
    waves: {model: "package.module:Factory", args: {...}}
    patches:
      inlet: {face_centres: [...], cell_centres: [...], normals: [...], face_cells: [...]}
    surface_fields:
      phi: {inlet: [...]}
    fields:
      U:           {internal: [...], boundaryField: {inlet: {type: waveVelocity}}}
      alpha.water: {internal: [...], boundaryField: {inlet: {type: waveAlpha}}}
"""

from __future__ import annotations

import argparse
import importlib
import logging
import traceback
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np
import yaml

from case_io.dictionary import read_yaml_text, dump_boundary_field
from core.errors import ConfigurationError
from core.logging_utils import get_log_level_from_env, setup_logging
from core.registry import FieldRegistry
from core.types import FaceRegime, PatchGeometry
from physics.patch_field_table import new_patch_field
from physics.wave_alpha import WaveAlphaPatchField

# Variant modules register themselves in the patch field table on import.
import physics.wave_pressure  # noqa: F401
import physics.wave_velocity  # noqa: F401

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# YAML loader
# -----------------------------------------------------------------------------
def _require(raw: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in raw:
        raise ConfigurationError(key, f"Missing required key '{key}' in {where}.")
    return raw[key]


def _require_mapping(raw: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise ConfigurationError(where, f"{where} must be a mapping, got {type(raw).__name__}.")
    return raw


def _load_wave_model(waves_raw: Mapping[str, Any]):
    """Import and build the wave model named by waves.model ('module:attr')."""
    target = str(_require(_require_mapping(waves_raw, "waves"), "model", "waves"))
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigurationError("model", f"waves.model must look like 'module:attr', got {target!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError("model", f"Cannot import wave model module '{module_name}': {exc}") from exc
    factory = getattr(module, attr, None)
    if factory is None:
        raise ConfigurationError("model", f"Module '{module_name}' has no attribute '{attr}'.")
    args = waves_raw.get("args", {}) or {}
    return factory(**args)


def _build_patches(patches_raw: Mapping[str, Any]) -> Dict[str, PatchGeometry]:
    patches: Dict[str, PatchGeometry] = {}
    for name, raw in _require_mapping(patches_raw, "patches").items():
        where = f"patches.{name}"
        _require_mapping(raw, where)
        patches[str(name)] = PatchGeometry(
            name=str(name),
            face_centres=_require(raw, "face_centres", where),
            cell_centres=_require(raw, "cell_centres", where),
            normals=_require(raw, "normals", where),
            face_cells=_require(raw, "face_cells", where),
        )
    return patches


def build_case(raw: Mapping[str, Any], *, waves=None) -> FieldRegistry:
    """Build registry, patches and boundary fields from a loaded case mapping."""
    raw = _require_mapping(raw, "<case>")
    registry = FieldRegistry(time=float(raw.get("time", 0.0)))
    patches = _build_patches(_require(raw, "patches", "case"))

    if waves is None and raw.get("waves") is not None:
        waves = _load_wave_model(raw["waves"])

    for name, patch_values in (raw.get("surface_fields", {}) or {}).items():
        registry.add_surface_field(str(name), patch_values)

    fields_raw = _require_mapping(_require(raw, "fields", "case"), "fields")
    for field_name, field_raw in fields_raw.items():
        _require_mapping(field_raw, f"fields.{field_name}")
        vf = registry.add_vol_field(str(field_name), _require(field_raw, "internal", f"fields.{field_name}"))
        boundary_raw = _require_mapping(
            _require(field_raw, "boundaryField", f"fields.{field_name}"), f"fields.{field_name}.boundaryField"
        )
        for patch_name, record in boundary_raw.items():
            patch = patches.get(str(patch_name))
            if patch is None:
                raise ConfigurationError(
                    str(patch_name), f"fields.{field_name}.boundaryField names unknown patch '{patch_name}'."
                )
            record = _require_mapping(record, f"fields.{field_name}.boundaryField.{patch_name}")
            vf.boundary[patch.name] = new_patch_field(patch, vf, record, waves=waves)
    return registry


def _log_regimes(field_name: str, pf: WaveAlphaPatchField) -> None:
    counts = {regime.name: int(np.count_nonzero(pf.regimes == regime)) for regime in FaceRegime}
    logger.info("waveAlpha %s/%s regimes: %s", field_name, pf.patch.name, counts)


def evaluate_case(registry: FieldRegistry) -> Dict[str, Dict[str, Dict[str, Any]]]:
    """Update and evaluate every boundary field; return the written records."""
    for vf in registry.vol_fields.values():
        for pf in vf.boundary.values():
            pf.update_coeffs()

    records: Dict[str, Dict[str, Dict[str, Any]]] = {}
    for field_name, vf in registry.vol_fields.items():
        records[field_name] = {}
        for patch_name, pf in vf.boundary.items():
            if isinstance(pf, WaveAlphaPatchField):
                _log_regimes(field_name, pf)
            pf.evaluate()
            records[field_name][patch_name] = pf.write()
    return records


# -----------------------------------------------------------------------------
# Entry points
# -----------------------------------------------------------------------------
def run_case(
    cfg_path: str | Path,
    *,
    waves=None,
    output_dir: Optional[str | Path] = None,
    log_level: int | str = logging.INFO,
) -> int:
    """Evaluate one case. Return 0 on success, 2 on configuration errors."""
    cfg_file = Path(cfg_path).expanduser().resolve()
    try:
        setup_logging(level=get_log_level_from_env(default=log_level))

        raw = _require_mapping(yaml.safe_load(read_yaml_text(cfg_file)) or {}, "<case>")
        case_id = _require_mapping(raw.get("case") or {}, "case").get("id", cfg_file.stem)
        logger.info("Case '%s' at t=%s from %s", case_id, raw.get("time", 0.0), cfg_file)

        registry = build_case(raw, waves=waves)
        records = evaluate_case(registry)

        out_dir = Path(output_dir) if output_dir is not None else cfg_file.parent / "out" / str(case_id)
        for field_name, patch_records in records.items():
            dump_boundary_field(out_dir / f"{field_name}.yaml", patch_records)
        logger.info("Completed case '%s': %d field(s) written to %s", case_id, len(records), out_dir)
        return 0
    except ConfigurationError as exc:
        logger.error("Configuration error (key '%s'): %s", exc.key, exc)
        return 2
    except Exception:
        logger.error("Unhandled exception:\n%s", traceback.format_exc())
        return 99


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Evaluate wave boundary fields for a case.")
    parser.add_argument("case_yaml", help="Path to case YAML file.")
    parser.add_argument(
        "--output_dir",
        default=None,
        help="Directory for the boundaryField YAML files (default: <case dir>/out/<case id>).",
    )
    parser.add_argument(
        "--log_level",
        default="INFO",
        help="Log level (overridden by WAVEBC_LOG_LEVEL).",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    return run_case(args.case_yaml, output_dir=args.output_dir, log_level=args.log_level)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
