"""
Key/value configuration records and their YAML text form.

- read_switch / read_word: typed reads with defaults; bad values raise
  ConfigurationError naming the key.
- parse_boundary_config / boundary_config_entries: BoundaryConfig <-> record.
  Keys equal to their default are omitted on write.
- load_boundary_field / dump_boundary_field: a `boundaryField` block keyed by
  patch name, stored as YAML.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from core.errors import ConfigurationError
from core.types import BoundaryConfig

logger = logging.getLogger(__name__)

_SWITCH_WORDS = {
    "true": True,
    "yes": True,
    "on": True,
    "1": True,
    "false": False,
    "no": False,
    "off": False,
    "0": False,
}


def read_switch(entries: Mapping[str, Any], key: str, default: bool) -> bool:
    """Read a boolean switch; accepts bools, 0/1 and the usual switch words."""
    if key not in entries:
        return default
    raw = entries[key]
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        word = raw.strip().lower()
        if word in _SWITCH_WORDS:
            return _SWITCH_WORDS[word]
    raise ConfigurationError(key, f"Entry '{key}' is not a valid switch: {raw!r}")


def read_word(entries: Mapping[str, Any], key: str, default: str) -> str:
    """Read a non-empty name."""
    if key not in entries:
        return default
    raw = entries[key]
    if not isinstance(raw, str) or not raw.strip():
        raise ConfigurationError(key, f"Entry '{key}' must be a non-empty name, got {raw!r}")
    return raw.strip()


def parse_boundary_config(entries: Mapping[str, Any]) -> BoundaryConfig:
    """Build a BoundaryConfig from a boundary record; absent keys take defaults."""
    if not isinstance(entries, Mapping):
        raise ConfigurationError("<record>", f"Boundary record must be a mapping, got {type(entries).__name__}")
    defaults = BoundaryConfig()
    return BoundaryConfig(
        U=read_word(entries, "U", defaults.U),
        liquid=read_switch(entries, "liquid", defaults.liquid),
        inlet_outlet=read_switch(entries, "inletOutlet", defaults.inlet_outlet),
    )


def boundary_config_entries(cfg: BoundaryConfig) -> Dict[str, Any]:
    """Record form of `cfg`, omitting every key still equal to its default."""
    defaults = BoundaryConfig()
    out: Dict[str, Any] = {}
    if cfg.U != defaults.U:
        out["U"] = cfg.U
    if cfg.liquid != defaults.liquid:
        out["liquid"] = cfg.liquid
    if cfg.inlet_outlet != defaults.inlet_outlet:
        out["inletOutlet"] = cfg.inlet_outlet
    return out


# -----------------------------------------------------------------------------
# YAML text form
# -----------------------------------------------------------------------------
def read_yaml_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError:
        return path.read_text()


def load_boundary_field(path: str | Path) -> Dict[str, Dict[str, Any]]:
    """Load a `boundaryField` block: {patch name: boundary record}."""
    path = Path(path).expanduser().resolve()
    raw = yaml.safe_load(read_yaml_text(path)) or {}
    block = raw.get("boundaryField", raw) if isinstance(raw, Mapping) else None
    if not isinstance(block, Mapping):
        raise ConfigurationError("boundaryField", f"{path} does not hold a boundaryField mapping.")
    out: Dict[str, Dict[str, Any]] = {}
    for patch_name, record in block.items():
        if not isinstance(record, Mapping):
            raise ConfigurationError(str(patch_name), f"Boundary record for patch '{patch_name}' must be a mapping.")
        out[str(patch_name)] = dict(record)
    return out


def dump_boundary_field(path: str | Path, records: Mapping[str, Mapping[str, Any]]) -> Path:
    """Write {patch name: boundary record} as a YAML `boundaryField` block."""
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"boundaryField": {name: dict(rec) for name, rec in records.items()}}
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(payload, f, sort_keys=False)
    logger.info("Wrote boundaryField for %d patch(es) to %s", len(records), path)
    return path
