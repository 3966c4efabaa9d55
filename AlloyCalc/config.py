"""Load, normalise, and save engine configuration from DefaultEngineConfig.yaml."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_CONFIG_PATH = PACKAGE_DIR / "DefaultEngineConfig.yaml"

# mB in one ingot
DEFAULT_UNIT_SIZE = 144
# Largest batch the planner starts from, in ingots
DEFAULT_MAX_BATCH_UNITS = 8

LOG_LEVEL_NAMES = ("SILENT", "MINIMAL", "SUMMARY", "DETAILED", "DEBUG", "TRACE")


@dataclass
class EngineConfig:
    unit_size: int = DEFAULT_UNIT_SIZE
    max_batch_units: int = DEFAULT_MAX_BATCH_UNITS
    log_level: str = "SILENT"
    alloys_file: Optional[Path] = None  # None uses the packaged alloys.yaml

    @property
    def max_batch_volume(self) -> int:
        return self.unit_size * self.max_batch_units


def _parse_positive_int(raw: Any, default: int) -> int:
    """Coerce YAML values such as ``8`` or ``"144"`` to an int >= 1."""
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return max(1, value)


def _parse_log_level(raw: Any) -> str:
    if isinstance(raw, str) and raw.strip().upper() in LOG_LEVEL_NAMES:
        return raw.strip().upper()
    return "SILENT"


def load_config(path: Optional[Path] = None) -> EngineConfig:
    """Load and normalise configuration YAML into EngineConfig dataclass."""
    cfg_path = path or DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        return EngineConfig()

    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}

    engine_raw = raw.get("engine", {}) or {}
    alloys_file = raw.get("alloysFile")
    if alloys_file:
        alloys_path = Path(alloys_file)
        # Relative catalog paths are relative to the config file
        if not alloys_path.is_absolute():
            alloys_path = cfg_path.parent / alloys_path
    else:
        alloys_path = None

    return EngineConfig(
        unit_size=_parse_positive_int(engine_raw.get("unitSize"), DEFAULT_UNIT_SIZE),
        max_batch_units=_parse_positive_int(engine_raw.get("maxBatchUnits"), DEFAULT_MAX_BATCH_UNITS),
        log_level=_parse_log_level(raw.get("logLevel")),
        alloys_file=alloys_path,
    )


def save_config(config: EngineConfig, path: Optional[Path] = None) -> None:
    """
    Save EngineConfig back to YAML file.

    Parameters
    ----------
    config : EngineConfig
        The configuration to save
    path : Path, optional
        Path to save to. Defaults to DefaultEngineConfig.yaml
    """
    cfg_path = path or DEFAULT_CONFIG_PATH

    data: Dict[str, Any] = {
        "engine": {
            "unitSize": config.unit_size,
            "maxBatchUnits": config.max_batch_units,
        },
        "logLevel": config.log_level,
    }
    if config.alloys_file is not None:
        data["alloysFile"] = str(config.alloys_file)

    with cfg_path.open("w", encoding="utf-8") as fh:
        yaml.dump(data, fh, default_flow_style=False, allow_unicode=True, sort_keys=False)
