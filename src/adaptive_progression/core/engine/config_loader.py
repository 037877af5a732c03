"""
YAML → EngineSettings loader.

Loads the tunable model settings from progression.yaml (bundled with the
package) and optionally merges user overrides from
~/.adaptive-progression/progression.yaml.

Usage:
    from adaptive_progression.core.engine.config_loader import load_engine_settings
    settings = load_engine_settings()
    result = regenerate_plan(plan, current, previous, settings=settings)

A user override file that cannot be parsed, or that yields invalid
settings, is reported with warnings.warn and ignored.
"""

from __future__ import annotations

import importlib.resources
import os
import warnings
from pathlib import Path
from typing import Any

import yaml

from ..config import EngineSettings

# YAML section -> {yaml key: EngineSettings field}
_SETTINGS_KEYS: dict[str, dict[str, str]] = {
    "safety": {
        "VOLUME_CAP_RATIO": "volume_cap_ratio",
        "MAX_SET_INCREASE": "max_set_increase",
        "COMPOUND_SET_THRESHOLD": "compound_set_threshold",
        "COMPOUND_WEIGHT_CAP_PCT": "compound_weight_cap_pct",
        "ISOLATION_WEIGHT_CAP_PCT": "isolation_weight_cap_pct",
        "DELOAD_DETECTION_RATIO": "deload_detection_ratio",
        "DELOAD_WEIGHT_FACTOR": "deload_weight_factor",
    },
    "regeneration": {
        "REST_STEP_SECONDS": "rest_step_seconds",
        "REST_MIN_SECONDS": "rest_min_seconds",
        "REST_MAX_SECONDS": "rest_max_seconds",
        "DURATION_MIN_MINUTES": "duration_min_minutes",
        "DURATION_MAX_MINUTES": "duration_max_minutes",
    },
    "cycle": {
        "WEEK_MULTIPLIERS": "cycle_multipliers",
        "WEIGHT_UP_FACTOR": "cycle_weight_up_factor",
        "WEIGHT_DOWN_FACTOR": "cycle_weight_down_factor",
    },
}

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML mapping.

    Raises:
        OSError: If the file cannot be read
        yaml.YAMLError: If the file is not valid YAML
    """
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def settings_from_dict(config: dict[str, Any]) -> EngineSettings:
    """
    Build EngineSettings from a merged config dict.

    Unknown sections and keys are ignored; missing keys keep their defaults.

    Raises:
        ValueError: If a value has the wrong type or breaks a settings invariant
    """
    kwargs: dict[str, Any] = {}
    for section, keys in _SETTINGS_KEYS.items():
        values = config.get(section) or {}
        if not isinstance(values, dict):
            raise ValueError(f"Section {section!r} must be a mapping")
        for yaml_key, field_name in keys.items():
            if yaml_key not in values:
                continue
            value = values[yaml_key]
            if field_name == "cycle_multipliers":
                kwargs[field_name] = tuple(float(v) for v in value)
            elif isinstance(EngineSettings.__dataclass_fields__[field_name].default, int):
                kwargs[field_name] = int(value)
            else:
                kwargs[field_name] = float(value)
    return EngineSettings(**kwargs)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path:
    """Return the path to the bundled progression.yaml."""
    ref = importlib.resources.files("adaptive_progression").joinpath("progression.yaml")
    with importlib.resources.as_file(ref) as p:
        return p


def get_user_yaml_path() -> Path | None:
    """Return ~/.adaptive-progression/progression.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".adaptive-progression" / "progression.yaml"
    return p if p.exists() else None


def load_model_config(user_path: Path | None = None) -> dict[str, Any]:
    """
    Load and merge model configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/adaptive_progression/progression.yaml
    2. User override (``user_path`` or ~/.adaptive-progression/progression.yaml)

    Returns:
        Merged dict of config sections
    """
    config = _load_yaml_file(get_bundled_yaml_path())

    user = user_path if user_path is not None else get_user_yaml_path()
    if user is not None:
        try:
            config = _deep_merge(config, _load_yaml_file(user))
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(
                f"adaptive-progression: ignoring user config {user} ({exc})",
                stacklevel=2,
            )

    return config


def load_engine_settings(user_path: Path | None = None) -> EngineSettings:
    """
    Load EngineSettings from the bundled YAML plus the user override.

    If the merged settings are invalid the user override is dropped with a
    warning and the bundled settings are used.
    """
    try:
        return settings_from_dict(load_model_config(user_path))
    except (ValueError, TypeError) as exc:
        warnings.warn(
            f"adaptive-progression: invalid settings override ({exc}); using bundled settings.",
            stacklevel=2,
        )
        return settings_from_dict(_load_yaml_file(get_bundled_yaml_path()))
