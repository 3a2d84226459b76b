from __future__ import annotations

import copy
from pathlib import Path

import yaml

DEFAULT_CONFIG_PATH = "config/leadscout.yaml"

DEFAULTS = {
    "ai": {
        "api_key_env": "OPENAI_API_KEY",
        "discovery_model": "gpt-4o",
        "structure_model": "gpt-4o-mini",
        "audit_model": "gpt-4o-mini",
        "chat_model": "gpt-4o",
        "timeout_seconds": 60,
    },
    "storage": {
        "snapshot_path": "state/leadscout.sqlite",
    },
    "scouting": {
        "min_businesses": 5,
        "max_businesses": 8,
        "website_audit": True,
    },
    "http": {
        "timeout_seconds": 10,
    },
}

MODEL_KEYS = ["discovery_model", "structure_model", "audit_model", "chat_model"]


def _ensure_mapping(config: dict, key: str) -> None:
    if key in config and not isinstance(config[key], dict):
        raise ValueError(f"Section '{key}' must be a mapping")


def _ensure_positive_int(section: dict, key: str, section_name: str) -> None:
    value = section.get(key)
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ValueError(f"Field '{section_name}.{key}' must be a positive integer")


def _validate(config: dict) -> None:
    ai = config["ai"]
    for key in MODEL_KEYS + ["api_key_env"]:
        if not isinstance(ai.get(key), str) or not ai[key].strip():
            raise ValueError(f"Field 'ai.{key}' must be a non-empty string")

    storage = config["storage"]
    if not isinstance(storage.get("snapshot_path"), str) or not storage["snapshot_path"].strip():
        raise ValueError("Field 'storage.snapshot_path' must be a non-empty string")

    scouting = config["scouting"]
    _ensure_positive_int(scouting, "min_businesses", "scouting")
    _ensure_positive_int(scouting, "max_businesses", "scouting")
    if scouting["min_businesses"] > scouting["max_businesses"]:
        raise ValueError("scouting.min_businesses must not exceed scouting.max_businesses")
    if not isinstance(scouting.get("website_audit"), bool):
        raise ValueError("Field 'scouting.website_audit' must be a boolean")

    _ensure_positive_int(config["http"], "timeout_seconds", "http")


def _apply_defaults(config: dict) -> dict:
    for section, values in DEFAULTS.items():
        config.setdefault(section, {})
        for key, value in values.items():
            config[section].setdefault(key, value)
    return config


def default_config() -> dict:
    return copy.deepcopy(DEFAULTS)


def load_config(path: str = DEFAULT_CONFIG_PATH) -> dict:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with config_path.open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle) or {}

    if not isinstance(loaded, dict):
        raise ValueError("Top-level config must be a YAML mapping")

    for section in DEFAULTS:
        _ensure_mapping(loaded, section)

    config = _apply_defaults(loaded)
    _validate(config)
    return config
