from pathlib import Path

import pytest

from leadscout.config import load_config


def test_load_config_valid(tmp_path: Path) -> None:
    cfg_path = tmp_path / "leadscout.yaml"
    cfg_path.write_text(
        """
ai:
  api_key_env: MY_KEY
  discovery_model: gpt-4o
  structure_model: gpt-4o-mini
  audit_model: gpt-4o-mini
  chat_model: gpt-4o
storage:
  snapshot_path: state/leads.sqlite
scouting:
  min_businesses: 3
  max_businesses: 6
  website_audit: false
http:
  timeout_seconds: 5
""",
        encoding="utf-8",
    )

    config = load_config(str(cfg_path))
    assert config["ai"]["api_key_env"] == "MY_KEY"
    assert config["scouting"]["max_businesses"] == 6
    assert config["scouting"]["website_audit"] is False


def test_load_config_applies_defaults(tmp_path: Path) -> None:
    cfg_path = tmp_path / "partial.yaml"
    cfg_path.write_text("storage:\n  snapshot_path: data/leads.sqlite\n", encoding="utf-8")

    config = load_config(str(cfg_path))
    assert config["storage"]["snapshot_path"] == "data/leads.sqlite"
    assert config["ai"]["chat_model"] == "gpt-4o"
    assert config["scouting"]["min_businesses"] == 5
    assert config["http"]["timeout_seconds"] == 10


def test_load_config_rejects_inverted_range(tmp_path: Path) -> None:
    cfg_path = tmp_path / "bad.yaml"
    cfg_path.write_text("scouting:\n  min_businesses: 9\n  max_businesses: 3\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(str(cfg_path))


def test_load_config_rejects_non_mapping_section(tmp_path: Path) -> None:
    cfg_path = tmp_path / "bad.yaml"
    cfg_path.write_text("ai: [gpt-4o]\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(str(cfg_path))


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))
