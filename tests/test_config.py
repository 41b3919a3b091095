"""Tests for configuration loading and validation."""

import json
from pathlib import Path

import pytest

from shiftplanner.config import SchedulerConfig, config_from_dict, load_config

REPO_CONFIG = Path(__file__).resolve().parent.parent / "scheduler_config.yaml"


def test_defaults():
    cfg = SchedulerConfig()

    assert cfg.max_consecutive_days == 6
    assert cfg.fairness_lookback_days == 30
    assert cfg.weights.rating == 0.25
    assert cfg.weights.floor == 0.10
    assert cfg.bonuses.development == 0.08
    assert cfg.shift_type_aliases["closing"] == "evening"


def test_load_config_without_path_gives_defaults():
    assert load_config(None) == SchedulerConfig()


def test_repository_config_matches_defaults():
    """Test the shipped YAML file only restates the defaults."""
    assert load_config(REPO_CONFIG) == SchedulerConfig()


def test_load_partial_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("max_consecutive_days: 5\nweights:\n  swap: 0.3\n")

    cfg = load_config(path)

    assert cfg.max_consecutive_days == 5
    assert cfg.weights.swap == 0.3
    assert cfg.weights.rating == 0.25


def test_load_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"default_required_count": 3, "shift_type_aliases": {"late": "night"}}))

    cfg = load_config(path)

    assert cfg.default_required_count == 3
    assert cfg.shift_type_aliases["late"] == "night"
    assert cfg.shift_type_aliases["closing"] == "evening"


def test_unknown_keys_rejected():
    with pytest.raises(ValueError, match="Unknown config key"):
        config_from_dict({"max_hours": 40})
    with pytest.raises(ValueError, match="weights"):
        config_from_dict({"weights": {"seniority": 0.1}})


def test_invalid_values_rejected():
    with pytest.raises(ValueError):
        config_from_dict({"default_required_count": 0})
    with pytest.raises(ValueError):
        config_from_dict({"weights": {"rating": -0.1}})
    with pytest.raises(ValueError):
        config_from_dict({"default_shifts": [{"name": "morning", "start": "07:00", "end": "15:00"}]})


def test_top_level_must_be_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")

    with pytest.raises(ValueError):
        load_config(path)
