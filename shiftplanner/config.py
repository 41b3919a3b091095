"""Scheduler configuration: scoring weights, rest rules and defaults.

Configuration is read from YAML (or JSON, by file extension) and merged onto
the defaults below, so a config file only needs the keys it overrides.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Dict, List

import yaml


@dataclass
class ScoringWeights:
    """Weights of the composite candidate score."""

    rating: float = 0.25
    fairness: float = 0.25
    availability: float = 0.20
    swap: float = 0.10
    tag_match: float = 0.10
    floor: float = 0.10  # constant added to every score


@dataclass
class RatingWeights:
    reliability: float = 0.3
    flexibility: float = 0.3
    performance: float = 0.2
    teamwork: float = 0.2
    default_rating: float = 3.0


@dataclass
class ConversationBonuses:
    utilization: float = 0.05
    development: float = 0.08
    soft_burnout: float = -0.05


@dataclass
class ShiftWindow:
    name: str
    start: str
    end: str


def _default_shifts() -> List[ShiftWindow]:
    return [
        ShiftWindow("morning", "07:00", "15:00"),
        ShiftWindow("evening", "15:00", "23:00"),
        ShiftWindow("night", "23:00", "07:00"),
    ]


def _default_aliases() -> Dict[str, str]:
    return {
        "morning": "morning",
        "evening": "evening",
        "night": "night",
        "closing": "evening",
    }


@dataclass
class SchedulerConfig:
    db_url: str = "sqlite:///shiftplanner.db"
    log_level: str = "INFO"
    fairness_lookback_days: int = 30
    max_consecutive_days: int = 6
    default_required_count: int = 2
    default_shifts: List[ShiftWindow] = field(default_factory=_default_shifts)
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    rating_weights: RatingWeights = field(default_factory=RatingWeights)
    bonuses: ConversationBonuses = field(default_factory=ConversationBonuses)
    # Free-form shift words used in directive parameters -> shift catalog names
    shift_type_aliases: Dict[str, str] = field(default_factory=_default_aliases)


_NESTED = {
    "weights": ScoringWeights,
    "rating_weights": RatingWeights,
    "bonuses": ConversationBonuses,
}


def _build_section(cls, raw: Dict, section: str):
    known = {f.name for f in fields(cls)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(f"Unknown keys in config section '{section}': {sorted(unknown)}")
    return cls(**raw)


def config_from_dict(raw: Dict | None) -> SchedulerConfig:
    """Build a validated SchedulerConfig from a (possibly partial) mapping."""
    raw = dict(raw or {})
    cfg = SchedulerConfig()

    for key, value in raw.items():
        if key in _NESTED:
            setattr(cfg, key, _build_section(_NESTED[key], value or {}, key))
        elif key == "default_shifts":
            cfg.default_shifts = [ShiftWindow(**w) for w in value]
        elif key == "shift_type_aliases":
            aliases = _default_aliases()
            aliases.update({str(k).lower(): str(v).lower() for k, v in (value or {}).items()})
            cfg.shift_type_aliases = aliases
        elif hasattr(cfg, key):
            setattr(cfg, key, value)
        else:
            raise ValueError(f"Unknown config key: {key}")

    validate_config(cfg)
    return cfg


def validate_config(cfg: SchedulerConfig) -> None:
    if cfg.default_required_count < 1:
        raise ValueError("default_required_count must be >= 1")
    if cfg.max_consecutive_days < 1:
        raise ValueError("max_consecutive_days must be >= 1")
    if cfg.fairness_lookback_days < 1:
        raise ValueError("fairness_lookback_days must be >= 1")
    for section in ("weights", "rating_weights"):
        for name, value in asdict(getattr(cfg, section)).items():
            if value < 0:
                raise ValueError(f"{section}.{name} must be non-negative, got {value}")
    shift_names = [w.name for w in cfg.default_shifts]
    if sorted(shift_names) != sorted({"morning", "evening", "night"}):
        raise ValueError(f"default_shifts must define morning, evening and night, got {shift_names}")


def load_config(path: str | Path | None = None) -> SchedulerConfig:
    """
    Load configuration from a YAML or JSON file.

    Args:
        path: Config file path; None returns the defaults

    Returns:
        SchedulerConfig
    """
    if path is None:
        return SchedulerConfig()

    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        raw = json.loads(text)
    else:
        raw = yaml.safe_load(text)
    if raw is not None and not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")
    return config_from_dict(raw)
