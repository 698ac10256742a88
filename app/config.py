# app/config.py
from __future__ import annotations
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
import json
import logging

from app.errors import ConfigError

log = logging.getLogger(__name__)

# -------- defaults --------
GAME_DURATION = 60  # seconds
QUEST_COUNT = 3
QUEST_SELECTION_POLICIES = ("first", "random")

DIFFICULTY_FACTORS: Dict[str, float] = {
    "easy": 0.8,
    "normal": 1.0,
    "hard": 1.2,
    "lunatic": 1.5,
}

_SETTINGS_FILE = Path("settings.json")


@dataclass(frozen=True)
class ScoringConfig:
    base_points: float = 10.0
    miss_penalty: float = 15.0
    combo_multiplier: float = 0.02
    time_bonus_factor: float = 200.0
    difficulty_factors: Dict[str, float] = field(
        default_factory=lambda: dict(DIFFICULTY_FACTORS)
    )


@dataclass
class GameConfig:
    duration: int = GAME_DURATION
    quest_count: int = QUEST_COUNT
    quest_selection: str = "first"
    quest_seed: Optional[int] = None
    phrases_path: str = "assets/catalogs/phrases.json"
    quests_path: str = "assets/catalogs/quests.json"
    db_path: str = "data/history.db"
    sfx_dir: str = "assets/sfx"
    scoring: ScoringConfig = field(default_factory=ScoringConfig)

    def validate(self) -> "GameConfig":
        if int(self.duration) <= 0:
            raise ConfigError(f"duration must be positive, got {self.duration!r}")
        if int(self.quest_count) < 0:
            raise ConfigError(f"quest_count cannot be negative, got {self.quest_count!r}")
        if self.quest_selection not in QUEST_SELECTION_POLICIES:
            raise ConfigError(
                f"quest_selection must be one of {', '.join(QUEST_SELECTION_POLICIES)}"
            )
        missing = set(DIFFICULTY_FACTORS) - set(self.scoring.difficulty_factors)
        if missing:
            raise ConfigError(f"Missing difficulty factors: {', '.join(sorted(missing))}")
        return self


# -------- helpers --------
def _scoring_from_dict(d: Dict[str, Any]) -> ScoringConfig:
    if not isinstance(d, Mapping):
        raise ConfigError(f"scoring must be an object, got {type(d).__name__}")
    known = {f.name for f in fields(ScoringConfig)}
    kwargs: Dict[str, Any] = {}
    for key, value in d.items():
        if key not in known:
            log.warning("Ignoring unknown scoring setting %r", key)
            continue
        if key == "difficulty_factors":
            if not isinstance(value, Mapping):
                raise ConfigError("scoring.difficulty_factors must be an object")
            merged = dict(DIFFICULTY_FACTORS)
            merged.update({str(k): float(v) for k, v in value.items()})
            kwargs[key] = merged
        else:
            kwargs[key] = float(value)
    return ScoringConfig(**kwargs)


def config_from_dict(d: Dict[str, Any], base: Optional[GameConfig] = None) -> GameConfig:
    """Overlay a settings mapping onto ``base`` (defaults when omitted)."""
    cfg = base or GameConfig()
    known = {f.name for f in fields(GameConfig)}
    changes: Dict[str, Any] = {}
    try:
        for key, value in d.items():
            if key not in known:
                log.warning("Ignoring unknown setting %r", key)
            elif key == "scoring":
                changes[key] = _scoring_from_dict(value)
            elif key in ("duration", "quest_count"):
                changes[key] = int(value)
            elif key == "quest_seed":
                changes[key] = None if value is None else int(value)
            else:
                changes[key] = str(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid setting value: {e}") from e
    return replace(cfg, **changes).validate()


# -------- public API --------
def load_config(path: Path | str = _SETTINGS_FILE) -> GameConfig:
    """Load settings.json overrides (if present) on top of the defaults."""
    p = Path(path)
    if not p.exists():
        return GameConfig()
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning("Failed to read %s, using defaults: %s", p, e)
        return GameConfig()
    if not isinstance(data, dict):
        log.warning("Settings file %s is not an object, using defaults", p)
        return GameConfig()
    return config_from_dict(data)
