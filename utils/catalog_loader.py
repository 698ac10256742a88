import json, os
import logging
from pathlib import Path
from typing import Any, List, Mapping

from app.errors import CatalogLoadError
from app.state import Phrase
from services.quests import CONDITION_KEYS, QuestDefinition, QuestType

log = logging.getLogger(__name__)

SFX_CUES = ("start", "type", "miss", "success", "quest", "end")


def _entries(data: Any, key: str, source: str) -> list:
    if not isinstance(data, Mapping) or not isinstance(data.get(key), list):
        raise CatalogLoadError(f"{source}: expected an object with a '{key}' array")
    return data[key]


def _read_json(path) -> Any:
    p = Path(path)
    try:
        return json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise CatalogLoadError(f"{p}: {e}") from e


def parse_phrase_catalog(data: Any, source: str = "<phrases>") -> List[Phrase]:
    phrases = []
    for i, item in enumerate(_entries(data, "phrases", source)):
        if not isinstance(item, Mapping) or "id" not in item:
            raise CatalogLoadError(f"{source}: phrase #{i} has no id")
        text = item.get("text")
        if not isinstance(text, str) or not text:
            raise CatalogLoadError(f"{source}: phrase {item['id']!r} needs non-empty text")
        phrases.append(Phrase(id=str(item["id"]), text=text))
    return phrases


def parse_quest_catalog(data: Any, source: str = "<quests>") -> List[QuestDefinition]:
    quests = []
    for i, item in enumerate(_entries(data, "quests", source)):
        if not isinstance(item, Mapping):
            raise CatalogLoadError(f"{source}: quest #{i} is not an object")
        missing = {"id", "type", "condition", "description"} - set(item.keys())
        if missing:
            raise CatalogLoadError(
                f"{source}: quest #{i} missing {', '.join(sorted(missing))}"
            )
        try:
            kind = QuestType(item["type"])
        except ValueError:
            raise CatalogLoadError(f"{source}: unknown quest type {item['type']!r}") from None
        condition = item["condition"]
        if not isinstance(condition, Mapping) or CONDITION_KEYS[kind] not in condition:
            raise CatalogLoadError(
                f"{source}: quest {item['id']!r} condition needs '{CONDITION_KEYS[kind]}'"
            )
        value = condition[CONDITION_KEYS[kind]]
        if kind is not QuestType.DIFFICULTY and (
            isinstance(value, bool) or not isinstance(value, (int, float))
        ):
            raise CatalogLoadError(f"{source}: quest {item['id']!r} condition must be numeric")
        reward = item.get("reward") or {}
        if not isinstance(reward, Mapping):
            raise CatalogLoadError(f"{source}: quest {item['id']!r} reward must be an object")
        bonus = reward.get("scoreBonus")
        if bonus is None:
            bonus = 0
        elif isinstance(bonus, bool) or not isinstance(bonus, (int, float)):
            raise CatalogLoadError(
                f"{source}: quest {item['id']!r} reward.scoreBonus must be numeric"
            )
        quests.append(
            QuestDefinition(
                id=str(item["id"]),
                type=kind,
                condition=dict(condition),
                description=str(item["description"]),
                score_bonus=float(bonus),
            )
        )
    return quests


def load_phrase_catalog(path) -> List[Phrase]:
    phrases = parse_phrase_catalog(_read_json(path), str(path))
    log.info("Loaded %d phrases from %s", len(phrases), path)
    return phrases


def load_quest_catalog(path) -> List[QuestDefinition]:
    quests = parse_quest_catalog(_read_json(path), str(path))
    log.info("Loaded %d quests from %s", len(quests), path)
    return quests


def ensure_app_files(config):
    # Data dir for the history database
    db_dir = os.path.dirname(config.db_path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)

    # SFX placeholders so QSoundEffect has valid targets
    os.makedirs(config.sfx_dir, exist_ok=True)
    for cue in SFX_CUES:
        p = os.path.join(config.sfx_dir, f"{cue}.wav")
        if not os.path.exists(p):
            open(p, "ab").close()
