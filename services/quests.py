# services/quests.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence
import logging
import random

log = logging.getLogger(__name__)


class QuestType(str, Enum):
    NO_MISS = "no_miss"
    COMBO = "combo"
    PHRASES_COMPLETED = "phrases_completed"
    ACCURACY = "accuracy"
    DIFFICULTY = "difficulty_specific"


class QuestEvent(str, Enum):
    STAT_UPDATE = "stat_update"
    PHRASE_COMPLETE = "phrase_complete"
    PHRASE_START = "phrase_start"
    GAME_END = "game_end"


# condition key each quest kind needs, and the one event that can move it
CONDITION_KEYS: Dict[QuestType, str] = {
    QuestType.NO_MISS: "count",
    QuestType.COMBO: "target",
    QuestType.PHRASES_COMPLETED: "count",
    QuestType.ACCURACY: "target",
    QuestType.DIFFICULTY: "difficulty",
}

TRIGGERS: Dict[QuestType, QuestEvent] = {
    QuestType.NO_MISS: QuestEvent.PHRASE_COMPLETE,
    QuestType.COMBO: QuestEvent.STAT_UPDATE,
    QuestType.PHRASES_COMPLETED: QuestEvent.PHRASE_COMPLETE,
    QuestType.ACCURACY: QuestEvent.GAME_END,
    QuestType.DIFFICULTY: QuestEvent.GAME_END,
}


@dataclass(frozen=True)
class QuestDefinition:
    id: str
    type: QuestType
    condition: Mapping[str, Any]
    description: str
    score_bonus: float = 0.0


@dataclass
class QuestProgress:
    definition: QuestDefinition
    progress: int = 0
    completed: bool = False

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def description(self) -> str:
        return self.definition.description

    @property
    def score_bonus(self) -> float:
        return self.definition.score_bonus

    def snapshot(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "progress": self.progress,
            "completed": self.completed,
        }


class QuestEngine:
    """
    Per-session quest tracker.

    reset() picks which definitions are live for a game:
      - "first": the first N definitions in catalog order
      - "random": N definitions drawn with the engine's RNG (seed it for tests)
    check() returns quests that completed on *this* call; the caller pays
    the reward. Completed quests are never looked at again.
    """

    def __init__(
        self,
        definitions: Sequence[QuestDefinition],
        selection: str = "first",
        rng: Optional[random.Random] = None,
    ):
        self.definitions: List[QuestDefinition] = list(definitions)
        self.selection = selection
        self.rng = rng or random.Random()
        self.active: List[QuestProgress] = []

    def reset(self, count: int = 3) -> List[QuestProgress]:
        count = max(0, min(count, len(self.definitions)))
        if self.selection == "random":
            chosen = self.rng.sample(self.definitions, count)
        else:
            chosen = self.definitions[:count]
        self.active = [QuestProgress(d) for d in chosen]
        log.debug("Active quests: %s", [q.id for q in self.active])
        return self.active

    def check(self, event: QuestEvent, payload: Mapping[str, Any]) -> List[QuestProgress]:
        event = QuestEvent(event)
        done: List[QuestProgress] = []
        for quest in self.active:
            if quest.completed or TRIGGERS[quest.definition.type] is not event:
                continue
            if self._evaluate(quest, payload):
                quest.completed = True
                done.append(quest)
        return done

    def snapshot(self) -> List[Dict[str, Any]]:
        return [q.snapshot() for q in self.active]

    @staticmethod
    def _evaluate(quest: QuestProgress, payload: Mapping[str, Any]) -> bool:
        kind = quest.definition.type
        cond = quest.definition.condition

        if kind is QuestType.NO_MISS:
            # streak of clean phrases; a phrase with misses starts it over
            if payload.get("misses", 0) == 0:
                quest.progress += 1
            else:
                quest.progress = 0
            return quest.progress >= cond["count"]

        if kind is QuestType.PHRASES_COMPLETED:
            quest.progress += 1
            return quest.progress >= cond["count"]

        if kind is QuestType.COMBO:
            return payload.get("combo", 0) >= cond["target"]

        if kind is QuestType.ACCURACY:
            return payload.get("accuracy", 0.0) >= cond["target"]

        if kind is QuestType.DIFFICULTY:
            difficulty = payload.get("difficulty")
            difficulty = getattr(difficulty, "value", difficulty)
            return difficulty == cond["difficulty"]

        raise ValueError(f"Unhandled quest type: {kind}")
