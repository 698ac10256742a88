from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Difficulty(str, Enum):
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"
    LUNATIC = "lunatic"


class Status(str, Enum):
    READY = "ready"
    PLAYING = "playing"
    FINISHED = "finished"


@dataclass(frozen=True)
class Phrase:
    id: str
    text: str


@dataclass
class Keystroke:
    t: float
    key: str
    correct: bool


@dataclass
class SessionState:
    """
    Everything that changes during one game. A fresh instance is built on
    every start so nothing leaks between games.
    """
    status: Status = Status.READY
    difficulty: Difficulty = Difficulty.NORMAL
    duration: int = 60
    current_phrase: Optional[Phrase] = None
    time_remaining: int = 60
    score: float = 0.0
    combo: int = 0
    misses: int = 0
    total_typed: int = 0
    total_correct: int = 0
    phrases_completed: int = 0
    timer_started: bool = False
    started_at: float = 0.0
    keystrokes: List[Keystroke] = field(default_factory=list)

    @property
    def is_playing(self) -> bool:
        return self.status is Status.PLAYING

    def mark_key(self, key: str, correct: bool, t: float):
        self.keystrokes.append(Keystroke(t, key, correct))
        self.total_typed += 1
        if correct:
            self.total_correct += 1
            self.combo += 1
        else:
            self.combo = 0
            self.misses += 1
