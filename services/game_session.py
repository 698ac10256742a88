# services/game_session.py
from __future__ import annotations
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
import logging
import random
import time

from PySide6.QtCore import QObject, Signal

from app.calculation import final_accuracy, final_wpm, rolling_wpm
from app.config import GameConfig
from app.errors import CatalogLoadError, EmptyCatalogError, InvalidTransitionError
from app.state import Difficulty, Phrase, SessionState, Status
from core.chrono import CountdownTimer
from services.input_normalizer import InputChange, InputNormalizer
from services.quests import QuestDefinition, QuestEngine, QuestEvent, QuestProgress
from services.scoring import char_delta, phrase_bonus, present_score
from utils.catalog_loader import load_phrase_catalog, load_quest_catalog

log = logging.getLogger(__name__)


@dataclass
class GameResult:
    score: int
    accuracy: float
    wpm: float
    difficulty: str
    duration: int
    total_typed: int
    total_correct: int
    completed_quests: List[str] = field(default_factory=list)
    finished_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(timespec="seconds")
    )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class GameSession(QObject):
    """
    Ready -> Playing -> Finished for one player.

    Input reaches the session only through its InputNormalizer; the
    countdown only through CountdownTimer.ticked (or a direct tick() call).
    Events that arrive in the wrong status are dropped quietly: a stray
    key after time-out is normal, not a bug. Anything else that blows up
    mid-game aborts the session back to Ready and propagates.
    """
    phrase_changed = Signal(str)
    input_marked = Signal(object)    # list of (char, True/False/None)
    hud_changed = Signal(object)     # {"timer", "score", "misses", "combo"}
    quests_changed = Signal(object)  # list of quest snapshots
    quest_completed = Signal(object)  # QuestProgress
    cue = Signal(str)
    error = Signal(str)
    finished = Signal(object)        # GameResult

    def __init__(
        self,
        phrases: Sequence[Phrase],
        quests: Sequence[QuestDefinition],
        config: Optional[GameConfig] = None,
        normalizer: Optional[InputNormalizer] = None,
        timer: Optional[CountdownTimer] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        parent=None,
    ):
        super().__init__(parent)
        if not all(isinstance(p, Phrase) for p in phrases):
            raise CatalogLoadError("phrase catalog must hold Phrase entries")
        if not all(isinstance(q, QuestDefinition) for q in quests):
            raise CatalogLoadError("quest catalog must hold QuestDefinition entries")

        self.config = config or GameConfig()
        self.phrases: List[Phrase] = list(phrases)
        self.rng = rng or random.Random()
        quest_rng = (
            random.Random(self.config.quest_seed)
            if self.config.quest_seed is not None
            else self.rng
        )
        self.quests = QuestEngine(quests, selection=self.config.quest_selection, rng=quest_rng)
        self.normalizer = normalizer or InputNormalizer(self)
        self.timer = timer or CountdownTimer(parent=self)
        self._clock = clock
        self.state = self._fresh_state()
        self.result: Optional[GameResult] = None

        self.normalizer.changed.connect(self.handle_change)
        self.normalizer.committed.connect(self.handle_commit)
        self.timer.ticked.connect(self.tick)

    @classmethod
    def from_config(cls, config: GameConfig, **kwargs) -> "GameSession":
        """Load both catalogs from disk; any catalog problem raises CatalogLoadError."""
        phrases = load_phrase_catalog(config.phrases_path)
        quests = load_quest_catalog(config.quests_path)
        return cls(phrases, quests, config=config, **kwargs)

    @property
    def status(self) -> Status:
        return self.state.status

    # ---------------- Transitions ----------------
    def start(self, difficulty=Difficulty.NORMAL):
        # a restart mid-game must kill the old countdown before anything else
        self.timer.disarm()
        self.result = None
        if not self.phrases:
            self.state = self._fresh_state()
            msg = "No phrases loaded; cannot start a game."
            log.error(msg)
            self.error.emit(msg)
            raise EmptyCatalogError(msg)

        with self._step("start"):
            self.state = self._fresh_state(
                status=Status.PLAYING, difficulty=Difficulty(difficulty)
            )
            self.quests.reset(self.config.quest_count)
            self.quests_changed.emit(self.quest_snapshot())
            self._next_phrase()
            self._emit_hud()
            self.cue.emit("start")
            log.info(
                "Game started: difficulty=%s duration=%ss",
                self.state.difficulty.value, self.state.duration,
            )

    def abandon(self):
        """Drop the current game (navigation away, restart, internal failure)."""
        self.timer.disarm()
        if self.state.is_playing:
            log.info("Game abandoned with %ss left", self.state.time_remaining)
        self.state = self._fresh_state()
        self.normalizer.clear()

    def tick(self):
        with self._step("tick"):
            self._require(Status.PLAYING, "tick")
            s = self.state
            if not s.timer_started:
                raise InvalidTransitionError("tick before the countdown was armed")
            s.time_remaining -= 1
            self._emit_hud()
            if s.time_remaining <= 0:
                self._finish()

    # ---------------- Input ----------------
    def handle_change(self, change: InputChange):
        with self._step("input"):
            self._require(Status.PLAYING, "input")
            s = self.state
            if not s.timer_started and change.buffer.strip():
                self._arm_timer()

            target = s.current_phrase.text
            for offset, ch in enumerate(change.added):
                idx = change.start + offset
                self._score_char(ch, idx < len(target) and target[idx] == ch)

            self.input_marked.emit(self.marks(change.buffer))
            self._emit_hud()

    def handle_commit(self, text: str):
        with self._step("commit"):
            self._require(Status.PLAYING, "commit")
            s = self.state
            if text != s.current_phrase.text:
                log.debug("Commit does not match phrase %s", s.current_phrase.id)
                return

            s.score += phrase_bonus(s.time_remaining, s.duration, self.config.scoring)
            s.phrases_completed += 1
            self.cue.emit("success")
            self._apply_quests(
                self.quests.check(QuestEvent.PHRASE_COMPLETE, {"misses": s.misses})
            )
            s.misses = 0
            self._next_phrase()
            self._emit_hud()

    # ---------------- Snapshots ----------------
    def hud(self) -> Dict[str, int]:
        s = self.state
        return {
            "timer": s.time_remaining,
            "score": present_score(s.score),
            "misses": s.misses,
            "combo": s.combo,
        }

    def quest_snapshot(self) -> List[Dict[str, Any]]:
        return self.quests.snapshot()

    def marks(self, buffer: str) -> List[Tuple[str, Optional[bool]]]:
        """Per-character correctness of ``buffer``; None past the phrase end."""
        phrase = self.state.current_phrase
        target = phrase.text if phrase else ""
        return [
            (ch, target[i] == ch if i < len(target) else None)
            for i, ch in enumerate(buffer)
        ]

    def wpm_series(self) -> Tuple[List[float], List[float]]:
        return rolling_wpm(self.state.keystrokes)

    # ---------------- internals ----------------
    def _fresh_state(self, **kwargs) -> SessionState:
        duration = int(self.config.duration)
        return SessionState(duration=duration, time_remaining=duration, **kwargs)

    @contextmanager
    def _step(self, name: str):
        try:
            yield
        except InvalidTransitionError as e:
            log.debug("Ignored %s: %s", name, e)
        except Exception:
            log.exception("Aborting game during %s", name)
            self.abandon()
            raise

    def _require(self, status: Status, action: str):
        if self.state.status is not status:
            raise InvalidTransitionError(f"{action} while {self.state.status.value}")

    def _arm_timer(self):
        if self.timer.arm():
            self.state.timer_started = True
            self.state.started_at = self._clock()
            log.debug("Countdown armed")

    def _elapsed(self) -> float:
        s = self.state
        return max(0.0, self._clock() - s.started_at) if s.timer_started else 0.0

    def _score_char(self, ch: str, correct: bool):
        s = self.state
        s.mark_key(ch, correct, self._elapsed())  # combo moves first
        s.score += char_delta(correct, s.combo, s.difficulty, self.config.scoring)
        self.cue.emit("type" if correct else "miss")
        self._apply_quests(self.quests.check(QuestEvent.STAT_UPDATE, {"combo": s.combo}))

    def _next_phrase(self):
        current = self.state.current_phrase
        pool = self.phrases
        if current is not None and len(pool) > 1:
            pool = [p for p in pool if p.id != current.id] or self.phrases
        phrase = self.rng.choice(pool)
        self.state.current_phrase = phrase
        self.normalizer.clear()
        self.phrase_changed.emit(phrase.text)
        self.input_marked.emit([])
        self._apply_quests(
            self.quests.check(QuestEvent.PHRASE_START, {"id": phrase.id, "text": phrase.text})
        )

    def _finish(self):
        self.timer.disarm()
        s = self.state
        s.status = Status.FINISHED
        accuracy = final_accuracy(s.total_correct, s.total_typed)
        wpm = final_wpm(s.total_correct, s.duration)
        self.cue.emit("end")
        self._apply_quests(
            self.quests.check(
                QuestEvent.GAME_END, {"difficulty": s.difficulty.value, "accuracy": accuracy}
            )
        )
        self.result = GameResult(
            score=present_score(s.score),
            accuracy=accuracy,
            wpm=wpm,
            difficulty=s.difficulty.value,
            duration=s.duration,
            total_typed=s.total_typed,
            total_correct=s.total_correct,
            completed_quests=[q.id for q in self.quests.active if q.completed],
        )
        self._emit_hud()
        log.info(
            "Game finished: score=%d accuracy=%.1f%% wpm=%.1f",
            self.result.score, accuracy, wpm,
        )
        self.finished.emit(self.result)

    def _apply_quests(self, done: List[QuestProgress]):
        if not done:
            return
        for quest in done:
            self.state.score += quest.score_bonus
            self.cue.emit("quest")
            self.quest_completed.emit(quest)
            log.info("Quest completed: %s (+%s)", quest.id, quest.score_bonus)
        self.quests_changed.emit(self.quest_snapshot())

    def _emit_hud(self):
        self.hud_changed.emit(self.hud())
