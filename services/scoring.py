# services/scoring.py
import math

from app.config import ScoringConfig
from app.state import Difficulty

DEFAULT_SCORING = ScoringConfig()


def difficulty_factor(difficulty, config: ScoringConfig = DEFAULT_SCORING) -> float:
    key = difficulty.value if isinstance(difficulty, Difficulty) else str(difficulty)
    return config.difficulty_factors[key]


def char_delta(
    is_correct: bool,
    combo: int,
    difficulty,
    config: ScoringConfig = DEFAULT_SCORING,
) -> float:
    """
    Score change for one classified character.

    ``combo`` is the streak *including* this character: the caller bumps it
    before scoring, so the character that takes the combo to N scores with N.
    A miss costs a flat penalty regardless of difficulty or combo.
    """
    if not is_correct:
        return -config.miss_penalty
    factor = difficulty_factor(difficulty, config)
    return config.base_points * factor * (1 + combo * config.combo_multiplier)


def phrase_bonus(time_remaining: int, duration: int, config: ScoringConfig = DEFAULT_SCORING) -> int:
    """Bonus for an exact phrase match, scaled by the share of time left."""
    if duration <= 0:
        return 0
    return math.floor((time_remaining / duration) * config.time_bonus_factor)


def present_score(score: float) -> int:
    # round half up, only at display/persist boundaries
    return int(math.floor(score + 0.5))
