from typing import List, Sequence, Tuple

from app.state import Keystroke


def final_accuracy(total_correct: int, total_typed: int) -> float:
    if total_typed <= 0:
        return 0.0
    return 100.0 * total_correct / total_typed


def final_wpm(total_correct: int, duration_seconds: float) -> float:
    # WPM = (correct chars / 5) / (game minutes)
    if duration_seconds <= 0:
        return 0.0
    return (total_correct / 5.0) / (duration_seconds / 60.0)


def rolling_wpm(keystrokes: Sequence[Keystroke], window_sec: float = 10.0) -> Tuple[List[float], List[float]]:
    """
    WPM over a sliding window (default 10s), one sample per keystroke.
    WPM = (correct chars in window / 5) / (window / 60)
    Returns (timestamps, wpm values).
    """
    times = [k.t for k in keystrokes]
    n = len(times)
    if n == 0:
        return [], []
    out: List[float] = []
    start_idx = 0
    correct_in_window = 0
    for i in range(n):
        t_now = times[i]
        if keystrokes[i].correct:
            correct_in_window += 1
        # keep the window within [t_now - window_sec, t_now]
        while start_idx < i and times[start_idx] < t_now - window_sec:
            if keystrokes[start_idx].correct:
                correct_in_window -= 1
            start_idx += 1
        dur = max(0.5, t_now - max(times[start_idx], t_now - window_sec))  # avoid spikes
        out.append((correct_in_window / 5.0) / (dur / 60.0))
    return times, out


def smooth(values: Sequence[float], factor: float = 0.25) -> List[float]:
    out, last = [], None
    for v in values:
        last = v if last is None else last + factor * (v - last)
        out.append(last)
    return out
