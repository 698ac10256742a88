"""
GameSession tests: lifecycle, per-keystroke scoring, quest rewards,
countdown handling and failure modes. Input goes through the session's
InputNormalizer exactly as the text field would send it.
"""

import json

import pytest
from PySide6.QtCore import QTimer

from app.config import GameConfig
from app.errors import CatalogLoadError, EmptyCatalogError
from app.state import Difficulty, Phrase, Status
from services.game_session import GameSession
from services.input_normalizer import diff_buffers
from services.quests import QuestDefinition, QuestType
from conftest import backspace, commit, type_chars

LONG = Phrase("long", "abcdefghijklmnopqrst")


def _collect(signal):
    seen = []
    signal.connect(lambda *args: seen.append(args[0] if args else None))
    return seen


class TestStart:

    def test_start_enters_playing_with_fresh_state(self, make_session, phrases):
        s = make_session(phrases)
        shown = _collect(s.phrase_changed)
        s.start("hard")
        assert s.status is Status.PLAYING
        assert s.state.difficulty is Difficulty.HARD
        assert s.state.current_phrase in phrases
        assert shown == [s.state.current_phrase.text]
        assert len(s.quests.active) == 5
        assert s.hud() == {"timer": 60, "score": 0, "misses": 0, "combo": 0}

    def test_countdown_waits_for_first_character(self, make_session, phrases):
        s = make_session(phrases)
        s.start()
        assert not s.timer.is_armed
        s.tick()
        assert s.state.time_remaining == 60
        type_chars(s, s.state.current_phrase.text[0])
        assert s.timer.is_armed
        assert s.state.timer_started

    def test_whitespace_does_not_arm_countdown(self, make_session, phrases):
        s = make_session(phrases)
        s.start()
        type_chars(s, " ")
        assert not s.timer.is_armed
        assert s.state.total_typed == 1
        backspace(s)
        type_chars(s, s.state.current_phrase.text[0])
        assert s.timer.is_armed

    def test_empty_catalog_refuses_to_play(self, make_session):
        s = make_session([])
        errors = _collect(s.error)
        with pytest.raises(EmptyCatalogError):
            s.start()
        assert s.status is Status.READY
        assert s.state.current_phrase is None
        assert len(errors) == 1
        assert not s.timer.is_armed

    def test_malformed_catalog_fails_construction(self):
        with pytest.raises(CatalogLoadError):
            GameSession([{"id": "x", "text": "y"}], [])
        with pytest.raises(CatalogLoadError):
            GameSession([Phrase("a", "b")], [{"id": "q"}])

    def test_restart_mid_game_disarms_previous_countdown(self, make_session, phrases):
        s = make_session(phrases)
        s.start()
        type_chars(s, s.state.current_phrase.text)
        s.tick()
        assert s.timer.is_armed
        s.start("easy")
        assert not s.timer.is_armed
        assert s.state.time_remaining == 60
        assert s.state.score == 0
        assert s.state.total_typed == 0
        assert s.state.difficulty is Difficulty.EASY

    def test_from_config_loads_catalogs(self, tmp_path):
        phrases = tmp_path / "phrases.json"
        quests = tmp_path / "quests.json"
        phrases.write_text(json.dumps({"phrases": [{"id": 1, "text": "cat"}]}), encoding="utf-8")
        quests.write_text(json.dumps({"quests": []}), encoding="utf-8")
        s = GameSession.from_config(
            GameConfig(phrases_path=str(phrases), quests_path=str(quests))
        )
        assert s.phrases == [Phrase("1", "cat")]

    def test_from_config_fails_fast_on_bad_catalog(self, tmp_path):
        bad = tmp_path / "phrases.json"
        bad.write_text('{"phrases": "nope"}', encoding="utf-8")
        with pytest.raises(CatalogLoadError):
            GameSession.from_config(GameConfig(phrases_path=str(bad)))


class TestScoring:

    def test_clean_run_matches_closed_form(self, make_session):
        s = make_session([LONG], quests=[])
        s.start()
        n = 12
        type_chars(s, LONG.text[:n])
        expected = sum(10 * 1.0 * (1 + k * 0.02) for k in range(1, n + 1))
        assert s.state.combo == n
        assert s.state.score == pytest.approx(expected)
        assert s.state.total_typed == s.state.total_correct == n

    def test_difficulty_factor_applies(self, make_session):
        s = make_session([LONG], quests=[])
        s.start("lunatic")
        type_chars(s, "ab")
        assert s.state.score == pytest.approx(10 * 1.5 * 1.02 + 10 * 1.5 * 1.04)

    def test_miss_resets_combo_and_costs_penalty(self, make_session):
        s = make_session([LONG], quests=[])
        s.start()
        type_chars(s, "abcd")
        before = s.state.score
        type_chars(s, "#")
        assert s.state.combo == 0
        assert s.state.score == pytest.approx(before - 15)
        assert s.state.misses == 1
        assert s.state.total_typed != s.state.total_correct

    def test_deletions_are_not_scored(self, make_session):
        s = make_session([LONG], quests=[])
        s.start()
        type_chars(s, "ab")
        before = (s.state.score, s.state.total_typed, s.state.combo)
        backspace(s)
        assert (s.state.score, s.state.total_typed, s.state.combo) == before

    def test_typing_past_phrase_end_is_a_miss(self, make_session):
        s = make_session([Phrase("p", "ab")], quests=[])
        s.start()
        type_chars(s, "abc")
        assert s.state.total_correct == 2
        assert s.state.misses == 1

    def test_composition_commits_score_every_character(self, make_session):
        s = make_session([Phrase("jp", "古代の機械")], quests=[])
        s.start()
        n = s.normalizer
        n.report_composition_open()
        n.report_raw_change("こだい")
        assert s.state.total_typed == 0
        n.report_composition_close("古代")
        assert s.state.total_correct == 2
        assert s.state.combo == 2
        assert s.timer.is_armed

    def test_phrase_bonus_depends_on_time_left(self, make_session):
        s = make_session([Phrase("a", "ab"), Phrase("b", "ba")], quests=[])
        s.start()
        text = s.state.current_phrase.text
        type_chars(s, text)
        typed_score = s.state.score
        commit(s)
        assert s.state.score == pytest.approx(typed_score + 200)

        for _ in range(30):
            s.tick()
        text = s.state.current_phrase.text
        type_chars(s, text)
        typed_score = s.state.score
        commit(s)
        assert s.state.score == pytest.approx(typed_score + 100)

    def test_wrong_commit_is_ignored(self, make_session, phrases):
        s = make_session(phrases, quests=[])
        s.start()
        first = s.state.current_phrase
        type_chars(s, first.text[:-1])
        commit(s)
        assert s.state.current_phrase == first
        assert s.state.phrases_completed == 0

    def test_hud_and_marks(self, make_session):
        s = make_session([Phrase("p", "cat")], quests=[])
        huds = _collect(s.hud_changed)
        marks = _collect(s.input_marked)
        s.start()
        type_chars(s, "cx")
        assert huds[-1] == {"timer": 60, "score": -5, "misses": 1, "combo": 0}
        assert marks[-1] == [("c", True), ("x", False)]
        assert s.marks("catt")[-1] == ("t", None)


class TestQuestRewards:

    def test_combo_quest_fires_exactly_once(self, make_session, quest_defs):
        combo5 = [q for q in quest_defs if q.id == "combo5"]
        s = make_session([LONG], quests=combo5)
        fired = _collect(s.quest_completed)
        s.start()
        type_chars(s, "abcd")
        assert fired == []
        before = s.state.score
        type_chars(s, "e")
        assert [q.id for q in fired] == ["combo5"]
        assert s.state.score == pytest.approx(before + 10 * 1.1 + 100)

        type_chars(s, "#")
        type_chars(s, "ghijk")
        assert s.state.combo == 5
        assert len(fired) == 1

    def test_sloppy_phrase_does_not_extend_no_miss_streak(self, make_session, phrases, quest_defs):
        clean = [q for q in quest_defs if q.id == "clean"]
        s = make_session(phrases, quests=clean)
        s.start()
        first = s.state.current_phrase
        type_chars(s, first.text[0])
        type_chars(s, "#")
        assert s.state.misses == 1
        backspace(s)
        type_chars(s, first.text[1:])
        assert s.state.total_typed == 4
        assert s.state.total_correct == 3

        commit(s)
        assert s.state.current_phrase.id != first.id
        assert s.state.misses == 0
        assert s.quests.active[0].progress == 0

    def test_clean_phrases_complete_no_miss_quest(self, make_session, phrases, quest_defs):
        clean = [q for q in quest_defs if q.id == "clean"]
        s = make_session(phrases, quests=clean)
        s.start()
        for _ in range(2):
            type_chars(s, s.state.current_phrase.text)
            commit(s)
        assert s.quests.active[0].completed

    def test_game_end_quests_feed_result(self, make_session, phrases, quest_defs):
        end_quests = [q for q in quest_defs if q.id in ("acc", "lunatic")]
        s = make_session(phrases, quests=end_quests)
        s.start(Difficulty.LUNATIC)
        type_chars(s, s.state.current_phrase.text[0])
        for _ in range(60):
            s.tick()
        assert s.result.completed_quests == ["acc", "lunatic"]
        assert s.result.score == 1415  # 15.3 + 400 + 1000


class TestPhraseAdvance:

    def test_never_repeats_back_to_back(self, make_session):
        catalog = [Phrase("a", "x"), Phrase("b", "y"), Phrase("c", "z")]
        s = make_session(catalog, quests=[])
        s.start()
        seen = [s.state.current_phrase.id]
        for _ in range(200):
            s.normalizer.report_commit(s.state.current_phrase.text)
            seen.append(s.state.current_phrase.id)
        assert all(a != b for a, b in zip(seen, seen[1:]))
        assert set(seen) == {"a", "b", "c"}

    def test_single_phrase_catalog_repeats(self, make_session):
        s = make_session([Phrase("only", "x")], quests=[])
        s.start()
        s.normalizer.report_commit("x")
        assert s.state.current_phrase.id == "only"
        assert s.state.phrases_completed == 1

    def test_advance_clears_input_buffer(self, make_session, phrases):
        s = make_session(phrases, quests=[])
        s.start()
        type_chars(s, s.state.current_phrase.text)
        commit(s)
        assert s.normalizer.buffer == ""


class TestFinish:

    def test_finishes_exactly_once_after_duration(self, make_session, phrases):
        s = make_session(phrases, quests=[], duration=60)
        results = _collect(s.finished)
        s.start()
        type_chars(s, s.state.current_phrase.text[0])
        for _ in range(59):
            s.tick()
        assert s.status is Status.PLAYING
        s.tick()
        assert s.status is Status.FINISHED
        assert not s.timer.is_armed
        assert len(results) == 1

        s.tick()
        assert len(results) == 1
        assert s.state.time_remaining == 0

        result = results[0]
        assert result.accuracy == 100.0
        assert result.wpm == pytest.approx(0.2)
        assert result.total_typed == 1

    def test_deferred_finish_listener_sees_settled_session(self, make_session, phrases, qapp):
        s = make_session(phrases, quests=[], duration=1)
        seen = []
        s.finished.connect(
            lambda result: QTimer.singleShot(0, lambda: seen.append((s.status, s.result, result)))
        )
        s.start()
        type_chars(s, s.state.current_phrase.text[0])
        s.tick()
        assert seen == []
        for _ in range(10):
            qapp.processEvents()
            if seen:
                break
        ((status, stored, emitted),) = seen
        assert status is Status.FINISHED
        assert stored is emitted
        assert not s.timer.is_armed

    def test_no_typing_means_zero_accuracy_and_wpm(self, make_session, phrases):
        s = make_session(phrases, quests=[], duration=5)
        s.start()
        s.state.timer_started = True
        for _ in range(5):
            s.tick()
        assert s.result.accuracy == 0
        assert s.result.wpm == 0

    def test_input_after_finish_is_ignored(self, make_session, phrases):
        s = make_session(phrases, quests=[], duration=1)
        s.start()
        text = s.state.current_phrase.text
        type_chars(s, text[0])
        s.tick()
        typed = s.state.total_typed
        type_chars(s, text[1:])
        s.normalizer.report_commit(text)
        assert s.state.total_typed == typed
        assert s.status is Status.FINISHED

    def test_input_before_start_is_ignored(self, make_session, phrases):
        s = make_session(phrases)
        type_chars(s, "cat")
        assert s.status is Status.READY
        assert s.state.total_typed == 0

    def test_wpm_series_follows_keystrokes(self, make_session):
        s = make_session([LONG], quests=[])
        s.start()
        type_chars(s, "abc")
        times, wpms = s.wpm_series()
        assert len(times) == len(wpms) == 3


class TestAbort:

    def test_abandon_releases_timer(self, make_session, phrases):
        s = make_session(phrases)
        s.start()
        type_chars(s, s.state.current_phrase.text[0])
        s.abandon()
        assert s.status is Status.READY
        assert not s.timer.is_armed
        assert s.result is None
        s.tick()
        assert s.status is Status.READY

    def test_internal_error_aborts_and_propagates(self, make_session, monkeypatch):
        s = make_session([LONG])
        s.start()
        type_chars(s, "a")

        def boom(*_args, **_kwargs):
            raise RuntimeError("quest table exploded")

        monkeypatch.setattr(s.quests, "check", boom)
        buffer = s.normalizer.buffer
        with pytest.raises(RuntimeError):
            s.handle_change(diff_buffers(buffer, buffer + "b"))
        assert s.status is Status.READY
        assert not s.timer.is_armed
