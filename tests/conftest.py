"""
Pytest configuration and shared fixtures for TypeQuest tests.
A headless QCoreApplication lets QObject signals and QTimer work; the
countdown is never left to the event loop, tests call tick() themselves.
"""

import random

import pytest
from PySide6.QtCore import QCoreApplication

from app.config import GameConfig
from app.state import Phrase
from services.game_session import GameSession
from services.quests import QuestDefinition, QuestType


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def phrases():
    return [Phrase("p1", "cat"), Phrase("p2", "dog")]


@pytest.fixture
def quest_defs():
    return [
        QuestDefinition("clean", QuestType.NO_MISS, {"count": 2}, "Two clean phrases", 500),
        QuestDefinition("combo5", QuestType.COMBO, {"target": 5}, "Reach combo 5", 100),
        QuestDefinition("three", QuestType.PHRASES_COMPLETED, {"count": 3}, "Finish 3 phrases", 250),
        QuestDefinition("acc", QuestType.ACCURACY, {"target": 95}, "95% accuracy", 400),
        QuestDefinition("lunatic", QuestType.DIFFICULTY, {"difficulty": "lunatic"}, "Play lunatic", 1000),
    ]


@pytest.fixture
def make_session(quest_defs):
    """Factory: build a seeded session; quests default to every definition."""
    def _make(phrase_list, quests=None, **config_overrides):
        config_overrides.setdefault("quest_count", 5)
        config = GameConfig(**config_overrides)
        return GameSession(
            phrase_list,
            quest_defs if quests is None else quests,
            config=config,
            rng=random.Random(1234),
        )
    return _make


def type_chars(session, chars):
    """Append characters one at a time, the way a text field reports them."""
    for ch in chars:
        session.normalizer.report_raw_change(session.normalizer.buffer + ch)


def backspace(session, count=1):
    for _ in range(count):
        session.normalizer.report_raw_change(session.normalizer.buffer[:-1])


def commit(session):
    session.normalizer.report_commit(session.normalizer.buffer)
