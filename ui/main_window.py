# ui/main_window.py
from dataclasses import replace
import logging

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QListWidget, QListWidgetItem, QMessageBox, QPushButton
)
from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QColor

from app.audio import AudioEngine
from app.errors import DatabaseError, EmptyCatalogError
from app.state import Status
from core.threads import CatalogLoadWorker, Workers
from services.game_session import GameSession
from ui.history_dialog import HistoryDialog
from ui.session_summary import SessionSummary
from ui.widgets.phrase_input import PhraseInput
from ui.widgets.phrase_view import PhraseView
from ui.widgets.session_dialog import SessionDialog
from utils.db_helper import insert_result, load_results

log = logging.getLogger(__name__)

_QSS = """
QWidget { background: #0f1115; color: #e5e7eb; }
QLabel#lblTimer, QLabel#lblMisses { color: #6b7280; font-size: 20px; }
QLabel#lblScore, QLabel#lblCombo { color: #eab308; font-size: 20px; }
QWidget#TopBar {
    background: rgba(255,255,255,0.04);
    border: 1px solid rgba(255,255,255,0.08);
    border-radius: 14px;
}
QPushButton#TopBtn {
    background: transparent;
    border: 1px solid rgba(255,255,255,0.10);
    border-radius: 9px;
    padding: 6px 12px;
}
QPushButton#TopBtn:hover {
    border-color: rgba(255,255,255,0.32);
    background: rgba(255,255,255,0.06);
}
QListWidget { border: none; font-size: 15px; }
"""


class MainWindow(QMainWindow):
    """Presentation sink: renders what GameSession emits, never feeds state back."""

    def __init__(self, config):
        super().__init__()
        self.config = config
        self.session = None
        self._difficulty = "normal"
        self.setWindowTitle("TypeQuest (loading...)")
        self.resize(1100, 680)

        self.audio = AudioEngine()
        self.audio.load_from_dir(config.sfx_dir)

        root = QWidget(self)
        root_v = QVBoxLayout(root)
        root_v.setContentsMargins(16, 24, 16, 16)
        root_v.setSpacing(20)
        self._build_top_bar(root_v)

        # --- HUD ---
        hud = QHBoxLayout()
        hud.setSpacing(40)
        self.lblTimer = QLabel("60", self)
        self.lblTimer.setObjectName("lblTimer")
        self.lblScore = QLabel("0", self)
        self.lblScore.setObjectName("lblScore")
        self.lblMisses = QLabel("0", self)
        self.lblMisses.setObjectName("lblMisses")
        self.lblCombo = QLabel("0", self)
        self.lblCombo.setObjectName("lblCombo")
        for lab in (self.lblTimer, self.lblScore, self.lblMisses, self.lblCombo):
            lab.setAlignment(Qt.AlignCenter)
            hud.addWidget(lab)
        root_v.addLayout(hud)

        # --- phrase + input + quests ---
        body = QHBoxLayout()
        left = QVBoxLayout()
        self.phraseView = PhraseView(self)
        left.addWidget(self.phraseView, 1)
        self.input = None
        self._input_slot = left
        body.addLayout(left, 3)

        self.questList = QListWidget(self)
        self.questList.setFocusPolicy(Qt.NoFocus)
        body.addWidget(self.questList, 1)
        root_v.addLayout(body, 1)

        self.setCentralWidget(root)
        self.setStyleSheet(_QSS)
        self.phraseView.show_message("Loading phrases…")
        self._load_catalogs()

    # ---------------- Top Bar ----------------
    def _build_top_bar(self, parent_layout):
        bar = QWidget(self)
        bar.setObjectName("TopBar")
        h = QHBoxLayout(bar)
        h.setContentsMargins(14, 12, 14, 12)
        h.setSpacing(10)

        self.btnStart = QPushButton("Start", bar)
        self.btnQuit = QPushButton("Give up", bar)
        self.btnHistory = QPushButton("History…", bar)
        self.btnMute = QPushButton("Mute", bar)
        for button, handler in [
            (self.btnStart, self._on_start),
            (self.btnQuit, self._on_abandon),
            (self.btnHistory, self._open_history),
            (self.btnMute, self._on_mute),
        ]:
            button.clicked.connect(handler)
            button.setObjectName("TopBtn")
            button.setFocusPolicy(Qt.NoFocus)
            h.addWidget(button)
        h.addStretch(1)
        self.btnStart.setEnabled(False)
        parent_layout.addWidget(bar)

    # ---------------- Catalogs ----------------
    def _load_catalogs(self):
        worker = CatalogLoadWorker(self.config.phrases_path, self.config.quests_path)
        worker.signals.loaded.connect(self._on_catalogs_loaded)
        worker.signals.failed.connect(self._on_catalogs_failed)
        Workers.pool.start(worker)

    def _on_catalogs_loaded(self, phrases, quests):
        self.session = GameSession(phrases, quests, config=self.config, parent=self)
        s = self.session
        s.phrase_changed.connect(self.phraseView.set_phrase)
        s.input_marked.connect(self.phraseView.set_marks)
        s.hud_changed.connect(self._update_hud)
        s.quests_changed.connect(self._render_quests)
        s.cue.connect(self.audio.play)
        s.error.connect(self.phraseView.show_message)
        s.finished.connect(self._on_finished)

        self.input = PhraseInput(s.normalizer, self)
        self._input_slot.addWidget(self.input)
        self.input.setEnabled(False)

        self.btnStart.setEnabled(True)
        self._update_hud(s.hud())
        self.phraseView.show_message("Press Start to play")
        self.setWindowTitle("TypeQuest")

    def _on_catalogs_failed(self, msg):
        log.error("Catalog load failed: %s", msg)
        self.phraseView.show_message("Error: could not load game data.")
        QMessageBox.critical(self, "Load Error", msg)

    # ---------------- Controls ----------------
    def _on_start(self):
        if self.session is None:
            return
        dlg = SessionDialog(self.config.duration, self._difficulty, self)
        if not dlg.exec():
            return
        cfg = dlg.config
        self._difficulty = cfg["difficulty"]
        self.session.config = replace(self.session.config, duration=cfg["duration"])
        try:
            self.session.start(self._difficulty)
        except EmptyCatalogError:
            self.input.setEnabled(False)
            return
        self.input.setEnabled(True)
        self.input.setFocus()
        self.btnStart.setText("Restart")

    def _on_abandon(self):
        if self.session is None or self.session.status is not Status.PLAYING:
            return
        self.session.abandon()
        self.input.setEnabled(False)
        self.btnStart.setText("Start")
        self.phraseView.show_message("Game abandoned. Press Start to play again")
        self._update_hud(self.session.hud())

    def _on_mute(self):
        muted = self.audio.toggle_mute()
        self.btnMute.setText("Unmute" if muted else "Mute")

    # ---------------- Rendering ----------------
    def _update_hud(self, hud):
        self.lblTimer.setText(f"⏱ {hud['timer']}")
        self.lblScore.setText(f"Score {hud['score']:,}")
        self.lblMisses.setText(f"Misses {hud['misses']}")
        self.lblCombo.setText(f"Combo {hud['combo']}")

    def _render_quests(self, quests):
        self.questList.clear()
        for q in quests:
            mark = "✔" if q["completed"] else "•"
            item = QListWidgetItem(f"{mark} {q['description']}")
            if q["completed"]:
                item.setForeground(QColor("#22c55e"))
            self.questList.addItem(item)

    # ---------------- Results ----------------
    def _on_finished(self, result):
        self.input.setEnabled(False)
        self.btnStart.setText("Play Again")
        self.phraseView.show_message(f"Game Over! Final Score: {result.score:,}")
        try:
            insert_result(result, self.config.db_path)
        except DatabaseError as e:
            log.warning("Could not save result: %s", e)
        times, wpms = self.session.wpm_series()
        quests = self.session.quest_snapshot()
        # the session is still inside its tick here; open the dialog after it returns
        QTimer.singleShot(0, lambda: self._show_summary(result, times, wpms, quests))

    def _show_summary(self, result, times, wpms, quests):
        SessionSummary(result, times, wpms, quests, self).exec()

    def _open_history(self):
        try:
            rows = load_results(self.config.db_path)
        except DatabaseError as e:
            QMessageBox.warning(self, "History", str(e))
            return
        HistoryDialog(rows, self).exec()

    def closeEvent(self, ev):
        # leaving mid-game must release the countdown
        if self.session is not None:
            self.session.abandon()
        super().closeEvent(ev)
