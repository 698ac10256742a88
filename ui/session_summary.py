# ui/session_summary.py
from __future__ import annotations
from PySide6.QtWidgets import QDialog, QVBoxLayout, QLabel, QPushButton
import pyqtgraph as pg

from app.calculation import smooth
from utils.graph_helper import setup_plot, update_curve, wpm_curve


class SessionSummary(QDialog):
    """Final score, accuracy, WPM, finished quests and a WPM-over-time graph."""

    def __init__(self, result, times: list[float], wpms: list[float], quests: list[dict], parent=None):
        super().__init__(parent)
        self.setWindowTitle("Game Over")
        self.resize(720, 460)

        root = QVBoxLayout(self)
        root.addWidget(QLabel(f"Score: {result.score:,}"))
        root.addWidget(QLabel(f"Accuracy: {result.accuracy:.1f}%"))
        root.addWidget(QLabel(f"WPM: {result.wpm:.1f}"))
        root.addWidget(QLabel(f"Difficulty: {result.difficulty}"))

        done = [q["description"] for q in quests if q["completed"]]
        root.addWidget(QLabel("Quests: " + (", ".join(done) if done else "none completed")))

        plot = pg.PlotWidget()
        setup_plot(plot, "WPM", "Time (s)")
        curve = wpm_curve(plot, "#c8c8ff")
        update_curve(curve, times, smooth([float(v) for v in wpms]))
        root.addWidget(plot, stretch=1)

        btn = QPushButton("OK", self)
        btn.clicked.connect(self.accept)
        root.addWidget(btn)
