# ui/widgets/session_dialog.py
from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout,
    QLabel, QPushButton, QComboBox
)

from app.state import Difficulty

DURATIONS = ["30", "60", "90", "120"]


class SessionDialog(QDialog):
    """Pick difficulty and game length before a run."""

    def __init__(self, duration: int = 60, difficulty: str = "normal", parent=None):
        super().__init__(parent)
        self.setWindowTitle("New Game")
        self.setFixedSize(340, 210)

        layout = QVBoxLayout(self)
        layout.setSpacing(14)

        layout.addWidget(QLabel("Difficulty:", self))
        self.cmb_difficulty = QComboBox(self)
        self.cmb_difficulty.addItems([d.value for d in Difficulty])
        self.cmb_difficulty.setCurrentText(difficulty)
        layout.addWidget(self.cmb_difficulty)

        layout.addWidget(QLabel("Time limit (s):", self))
        self.cmb_time = QComboBox(self)
        items = DURATIONS if str(duration) in DURATIONS else DURATIONS + [str(duration)]
        self.cmb_time.addItems(items)
        self.cmb_time.setCurrentText(str(duration))
        layout.addWidget(self.cmb_time)

        row = QHBoxLayout()
        btn_start = QPushButton("Start", self)
        btn_start.clicked.connect(self.accept)
        btn_cancel = QPushButton("Cancel", self)
        btn_cancel.clicked.connect(self.reject)
        row.addWidget(btn_start)
        row.addWidget(btn_cancel)

        layout.addStretch(1)
        layout.addLayout(row)

    @property
    def config(self):
        return {
            "difficulty": self.cmb_difficulty.currentText(),
            "duration": int(self.cmb_time.currentText()),
        }
