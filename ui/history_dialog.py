# ui/history_dialog.py
from PySide6.QtWidgets import (
    QDialog,
    QVBoxLayout,
    QHBoxLayout,
    QLabel,
    QComboBox,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QFileDialog,
)
import csv
import pyqtgraph as pg

from app.state import Difficulty
from utils.graph_helper import setup_plot

COLUMNS = ["When", "Difficulty", "Score", "Accuracy", "WPM", "Quests"]


class HistoryDialog(QDialog):
    def __init__(self, results, parent=None):
        """
        results: rows from utils.db_helper.load_results (newest first)
        """
        super().__init__(parent)
        self.setWindowTitle("History")
        self.resize(760, 540)
        self._raw = list(results)
        self._filtered = self._raw[:]

        root = QVBoxLayout(self)

        # --- controls ---
        ctrl = QHBoxLayout()
        ctrl.addWidget(QLabel("Difficulty:"))
        self.cmb_difficulty = QComboBox()
        self.cmb_difficulty.addItems(["all"] + [d.value for d in Difficulty])
        self.cmb_difficulty.currentIndexChanged.connect(self._apply_filter)
        ctrl.addWidget(self.cmb_difficulty)
        ctrl.addStretch(1)
        self.btn_export = QPushButton("Export CSV…")
        self.btn_export.clicked.connect(self._export_csv)
        ctrl.addWidget(self.btn_export)
        root.addLayout(ctrl)

        # --- score chart (single item, reused) ---
        self.plot = pg.PlotWidget()
        setup_plot(self.plot, "Score")
        self.plot.getAxis("bottom").setTicks([])
        root.addWidget(self.plot, stretch=2)
        self._bar = pg.BarGraphItem(x=[], height=[], width=0.8)
        self.plot.addItem(self._bar)

        # --- table ---
        self.table = QTableWidget(0, len(COLUMNS))
        self.table.setHorizontalHeaderLabels(COLUMNS)
        self.table.horizontalHeader().setStretchLastSection(True)
        root.addWidget(self.table, stretch=1)

        self._render()

    def _apply_filter(self):
        choice = self.cmb_difficulty.currentText()
        self._filtered = [r for r in self._raw if choice == "all" or r["difficulty"] == choice]
        self._render()

    def _render(self):
        # oldest on the left
        scores = [r["score"] for r in reversed(self._filtered)]
        self._bar.setOpts(x=list(range(len(scores))), height=scores, width=0.8)

        self.table.setRowCount(len(self._filtered))
        for i, r in enumerate(self._filtered):
            cells = [
                r["created_at"],
                r["difficulty"],
                f"{r['score']:,}",
                f"{r['accuracy']:.1f}%",
                f"{r['wpm']:.1f}",
                str(len(r["completed_quests"])),
            ]
            for col, text in enumerate(cells):
                self.table.setItem(i, col, QTableWidgetItem(text))

    def _export_csv(self):
        path, _ = QFileDialog.getSaveFileName(
            self, "Export History", "history.csv", "CSV (*.csv)"
        )
        if not path:
            return
        with open(path, "w", newline="", encoding="utf-8") as f:
            w = csv.writer(f)
            w.writerow(["CreatedAt", "Difficulty", "Score", "Accuracy", "WPM", "Quests"])
            for r in self._filtered:
                w.writerow([
                    r["created_at"], r["difficulty"], r["score"],
                    f"{r['accuracy']:.1f}", f"{r['wpm']:.1f}",
                    ";".join(r["completed_quests"]),
                ])
