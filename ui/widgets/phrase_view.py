# ui/widgets/phrase_view.py
from __future__ import annotations
import html

from PySide6.QtWidgets import QLabel, QSizePolicy
from PySide6.QtCore import Qt


class PhraseView(QLabel):
    """Target phrase with typed characters coloured green/red and a caret."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setObjectName("lblLine")
        self.setTextFormat(Qt.RichText)
        self.setWordWrap(True)
        self.setAlignment(Qt.AlignCenter)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.setMinimumHeight(140)
        self.setStyleSheet("font-size: 34px; line-height: 1.35;")

        self._phrase = ""
        self._marks: list = []
        self._colors = {
            "ok": "#22c55e",
            "err": "#ef4444",
            "mut": "#9aa1a9",
            "caret": "#eab308",
            "err_ul": "rgba(239,68,68,0.9)",
        }

    def set_phrase(self, text: str):
        self._phrase = text or ""
        self._marks = []
        self._render()

    def set_marks(self, marks):
        self._marks = list(marks or [])
        self._render()

    def show_message(self, text: str):
        self._phrase = ""
        self._marks = []
        self.setText(html.escape(text))

    def _span(self, txt: str, color: str, underline: bool = False) -> str:
        style = f"color:{color}"
        if underline:
            style += f";border-bottom:2px solid {self._colors['err_ul']}"
        return f'<span style="{style}">{html.escape(txt)}</span>'

    def _render(self):
        parts: list[str] = []
        typed = len(self._marks)
        for idx, ch in enumerate(self._phrase):
            if idx < typed:
                ok = self._marks[idx][1]
                parts.append(self._span(ch, self._colors["ok"] if ok else self._colors["err"], underline=not ok))
            else:
                parts.append(self._span(ch, self._colors["mut"]))
        # overflow past the end of the phrase
        for ch, _ in self._marks[len(self._phrase):]:
            parts.append(self._span(ch, self._colors["err"], underline=True))
        caret = f'<span style="color:{self._colors["caret"]}">|</span>'
        parts.insert(min(typed, len(parts)), caret)
        self.setText("".join(parts))
