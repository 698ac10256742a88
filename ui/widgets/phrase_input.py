# ui/widgets/phrase_input.py
from PySide6.QtWidgets import QLineEdit
from PySide6.QtGui import QFont
from PySide6.QtCore import Qt

from services.input_normalizer import InputNormalizer


class PhraseInput(QLineEdit):
    """
    Text field the player types into. It only reports to the normalizer:
    plain edits, IME composition open/close, and Enter as a commit.
    """

    def __init__(self, normalizer: InputNormalizer, parent=None):
        super().__init__(parent)
        self.normalizer = normalizer
        self.setFocusPolicy(Qt.StrongFocus)
        self.setAttribute(Qt.WA_InputMethodEnabled, True)
        self.setFont(QFont("Inter, Segoe UI, Roboto, Arial", 22))
        self.setPlaceholderText("Type the phrase, press Enter to send")

        # textEdited ignores programmatic clear(), so phrase advances stay silent
        self.textEdited.connect(self.normalizer.report_raw_change)
        self.returnPressed.connect(self._on_return)
        self.normalizer.cleared.connect(self.clear)

    def _on_return(self):
        self.normalizer.report_commit(self.text())

    def inputMethodEvent(self, ev):
        preedit = ev.preeditString()
        if preedit and not self.normalizer.is_composing:
            self.normalizer.report_composition_open()
        super().inputMethodEvent(ev)
        if self.normalizer.is_composing and not preedit:
            self.normalizer.report_composition_close(self.text())
