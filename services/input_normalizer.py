# services/input_normalizer.py
from __future__ import annotations
from dataclasses import dataclass

from PySide6.QtCore import QObject, Signal


@dataclass(frozen=True)
class InputChange:
    """
    One stable buffer update.
    ``start`` is where the new buffer first differs from the previous one;
    ``removed`` chars were dropped there and ``added`` took their place.
    """
    buffer: str
    start: int
    removed: str
    added: str

    @property
    def is_deletion(self) -> bool:
        return not self.added and bool(self.removed)


def diff_buffers(previous: str, current: str) -> InputChange:
    start = 0
    limit = min(len(previous), len(current))
    while start < limit and previous[start] == current[start]:
        start += 1
    return InputChange(current, start, previous[start:], current[start:])


class InputNormalizer(QObject):
    """
    Turns raw text-field activity (plain keys or IME composition) into one
    stream of stable changes and commits.

    While a composition is open the buffer is unstable, so raw changes are
    dropped; closing the composition flushes the final text straight away
    because platforms do not promise a follow-up change event.
    Buffers are passed through verbatim, whitespace included.
    """
    changed = Signal(object)   # InputChange
    committed = Signal(str)
    cleared = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self._composing = False
        self._last = ""

    @property
    def is_composing(self) -> bool:
        return self._composing

    @property
    def buffer(self) -> str:
        return self._last

    def report_raw_change(self, text: str):
        if self._composing:
            return
        self._emit_change(text)

    def report_composition_open(self):
        self._composing = True

    def report_composition_close(self, text: str):
        self._composing = False
        self._emit_change(text)

    def report_commit(self, text: str):
        if self._composing:
            return
        self.committed.emit(text)

    def clear(self):
        """Forget the buffer (new phrase); the input widget should empty itself."""
        self._last = ""
        self._composing = False
        self.cleared.emit()

    def _emit_change(self, text: str):
        text = text or ""
        change = diff_buffers(self._last, text)
        self._last = text
        self.changed.emit(change)
