# core/chrono.py
from PySide6.QtCore import QObject, QTimer, Signal


class CountdownTimer(QObject):
    """
    One-second heartbeat for the game countdown.
    Arming is idempotent: a second arm() while running is ignored, so two
    countdowns can never run side by side.
    """
    ticked = Signal()
    armed = Signal()
    disarmed = Signal()

    def __init__(self, interval_ms: int = 1000, parent=None):
        super().__init__(parent)
        self._armed = False
        self._tick = QTimer(self)
        self._tick.setInterval(interval_ms)
        self._tick.timeout.connect(self._on_tick)

    @property
    def is_armed(self) -> bool:
        return self._armed

    def arm(self) -> bool:
        if self._armed:
            return False
        self._armed = True
        self._tick.start()
        self.armed.emit()
        return True

    def disarm(self):
        if not self._armed:
            return
        self._armed = False
        self._tick.stop()
        self.disarmed.emit()

    def _on_tick(self):
        if self._armed:
            self.ticked.emit()
