# core/threads.py
import logging

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal

from app.errors import CatalogLoadError
from utils.catalog_loader import load_phrase_catalog, load_quest_catalog

log = logging.getLogger(__name__)


class CatalogLoadWorkerSignals(QObject):
    loaded = Signal(object, object)  # phrases, quest definitions
    failed = Signal(str)


class CatalogLoadWorker(QRunnable):
    """Reads both catalogs off the UI thread. No retry; the caller decides."""

    def __init__(self, phrases_path: str, quests_path: str):
        super().__init__()
        self.phrases_path = phrases_path
        self.quests_path = quests_path
        self.signals = CatalogLoadWorkerSignals()

    def run(self):
        try:
            phrases = load_phrase_catalog(self.phrases_path)
            quests = load_quest_catalog(self.quests_path)
        except CatalogLoadError as e:
            self.signals.failed.emit(str(e))
            return
        except Exception as e:
            # nothing may escape into the pool, the window waits on a signal
            log.exception("Unexpected failure loading catalogs")
            self.signals.failed.emit(f"{type(e).__name__}: {e}")
            return
        self.signals.loaded.emit(phrases, quests)


class Workers:
    pool = QThreadPool.globalInstance()
