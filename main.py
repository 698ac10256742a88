# main.py
from __future__ import annotations
import sys
import logging

from PySide6.QtWidgets import QApplication, QMessageBox

from app.config import load_config
from app.errors import ConfigError
from ui.main_window import MainWindow
from utils.catalog_loader import ensure_app_files


def setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler("typequest.log", encoding="utf-8"),
        ],
    )

    # Log any uncaught exceptions rather than silently dying
    def excepthook(exctype, value, tb):
        logging.critical("Unhandled exception", exc_info=(exctype, value, tb))
        try:
            QMessageBox.critical(
                None, "Application Error", f"{exctype.__name__}: {value}"
            )
        except Exception:
            pass
        # exit with non-zero so run scripts don’t think it succeeded
        sys.exit(1)

    sys.excepthook = excepthook


def main() -> int:
    setup_logging()

    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName("TypeQuest")
    app.setOrganizationName("TypeQuest")

    try:
        config = load_config()
    except ConfigError as e:
        logging.error("Invalid settings.json: %s", e)
        QMessageBox.critical(None, "Settings Error", str(e))
        return 1
    ensure_app_files(config)

    win = MainWindow(config)
    win.show()

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
