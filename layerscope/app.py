"""Application bootstrap for Layerscope."""
from __future__ import annotations

import argparse
import logging
import sys
import traceback
from typing import Sequence

from PySide6.QtWidgets import QApplication, QMessageBox

from layerscope.core.config import ConfigManager
from layerscope.core.logging import configure_logging, get_logger
from layerscope.ui.explorer_window import ExplorerWindow


class LayerscopeApplication:
    """Owns application-wide objects and startup sequence."""

    def __init__(self, argv: Sequence[str] | None = None) -> None:
        self.args = self._parse_args(argv)
        self.config = ConfigManager()
        logging_settings = self.config.section("logging")
        configure_logging(self.args.log_level or logging_settings.get("level"))
        self.logger = get_logger(__name__)
        self.qt_app = QApplication.instance() or QApplication(sys.argv[:1])
        self._install_exception_hook()
        self.main_window = ExplorerWindow(self.config)

    def _parse_args(self, argv: Sequence[str] | None) -> argparse.Namespace:
        parser = argparse.ArgumentParser(description="Layerscope composition explorer")
        parser.add_argument("path", nargs="?", help="Composition JSON file to open")
        parser.add_argument("--log-level", default=None, help="Logging level (DEBUG, INFO, ...)")
        return parser.parse_args(argv)

    def run(self) -> int:
        try:
            if self.args.path:
                self.main_window.open_composition(self.args.path)
            self.main_window.show()
            return self.qt_app.exec()
        except Exception:
            self.logger.exception("Unhandled exception in main loop")
            return 1
        finally:
            self.cleanup()

    def cleanup(self) -> None:
        if self.main_window is not None:
            self.main_window.close()
            self.main_window.deleteLater()
            self.main_window = None

    # Error handling
    def _install_exception_hook(self) -> None:
        sys.excepthook = self._handle_exception  # type: ignore[assignment]

    def _handle_exception(self, exc_type, exc_value, exc_tb) -> None:  # type: ignore[override]
        """Global exception hook that avoids recursive crashes when formatting fails."""
        try:
            formatted = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))
        except RecursionError:
            logging.error("Uncaught exception (formatting failed with RecursionError)")
            return

        logging.error("Uncaught exception:\n%s", formatted)
        dialog = QMessageBox()
        dialog.setWindowTitle("Unexpected Error")
        dialog.setIcon(QMessageBox.Critical)
        dialog.setText("An unexpected error occurred. Details have been written to the log file.")
        dialog.setDetailedText(formatted)
        dialog.exec()
