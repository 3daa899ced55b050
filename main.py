"""Application entrypoint."""

from __future__ import annotations

import asyncio
import logging
import sys
import threading
from typing import Coroutine

from config import AUTO_LANGUAGE, JsonConfigStore
from hotkey import GlobalHotkeyAdapter
from models import PipelineEvent, PipelineResult, PipelineState
from orchestrator import PipelineOrchestrator
from overlay import OverlayWindow
from recognizer import WhisperProvider
from recorder import SoundDeviceRecorder
from speech_output import SpeechOutput
from translator import HuggingFaceTranslationProvider

try:
    from PySide6.QtCore import QObject, QSize, Signal
    from PySide6.QtGui import QAction, QActionGroup, QBrush, QColor, QIcon, QPainter, QPixmap
    from PySide6.QtWidgets import QApplication, QMenu, QSystemTrayIcon
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger("voice_translator.main")


def _create_icon(color: str = "#888888", size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


ICON_IDLE = "#888888"      # grey
ICON_RECORDING = "#FF4444"  # red
ICON_BUSY = "#4488FF"      # blue
ICON_ERROR = "#FF8800"     # orange

_BUSY_STATES = {
    PipelineState.TRANSCRIBING.value,
    PipelineState.VALIDATING.value,
    PipelineState.TRANSLATING.value,
}

_DIRECTIONS = (
    ("English → French", "en"),
    ("French → English", "fr"),
    ("Auto-detect", AUTO_LANGUAGE),
)


class UIBridge(QObject):
    event_signal = Signal(str, str, float, str)  # state, message, percent (-1 = none), level
    result_signal = Signal(str, str, str, str)  # transcription, source, target, translation


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.config_store = JsonConfigStore()
        self.overlay = OverlayWindow()
        self.ui = UIBridge()
        self.ui.event_signal.connect(self._on_event_ui)
        self.ui.result_signal.connect(self._on_result_ui)

        # The pipeline lives on its own asyncio loop; Qt keeps the main thread.
        self.loop = asyncio.new_event_loop()
        self._loop_thread = threading.Thread(target=self.loop.run_forever, daemon=True)

        self.controller = PipelineOrchestrator(
            capture=SoundDeviceRecorder(),
            recognizer_provider=WhisperProvider(),
            translator_provider=HuggingFaceTranslationProvider(),
            settings=self.config_store.load_settings(),
            speech_output=SpeechOutput(),
        )
        self.controller.subscribe(self._on_event)
        self.controller.on_result(self._on_result)
        self.hotkey = GlobalHotkeyAdapter(
            record_key=self.config_store.get_hotkey(),
            speak_key=self.config_store.get_speak_hotkey(),
        )

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(ICON_IDLE))
        self.tray.setToolTip("Voice Translator — Ready")
        self._setup_menu()
        self.tray.show()

    def _setup_menu(self) -> None:
        menu = QMenu()

        direction_menu = menu.addMenu("Direction")
        group = QActionGroup(direction_menu)
        group.setExclusive(True)
        current = self.controller.source_language
        for label, code in _DIRECTIONS:
            action = QAction(label, direction_menu)
            action.setCheckable(True)
            action.setChecked(code == current)
            action.triggered.connect(lambda _checked=False, c=code: self._set_direction(c))
            group.addAction(action)
            direction_menu.addAction(action)

        speak_action = QAction("Speak Translation", menu)
        speak_action.triggered.connect(self._on_speak)
        menu.addAction(speak_action)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self.tray.setContextMenu(menu)

    def _set_direction(self, code: str) -> None:
        self.controller.source_language = code
        self.config_store.set_source_language(code)

    def _submit(self, coro: Coroutine) -> None:
        asyncio.run_coroutine_threadsafe(coro, self.loop)

    # ------------------------------------------------------------------
    # Callbacks (called on the pipeline loop thread → emit signals for UI thread)
    # ------------------------------------------------------------------

    def _on_event(self, event: PipelineEvent) -> None:
        percent = -1.0 if event.progress_percent is None else float(event.progress_percent)
        self.ui.event_signal.emit(event.state.value, event.message, percent, event.level)

    def _on_result(self, result: PipelineResult) -> None:
        self.ui.result_signal.emit(
            result.transcription,
            result.source_language.value,
            result.target_language.value,
            result.translation,
        )

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_event_ui(self, state: str, message: str, percent: float, level: str) -> None:
        if level == "error":
            self.tray.setIcon(_create_icon(ICON_ERROR))
            self.overlay.show_error(message)
            return
        if state == PipelineState.RECORDING.value:
            self.tray.setIcon(_create_icon(ICON_RECORDING))
            self.tray.setToolTip("Voice Translator — Recording...")
        elif state in _BUSY_STATES:
            self.tray.setIcon(_create_icon(ICON_BUSY))
            self.tray.setToolTip("Voice Translator — Processing...")
        else:
            self.tray.setIcon(_create_icon(ICON_IDLE))
            self.tray.setToolTip("Voice Translator — Ready")
        if message:
            self.overlay.set_status(message, None if percent < 0 else percent)

    def _on_result_ui(self, transcription: str, source: str, target: str, translation: str) -> None:
        self.overlay.show_result(transcription, source, target, translation)

    # ------------------------------------------------------------------
    # Hotkey handlers
    # ------------------------------------------------------------------

    def _on_hotkey_press(self) -> None:
        self._submit(self.controller.start_recording())

    def _on_hotkey_release(self) -> None:
        self._submit(self.controller.stop_recording())

    def _on_speak(self) -> None:
        self._submit(self.controller.speak_result())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        self._loop_thread.start()
        try:
            self.hotkey.start(
                on_record_press=self._on_hotkey_press,
                on_record_release=self._on_hotkey_release,
                on_speak=self._on_speak,
            )
        except Exception as exc:
            self.overlay.show_error(f"Hotkey disabled: {exc}")
        self.overlay.set_status('Ready! Hold the hotkey to record.')
        self.overlay.hide_with_delay(2000)
        return self.app.exec()

    def quit(self) -> None:
        logger.info("Shutting down")
        self.hotkey.stop()
        self.loop.call_soon_threadsafe(self.controller.cancel_speech)
        self.loop.call_soon_threadsafe(self.loop.stop)
        self.app.quit()


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
