"""Overlay window for pipeline status and translation results."""

from __future__ import annotations

try:
    from PySide6.QtCore import Qt, QTimer
    from PySide6.QtWidgets import QApplication, QLabel, QProgressBar, QVBoxLayout, QWidget
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QTimer = None  # type: ignore
    QApplication = None  # type: ignore
    QLabel = object  # type: ignore
    QProgressBar = object  # type: ignore
    QWidget = object  # type: ignore
    QVBoxLayout = object  # type: ignore

_STATUS_STYLE = (
    "color: {color}; font-size: 16px; padding: 12px 16px 4px 16px;"
    "background: rgba(0,0,0,190); border-top-left-radius: 12px; border-top-right-radius: 12px;"
)
_BODY_STYLE = (
    "color: white; font-size: 18px; padding: 4px 16px 16px 16px;"
    "background: rgba(0,0,0,190); border-bottom-left-radius: 12px; border-bottom-right-radius: 12px;"
)


def format_result(transcription: str, source: str, target: str, translation: str) -> str:
    return f"[{source.upper()}] {transcription}\n[{target.upper()}] {translation}"


class OverlayWindow(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowFlags(
            Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint | Qt.Tool
        )
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setFixedWidth(640)

        self._status = QLabel("")
        self._status.setWordWrap(True)
        self._progress = QProgressBar()
        self._progress.setRange(0, 100)
        self._progress.setTextVisible(False)
        self._progress.setFixedHeight(4)
        self._progress.hide()
        self._body = QLabel("")
        self._body.setWordWrap(True)
        self._body.setStyleSheet(_BODY_STYLE)
        self._set_status_color("white")

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)
        layout.addWidget(self._status)
        layout.addWidget(self._progress)
        layout.addWidget(self._body)
        self.setLayout(layout)

        self._hide_timer: QTimer | None = None

    def _center_top(self) -> None:
        if QApplication is None:
            return
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        geom = screen.availableGeometry()
        self.adjustSize()
        x = geom.x() + (geom.width() - self.width()) // 2
        y = geom.y() + 40
        self.move(x, y)

    def set_status(self, text: str, percent: float | None = None) -> None:
        """Show a status line, with a thin progress bar while models download."""
        self._cancel_hide_timer()
        self._set_status_color("white")
        self._status.setText(text)
        if percent is None:
            self._progress.hide()
        else:
            self._progress.setValue(int(percent))
            self._progress.show()
        self._center_top()
        self.show()

    def show_result(self, transcription: str, source: str, target: str, translation: str) -> None:
        self._progress.hide()
        self._body.setText(format_result(transcription, source, target, translation))
        self.set_status("Translation complete!")

    def show_error(self, text: str, hide_after_ms: int = 4000) -> None:
        self._progress.hide()
        self._set_status_color("#FF6B6B")
        self._status.setText(f"⚠️ {text}")
        self._center_top()
        self.show()
        self.hide_with_delay(hide_after_ms)

    def hide_with_delay(self, delay_ms: int = 400) -> None:
        self._cancel_hide_timer()
        if QTimer is not None:
            self._hide_timer = QTimer()
            self._hide_timer.setSingleShot(True)
            self._hide_timer.timeout.connect(self.hide)
            self._hide_timer.start(delay_ms)

    def _set_status_color(self, color: str) -> None:
        self._status.setStyleSheet(_STATUS_STYLE.format(color=color))

    def _cancel_hide_timer(self) -> None:
        if self._hide_timer is not None:
            self._hide_timer.stop()
            self._hide_timer = None
