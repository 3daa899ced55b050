"""Global hotkeys based on pynput: hold to record, tap to speak."""

from __future__ import annotations

import threading
from typing import Callable, Optional

try:
    from pynput import keyboard
except Exception:  # pragma: no cover
    keyboard = None  # type: ignore


class GlobalHotkeyAdapter:
    def __init__(self, record_key: str = "Key.alt_l", speak_key: Optional[str] = "Key.alt_r") -> None:
        self._record_key = record_key
        self._speak_key = speak_key
        self._listener: Optional[object] = None
        self._recording = False
        self._lock = threading.Lock()

    def start(
        self,
        on_record_press: Callable[[], None],
        on_record_release: Callable[[], None],
        on_speak: Optional[Callable[[], None]] = None,
    ) -> None:
        if keyboard is None:
            raise RuntimeError("pynput is not installed")
        self._listener = keyboard.Listener(
            on_press=lambda key: self.handle_press(str(key), on_record_press),
            on_release=lambda key: self.handle_release(str(key), on_record_release, on_speak),
        )
        self._listener.start()

    def handle_press(self, key_name: str, on_record_press: Callable[[], None]) -> None:
        if key_name != self._record_key:
            return
        with self._lock:
            # Key repeat fires press events continuously while held.
            if self._recording:
                return
            self._recording = True
        on_record_press()

    def handle_release(
        self,
        key_name: str,
        on_record_release: Callable[[], None],
        on_speak: Optional[Callable[[], None]] = None,
    ) -> None:
        if key_name == self._speak_key and on_speak is not None:
            on_speak()
            return
        if key_name != self._record_key:
            return
        with self._lock:
            if not self._recording:
                return
            self._recording = False
        on_record_release()

    def stop(self) -> None:
        listener = self._listener
        if listener is not None:
            listener.stop()
            self._listener = None
