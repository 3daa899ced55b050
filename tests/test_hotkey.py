from __future__ import annotations

import pytest

from hotkey import GlobalHotkeyAdapter


def test_hold_to_record_fires_once_per_press() -> None:
    calls: list[str] = []
    adapter = GlobalHotkeyAdapter(record_key="Key.alt_l", speak_key="Key.alt_r")

    for _ in range(3):  # key repeat while held
        adapter.handle_press("Key.alt_l", lambda: calls.append("start"))
    adapter.handle_release("Key.alt_l", lambda: calls.append("stop"))
    adapter.handle_release("Key.alt_l", lambda: calls.append("stop"))

    assert calls == ["start", "stop"]


def test_speak_key_triggers_speak_only() -> None:
    calls: list[str] = []
    adapter = GlobalHotkeyAdapter(record_key="Key.alt_l", speak_key="Key.alt_r")

    adapter.handle_press("Key.alt_r", lambda: calls.append("start"))
    adapter.handle_release("Key.alt_r", lambda: calls.append("stop"), lambda: calls.append("speak"))

    assert calls == ["speak"]


def test_other_keys_are_ignored() -> None:
    calls: list[str] = []
    adapter = GlobalHotkeyAdapter()

    adapter.handle_press("'a'", lambda: calls.append("start"))
    adapter.handle_release("'a'", lambda: calls.append("stop"), lambda: calls.append("speak"))

    assert calls == []


def test_start_without_pynput_raises(monkeypatch) -> None:  # noqa: ANN001
    import hotkey as hotkey_mod
    monkeypatch.setattr(hotkey_mod, "keyboard", None)

    with pytest.raises(RuntimeError, match="pynput is not installed"):
        GlobalHotkeyAdapter().start(lambda: None, lambda: None)
