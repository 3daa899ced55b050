from __future__ import annotations

import json
from pathlib import Path

import pytest

from config import JsonConfigStore, PipelineSettings, ValidationSettings
from models import EngineMode


def test_config_read_write(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    store = JsonConfigStore(path=path)

    assert store.get_source_language() == "en"
    assert store.get_hotkey() == "Key.alt_l"
    assert store.get_engine_mode() == EngineMode.PER_DIRECTION

    store.set_source_language("fr")
    store.set_hotkey("Key.alt_r")
    store.set_engine_mode(EngineMode.SHARED)

    reloaded = JsonConfigStore(path=path)
    assert reloaded.get_source_language() == "fr"
    assert reloaded.get_hotkey() == "Key.alt_r"
    assert reloaded.get_engine_mode() == EngineMode.SHARED


def test_config_invalid_json_fallback(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{invalid", encoding="utf-8")

    store = JsonConfigStore(path=path)
    assert store.get_source_language() == "en"
    assert store.get_hotkey() == "Key.alt_l"
    assert store.load_settings() == PipelineSettings()


def test_unknown_values_fall_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"source_language": "de", "engine_mode": "bogus", "detector": "magic"}),
        encoding="utf-8",
    )

    store = JsonConfigStore(path=path)
    assert store.get_source_language() == "en"
    assert store.get_engine_mode() == EngineMode.PER_DIRECTION
    assert store.get_detector() == "engine"


def test_set_source_language_rejects_unsupported(tmp_path: Path) -> None:
    store = JsonConfigStore(path=tmp_path / "config.json")
    with pytest.raises(ValueError):
        store.set_source_language("de")


def test_load_settings_reads_thresholds_and_models(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "source_language": "auto",
                "detector": "keyword",
                "validation": {"max_repeat_ratio": 0.5, "max_repeat_count": 10},
                "translation_models": {"en_fr": "my-org/en-fr"},
            }
        ),
        encoding="utf-8",
    )

    settings = JsonConfigStore(path=path).load_settings()
    assert settings.source_language == "auto"
    assert settings.detector == "keyword"
    assert settings.validation == ValidationSettings(max_repeat_ratio=0.5, max_repeat_count=10)
    assert settings.translation_models["en_fr"] == "my-org/en-fr"
    assert settings.translation_models["fr_en"] == "Helsinki-NLP/opus-mt-fr-en"
