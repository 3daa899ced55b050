"""Simple JSON-based config store."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from models import EngineMode

AUTO_LANGUAGE = "auto"
SOURCE_LANGUAGES = ("en", "fr", AUTO_LANGUAGE)
DETECTORS = ("engine", "keyword")

DEFAULT_ASR_MODEL = "openai/whisper-base"
DEFAULT_TRANSLATION_MODELS = {
    "en_fr": "Helsinki-NLP/opus-mt-en-fr",
    "fr_en": "Helsinki-NLP/opus-mt-fr-en",
}
DEFAULT_SHARED_TRANSLATION_MODEL = "facebook/nllb-200-distilled-600M"


@dataclass(frozen=True)
class ValidationSettings:
    min_chars: int = 2
    min_words: int = 20
    max_repeat_ratio: float = 0.3
    max_repeat_count: int = 50


@dataclass(frozen=True)
class PipelineSettings:
    source_language: str = "en"
    engine_mode: EngineMode = EngineMode.PER_DIRECTION
    detector: str = "engine"
    asr_model: str = DEFAULT_ASR_MODEL
    translation_models: dict = field(default_factory=lambda: dict(DEFAULT_TRANSLATION_MODELS))
    shared_translation_model: str = DEFAULT_SHARED_TRANSLATION_MODEL
    validation: ValidationSettings = field(default_factory=ValidationSettings)


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "voice_translator" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_source_language(self) -> str:
        value = str(self._read_all().get("source_language", "en")).lower()
        return value if value in SOURCE_LANGUAGES else "en"

    def set_source_language(self, code: str) -> None:
        if code not in SOURCE_LANGUAGES:
            raise ValueError(f"unsupported source language: {code}")
        data = self._read_all()
        data["source_language"] = code
        self._write_all(data)

    def get_hotkey(self) -> str:
        data = self._read_all()
        return str(data.get("hotkey", "Key.alt_l"))

    def set_hotkey(self, hotkey: str) -> None:
        data = self._read_all()
        data["hotkey"] = hotkey
        self._write_all(data)

    def get_speak_hotkey(self) -> str:
        data = self._read_all()
        return str(data.get("speak_hotkey", "Key.alt_r"))

    def get_engine_mode(self) -> EngineMode:
        raw = str(self._read_all().get("engine_mode", EngineMode.PER_DIRECTION.value))
        try:
            return EngineMode(raw)
        except ValueError:
            return EngineMode.PER_DIRECTION

    def set_engine_mode(self, mode: EngineMode) -> None:
        data = self._read_all()
        data["engine_mode"] = EngineMode(mode).value
        self._write_all(data)

    def get_detector(self) -> str:
        value = str(self._read_all().get("detector", "engine"))
        return value if value in DETECTORS else "engine"

    def get_validation(self) -> ValidationSettings:
        raw = self._read_all().get("validation", {})
        defaults = ValidationSettings()
        if not isinstance(raw, dict):
            return defaults
        try:
            return ValidationSettings(
                min_chars=int(raw.get("min_chars", defaults.min_chars)),
                min_words=int(raw.get("min_words", defaults.min_words)),
                max_repeat_ratio=float(raw.get("max_repeat_ratio", defaults.max_repeat_ratio)),
                max_repeat_count=int(raw.get("max_repeat_count", defaults.max_repeat_count)),
            )
        except (TypeError, ValueError):
            return defaults

    def load_settings(self) -> PipelineSettings:
        data = self._read_all()
        models = dict(DEFAULT_TRANSLATION_MODELS)
        overrides = data.get("translation_models", {})
        if isinstance(overrides, dict):
            models.update({str(k): str(v) for k, v in overrides.items()})
        return PipelineSettings(
            source_language=self.get_source_language(),
            engine_mode=self.get_engine_mode(),
            detector=self.get_detector(),
            asr_model=str(data.get("asr_model", DEFAULT_ASR_MODEL)),
            translation_models=models,
            shared_translation_model=str(
                data.get("shared_translation_model", DEFAULT_SHARED_TRANSLATION_MODEL)
            ),
            validation=self.get_validation(),
        )

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
