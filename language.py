"""Language routing and source-language detection."""

from __future__ import annotations

import logging
from typing import Final, Optional

from models import EngineMode, Language, LanguageDirection, RecognitionOutput

logger = logging.getLogger("voice_translator.language")

ASR_CACHE_KEY: Final[str] = "asr"
SHARED_TRANSLATION_CACHE_KEY: Final[str] = "translate:nllb"

_DIRECTIONS = {
    Language.ENGLISH: LanguageDirection(Language.ENGLISH, Language.FRENCH),
    Language.FRENCH: LanguageDirection(Language.FRENCH, Language.ENGLISH),
}
DEFAULT_DIRECTION: Final[LanguageDirection] = _DIRECTIONS[Language.ENGLISH]


_ALIASES = {
    "en": Language.ENGLISH,
    "eng": Language.ENGLISH,
    "english": Language.ENGLISH,
    "fr": Language.FRENCH,
    "fra": Language.FRENCH,
    "fre": Language.FRENCH,
    "french": Language.FRENCH,
    "francais": Language.FRENCH,
    "français": Language.FRENCH,
}


def normalize_language_code(code: Optional[str]) -> Optional[Language]:
    """Map "en", "en-US", "english", "<|fr|>", "fra_Latn" and friends to a Language."""
    raw = (code or "").strip().strip("<|>").lower()
    # Only the primary subtag counts: "frr" is North Frisian, not French.
    primary = raw.replace("_", "-").split("-", 1)[0]
    return _ALIASES.get(primary)


class LanguageRouter:
    def __init__(self, engine_mode: EngineMode = EngineMode.PER_DIRECTION) -> None:
        self._engine_mode = EngineMode(engine_mode)

    @property
    def engine_mode(self) -> EngineMode:
        return self._engine_mode

    def route(self, source_code: Optional[str]) -> LanguageDirection:
        language = normalize_language_code(source_code)
        if language is None:
            logger.warning("Unknown source language %r, defaulting to %s", source_code, DEFAULT_DIRECTION.label)
            return DEFAULT_DIRECTION
        return _DIRECTIONS[language]

    def cache_key(self, direction: LanguageDirection) -> str:
        if self._engine_mode == EngineMode.SHARED:
            return SHARED_TRANSLATION_CACHE_KEY
        return f"translate:{direction.key}"


class KeywordLanguageDetector:
    FRENCH_MARKER_MIN_HITS: Final[int] = 2
    _FRENCH_MARKERS: Final[tuple[str, ...]] = (
        " le ",
        " la ",
        " les ",
        " de ",
        " des ",
        " du ",
        " et ",
        " est ",
        " je ",
        " tu ",
        " nous ",
        " vous ",
        " une ",
        " un ",
        " pour ",
        " avec ",
        " c'est ",
        " pas ",
        " bonjour ",
        " merci ",
    )
    _ENGLISH_MARKERS: Final[tuple[str, ...]] = (
        " the ",
        " and ",
        " is ",
        " you ",
        " are ",
        " with ",
        " for ",
        " this ",
        " that ",
        " hello ",
        " thank ",
    )

    def __init__(self, default: Language = Language.ENGLISH) -> None:
        self._default = default

    def detect(self, output: RecognitionOutput) -> str:
        lowered = f" {output.text.lower()} "
        french_hits = sum(1 for marker in self._FRENCH_MARKERS if marker in lowered)
        english_hits = sum(1 for marker in self._ENGLISH_MARKERS if marker in lowered)
        if french_hits >= self.FRENCH_MARKER_MIN_HITS and french_hits > english_hits:
            return Language.FRENCH.value
        if english_hits:
            return Language.ENGLISH.value
        return self._default.value


class EngineLanguageDetector:
    """Trust the language the recognizer reported; fall back to keywords otherwise."""

    def __init__(self, fallback: Optional[KeywordLanguageDetector] = None) -> None:
        self._fallback = fallback or KeywordLanguageDetector()

    def detect(self, output: RecognitionOutput) -> str:
        reported = normalize_language_code(output.language)
        if reported is not None:
            return reported.value
        logger.info("Engine did not report a usable language (%r), using keyword fallback", output.language)
        return self._fallback.detect(output)


def build_detector(name: str) -> EngineLanguageDetector | KeywordLanguageDetector:
    if name == "keyword":
        return KeywordLanguageDetector()
    return EngineLanguageDetector()
