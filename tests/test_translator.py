from __future__ import annotations

import asyncio
from unittest.mock import MagicMock, patch

import pytest

from errors import TranslationError
from models import (
    EngineMode,
    Language,
    LanguageDirection,
    ModelHandle,
    TranscriptionResult,
)
from translator import HuggingFaceTranslationProvider, HuggingFaceTranslator, TranslationEngineAdapter

EN_FR = LanguageDirection(Language.ENGLISH, Language.FRENCH)
FR_EN = LanguageDirection(Language.FRENCH, Language.ENGLISH)


def _handle(engine) -> ModelHandle:  # noqa: ANN001
    return ModelHandle(key="test", engine=engine)


def _transcription(text: str = "hello world", language: str = "en") -> TranscriptionResult:
    return TranscriptionResult(text=text, language=language)


def test_per_direction_mode_passes_no_locale_codes() -> None:
    engine = MagicMock(return_value=[{"translation_text": "bonjour le monde"}])
    adapter = TranslationEngineAdapter(EngineMode.PER_DIRECTION)

    result = asyncio.run(adapter.translate(_handle(engine), _transcription(), EN_FR))

    assert result.text == "bonjour le monde"
    assert result.direction == EN_FR
    engine.assert_called_once_with("hello world")


def test_shared_mode_passes_locale_codes() -> None:
    engine = MagicMock(return_value=[{"translation_text": "hello world"}])
    adapter = TranslationEngineAdapter(EngineMode.SHARED)

    asyncio.run(adapter.translate(_handle(engine), _transcription("bonjour le monde", "fr"), FR_EN))

    engine.assert_called_once_with("bonjour le monde", src_lang="fra_Latn", tgt_lang="eng_Latn")


def test_first_candidate_wins() -> None:
    engine = MagicMock(return_value=[{"translation_text": "un"}, {"translation_text": "deux"}])
    result = asyncio.run(TranslationEngineAdapter().translate(_handle(engine), _transcription(), EN_FR))
    assert result.text == "un"


def test_engine_failure_raises_translation_error() -> None:
    engine = MagicMock(side_effect=RuntimeError("CUDA out of memory"))

    with pytest.raises(TranslationError) as excinfo:
        asyncio.run(TranslationEngineAdapter().translate(_handle(engine), _transcription(), EN_FR))
    assert isinstance(excinfo.value.cause, RuntimeError)
    assert "CUDA out of memory" in excinfo.value.message


def test_empty_output_raises_translation_error() -> None:
    engine = MagicMock(return_value=[])
    with pytest.raises(TranslationError):
        asyncio.run(TranslationEngineAdapter().translate(_handle(engine), _transcription(), EN_FR))


def test_translator_forwards_language_codes_only_when_both_set() -> None:
    fake_pipeline = MagicMock(return_value=[{"translation_text": "x"}])
    translator = HuggingFaceTranslator(fake_pipeline)

    translator("hello")
    translator("hello", src_lang="eng_Latn", tgt_lang="fra_Latn")

    first, second = fake_pipeline.call_args_list
    assert first.kwargs == {"max_length": 512}
    assert second.kwargs == {"max_length": 512, "src_lang": "eng_Latn", "tgt_lang": "fra_Latn"}


def test_provider_builds_translation_pipeline() -> None:
    with patch("translator.download_model", return_value="/tmp/opus"), patch(
        "translator.pipeline", return_value=MagicMock()
    ) as mock_pipeline:
        translator = asyncio.run(
            HuggingFaceTranslationProvider().load("Helsinki-NLP/opus-mt-en-fr", lambda _p: None)
        )

    assert isinstance(translator, HuggingFaceTranslator)
    assert translator.model_id == "Helsinki-NLP/opus-mt-en-fr"
    mock_pipeline.assert_called_once_with("translation", model="/tmp/opus")
