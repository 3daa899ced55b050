"""Translation engine provider and adapter."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from transformers import pipeline

from errors import TranslationError
from hub import download_model, threadsafe_progress
from interfaces import ProgressCallback
from models import EngineMode, LanguageDirection, ModelHandle, TranscriptionResult, TranslationResult

logger = logging.getLogger("voice_translator.translator")


class HuggingFaceTranslator:
    """Blocking callable around a ``transformers`` translation pipeline."""

    def __init__(self, translation_pipeline: Any, model_id: str = "", max_length: int = 512) -> None:
        self._pipeline = translation_pipeline
        self.model_id = model_id
        self.max_length = max_length

    def __call__(
        self,
        text: str,
        src_lang: Optional[str] = None,
        tgt_lang: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        kwargs: dict[str, Any] = {"max_length": self.max_length}
        if src_lang and tgt_lang:
            kwargs["src_lang"] = src_lang
            kwargs["tgt_lang"] = tgt_lang
        return self._pipeline(text, **kwargs)


class HuggingFaceTranslationProvider:
    def __init__(self, device: Optional[str] = None) -> None:
        self._device = device

    async def load(self, model_id: str, on_progress: ProgressCallback) -> HuggingFaceTranslator:
        loop = asyncio.get_running_loop()
        report = threadsafe_progress(loop, on_progress)
        return await asyncio.to_thread(self._load_blocking, model_id, report)

    def _load_blocking(self, model_id: str, report: ProgressCallback) -> HuggingFaceTranslator:
        path = download_model(model_id, report)
        kwargs: dict[str, Any] = {"model": path}
        if self._device:
            kwargs["device"] = self._device
        translation_pipeline = pipeline("translation", **kwargs)
        logger.info("Translation model %s ready", model_id)
        return HuggingFaceTranslator(translation_pipeline, model_id=model_id)


class TranslationEngineAdapter:
    def __init__(self, engine_mode: EngineMode = EngineMode.PER_DIRECTION) -> None:
        self._engine_mode = EngineMode(engine_mode)

    @property
    def engine_mode(self) -> EngineMode:
        return self._engine_mode

    async def translate(
        self,
        handle: ModelHandle,
        transcription: TranscriptionResult,
        direction: LanguageDirection,
    ) -> TranslationResult:
        kwargs: dict[str, str] = {}
        # Opus-MT checkpoints are single-direction and take no language codes.
        if self._engine_mode == EngineMode.SHARED:
            kwargs = {
                "src_lang": direction.source.locale_code,
                "tgt_lang": direction.target.locale_code,
            }
        try:
            candidates = await asyncio.to_thread(handle.engine, transcription.text, **kwargs)
        except Exception as exc:
            raise TranslationError(exc) from exc

        text = self._first_candidate(candidates)
        logger.info("Translated %s: %r -> %r", direction.label, transcription.text[:80], text[:80])
        return TranslationResult(text=text, source=transcription, direction=direction)

    @staticmethod
    def _first_candidate(candidates: Any) -> str:
        if isinstance(candidates, dict):
            candidates = [candidates]
        if not candidates:
            raise TranslationError(message="Translation engine returned no candidates")
        first = candidates[0]
        if not isinstance(first, dict) or "translation_text" not in first:
            raise TranslationError(message=f"Unexpected translation output: {first!r}")
        return str(first["translation_text"]).strip()
