"""Speech-recognition engine provider backed by a Whisper pipeline.

``WhisperProvider.load`` downloads the checkpoint (reporting progress),
builds a ``transformers`` ASR pipeline on a worker thread and returns a
``WhisperRecognizer``. The recognizer itself is a plain blocking callable;
the orchestrator runs it off the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from transformers import pipeline

from hub import download_model, threadsafe_progress
from interfaces import ProgressCallback
from models import RecognitionOutput, SampleBuffer

logger = logging.getLogger("voice_translator.recognizer")


def _extract_language(output: Any) -> Optional[str]:
    """Pull the detected language from a pipeline result, if it has one."""
    if not isinstance(output, dict):
        return None
    language = output.get("language")
    if language:
        return str(language)
    for chunk in output.get("chunks") or []:
        if isinstance(chunk, dict) and chunk.get("language"):
            return str(chunk["language"])
    return None


class WhisperRecognizer:
    def __init__(
        self,
        asr_pipeline: Any,
        model_id: str = "",
        chunk_length_s: float = 30.0,
        stride_length_s: float = 5.0,
    ) -> None:
        self._pipeline = asr_pipeline
        self.model_id = model_id
        self.chunk_length_s = chunk_length_s
        self.stride_length_s = stride_length_s

    def __call__(
        self,
        samples: SampleBuffer,
        language: Optional[str] = None,
        task: str = "transcribe",
    ) -> RecognitionOutput:
        generate_kwargs: dict[str, Any] = {"task": task}
        if language:
            generate_kwargs["language"] = language
        output = self._pipeline(
            {"raw": samples.samples, "sampling_rate": samples.sample_rate},
            chunk_length_s=self.chunk_length_s,
            stride_length_s=self.stride_length_s,
            return_timestamps=True,
            return_language=language is None,
            generate_kwargs=generate_kwargs,
        )
        text = str(output.get("text", "")) if isinstance(output, dict) else ""
        detected = language or _extract_language(output)
        logger.debug("Transcribed %.1fs of audio: %r (language=%s)", samples.duration_s, text[:80], detected)
        return RecognitionOutput(text=text.strip(), language=detected)


class WhisperProvider:
    def __init__(self, device: Optional[str] = None) -> None:
        self._device = device

    async def load(self, model_id: str, on_progress: ProgressCallback) -> WhisperRecognizer:
        loop = asyncio.get_running_loop()
        report = threadsafe_progress(loop, on_progress)
        return await asyncio.to_thread(self._load_blocking, model_id, report)

    def _load_blocking(self, model_id: str, report: ProgressCallback) -> WhisperRecognizer:
        path = download_model(model_id, report)
        kwargs: dict[str, Any] = {"model": path}
        if self._device:
            kwargs["device"] = self._device
        asr_pipeline = pipeline("automatic-speech-recognition", **kwargs)
        logger.info("Whisper model %s ready", model_id)
        return WhisperRecognizer(asr_pipeline, model_id=model_id)
