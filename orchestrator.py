"""State-machine based recording-to-translation orchestration."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from audio_decoder import decode_recording
from config import AUTO_LANGUAGE, PipelineSettings
from errors import (
    EMPTY_TRANSCRIPT,
    ERROR_MESSAGES,
    NOTHING_TO_SPEAK,
    PERMISSION_DENIED,
    PIPELINE_ERROR,
    REPETITION_DETECTED,
    SPEECH_OUTPUT_ERROR,
    PipelineError,
    SpeechOutputError,
)
from interfaces import AudioCapture, EngineProvider, LanguageDetector, ProgressCallback
from language import ASR_CACHE_KEY, LanguageRouter, build_detector, normalize_language_code
from model_cache import ModelCache
from models import (
    EngineMode,
    LanguageDirection,
    LoadPhase,
    LoadProgress,
    PipelineEvent,
    PipelineResult,
    PipelineState,
    Recording,
    RejectReason,
    SampleBuffer,
    SpeechStatus,
    TranscriptionResult,
)
from speech_output import SpeechOutput
from translator import TranslationEngineAdapter
from validator import TranscriptValidator

logger = logging.getLogger("voice_translator.orchestrator")

EventListener = Callable[[PipelineEvent], None]
ResultListener = Callable[[PipelineResult], None]
Decoder = Callable[[Recording], SampleBuffer]

_IDLE_STATES = (PipelineState.IDLE, PipelineState.READY, PipelineState.FAILED)

_REJECT_CODES = {
    RejectReason.EMPTY: EMPTY_TRANSCRIPT,
    RejectReason.TOO_SHORT: EMPTY_TRANSCRIPT,
    RejectReason.REPETITION_DETECTED: REPETITION_DETECTED,
}


def format_elapsed(seconds: int) -> str:
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins:02d}:{secs:02d}"


class PipelineOrchestrator:
    """Drives one utterance at a time from microphone to translated text.

    Idle -> Recording -> Transcribing -> Validating -> Translating -> Ready.
    A rejected transcript returns to Idle; any other failure passes through
    Failed and then back to Idle. ``start_recording`` and ``speak_result``
    are accepted from Idle, Ready and Failed and refused everywhere else.
    None of the public coroutines raise: errors are reported as
    ``PipelineEvent`` with ``level="error"``.
    """

    def __init__(
        self,
        capture: AudioCapture,
        recognizer_provider: EngineProvider,
        translator_provider: EngineProvider,
        settings: Optional[PipelineSettings] = None,
        model_cache: Optional[ModelCache] = None,
        speech_output: Optional[SpeechOutput] = None,
        decoder: Decoder = decode_recording,
        detector: Optional[LanguageDetector] = None,
    ) -> None:
        self._settings = settings or PipelineSettings()
        self._capture = capture
        self._recognizer_provider = recognizer_provider
        self._translator_provider = translator_provider
        self._cache = model_cache or ModelCache()
        self._decoder = decoder
        self._validator = TranscriptValidator(self._settings.validation)
        self._router = LanguageRouter(self._settings.engine_mode)
        self._adapter = TranslationEngineAdapter(self._settings.engine_mode)
        self._detector = detector or build_detector(self._settings.detector)
        self._speech_output = speech_output
        if self._speech_output is not None:
            self._speech_output.on_status = self._on_speech_status
        self._source_language = self._settings.source_language

        self._state = PipelineState.IDLE
        self._session_id = 0
        self._result: Optional[PipelineResult] = None
        self._listeners: list[EventListener] = []
        self._result_listeners: list[ResultListener] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._abort_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def result(self) -> Optional[PipelineResult]:
        return self._result

    @property
    def model_cache(self) -> ModelCache:
        return self._cache

    @property
    def accepts_start(self) -> bool:
        return self._state in _IDLE_STATES

    @property
    def source_language(self) -> str:
        return self._source_language

    @source_language.setter
    def source_language(self, code: str) -> None:
        if code != AUTO_LANGUAGE and normalize_language_code(code) is None:
            raise ValueError(f"unsupported source language: {code}")
        self._source_language = code

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def on_result(self, listener: ResultListener) -> None:
        self._result_listeners.append(listener)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def start_recording(self) -> bool:
        if not self.accepts_start:
            logger.debug("start_recording refused in state %s", self._state.value)
            return False
        self._loop = asyncio.get_running_loop()
        self._session_id += 1
        session_id = self._session_id
        self._transition(PipelineState.RECORDING, "Recording... Speak clearly in English or French.")
        try:
            self._capture.start(
                on_elapsed=lambda seconds: self._call_soon(self._handle_elapsed, session_id, seconds),
                on_abort=lambda reason: self._call_soon(self._handle_abort, session_id, reason),
            )
        except PipelineError as exc:
            logger.warning("Could not start recording: %s", exc)
            self._transition(PipelineState.IDLE)
            self._emit_error(exc.code, ERROR_MESSAGES[exc.code])
            return False
        except Exception:
            logger.exception("Audio capture failed to start")
            self._transition(PipelineState.IDLE)
            self._emit_error(PERMISSION_DENIED, ERROR_MESSAGES[PERMISSION_DENIED])
            return False
        return True

    async def stop_recording(self) -> Optional[PipelineResult]:
        if self._state != PipelineState.RECORDING:
            return None
        self._transition(PipelineState.TRANSCRIBING, "Processing audio...")
        try:
            return await self._process(self._capture.stop())
        except PipelineError as exc:
            logger.error("Pipeline failed: %s", exc)
            self._fail(exc.code, exc.message)
        except Exception as exc:
            logger.exception("Unexpected pipeline failure")
            self._fail(PIPELINE_ERROR, f"Error: {exc}")
        return None

    async def speak_result(self) -> bool:
        if not self.accepts_start:
            logger.debug("speak_result refused in state %s", self._state.value)
            return False
        result = self._result
        if result is None or not result.translation:
            self._emit_error(NOTHING_TO_SPEAK, ERROR_MESSAGES[NOTHING_TO_SPEAK])
            return False
        if self._speech_output is None:
            logger.warning("No speech output configured")
            self._emit_error(SPEECH_OUTPUT_ERROR, ERROR_MESSAGES[SPEECH_OUTPUT_ERROR])
            return False
        try:
            return await self._speech_output.speak(result.target_language, result.translation)
        except SpeechOutputError as exc:
            logger.warning("Speech output failed: %s", exc)
            return False

    def cancel_speech(self) -> None:
        if self._speech_output is not None:
            self._speech_output.cancel()

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    async def _process(self, recording: Optional[Recording]) -> Optional[PipelineResult]:
        if recording is None:
            raise PipelineError("Recording was not captured")

        self._emit_status("Transcribing audio...")
        samples = await asyncio.to_thread(self._decoder, recording)
        selected = self._source_language
        asr = await self._cache.acquire(
            ASR_CACHE_KEY,
            lambda report: self._recognizer_provider.load(self._settings.asr_model, report),
            self._progress_listener("speech model"),
        )
        language = None if selected == AUTO_LANGUAGE else selected
        output = await asyncio.to_thread(asr.engine, samples, language=language, task="transcribe")
        text = (output.text or "").strip()

        self._transition(PipelineState.VALIDATING)
        verdict = self._validator.validate(text)
        if not verdict.accepted:
            code = _REJECT_CODES[verdict.reason]
            self._transition(PipelineState.IDLE)
            self._emit_error(code, ERROR_MESSAGES[code])
            return None

        source_code = selected if language is not None else self._detector.detect(output)
        transcription = TranscriptionResult(text=text, language=source_code)
        direction = self._router.route(source_code)

        self._transition(PipelineState.TRANSLATING, "Translating...")
        translator = await self._cache.acquire(
            self._router.cache_key(direction),
            lambda report: self._translator_provider.load(self._translation_model(direction), report),
            self._progress_listener(f"{direction.label} translation model"),
        )
        translation = await self._adapter.translate(translator, transcription, direction)

        result = PipelineResult(
            transcription=transcription.text,
            source_language=direction.source,
            target_language=direction.target,
            translation=translation.text,
        )
        self._result = result
        self._transition(PipelineState.READY, "Translation complete!")
        for listener in list(self._result_listeners):
            listener(result)
        return result

    def _translation_model(self, direction: LanguageDirection) -> str:
        if self._settings.engine_mode == EngineMode.SHARED:
            return self._settings.shared_translation_model
        return self._settings.translation_models[direction.key]

    def _progress_listener(self, label: str) -> ProgressCallback:
        def _on_progress(progress: LoadProgress) -> None:
            if progress.phase == LoadPhase.DOWNLOADING and progress.percent is not None:
                percent = round(progress.percent)
                self._emit(PipelineEvent(self._state, f"Downloading {label}: {percent}%", percent))
            elif progress.phase == LoadPhase.DOWNLOADING:
                self._emit_status(f"Downloading {label}...")
            else:
                self._emit_status(f"Loading {label}...")

        return _on_progress

    # ------------------------------------------------------------------
    # Callbacks from the capture and speech threads
    # ------------------------------------------------------------------

    def _call_soon(self, callback: Callable[..., None], *args: object) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(callback, *args)

    def _handle_elapsed(self, session_id: int, seconds: int) -> None:
        if session_id != self._session_id or self._state != PipelineState.RECORDING:
            return
        self._emit_status(f"Recording... {format_elapsed(seconds)}")

    def _handle_abort(self, session_id: int, reason: str) -> None:
        if session_id != self._session_id or self._state != PipelineState.RECORDING:
            return
        logger.warning("Recording ended early: %s", reason)
        self._abort_task = asyncio.ensure_future(self.stop_recording())

    def _on_speech_status(self, status: SpeechStatus, message: str) -> None:
        level = "error" if status == SpeechStatus.ERROR else "info"
        code = SPEECH_OUTPUT_ERROR if status == SpeechStatus.ERROR else ""
        self._emit(PipelineEvent(self._state, message, level=level, code=code))

    # ------------------------------------------------------------------
    # State and events
    # ------------------------------------------------------------------

    def _fail(self, code: str, message: str) -> None:
        self._transition(PipelineState.FAILED)
        self._emit_error(code, message)
        self._transition(PipelineState.IDLE)

    def _emit_status(self, message: str) -> None:
        self._emit(PipelineEvent(self._state, message))

    def _emit_error(self, code: str, message: str) -> None:
        self._emit(PipelineEvent(self._state, message, level="error", code=code))

    def _emit(self, event: PipelineEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Pipeline listener failed")

    def _transition(self, to_state: PipelineState, message: str = "") -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        logger.debug("State %s -> %s", from_state.value, to_state.value)
        self._emit(PipelineEvent(to_state, message))
