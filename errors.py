"""Shared error codes, user-facing messages and pipeline exceptions."""

from __future__ import annotations

from typing import Optional

PERMISSION_DENIED = "PERMISSION_DENIED"
DECODE_ERROR = "DECODE_ERROR"
MODEL_LOAD_ERROR = "MODEL_LOAD_ERROR"
EMPTY_TRANSCRIPT = "EMPTY_TRANSCRIPT"
REPETITION_DETECTED = "REPETITION_DETECTED"
TRANSLATION_ERROR = "TRANSLATION_ERROR"
SPEECH_OUTPUT_ERROR = "SPEECH_OUTPUT_ERROR"
NOTHING_TO_SPEAK = "NOTHING_TO_SPEAK"
PIPELINE_ERROR = "PIPELINE_ERROR"

ERROR_MESSAGES = {
    PERMISSION_DENIED: "Could not access microphone. Please grant permission.",
    DECODE_ERROR: "Could not decode the recording. Please record again.",
    MODEL_LOAD_ERROR: "Failed to load model, please retry.",
    EMPTY_TRANSCRIPT: "No clear speech detected. Please speak louder and longer (3-10 seconds).",
    REPETITION_DETECTED: "Audio quality too low. Please speak much louder and closer to the microphone.",
    TRANSLATION_ERROR: "Translation failed, please retry.",
    SPEECH_OUTPUT_ERROR: "Speech output failed.",
    NOTHING_TO_SPEAK: "No translation to speak!",
    PIPELINE_ERROR: "Processing failed, please retry.",
}


class PipelineError(Exception):
    code = PIPELINE_ERROR

    def __init__(self, message: str = "", cause: Optional[BaseException] = None) -> None:
        super().__init__(message or ERROR_MESSAGES[self.code])
        self.cause = cause

    @property
    def message(self) -> str:
        return str(self)


class PermissionDenied(PipelineError):
    code = PERMISSION_DENIED


class DecodeError(PipelineError):
    code = DECODE_ERROR


class ModelLoadError(PipelineError):
    code = MODEL_LOAD_ERROR

    def __init__(self, key: str, cause: Optional[BaseException] = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to load model '{key}'{detail}", cause)
        self.key = key


class TranslationError(PipelineError):
    code = TRANSLATION_ERROR

    def __init__(self, cause: Optional[BaseException] = None, message: str = "") -> None:
        if not message:
            message = f"Translation failed: {cause}" if cause is not None else ""
        super().__init__(message, cause)


class SpeechOutputError(PipelineError):
    code = SPEECH_OUTPUT_ERROR
