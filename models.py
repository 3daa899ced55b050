"""Core data models for the translator pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import numpy as np

TARGET_SAMPLE_RATE = 16000


class PipelineState(str, Enum):
    IDLE = "IDLE"
    RECORDING = "RECORDING"
    TRANSCRIBING = "TRANSCRIBING"
    VALIDATING = "VALIDATING"
    TRANSLATING = "TRANSLATING"
    READY = "READY"
    FAILED = "FAILED"


class Language(str, Enum):
    ENGLISH = "en"
    FRENCH = "fr"

    @property
    def locale_code(self) -> str:
        return _LOCALE_CODES[self]

    @property
    def label(self) -> str:
        return _LABELS[self]


_LOCALE_CODES = {Language.ENGLISH: "eng_Latn", Language.FRENCH: "fra_Latn"}
_LABELS = {Language.ENGLISH: "English", Language.FRENCH: "French"}


class EngineMode(str, Enum):
    PER_DIRECTION = "per_direction"
    SHARED = "shared"


class LoadPhase(str, Enum):
    DOWNLOADING = "downloading"
    INITIALIZING = "initializing"


class RejectReason(str, Enum):
    EMPTY = "empty"
    TOO_SHORT = "too_short"
    REPETITION_DETECTED = "repetition_detected"


class SpeechStatus(str, Enum):
    STARTED = "started"
    FINISHED = "finished"
    ERROR = "error"


@dataclass(frozen=True)
class LanguageDirection:
    source: Language
    target: Language

    def __post_init__(self) -> None:
        if self.source == self.target:
            raise ValueError("source and target language must differ")

    @property
    def key(self) -> str:
        return f"{self.source.value}_{self.target.value}"

    @property
    def label(self) -> str:
        return f"{self.source.value.upper()}→{self.target.value.upper()}"


@dataclass
class Recording:
    payload: bytes
    started_at: float
    mime_type: str = "audio/wav"


@dataclass(frozen=True)
class SampleBuffer:
    samples: np.ndarray
    sample_rate: int = TARGET_SAMPLE_RATE

    @property
    def duration_s(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return len(self.samples) / float(self.sample_rate)


@dataclass(frozen=True)
class ModelHandle:
    key: str
    engine: Any
    model_id: str = ""


@dataclass(frozen=True)
class LoadProgress:
    phase: LoadPhase
    percent: Optional[float] = None
    model_id: str = ""


@dataclass
class RecognitionOutput:
    text: str
    language: Optional[str] = None


@dataclass(frozen=True)
class TranscriptionResult:
    text: str
    language: str


@dataclass(frozen=True)
class ValidationVerdict:
    accepted: bool
    reason: Optional[RejectReason] = None
    max_repeats: int = 0
    repeat_ratio: float = 0.0

    @classmethod
    def accept(cls, max_repeats: int = 0, repeat_ratio: float = 0.0) -> "ValidationVerdict":
        return cls(accepted=True, max_repeats=max_repeats, repeat_ratio=repeat_ratio)

    @classmethod
    def reject(
        cls, reason: RejectReason, max_repeats: int = 0, repeat_ratio: float = 0.0
    ) -> "ValidationVerdict":
        return cls(accepted=False, reason=reason, max_repeats=max_repeats, repeat_ratio=repeat_ratio)


@dataclass(frozen=True)
class TranslationResult:
    text: str
    source: TranscriptionResult
    direction: LanguageDirection


@dataclass
class PipelineEvent:
    state: PipelineState
    message: str = ""
    progress_percent: Optional[float] = None
    level: str = "info"
    code: str = ""


@dataclass
class PipelineResult:
    transcription: str
    source_language: Language
    target_language: Language
    translation: str
