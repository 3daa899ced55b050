"""Transcript quality checks run before translation.

Whisper-style models tend to loop on near-silent or very short audio and
emit the same word over and over. The checks here are a best-effort filter
for that failure mode, not a guarantee: a transcript that passes may still
be wrong, and a legitimately repetitive utterance longer than the minimum
word count can be rejected.
"""

from __future__ import annotations

import logging
from collections import Counter

from config import ValidationSettings
from models import RejectReason, ValidationVerdict

logger = logging.getLogger("voice_translator.validator")


class TranscriptValidator:
    def __init__(self, settings: ValidationSettings | None = None) -> None:
        self._settings = settings or ValidationSettings()

    @property
    def settings(self) -> ValidationSettings:
        return self._settings

    def validate(self, text: str) -> ValidationVerdict:
        cleaned = (text or "").strip()
        if len(cleaned) < self._settings.min_chars:
            reason = RejectReason.EMPTY if not cleaned else RejectReason.TOO_SHORT
            return ValidationVerdict.reject(reason)

        words = cleaned.split()
        total = len(words)
        # Too few words for repetition counts to mean anything.
        if total <= self._settings.min_words:
            return ValidationVerdict.accept()

        counts = Counter(word.lower() for word in words)
        max_repeats = max(counts.values())
        repeat_ratio = max_repeats / total
        if repeat_ratio > self._settings.max_repeat_ratio or max_repeats > self._settings.max_repeat_count:
            logger.warning(
                "Hallucination detected: max_repeats=%d repeat_ratio=%.2f text=%r",
                max_repeats,
                repeat_ratio,
                cleaned[:200],
            )
            return ValidationVerdict.reject(
                RejectReason.REPETITION_DETECTED,
                max_repeats=max_repeats,
                repeat_ratio=repeat_ratio,
            )
        return ValidationVerdict.accept(max_repeats=max_repeats, repeat_ratio=repeat_ratio)
