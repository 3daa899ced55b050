"""Decode finalized recordings into 16 kHz mono float32 samples."""

from __future__ import annotations

import io

import librosa
import numpy as np
import soundfile as sf

from errors import DecodeError
from models import TARGET_SAMPLE_RATE, Recording, SampleBuffer


def decode_recording(recording: Recording, target_sr: int = TARGET_SAMPLE_RATE) -> SampleBuffer:
    if not recording.payload:
        raise DecodeError("Recording is empty")
    try:
        audio, sr = sf.read(io.BytesIO(recording.payload), dtype="float32", always_2d=True)
    except (RuntimeError, TypeError, ValueError) as exc:
        raise DecodeError(f"Invalid audio container: {exc}", exc) from exc

    if audio.size == 0:
        raise DecodeError("Recording has zero duration")

    mono = np.mean(audio, axis=1) if audio.shape[1] > 1 else audio[:, 0]
    if sr != target_sr:
        mono = librosa.resample(mono, orig_sr=sr, target_sr=target_sr)
    samples = np.ascontiguousarray(mono, dtype=np.float32)
    samples.setflags(write=False)
    return SampleBuffer(samples=samples, sample_rate=target_sr)
