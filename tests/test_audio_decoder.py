from __future__ import annotations

import io

import numpy as np
import pytest
import soundfile as sf

from audio_decoder import decode_recording
from errors import DecodeError
from models import Recording
from recorder import pcm_to_wav_bytes


def _wav(samples: np.ndarray, sample_rate: int) -> bytes:
    buf = io.BytesIO()
    sf.write(buf, samples, sample_rate, format="WAV", subtype="PCM_16")
    return buf.getvalue()


def test_decodes_16k_mono_wav() -> None:
    tone = 0.2 * np.sin(np.linspace(0, 2 * np.pi * 440, 16000, endpoint=False))
    buffer = decode_recording(Recording(payload=_wav(tone, 16000), started_at=0.0))

    assert buffer.sample_rate == 16000
    assert buffer.samples.dtype == np.float32
    assert buffer.samples.shape == (16000,)
    assert buffer.duration_s == pytest.approx(1.0)


def test_resamples_and_downmixes_stereo() -> None:
    stereo = np.zeros((44100, 2), dtype=np.float32)
    stereo[:, 0] = 0.5
    stereo[:, 1] = -0.5
    buffer = decode_recording(Recording(payload=_wav(stereo, 44100), started_at=0.0))

    assert buffer.sample_rate == 16000
    assert buffer.samples.ndim == 1
    assert abs(len(buffer.samples) - 16000) <= 2
    assert np.allclose(buffer.samples, 0.0, atol=1e-3)


def test_samples_are_read_only() -> None:
    buffer = decode_recording(Recording(payload=_wav(np.zeros(1600), 16000), started_at=0.0))
    with pytest.raises(ValueError):
        buffer.samples[0] = 1.0


def test_recorder_output_round_trips_through_decoder() -> None:
    payload = pcm_to_wav_bytes(b"\x00\x00" * 3200, sample_rate=16000)
    buffer = decode_recording(Recording(payload=payload, started_at=0.0))
    assert len(buffer.samples) == 3200
    assert not buffer.samples.any()


def test_empty_payload_raises_decode_error() -> None:
    with pytest.raises(DecodeError):
        decode_recording(Recording(payload=b"", started_at=0.0))


def test_zero_duration_recording_raises_decode_error() -> None:
    payload = pcm_to_wav_bytes(b"", sample_rate=16000)
    with pytest.raises(DecodeError):
        decode_recording(Recording(payload=payload, started_at=0.0))


def test_garbage_bytes_raise_decode_error() -> None:
    with pytest.raises(DecodeError):
        decode_recording(Recording(payload=b"not audio at all" * 10, started_at=0.0))
