"""Tests for SoundDeviceRecorder."""

from __future__ import annotations

import io
import threading
import time
import wave
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from errors import PermissionDenied
from models import Recording
from recorder import SoundDeviceRecorder, pcm_to_wav_bytes


def _block(n_samples: int = 1600, value: int = 0) -> np.ndarray:
    return np.full((n_samples, 1), value, dtype=np.int16)


# ---------------------------------------------------------------
# Basic start / stop
# ---------------------------------------------------------------

@patch("recorder.sd")
def test_start_creates_stream_and_stop_returns_recording(mock_sd: MagicMock) -> None:
    mock_stream = MagicMock()
    mock_sd.InputStream.return_value = mock_stream

    recorder = SoundDeviceRecorder()
    recorder.start()

    mock_sd.InputStream.assert_called_once()
    mock_stream.start.assert_called_once()
    assert recorder.is_recording is True

    recording = recorder.stop()
    mock_stream.stop.assert_called_once()
    mock_stream.close.assert_called_once()
    assert isinstance(recording, Recording)
    assert recording.payload[:4] == b"RIFF"
    assert recording.started_at > 0
    assert recorder.is_recording is False


@patch("recorder.sd")
def test_start_is_idempotent(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.return_value = MagicMock()

    recorder = SoundDeviceRecorder()
    recorder.start()
    recorder.start()  # second call should be no-op

    assert mock_sd.InputStream.call_count == 1
    recorder.stop()


@patch("recorder.sd")
def test_stop_when_not_recording_is_noop(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.return_value = MagicMock()

    recorder = SoundDeviceRecorder()
    assert recorder.stop() is None

    recorder.start()
    assert recorder.stop() is not None
    assert recorder.stop() is None


# ---------------------------------------------------------------
# Audio callback buffers PCM
# ---------------------------------------------------------------

@patch("recorder.sd")
def test_callback_buffers_audio_into_wav(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.return_value = MagicMock()

    recorder = SoundDeviceRecorder(sample_rate=16000, channels=1, chunk_ms=100)
    recorder.start()
    recorder._on_audio(_block(1600, 100), frames=1600, time_info=None, status=None)
    recorder._on_audio(_block(1600, -100), frames=1600, time_info=None, status=None)
    recording = recorder.stop()

    assert recording is not None
    with wave.open(io.BytesIO(recording.payload), "rb") as wf:
        assert wf.getframerate() == 16000
        assert wf.getnchannels() == 1
        assert wf.getsampwidth() == 2
        assert wf.getnframes() == 3200


@patch("recorder.sd")
def test_callback_after_stop_is_noop(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.return_value = MagicMock()

    recorder = SoundDeviceRecorder()
    recorder.start()
    recorder.stop()

    recorder._on_audio(_block(), frames=1600, time_info=None, status=None)
    assert recorder._chunks == []


# ---------------------------------------------------------------
# Microphone access failures
# ---------------------------------------------------------------

def test_start_raises_permission_denied_without_sounddevice(monkeypatch) -> None:  # noqa: ANN001
    import recorder as rec_mod
    monkeypatch.setattr(rec_mod, "sd", None)

    recorder = SoundDeviceRecorder()
    with pytest.raises(PermissionDenied, match="sounddevice is not installed"):
        recorder.start()


@patch("recorder.sd")
def test_stream_open_failure_maps_to_permission_denied(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.side_effect = RuntimeError("Error querying device -1")

    recorder = SoundDeviceRecorder()
    with pytest.raises(PermissionDenied):
        recorder.start()
    assert recorder.is_recording is False


# ---------------------------------------------------------------
# Elapsed-time ticker
# ---------------------------------------------------------------

@patch("recorder.sd")
def test_elapsed_ticks_while_recording_and_stop_cancels(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.return_value = MagicMock()
    ticks: list[int] = []

    recorder = SoundDeviceRecorder(tick_s=0.02)
    recorder.start(on_elapsed=ticks.append)
    time.sleep(0.15)
    recorder.stop()

    count_at_stop = len(ticks)
    assert count_at_stop >= 2
    time.sleep(0.1)
    assert len(ticks) == count_at_stop
    assert recorder._ticker is None


@patch("recorder.sd")
def test_device_loss_stops_ticker_and_reports_abort(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.return_value = MagicMock()
    ticks: list[int] = []
    aborted = threading.Event()
    reasons: list[str] = []

    def _on_abort(reason: str) -> None:
        reasons.append(reason)
        aborted.set()

    recorder = SoundDeviceRecorder(tick_s=0.02)
    recorder.start(on_elapsed=ticks.append, on_abort=_on_abort)
    time.sleep(0.05)
    recorder._on_finished()

    assert aborted.is_set()
    assert reasons == ["input device disconnected"]
    count = len(ticks)
    time.sleep(0.08)
    assert len(ticks) == count

    # Captured audio is still handed over.
    assert recorder.stop() is not None


@patch("recorder.sd")
def test_finished_callback_after_normal_stop_is_ignored(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.return_value = MagicMock()
    reasons: list[str] = []

    recorder = SoundDeviceRecorder()
    recorder.start(on_abort=reasons.append)
    recorder.stop()
    recorder._on_finished()

    assert reasons == []


def test_pcm_to_wav_bytes_produces_riff_header() -> None:
    wav = pcm_to_wav_bytes(b"\x00\x00" * 1600, sample_rate=16000, channels=1)
    assert wav[:4] == b"RIFF"
    assert wav[8:12] == b"WAVE"
