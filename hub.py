"""Hugging Face Hub downloads with progress forwarded to the event loop."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, Optional

from huggingface_hub import snapshot_download
from tqdm.auto import tqdm

from interfaces import ProgressCallback
from models import LoadPhase, LoadProgress

logger = logging.getLogger("voice_translator.hub")

MODELS_DIR = os.getenv("VOICE_TRANSLATOR_MODELS_DIR", str(Path.home() / ".cache" / "voice_translator"))
# Skip TF/Flax/ONNX weights; the PyTorch pipelines only need these.
ALLOW_PATTERNS = ["*.json", "*.txt", "*.spm", "*.model", "*.safetensors", "pytorch_model*.bin"]


def _progress_bar_class(report: Callable[[float], None]) -> type:
    class _ProgressBar(tqdm):
        def __init__(self, *args, **kwargs) -> None:
            # huggingface_hub passes its own ``name`` kwarg that plain tqdm rejects.
            kwargs.pop("name", None)
            super().__init__(*args, **kwargs)

        def update(self, n: float = 1) -> Optional[bool]:
            displayed = super().update(n)
            if self.total:
                report(min(100.0, self.n * 100.0 / self.total))
            return displayed

    return _ProgressBar


def threadsafe_progress(
    loop: asyncio.AbstractEventLoop, on_progress: ProgressCallback
) -> ProgressCallback:
    """Wrap a progress callback so worker threads can call it safely."""

    def _emit(progress: LoadProgress) -> None:
        loop.call_soon_threadsafe(on_progress, progress)

    return _emit


def download_model(model_id: str, on_progress: ProgressCallback, cache_dir: str = MODELS_DIR) -> str:
    """Blocking snapshot download; call from a worker thread."""
    on_progress(LoadProgress(LoadPhase.DOWNLOADING, 0.0, model_id))

    def _report(percent: float) -> None:
        logger.debug("Download %s: %.0f%%", model_id, percent)
        on_progress(LoadProgress(LoadPhase.DOWNLOADING, percent, model_id))

    path = snapshot_download(
        repo_id=model_id,
        cache_dir=cache_dir,
        allow_patterns=ALLOW_PATTERNS,
        tqdm_class=_progress_bar_class(_report),
    )
    on_progress(LoadProgress(LoadPhase.INITIALIZING, None, model_id))
    return path
