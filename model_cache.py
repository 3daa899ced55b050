"""Lazy, memoized acquisition of inference engines."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from errors import ModelLoadError
from interfaces import ProgressCallback
from models import LoadProgress, ModelHandle

logger = logging.getLogger("voice_translator.model_cache")

Loader = Callable[[ProgressCallback], Awaitable[Any]]


class ModelCache:
    """Holds at most one loaded engine per cache key for the life of the process.

    Concurrent ``acquire`` calls for a key that is still loading share the
    same in-flight load. A failed load is not remembered, so the next
    ``acquire`` for that key runs the loader again. Nothing is ever evicted.
    """

    def __init__(self) -> None:
        self._handles: dict[str, ModelHandle] = {}
        self._pending: dict[str, asyncio.Future[ModelHandle]] = {}
        self._listeners: dict[str, list[ProgressCallback]] = {}
        self.load_count = 0

    def __contains__(self, key: str) -> bool:
        return key in self._handles

    def get(self, key: str) -> Optional[ModelHandle]:
        return self._handles.get(key)

    @property
    def keys(self) -> list[str]:
        return list(self._handles)

    async def acquire(
        self,
        key: str,
        loader: Loader,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ModelHandle:
        handle = self._handles.get(key)
        if handle is not None:
            return handle

        if on_progress is not None:
            self._listeners.setdefault(key, []).append(on_progress)

        pending = self._pending.get(key)
        if pending is None:
            pending = asyncio.ensure_future(self._load(key, loader))
            self._pending[key] = pending
        else:
            logger.debug("Joining in-flight load for %s", key)
        # One caller being cancelled must not abort the load for the others.
        return await asyncio.shield(pending)

    async def _load(self, key: str, loader: Loader) -> ModelHandle:
        self.load_count += 1
        logger.info("Loading model for %s", key)
        try:
            engine = await loader(lambda progress: self._forward(key, progress))
        except Exception as exc:
            logger.error("Model load failed for %s: %s", key, exc)
            raise ModelLoadError(key, exc) from exc
        finally:
            self._pending.pop(key, None)
            self._listeners.pop(key, None)

        handle = ModelHandle(key=key, engine=engine, model_id=getattr(engine, "model_id", ""))
        self._handles[key] = handle
        logger.info("Model ready for %s", key)
        return handle

    def _forward(self, key: str, progress: LoadProgress) -> None:
        for listener in list(self._listeners.get(key, ())):
            listener(progress)
