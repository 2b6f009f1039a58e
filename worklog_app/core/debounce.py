"""Debounce shell coalescing rapid search requests into one effective search."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from .config import DEBOUNCE_SECONDS
from .errors import WorklogAppError
from .merger import ProgressCallback
from .models import SearchRequest, WorklogSearchResult

logger = logging.getLogger(__name__)

SearchFn = Callable[[SearchRequest, ProgressCallback | None], WorklogSearchResult]
ResultCallback = Callable[[WorklogSearchResult], None]
ErrorCallback = Callable[[WorklogAppError], None]


class SearchDebouncer:
    """Run a search ``delay`` seconds after the last request.

    A request arriving while the timer is pending cancels it outright. A
    search already running is never interrupted, but every request bumps a
    generation counter and only the latest generation may publish results,
    progress, or errors. A slow, superseded search can therefore never
    overwrite newer data.
    """

    def __init__(
        self,
        search: SearchFn,
        on_result: ResultCallback,
        *,
        on_error: ErrorCallback | None = None,
        delay: float = DEBOUNCE_SECONDS,
        timer_factory=threading.Timer,
    ):
        self._search = search
        self._on_result = on_result
        self._on_error = on_error
        self.delay = float(delay)
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._pending = None
        self._generation = 0

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def submit(self, request: SearchRequest, on_progress: ProgressCallback | None = None) -> int:
        """Schedule ``request`` after the debounce window; returns its generation."""
        with self._lock:
            self._cancel_pending_locked()
            self._generation += 1
            generation = self._generation
            timer = self._timer_factory(self.delay, self._fire, args=(generation, request, on_progress))
            timer.daemon = True
            self._pending = timer
        timer.start()
        return generation

    def submit_now(
        self, request: SearchRequest, on_progress: ProgressCallback | None = None
    ) -> WorklogSearchResult | None:
        """Skip the window: cancel anything pending and search in this thread."""
        with self._lock:
            self._cancel_pending_locked()
            self._generation += 1
            generation = self._generation
        return self._run(generation, request, on_progress)

    def cancel(self) -> None:
        with self._lock:
            self._cancel_pending_locked()

    def _cancel_pending_locked(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _fire(self, generation: int, request: SearchRequest, on_progress: ProgressCallback | None) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._pending = None
        self._run(generation, request, on_progress)

    def _run(
        self, generation: int, request: SearchRequest, on_progress: ProgressCallback | None
    ) -> WorklogSearchResult | None:
        def guarded_progress(worklogs, issues):
            if on_progress is not None and self.is_current(generation):
                on_progress(worklogs, issues)

        try:
            result = self._search(request, guarded_progress)
        except WorklogAppError as exc:
            if not self.is_current(generation):
                logger.debug("Dropping error from superseded search #%s: %s", generation, exc)
                return None
            if self._on_error is None:
                raise
            self._on_error(exc)
            return None

        if not self.is_current(generation):
            logger.debug("Discarding result of superseded search #%s", generation)
            return None
        self._on_result(result)
        return result
