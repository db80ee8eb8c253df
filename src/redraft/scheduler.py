"""Bounded-concurrency batch scheduler.

Runs a fixed number of asyncio worker tasks that pull batches from one
shared queue, send them to the rewrite service, and write the results back
into the document. Batches whose rewrite fails (wholly or in part) fall back
to the local heuristic, so every candidate ends the run with a new value.

Workers share a single event loop. ``deque.popleft()`` with no ``await``
between the emptiness check and the pop is the atomic dequeue; each
candidate owns its own slot in the document, so writes need no locking.
"""

from __future__ import annotations

import asyncio
import collections
import dataclasses
import logging
import time
from typing import Callable, Optional, Protocol, Sequence

from .batching import Batch
from .extractor import Candidate, TextSlots
from .heuristic import heuristic_rewrite
from .outcome import RewriteOutcome, classify_outcome
from .whitespace import reconcile_whitespace

logger = logging.getLogger("redraft.scheduler")

ProgressCallback = Callable[[int], None]


class SegmentRewriter(Protocol):
    async def rewrite_segments(
        self, segments: Sequence[str], directive: Optional[str] = None,
    ) -> Optional[list[Optional[str]]]: ...


@dataclasses.dataclass
class PipelineRun:
    """Bookkeeping for one document rewrite.

    ``total_batches`` is fixed before scheduling starts and is the progress
    denominator. A batch that was only partly rewritten by the service
    counts toward both ``success_count`` and ``failure_count``.
    """

    candidates: list[Candidate]
    batches: list[Batch]
    total_batches: int = 0
    completed_batches: int = 0
    success_count: int = 0
    failure_count: int = 0
    segments_rewritten: int = 0
    segments_fallback: int = 0
    started_at: float = 0.0
    finished_at: float = 0.0

    def __post_init__(self) -> None:
        self.total_batches = len(self.batches)

    @property
    def progress(self) -> int:
        if self.total_batches == 0:
            return 0
        return self.completed_batches * 100 // self.total_batches

    @property
    def duration_seconds(self) -> float:
        return max(0.0, self.finished_at - self.started_at)

    @property
    def outcome(self) -> RewriteOutcome:
        return classify_outcome(self.success_count, self.failure_count)


class BatchScheduler:
    """Drains a batch queue with at most ``max_concurrency`` workers.

    Args:
        rewriter: Anything with ``rewrite_segments`` (normally ``RewriteClient``).
        slots: Slot table the candidates' handles refer to.
        max_concurrency: Upper bound on simultaneous requests.
        directive: Optional steering instruction sent with every request.
        on_progress: Called with an integer percentage after each batch.
    """

    def __init__(
        self,
        rewriter: SegmentRewriter,
        slots: TextSlots,
        max_concurrency: int,
        directive: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self._rewriter = rewriter
        self._slots = slots
        self._max_concurrency = max_concurrency
        self._directive = directive
        self._on_progress = on_progress

    async def run(self, candidates: list[Candidate], batches: list[Batch]) -> PipelineRun:
        """Process every batch and return the finished run."""
        run = PipelineRun(candidates=candidates, batches=batches)
        run.started_at = time.monotonic()

        queue: collections.deque[Batch] = collections.deque(batches)
        workers = min(self._max_concurrency, run.total_batches)
        logger.info(
            "Scheduling %d batches (%d segments) on %d workers",
            run.total_batches, len(candidates), workers,
        )

        if workers:
            await asyncio.gather(*(self._worker(n, queue, run) for n in range(workers)))

        run.finished_at = time.monotonic()
        return run

    async def _worker(self, worker_id: int, queue: collections.deque[Batch], run: PipelineRun) -> None:
        while True:
            try:
                batch = queue.popleft()
            except IndexError:
                return
            logger.debug("Worker %d took batch %d (%d segments)", worker_id, batch.index, len(batch))
            await self._process(batch, run)

    async def _process(self, batch: Batch, run: PipelineRun) -> None:
        try:
            results = await self._rewriter.rewrite_segments(batch.texts, self._directive)
        except Exception:
            logger.exception("Batch %d: rewriter raised, using heuristic fallback", batch.index)
            results = None

        if results is not None and len(results) != len(batch):
            logger.error(
                "Batch %d: got %d results for %d segments, using heuristic fallback",
                batch.index, len(results), len(batch),
            )
            results = None

        if results is None:
            self._apply_fallback(batch.candidates, run)
            run.failure_count += 1
            logger.warning("Batch %d: rewrite failed, %d segments rewritten locally", batch.index, len(batch))
        else:
            missed = []
            for candidate, rewritten in zip(batch.candidates, results):
                if rewritten is None:
                    missed.append(candidate)
                    continue
                self._slots.write(candidate.handle, reconcile_whitespace(candidate.original_text, rewritten))
                run.segments_rewritten += 1
            run.success_count += 1
            if missed:
                self._apply_fallback(missed, run)
                run.failure_count += 1
                logger.warning(
                    "Batch %d: partial rewrite, %d of %d segments rewritten locally",
                    batch.index, len(missed), len(batch),
                )

        run.completed_batches += 1
        self._report(run)

    def _apply_fallback(self, candidates: Sequence[Candidate], run: PipelineRun) -> None:
        for candidate in candidates:
            self._slots.write(candidate.handle, heuristic_rewrite(candidate.original_text))
            run.segments_fallback += 1

    def _report(self, run: PipelineRun) -> None:
        if self._on_progress is None:
            return
        try:
            self._on_progress(run.progress)
        except Exception:
            logger.exception("Progress callback failed at %d%%", run.progress)
