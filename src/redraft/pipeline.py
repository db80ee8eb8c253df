"""Rewrite an HTML document end to end.

    html -> extract candidates -> batch -> schedule -> classify

``RewritePipeline`` wires the pieces together for one rewrite service;
``rewrite_html`` is the one-call convenience that builds its own client.
The pipeline never raises because the rewrite service misbehaved: the worst
case is a fully heuristic document with outcome ``heuristic``.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from typing import Optional

from bs4 import BeautifulSoup, Tag

from .api_client import RewriteClient
from .batching import make_batches
from .config import Settings, get_settings
from .extractor import extract_candidates
from .logging_config import run_id_var
from .outcome import RewriteOutcome
from .scheduler import BatchScheduler, PipelineRun, ProgressCallback, SegmentRewriter

logger = logging.getLogger("redraft.pipeline")

_CONTAINER_ID = "content"


@dataclasses.dataclass(frozen=True)
class RewriteResult:
    """Rewritten HTML plus what it took to produce it."""

    html: str
    outcome: RewriteOutcome
    segment_count: int = 0
    batch_count: int = 0
    segments_rewritten: int = 0
    segments_fallback: int = 0
    duration_seconds: float = 0.0


class RewritePipeline:
    """Rewrites documents through one rewrite service.

    Args:
        rewriter: Usually a ``RewriteClient``; anything with ``rewrite_segments``.
        settings: Batch size and concurrency. Defaults to ``get_settings()``.
    """

    def __init__(self, rewriter: SegmentRewriter, settings: Optional[Settings] = None) -> None:
        self._rewriter = rewriter
        self._settings = settings or get_settings()

    async def rewrite_tree(
        self,
        root: Tag,
        directive: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PipelineRun:
        """Rewrite every prose text node under *root* in place."""
        candidates, slots = extract_candidates(root)
        batches = make_batches(candidates, self._settings.max_batch_size)

        scheduler = BatchScheduler(
            self._rewriter,
            slots,
            max_concurrency=self._settings.max_concurrency,
            directive=directive,
            on_progress=on_progress,
        )
        run = await scheduler.run(candidates, batches)

        logger.info(
            "Rewrite finished: outcome=%s segments=%d batches=%d ok=%d failed=%d "
            "service=%d local=%d in %.1fs",
            run.outcome.value, len(candidates), run.total_batches,
            run.success_count, run.failure_count,
            run.segments_rewritten, run.segments_fallback, run.duration_seconds,
        )
        return run

    async def rewrite_html(
        self,
        html: str,
        directive: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> RewriteResult:
        """Rewrite an HTML fragment and return the new markup.

        The fragment is parsed inside an ``<article>`` wrapper which is not
        part of the returned HTML.
        """
        token = run_id_var.set(uuid.uuid4().hex[:8])
        try:
            soup = BeautifulSoup(f'<article id="{_CONTAINER_ID}">{html}</article>', "html.parser")
            root = soup.find(id=_CONTAINER_ID)
            if root is None:
                logger.warning("Could not locate content container, returning input unchanged")
                return RewriteResult(html=html, outcome=RewriteOutcome.HEURISTIC)

            run = await self.rewrite_tree(root, directive=directive, on_progress=on_progress)
            return RewriteResult(
                html=root.decode_contents(),
                outcome=run.outcome,
                segment_count=len(run.candidates),
                batch_count=run.total_batches,
                segments_rewritten=run.segments_rewritten,
                segments_fallback=run.segments_fallback,
                duration_seconds=run.duration_seconds,
            )
        finally:
            run_id_var.reset(token)


async def rewrite_html(
    html: str,
    directive: Optional[str] = None,
    on_progress: Optional[ProgressCallback] = None,
    settings: Optional[Settings] = None,
) -> RewriteResult:
    """Rewrite *html* using a client built from *settings*."""
    settings = settings or get_settings()
    async with RewriteClient.from_settings(settings) as client:
        pipeline = RewritePipeline(client, settings)
        return await pipeline.rewrite_html(html, directive=directive, on_progress=on_progress)
