"""Split the candidate sequence into request-sized batches."""

from __future__ import annotations

import dataclasses
from typing import Sequence

from .extractor import Candidate


@dataclasses.dataclass(frozen=True)
class Batch:
    """A contiguous, order-preserving slice of the candidate sequence.

    Result *i* of a rewrite request maps back to ``candidates[i]``.
    """

    index: int
    candidates: tuple[Candidate, ...]

    def __len__(self) -> int:
        return len(self.candidates)

    @property
    def texts(self) -> list[str]:
        return [c.original_text for c in self.candidates]


def make_batches(candidates: Sequence[Candidate], max_batch_size: int) -> list[Batch]:
    """Chunk *candidates* into batches of at most *max_batch_size*.

    Batch k holds ``candidates[k*S : (k+1)*S]``; only the last one may be
    shorter. No reordering.
    """
    if max_batch_size < 1:
        raise ValueError(f"max_batch_size must be >= 1, got {max_batch_size}")

    return [
        Batch(index=k, candidates=tuple(candidates[start:start + max_batch_size]))
        for k, start in enumerate(range(0, len(candidates), max_batch_size))
    ]
