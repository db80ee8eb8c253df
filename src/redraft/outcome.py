"""Collapse per-batch results into one quality label for the run."""

from enum import Enum


class RewriteOutcome(str, Enum):
    """How much of the document the rewrite service handled.

    Advisory only: the label never changes content already written.
    """

    LLM = "llm"
    LLM_PARTIAL = "llm-partial"
    HEURISTIC = "heuristic"


def classify_outcome(success_count: int, failure_count: int) -> RewriteOutcome:
    """Map final batch counters to an outcome.

    >>> classify_outcome(5, 0).value
    'llm'
    >>> classify_outcome(3, 2).value
    'llm-partial'
    >>> classify_outcome(0, 4).value
    'heuristic'
    """
    if success_count < 0 or failure_count < 0:
        raise ValueError(
            f"Counters must be non-negative (success={success_count}, failure={failure_count})"
        )
    if success_count == 0:
        return RewriteOutcome.HEURISTIC
    if failure_count == 0:
        return RewriteOutcome.LLM
    return RewriteOutcome.LLM_PARTIAL
