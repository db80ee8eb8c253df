"""Tests for contiguous batching."""

import pytest

from redraft.batching import make_batches
from redraft.extractor import Candidate


def _candidates(n: int) -> list[Candidate]:
    return [Candidate(handle=i, original_text=f"text {i}") for i in range(n)]


class TestMakeBatches:
    def test_forty_two_by_fifteen(self):
        batches = make_batches(_candidates(42), 15)
        assert [len(b) for b in batches] == [15, 15, 12]

    def test_contiguous_and_ordered(self):
        cands = _candidates(7)
        batches = make_batches(cands, 3)
        assert [b.index for b in batches] == [0, 1, 2]
        assert [c for b in batches for c in b.candidates] == cands
        assert batches[1].texts == ["text 3", "text 4", "text 5"]

    def test_exact_multiple(self):
        assert [len(b) for b in make_batches(_candidates(30), 15)] == [15, 15]

    def test_batch_larger_than_input(self):
        batches = make_batches(_candidates(4), 40)
        assert len(batches) == 1
        assert len(batches[0]) == 4

    def test_empty_input(self):
        assert make_batches([], 15) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            make_batches(_candidates(3), 0)
