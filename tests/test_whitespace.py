"""Tests for boundary whitespace reconciliation."""

import pytest

from redraft.whitespace import leading_whitespace, reconcile_whitespace, trailing_whitespace


class TestWhitespaceRuns:
    def test_runs(self):
        assert leading_whitespace("  \tabc \n") == "  \t"
        assert trailing_whitespace("  \tabc \n") == " \n"

    def test_no_whitespace(self):
        assert leading_whitespace("abc") == ""
        assert trailing_whitespace("abc") == ""


class TestReconcile:
    def test_restores_dropped_spaces(self):
        assert reconcile_whitespace(" of Paris ", "OF PARIS") == " OF PARIS "

    def test_keeps_correct_rewrite(self):
        assert reconcile_whitespace(" of Paris", " OF PARIS") == " OF PARIS"

    def test_replaces_altered_runs(self):
        assert reconcile_whitespace("\nText\n", "  TEXT  ") == "\nTEXT\n"

    def test_no_whitespace_in_original_leaves_rewrite(self):
        assert reconcile_whitespace("Text", "  TEXT  ") == "  TEXT  "

    @pytest.mark.parametrize("original", [
        "plain",
        " lead",
        "trail ",
        "\n\t both \n",
        "   ",
        "\n a \t",
    ])
    @pytest.mark.parametrize("rewritten", ["", " ", "X", "  X  ", "\nX", "X\n\n"])
    def test_result_carries_original_boundaries(self, original, rewritten):
        result = reconcile_whitespace(original, rewritten)
        assert result.startswith(leading_whitespace(original))
        assert result.endswith(trailing_whitespace(original))
