"""Tests for the result comparator."""

import pytest

from ctrain.runtime.comparator import compare, verify
from ctrain.runtime.errors import VerdictMismatch


class TestCompare:
    def test_trailing_newline_ignored(self) -> None:
        verdict = compare("3\n", "3")
        assert verdict.success
        assert verdict.output == "3"
        assert verdict.error is None

    def test_surrounding_whitespace_on_both_sides(self) -> None:
        assert compare("  hello \n", "\nhello  ").success

    def test_mismatch_reports_both_values(self) -> None:
        verdict = compare("3 ", "30")
        assert not verdict.success
        assert verdict.output == "3"
        assert verdict.error == 'Expected: "30", Got: "3"'

    def test_inner_whitespace_is_significant(self) -> None:
        assert not compare("1  2", "1 2").success

    def test_case_is_significant(self) -> None:
        assert not compare("Hello", "hello").success

    def test_empty_output(self) -> None:
        verdict = compare("", "3")
        assert not verdict.success
        assert verdict.error == 'Expected: "3", Got: ""'


class TestVerify:
    def test_returns_stripped_output(self) -> None:
        assert verify("3\n", " 3") == "3"

    def test_mismatch_raises(self) -> None:
        with pytest.raises(VerdictMismatch) as exc_info:
            verify("3 ", "30")
        assert exc_info.value.expected == "30"
        assert exc_info.value.actual == "3"
