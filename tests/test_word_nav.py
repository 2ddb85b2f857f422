"""Tests for pi.chat_input.word_nav."""

from __future__ import annotations

from pi.chat_input.word_nav import next_word_boundary, previous_word_boundary


class TestPreviousWordBoundary:
    def test_from_end_of_text(self) -> None:
        assert previous_word_boundary("foo bar", 7) == 4

    def test_from_start_of_word(self) -> None:
        assert previous_word_boundary("foo bar", 4) == 0

    def test_skips_trailing_spaces(self) -> None:
        assert previous_word_boundary("foo bar   ", 10) == 4

    def test_at_zero(self) -> None:
        assert previous_word_boundary("foo", 0) == 0

    def test_single_word(self) -> None:
        assert previous_word_boundary("hello", 3) == 0

    def test_leading_space_goes_to_zero(self) -> None:
        assert previous_word_boundary(" foo", 4) == 0

    def test_position_past_end_is_clamped(self) -> None:
        assert previous_word_boundary("foo bar", 50) == 4

    def test_empty(self) -> None:
        assert previous_word_boundary("", 0) == 0


class TestNextWordBoundary:
    def test_from_start(self) -> None:
        assert next_word_boundary("foo bar", 0) == 4

    def test_from_second_word(self) -> None:
        assert next_word_boundary("foo bar", 4) == 7

    def test_from_middle_of_word(self) -> None:
        assert next_word_boundary("foo bar baz", 1) == 4

    def test_from_space(self) -> None:
        assert next_word_boundary("foo   bar", 3) == 6

    def test_at_end(self) -> None:
        assert next_word_boundary("foo", 3) == 3

    def test_past_end(self) -> None:
        assert next_word_boundary("foo", 10) == 3
