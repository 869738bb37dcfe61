"""
Tests for message classification and username cleanup.
"""

import pytest

from services.moderation import (
    HARD,
    REASON_INVALID,
    REASON_PROFANITY,
    REASON_SPAM,
    SOFT,
    ProfanityFilter,
    classify_message,
    is_spam,
    is_valid_username,
    sanitize_username,
)


class TestClassifyMessage:

    def test_plain_message_is_accepted(self):
        result = classify_message("Is the driver stopping at the mall?")
        assert result.accepted
        assert not result.counts_as_violation

    @pytest.mark.parametrize("text", ["", "   ", None, 42, "x" * 501])
    def test_structural_failures_are_hard_and_uncounted(self, text):
        result = classify_message(text)
        assert result.reason == REASON_INVALID
        assert result.severity == HARD
        assert not result.counts_as_violation

    def test_length_limit_is_in_code_points(self):
        assert classify_message("שלום!" * 100).accepted
        assert classify_message("שלום!" * 100 + "x").reason == REASON_INVALID

    def test_profanity_is_soft_and_counted(self):
        result = classify_message("you are so STUPID")
        assert result.reason == REASON_PROFANITY
        assert result.severity == SOFT
        assert result.counts_as_violation

    def test_profanity_without_word_boundaries_is_caught(self):
        assert classify_message("זהחראמוחלט").reason == REASON_PROFANITY

    def test_profanity_wins_over_spam(self):
        assert classify_message("SHIT SHIT SHIT SHIT").reason == REASON_PROFANITY

    def test_spam_is_hard_and_uncounted(self):
        result = classify_message("heyyyyyyyyyyyyyy")
        assert result.reason == REASON_SPAM
        assert result.severity == HARD
        assert not result.counts_as_violation

    def test_custom_block_list(self):
        profanity = ProfanityFilter(["banana"])
        assert classify_message("a Banana split", profanity=profanity).reason == REASON_PROFANITY
        assert classify_message("you are stupid", profanity=profanity).accepted


class TestSpamHeuristics:

    def test_ten_repeats_are_fine_eleven_are_not(self):
        assert not is_spam("a" * 10)
        assert is_spam("a" * 11)

    def test_shouting_needs_more_than_ten_letters(self):
        assert not is_spam("HELLO BUS")
        assert is_spam("HELLO EVERYONE ON THE BUS")

    def test_mixed_case_below_threshold(self):
        assert not is_spam("Hello Everyone On The Bus")


class TestUsernames:

    def test_sanitize_keeps_hebrew_latin_digits_and_spaces(self):
        assert sanitize_username("  Dana<script>_42! ") == "Danascript42"
        assert sanitize_username("דנה 7") == "דנה 7"

    def test_sanitize_non_string(self):
        assert sanitize_username(None) == ""

    @pytest.mark.parametrize(
        "name,expected",
        [("", False), ("a", False), ("ab", True), ("a" * 20, True), ("a" * 21, False)],
    )
    def test_length_bounds_are_inclusive(self, name, expected):
        assert is_valid_username(name, 2, 20) is expected
