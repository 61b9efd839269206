"""
tests/test_eligibility.py — Free-Episode Rule
==============================================
"""

from __future__ import annotations

import pytest

from backoffice.engine.eligibility import is_free, parse_free_count


class TestIsFree:
    @pytest.mark.parametrize("position", [1, 2, 3])
    def test_positions_up_to_count_are_free(self, position):
        assert is_free(position, 3)

    @pytest.mark.parametrize("position", [4, 5, 100])
    def test_positions_past_count_are_not_free(self, position):
        assert not is_free(position, 3)

    def test_zero_count_frees_nothing(self):
        assert not is_free(1, 0)

    def test_monotone_in_position(self):
        flags = [is_free(p, 5) for p in range(1, 20)]
        # Once an episode is paid, every later one is too.
        first_paid = flags.index(False)
        assert all(flags[:first_paid])
        assert not any(flags[first_paid:])


class TestParseFreeCount:
    def test_dict_shape(self):
        assert parse_free_count({"count": 5}) == 5

    def test_bare_int(self):
        assert parse_free_count(7) == 7

    def test_digit_string(self):
        assert parse_free_count(" 4 ") == 4

    def test_zero_is_valid(self):
        assert parse_free_count({"count": 0}) == 0

    @pytest.mark.parametrize(
        "raw",
        [None, {}, {"count": None}, "abc", {"count": "many"}, True, False, 2.5, -1, {"count": -3}, []],
    )
    def test_unusable_values_fall_back_to_three(self, raw):
        assert parse_free_count(raw) == 3

    def test_custom_default(self):
        assert parse_free_count(None, default=10) == 10
