"""
Tests for utils.natural_order - numeric-aware ordering of migration names.
"""

import pytest

from seedkeeper.utils.natural_order import natural_compare, natural_key, natural_sorted


class TestNaturalSorted:
    def test_digits_compare_by_value(self):
        assert natural_sorted(["1", "10", "2"]) == ["1", "2", "10"]

    def test_migration_file_names(self):
        names = ["10.sql", "2.sql", "1.sql", "21.sql", "3.sql"]
        assert natural_sorted(names) == ["1.sql", "2.sql", "3.sql", "10.sql", "21.sql"]

    def test_text_runs_compare_lexicographically(self):
        assert natural_sorted(["b1", "a10", "a2"]) == ["a2", "a10", "b1"]

    def test_mixed_names_do_not_raise(self):
        """Names starting with letters and digits sort without TypeError."""
        result = natural_sorted(["README.txt", "2.sql", "10.sql", "notes"])
        assert result == ["2.sql", "10.sql", "README.txt", "notes"]

    def test_empty_input(self):
        assert natural_sorted([]) == []

    def test_accepts_any_iterable(self):
        assert natural_sorted(iter({"3", "1"})) == ["1", "3"]


class TestNaturalCompare:
    @pytest.mark.parametrize(
        "left,right,expected",
        [
            ("2.sql", "10.sql", -1),
            ("10.sql", "2.sql", 1),
            ("7.sql", "7.sql", 0),
            ("a", "b", -1),
        ],
    )
    def test_three_way_result(self, left, right, expected):
        assert natural_compare(left, right) == expected

    def test_leading_zeros_break_ties_by_length(self):
        """Equal numeric values still give a total order."""
        assert natural_compare("1.sql", "01.sql") == -1
        assert natural_compare("01.sql", "1.sql") == 1


def test_natural_key_alternates_text_and_numbers():
    assert natural_key("v12.sql") == ["v", (12, 2), ".sql"]
    assert natural_key("3") == ["", (3, 1), ""]
