"""Tests for natural account-number sorting."""

from ledgerly.utils.sorting import account_number_key


def test_numeric_runs_sort_as_numbers():
    """Test that digit runs compare numerically."""
    numbers = ["1100", "1010", "1002", "999"]
    assert sorted(numbers, key=account_number_key) == ["999", "1002", "1010", "1100"]


def test_segmented_numbers():
    """Test that segmented numbers compare per segment."""
    numbers = ["2-10", "2-9", "10-1", "2-1"]
    assert sorted(numbers, key=account_number_key) == ["2-1", "2-9", "2-10", "10-1"]


def test_mixed_alphanumeric():
    """Test that letters compare case-insensitively after numbers."""
    numbers = ["A2", "a10", "100", "B1"]
    assert sorted(numbers, key=account_number_key) == ["100", "A2", "a10", "B1"]
