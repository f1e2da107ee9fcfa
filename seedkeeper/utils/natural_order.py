"""
Natural (numeric-aware) ordering for migration identifiers.

Plain string sorting puts "10.sql" before "2.sql". Natural ordering splits a
name into alternating runs of non-digits and digits, compares digit runs by
numeric value and everything else lexicographically, so "2" sorts before "10".

Examples:
    >>> natural_sorted(["1", "10", "2"])
    ['1', '2', '10']
    >>> natural_compare("2.sql", "10.sql")
    -1
"""

import re
from collections.abc import Iterable

_DIGIT_RUN = re.compile(r"(\d+)")


def natural_key(value: str) -> list:
    """
    Build a sort key for natural ordering.

    re.split with a capturing group always alternates text / digits starting
    with a (possibly empty) text run, so position i holds the same kind of
    element in every key and keys compare element-wise without type errors.

    Digit runs compare by value first; equal values ("01" vs "1") are broken
    by run length so the order stays total.

    Args:
        value: Identifier to build a key for (e.g., "12.sql")

    Returns:
        List usable as a sort key
    """
    key: list = []
    for index, part in enumerate(_DIGIT_RUN.split(value)):
        if index % 2:
            key.append((int(part), len(part)))
        else:
            key.append(part)
    return key


def natural_compare(left: str, right: str) -> int:
    """
    Three-way comparison of two identifiers in natural order.

    Returns:
        -1 if left sorts first, 1 if right sorts first, 0 if equal
    """
    left_key = natural_key(left)
    right_key = natural_key(right)
    return (left_key > right_key) - (left_key < right_key)


def natural_sorted(values: Iterable[str]) -> list[str]:
    """
    Return values sorted in natural order.

    Python's sort is stable, so values with equal keys keep their input order.
    """
    return sorted(values, key=natural_key)
