"""
Sorting and ranking utilities
=============================

Small explicit algorithms used by the aggregation stages and the result
table:

- Merge Sort (stable, O(n log n)), used for ordinal ranking
- Quick Sort (in-place partitioning on a copy, average O(n log n))
- Ordinal percentile ranks: position in a stable ascending order / n
"""

from __future__ import annotations
from typing import Callable, List, Sequence, TypeVar

T = TypeVar("T")

def merge_sort(arr: List[T], key: Callable[[T], object] = lambda x: x, reverse: bool = False) -> List[T]:
    """Stable merge sort."""
    if len(arr) <= 1:
        return arr[:]
    mid = len(arr) // 2
    left = merge_sort(arr[:mid], key=key, reverse=reverse)
    right = merge_sort(arr[mid:], key=key, reverse=reverse)
    return _merge(left, right, key=key, reverse=reverse)

def _merge(left: List[T], right: List[T], key: Callable[[T], object], reverse: bool) -> List[T]:
    out: List[T] = []
    # i and j are pointers into each sorted list
    i = j = 0
    while i < len(left) and j < len(right):
        a, b = key(left[i]), key(right[j])
        take_left = (a >= b) if reverse else (a <= b)
        if take_left:
            out.append(left[i]); i += 1
        else:
            out.append(right[j]); j += 1
    out.extend(left[i:])
    out.extend(right[j:])
    return out

def quick_sort(arr: List[T], key: Callable[[T], object] = lambda x: x, reverse: bool = False) -> List[T]:
    """Quick sort (in-place on a copy). Not stable."""
    a = arr[:]
    _quick_sort_inplace(a, 0, len(a) - 1, key, reverse)
    return a

def _quick_sort_inplace(a: List[T], lo: int, hi: int, key: Callable[[T], object], reverse: bool) -> None:
    if lo >= hi:
        return
    p = _partition(a, lo, hi, key, reverse)
    _quick_sort_inplace(a, lo, p - 1, key, reverse)
    _quick_sort_inplace(a, p + 1, hi, key, reverse)

def _partition(a: List[T], lo: int, hi: int, key: Callable[[T], object], reverse: bool) -> int:
    pivot = key(a[hi])
    i = lo
    for j in range(lo, hi):
        v = key(a[j])
        cond = (v >= pivot) if reverse else (v <= pivot)
        if cond:
            a[i], a[j] = a[j], a[i]
            i += 1
    a[i], a[hi] = a[hi], a[i]
    return i

def ordinal_ranks(values: Sequence[float], tiebreak: Sequence[str]) -> List[float]:
    """Ordinal percentile rank of each value, in (0, 1].

    Items are ordered ascending by (value, tiebreak); the item at 1-based
    position p gets rank p / n. Equal values get distinct ranks (no
    averaging), decided by `tiebreak`.
    """
    n = len(values)
    if len(tiebreak) != n:
        raise ValueError("values and tiebreak must have the same length")
    order = merge_sort(list(range(n)), key=lambda i: (values[i], tiebreak[i]))
    ranks = [0.0] * n
    for pos, i in enumerate(order, start=1):
        ranks[i] = pos / n
    return ranks
