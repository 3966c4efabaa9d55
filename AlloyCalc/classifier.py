"""Group stock by produced metal and total up what each group can yield."""
from __future__ import annotations

from typing import Dict, Iterable, List

from .minerals import StockEntry


def group_minerals_by_type(stock: Iterable[StockEntry]) -> Dict[str, List[StockEntry]]:
    """
    Group stock entries by the metal they produce.

    Each group is ordered from the highest yielding mineral down; minerals
    with equal yield keep the order in which they appear in ``stock``.

    Parameters
    ----------
    stock : iterable of StockEntry
        Available minerals.

    Returns
    -------
    Dict[str, List[StockEntry]]
        Lower-cased produced type -> entries sorted by descending yield
    """
    groups: Dict[str, List[StockEntry]] = {}
    for entry in stock:
        groups.setdefault(entry.mineral.produced_type, []).append(entry)

    # sorted() is stable, so equal yields stay in insertion order
    return {
        produced: sorted(entries, key=lambda e: -e.mineral.yield_per_unit)
        for produced, entries in groups.items()
    }


def available_volume_by_type(groups: Dict[str, List[StockEntry]]) -> Dict[str, int]:
    """Total mB available per produced type."""
    return {
        produced: sum(entry.volume for entry in entries)
        for produced, entries in groups.items()
    }


def total_available_volume(stock: Iterable[StockEntry]) -> int:
    return sum(entry.volume for entry in stock)
