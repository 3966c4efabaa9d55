"""Stock bookkeeping between batches."""
from __future__ import annotations

from typing import Dict, Iterable, List

from .minerals import Stock, StockEntry


def update_stock(current: Iterable[StockEntry], consumed: Iterable[StockEntry]) -> Stock:
    """
    Subtract ``consumed`` from ``current`` and return the new stock snapshot.

    Entries that drop to zero (or below) are removed. Neither argument is
    modified; consumed minerals missing from ``current`` are ignored.
    """
    used: Dict[str, int] = {}
    for entry in consumed:
        used[entry.mineral.name] = used.get(entry.mineral.name, 0) + entry.quantity

    remaining: List[StockEntry] = []
    for entry in current:
        left = entry.quantity - used.get(entry.mineral.name, 0)
        if left > 0:
            remaining.append(entry.with_quantity(left))
    return tuple(remaining)


def consolidate_allocation(entries: Iterable[StockEntry]) -> List[StockEntry]:
    """Merge entries for the same mineral, keeping first-seen order and dropping empty ones."""
    merged: Dict[str, StockEntry] = {}
    for entry in entries:
        name = entry.mineral.name
        if name in merged:
            merged[name] = merged[name].with_quantity(merged[name].quantity + entry.quantity)
        else:
            merged[name] = entry
    return [entry for entry in merged.values() if entry.quantity > 0]
