"""Enumerate mineral quantity combinations for a single alloy component.

The search is an iterative depth-first walk over the (yield-sorted) minerals
of one produced type. A work list of partial selections replaces recursion so
that many variants with large quantities cannot exhaust the call stack.

Every popped state whose accumulated volume lies inside the target interval
is emitted, including partial selections that skip the remaining minerals.
Emission order is stack pop order; callers rely on it as a greedy preference
for higher-yield minerals, not as a ranking.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from .minerals import StockEntry


@dataclass
class GenerationStats:
    """Counters collected while generating component combinations."""
    runs: int = 0  # States popped from the work list
    accepts: int = 0  # States whose volume was inside the interval
    declines: int = 0  # States whose volume was outside the interval

    def __iadd__(self, other: "GenerationStats") -> "GenerationStats":
        self.runs += other.runs
        self.accepts += other.accepts
        self.declines += other.declines
        return self


@dataclass
class ComponentSearchResult:
    combinations: List[List[StockEntry]] = field(default_factory=list)
    stats: GenerationStats = field(default_factory=GenerationStats)


# (selected so far, index of next mineral, accumulated mB)
_SearchState = Tuple[Tuple[StockEntry, ...], int, int]


def find_component_combinations(
    entries: Sequence[StockEntry],
    min_volume: float,
    max_volume: float,
) -> ComponentSearchResult:
    """
    Find every quantity selection whose total volume is in [min_volume, max_volume].

    Parameters
    ----------
    entries : sequence of StockEntry
        Minerals of a single produced type, normally sorted by descending yield.
        ``quantity`` is the number of units available.
    min_volume, max_volume : float
        Closed mB interval the selection must land in.

    Returns
    -------
    ComponentSearchResult
        Accepted selections (each a list of StockEntry with quantity > 0) and
        the generation counters.
    """
    result = ComponentSearchResult()
    stats = result.stats

    stack: List[_SearchState] = [((), 0, 0)]
    while stack:
        selected, index, volume = stack.pop()
        stats.runs += 1

        if min_volume <= volume <= max_volume:
            stats.accepts += 1
            result.combinations.append(list(selected))
        else:
            stats.declines += 1

        if index >= len(entries) or volume > max_volume:
            continue

        entry = entries[index]
        unit_yield = entry.mineral.yield_per_unit
        for qty in range(entry.quantity + 1):
            new_volume = volume + unit_yield * qty
            # Volume only grows with quantity
            if new_volume > max_volume:
                break
            child = selected + (entry.with_quantity(qty),) if qty > 0 else selected
            stack.append((child, index + 1, new_volume))

    return result
