"""Mineral, stock and alloy definitions shared by the allocation engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple


@dataclass(frozen=True)
class Mineral:
    """A raw material that melts down into a single produced metal."""

    name: str  # Unique key, e.g. "Small Cassiterite"
    produces: str  # Produced metal, matched case-insensitively
    yield_per_unit: int  # mB produced per unit consumed

    def __post_init__(self):
        if not self.name:
            raise ValueError("Mineral name must not be empty")
        if int(self.yield_per_unit) != self.yield_per_unit or self.yield_per_unit <= 0:
            raise ValueError(f"{self.name}: yield_per_unit must be a positive integer")

    @property
    def produced_type(self) -> str:
        return self.produces.lower()


@dataclass(frozen=True)
class StockEntry:
    """A mineral paired with a unit count (available stock or consumed amount)."""

    mineral: Mineral
    quantity: int

    def __post_init__(self):
        if int(self.quantity) != self.quantity or self.quantity < 0:
            raise ValueError(f"{self.mineral.name}: quantity must be a non-negative integer")

    @property
    def volume(self) -> int:
        return self.mineral.yield_per_unit * self.quantity

    def with_quantity(self, quantity: int) -> "StockEntry":
        return StockEntry(mineral=self.mineral, quantity=quantity)


# Stock snapshots are immutable; the ledger hands out a new tuple per batch.
Stock = Tuple[StockEntry, ...]


def make_stock(entries: Iterable[StockEntry]) -> Stock:
    """Freeze stock entries into a snapshot, rejecting duplicate mineral names."""
    seen: set[str] = set()
    result: List[StockEntry] = []
    for entry in entries:
        if entry.mineral.name in seen:
            raise ValueError(f"Duplicate mineral in stock: {entry.mineral.name}")
        seen.add(entry.mineral.name)
        result.append(entry)
    return tuple(result)


def allocation_volume(allocation: Iterable[StockEntry]) -> int:
    """Total mB produced by an allocation."""
    return sum(entry.volume for entry in allocation)


def volume_by_type(allocation: Iterable[StockEntry]) -> Dict[str, int]:
    """mB contributed per produced type (lower-cased)."""
    totals: Dict[str, int] = {}
    for entry in allocation:
        key = entry.mineral.produced_type
        totals[key] = totals.get(key, 0) + entry.volume
    return totals


@dataclass(frozen=True)
class ComponentRequirement:
    """Allowed share of a batch, in percent, for one produced metal."""

    mineral: str
    min_percent: float
    max_percent: float

    def __post_init__(self):
        if not (0 <= self.min_percent <= self.max_percent <= 100):
            raise ValueError(
                f"{self.mineral}: expected 0 <= min ({self.min_percent}) "
                f"<= max ({self.max_percent}) <= 100"
            )

    @property
    def produced_type(self) -> str:
        return self.mineral.lower()

    def min_volume(self, target_volume: float) -> float:
        return (self.min_percent / 100) * target_volume

    def max_volume(self, target_volume: float) -> float:
        return (self.max_percent / 100) * target_volume


@dataclass(frozen=True)
class AlloySpec:
    """Named alloy with its component bands."""

    name: str
    components: Tuple[ComponentRequirement, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Stored as a tuple so the alloy stays hashable
        object.__setattr__(self, "components", tuple(self.components))
        types = [c.produced_type for c in self.components]
        if len(types) != len(set(types)):
            raise ValueError(f"{self.name}: duplicate component types {types}")

    def ordered_components(self) -> List[ComponentRequirement]:
        """Components sorted by their lower bound, tightest first (stable)."""
        return sorted(self.components, key=lambda c: c.min_percent)
