"""Shared mineral and alloy fixtures."""
from __future__ import annotations

from typing import List, Sequence

import pytest

from AlloyCalc.minerals import AlloySpec, ComponentRequirement, Mineral, StockEntry


def make_minerals(name: str, produces: str, yields: Sequence[int],
                  quantities: Sequence[int]) -> List[StockEntry]:
    """Build numbered mineral variants, e.g. 'copper variant 1', 'copper variant 2'."""
    return [
        StockEntry(
            mineral=Mineral(name=f"{name} variant {i + 1}", produces=produces, yield_per_unit=y),
            quantity=quantities[i] if i < len(quantities) else 50,
        )
        for i, y in enumerate(yields)
    ]


@pytest.fixture
def bronze() -> AlloySpec:
    return AlloySpec(
        name="Bronze",
        components=(
            ComponentRequirement("tin", 8, 12),
            ComponentRequirement("copper", 88, 92),
        ),
    )


@pytest.fixture
def exact_stock() -> List[StockEntry]:
    """Exactly enough for 3 ingots (432 mB) of bronze."""
    return make_minerals("tin", "tin", [16], [3]) + make_minerals("copper", "copper", [24, 36], [7, 6])


@pytest.fixture
def repeatable_stock() -> List[StockEntry]:
    """Three 144 mB bronze batches of 1 tin + 4 copper."""
    return make_minerals("tin", "tin", [16], [3]) + make_minerals("copper", "copper", [32], [12])


@pytest.fixture
def minerals():
    """The make_minerals helper, for tests that build their own stock."""
    return make_minerals
