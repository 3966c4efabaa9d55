"""
Large bronze solves over generated mineral variants.

Each case builds ``count`` tin and ``count`` copper variants with yields
16, 32, 48, ... mB and checks that the solve still lands exactly on the
target inside generous time and memory bounds. Run only these with
``pytest -m stress``, or skip them with ``-m "not stress"``.
"""
from __future__ import annotations

from typing import List

import pytest

from AlloyCalc import solve
from AlloyCalc.minerals import Mineral, StockEntry

UNIT_SIZE = 144

pytestmark = pytest.mark.stress


def generate_variants(count: int, produces: str, quantity: int) -> List[StockEntry]:
    """``count`` variants of one mineral type; variant i yields 16 * i mB."""
    return [
        StockEntry(
            mineral=Mineral(name=f"{produces} variant {i + 1}", produces=produces,
                            yield_per_unit=16 * (i + 1)),
            quantity=quantity,
        )
        for i in range(count)
    ]


@pytest.mark.parametrize("ingots,variants,quantity,max_time_ms,max_memory_mb", [
    (100, 9, 50, 60_000, 512),
    (500, 9, 500, 60_000, 512),
    (1000, 20, 1000, 300_000, 2048),
])
def test_large_bronze_solve(bronze, ingots, variants, quantity, max_time_ms, max_memory_mb):
    stock = generate_variants(variants, "tin", quantity) + generate_variants(variants, "copper", quantity)
    target = ingots * UNIT_SIZE

    result = solve(target, bronze, stock)

    assert result.success, result.message
    assert result.output_volume == target
    assert sum(e.volume for e in result.allocation) == target
    assert result.stats.elapsed_time_ms < max_time_ms
    assert result.stats.memory_delta_mb < max_memory_mb
