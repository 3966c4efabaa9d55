"""End-to-end scenarios for the batched alloy solver.

Each successful result is checked against the properties every allocation
must hold: exact output volume, volume identity, every component band and
stock limits.
"""
from __future__ import annotations

from typing import Dict, Sequence

import pytest

from AlloyCalc import solve
from AlloyCalc.config import EngineConfig
from AlloyCalc.minerals import AlloySpec, StockEntry
from AlloyCalc.results import FailureReason, SolveResult
from AlloyCalc.solver_logging import LogLevel, create_string_logger


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def assert_valid_solution(result: SolveResult, target: int, alloy: AlloySpec,
                          stock: Sequence[StockEntry]) -> None:
    assert result.success, result.message
    assert result.output_volume == target
    assert sum(e.quantity * e.mineral.yield_per_unit for e in result.allocation) == target

    by_type: Dict[str, int] = {}
    for e in result.allocation:
        by_type[e.mineral.produced_type] = by_type.get(e.mineral.produced_type, 0) + e.volume
    for component in alloy.components:
        share = by_type.get(component.produced_type, 0) / target * 100
        assert component.min_percent <= round(share, 9) <= component.max_percent

    available = {e.mineral.name: e.quantity for e in stock}
    names = [e.mineral.name for e in result.allocation]
    assert len(names) == len(set(names))
    for e in result.allocation:
        assert 0 < e.quantity <= available[e.mineral.name]


def scale_stock(stock: Sequence[StockEntry], factor: int):
    return [e.with_quantity(e.quantity * factor) for e in stock]


# ---------------------------------------------------------------------------
# Successful solves
# ---------------------------------------------------------------------------

class TestPassCases:
    """Stock that can make the requested bronze."""

    def test_exact_minerals(self, bronze, exact_stock):
        result = solve(432, bronze, exact_stock)

        assert_valid_solution(result, 432, bronze, exact_stock)
        assert result.reason is None
        assert result.stats.batch_accepts == 1

    def test_more_than_enough_minerals(self, bronze, minerals):
        stock = (minerals("tin", "tin", [16, 48, 72], [50, 3, 7])
                 + minerals("copper", "copper", [24, 36, 48, 72], [7, 6, 6, 8]))
        result = solve(432, bronze, stock)
        assert_valid_solution(result, 432, bronze, stock)

    def test_unused_minerals_stay_out_of_allocation(self, bronze, exact_stock, minerals):
        stock = (exact_stock
                 + minerals("other iron", "iron", [24], [3])
                 + minerals("other silver", "silver", [36], [2]))
        result = solve(432, bronze, stock)

        assert_valid_solution(result, 432, bronze, stock)
        assert {e.mineral.produced_type for e in result.allocation} == {"tin", "copper"}

    def test_found_batch_is_scaled_not_repeated(self, bronze, repeatable_stock):
        """One 144 mB batch repeated three times comes back as one allocation."""
        config = EngineConfig(unit_size=144, max_batch_units=2)
        result = solve(432, bronze, repeatable_stock, config=config)

        assert_valid_solution(result, 432, bronze, repeatable_stock)
        assert {(e.mineral.name, e.quantity) for e in result.allocation} == {
            ("tin variant 1", 3),
            ("copper variant 1", 12),
        }
        assert result.stats.batch_count == 1
        assert result.stats.batch_accepts == 1
        assert result.stats.scale_efficiency == 2

    def test_first_attempt_is_below_the_maximum_size(self, bronze, repeatable_stock):
        """With the default 8-unit maximum, a large target starts at 720 mB, not 1152 mB."""
        logger, _ = create_string_logger(LogLevel.DEBUG)
        stock = scale_stock(repeatable_stock, 10)
        result = solve(1440, bronze, stock, logger=logger)

        assert_valid_solution(result, 1440, bronze, stock)
        attempts = [e.message for e in logger.entries
                    if e.category == "BATCH" and e.message.startswith("Attempt")]
        assert attempts == ["Attempt 1: 720 mB (1440 mB remaining)"]
        assert result.stats.scale_efficiency == 1

    def test_target_split_over_several_batches(self, bronze, repeatable_stock):
        """864 mB is found as a 720 mB batch followed by a 144 mB batch."""
        stock = scale_stock(repeatable_stock, 2)
        result = solve(864, bronze, stock)

        assert_valid_solution(result, 864, bronze, stock)
        assert result.stats.batch_accepts == 2
        assert {(e.mineral.name, e.quantity) for e in result.allocation} == {
            ("tin variant 1", 6),
            ("copper variant 1", 24),
        }


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------

class TestFailCases:
    """Every failure comes back as a result, never an exception."""

    def test_no_minerals(self, bronze):
        result = solve(432, bronze, [])

        assert not result.success
        assert result.reason == FailureReason.INSUFFICIENT_TOTAL_MATERIAL
        assert "Not enough total material available" in result.message
        assert result.allocation == []
        assert result.output_volume == 0

    def test_not_enough_total_minerals(self, bronze, minerals):
        stock = minerals("tin", "tin", [16], [2]) + minerals("copper", "copper", [24, 36], [7, 6])
        result = solve(432, bronze, stock)
        assert result.reason == FailureReason.INSUFFICIENT_TOTAL_MATERIAL

    def test_not_enough_component_minerals(self, bronze, minerals):
        stock = minerals("tin", "tin", [16], [32]) + minerals("copper", "copper", [24, 36], [2, 2])
        result = solve(432, bronze, stock)

        assert not result.success
        assert result.reason == FailureReason.INSUFFICIENT_COMPONENT_MATERIAL
        assert "Not enough copper for minimum requirement" in result.message

    def test_batch_sizes_exhausted(self, bronze, minerals):
        """Enough material overall, but no batch size lands on an exact total."""
        stock = minerals("tin", "tin", [16], [3]) + minerals("copper", "copper", [36], [11])
        result = solve(432, bronze, stock)

        assert not result.success
        assert result.reason == FailureReason.NO_VALID_COMBINATION_FOUND
        assert result.message == "Could not find valid combination of materials"
        assert result.allocation == []
        assert result.stats.batch_count == 3
        assert result.stats.batch_declines == 3
        assert result.stats.backtrack_potential == 1
        assert result.cause == FailureReason.BATCH_SIZE_EXHAUSTED
        assert result.to_dict()["cause"] == "BatchSizeExhausted"

    def test_single_unit_maximum_never_searches(self, bronze, repeatable_stock):
        """The only planned size equals the maximum, so no batch is attempted."""
        logger, buffer = create_string_logger(LogLevel.MINIMAL)
        config = EngineConfig(unit_size=144, max_batch_units=1)
        result = solve(432, bronze, repeatable_stock, config=config, logger=logger)

        assert not result.success
        assert result.reason == FailureReason.NO_VALID_COMBINATION_FOUND
        assert result.cause == FailureReason.BATCH_SIZE_EXHAUSTED
        assert result.stats.batch_count == 0
        assert result.stats.generation_runs == 0
        assert ("Failed: Could not find valid combination of materials "
                "(cause: BatchSizeExhausted)") in buffer.getvalue()

    @pytest.mark.parametrize("target", [0, -144])
    def test_invalid_target(self, bronze, exact_stock, target):
        result = solve(target, bronze, exact_stock)
        assert not result.success
        assert result.reason == FailureReason.INVALID_TARGET


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

class TestSolverProperties:
    """Determinism, monotonicity and input handling."""

    def test_identical_inputs_give_identical_output(self, bronze, exact_stock):
        first = solve(432, bronze, exact_stock)
        second = solve(432, bronze, exact_stock)

        assert first.success == second.success
        assert first.output_volume == second.output_volume
        assert first.allocation == second.allocation

    @pytest.mark.parametrize("factor", [1, 2])
    def test_scaling_stock_and_target_keeps_success(self, bronze, repeatable_stock, factor):
        stock = scale_stock(repeatable_stock, factor)
        result = solve(432 * factor, bronze, stock)
        assert_valid_solution(result, 432 * factor, bronze, stock)

    def test_caller_stock_is_not_modified(self, bronze, exact_stock):
        before = list(exact_stock)
        solve(432, bronze, exact_stock)
        assert exact_stock == before

    def test_stats_are_populated(self, bronze, exact_stock):
        stats = solve(432, bronze, exact_stock).stats

        assert stats.generation_runs == stats.generation_accepts + stats.generation_declines
        assert stats.batch_count == stats.batch_accepts + stats.batch_declines
        assert stats.elapsed_time_ms >= 0

    def test_to_dict_shape(self, bronze, exact_stock):
        data = solve(432, bronze, exact_stock).to_dict()

        assert data["success"] is True
        assert data["outputVolume"] == 432
        assert "message" not in data
        assert set(data["stats"]) == {
            "generationRuns", "generationAccepts", "generationDeclines",
            "batchCount", "batchAccepts", "batchDeclines",
            "scaleEfficiency", "backtrackPotential",
            "elapsedTimeMs", "memoryDeltaMB",
        }
        first = data["allocation"][0]
        assert set(first) == {"mineral", "quantity"}
        assert set(first["mineral"]) == {"name", "producedType", "yieldPerUnit"}

    def test_failure_to_dict_carries_reason(self, bronze):
        data = solve(432, bronze, []).to_dict()
        assert data["success"] is False
        assert data["reason"] == "InsufficientTotalMaterial"
        assert data["message"] == "Not enough total material available"
        assert "cause" not in data
