"""Batched search for the minerals that make up a target volume of an alloy."""
from __future__ import annotations

import os
import time
from typing import List, Optional, Sequence, Tuple, Union

import psutil

from .batch import (
    BatchSizePlanner,
    calculate_single_batch,
    calculate_viable_batch_scale,
    scale_batch,
)
from .classifier import available_volume_by_type, group_minerals_by_type
from .config import EngineConfig
from .ledger import consolidate_allocation, update_stock
from .minerals import AlloySpec, StockEntry, make_stock
from .results import BatchResult, FailureReason, SolveResult, SolveStats
from .solver_logging import LogLevel, SolverLogger, create_logger

MESSAGES = {
    FailureReason.INVALID_TARGET: "Target volume must be a positive number of mB",
    FailureReason.INSUFFICIENT_TOTAL_MATERIAL: "Not enough total material available",
    FailureReason.NO_VALID_COMBINATION_FOUND: "Could not find valid combination of materials",
}


def _rss_mb() -> float:
    return psutil.Process(os.getpid()).memory_info().rss / 1024 / 1024


def _find_batched_combination(
    target_volume: int,
    alloy: AlloySpec,
    stock: Sequence[StockEntry],
    planner: BatchSizePlanner,
    stats: SolveStats,
    logger: SolverLogger,
) -> Tuple[List[BatchResult], Optional[FailureReason]]:
    """
    Fill ``target_volume`` with successively smaller batches.

    The first attempt is the largest planned size below the configured
    maximum; every later one is strictly below the previous size, found or
    not. There is no backtracking into accepted batches: once the planner
    runs out of sizes the search gives up.

    Returns the accepted batches and, on failure, the batch-level cause.
    """
    batches: List[BatchResult] = []
    available = tuple(stock)
    remaining = target_volume
    previous_batch_volume = planner.max_batch_volume

    while remaining > 0:
        batch_volume = planner.next_batch_size(remaining, previous_batch_volume, logger=logger)
        if batch_volume is None:
            logger.log_planner_exhausted(remaining)
            stats.backtrack_potential += 1
            return batches, FailureReason.BATCH_SIZE_EXHAUSTED

        stats.batch_count += 1
        logger.log_batch_attempt(stats.batch_count, batch_volume, remaining)

        batch = calculate_single_batch(batch_volume, alloy, available, logger=logger)
        stats.add_generation(batch.stats)
        logger.log_batch_result(batch_volume, batch.success, batch.message)

        if batch.success:
            scale = calculate_viable_batch_scale(batch, available, remaining)
            scaled = scale_batch(batch, scale)
            if scale > 1:
                logger.log_batch_scaled(scale, scaled.output_volume)

            stats.batch_accepts += 1
            stats.scale_efficiency += scale - 1
            batches.append(scaled)
            remaining -= scaled.output_volume
            available = update_stock(available, scaled.allocation)
        else:
            stats.batch_declines += 1
            if batches:
                stats.backtrack_potential += 1

        previous_batch_volume = batch_volume

    return batches, None


def solve(
    target_volume: int,
    alloy: AlloySpec,
    stock: Sequence[StockEntry],
    config: Optional[EngineConfig] = None,
    logger: Optional[SolverLogger] = None,
    log_level: Union[LogLevel, str, int, None] = None,
) -> SolveResult:
    """
    Find which minerals, and how many of each, produce ``target_volume`` mB of ``alloy``.

    Steps:
        1. Reject the request if the whole stock cannot cover the target.
        2. Reject it if any component cannot reach its minimum share.
        3. Search batch by batch (largest planned size below the maximum
           first), scaling each found batch as far as stock allows and
           deducting it from stock.
        4. Merge all batches into one allocation.

    Failures are returned, never raised.

    Parameters
    ----------
    target_volume : int
        mB of alloy to produce (must be > 0)
    alloy : AlloySpec
        Alloy with its component percentage bands
    stock : sequence of StockEntry
        Minerals available; never modified
    config : EngineConfig, optional
        Unit size and maximum batch size. Defaults to EngineConfig().
    logger : SolverLogger, optional
        Pre-configured logger. If None, one is created based on log_level.
    log_level : LogLevel | str | int, optional
        Logging verbosity. Only used if logger is None.

    Returns
    -------
    SolveResult
        Consolidated allocation on success, otherwise a failure reason and message
    """
    start_time = time.perf_counter()
    start_rss = _rss_mb()
    config = config or EngineConfig()

    if logger is None:
        logger = create_logger(level=log_level if log_level is not None else LogLevel.SILENT)

    stats = SolveStats()

    def finish(result: SolveResult) -> SolveResult:
        stats.elapsed_time_ms = (time.perf_counter() - start_time) * 1000
        stats.memory_delta_mb = _rss_mb() - start_rss
        result.stats = stats
        if result.success:
            logger.log_allocation(result.output_volume, result.allocation)
        else:
            logger.log_failure(result.message or "", result.cause)
        logger.log_stats(stats)
        return result

    def fail(reason: FailureReason, message: Optional[str] = None,
             cause: Optional[FailureReason] = None) -> SolveResult:
        return finish(SolveResult(
            success=False,
            output_volume=0,
            message=message or MESSAGES[reason],
            reason=reason,
            cause=cause,
        ))

    if target_volume <= 0:
        return fail(FailureReason.INVALID_TARGET)

    stock = make_stock(stock)
    logger.log_solve_start(target_volume, alloy, config.unit_size, config.max_batch_units)
    logger.log_stock(stock)

    available_by_type = available_volume_by_type(group_minerals_by_type(stock))
    if sum(available_by_type.values()) < target_volume:
        return fail(FailureReason.INSUFFICIENT_TOTAL_MATERIAL)

    logger.log_feasibility(
        available_by_type,
        {c.produced_type: c.min_volume(target_volume) for c in alloy.components},
    )
    for component in alloy.components:
        produced = component.produced_type
        if available_by_type.get(produced, 0) < component.min_volume(target_volume):
            return fail(
                FailureReason.INSUFFICIENT_COMPONENT_MATERIAL,
                f"Not enough {produced} for minimum requirement",
            )

    planner = BatchSizePlanner(config.unit_size, config.max_batch_units)
    batches, cause = _find_batched_combination(target_volume, alloy, stock, planner, stats, logger)
    if cause is not None:
        return fail(FailureReason.NO_VALID_COMBINATION_FOUND, cause=cause)

    allocation = consolidate_allocation(e for batch in batches for e in batch.allocation)
    return finish(SolveResult(
        success=True,
        output_volume=target_volume,
        allocation=allocation,
    ))
