"""Single-batch assembly, batch size planning and batch scaling."""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from .classifier import group_minerals_by_type
from .component_search import GenerationStats, find_component_combinations
from .minerals import (
    AlloySpec,
    ComponentRequirement,
    StockEntry,
    allocation_volume,
    volume_by_type,
)
from .results import BatchResult, FailureReason
from .solver_logging import SolverLogger


def is_valid_combination(
    allocation: Sequence[StockEntry],
    target_volume: float,
    components: Iterable[ComponentRequirement],
) -> bool:
    """
    Check a whole-batch allocation against the target volume and every band.

    The total must equal the target after rounding. Percentages are compared
    as ``volume * 100`` against ``percent * total`` so no floating point drift
    can push a share that sits exactly on a bound outside of it.
    """
    total = allocation_volume(allocation)
    if round(total) != round(target_volume) or total <= 0:
        return False

    by_type = volume_by_type(allocation)
    for component in components:
        share = by_type.get(component.produced_type, 0) * 100
        if share < component.min_percent * total or share > component.max_percent * total:
            return False
    return True


def calculate_single_batch(
    target_volume: int,
    alloy: AlloySpec,
    stock: Sequence[StockEntry],
    logger: Optional[SolverLogger] = None,
) -> BatchResult:
    """
    Assemble one allocation producing exactly ``target_volume`` mB of ``alloy``.

    Components are resolved from the smallest minimum percentage upward. For
    every component but the last the first generated combination is taken
    as-is; only the last component tries its combinations in turn until the
    assembled allocation passes :func:`is_valid_combination`. This is a greedy
    heuristic and can miss solutions a full search would find.

    Parameters
    ----------
    target_volume : int
        Batch size in mB
    alloy : AlloySpec
        Alloy whose component bands must hold
    stock : sequence of StockEntry
        Minerals available for this batch
    logger : SolverLogger, optional
        Receives per-component search details

    Returns
    -------
    BatchResult
        Successful allocation, or failure with the offending component named
    """
    groups = group_minerals_by_type(stock)
    components = alloy.ordered_components()
    generation = GenerationStats()
    current: List[StockEntry] = []

    for position, component in enumerate(components):
        produced = component.produced_type
        min_volume = component.min_volume(target_volume)
        max_volume = component.max_volume(target_volume)

        search = find_component_combinations(groups.get(produced, []), min_volume, max_volume)
        generation += search.stats
        if logger is not None:
            logger.log_component_search(
                produced, min_volume, max_volume,
                len(search.combinations), search.stats,
            )

        if not search.combinations:
            return BatchResult(
                success=False,
                output_volume=0,
                message=f"No valid combinations found for component: {component.mineral}",
                reason=FailureReason.NO_COMBINATION_FOR_COMPONENT,
                component=produced,
                stats=generation,
            )

        is_last = position == len(components) - 1
        if not is_last:
            current = current + search.combinations[0]
            continue

        for combination in search.combinations:
            candidate = current + combination
            if is_valid_combination(candidate, target_volume, components):
                current = candidate
                break
        else:
            return BatchResult(
                success=False,
                output_volume=0,
                message=f"No valid combination found for component: {component.mineral}",
                reason=FailureReason.NO_GLOBAL_COMBINATION,
                component=produced,
                stats=generation,
            )

    return BatchResult(
        success=True,
        output_volume=allocation_volume(current),
        allocation=current,
        stats=generation,
    )


# ---------------------------------------------------------------------------
# Batch size planning
# ---------------------------------------------------------------------------

def generate_reverse_fibonacci(max_units: int) -> List[int]:
    """Distinct Fibonacci numbers (1, 2, 3, 5, 8, ...) up to ``max_units``, largest first."""
    if max_units <= 0:
        return []

    sequence: List[int] = []
    prev, current = 1, 1
    while current <= max_units:
        sequence.append(current)
        prev, current = current, prev + current
    return sequence[::-1]


class BatchSizePlanner:
    """
    Back-off schedule of batch sizes, in whole units of ``unit_size`` mB.

    Sizes follow the Fibonacci sequence downward from ``max_batch_units`` so a
    solve tries only O(log max) distinct batch sizes.
    """

    def __init__(self, unit_size: int, max_batch_units: int):
        if unit_size <= 0:
            raise ValueError("unit_size must be positive")
        self.unit_size = unit_size
        self.max_batch_units = max_batch_units
        self.units_sequence = generate_reverse_fibonacci(max_batch_units)

    @property
    def max_batch_volume(self) -> int:
        return self.max_batch_units * self.unit_size

    def candidate_volumes(self) -> List[int]:
        return [units * self.unit_size for units in self.units_sequence]

    def next_batch_size(self, remaining_volume: float, previous_batch_volume: float,
                        logger: Optional[SolverLogger] = None) -> Optional[int]:
        """
        Largest planned size that fits in ``remaining_volume`` and is strictly
        below ``previous_batch_volume``; None when the schedule is exhausted.

        Sizes passed over are reported to ``logger`` at TRACE level.
        """
        for volume in self.candidate_volumes():
            if volume > remaining_volume:
                if logger is not None:
                    logger.log_planner_skip(volume, f"exceeds {remaining_volume:g} mB remaining")
                continue
            if volume < previous_batch_volume:
                return volume
            if logger is not None:
                logger.log_planner_skip(volume, f"not below previous size {previous_batch_volume:g} mB")
        return None


# ---------------------------------------------------------------------------
# Batch scaling
# ---------------------------------------------------------------------------

def calculate_viable_batch_scale(
    batch: BatchResult,
    stock: Sequence[StockEntry],
    remaining_volume: Optional[float] = None,
) -> int:
    """
    How many times ``batch`` can be repeated from ``stock``.

    The factor is the minimum of ``available // used`` over the allocation.
    With ``remaining_volume`` it is also capped so the scaled batch never
    produces more than is still needed. Never less than 1.
    """
    available: Dict[str, int] = {e.mineral.name: e.quantity for e in stock}

    scale: Optional[int] = None
    for used in batch.allocation:
        if used.quantity <= 0:
            continue
        possible = available.get(used.mineral.name, 0) // used.quantity
        scale = possible if scale is None else min(scale, possible)

    if remaining_volume is not None and batch.output_volume > 0:
        by_volume = int(remaining_volume // batch.output_volume)
        scale = by_volume if scale is None else min(scale, by_volume)

    if scale is None:
        # Empty allocation with nothing else to bound it
        return 1
    return max(1, scale)


def scale_batch(batch: BatchResult, scale: int) -> BatchResult:
    """Return a copy of ``batch`` with every quantity and the output multiplied by ``scale``."""
    return BatchResult(
        success=batch.success,
        output_volume=batch.output_volume * scale,
        allocation=[entry.with_quantity(entry.quantity * scale) for entry in batch.allocation],
        message=batch.message,
        reason=batch.reason,
        component=batch.component,
        stats=batch.stats,
    )
