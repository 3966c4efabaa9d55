"""Result containers returned by the batch assembler and the solver."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .component_search import GenerationStats
from .minerals import StockEntry


class FailureReason(str, Enum):
    """Why a batch attempt or a whole solve did not produce an allocation."""
    INVALID_TARGET = "InvalidTarget"
    INSUFFICIENT_TOTAL_MATERIAL = "InsufficientTotalMaterial"
    INSUFFICIENT_COMPONENT_MATERIAL = "InsufficientComponentMaterial"
    NO_COMBINATION_FOR_COMPONENT = "NoCombinationForComponent"
    NO_GLOBAL_COMBINATION = "NoGlobalCombination"
    BATCH_SIZE_EXHAUSTED = "BatchSizeExhausted"
    NO_VALID_COMBINATION_FOUND = "NoValidCombinationFound"


def _entries_to_dicts(entries: List[StockEntry]) -> List[Dict[str, Any]]:
    return [
        {
            "mineral": {
                "name": e.mineral.name,
                "producedType": e.mineral.produces,
                "yieldPerUnit": e.mineral.yield_per_unit,
            },
            "quantity": e.quantity,
        }
        for e in entries
    ]


@dataclass
class BatchResult:
    success: bool
    output_volume: int
    allocation: List[StockEntry] = field(default_factory=list)
    message: Optional[str] = None
    reason: Optional[FailureReason] = None
    component: Optional[str] = None  # Offending component for component-level failures
    stats: GenerationStats = field(default_factory=GenerationStats)


@dataclass
class SolveStats:
    """Aggregate statistics for one solve call."""
    generation_runs: int = 0
    generation_accepts: int = 0
    generation_declines: int = 0
    batch_count: int = 0  # Batch attempts, successful or not
    batch_accepts: int = 0
    batch_declines: int = 0
    scale_efficiency: int = 0  # Searches saved by scaling: sum of (scale - 1)
    backtrack_potential: int = 0  # Points where backtracking into earlier batches could have helped
    elapsed_time_ms: float = 0.0
    memory_delta_mb: float = 0.0

    def add_generation(self, generation: GenerationStats) -> None:
        self.generation_runs += generation.runs
        self.generation_accepts += generation.accepts
        self.generation_declines += generation.declines

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generationRuns": self.generation_runs,
            "generationAccepts": self.generation_accepts,
            "generationDeclines": self.generation_declines,
            "batchCount": self.batch_count,
            "batchAccepts": self.batch_accepts,
            "batchDeclines": self.batch_declines,
            "scaleEfficiency": self.scale_efficiency,
            "backtrackPotential": self.backtrack_potential,
            "elapsedTimeMs": self.elapsed_time_ms,
            "memoryDeltaMB": self.memory_delta_mb,
        }


@dataclass
class SolveResult:
    success: bool
    output_volume: int
    allocation: List[StockEntry] = field(default_factory=list)
    message: Optional[str] = None
    reason: Optional[FailureReason] = None
    cause: Optional[FailureReason] = None  # Underlying batch-level reason, e.g. BATCH_SIZE_EXHAUSTED
    stats: SolveStats = field(default_factory=SolveStats)

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data form consumed by presentation layers."""
        data: Dict[str, Any] = {
            "success": self.success,
            "outputVolume": self.output_volume,
            "allocation": _entries_to_dicts(self.allocation),
        }
        if self.message is not None:
            data["message"] = self.message
        if self.reason is not None:
            data["reason"] = self.reason.value
        if self.cause is not None:
            data["cause"] = self.cause.value
        data["stats"] = self.stats.to_dict()
        return data
