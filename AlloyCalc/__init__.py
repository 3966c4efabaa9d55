"""AlloyCalc package: find the minerals that make up a target volume of an alloy."""
from .config import load_config, save_config, EngineConfig
from .minerals import AlloySpec, ComponentRequirement, Mineral, Stock, StockEntry, make_stock
from .catalog import get_alloy, load_alloy_catalog, load_stock
from .classifier import available_volume_by_type, group_minerals_by_type
from .component_search import GenerationStats, find_component_combinations
from .batch import (
    BatchSizePlanner,
    calculate_single_batch,
    calculate_viable_batch_scale,
    scale_batch,
)
from .ledger import consolidate_allocation, update_stock
from .results import BatchResult, FailureReason, SolveResult, SolveStats
from .alloy_solver import solve
from .solver_logging import LogLevel, SolverLogger, create_logger, create_string_logger

__all__ = [
    "load_config",
    "save_config",
    "EngineConfig",
    "AlloySpec",
    "ComponentRequirement",
    "Mineral",
    "Stock",
    "StockEntry",
    "make_stock",
    "get_alloy",
    "load_alloy_catalog",
    "load_stock",
    "available_volume_by_type",
    "group_minerals_by_type",
    "GenerationStats",
    "find_component_combinations",
    "BatchSizePlanner",
    "calculate_single_batch",
    "calculate_viable_batch_scale",
    "scale_batch",
    "consolidate_allocation",
    "update_stock",
    "BatchResult",
    "FailureReason",
    "SolveResult",
    "SolveStats",
    "solve",
    "LogLevel",
    "SolverLogger",
    "create_logger",
    "create_string_logger",
]
