"""
Structured logging for the alloy allocation engine.

Provides insight into solver behavior at multiple verbosity levels:
    - MINIMAL: Only final results and failures
    - SUMMARY: Feasibility checks, batch outcomes and statistics
    - DETAILED: Stock tables, allocation tables, batch scaling
    - DEBUG: Every batch attempt and component search
    - TRACE: Everything including rejected planner sizes

Usage:
    from AlloyCalc.solver_logging import SolverLogger, LogLevel

    logger = SolverLogger(level=LogLevel.DETAILED)
    result = solve(432, alloy, stock, logger=logger)
"""
from __future__ import annotations

import sys
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from io import StringIO
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Sequence, TextIO, Tuple, Union

if TYPE_CHECKING:
    from .component_search import GenerationStats
    from .minerals import AlloySpec, StockEntry
    from .results import FailureReason, SolveStats


class LogLevel(IntEnum):
    """Verbosity levels for solver logging."""
    SILENT = 0      # No output at all
    MINIMAL = 10    # Only final results and failures
    SUMMARY = 20    # Feasibility, batch outcomes and statistics
    DETAILED = 30   # Stock and allocation tables
    DEBUG = 40      # Every batch attempt and component search
    TRACE = 50      # Planner sizes passed over


@dataclass
class LogEntry:
    """One recorded line: when, how verbose, which part of the solve, what."""
    timestamp: datetime
    level: LogLevel
    category: str
    message: str

    def format(self, include_timestamp: bool = True, include_level: bool = True) -> str:
        prefix = ""
        if include_timestamp:
            prefix += self.timestamp.strftime("[%H:%M:%S.%f")[:-3] + "] "
        if include_level:
            prefix += f"[{self.level.name:8}] "
        return f"{prefix}[{self.category}] {self.message}"


@dataclass
class SolverLogger:
    """
    Structured logger for the allocation engine.

    Every entry at or below ``level`` is kept in ``entries`` and written to
    ``output`` (stdout by default) and, when ``log_to_file`` is set, to that
    file as well.
    """
    level: LogLevel = LogLevel.SUMMARY
    output: Optional[TextIO] = None
    log_to_file: Optional[Path] = None
    include_timestamp: bool = True
    include_level: bool = True
    entries: List[LogEntry] = field(default_factory=list)
    _file_handle: Optional[TextIO] = field(default=None, repr=False)

    def __post_init__(self):
        if self.output is None:
            self.output = sys.stdout
        if self.log_to_file:
            self._file_handle = open(self.log_to_file, "w", encoding="utf-8")

    def close(self):
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def _streams(self) -> Iterator[TextIO]:
        for stream in (self.output, self._file_handle):
            if stream is not None:
                yield stream

    def _log(self, level: LogLevel, category: str, message: str) -> None:
        if level > self.level:
            return

        entry = LogEntry(datetime.now(), level, category, message)
        self.entries.append(entry)

        line = entry.format(self.include_timestamp, self.include_level) + "\n"
        for stream in self._streams():
            stream.write(line)
            stream.flush()

    def _log_table(self, level: LogLevel, category: str,
                   headers: List[str], rows: List[List[Any]],
                   title: Optional[str] = None) -> None:
        """Log ``rows`` as a left-aligned table, one entry per line."""
        if level > self.level:
            return

        cells = [[str(v) for v in row] for row in [headers] + rows]
        widths = [max(len(row[i]) for row in cells) for i in range(len(headers))]
        rendered = [" | ".join(v.ljust(w) for v, w in zip(row, widths)) for row in cells]

        if title:
            self._log(level, category, title)
            self._log(level, category, "=" * len(title))
        self._log(level, category, rendered[0])
        self._log(level, category, "-" * len(rendered[0]))
        for line in rendered[1:]:
            self._log(level, category, line)

    # -------------------------------------------------------------------------
    # Solve setup
    # -------------------------------------------------------------------------

    def log_solve_start(self, target_volume: int, alloy: "AlloySpec",
                        unit_size: int, max_batch_units: int) -> None:
        """Log the start of a solve."""
        self._log(LogLevel.MINIMAL, "SOLVER",
                  f"Solving {alloy.name}: {target_volume} mB "
                  f"({target_volume / unit_size:g} units of {unit_size} mB)")

        if self.level >= LogLevel.SUMMARY:
            bands = ", ".join(
                f"{c.mineral} {c.min_percent:g}-{c.max_percent:g}%"
                for c in alloy.components
            )
            self._log(LogLevel.SUMMARY, "CONFIG",
                      f"Components: {bands}; max batch: {max_batch_units} units")

    def log_stock(self, stock: Sequence["StockEntry"]) -> None:
        """Log the stock snapshot the solve starts from."""
        self._log(LogLevel.SUMMARY, "STOCK",
                  f"{len(stock)} minerals, "
                  f"{sum(e.volume for e in stock)} mB available")

        if self.level < LogLevel.DETAILED or not stock:
            return

        rows = [
            [e.mineral.name, e.mineral.produced_type, e.mineral.yield_per_unit,
             e.quantity, e.volume]
            for e in stock
        ]
        self._log_table(LogLevel.DETAILED, "STOCK",
                        ["Mineral", "Produces", "Yield", "Qty", "Total mB"],
                        rows, title="Available Stock")

    def log_feasibility(self, available_by_type: Dict[str, int],
                        required_by_type: Dict[str, float]) -> None:
        """Log per-component availability against the minimum required."""
        if self.level < LogLevel.SUMMARY:
            return

        for produced, required in required_by_type.items():
            available = available_by_type.get(produced, 0)
            status = "ok" if available >= required else "SHORT"
            self._log(LogLevel.SUMMARY, "FEASIBILITY",
                      f"{produced}: need >= {required:.1f} mB, "
                      f"have {available} mB [{status}]")

    # -------------------------------------------------------------------------
    # Batch loop
    # -------------------------------------------------------------------------

    def log_batch_attempt(self, attempt: int, batch_volume: int,
                          remaining_volume: float) -> None:
        self._log(LogLevel.DEBUG, "BATCH",
                  f"Attempt {attempt}: {batch_volume} mB "
                  f"({remaining_volume:g} mB remaining)")

    def log_component_search(self, produced: str, min_volume: float,
                             max_volume: float, found: int,
                             stats: "GenerationStats") -> None:
        """Log the outcome of one component combination search."""
        if self.level < LogLevel.DEBUG:
            return

        self._log(LogLevel.DEBUG, "SEARCH",
                  f"{produced} in [{min_volume:.2f}, {max_volume:.2f}] mB: "
                  f"{found} combinations "
                  f"(runs={stats.runs}, accepts={stats.accepts}, "
                  f"declines={stats.declines})")

    def log_batch_result(self, batch_volume: int, success: bool,
                         message: Optional[str]) -> None:
        if success:
            self._log(LogLevel.SUMMARY, "BATCH", f"Found batch of {batch_volume} mB")
        else:
            self._log(LogLevel.DEBUG, "BATCH",
                      f"Declined batch of {batch_volume} mB: {message}")

    def log_batch_scaled(self, scale: int, output_volume: int) -> None:
        self._log(LogLevel.DETAILED, "SCALE",
                  f"Scaled batch x{scale} -> {output_volume} mB")

    def log_planner_exhausted(self, remaining_volume: float) -> None:
        self._log(LogLevel.SUMMARY, "BATCH",
                  f"No smaller batch size left; {remaining_volume:g} mB unmet")

    def log_planner_skip(self, batch_volume: int, why: str) -> None:
        self._log(LogLevel.TRACE, "PLANNER", f"Skipped {batch_volume} mB: {why}")

    # -------------------------------------------------------------------------
    # Results
    # -------------------------------------------------------------------------

    def log_failure(self, message: str, cause: Optional["FailureReason"] = None) -> None:
        if cause is not None:
            message = f"{message} (cause: {cause.value})"
        self._log(LogLevel.MINIMAL, "SOLUTION", f"Failed: {message}")

    def log_allocation(self, output_volume: int,
                       allocation: Sequence["StockEntry"]) -> None:
        """Log the consolidated allocation of a successful solve."""
        self._log(LogLevel.MINIMAL, "SOLUTION",
                  f"Success: {output_volume} mB from {len(allocation)} minerals")

        if self.level < LogLevel.DETAILED or not allocation:
            return

        rows = [
            [e.mineral.name, e.mineral.produced_type, e.quantity, e.volume]
            for e in allocation
        ]
        self._log_table(LogLevel.DETAILED, "SOLUTION",
                        ["Mineral", "Produces", "Qty", "mB"],
                        rows, title="Allocation")

    def log_stats(self, stats: "SolveStats") -> None:
        self._log(LogLevel.SUMMARY, "STATS",
                  f"Generation: runs={stats.generation_runs}, "
                  f"accepts={stats.generation_accepts}, "
                  f"declines={stats.generation_declines}")
        self._log(LogLevel.SUMMARY, "STATS",
                  f"Batches: attempts={stats.batch_count}, "
                  f"accepts={stats.batch_accepts}, declines={stats.batch_declines}, "
                  f"scale_efficiency={stats.scale_efficiency}, "
                  f"backtrack_potential={stats.backtrack_potential}")
        self._log(LogLevel.MINIMAL, "SOLVER",
                  f"Solve completed in {stats.elapsed_time_ms:.1f}ms "
                  f"(memory delta {stats.memory_delta_mb:+.2f}MB)")


def create_logger(
    level: Union[LogLevel, str, int] = LogLevel.SUMMARY,
    output: Optional[TextIO] = None,
    log_file: Optional[Path] = None,
) -> SolverLogger:
    """
    Factory function to create a SolverLogger.

    Parameters
    ----------
    level : LogLevel | str | int
        Verbosity level. Can be LogLevel enum, string name, or integer.
    output : TextIO | None
        Output stream. Defaults to sys.stdout.
    log_file : Path | None
        Optional path to write logs to file.

    Returns
    -------
    SolverLogger
        Configured logger instance
    """
    if isinstance(level, str):
        level = LogLevel[level.upper()]
    elif isinstance(level, int) and not isinstance(level, LogLevel):
        level = LogLevel(level)

    return SolverLogger(
        level=level,
        output=output,
        log_to_file=log_file,
    )


def create_string_logger(level: LogLevel = LogLevel.DETAILED) -> Tuple[SolverLogger, StringIO]:
    """
    Create a logger that writes to a string buffer.

    Useful for testing or capturing logs programmatically.

    Returns
    -------
    tuple[SolverLogger, StringIO]
        The logger and the buffer it writes to
    """
    buffer = StringIO()
    logger = SolverLogger(level=level, output=buffer)
    return logger, buffer
