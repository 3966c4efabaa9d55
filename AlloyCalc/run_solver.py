#!/usr/bin/env python
"""CLI entry point for the alloy allocation solver."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

import yaml

from .alloy_solver import solve
from .catalog import get_alloy, load_alloy_catalog, load_stock
from .config import load_config
from .results import SolveResult


def format_result(result: SolveResult, unit_size: int) -> str:
    """Format a solve result for display."""
    if not result.success:
        reason = result.reason.value
        if result.cause is not None:
            reason += f", cause: {result.cause.value}"
        return f"Failed: {result.message} ({reason})"

    lines = [f"Output: {result.output_volume} mB ({result.output_volume / unit_size:g} units)"]
    lines.append("\nMinerals used:")
    for entry in sorted(result.allocation, key=lambda e: (e.mineral.produced_type, -e.volume)):
        lines.append(
            f"  {entry.quantity}x {entry.mineral.name} "
            f"({entry.mineral.produced_type}, {entry.mineral.yield_per_unit} mB) = {entry.volume} mB"
        )

    by_type: dict[str, int] = {}
    for entry in result.allocation:
        by_type[entry.mineral.produced_type] = by_type.get(entry.mineral.produced_type, 0) + entry.volume
    lines.append("\nComposition:")
    for produced, volume in sorted(by_type.items(), key=lambda kv: -kv[1]):
        lines.append(f"  {produced}: {volume} mB ({volume / result.output_volume * 100:.2f}%)")
    return "\n".join(lines)


def format_stats(result: SolveResult) -> str:
    stats = result.stats
    return "\n".join([
        "\n--- Search Statistics ---",
        f"Generation runs/accepts/declines: "
        f"{stats.generation_runs}/{stats.generation_accepts}/{stats.generation_declines}",
        f"Batch attempts/accepts/declines: "
        f"{stats.batch_count}/{stats.batch_accepts}/{stats.batch_declines}",
        f"Scale efficiency: {stats.scale_efficiency}",
        f"Backtrack potential: {stats.backtrack_potential}",
        f"Time: {stats.elapsed_time_ms:.1f}ms, memory delta: {stats.memory_delta_mb:+.2f}MB",
    ])


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Work out which minerals to smelt for a target amount of alloy."
    )
    parser.add_argument(
        "-a",
        "--alloy",
        required=True,
        help="Alloy id or name from the catalog (e.g. bronze, 'Rose Gold')",
    )
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "-n",
        "--units",
        type=int,
        help="Target amount in units (ingots) of the configured unit size",
    )
    target.add_argument(
        "-t",
        "--target-mb",
        type=int,
        help="Target amount in mB",
    )
    parser.add_argument(
        "-s",
        "--stock",
        type=Path,
        required=True,
        help="Stock file: CSV or YAML with name, produces, yield, quantity",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to engine config YAML (default: AlloyCalc/DefaultEngineConfig.yaml)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["SILENT", "MINIMAL", "SUMMARY", "DETAILED", "DEBUG", "TRACE"],
        help="Solver log verbosity (default: from config)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON instead of text",
    )

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        alloy = get_alloy(args.alloy, load_alloy_catalog(config.alloys_file))
        stock = load_stock(args.stock)
    except (OSError, KeyError, ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    target_mb = args.target_mb if args.target_mb is not None else args.units * config.unit_size
    result = solve(target_mb, alloy, stock, config=config,
                   log_level=args.log_level or config.log_level)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(format_result(result, config.unit_size))
        print(format_stats(result))

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
