"""Load the alloy catalog (YAML) and mineral stock files (CSV or YAML)."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
import yaml

from .minerals import AlloySpec, ComponentRequirement, Mineral, Stock, StockEntry, make_stock

DEFAULT_ALLOYS_PATH = Path(__file__).resolve().parent / "alloys.yaml"

STOCK_COLUMNS = ("name", "produces", "yield", "quantity")


def _normalise_key(name: str) -> str:
    return name.strip().lower().replace(" ", "_").replace("-", "_")


def _parse_component(metal: str, bounds: Any) -> ComponentRequirement:
    if isinstance(bounds, dict):
        lo, hi = bounds.get("min"), bounds.get("max")
    elif isinstance(bounds, (list, tuple)) and len(bounds) == 2:
        lo, hi = bounds
    else:
        raise ValueError(f"Component {metal!r}: expected [min, max], got {bounds!r}")
    return ComponentRequirement(mineral=str(metal), min_percent=float(lo), max_percent=float(hi))


def load_alloy_catalog(path: Optional[Path] = None) -> Dict[str, AlloySpec]:
    """
    Load alloy definitions keyed by normalised alloy id.

    Parameters
    ----------
    path : Path, optional
        Catalog YAML. Defaults to the packaged alloys.yaml.

    Returns
    -------
    Dict[str, AlloySpec]
        e.g. ``{"bronze": AlloySpec("Bronze", ...)}``
    """
    catalog_path = path or DEFAULT_ALLOYS_PATH
    if not catalog_path.exists():
        raise FileNotFoundError(f"Alloy catalog not found at {catalog_path}")

    with catalog_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}

    catalog: Dict[str, AlloySpec] = {}
    for alloy_id, block in (raw.get("alloys") or {}).items():
        block = block or {}
        components = [
            _parse_component(metal, bounds)
            for metal, bounds in (block.get("components") or {}).items()
        ]
        catalog[_normalise_key(str(alloy_id))] = AlloySpec(
            name=str(block.get("name", alloy_id)),
            components=tuple(components),
        )
    return catalog


def get_alloy(name: str, catalog: Optional[Dict[str, AlloySpec]] = None) -> AlloySpec:
    """Look up an alloy by id or display name, ignoring case, spaces and dashes."""
    catalog = catalog if catalog is not None else load_alloy_catalog()
    key = _normalise_key(name)
    if key in catalog:
        return catalog[key]
    for spec in catalog.values():
        if _normalise_key(spec.name) == key:
            return spec
    raise KeyError(f"Unknown alloy {name!r}; known: {', '.join(sorted(catalog))}")


def _whole_number(row: Dict[str, Any], column: str, where: str) -> int:
    value = row[column]
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{where}: {column} {value} is not a number") from None
    if not number.is_integer():
        raise ValueError(f"{where}: {column} {value} is not a whole number")
    return int(number)


def _rows_to_stock(rows: List[Dict[str, Any]], source: Path) -> Stock:
    entries: List[StockEntry] = []
    for i, row in enumerate(rows):
        missing = [col for col in STOCK_COLUMNS if row.get(col) is None]
        if missing:
            raise ValueError(f"{source}: row {i + 1} is missing {', '.join(missing)}")
        where = f"{source}: row {i + 1}"
        mineral = Mineral(
            name=str(row["name"]).strip(),
            produces=str(row["produces"]).strip(),
            yield_per_unit=_whole_number(row, "yield", where),
        )
        entries.append(StockEntry(mineral=mineral, quantity=_whole_number(row, "quantity", where)))
    return make_stock(entries)


def load_stock(path: Path) -> Stock:
    """
    Read mineral stock from a CSV or YAML file.

    Both formats carry the columns ``name, produces, yield, quantity``; YAML
    files hold a list of mappings (optionally under a ``stock`` key).
    """
    if not path.exists():
        raise FileNotFoundError(f"Stock file not found at {path}")

    if path.suffix.lower() in (".yaml", ".yml"):
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or []
        if isinstance(raw, dict):
            raw = raw.get("stock") or []
        if not isinstance(raw, list):
            raise ValueError(f"{path}: stock must be a list of mappings")
        for i, row in enumerate(raw):
            if not isinstance(row, dict):
                raise ValueError(f"{path}: row {i + 1} is not a mapping: {row!r}")
        return _rows_to_stock([dict(r) for r in raw], path)

    df = pd.read_csv(path, skipinitialspace=True)
    df.columns = [str(c).strip().lower() for c in df.columns]
    missing = [col for col in STOCK_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"{path}: missing column(s) {', '.join(missing)}")

    df = df.dropna(how="all")
    rows = [
        {col: (None if pd.isna(row[col]) else row[col]) for col in STOCK_COLUMNS}
        for _, row in df.iterrows()
    ]
    return _rows_to_stock(rows, path)
