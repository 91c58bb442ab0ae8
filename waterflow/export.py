"""
Export of flow tables and resilience reports to CSV files.

Every writer creates parent directories as needed and writes one header
row followed by one row per entry:

- write_flow_table: Name, Code, Flow
- write_boolean_table: Code, Value (Yes/No)
- write_pipe_boolean_table: Origin, Destination, Value (Yes/No)
- write_rate_table: Name, Code, Rate
- write_deficit_table: Code, Name, Demand, Delivered, Deficit
"""

import csv
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Hashable, Union

from waterflow.analysis import Deficit
from waterflow.core.network import Network

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def _display_name(network: Network, code: str) -> str:
    node = network.get_node_by_code(code)
    return node.display_name if node is not None else code


def _write(path: PathLike, header: list[str], rows: Iterable[list]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(path, 'w', encoding='utf-8', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for row in rows:
            writer.writerow(row)
            count += 1
    logger.info("Wrote %d rows to %s", count, path)
    return path


def write_flow_table(path: PathLike, network: Network, delivered: Mapping[str, int]) -> Path:
    """Write a delivered-flow table (Name, Code, Flow)."""
    return _write(
        path,
        ["Name", "Code", "Flow"],
        ([_display_name(network, code), code, flow] for code, flow in delivered.items()),
    )


def write_boolean_table(path: PathLike, results: Mapping[str, bool]) -> Path:
    """Write code -> yes/no results (Code, Value)."""
    return _write(
        path,
        ["Code", "Value"],
        ([code, _yes_no(value)] for code, value in results.items()),
    )


def write_pipe_boolean_table(path: PathLike, results: Mapping[Hashable, bool]) -> Path:
    """Write (origin, destination) -> yes/no results."""
    return _write(
        path,
        ["Origin", "Destination", "Value"],
        ([origin, destination, _yes_no(value)] for (origin, destination), value in results.items()),
    )


def write_rate_table(path: PathLike, network: Network, rates: Mapping[str, float]) -> Path:
    """Write percentages (Name, Code, Rate), two decimals."""
    return _write(
        path,
        ["Name", "Code", "Rate"],
        ([_display_name(network, code), code, f"{rate:.2f}"] for code, rate in rates.items()),
    )


def write_deficit_table(path: PathLike, deficits: Iterable[Deficit]) -> Path:
    """Write cities below demand (Code, Name, Demand, Delivered, Deficit)."""
    return _write(
        path,
        ["Code", "Name", "Demand", "Delivered", "Deficit"],
        ([d.code, d.name, d.demand, d.delivered, d.deficit] for d in deficits),
    )
