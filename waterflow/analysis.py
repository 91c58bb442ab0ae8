"""
Analysis helpers over delivered-flow tables.

These work on the ``delivered`` table of a FlowSolution (consumer code ->
delivered flow) and, for pipe metrics, on a network still in its solved
state.

- supply_adequacy: does each city receive its full demand?
- water_deficits: which cities are short, and by how much
- flow_rates: each city's share of the total delivered flow
- top_k: the cities receiving the most water
- pipe_metrics: spread of unused capacity (capacity - flow) over pipes
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from waterflow.core.network import Network
from waterflow.core.node import Consumer
from waterflow.exceptions import LookupMissError


@dataclass
class Deficit:
    """A city that receives less than its demand."""
    code: str
    name: str
    demand: int
    delivered: int

    @property
    def deficit(self) -> int:
        return self.demand - self.delivered


@dataclass
class PipeMetrics:
    """
    Statistics of ``capacity - flow`` across enabled pipes.

    Attributes:
        average: Mean unused capacity
        variance: Population variance of unused capacity
        max_difference: Largest unused capacity
        count: Number of pipes measured
    """
    average: float
    variance: float
    max_difference: int
    count: int

    def summary(self) -> str:
        return (
            f"Pipes: {self.count}, average difference {self.average:.2f}, "
            f"variance {self.variance:.2f}, max difference {self.max_difference}"
        )


def _consumer(network: Network, code: str) -> Consumer:
    node = network.get_node_by_code(code)
    if node is None or not node.is_consumer() or node.synthetic:
        raise LookupMissError("consumer", code)
    return node


def supply_adequacy(
    network: Network,
    delivered: Mapping[str, int],
    codes: Optional[Iterable[str]] = None,
) -> Dict[str, bool]:
    """
    Check whether each city receives at least its demand.

    Args:
        network: The network the table was computed on
        delivered: Consumer code -> delivered flow
        codes: Cities to check (all cities in ``delivered`` if None)

    Returns:
        Consumer code -> True if delivered >= demand

    Raises:
        LookupMissError: If a code is not a consumer of the network
    """
    if codes is None:
        codes = delivered.keys()
    return {
        code: delivered.get(code, 0) >= _consumer(network, code).demand
        for code in codes
    }


def water_deficits(network: Network, delivered: Mapping[str, int]) -> List[Deficit]:
    """
    List the cities that receive less than their demand.

    Returns:
        Deficits, largest first (ties by code)
    """
    deficits = []
    for code, flow in delivered.items():
        consumer = _consumer(network, code)
        if flow < consumer.demand:
            deficits.append(Deficit(code, consumer.display_name, consumer.demand, flow))
    deficits.sort(key=lambda d: (-d.deficit, d.code))
    return deficits


def flow_rates(delivered: Mapping[str, int]) -> Dict[str, float]:
    """
    Each city's share of the total delivered flow, in percent.

    All rates are 0.0 when nothing was delivered.
    """
    total = sum(delivered.values())
    if total == 0:
        return {code: 0.0 for code in delivered}
    return {code: flow / total * 100.0 for code, flow in delivered.items()}


def top_k(delivered: Mapping[str, int], k: int) -> List[Tuple[str, int]]:
    """
    The ``k`` cities receiving the most water.

    Ties are broken by code so the result is deterministic.
    """
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")
    ranked = sorted(delivered.items(), key=lambda item: (-item[1], item[0]))
    return ranked[:k]


def pipe_metrics(network: Network) -> PipeMetrics:
    """
    Average, variance and maximum of ``capacity - flow`` over enabled pipes.

    Call this on a network that has just been solved (before reset);
    on an unsolved network every pipe counts as carrying no flow.
    """
    differences = np.array(
        [
            pipe.capacity - network.link_flow(pipe)
            for pipe in network.pipes()
            if pipe.enabled
        ],
        dtype=float,
    )
    if differences.size == 0:
        return PipeMetrics(average=0.0, variance=0.0, max_difference=0, count=0)

    return PipeMetrics(
        average=float(np.mean(differences)),
        variance=float(np.var(differences)),
        max_difference=int(np.max(differences)),
        count=int(differences.size),
    )
