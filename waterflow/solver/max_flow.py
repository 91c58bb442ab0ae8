"""
Max-flow solver for water networks.

This module implements the augmenting-path max-flow method over a Network
with many reservoirs and many cities.

Algorithm Overview:
------------------
1. Clear flow state left by a previous solve (enabled flags are kept)
2. Add a super-source linked to every reservoir (capacity = max supply)
   and a super-sink linked from every city (capacity = demand)
3. Set every link's residual capacity to its capacity
4. Find an augmenting path (DFS or BFS, see waterflow.solver.search);
   stop if there is none
5. Push the bottleneck along the path: each link loses it, and its paired
   reverse link (created on first use) gains it
6. Go to step 4
7. Read each city's delivered flow off the reverse of its sink link

The network is left in its solved state so callers can inspect link flows;
call ``network.reset()`` (or ``clear_flow_state()``) afterwards.

Key Features:
------------
- Two interchangeable path-search strategies
- Optional iteration and wall-clock budgets
- Per-augmentation bottleneck history
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional, Union

from waterflow.core.link import Link
from waterflow.core.network import Network
from waterflow.exceptions import ConfigurationError
from waterflow.solver.search import SearchStrategy, make_search
from waterflow.solver.solution import FlowSolution, FlowStatus

logger = logging.getLogger(__name__)


@dataclass
class SolverConfig:
    """
    Configuration for the max-flow solver.

    Attributes:
        strategy: Path search to use ("bfs"/"edmonds-karp" or
            "dfs"/"ford-fulkerson")
        max_iterations: Maximum number of augmentations (0 = unlimited)
        max_time: Maximum solve time in seconds (0 = unlimited)
        verbose: Log every augmentation at INFO instead of DEBUG
    """
    strategy: Union[SearchStrategy, str] = SearchStrategy.BFS
    max_iterations: int = 0
    max_time: float = 0.0
    verbose: bool = False

    def __post_init__(self):
        self.strategy = SearchStrategy.from_name(self.strategy)
        if self.max_iterations < 0:
            raise ValueError("max_iterations must be >= 0")
        if self.max_time < 0:
            raise ValueError("max_time must be >= 0")

    @classmethod
    def from_global(cls, **overrides) -> 'SolverConfig':
        """Build a config from the global waterflow configuration."""
        from waterflow.config import config

        values = {
            "strategy": config.default_strategy,
            "max_iterations": config.max_iterations,
            "max_time": config.max_time,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class FlowSolver:
    """
    Max-flow solver with a super-source/super-sink reduction.

    Example:
        >>> solver = FlowSolver(network, SolverConfig(strategy="dfs"))
        >>> solution = solver.solve()
        >>> print(solution.delivered)
        {'C_1': 8, 'C_2': 6}
        >>> network.reset()
    """

    def __init__(
        self,
        network: Network,
        config: Optional[SolverConfig] = None,
    ):
        """
        Initialize the solver.

        Args:
            network: The network to solve (mutated in place)
            config: Configuration options (uses defaults if not provided)
        """
        self._network = network
        self._config = config or SolverConfig()
        self._solution: Optional[FlowSolution] = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def network(self) -> Network:
        return self._network

    @property
    def config(self) -> SolverConfig:
        return self._config

    @property
    def solution(self) -> Optional[FlowSolution]:
        """The last solution (None if not yet solved)."""
        return self._solution

    @property
    def is_solved(self) -> bool:
        return self._solution is not None

    # =========================================================================
    # Main Algorithm
    # =========================================================================

    def solve(self) -> FlowSolution:
        """
        Compute the maximum flow each city can receive.

        Returns:
            FlowSolution with the delivered-flow table

        Raises:
            ConfigurationError: If the network has no sources or no
                consumers (the super nodes cannot be built)
        """
        network = self._network
        config = self._config
        start_time = time.time()

        network.clear_flow_state()
        try:
            super_source = network.add_super_source()
            super_sink = network.add_super_sink()
        except ConfigurationError:
            network.clear_flow_state()
            raise

        for link in network.links:
            link.residual_capacity = link.capacity

        search = make_search(config.strategy, network)
        status = FlowStatus.OPTIMAL
        bottlenecks: list[int] = []

        while True:
            if config.max_iterations and len(bottlenecks) >= config.max_iterations:
                status = FlowStatus.ITERATION_LIMIT
                break
            if config.max_time and time.time() - start_time >= config.max_time:
                status = FlowStatus.TIME_LIMIT
                break

            path = search.find_path(super_source.index, super_sink.index)
            if not path:
                break

            bottleneck = min(link.residual_capacity for link in path)
            self._augment(path, bottleneck)
            bottlenecks.append(bottleneck)

            self._log(
                f"Augmentation {len(bottlenecks)}: pushed {bottleneck} "
                f"along {len(path)} links"
            )

        solution = FlowSolution(
            status=status,
            strategy=config.strategy,
            delivered=self._extract_delivered(),
            iterations=len(bottlenecks),
            bottlenecks=bottlenecks,
            source_outflow=self._boundary_flow(network.outgoing_links(super_source.index)),
            sink_inflow=self._boundary_flow(network.incoming_links(super_sink.index)),
        )
        solution.solve_time = time.time() - start_time

        if status != FlowStatus.OPTIMAL:
            logger.warning(
                "%s stopped early (%s) after %d augmentations",
                config.strategy.algorithm, status.name, solution.iterations,
            )
        logger.info(
            "%s: delivered %d to %d consumers in %d augmentations (%.3fs)",
            config.strategy.algorithm, solution.total_flow, solution.num_consumers,
            solution.iterations, solution.solve_time,
        )

        self._solution = solution
        return solution

    def _augment(self, path: list[Link], bottleneck: int) -> None:
        """Push ``bottleneck`` units along ``path``."""
        for link in path:
            reverse = self._ensure_reverse(link)
            link.residual_capacity -= bottleneck
            reverse.residual_capacity += bottleneck

    def _ensure_reverse(self, link: Link) -> Link:
        """
        Get the paired reverse of ``link``, pairing it on first use.

        An existing link running the other way (the second half of a
        bidirectional pipe) is reused; otherwise a RESIDUAL link is created
        with the forward capacity and no residual capacity.
        """
        network = self._network
        reverse = network.reverse_of(link)
        if reverse is not None:
            return reverse

        reverse = network.link_between(link.target, link.source)
        if reverse is None:
            reverse = network.add_residual_link(link)
        network.pair_links(link, reverse)
        return reverse

    def _extract_delivered(self) -> dict[str, int]:
        """
        Delivered flow per enabled real consumer.

        The residual link super-sink -> consumer accumulates exactly what
        was pushed into the sink from that consumer.
        """
        network = self._network
        delivered = {}
        for consumer in network.consumers():
            if not consumer.enabled:
                continue
            total = 0
            for link in network.incoming_links(consumer.index):
                if link.is_residual() and link.source == network.super_sink.index:
                    total += link.residual_capacity
            delivered[consumer.code] = total
        return delivered

    def _boundary_flow(self, links) -> int:
        return sum(self._network.link_flow(link) for link in links if link.is_synthetic())

    def _log(self, message: str) -> None:
        if self._config.verbose:
            logger.info(message)
        else:
            logger.debug(message)

    def __repr__(self) -> str:
        return f"FlowSolver(strategy={self._config.strategy.value})"


def solve_max_flow(
    network: Network,
    strategy: Union[SearchStrategy, str] = SearchStrategy.BFS,
    reset: bool = True,
    **config_options,
) -> FlowSolution:
    """
    Solve and (by default) reset the network afterwards.

    Args:
        network: The network to solve
        strategy: Path search to use
        reset: Call ``network.reset()`` after solving
        **config_options: Extra SolverConfig fields

    Returns:
        The FlowSolution
    """
    solver = FlowSolver(network, SolverConfig(strategy=strategy, **config_options))
    try:
        return solver.solve()
    finally:
        if reset:
            network.reset()
