"""
Max-flow solution module.

This module defines the data structures for representing the result of a
max-flow solve over a water network.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterable, List, Optional

from waterflow.solver.search import SearchStrategy


class FlowStatus(Enum):
    """
    Status of a max-flow solve.
    """
    OPTIMAL = auto()           # No augmenting path left; flow is maximum
    ITERATION_LIMIT = auto()   # Augmentation budget exhausted
    TIME_LIMIT = auto()        # Wall-clock budget exhausted
    NOT_SOLVED = auto()        # Not yet solved


@dataclass
class FlowSolution:
    """
    Result of the max-flow solver.

    Attributes:
        status: Solution status
        strategy: Path search used
        delivered: Consumer code -> water delivered to that consumer
        iterations: Number of augmentations performed
        solve_time: Wall-clock seconds spent in the solve
        bottlenecks: Amount pushed by each augmentation, in order
        source_outflow: Flow leaving the super-source
        sink_inflow: Flow entering the super-sink
        metadata: Free-form extra information

    Example:
        >>> solution = FlowSolver(network).solve()
        >>> if solution.is_optimal:
        ...     print(f"Total delivered: {solution.total_flow}")
        ...     for code, flow in solution.delivered.items():
        ...         print(f"  {code}: {flow}")
    """
    status: FlowStatus = FlowStatus.NOT_SOLVED
    strategy: Optional[SearchStrategy] = None

    delivered: Dict[str, int] = field(default_factory=dict)

    # Statistics
    iterations: int = 0
    solve_time: float = 0.0
    bottlenecks: List[int] = field(default_factory=list)
    source_outflow: int = 0
    sink_inflow: int = 0

    metadata: Dict[str, Any] = field(default_factory=dict)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def is_optimal(self) -> bool:
        """Check if the flow is proven maximum."""
        return self.status == FlowStatus.OPTIMAL

    @property
    def total_flow(self) -> int:
        """Sum of delivered flow over all consumers."""
        return sum(self.delivered.values())

    @property
    def num_consumers(self) -> int:
        return len(self.delivered)

    # =========================================================================
    # Queries
    # =========================================================================

    def flow_to(self, code: str) -> int:
        """Flow delivered to one consumer (0 if it is not in the table)."""
        return self.delivered.get(code, 0)

    def for_consumers(self, codes: Iterable[str]) -> Dict[str, int]:
        """
        Restrict the delivered table to the given consumers.

        Codes missing from the table are skipped.
        """
        return {code: self.delivered[code] for code in codes if code in self.delivered}

    def summary(self) -> str:
        """
        Get a human-readable summary.

        Returns:
            Multi-line summary string
        """
        lines = [
            "Max-Flow Solution:",
            f"  Status: {self.status.name}",
        ]
        if self.strategy is not None:
            lines.append(f"  Strategy: {self.strategy.algorithm}")
        lines.extend([
            f"  Total delivered: {self.total_flow}",
            f"  Consumers: {self.num_consumers}",
            f"  Augmentations: {self.iterations}",
            f"  Solve time: {self.solve_time:.3f}s",
        ])
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"FlowSolution(status={self.status.name}, total={self.total_flow}, "
            f"iterations={self.iterations})"
        )
