"""
Solver module - max-flow computation over water networks.

This module provides:
- FlowSolver: Augmenting-path max-flow with the super-source/super-sink
  reduction
- SolverConfig: Strategy choice and iteration/time budgets
- FlowSolution, FlowStatus: Result of a solve
- SearchStrategy, PathSearch, DepthFirstSearch, BreadthFirstSearch:
  The interchangeable augmenting-path searches

Usage:
------
    >>> from waterflow.solver import FlowSolver, SolverConfig
    >>> solution = FlowSolver(network, SolverConfig(strategy="edmonds-karp")).solve()
    >>> print(solution.total_flow)
    >>> network.reset()

Or, solving and resetting in one call:

    >>> from waterflow.solver import solve_max_flow
    >>> solution = solve_max_flow(network, strategy="dfs")
"""

from waterflow.solver.max_flow import FlowSolver, SolverConfig, solve_max_flow
from waterflow.solver.search import (
    BreadthFirstSearch,
    DepthFirstSearch,
    PathSearch,
    SearchStrategy,
    make_search,
)
from waterflow.solver.solution import FlowSolution, FlowStatus

__all__ = [
    # Main class
    'FlowSolver',
    'SolverConfig',
    'solve_max_flow',

    # Path search
    'SearchStrategy',
    'PathSearch',
    'DepthFirstSearch',
    'BreadthFirstSearch',
    'make_search',

    # Solution
    'FlowSolution',
    'FlowStatus',
]
