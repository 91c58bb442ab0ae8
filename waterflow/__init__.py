"""
waterflow: max-flow analysis of water supply networks

Models a water-distribution network as a capacitated flow graph, computes
how much water each city can receive, and measures how that changes when
reservoirs, pumping stations or pipes fail.
"""

__version__ = "0.1.0"

from waterflow.config import config, configure_logging, get_data_path, set_data_path

# Core classes - the main user-facing API
from waterflow.core.link import Link, LinkType
from waterflow.core.network import Network
from waterflow.core.node import Consumer, Node, NodeType, PassThrough, Source

from waterflow.exceptions import (
    ConfigurationError,
    LookupMissError,
    MalformedRecordError,
    RecordWarning,
    WaterFlowError,
)

# Import
from waterflow.parsers import ParserConfig, WaterNetworkParser, load_network

# Max flow
from waterflow.solver import (
    FlowSolution,
    FlowSolver,
    FlowStatus,
    SearchStrategy,
    SolverConfig,
    solve_max_flow,
)

# Failure experiments
from waterflow.resilience import ResilienceSimulator, SafetyReport, ShutdownReport

__all__ = [
    # Version
    "__version__",
    # Configuration
    "config",
    "configure_logging",
    "get_data_path",
    "set_data_path",
    # Core classes
    "Node",
    "NodeType",
    "Consumer",
    "Source",
    "PassThrough",
    "Link",
    "LinkType",
    "Network",
    # Errors
    "WaterFlowError",
    "ConfigurationError",
    "LookupMissError",
    "MalformedRecordError",
    "RecordWarning",
    # Import
    "ParserConfig",
    "WaterNetworkParser",
    "load_network",
    # Solver
    "FlowSolver",
    "SolverConfig",
    "FlowSolution",
    "FlowStatus",
    "SearchStrategy",
    "solve_max_flow",
    # Resilience
    "ResilienceSimulator",
    "ShutdownReport",
    "SafetyReport",
]
