"""
Resilience module - failure experiments on water networks.

This module provides:
- ResilienceSimulator: Disables reservoirs, pumping stations or pipes,
  re-solves and compares delivered flow
- ShutdownReport: Before/after tables and per-city decline
- SafetyReport: "Safe to disable" flags from one experiment per element
"""

from waterflow.resilience.report import SafetyReport, ShutdownReport
from waterflow.resilience.simulator import FlowFunction, ResilienceSimulator, TargetRef

__all__ = [
    "ResilienceSimulator",
    "FlowFunction",
    "TargetRef",
    "ShutdownReport",
    "SafetyReport",
]
