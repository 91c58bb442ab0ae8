"""
Reports produced by resilience experiments.

- ShutdownReport: before/after delivered-flow tables for one experiment
  and the per-consumer decline when the network was affected
- SafetyReport: one "safe to disable" flag per element, from running one
  experiment per element
"""

from dataclasses import dataclass, field
from typing import Dict, Hashable, List


@dataclass
class ShutdownReport:
    """
    Outcome of disabling a set of network elements.

    Attributes:
        targets: Labels of the disabled elements (node codes, or
            "ORIGIN->DESTINATION" for links)
        before: Consumer code -> delivered flow with everything enabled
        after: Consumer code -> delivered flow with the targets disabled
        declines: Consumer code -> percentage decline, filled only when
            the total delivered flow changed. Negative values mean the
            consumer received more than before.

    Example:
        >>> report = simulator.shutdown_sources(["R_2"])
        >>> if report.affected:
        ...     for code, pct in report.declines.items():
        ...         print(f"{code}: -{pct:.1f}%")
    """
    targets: List[str]
    before: Dict[str, int]
    after: Dict[str, int]
    declines: Dict[str, float] = field(default_factory=dict)

    @property
    def before_total(self) -> int:
        return sum(self.before.values())

    @property
    def after_total(self) -> int:
        return sum(self.after.values())

    @property
    def lost_flow(self) -> int:
        """Total delivered flow lost to the shutdown."""
        return self.before_total - self.after_total

    @property
    def affected(self) -> bool:
        """True if the shutdown changed the total delivered flow."""
        return self.after_total != self.before_total

    def decline_for(self, code: str) -> float:
        """Percentage decline for one consumer (0.0 if unaffected)."""
        return self.declines.get(code, 0.0)

    def affected_consumers(self) -> List[str]:
        """Codes of consumers that received less water, worst first."""
        hit = [code for code, pct in self.declines.items() if pct > 0]
        return sorted(hit, key=lambda code: (-self.declines[code], code))

    def summary(self) -> str:
        lines = [
            f"Shutdown of {', '.join(self.targets) or 'nothing'}:",
            f"  Delivered before: {self.before_total}",
            f"  Delivered after: {self.after_total}",
        ]
        if not self.affected:
            lines.append("  Network unaffected")
        else:
            for code in self.affected_consumers():
                lines.append(
                    f"  {code}: {self.before[code]} -> {self.after.get(code, 0)} "
                    f"(-{self.declines[code]:.2f}%)"
                )
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"ShutdownReport(targets={self.targets}, before={self.before_total}, "
            f"after={self.after_total})"
        )


@dataclass
class SafetyReport:
    """
    Result of disabling each element of a kind, one at a time.

    Attributes:
        kind: What was disabled ("source", "pass_through", "pipe")
        results: Element key -> True if disabling it leaves the total
            delivered flow unchanged. Keys are node codes, or
            (origin, destination) tuples for pipes.
        reports: Element key -> the experiment's ShutdownReport
    """
    kind: str
    results: Dict[Hashable, bool] = field(default_factory=dict)
    reports: Dict[Hashable, ShutdownReport] = field(default_factory=dict)

    def record(self, key: Hashable, report: ShutdownReport) -> None:
        self.results[key] = not report.affected
        self.reports[key] = report

    def safe(self) -> List[Hashable]:
        """Elements that can be disabled without losing delivered flow."""
        return [key for key, ok in self.results.items() if ok]

    def unsafe(self) -> List[Hashable]:
        """Elements whose loss reduces the total delivered flow."""
        return [key for key, ok in self.results.items() if not ok]

    def __len__(self) -> int:
        return len(self.results)

    def __repr__(self) -> str:
        return f"SafetyReport({self.kind}, safe={len(self.safe())}, unsafe={len(self.unsafe())})"
