"""
Resilience simulator - measures what the network loses when parts fail.

Every experiment follows the same bracket:
1. Run the flow function: the BEFORE delivered-flow table
2. Reset the network
3. Disable every target. A disabled link also disables its paired reverse
   and, for a bidirectional pipe, the link running the other way
4. Run the flow function again: the AFTER table
5. Reset the network
6. If the totals match, the targets do not affect the network; otherwise
   report each consumer's percentage decline
   ``(before - after) / before * 100``, where a consumer missing from AFTER
   (because it was itself disabled) counts as receiving 0

The network must not be touched by anything else while an experiment runs:
solves mutate shared node and link state.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Callable, Optional, Union

from waterflow.core.link import Link
from waterflow.core.network import Network
from waterflow.core.node import Node
from waterflow.exceptions import LookupMissError
from waterflow.resilience.report import SafetyReport, ShutdownReport
from waterflow.solver.max_flow import FlowSolver, SolverConfig

logger = logging.getLogger(__name__)

TargetRef = Union[str, Node, Link, tuple[str, str]]
FlowFunction = Callable[[], Mapping[str, int]]


class ResilienceSimulator:
    """
    Runs disable/re-solve experiments on a Network.

    Example:
        >>> simulator = ResilienceSimulator(network, SolverConfig(strategy="bfs"))
        >>> report = simulator.shutdown_pass_throughs(["PS_1", "PS_4"])
        >>> print(report.summary())
        >>>
        >>> safety = simulator.disable_each_pipe()
        >>> for origin, destination in safety.unsafe():
        ...     print(f"Pipe {origin}->{destination} is critical")
    """

    def __init__(
        self,
        network: Network,
        config: Optional[SolverConfig] = None,
    ):
        """
        Args:
            network: Network to experiment on (reset after each experiment)
            config: Solver configuration used by the default flow function
        """
        self._network = network
        self._config = config or SolverConfig()

    @property
    def network(self) -> Network:
        return self._network

    @property
    def config(self) -> SolverConfig:
        return self._config

    def max_flow(self) -> dict[str, int]:
        """Default flow function: delivered flow per consumer."""
        return FlowSolver(self._network, self._config).solve().delivered

    # =========================================================================
    # Experiments
    # =========================================================================

    def shutdown(
        self,
        targets: Iterable[TargetRef],
        flow_fn: Optional[FlowFunction] = None,
    ) -> ShutdownReport:
        """
        Disable ``targets`` and compare delivered flow before and after.

        Args:
            targets: Node codes/Nodes, Links, or (origin, destination)
                code pairs for links
            flow_fn: Returns a consumer code -> delivered flow table;
                defaults to a max-flow solve with this simulator's config

        Returns:
            ShutdownReport for the experiment

        Raises:
            LookupMissError: If a target is not part of the network
        """
        network = self._network
        resolved = [self._resolve(target) for target in targets]
        flow_fn = flow_fn or self.max_flow

        try:
            before = dict(flow_fn())
            network.reset()
            for element in resolved:
                self._disable(element)
            after = dict(flow_fn())
        finally:
            network.reset()

        report = ShutdownReport(
            targets=[self._label(element) for element in resolved],
            before=before,
            after=after,
        )
        if report.affected:
            report.declines = {
                code: _decline(flow, after.get(code, 0))
                for code, flow in before.items()
            }
            logger.info(
                "Shutdown of %s: delivered flow %d -> %d",
                ", ".join(report.targets), report.before_total, report.after_total,
            )
        else:
            logger.info("Shutdown of %s does not affect the network", ", ".join(report.targets))

        return report

    def shutdown_sources(
        self,
        codes: Optional[Iterable[str]] = None,
        flow_fn: Optional[FlowFunction] = None,
    ) -> ShutdownReport:
        """Shut down the given reservoirs (all of them if None)."""
        if codes is None:
            codes = [source.code for source in self._network.sources()]
        return self.shutdown(list(codes), flow_fn)

    def shutdown_pass_throughs(
        self,
        codes: Optional[Iterable[str]] = None,
        flow_fn: Optional[FlowFunction] = None,
    ) -> ShutdownReport:
        """Shut down the given pumping stations (all of them if None)."""
        if codes is None:
            codes = [station.code for station in self._network.pass_throughs()]
        return self.shutdown(list(codes), flow_fn)

    def shutdown_pipes(
        self,
        pipes: Optional[Iterable[Union[Link, tuple[str, str]]]] = None,
        flow_fn: Optional[FlowFunction] = None,
    ) -> ShutdownReport:
        """Shut down the given pipes (all of them if None)."""
        if pipes is None:
            pipes = self._network.pipes()
        return self.shutdown(list(pipes), flow_fn)

    def disable_each_source(self, flow_fn: Optional[FlowFunction] = None) -> SafetyReport:
        """One experiment per reservoir."""
        return self._disable_each(
            "source",
            [(source.code, source) for source in self._network.sources()],
            flow_fn,
        )

    def disable_each_pass_through(self, flow_fn: Optional[FlowFunction] = None) -> SafetyReport:
        """One experiment per pumping station."""
        return self._disable_each(
            "pass_through",
            [(station.code, station) for station in self._network.pass_throughs()],
            flow_fn,
        )

    def disable_each_pipe(self, flow_fn: Optional[FlowFunction] = None) -> SafetyReport:
        """
        One experiment per physical pipe, keyed by (origin, destination).

        Both directions of a bidirectional pipe form one experiment, keyed
        by the direction that was imported first.
        """
        keyed_targets = []
        seen = set()
        for pipe in self._network.pipes():
            origin, destination = self._endpoints(pipe)
            if (destination, origin) in seen:
                continue
            seen.add((origin, destination))
            keyed_targets.append(((origin, destination), pipe))
        return self._disable_each("pipe", keyed_targets, flow_fn)

    def _disable_each(self, kind, keyed_targets, flow_fn) -> SafetyReport:
        safety = SafetyReport(kind=kind)
        for key, target in keyed_targets:
            safety.record(key, self.shutdown([target], flow_fn))
        logger.info(
            "Disabled each %s: %d safe, %d critical",
            kind, len(safety.safe()), len(safety.unsafe()),
        )
        return safety

    # =========================================================================
    # Helpers
    # =========================================================================

    def _resolve(self, target: TargetRef) -> Union[Node, Link]:
        network = self._network
        if isinstance(target, Link):
            if network.get_link(target.index) is not target or target.is_residual():
                raise LookupMissError("link", target)
            return target
        if isinstance(target, tuple):
            origin, destination = target
            link = network.find_link(origin, destination)
            if link is None or link.is_residual():
                raise LookupMissError("link", f"{origin}->{destination}")
            return link
        node = network.require_node(target)
        if node.synthetic:
            raise LookupMissError("node", node.code)
        return node

    def _disable(self, element: Union[Node, Link]) -> None:
        element.enabled = False
        if isinstance(element, Link):
            # the paired reverse, and the other half of a bidirectional pipe
            reverse = self._network.reverse_of(element)
            if reverse is not None:
                reverse.enabled = False
            opposite = self._network.link_between(element.target, element.source)
            if opposite is not None and opposite.is_pipe():
                opposite.enabled = False

    def _endpoints(self, link: Link) -> tuple[str, str]:
        return (
            self._network.get_node(link.source).code,
            self._network.get_node(link.target).code,
        )

    def _label(self, element: Union[Node, Link]) -> str:
        if isinstance(element, Link):
            return "->".join(self._endpoints(element))
        return element.code

    def __repr__(self) -> str:
        return f"ResilienceSimulator({self._network!r}, strategy={self._config.strategy.value})"


def _decline(before: int, after: int) -> float:
    """Percentage decline from ``before`` to ``after``; 0.0 when before is 0."""
    if before == 0:
        return 0.0
    return (before - after) / before * 100.0
