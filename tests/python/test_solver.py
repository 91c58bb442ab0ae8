"""
Tests for the max-flow solver.

Run with: pytest tests/python/test_solver.py -v
"""

import itertools
import random

import pytest

from waterflow.core import Consumer, LinkType, Network, PassThrough, Source
from waterflow.exceptions import ConfigurationError
from waterflow.solver import (
    BreadthFirstSearch,
    DepthFirstSearch,
    FlowSolution,
    FlowSolver,
    FlowStatus,
    SearchStrategy,
    SolverConfig,
    make_search,
    solve_max_flow,
)

STRATEGIES = [SearchStrategy.DFS, SearchStrategy.BFS]


def random_network(seed: int, num_sources=3, num_stations=5, num_consumers=4, num_pipes=25):
    """A random network with a mix of one-way and bidirectional pipes."""
    rng = random.Random(seed)
    network = Network(name=f"random_{seed}")
    codes = []
    for i in range(num_sources):
        network.add_node(Source(code=f"R_{i}", max_supply=rng.randint(0, 30)))
        codes.append(f"R_{i}")
    for i in range(num_stations):
        network.add_node(PassThrough(code=f"PS_{i}"))
        codes.append(f"PS_{i}")
    for i in range(num_consumers):
        network.add_node(Consumer(code=f"C_{i}", demand=rng.randint(0, 25)))
        codes.append(f"C_{i}")

    for _ in range(num_pipes):
        origin, destination = rng.sample(codes, 2)
        capacity = rng.randint(0, 20)
        network.add_link(origin, destination, capacity)
        if rng.random() < 0.3:
            network.add_link(destination, origin, capacity)
    return network


class TestSearchStrategy:
    """Tests for strategy selection."""

    @pytest.mark.parametrize("name,expected", [
        ("dfs", SearchStrategy.DFS),
        ("Ford-Fulkerson", SearchStrategy.DFS),
        ("ford_fulkerson", SearchStrategy.DFS),
        ("bfs", SearchStrategy.BFS),
        ("EDMONDS-KARP", SearchStrategy.BFS),
        ("ek", SearchStrategy.BFS),
        (SearchStrategy.DFS, SearchStrategy.DFS),
    ])
    def test_from_name(self, name, expected):
        assert SearchStrategy.from_name(name) is expected

    def test_unknown_strategy(self):
        with pytest.raises(ConfigurationError):
            SearchStrategy.from_name("dijkstra")

    def test_algorithm_names(self):
        assert SearchStrategy.DFS.algorithm == "Ford-Fulkerson"
        assert SearchStrategy.BFS.algorithm == "Edmonds-Karp"

    def test_make_search(self, two_source_network):
        assert isinstance(make_search("dfs", two_source_network), DepthFirstSearch)
        assert isinstance(make_search("bfs", two_source_network), BreadthFirstSearch)


class TestPathSearch:
    """Tests for a single augmenting-path search."""

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_path_runs_source_to_sink(self, two_source_network, strategy):
        network = two_source_network
        source = network.add_super_source()
        sink = network.add_super_sink()
        for link in network.links:
            link.residual_capacity = link.capacity

        path = make_search(strategy, network).find_path(source.index, sink.index)

        assert path
        assert path[0].source == source.index
        assert path[-1].target == sink.index
        for a, b in zip(path, path[1:]):
            assert a.target == b.source

    def test_bfs_finds_shortest_path(self):
        """BFS prefers the direct pipe over the detour listed first."""
        network = Network()
        network.add_node(Source(code="R_1", max_supply=5))
        network.add_node(PassThrough(code="PS_1"))
        network.add_node(PassThrough(code="PS_2"))
        network.add_node(Consumer(code="C_1", demand=5))
        network.add_link("R_1", "PS_1", 5)
        network.add_link("PS_1", "PS_2", 5)
        network.add_link("PS_2", "C_1", 5)
        network.add_link("R_1", "C_1", 5)

        source = network.add_super_source()
        sink = network.add_super_sink()
        for link in network.links:
            link.residual_capacity = link.capacity

        bfs_path = BreadthFirstSearch(network).find_path(source.index, sink.index)
        dfs_path = DepthFirstSearch(network).find_path(source.index, sink.index)

        assert len(bfs_path) == 3
        assert len(dfs_path) == 5

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_no_path(self, strategy):
        network = Network()
        network.add_node(Source(code="R_1", max_supply=5))
        network.add_node(Consumer(code="C_1", demand=5))
        source = network.add_super_source()
        sink = network.add_super_sink()
        for link in network.links:
            link.residual_capacity = link.capacity

        assert make_search(strategy, network).find_path(source.index, sink.index) == []

    def test_dfs_handles_long_chains(self):
        """A chain far deeper than the recursion limit still solves."""
        network = Network()
        network.add_node(Source(code="R_1", max_supply=7))
        previous = "R_1"
        for i in range(3000):
            code = f"PS_{i}"
            network.add_node(PassThrough(code=code))
            network.add_link(previous, code, 9)
            previous = code
        network.add_node(Consumer(code="C_1", demand=10))
        network.add_link(previous, "C_1", 9)

        solution = solve_max_flow(network, strategy="dfs")

        assert solution.delivered == {"C_1": 7}


class TestFlowSolver:
    """Tests for FlowSolver."""

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_two_sources(self, two_source_network, strategy):
        """Both reservoirs together cover the full demand of 14."""
        solution = FlowSolver(two_source_network, SolverConfig(strategy=strategy)).solve()

        assert solution.status == FlowStatus.OPTIMAL
        assert solution.is_optimal
        assert solution.strategy is strategy
        assert solution.delivered == {"C_1": 8, "C_2": 6}
        assert solution.total_flow == 14
        assert solution.num_consumers == 2

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_single_pipe(self, single_pipe_network, strategy):
        """The pipe capacity limits the city to 3."""
        solution = FlowSolver(single_pipe_network, SolverConfig(strategy=strategy)).solve()

        assert solution.delivered == {"C_1": 3}
        assert solution.bottlenecks == [3]
        assert solution.iterations == 1

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_flow_cancellation(self, crossing_network, strategy):
        """Flow pushed PS_A -> PS_B is undone to reach both cities."""
        network = crossing_network
        solution = FlowSolver(network, SolverConfig(strategy=strategy)).solve()

        assert solution.delivered == {"C_1": 1, "C_2": 1}
        assert network.link_flow(network.find_link("PS_A", "PS_B")) == 0

    def test_dfs_creates_residual_links(self, crossing_network):
        network = crossing_network
        FlowSolver(network, SolverConfig(strategy="dfs")).solve()

        residuals = list(network.links_of_type(LinkType.RESIDUAL))
        assert residuals
        for link in residuals:
            partner = network.reverse_of(link)
            assert partner is not None
            assert network.reverse_of(partner) is link
            assert (partner.source, partner.target) == (link.target, link.source)

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_bidirectional_pipe_reused_as_reverse(self, strategy):
        """The other half of a two-way pipe is the reverse; no residual link is added."""
        network = Network()
        network.add_node(Source(code="R_1", max_supply=6))
        network.add_node(PassThrough(code="PS_1"))
        network.add_node(Consumer(code="C_1", demand=6))
        network.add_link("R_1", "PS_1", 10)
        network.add_link("PS_1", "R_1", 10)
        network.add_link("PS_1", "C_1", 10)

        solution = FlowSolver(network, SolverConfig(strategy=strategy)).solve()

        forward = network.find_link("R_1", "PS_1")
        backward = network.find_link("PS_1", "R_1")
        assert solution.delivered == {"C_1": 6}
        assert network.reverse_of(forward) is backward
        assert backward.link_type == LinkType.PIPE
        assert backward.residual_capacity == 16
        assert network.link_flow(forward) == 6
        assert network.link_flow(backward) == 0

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_conservation(self, strategy):
        """Flow out of the super-source equals flow into the super-sink."""
        network = random_network(7)
        solution = FlowSolver(network, SolverConfig(strategy=strategy)).solve()

        assert solution.source_outflow == solution.sink_inflow == solution.total_flow
        assert solution.total_flow == sum(solution.bottlenecks)

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_capacity_bounds(self, strategy):
        """No city exceeds its demand, no pipe its capacity."""
        network = random_network(11)
        solution = FlowSolver(network, SolverConfig(strategy=strategy)).solve()

        for consumer in network.consumers():
            assert 0 <= solution.delivered[consumer.code] <= consumer.demand
        for pipe in network.pipes():
            assert 0 <= network.link_flow(pipe) <= pipe.capacity

    @pytest.mark.parametrize("seed", range(12))
    def test_matches_networkx(self, seed, max_flow_oracle):
        """Both strategies reach the same total as networkx."""
        network = random_network(seed)
        expected = max_flow_oracle(network)

        dfs = solve_max_flow(network, strategy="dfs")
        bfs = solve_max_flow(network, strategy="bfs")

        assert dfs.total_flow == expected
        assert bfs.total_flow == expected

    def test_enough_supply_meets_every_demand(self):
        """With ample supply and capacity every city gets exactly its demand."""
        network = Network()
        network.add_node(Source(code="R_1", max_supply=1000))
        for i, demand in enumerate([5, 12, 0, 7]):
            network.add_node(Consumer(code=f"C_{i}", demand=demand))
            network.add_link("R_1", f"C_{i}", 1000)

        solution = solve_max_flow(network)

        assert solution.delivered == {"C_0": 5, "C_1": 12, "C_2": 0, "C_3": 7}

    def test_disabled_consumer_omitted(self, two_source_network):
        two_source_network.get_node_by_code("C_2").enabled = False

        solution = FlowSolver(two_source_network).solve()

        assert solution.delivered == {"C_1": 8}

    def test_disabled_source_and_link(self, two_source_network):
        network = two_source_network
        network.get_node_by_code("R_1").enabled = False

        assert FlowSolver(network).solve().total_flow == 5

        network.reset()
        network.find_link("PS_1", "C_1").enabled = False
        assert FlowSolver(network).solve().delivered == {"C_1": 0, "C_2": 6}

    def test_resolve_reuses_network(self, two_source_network):
        """Solving twice without reset gives the same answer."""
        solver = FlowSolver(two_source_network)
        first = solver.solve()
        second = solver.solve()

        assert first.delivered == second.delivered
        assert solver.solution is second
        assert solver.is_solved

    def test_no_sources(self):
        network = Network()
        network.add_node(Consumer(code="C_1", demand=4))

        with pytest.raises(ConfigurationError):
            FlowSolver(network).solve()

    def test_no_consumers(self):
        network = Network()
        network.add_node(Source(code="R_1", max_supply=4))

        with pytest.raises(ConfigurationError):
            FlowSolver(network).solve()

        assert not network.has_flow_state
        assert [node.code for node in network.nodes] == ["R_1"]
        assert network.num_links == 0

    def test_iteration_limit(self, two_source_network):
        solution = FlowSolver(two_source_network, SolverConfig(max_iterations=1)).solve()

        assert solution.status == FlowStatus.ITERATION_LIMIT
        assert solution.iterations == 1
        assert 0 < solution.total_flow < 14

    def test_time_limit(self, monkeypatch):
        ticks = itertools.count()
        monkeypatch.setattr("waterflow.solver.max_flow.time.time", lambda: next(ticks))

        network = random_network(3)
        solution = FlowSolver(network, SolverConfig(max_time=0.5)).solve()

        assert solution.status == FlowStatus.TIME_LIMIT
        assert not solution.is_optimal

    def test_negative_budget_rejected(self):
        with pytest.raises(ValueError):
            SolverConfig(max_iterations=-1)
        with pytest.raises(ValueError):
            SolverConfig(max_time=-0.5)

    def test_solve_max_flow_resets(self, two_source_network):
        solution = solve_max_flow(two_source_network, strategy="dfs")

        assert solution.total_flow == 14
        assert not two_source_network.has_flow_state

    def test_solve_max_flow_without_reset(self, two_source_network):
        solve_max_flow(two_source_network, reset=False)
        assert two_source_network.has_flow_state

    @pytest.mark.slow
    def test_large_random_networks(self, max_flow_oracle):
        for seed in range(100, 105):
            network = random_network(
                seed, num_sources=10, num_stations=80, num_consumers=40, num_pipes=600,
            )
            expected = max_flow_oracle(network)
            assert solve_max_flow(network, strategy="dfs").total_flow == expected
            assert solve_max_flow(network, strategy="bfs").total_flow == expected


class TestFlowSolution:
    """Tests for FlowSolution helpers."""

    def test_defaults(self):
        solution = FlowSolution()

        assert solution.status == FlowStatus.NOT_SOLVED
        assert solution.total_flow == 0
        assert not solution.is_optimal

    def test_for_consumers(self):
        solution = FlowSolution(delivered={"C_1": 4, "C_2": 0, "C_3": 9})

        assert solution.for_consumers(["C_3", "C_1"]) == {"C_3": 9, "C_1": 4}
        assert solution.for_consumers(["C_9"]) == {}
        assert solution.flow_to("C_3") == 9
        assert solution.flow_to("C_9") == 0

    def test_summary(self, two_source_network):
        solution = FlowSolver(two_source_network, SolverConfig(strategy="dfs")).solve()
        summary = solution.summary()

        assert "OPTIMAL" in summary
        assert "Ford-Fulkerson" in summary
        assert "Total delivered: 14" in summary
