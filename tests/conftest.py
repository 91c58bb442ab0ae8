"""
Shared pytest fixtures for waterflow tests.
"""

import pytest
from pathlib import Path

import networkx as nx

from waterflow.core import Consumer, Network, PassThrough, Source


def pytest_configure(config):
    """Add custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")


@pytest.fixture
def data_path():
    """Path to the bundled datasets."""
    return Path(__file__).parent.parent / "data"


@pytest.fixture
def sample_path(data_path):
    """Path to the sample dataset (4 cities, 2 reservoirs, 3 stations)."""
    return data_path / "sample"


@pytest.fixture
def two_source_network():
    """
    Two reservoirs (10 and 5) feeding one station that serves two cities
    with demands 8 and 6. Every pipe has capacity 100, so the max flow
    is the total demand, 14.
    """
    network = Network(name="two_source")
    network.add_node(Source(code="R_1", name="North", max_supply=10))
    network.add_node(Source(code="R_2", name="South", max_supply=5))
    network.add_node(PassThrough(code="PS_1"))
    network.add_node(Consumer(code="C_1", name="Alpha", demand=8))
    network.add_node(Consumer(code="C_2", name="Beta", demand=6))

    network.add_link("R_1", "PS_1", 100)
    network.add_link("R_2", "PS_1", 100)
    network.add_link("PS_1", "C_1", 100)
    network.add_link("PS_1", "C_2", 100)
    return network


@pytest.fixture
def single_pipe_network():
    """A reservoir of 3 connected to a city of demand 10 by one pipe of 3."""
    network = Network(name="single_pipe")
    network.add_node(Source(code="R_1", max_supply=3))
    network.add_node(Consumer(code="C_1", demand=10))
    network.add_link("R_1", "C_1", 3)
    return network


@pytest.fixture
def crossing_network():
    """
    A network where the first depth-first path blocks a city and the
    solver has to cancel flow on PS_A -> PS_B to reach the maximum of 2.
    """
    network = Network(name="crossing")
    network.add_node(Source(code="R_1", max_supply=2))
    network.add_node(PassThrough(code="PS_A"))
    network.add_node(PassThrough(code="PS_B"))
    network.add_node(Consumer(code="C_1", demand=1))
    network.add_node(Consumer(code="C_2", demand=1))

    network.add_link("R_1", "PS_A", 1)
    network.add_link("R_1", "PS_B", 1)
    network.add_link("PS_A", "PS_B", 1)
    network.add_link("PS_B", "C_1", 1)
    network.add_link("PS_A", "C_2", 1)
    return network


@pytest.fixture
def max_flow_oracle():
    """
    Reference max flow computed with networkx over the same reduction
    (super-source -> reservoirs at max supply, cities -> super-sink at demand).
    """
    def oracle(network: Network) -> int:
        G = network.to_networkx()
        for code, data in list(G.nodes(data=True)):
            if data["kind"] == "SOURCE":
                G.add_edge("_S", code, capacity=data["max_supply"])
            elif data["kind"] == "CONSUMER":
                G.add_edge(code, "_T", capacity=data["demand"])
        if "_S" not in G or "_T" not in G:
            return 0
        return nx.maximum_flow_value(G, "_S", "_T")

    return oracle


@pytest.fixture
def write_dataset(tmp_path):
    """
    Write a four-file dataset into tmp_path and return its directory.

    Each argument is the body of one file (header row included).
    """
    def write(cities, reservoirs, stations, pipes, name="dataset"):
        directory = tmp_path / name
        directory.mkdir()
        (directory / "Cities.csv").write_text(cities, encoding="utf-8")
        (directory / "Reservoirs.csv").write_text(reservoirs, encoding="utf-8")
        (directory / "Stations.csv").write_text(stations, encoding="utf-8")
        (directory / "Pipes.csv").write_text(pipes, encoding="utf-8")
        return directory

    return write
