"""
Unit tests for flow-table analysis and CSV export.
"""

import csv

import pytest

from waterflow import analysis, export
from waterflow.core import Consumer, Network, Source
from waterflow.exceptions import LookupMissError
from waterflow.solver import FlowSolver, SolverConfig


def read_csv(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


@pytest.fixture
def short_network():
    """Three cities sharing a reservoir of 12 against a demand of 20."""
    network = Network()
    network.add_node(Source(code="R_1", max_supply=12))
    network.add_node(Consumer(code="C_1", name="Alpha", demand=10))
    network.add_node(Consumer(code="C_2", name="Beta", demand=6))
    network.add_node(Consumer(code="C_3", name="Gamma", demand=4))
    network.add_link("R_1", "C_1", 10)
    network.add_link("R_1", "C_2", 2)
    network.add_link("R_1", "C_3", 4)
    return network


class TestAnalysis:
    """Tests for the analysis helpers."""

    def test_supply_adequacy(self, short_network):
        delivered = {"C_1": 10, "C_2": 2, "C_3": 0}

        assert analysis.supply_adequacy(short_network, delivered) == {
            "C_1": True, "C_2": False, "C_3": False,
        }
        assert analysis.supply_adequacy(short_network, delivered, ["C_2"]) == {"C_2": False}

    def test_supply_adequacy_unknown_city(self, short_network):
        with pytest.raises(LookupMissError):
            analysis.supply_adequacy(short_network, {"C_1": 10}, ["R_1"])

    def test_water_deficits_sorted(self, short_network):
        delivered = {"C_1": 10, "C_2": 2, "C_3": 0}

        deficits = analysis.water_deficits(short_network, delivered)

        assert [(d.code, d.deficit) for d in deficits] == [("C_2", 4), ("C_3", 4)]
        assert deficits[0].name == "Beta"
        assert deficits[0].demand == 6
        assert deficits[0].delivered == 2

    def test_no_deficits(self, two_source_network):
        assert analysis.water_deficits(two_source_network, {"C_1": 8, "C_2": 6}) == []

    def test_flow_rates(self):
        rates = analysis.flow_rates({"C_1": 6, "C_2": 2, "C_3": 0})

        assert rates == {
            "C_1": pytest.approx(75.0),
            "C_2": pytest.approx(25.0),
            "C_3": pytest.approx(0.0),
        }

    def test_flow_rates_nothing_delivered(self):
        assert analysis.flow_rates({"C_1": 0, "C_2": 0}) == {"C_1": 0.0, "C_2": 0.0}

    def test_top_k(self):
        delivered = {"C_3": 5, "C_1": 9, "C_2": 5, "C_4": 1}

        assert analysis.top_k(delivered, 3) == [("C_1", 9), ("C_2", 5), ("C_3", 5)]
        assert analysis.top_k(delivered, 0) == []
        assert len(analysis.top_k(delivered, 10)) == 4

    def test_top_k_negative(self):
        with pytest.raises(ValueError):
            analysis.top_k({"C_1": 1}, -1)

    def test_pipe_metrics_after_solve(self, short_network):
        """The reservoir runs dry with 4 units of pipe capacity unused."""
        FlowSolver(short_network, SolverConfig(strategy="bfs")).solve()

        metrics = analysis.pipe_metrics(short_network)

        flows = sum(short_network.link_flow(pipe) for pipe in short_network.pipes())
        assert flows == 12
        assert metrics.count == 3
        assert metrics.average == pytest.approx((16 - 12) / 3)
        assert metrics.max_difference >= 0

    def test_pipe_metrics_values(self, single_pipe_network):
        single_pipe_network.add_node(Consumer(code="C_2", demand=1))
        single_pipe_network.add_link("R_1", "C_2", 5)
        single_pipe_network.get_node_by_code("C_2").enabled = False
        FlowSolver(single_pipe_network).solve()

        metrics = analysis.pipe_metrics(single_pipe_network)

        assert metrics.count == 2
        assert metrics.average == pytest.approx(2.5)
        assert metrics.variance == pytest.approx(6.25)
        assert metrics.max_difference == 5

    def test_pipe_metrics_unsolved(self, single_pipe_network):
        metrics = analysis.pipe_metrics(single_pipe_network)

        assert metrics.average == pytest.approx(3.0)
        assert metrics.variance == pytest.approx(0.0)
        assert metrics.max_difference == 3

    def test_pipe_metrics_no_pipes(self):
        metrics = analysis.pipe_metrics(Network())

        assert metrics.count == 0
        assert metrics.average == 0.0
        assert "Pipes: 0" in metrics.summary()


class TestExport:
    """Tests for the CSV writers."""

    def test_write_flow_table(self, tmp_path, two_source_network):
        path = export.write_flow_table(
            tmp_path / "out" / "flows.csv", two_source_network, {"C_1": 8, "C_2": 6},
        )

        assert read_csv(path) == [
            ["Name", "Code", "Flow"],
            ["Alpha", "C_1", "8"],
            ["Beta", "C_2", "6"],
        ]

    def test_write_boolean_table(self, tmp_path):
        path = export.write_boolean_table(tmp_path / "ok.csv", {"C_1": True, "C_2": False})

        assert read_csv(path) == [["Code", "Value"], ["C_1", "Yes"], ["C_2", "No"]]

    def test_write_pipe_boolean_table(self, tmp_path):
        path = export.write_pipe_boolean_table(
            tmp_path / "pipes.csv", {("R_1", "PS_1"): False, ("PS_1", "C_1"): True},
        )

        assert read_csv(path) == [
            ["Origin", "Destination", "Value"],
            ["R_1", "PS_1", "No"],
            ["PS_1", "C_1", "Yes"],
        ]

    def test_write_rate_table(self, tmp_path, two_source_network):
        path = export.write_rate_table(
            tmp_path / "rates.csv", two_source_network, {"C_1": 57.142857, "C_9": 0.0},
        )

        assert read_csv(path) == [
            ["Name", "Code", "Rate"],
            ["Alpha", "C_1", "57.14"],
            ["C_9", "C_9", "0.00"],
        ]

    def test_write_deficit_table(self, tmp_path, short_network):
        deficits = analysis.water_deficits(short_network, {"C_1": 10, "C_2": 2, "C_3": 1})
        path = export.write_deficit_table(tmp_path / "deficits.csv", deficits)

        assert read_csv(path) == [
            ["Code", "Name", "Demand", "Delivered", "Deficit"],
            ["C_2", "Beta", "6", "2", "4"],
            ["C_3", "Gamma", "4", "1", "3"],
        ]

    def test_empty_table_has_header(self, tmp_path):
        path = export.write_boolean_table(tmp_path / "empty.csv", {})
        assert read_csv(path) == [["Code", "Value"]]
