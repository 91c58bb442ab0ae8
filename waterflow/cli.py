"""
Command-line interface for waterflow.

Usage:
    waterflow summary --data data/sample
    waterflow flow --data data/sample --strategy dfs --cities C_1 C_2
    waterflow deficit --data data/sample
    waterflow rates --data data/sample
    waterflow top 5 --data data/sample
    waterflow metrics --data data/sample
    waterflow shutdown R_2 PS_1 R_1:PS_3 --data data/sample
    waterflow shutdown --kind source --data data/sample
    waterflow each pipe --data data/sample --output results/

Tables are written as CSV files into the output directory
(``config.output_path`` unless ``--output`` is given).
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from waterflow import analysis, export
from waterflow.config import config, configure_logging
from waterflow.core.network import Network
from waterflow.exceptions import WaterFlowError
from waterflow.parsers import ParserConfig, WaterNetworkParser
from waterflow.resilience import ResilienceSimulator
from waterflow.solver import FlowSolution, FlowSolver, SolverConfig

logger = logging.getLogger("waterflow.cli")

KIND_CHOICES = ["source", "station", "pipe"]


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--data", type=Path, default=None,
                        help="Dataset directory (default: <data_path>/sample)")
    common.add_argument("--strategy", default=None,
                        help="Path search: bfs/edmonds-karp or dfs/ford-fulkerson")
    common.add_argument("--max-iterations", type=int, default=None,
                        help="Augmentation budget per solve (0 = unlimited)")
    common.add_argument("--max-time", type=float, default=None,
                        help="Seconds per solve (0 = unlimited)")
    common.add_argument("--output", type=Path, default=None,
                        help="Directory for exported CSV files")
    common.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    common.add_argument("--log-file", type=Path, default=None, help="Also log to this file")

    parser = argparse.ArgumentParser(
        prog="waterflow",
        description="Max-flow and failure analysis for water supply networks",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("summary", parents=[common], help="Describe the network")

    flow = commands.add_parser("flow", parents=[common], help="Max flow per city")
    flow.add_argument("--cities", nargs="+", default=None, help="Only report these cities")

    commands.add_parser("deficit", parents=[common], help="Cities short of their demand")
    commands.add_parser("rates", parents=[common], help="Share of total flow per city")

    top = commands.add_parser("top", parents=[common], help="Cities receiving the most water")
    top.add_argument("k", type=int)

    commands.add_parser("metrics", parents=[common], help="Unused pipe capacity statistics")

    shutdown = commands.add_parser("shutdown", parents=[common],
                                   help="Disable elements and report the impact")
    shutdown.add_argument("targets", nargs="*",
                          help="Node codes, or ORIGIN:DESTINATION for pipes")
    shutdown.add_argument("--kind", choices=KIND_CHOICES, default=None,
                          help="Disable all elements of this kind")

    each = commands.add_parser("each", parents=[common],
                               help="Disable each element of a kind in turn")
    each.add_argument("kind", choices=KIND_CHOICES)

    return parser


def _load(args) -> Network:
    data = args.data or config.get_dataset_path("sample")
    parser = WaterNetworkParser(ParserConfig(verbose=args.verbose))
    network = parser.parse(data)
    if parser.skipped:
        logger.warning("%d malformed rows skipped", len(parser.skipped))
    return network


def _solver_config(args) -> SolverConfig:
    return SolverConfig.from_global(
        strategy=args.strategy,
        max_iterations=args.max_iterations,
        max_time=args.max_time,
    )


def _output(args, name: str) -> Path:
    directory = args.output or config.output_path
    return Path(directory) / name


def _solve(network: Network, args) -> FlowSolution:
    solution = FlowSolver(network, _solver_config(args)).solve()
    if not solution.is_optimal:
        logger.warning("Solve stopped early (%s); flows are not maximal", solution.status.name)
    return solution


def _parse_target(text: str):
    if ":" in text:
        origin, destination = text.split(":", 1)
        return origin.strip(), destination.strip()
    return text.strip()


def _print_table(rows) -> None:
    for row in rows:
        print("  ".join(str(cell) for cell in row))


def cmd_summary(network: Network, args) -> int:
    print(network.summary())
    return 0


def cmd_flow(network: Network, args) -> int:
    solution = _solve(network, args)
    network.reset()
    delivered = solution.delivered
    if args.cities:
        delivered = solution.for_consumers(args.cities)
        missing = sorted(set(args.cities) - set(delivered))
        if missing:
            logger.warning("Not cities of this network: %s", ", ".join(missing))

    _print_table(sorted(delivered.items()))
    print(f"Total: {sum(delivered.values())}")
    export.write_flow_table(_output(args, "flows.csv"), network, delivered)
    return 0


def cmd_deficit(network: Network, args) -> int:
    solution = _solve(network, args)
    network.reset()
    deficits = analysis.water_deficits(network, solution.delivered)
    if not deficits:
        print("Every city receives its full demand")
    for d in deficits:
        print(f"{d.code}  {d.name}  demand={d.demand}  delivered={d.delivered}  deficit={d.deficit}")

    export.write_deficit_table(_output(args, "deficits.csv"), deficits)
    export.write_boolean_table(
        _output(args, "enough_water.csv"),
        analysis.supply_adequacy(network, solution.delivered),
    )
    return 0


def cmd_rates(network: Network, args) -> int:
    solution = _solve(network, args)
    network.reset()
    rates = analysis.flow_rates(solution.delivered)
    _print_table((code, f"{rate:.2f}%") for code, rate in sorted(rates.items()))
    export.write_rate_table(_output(args, "rates.csv"), network, rates)
    return 0


def cmd_top(network: Network, args) -> int:
    solution = _solve(network, args)
    network.reset()
    ranked = analysis.top_k(solution.delivered, args.k)
    _print_table(ranked)
    export.write_flow_table(_output(args, f"top_{args.k}.csv"), network, dict(ranked))
    return 0


def cmd_metrics(network: Network, args) -> int:
    _solve(network, args)
    metrics = analysis.pipe_metrics(network)
    network.reset()
    print(metrics.summary())
    return 0


def cmd_shutdown(network: Network, args) -> int:
    simulator = ResilienceSimulator(network, _solver_config(args))
    if args.kind == "source":
        report = simulator.shutdown_sources()
    elif args.kind == "station":
        report = simulator.shutdown_pass_throughs()
    elif args.kind == "pipe":
        report = simulator.shutdown_pipes()
    elif args.targets:
        report = simulator.shutdown([_parse_target(t) for t in args.targets])
    else:
        logger.error("Give targets to disable or --kind")
        return 2

    print(report.summary())
    if report.affected:
        export.write_rate_table(_output(args, "declines.csv"), network, report.declines)
    return 0


def cmd_each(network: Network, args) -> int:
    simulator = ResilienceSimulator(network, _solver_config(args))
    if args.kind == "source":
        safety = simulator.disable_each_source()
    elif args.kind == "station":
        safety = simulator.disable_each_pass_through()
    else:
        safety = simulator.disable_each_pipe()

    for key, safe in safety.results.items():
        label = "->".join(key) if isinstance(key, tuple) else key
        print(f"{label}  {'safe' if safe else 'affects supply'}")

    path = _output(args, f"disable_each_{args.kind}.csv")
    if args.kind == "pipe":
        export.write_pipe_boolean_table(path, safety.results)
    else:
        export.write_boolean_table(path, safety.results)
    return 0


COMMANDS = {
    "summary": cmd_summary,
    "flow": cmd_flow,
    "deficit": cmd_deficit,
    "rates": cmd_rates,
    "top": cmd_top,
    "metrics": cmd_metrics,
    "shutdown": cmd_shutdown,
    "each": cmd_each,
}


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.verbose else None, args.log_file)

    try:
        network = _load(args)
        return COMMANDS[args.command](network, args)
    except WaterFlowError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
