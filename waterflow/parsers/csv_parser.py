"""
Water network parser - reads a dataset of four CSV files.

Data Structure:
--------------
Cities.csv:
    City, Id, Code, Demand, Population
    Porto, 1, C_1, 18, "231,800"

Reservoirs.csv:
    Reservoir, Municipality, Id, Code, Maximum Delivery (m3/sec)
    Castelo de Bode, Tomar, 1, R_1, 40

Stations.csv:
    Id, Code
    1, PS_1

Pipes.csv:
    Service_Point_A, Service_Point_B, Capacity, Direction
    R_1, PS_1, 30, 1
    (Direction 0 = one-way A->B, 1 = both ways)

Numbers may be quoted and contain thousands separators. The first
occurrence of a code wins; later duplicates are ignored.
"""

import warnings
from pathlib import Path
from typing import Callable, Optional, Union

from waterflow.core.network import Network
from waterflow.core.node import Consumer, Node, PassThrough, Source
from waterflow.exceptions import ConfigurationError, MalformedRecordError, RecordWarning
from waterflow.parsers.base import Parser, ParserConfig

DEFAULT_FILES = {
    "cities_file": "Cities.csv",
    "reservoirs_file": "Reservoirs.csv",
    "stations_file": "Stations.csv",
    "pipes_file": "Pipes.csv",
}

ONE_WAY = 0
BOTH_WAYS = 1


def parse_int(text: str) -> int:
    """
    Parse an integer that may be quoted or use thousands separators.

    Raises:
        ValueError: If nothing numeric is left
    """
    cleaned = text.replace('"', '').replace(',', '').replace(' ', '')
    return int(cleaned)


class WaterNetworkParser(Parser):
    """
    Parser for water-supply datasets (cities, reservoirs, stations, pipes).

    Example:
        >>> parser = WaterNetworkParser()
        >>> network = parser.parse("data/sample")
        >>> print(network.summary())
        >>> for error in parser.skipped:
        ...     print(error)

    Configuration Options:
        - cities_file, reservoirs_file, stations_file, pipes_file: file
          names inside the dataset directory (defaults above)
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        """Initialize parser."""
        super().__init__(config)
        self._files = {
            key: self.config.options.get(key, default)
            for key, default in DEFAULT_FILES.items()
        }

    def can_parse(self, path: Union[str, Path]) -> bool:
        """A directory holding all four dataset files."""
        path = Path(path)
        return path.is_dir() and all((path / name).is_file() for name in self._files.values())

    def parse(self, path: Union[str, Path]) -> Network:
        """
        Parse a dataset directory.

        Args:
            path: Directory containing the four CSV files

        Returns:
            The populated Network

        Raises:
            ConfigurationError: If the directory or a file is missing, or a
                pipe has a direction flag other than 0 or 1
        """
        path = Path(path)
        if not path.is_dir():
            raise ConfigurationError(f"Dataset directory not found: {path}")

        return self.parse_files(
            cities=path / self._files["cities_file"],
            reservoirs=path / self._files["reservoirs_file"],
            stations=path / self._files["stations_file"],
            pipes=path / self._files["pipes_file"],
            name=path.name,
        )

    def parse_files(
        self,
        cities: Union[str, Path],
        reservoirs: Union[str, Path],
        stations: Union[str, Path],
        pipes: Union[str, Path],
        name: str = "",
    ) -> Network:
        """Parse explicitly named files into a new Network."""
        self.skipped = []
        network = Network(name=name)

        self._import_nodes(network, cities, self._consumer_from_row)
        self._import_nodes(network, stations, self._station_from_row)
        self._import_nodes(network, reservoirs, self._source_from_row)
        self._import_pipes(network, pipes)

        self._log(
            f"Imported {len(network.consumers())} cities, "
            f"{len(network.sources())} reservoirs, "
            f"{len(network.pass_throughs())} stations, "
            f"{len(network.pipes())} pipe links "
            f"({len(self.skipped)} rows skipped)"
        )

        if self.config.validate:
            for problem in network.validate():
                warnings.warn(f"{network.name or 'network'}: {problem}", RecordWarning)

        return network

    # =========================================================================
    # Nodes
    # =========================================================================

    def _import_nodes(
        self,
        network: Network,
        path: Union[str, Path],
        build: Callable[[str, int, list[str]], Node],
    ) -> None:
        source = Path(path).name
        for line_number, row in self._read_rows(path):
            try:
                node = build(source, line_number, row)
            except MalformedRecordError as error:
                self._skip(error)
                continue
            if not network.add_node(node):
                self._log(f"{source}:{line_number}: duplicate code {node.code} ignored")

    def _consumer_from_row(self, source: str, line_number: int, row: list[str]) -> Consumer:
        fields = self._fields(source, line_number, row, 5)
        # an unquoted population like 1,234 spills into extra cells
        population = "".join(row[4:])
        try:
            return Consumer(
                code=fields[2],
                name=fields[0],
                consumer_id=parse_int(fields[1]),
                demand=parse_int(fields[3]),
                population=parse_int(population),
            )
        except ValueError as exc:
            raise MalformedRecordError(source, line_number, str(exc)) from exc

    def _source_from_row(self, source: str, line_number: int, row: list[str]) -> Source:
        fields = self._fields(source, line_number, row, 5)
        try:
            return Source(
                code=fields[3],
                name=fields[0],
                municipality=fields[1],
                source_id=parse_int(fields[2]),
                max_supply=parse_int("".join(row[4:])),
            )
        except ValueError as exc:
            raise MalformedRecordError(source, line_number, str(exc)) from exc

    def _station_from_row(self, source: str, line_number: int, row: list[str]) -> PassThrough:
        fields = self._fields(source, line_number, row, 2)
        try:
            return PassThrough(code=fields[1], station_id=parse_int(fields[0]))
        except ValueError as exc:
            raise MalformedRecordError(source, line_number, str(exc)) from exc

    # =========================================================================
    # Pipes
    # =========================================================================

    def _import_pipes(self, network: Network, path: Union[str, Path]) -> None:
        source = Path(path).name
        for line_number, row in self._read_rows(path):
            try:
                self._add_pipe(network, source, line_number, row)
            except MalformedRecordError as error:
                self._skip(error)

    def _add_pipe(self, network: Network, source: str, line_number: int, row: list[str]) -> None:
        origin, destination, capacity_text, direction_text = self._fields(source, line_number, row, 4)[:4]

        try:
            direction = parse_int(direction_text)
        except ValueError as exc:
            raise ConfigurationError(
                f"{source}:{line_number}: direction {direction_text!r} is not 0 or 1"
            ) from exc
        if direction not in (ONE_WAY, BOTH_WAYS):
            raise ConfigurationError(
                f"{source}:{line_number}: direction {direction} is not 0 or 1"
            )

        try:
            capacity = parse_int(capacity_text)
        except ValueError as exc:
            raise MalformedRecordError(source, line_number, f"bad capacity {capacity_text!r}") from exc
        if capacity < 0:
            raise MalformedRecordError(source, line_number, f"negative capacity {capacity}")

        for code in (origin, destination):
            if code not in network:
                raise MalformedRecordError(source, line_number, f"unknown service point {code!r}")
        if origin == destination:
            raise MalformedRecordError(source, line_number, f"pipe from {origin} to itself")

        if network.add_link(origin, destination, capacity) is None:
            self._log(f"{source}:{line_number}: duplicate pipe {origin}->{destination} ignored")
        if direction == BOTH_WAYS and network.add_link(destination, origin, capacity) is None:
            self._log(f"{source}:{line_number}: duplicate pipe {destination}->{origin} ignored")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _fields(self, source: str, line_number: int, row: list[str], count: int) -> list[str]:
        if len(row) < count:
            raise MalformedRecordError(
                source, line_number, f"expected {count} fields, got {len(row)}"
            )
        return row

    def _skip(self, error: MalformedRecordError) -> None:
        self.skipped.append(error)
        warnings.warn(f"Skipping record: {error}", RecordWarning)


def load_network(path: Union[str, Path], **config_options) -> Network:
    """
    Parse a dataset directory with a WaterNetworkParser.

    Args:
        path: Dataset directory
        **config_options: Options passed to ParserConfig

    Returns:
        The populated Network
    """
    return WaterNetworkParser(ParserConfig(**config_options)).parse(path)
