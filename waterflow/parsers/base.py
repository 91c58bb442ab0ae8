"""
Parser base module - abstract base class for network importers.

All parsers should inherit from Parser and implement the parse() method.
This ensures a consistent interface across different file layouts.

Design Notes:
------------
- parse() returns a populated Network
- Bad rows are skipped with a RecordWarning and collected in
  ``parser.skipped``; only configuration errors abort an import
- Parsers can have configuration options
"""

import csv
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from waterflow.core.network import Network
from waterflow.exceptions import ConfigurationError, MalformedRecordError

logger = logging.getLogger(__name__)


@dataclass
class ParserConfig:
    """
    Configuration options for parsers.

    Attributes:
        validate: Whether to validate the parsed network
        verbose: Whether to log progress at INFO level
        encoding: File encoding (default UTF-8, BOM tolerated)
        delimiter: Field delimiter
        options: Additional parser-specific options
    """
    validate: bool = True
    verbose: bool = False
    encoding: str = "utf-8-sig"
    delimiter: str = ","
    options: Dict[str, Any] = field(default_factory=dict)


class Parser(ABC):
    """
    Abstract base class for network parsers.

    A Parser reads files and constructs a Network.

    Subclasses must implement:
    - parse(): Read files and return a Network

    Optional overrides:
    - can_parse(): Check if parser can handle a path
    - get_format_name(): Return human-readable format name
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        """
        Initialize parser with configuration.

        Args:
            config: Parser configuration (uses defaults if None)
        """
        self.config = config or ParserConfig()
        self.skipped: list[MalformedRecordError] = []

    @abstractmethod
    def parse(self, path: Union[str, Path]) -> Network:
        """
        Parse files and return a Network.

        Args:
            path: Path to file or directory containing network data

        Returns:
            Constructed Network

        Raises:
            ConfigurationError: If input files are missing or the data
                cannot describe a valid network
        """
        pass

    def can_parse(self, path: Union[str, Path]) -> bool:
        """
        Check if this parser can handle the given path.

        Default implementation checks if path exists.
        """
        return Path(path).exists()

    def get_format_name(self) -> str:
        """
        Return human-readable format name.

        Returns:
            Format name (e.g., "WaterNetwork")
        """
        return self.__class__.__name__.replace("Parser", "")

    def _log(self, message: str) -> None:
        """Log a progress message (INFO when verbose, DEBUG otherwise)."""
        level = logging.INFO if self.config.verbose else logging.DEBUG
        logger.log(level, "[%s] %s", self.get_format_name(), message)

    def _read_rows(self, path: Union[str, Path]) -> Iterator[tuple[int, list[str]]]:
        """
        Read a delimited file, skipping the header and blank rows.

        Cells are stripped and trailing empty cells dropped.

        Yields:
            (line_number, cells) pairs; line numbers are 1-based

        Raises:
            ConfigurationError: If the file doesn't exist
        """
        path = Path(path)
        if not path.is_file():
            raise ConfigurationError(f"Input file not found: {path}")

        with open(path, 'r', encoding=self.config.encoding, newline='') as f:
            reader = csv.reader(f, delimiter=self.config.delimiter)
            next(reader, None)
            for cells in reader:
                cells = [cell.strip() for cell in cells]
                while cells and not cells[-1]:
                    cells.pop()
                if cells:
                    yield reader.line_num, cells

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
