"""
Parsers module - input file parsers for water network datasets.

Available Parsers:
-----------------
- Parser: Abstract base class for custom parsers
- WaterNetworkParser: Cities/Reservoirs/Stations/Pipes CSV datasets

Usage:
------
>>> from waterflow.parsers import WaterNetworkParser
>>>
>>> parser = WaterNetworkParser()
>>> network = parser.parse("path/to/dataset")
>>> print(network.summary())

Custom Parsers:
--------------
To read another layout, subclass Parser and implement parse():

>>> from waterflow.parsers import Parser
>>>
>>> class MyParser(Parser):
...     def parse(self, path: str) -> Network:
...         # Read files, add nodes and links
...         return network
"""

from waterflow.parsers.base import Parser, ParserConfig
from waterflow.parsers.csv_parser import WaterNetworkParser, load_network, parse_int

__all__ = [
    "Parser",
    "ParserConfig",
    "WaterNetworkParser",
    "load_network",
    "parse_int",
]
