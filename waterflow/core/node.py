"""
Node module - represents the elements of a water-distribution network.

A network has three kinds of nodes:
- Source: a water reservoir that can deliver at most ``max_supply``
- Consumer: a city (delivery site) with a ``demand`` it should receive
- PassThrough: a pumping station that only routes water

This module provides:
- NodeType: Enum for the node kinds
- Node: Base class with identity and traversal state
- Consumer, Source, PassThrough: The concrete node variants

Design Notes:
------------
- Nodes have an index (int) assigned by the Network; it is the handle used
  everywhere inside the graph (links store indices, not Node objects)
- Nodes have a code (str), the stable identifier used by callers
- Each variant carries its own fields, so code never needs to look up
  kind-specific data through a generic attribute bag
- ``visited`` and ``parent_link`` are scratch state for path searches;
  ``enabled`` persists until the network is reset
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import ClassVar, Optional


class NodeType(Enum):
    """
    Kinds of nodes in a water network.

    Types:
        CONSUMER: Delivery site (city) with a demand
        SOURCE: Reservoir with a maximum supply
        PASS_THROUGH: Pumping station, routes flow only
    """
    CONSUMER = auto()
    SOURCE = auto()
    PASS_THROUGH = auto()


@dataclass(eq=False)
class Node:
    """
    Base class for every node in the network.

    Attributes:
        code: Unique identifier (e.g., "C_1", "R_3", "PS_7")
        index: Handle assigned by the Network on insertion (-1 before)
        enabled: False while the node is shut down by a simulation
        visited: Marked by the current path search
        parent_link: Index of the link that reached this node in the
            current path search
        synthetic: True for the super-source and super-sink

    Note:
        Use one of the subclasses; ``node_type`` is defined per variant.
    """
    code: str
    index: int = -1
    enabled: bool = True
    visited: bool = False
    parent_link: Optional[int] = None
    synthetic: bool = False

    node_type: ClassVar[NodeType]

    @property
    def display_name(self) -> str:
        """Human-readable name, falling back to the code."""
        return self.code

    def is_consumer(self) -> bool:
        """Check if this is a consumer node."""
        return self.node_type == NodeType.CONSUMER

    def is_source(self) -> bool:
        """Check if this is a source node."""
        return self.node_type == NodeType.SOURCE

    def is_pass_through(self) -> bool:
        """Check if this is a pumping station."""
        return self.node_type == NodeType.PASS_THROUGH

    def clear_search_state(self) -> None:
        """Forget what the last path search recorded on this node."""
        self.visited = False
        self.parent_link = None

    def __hash__(self) -> int:
        """Hash by code for use in sets/dicts."""
        return hash(self.code)

    def __eq__(self, other: object) -> bool:
        """Equality by code."""
        if not isinstance(other, Node):
            return NotImplemented
        return self.code == other.code

    def __repr__(self) -> str:
        state = "" if self.enabled else ", disabled"
        return f"{self.__class__.__name__}({self.index}, '{self.code}'{state})"


@dataclass(eq=False, repr=False)
class Consumer(Node):
    """
    A delivery site (city).

    Attributes:
        name: City name
        consumer_id: Numeric id from the input data
        demand: Minimum amount of water the city needs (non-negative)
        population: Informational only

    Example:
        >>> porto = Consumer(code="C_1", name="Porto", consumer_id=1,
        ...                  demand=18, population=231800)
    """
    name: str = ""
    consumer_id: int = 0
    demand: int = 0
    population: int = 0

    node_type: ClassVar[NodeType] = NodeType.CONSUMER

    def __post_init__(self):
        if self.demand < 0:
            raise ValueError(f"Consumer {self.code} has negative demand {self.demand}")

    @property
    def display_name(self) -> str:
        return self.name or self.code


@dataclass(eq=False, repr=False)
class Source(Node):
    """
    A water reservoir.

    Attributes:
        name: Reservoir name
        municipality: Municipality where the reservoir sits
        source_id: Numeric id from the input data
        max_supply: Upper bound on what the reservoir can feed into the network
    """
    name: str = ""
    municipality: str = ""
    source_id: int = 0
    max_supply: int = 0

    node_type: ClassVar[NodeType] = NodeType.SOURCE

    def __post_init__(self):
        if self.max_supply < 0:
            raise ValueError(f"Source {self.code} has negative max supply {self.max_supply}")

    @property
    def display_name(self) -> str:
        return self.name or self.code


@dataclass(eq=False, repr=False)
class PassThrough(Node):
    """A pumping station. It has no capacity of its own."""
    station_id: int = 0

    node_type: ClassVar[NodeType] = NodeType.PASS_THROUGH
