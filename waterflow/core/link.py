"""
Link module - represents directed pipes (and solver-owned links).

A link connects two nodes and carries:
1. A fixed capacity, set at creation
2. Residual capacity, the solver's working state
3. Type information (pipe, super-source/super-sink link, residual link)
4. An optional pairing with the link running the other way

Design Notes:
------------
- Links store source/target as node indices, never Node objects
- The paired reverse link is stored as a link index as well, so removing
  a link can never leave a dangling object reference behind
- ``residual_capacity`` is remaining capacity, not flow. On a reverse link
  it accumulates the flow pushed along its partner
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class LinkType(Enum):
    """
    Kinds of links in the network.

    Types:
        PIPE: Imported pipe
        SOURCE_LINK: Super-source -> reservoir, capacity = max supply
        SINK_LINK: City -> super-sink, capacity = demand
        RESIDUAL: Backward link created by the solver to cancel flow
    """
    PIPE = auto()
    SOURCE_LINK = auto()
    SINK_LINK = auto()
    RESIDUAL = auto()


@dataclass(eq=False)
class Link:
    """
    Represents a directed link in the network.

    Attributes:
        index: Handle assigned by the Network
        source: Index of the origin node
        target: Index of the destination node
        capacity: Fixed, non-negative ceiling on flow
        link_type: Semantic type of the link
        residual_capacity: Remaining capacity during a solve
        enabled: False while the link is shut down by a simulation
        reverse: Index of the paired reverse link, if one was created

    Example:
        >>> pipe = Link(index=0, source=1, target=2, capacity=50)
        >>> pipe.residual_capacity = pipe.capacity
    """
    index: int
    source: int
    target: int
    capacity: int
    link_type: LinkType = LinkType.PIPE
    residual_capacity: int = 0
    enabled: bool = True
    reverse: Optional[int] = None

    def __post_init__(self):
        if self.capacity < 0:
            raise ValueError(f"Link capacity must be non-negative, got {self.capacity}")

    def __setattr__(self, name, value):
        if name == "capacity" and "capacity" in self.__dict__:
            raise AttributeError("Link capacity is fixed at creation")
        super().__setattr__(name, value)

    def is_pipe(self) -> bool:
        """Check if this is an imported pipe."""
        return self.link_type == LinkType.PIPE

    def is_residual(self) -> bool:
        """Check if this is a solver-created backward link."""
        return self.link_type == LinkType.RESIDUAL

    def is_synthetic(self) -> bool:
        """Check if this link touches the super-source or super-sink."""
        return self.link_type in (LinkType.SOURCE_LINK, LinkType.SINK_LINK)

    def has_residual(self) -> bool:
        """Whether the path search may still push flow along this link."""
        return self.enabled and self.residual_capacity > 0

    def __hash__(self) -> int:
        """Hash by index for use in sets/dicts."""
        return hash(self.index)

    def __eq__(self, other: object) -> bool:
        """Equality by index."""
        if not isinstance(other, Link):
            return NotImplemented
        return self.index == other.index

    def __repr__(self) -> str:
        type_str = "" if self.link_type == LinkType.PIPE else f", {self.link_type.name}"
        state = "" if self.enabled else ", disabled"
        return (
            f"Link({self.index}, {self.source}->{self.target}, "
            f"cap={self.capacity}, res={self.residual_capacity}{type_str}{state})"
        )
