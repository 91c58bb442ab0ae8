"""
Core module - the data model of a water-distribution network.

Components:
----------
- Node: Base class for network nodes, with Consumer, Source and
  PassThrough variants
- Link: A directed, capacity-bearing link between two nodes
- Network: The arena holding nodes and links
"""

from waterflow.core.link import Link, LinkType
from waterflow.core.network import SUPER_SINK_CODE, SUPER_SOURCE_CODE, Network
from waterflow.core.node import Consumer, Node, NodeType, PassThrough, Source

__all__ = [
    # Nodes
    "Node",
    "NodeType",
    "Consumer",
    "Source",
    "PassThrough",
    # Links
    "Link",
    "LinkType",
    # Graph
    "Network",
    "SUPER_SOURCE_CODE",
    "SUPER_SINK_CODE",
]
