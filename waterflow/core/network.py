"""
Network module - the graph structure of a water-distribution system.

The Network is the container that owns all nodes and links, and provides
identifier-keyed lookup plus the adjacency access the flow solver needs.

This module provides:
- Network: The main graph class with add/get/remove methods
- SUPER_SOURCE_CODE, SUPER_SINK_CODE: Codes reserved for synthetic nodes

Design Notes:
------------
- Nodes and links live in index-addressed lists (an arena). Everything
  inside the graph refers to them by integer index
- Removing a node or link empties its slot instead of shifting the list,
  so indices held elsewhere never point at a different element. Empty
  slots at the end of a list are dropped, which reclaims everything a
  solve appended once its flow state is cleared
- Adjacency is stored as outgoing and incoming link indices per node
- At most one link per ordered (origin, destination) pair; a bidirectional
  pipe is two links, one each way
- The super-source and super-sink are ordinary Source/Consumer nodes with
  ``synthetic=True``; they only exist between a solve and the next reset
"""

import logging
from collections.abc import Iterator
from typing import Optional, Union

import networkx as nx

from waterflow.core.link import Link, LinkType
from waterflow.core.node import Consumer, Node, NodeType, PassThrough, Source
from waterflow.exceptions import ConfigurationError, LookupMissError

logger = logging.getLogger(__name__)

SUPER_SOURCE_CODE = "__SUPER_SOURCE__"
SUPER_SINK_CODE = "__SUPER_SINK__"

NodeRef = Union[str, int, Node]


class Network:
    """
    Graph structure for water-distribution networks.

    Attributes:
        name: Optional label (e.g., the dataset name)
        nodes: List of live nodes
        links: List of live links
        super_source: The synthetic reservoir (or None)
        super_sink: The synthetic city (or None)

    Example:
        >>> network = Network()
        >>> network.add_node(Source(code="R_1", max_supply=10))
        True
        >>> network.add_node(Consumer(code="C_1", demand=8))
        True
        >>> network.add_link("R_1", "C_1", capacity=12)
        Link(0, 0->1, cap=12, res=0)
        >>> network.add_link("R_1", "C_1", capacity=5) is None
        True
    """

    def __init__(self, name: str = ""):
        """Create an empty network."""
        self.name = name

        # Storage (None marks a reclaimed slot)
        self._nodes: list[Optional[Node]] = []
        self._links: list[Optional[Link]] = []

        # Adjacency lists (node index -> list of link indices)
        self._outgoing: list[list[int]] = []
        self._incoming: list[list[int]] = []

        # Lookups
        self._code_to_index: dict[str, int] = {}
        self._pair_to_link: dict[tuple[int, int], int] = {}

        # Special nodes
        self._super_source_index: Optional[int] = None
        self._super_sink_index: Optional[int] = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def num_nodes(self) -> int:
        """Number of live nodes in the network."""
        return len(self._code_to_index)

    @property
    def num_links(self) -> int:
        """Number of live links in the network."""
        return len(self._pair_to_link)

    @property
    def nodes(self) -> list[Node]:
        """List of live nodes, in insertion order."""
        return [node for node in self._nodes if node is not None]

    @property
    def links(self) -> list[Link]:
        """List of live links, in insertion order."""
        return [link for link in self._links if link is not None]

    @property
    def super_source(self) -> Optional[Source]:
        """The synthetic source node, or None if not built."""
        if self._super_source_index is None:
            return None
        return self._nodes[self._super_source_index]

    @property
    def super_sink(self) -> Optional[Consumer]:
        """The synthetic sink node, or None if not built."""
        if self._super_sink_index is None:
            return None
        return self._nodes[self._super_sink_index]

    @property
    def has_flow_state(self) -> bool:
        """Whether a solve has left super nodes behind."""
        return self._super_source_index is not None or self._super_sink_index is not None

    # =========================================================================
    # Node Operations
    # =========================================================================

    def add_node(self, node: Node) -> bool:
        """
        Add a node to the network.

        The network assigns ``node.index``.

        Args:
            node: A Consumer, Source or PassThrough

        Returns:
            False (and nothing changes) if the code is already present
        """
        if node.code in self._code_to_index:
            return False

        node.index = len(self._nodes)
        self._nodes.append(node)
        self._outgoing.append([])
        self._incoming.append([])
        self._code_to_index[node.code] = node.index
        return True

    def get_node(self, index: int) -> Optional[Node]:
        """
        Get a node by index.

        Returns:
            The node, or None if the index is unknown or was removed
        """
        if 0 <= index < len(self._nodes):
            return self._nodes[index]
        return None

    def get_node_by_code(self, code: str) -> Optional[Node]:
        """
        Get a node by code.

        Returns:
            The node, or None if not found
        """
        index = self._code_to_index.get(code)
        if index is None:
            return None
        return self._nodes[index]

    def get_node_index(self, code: str) -> Optional[int]:
        """Get node index by code, or None if not found."""
        return self._code_to_index.get(code)

    def require_node(self, ref: NodeRef) -> Node:
        """
        Resolve a code, index or Node to a live node of this network.

        Raises:
            LookupMissError: If nothing matches
        """
        if isinstance(ref, Node):
            node = self.get_node(ref.index)
            if node is not ref:
                raise LookupMissError("node", ref.code)
            return node
        if isinstance(ref, int):
            node = self.get_node(ref)
        else:
            node = self.get_node_by_code(ref)
        if node is None:
            raise LookupMissError("node", ref)
        return node

    def __contains__(self, code: object) -> bool:
        return code in self._code_to_index

    def remove_node(self, ref: NodeRef) -> bool:
        """
        Remove a node and every link touching it.

        Args:
            ref: Node code, index or the Node itself

        Returns:
            False if the node was not found
        """
        try:
            node = self.require_node(ref)
        except LookupMissError:
            return False

        index = node.index
        for link_index in list(self._outgoing[index]) + list(self._incoming[index]):
            link = self._links[link_index]
            if link is not None:
                self.remove_link(link)

        self._nodes[index] = None
        del self._code_to_index[node.code]
        if index == self._super_source_index:
            self._super_source_index = None
        if index == self._super_sink_index:
            self._super_sink_index = None
        self._trim_reclaimed_slots()
        return True

    # =========================================================================
    # Link Operations
    # =========================================================================

    def add_link(
        self,
        origin: NodeRef,
        destination: NodeRef,
        capacity: int,
        link_type: LinkType = LinkType.PIPE,
    ) -> Optional[Link]:
        """
        Add a link between two existing nodes.

        Args:
            origin: Code (or index/Node) of the origin node
            destination: Code (or index/Node) of the destination node
            capacity: Fixed capacity of the link
            link_type: Type of the link (see LinkType enum)

        Returns:
            The new link, or None if an endpoint is unknown, the endpoints
            are the same node, or a link origin->destination already exists
        """
        try:
            source = self.require_node(origin)
            target = self.require_node(destination)
        except LookupMissError as exc:
            logger.debug("Link %s->%s not added: %s", origin, destination, exc)
            return None

        if source.index == target.index:
            return None
        if (source.index, target.index) in self._pair_to_link:
            return None

        return self._create_link(source.index, target.index, capacity, link_type)

    def _create_link(
        self,
        source: int,
        target: int,
        capacity: int,
        link_type: LinkType,
    ) -> Link:
        index = len(self._links)
        link = Link(
            index=index,
            source=source,
            target=target,
            capacity=capacity,
            link_type=link_type,
        )
        self._links.append(link)
        self._outgoing[source].append(index)
        self._incoming[target].append(index)
        self._pair_to_link[(source, target)] = index
        return link

    def add_residual_link(self, link: Link) -> Link:
        """
        Create the RESIDUAL link running against ``link``.

        The new link has the same capacity as ``link`` and no residual
        capacity. The caller must make sure no link target->source exists.
        """
        residual = self._create_link(link.target, link.source, link.capacity, LinkType.RESIDUAL)
        residual.residual_capacity = 0
        return residual

    def get_link(self, index: int) -> Optional[Link]:
        """Get a link by index, or None if unknown/removed."""
        if 0 <= index < len(self._links):
            return self._links[index]
        return None

    def link_between(self, source: int, target: int) -> Optional[Link]:
        """Get the link source->target (node indices), or None."""
        index = self._pair_to_link.get((source, target))
        if index is None:
            return None
        return self._links[index]

    def find_link(self, origin: str, destination: str) -> Optional[Link]:
        """
        Get the link origin->destination by node codes.

        Returns:
            The link, or None if either node or the link is missing
        """
        source = self._code_to_index.get(origin)
        target = self._code_to_index.get(destination)
        if source is None or target is None:
            return None
        return self.link_between(source, target)

    def remove_link(self, link: Link) -> bool:
        """
        Detach a link from both endpoints and drop it.

        If the link was paired with a reverse link, the partner forgets
        the pairing.

        Returns:
            False if the link is not part of this network
        """
        if self.get_link(link.index) is not link:
            return False

        self._outgoing[link.source].remove(link.index)
        self._incoming[link.target].remove(link.index)
        del self._pair_to_link[(link.source, link.target)]

        if link.reverse is not None:
            partner = self.get_link(link.reverse)
            if partner is not None and partner.reverse == link.index:
                partner.reverse = None
            link.reverse = None

        self._links[link.index] = None
        self._trim_reclaimed_slots()
        return True

    def _trim_reclaimed_slots(self) -> None:
        """
        Drop reclaimed slots at the end of the node and link lists.

        Solver-owned nodes and links are always appended last, so this keeps
        the lists from growing across repeated solve/reset cycles while the
        indices of live elements stay unchanged.
        """
        while self._links and self._links[-1] is None:
            self._links.pop()
        while self._nodes and self._nodes[-1] is None:
            self._nodes.pop()
            self._outgoing.pop()
            self._incoming.pop()

    def pair_links(self, forward: Link, backward: Link) -> None:
        """Record ``forward`` and ``backward`` as each other's reverse."""
        forward.reverse = backward.index
        backward.reverse = forward.index

    def reverse_of(self, link: Link) -> Optional[Link]:
        """The paired reverse link, or None if not paired yet."""
        if link.reverse is None:
            return None
        return self.get_link(link.reverse)

    # =========================================================================
    # Traversal Operations
    # =========================================================================

    def outgoing_links(self, node: int) -> Iterator[Link]:
        """
        Iterate over outgoing links from a node.

        Args:
            node: Node index

        Yields:
            Link objects leaving the node
        """
        for link_index in self._outgoing[node]:
            yield self._links[link_index]

    def incoming_links(self, node: int) -> Iterator[Link]:
        """
        Iterate over incoming links to a node.

        Args:
            node: Node index

        Yields:
            Link objects entering the node
        """
        for link_index in self._incoming[node]:
            yield self._links[link_index]

    def outgoing_link_indices(self, node: int) -> list[int]:
        """Get list of outgoing link indices from a node."""
        return self._outgoing[node]

    def incoming_link_indices(self, node: int) -> list[int]:
        """Get list of incoming link indices to a node."""
        return self._incoming[node]

    def is_traversable(self, link: Link) -> bool:
        """
        Whether a path search may use ``link``.

        A link is usable when it is enabled, its destination is enabled,
        and it still has residual capacity.
        """
        if not link.has_residual():
            return False
        target = self._nodes[link.target]
        return target is not None and target.enabled

    # =========================================================================
    # Filtering
    # =========================================================================

    def nodes_of_type(
        self,
        node_type: NodeType,
        include_synthetic: bool = False,
    ) -> Iterator[Node]:
        """
        Iterate over nodes of a specific type.

        Args:
            node_type: Type of nodes to return
            include_synthetic: Also yield the super-source/super-sink

        Yields:
            Nodes of the specified type
        """
        for node in self._nodes:
            if node is None or node.node_type != node_type:
                continue
            if node.synthetic and not include_synthetic:
                continue
            yield node

    def links_of_type(self, link_type: LinkType) -> Iterator[Link]:
        """Iterate over links of a specific type."""
        for link in self._links:
            if link is not None and link.link_type == link_type:
                yield link

    def consumers(self) -> list[Consumer]:
        """Real (non-synthetic) consumers."""
        return list(self.nodes_of_type(NodeType.CONSUMER))

    def sources(self) -> list[Source]:
        """Real (non-synthetic) sources."""
        return list(self.nodes_of_type(NodeType.SOURCE))

    def pass_throughs(self) -> list[PassThrough]:
        """Pumping stations."""
        return list(self.nodes_of_type(NodeType.PASS_THROUGH))

    def pipes(self) -> list[Link]:
        """Imported pipes."""
        return list(self.links_of_type(LinkType.PIPE))

    def total_demand(self) -> int:
        """Sum of demand over real consumers."""
        return sum(c.demand for c in self.consumers())

    def total_supply(self) -> int:
        """Sum of max supply over real sources."""
        return sum(s.max_supply for s in self.sources())

    # =========================================================================
    # Super-source / super-sink reduction
    # =========================================================================

    def add_super_source(self) -> Source:
        """
        Add the synthetic source and link it to every real source.

        Each link super-source -> source has capacity equal to that
        source's max supply.

        Raises:
            ConfigurationError: If the network has no sources, the reserved
                code is taken, or a super-source already exists
        """
        if self._super_source_index is not None:
            raise ConfigurationError("Super source already exists")
        sources = self.sources()
        if not sources:
            raise ConfigurationError("Network has no sources; cannot build super source")
        if SUPER_SOURCE_CODE in self._code_to_index:
            raise ConfigurationError(f"Code {SUPER_SOURCE_CODE!r} is reserved")

        super_source = Source(code=SUPER_SOURCE_CODE, name="Super Source", synthetic=True)
        self.add_node(super_source)
        self._super_source_index = super_source.index
        for source in sources:
            self._create_link(super_source.index, source.index, source.max_supply, LinkType.SOURCE_LINK)
        return super_source

    def add_super_sink(self) -> Consumer:
        """
        Add the synthetic sink and link every real consumer to it.

        Each link consumer -> super-sink has capacity equal to that
        consumer's demand.

        Raises:
            ConfigurationError: If the network has no consumers, the reserved
                code is taken, or a super-sink already exists
        """
        if self._super_sink_index is not None:
            raise ConfigurationError("Super sink already exists")
        consumers = self.consumers()
        if not consumers:
            raise ConfigurationError("Network has no consumers; cannot build super sink")
        if SUPER_SINK_CODE in self._code_to_index:
            raise ConfigurationError(f"Code {SUPER_SINK_CODE!r} is reserved")

        super_sink = Consumer(code=SUPER_SINK_CODE, name="Super Sink", synthetic=True)
        self.add_node(super_sink)
        self._super_sink_index = super_sink.index
        for consumer in consumers:
            self._create_link(consumer.index, super_sink.index, consumer.demand, LinkType.SINK_LINK)
        return super_sink

    def sink_link_of(self, consumer: Consumer) -> Optional[Link]:
        """The consumer -> super-sink link, if the sink is built."""
        if self._super_sink_index is None:
            return None
        return self.link_between(consumer.index, self._super_sink_index)

    def link_flow(self, link: Link) -> int:
        """
        Net flow carried by a non-residual link after a solve.

        Zero when no solve state is present or the link was never paired
        with a reverse link (flow only ever moves along paired links).
        """
        if link.is_residual() or link.reverse is None:
            return 0
        return max(0, link.capacity - link.residual_capacity)

    # =========================================================================
    # Reset
    # =========================================================================

    def clear_search_state(self) -> None:
        """Clear ``visited``/``parent_link`` on every node."""
        for node in self._nodes:
            if node is not None:
                node.clear_search_state()

    def clear_flow_state(self) -> None:
        """
        Undo everything a solve left behind, keeping enabled flags.

        Residual links and the super nodes (with their links) are removed,
        pairings and residual capacities are cleared.
        """
        for link in self.links:
            if link.is_residual():
                self.remove_link(link)

        for link in self._links:
            if link is not None:
                link.residual_capacity = 0
                link.reverse = None

        self.clear_search_state()

        if self._super_source_index is not None:
            self.remove_node(self._super_source_index)
        if self._super_sink_index is not None:
            self.remove_node(self._super_sink_index)

    def reset(self) -> None:
        """
        Restore the network to its pre-solve state.

        Clears all flow state (see clear_flow_state) and re-enables every
        node and link. Safe to call repeatedly, including before any solve.
        """
        self.clear_flow_state()
        for node in self._nodes:
            if node is not None:
                node.enabled = True
        for link in self._links:
            if link is not None:
                link.enabled = True

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def to_networkx(self) -> nx.DiGraph:
        """
        Build a networkx DiGraph of the enabled pipes.

        Nodes carry ``kind``, ``demand`` and ``max_supply`` attributes and
        edges carry ``capacity``. Disabled nodes and links are left out and
        solver-owned state is ignored.
        """
        G = nx.DiGraph(name=self.name)
        for node in self._nodes:
            if node is None or node.synthetic or not node.enabled:
                continue
            G.add_node(
                node.code,
                kind=node.node_type.name,
                demand=getattr(node, "demand", 0),
                max_supply=getattr(node, "max_supply", 0),
            )
        for link in self.links_of_type(LinkType.PIPE):
            if not link.enabled:
                continue
            origin = self._nodes[link.source]
            destination = self._nodes[link.target]
            if origin.code in G and destination.code in G:
                G.add_edge(origin.code, destination.code, capacity=link.capacity)
        return G

    def validate(self) -> list[str]:
        """
        Validate the network structure.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        for code, index in self._code_to_index.items():
            node = self._nodes[index]
            if node is None or node.code != code or node.index != index:
                errors.append(f"Code {code!r} maps to stale slot {index}")

        for pair, index in self._pair_to_link.items():
            link = self._links[index]
            if link is None or (link.source, link.target) != pair:
                errors.append(f"Pair {pair} maps to stale link {index}")
                continue
            if self._nodes[link.source] is None or self._nodes[link.target] is None:
                errors.append(f"Link {index} touches a removed node")
            if link.reverse is not None:
                partner = self.get_link(link.reverse)
                if partner is None or partner.reverse != link.index:
                    errors.append(f"Link {index} has an unpaired reverse {link.reverse}")

        if not self.sources():
            errors.append("Network has no sources")
        if not self.consumers():
            errors.append("Network has no consumers")

        return errors

    def summary(self) -> str:
        """
        Return a summary string of the network.

        Returns:
            Human-readable summary
        """
        lines = [
            f"Network{' ' + self.name if self.name else ''}: "
            f"{self.num_nodes} nodes, {self.num_links} links",
            f"  Sources: {len(self.sources())} (total supply {self.total_supply()})",
            f"  Consumers: {len(self.consumers())} (total demand {self.total_demand()})",
            f"  Pumping stations: {len(self.pass_throughs())}",
        ]

        link_type_counts: dict[str, int] = {}
        for link in self.links:
            t = link.link_type.name
            link_type_counts[t] = link_type_counts.get(t, 0) + 1
        lines.append("  Link types: " + ", ".join(
            f"{t}={c}" for t, c in sorted(link_type_counts.items())
        ))

        return "\n".join(lines)

    def __len__(self) -> int:
        return self.num_nodes

    def __repr__(self) -> str:
        return f"Network(nodes={self.num_nodes}, links={self.num_links})"
