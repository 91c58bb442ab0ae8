"""
Augmenting-path search strategies.

Both strategies look for a path from the super-source to the super-sink in
the residual graph, where a link is usable iff it is enabled, its
destination node is enabled, and it has residual capacity left.

- DepthFirstSearch: classical Ford-Fulkerson search. Returns the first path
  found going deep first; no polynomial bound on the number of
  augmentations in general
- BreadthFirstSearch: Edmonds-Karp search. Returns a shortest (fewest
  links) path, which bounds the number of augmentations by O(V * E)

Customization Guide:
-------------------
To add a strategy, subclass PathSearch and implement ``_search``. It must
mark reached nodes ``visited``, set ``parent_link`` on every node it
reaches, and return True once the sink has been reached. ``find_path``
does the bookkeeping and path unwinding.
"""

from abc import ABC, abstractmethod
from collections import deque
from enum import Enum

from waterflow.core.link import Link
from waterflow.core.network import Network
from waterflow.exceptions import ConfigurationError


class SearchStrategy(Enum):
    """Available augmenting-path strategies."""
    DFS = "dfs"  # Ford-Fulkerson
    BFS = "bfs"  # Edmonds-Karp

    @classmethod
    def from_name(cls, name: "str | SearchStrategy") -> "SearchStrategy":
        """
        Resolve a strategy from its name or algorithm alias.

        Accepts "dfs"/"ford-fulkerson" and "bfs"/"edmonds-karp" in any
        case, with "-" or "_".

        Raises:
            ConfigurationError: For unknown names
        """
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower().replace("_", "-")
        strategy = _ALIASES.get(key)
        if strategy is None:
            raise ConfigurationError(f"Unknown search strategy: {name!r}")
        return strategy

    @property
    def algorithm(self) -> str:
        """Name of the max-flow algorithm the strategy yields."""
        return "Ford-Fulkerson" if self is SearchStrategy.DFS else "Edmonds-Karp"


_ALIASES = {
    "dfs": SearchStrategy.DFS,
    "depth-first": SearchStrategy.DFS,
    "ford-fulkerson": SearchStrategy.DFS,
    "ff": SearchStrategy.DFS,
    "bfs": SearchStrategy.BFS,
    "breadth-first": SearchStrategy.BFS,
    "edmonds-karp": SearchStrategy.BFS,
    "ek": SearchStrategy.BFS,
}


class PathSearch(ABC):
    """
    Abstract base class for augmenting-path searches.

    Example:
        >>> search = BreadthFirstSearch(network)
        >>> path = search.find_path(source.index, sink.index)
        >>> bottleneck = min(link.residual_capacity for link in path)
    """

    strategy: SearchStrategy

    def __init__(self, network: Network):
        self._network = network

    @property
    def network(self) -> Network:
        return self._network

    def find_path(self, source: int, sink: int) -> list[Link]:
        """
        Find one augmenting path.

        Args:
            source: Index of the super-source
            sink: Index of the super-sink

        Returns:
            Links from source to sink, or an empty list if none exists
        """
        self._network.clear_search_state()
        if not self._search(source, sink):
            return []
        return self._unwind(source, sink)

    @abstractmethod
    def _search(self, source: int, sink: int) -> bool:
        """Run the search; return True if the sink was reached."""
        pass

    def _unwind(self, source: int, sink: int) -> list[Link]:
        """Follow parent links back from the sink."""
        path = []
        node = self._network.get_node(sink)
        while node.index != source:
            link = self._network.get_link(node.parent_link)
            path.append(link)
            node = self._network.get_node(link.source)
        path.reverse()
        return path

    def _reach(self, link: Link) -> None:
        target = self._network.get_node(link.target)
        target.visited = True
        target.parent_link = link.index

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class DepthFirstSearch(PathSearch):
    """
    Depth-first augmenting-path search.

    Uses an explicit stack, so deep networks do not hit the interpreter's
    recursion limit. Visits outgoing links in insertion order, like the
    recursive formulation would.
    """

    strategy = SearchStrategy.DFS

    def _search(self, source: int, sink: int) -> bool:
        network = self._network
        network.get_node(source).visited = True
        stack = [iter(network.outgoing_link_indices(source))]

        while stack:
            for link_index in stack[-1]:
                link = network.get_link(link_index)
                if network.get_node(link.target).visited or not network.is_traversable(link):
                    continue
                self._reach(link)
                if link.target == sink:
                    return True
                stack.append(iter(network.outgoing_link_indices(link.target)))
                break
            else:
                # dead end
                stack.pop()

        return False


class BreadthFirstSearch(PathSearch):
    """Breadth-first (Edmonds-Karp) augmenting-path search."""

    strategy = SearchStrategy.BFS

    def _search(self, source: int, sink: int) -> bool:
        network = self._network
        network.get_node(source).visited = True
        queue = deque([source])

        while queue:
            node = queue.popleft()
            for link in network.outgoing_links(node):
                if network.get_node(link.target).visited or not network.is_traversable(link):
                    continue
                self._reach(link)
                if link.target == sink:
                    return True
                queue.append(link.target)

        return False


_SEARCHES = {
    SearchStrategy.DFS: DepthFirstSearch,
    SearchStrategy.BFS: BreadthFirstSearch,
}


def make_search(strategy: "str | SearchStrategy", network: Network) -> PathSearch:
    """Create the PathSearch implementing ``strategy`` over ``network``."""
    return _SEARCHES[SearchStrategy.from_name(strategy)](network)
