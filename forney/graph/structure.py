"""
forney/graph/structure.py

Forney-style factor graph structure.

A factor graph consists of:
- Nodes (factors), each with an ordered list of Interfaces
- Edges (variables), each joining a tail and a head Interface
- Wraps, which feed the output of one time section into the next

Interfaces hold the current Message flowing out of their node; the partner
link of an Interface is a plain reference, the Edge owns the relation.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

import networkx as nx
import structlog

from forney.core.errors import StructuralError
from forney.core.registry import IDRegistry

log = structlog.get_logger(__name__)

_current: Optional["FactorGraph"] = None


def current_graph() -> "FactorGraph":
    """Return the active construction target, creating one if none is active."""
    global _current
    if _current is None:
        _current = FactorGraph()
    return _current


def set_current_graph(graph: Optional["FactorGraph"]) -> Optional["FactorGraph"]:
    """Make ``graph`` the active construction target; returns the previous one."""
    global _current
    previous, _current = _current, graph
    return previous


class Interface:
    """
    One port of a node.

    Attributes:
        node: Owning node
        name: Optional handle (``"out"``, ``"in1"``, ...)
        edge: Edge attached to this interface, if connected
        partner: Interface on the other end of ``edge``
        message: Outbound message most recently computed on this interface
        internal_schedule: Cached schedule when ``node`` is composite
        child: Interface inside a composite node that this one stands for
    """

    def __init__(self, node: "Node", name: Optional[str] = None):
        self.node = node
        self.name = name
        self.edge: Optional[Edge] = None
        self.partner: Optional[Interface] = None
        self.message = None
        self.internal_schedule = None
        self.child: Optional[Interface] = None

    @property
    def id(self) -> int:
        """Position of this interface on its node (0-based)."""
        return self.node.interface_id(self)

    @property
    def handle(self) -> str:
        return self.name or ""

    def __repr__(self) -> str:
        label = f" ({self.name})" if self.name else ""
        return f"Interface {self.id}{label} of {type(self.node).__name__} {self.node.id}"


class Node:
    """
    Base class for factor nodes.

    Subclasses set ``interface_names``; the node then exposes each interface
    both by position (``node.interfaces[k]``) and by name (``node.out``).
    """
    interface_names: Sequence[str] = ()
    symmetric_interfaces: bool = False

    def __init__(
        self,
        n_interfaces: Optional[int] = None,
        *,
        id: Optional[str] = None,
        graph: Optional["FactorGraph"] = None,
        names: Optional[Sequence[str]] = None,
    ):
        names = list(names if names is not None else self.interface_names)
        if n_interfaces is None:
            n_interfaces = len(names)
        names = names + [None] * (n_interfaces - len(names))

        self.interfaces: List[Interface] = [Interface(self, name) for name in names]
        self.i: Dict[str, Interface] = {}
        for iface in self.interfaces:
            if iface.name is not None:
                self.i[iface.name] = iface
                setattr(self, iface.name, iface)

        self.graph = graph if graph is not None else current_graph()
        self.id = self.graph.add_node(self, id)

    def interface_id(self, interface: Interface) -> int:
        for k, iface in enumerate(self.interfaces):
            if iface is interface:
                return k
        raise StructuralError(f"Interface does not belong to {type(self).__name__} {self.id}")

    def first_free_interface(self) -> Interface:
        """The single unconnected interface an edge may attach to when given the node itself."""
        if len(self.interfaces) != 1 and not self.symmetric_interfaces:
            raise StructuralError(
                f"Cannot pick an interface of {type(self).__name__} {self.id} implicitly; pass the interface"
            )
        for iface in self.interfaces:
            if iface.partner is None:
                return iface
        raise StructuralError(f"No free interface on {type(self).__name__} {self.id}")

    def edges(self) -> List["Edge"]:
        return [iface.edge for iface in self.interfaces if iface.edge is not None]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.id!r})"


class Edge:
    """
    A variable: a directed pair of interfaces (tail -> head).

    Attributes:
        tail: Interface sending the forward message
        head: Interface sending the backward message
        distribution_type: Optional declared payload family
        marginal: Cached marginal distribution
    """

    def __init__(
        self,
        tail: Union[Interface, Node],
        head: Union[Interface, Node],
        distribution_type: Optional[type] = None,
        *,
        id: Optional[str] = None,
        graph: Optional["FactorGraph"] = None,
    ):
        if isinstance(tail, Node):
            tail = tail.first_free_interface()
        if isinstance(head, Node):
            head = head.first_free_interface()
        if tail is head:
            raise StructuralError(f"Cannot connect {tail!r} to itself")
        for iface in (tail, head):
            if iface.partner is not None or iface.edge is not None:
                raise StructuralError(f"{iface!r} is already connected")

        self.tail = tail
        self.head = head
        self.distribution_type = distribution_type
        self.marginal = None

        tail.edge = self
        head.edge = self
        tail.partner = head
        head.partner = tail

        self.graph = graph if graph is not None else tail.node.graph
        self.id = self.graph.add_edge(self, id)

    def is_consistent(self) -> bool:
        """Tail and head point at each other and at this edge."""
        return (
            self.tail.partner is self.head
            and self.head.partner is self.tail
            and self.tail.edge is self
            and self.head.edge is self
        )

    def nodes(self):
        return self.tail.node, self.head.node

    def __repr__(self) -> str:
        return f"Edge({self.id!r}: {self.tail.node.id} -> {self.head.node.id})"


class FactorGraph:
    """
    Container for nodes, edges and the streaming state.

    Maintains:
    - Nodes and edges by id, in insertion order
    - Wraps between time sections
    - Read buffers (TerminalNode -> list of values)
    - Write buffers (Interface or Edge -> list of produced payloads)
    - The ``current_section`` cursor of streaming execution
    """

    def __init__(self):
        self.nodes: Dict[str, Node] = {}
        self.edges: Dict[str, Edge] = {}
        self.wraps: List["Wrap"] = []
        self.read_buffers: Dict[Node, list] = {}
        self.write_buffers: Dict[Any, list] = {}
        self.current_section: int = 0
        self.ids = IDRegistry()
        self._previous: List[Optional[FactorGraph]] = []

    def __enter__(self) -> "FactorGraph":
        self._previous.append(set_current_graph(self))
        return self

    def __exit__(self, *exc) -> None:
        set_current_graph(self._previous.pop())

    def add_node(self, node: Node, ident: Optional[str] = None) -> str:
        ident = ident if ident is not None else self.ids.generate("node", type(node).__name__)
        self.ids.register("node", ident)
        self.nodes[ident] = node
        return ident

    def add_edge(self, edge: Edge, ident: Optional[str] = None) -> str:
        ident = ident if ident is not None else self.ids.generate("edge", "Edge")
        self.ids.register("edge", ident)
        self.edges[ident] = edge
        return ident

    def add_wrap(self, wrap: "Wrap") -> None:
        for other in self.wraps:
            if other.source is wrap.source:
                raise StructuralError(f"{wrap.source!r} is already the source of a wrap")
        self.wraps.append(wrap)
        log.debug("wrap_added", source=wrap.source.id, sink=wrap.sink.id)

    def node(self, ident: str) -> Node:
        if ident not in self.nodes:
            raise KeyError(f"Node not found: {ident}")
        return self.nodes[ident]

    def edge(self, ident: str) -> Edge:
        if ident not in self.edges:
            raise KeyError(f"Edge not found: {ident}")
        return self.edges[ident]

    def iter_edges(self) -> Iterator[Edge]:
        return iter(self.edges.values())

    def to_networkx(self) -> nx.MultiGraph:
        """
        Export the topology.

        Returns:
            MultiGraph with node ids as vertices and one keyed edge per Edge
            (attribute ``edge`` holds the Edge object).
        """
        g = nx.MultiGraph()
        for ident, node in self.nodes.items():
            g.add_node(ident, node=node)
        for ident, edge in self.edges.items():
            g.add_edge(edge.tail.node.id, edge.head.node.id, key=ident, edge=edge)
        return g

    def __repr__(self) -> str:
        return f"FactorGraph(nodes={len(self.nodes)}, edges={len(self.edges)})"
