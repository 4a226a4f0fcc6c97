"""
forney/schedule/subgraph.py

Variational factorization of a factor graph into subgraphs.

Each edge gets a label: the index of the declared group it belongs to, or
the implicit rest group. A node touching edges with two or more labels is a
boundary node. Two edges share a subgraph when they meet at a node and carry
the same label, or when they belong to the same declared group; subgraphs
are the connected components of that relation.

Per subgraph:
- internal_schedule: sum-product style schedule confined to internal edges
- external_schedule: boundary nodes whose marginals summarize the subgraph
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Set, Tuple, Union

import networkx as nx
import structlog

from forney.core.errors import StructuralError
from forney.distributions.product import is_joint_type, joint_marginal_type
from forney.schedule.entry import Schedule

log = structlog.get_logger(__name__)

REST = -1


@dataclass(eq=False)
class Subgraph:
    """
    A cluster of edges sharing one factorization assumption.

    Attributes:
        internal_edges: Edges of this cluster
        internal_schedule: Schedule computing messages inside the cluster
        external_schedule: Boundary nodes, in graph order
        marginal_type: Declared marginal type, or None when undeclared
    """
    internal_edges: Set = field(default_factory=set)
    internal_schedule: Schedule = field(default_factory=Schedule)
    external_schedule: List = field(default_factory=list)
    marginal_type: Optional[type] = None

    def nodes(self) -> Set:
        """Nodes at either end of an internal edge."""
        out = set()
        for edge in self.internal_edges:
            out.update(edge.nodes())
        return out

    def edges(self, include_external: bool = True) -> Set:
        """Internal edges, plus edges leaving the cluster when ``include_external``."""
        if not include_external:
            return set(self.internal_edges)
        out = set()
        for node in self.nodes():
            out.update(node.edges())
        return out

    def external_edges(self) -> Set:
        return self.edges(include_external=True) - self.internal_edges

    def nodes_connected_to_external_edges(self) -> Set:
        return {node for node in self.nodes() if any(e not in self.internal_edges for e in node.edges())}

    def internal_edges_at(self, node) -> List:
        """Internal edges attached to ``node``, in interface order."""
        return [iface.edge for iface in node.interfaces if iface.edge in self.internal_edges]

    def __repr__(self) -> str:
        kind = self.marginal_type.__name__ if self.marginal_type is not None else "rest"
        return f"Subgraph({kind}, edges={len(self.internal_edges)})"


@dataclass
class Factorization:
    """
    Partition of a graph's edges into subgraphs.

    Attributes:
        subgraphs: Subgraphs ordered by their first edge in the graph
        edge_to_subgraph: Edge -> owning subgraph
        joint_marginals: (node, subgraph) -> joint marginal over the
            subgraph's edges at that node
    """
    subgraphs: List[Subgraph] = field(default_factory=list)
    edge_to_subgraph: Dict = field(default_factory=dict)
    joint_marginals: Dict[Tuple, object] = field(default_factory=dict)

    def has_joint(self, node, subgraph: Subgraph) -> bool:
        """Whether ``subgraph`` meets ``node`` through two or more edges."""
        return len(subgraph.internal_edges_at(node)) >= 2

    def touches_joint(self, node) -> bool:
        """Whether ``node`` borders another subgraph through a joint marginal."""
        subgraphs = {self.edge_to_subgraph[e] for e in node.edges()}
        return len(subgraphs) > 1 and any(self.has_joint(node, s) for s in subgraphs)

    def known_marginal_type(self, edge) -> Optional[type]:
        if edge.distribution_type is not None:
            return edge.distribution_type
        subgraph = self.edge_to_subgraph[edge]
        if subgraph.marginal_type is not None and not is_joint_type(subgraph.marginal_type):
            return subgraph.marginal_type
        if edge.marginal is not None:
            return type(edge.marginal)
        return None

    def edge_marginal_type(self, edge) -> type:
        """Static type of the marginal on a single edge."""
        marginal_type = self.known_marginal_type(edge)
        if marginal_type is not None:
            return marginal_type
        raise StructuralError(f"Cannot determine the marginal type of {edge!r}; declare it in a group")

    def slot_marginal_type(self, node, edge) -> type:
        """Static type of the marginal a rule on ``node`` receives for ``edge``."""
        subgraph = self.edge_to_subgraph[edge]
        if self.has_joint(node, subgraph):
            if subgraph.marginal_type is not None and is_joint_type(subgraph.marginal_type):
                return subgraph.marginal_type
            return joint_marginal_type([self.edge_marginal_type(e) for e in subgraph.internal_edges_at(node)])
        return self.edge_marginal_type(edge)

    def __len__(self) -> int:
        return len(self.subgraphs)


GroupKey = Union[object, Tuple]


def factorize(graph, groups: Optional[Mapping[GroupKey, type]] = None) -> Factorization:
    """
    Partition the edges of ``graph`` into subgraphs.

    Args:
        graph: FactorGraph
        groups: Edge, or tuple of edges, -> marginal type of that group.
            A tuple of edges meeting at one node declares a joint marginal.

    Returns:
        Factorization whose subgraphs partition the edge set

    Raises:
        StructuralError: if an edge is declared in two groups or is not in the graph
    """
    groups = dict(groups or {})
    edges = list(graph.iter_edges())
    order = {edge: k for k, edge in enumerate(edges)}

    label: Dict = {edge: REST for edge in edges}
    declared: List[Tuple[Tuple, type]] = []
    for g, (key, marginal_type) in enumerate(groups.items()):
        members = tuple(key) if isinstance(key, (tuple, list, set, frozenset)) else (key,)
        for edge in members:
            if edge not in label:
                raise StructuralError(f"{edge!r} is not an edge of {graph!r}")
            if label[edge] != REST:
                raise StructuralError(f"{edge!r} is declared in more than one group")
            label[edge] = g
        declared.append((members, marginal_type))

    adjacency = nx.Graph()
    adjacency.add_nodes_from(edges)
    for node in graph.nodes.values():
        attached = node.edges()
        for a in range(len(attached)):
            for b in range(a + 1, len(attached)):
                if label[attached[a]] == label[attached[b]]:
                    adjacency.add_edge(attached[a], attached[b])
    for members, _ in declared:
        for a, b in zip(members, members[1:]):
            adjacency.add_edge(a, b)

    factorization = Factorization()
    components = sorted(nx.connected_components(adjacency), key=lambda c: min(order[e] for e in c))
    for component in components:
        g = label[next(iter(component))]
        subgraph = Subgraph(internal_edges=set(component))
        if g != REST:
            subgraph.marginal_type = declared[g][1]
        factorization.subgraphs.append(subgraph)
        for edge in component:
            factorization.edge_to_subgraph[edge] = subgraph

    for subgraph in factorization.subgraphs:
        boundary = subgraph.nodes_connected_to_external_edges()
        subgraph.external_schedule = [n for n in graph.nodes.values() if n in boundary]

    log.debug("graph_factorized", subgraphs=len(factorization.subgraphs), edges=len(edges))
    return factorization
