"""
Graph module: factor graph structure, node catalog and composite nodes.
"""

from forney.graph.structure import (
    Interface,
    Node,
    Edge,
    FactorGraph,
    current_graph,
    set_current_graph,
)
from forney.graph.nodes import (
    TerminalNode,
    AdditionNode,
    GainNode,
    EqualityNode,
    GaussianNode,
    Wrap,
    ensure_value,
)
from forney.graph.composite import (
    CompositeStrategy,
    CompositeNode,
    PortNode,
    GainAdditionCompositeNode,
)

__all__ = [
    # structure
    "Interface",
    "Node",
    "Edge",
    "FactorGraph",
    "current_graph",
    "set_current_graph",
    # nodes
    "TerminalNode",
    "AdditionNode",
    "GainNode",
    "EqualityNode",
    "GaussianNode",
    "Wrap",
    "ensure_value",
    # composite
    "CompositeStrategy",
    "CompositeNode",
    "PortNode",
    "GainAdditionCompositeNode",
]
