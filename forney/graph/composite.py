"""
forney/graph/composite.py

Composite nodes: nodes that own an internal factor graph.

A composite node computes an outbound message in one of two ways, fixed at
construction:
- CLOSED_FORM: a dedicated update rule evaluates the message directly
- INTERNAL_SCHEDULE: the inbound messages are placed on port terminals of
  the internal graph and a cached internal schedule is executed

Closed-form composites may still delegate interfaces for which no shortcut
rule exists.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from forney.graph.nodes import AdditionNode, GainNode, TerminalNode
from forney.graph.structure import Edge, FactorGraph, Interface, Node


class CompositeStrategy(Enum):
    """How a composite node produces outbound messages."""
    CLOSED_FORM = 1
    INTERNAL_SCHEDULE = 2


class PortNode(TerminalNode):
    """Terminal standing in for one external interface inside a composite node."""


class CompositeNode(Node):
    """
    Base class for composite nodes.

    Attributes:
        internal_graph: Private graph holding the internal nodes
        ports: External interface id -> port terminal on the internal graph
        strategy: CompositeStrategy chosen at construction
    """

    def __init__(self, strategy: CompositeStrategy, *, id: Optional[str] = None, graph: Optional[FactorGraph] = None):
        super().__init__(id=id, graph=graph)
        self.strategy = strategy
        self.internal_graph = FactorGraph()
        self.ports: Dict[int, PortNode] = {}

    def bind(self, interface: Interface, child: Interface) -> None:
        """Let ``interface`` stand for internal ``child``, attaching a port terminal to it."""
        interface.child = child
        port = PortNode(id=f"{self.id}_port_{interface.name or interface.id}", graph=self.internal_graph)
        Edge(port.out, child, graph=self.internal_graph)
        self.ports[interface.id] = port

    def delegates(self, outbound_interface_id: int) -> bool:
        """Whether the message on this interface comes from the internal schedule."""
        return self.strategy is CompositeStrategy.INTERNAL_SCHEDULE


class GainAdditionCompositeNode(CompositeNode):
    """
    out = A in1 + in2

             | in1
         ____|____
         |   v   |
         |  [A]  |
     in2 |   v   | out
    -----|->[+]--|---->
         |_______|

    Args:
        A: Fixed gain matrix
        use_composite_update_rules: Use the closed-form rules where available
    """
    interface_names = ("in1", "in2", "out")

    def __init__(
        self,
        A=1.0,
        use_composite_update_rules: bool = True,
        *,
        id: Optional[str] = None,
        graph: Optional[FactorGraph] = None,
    ):
        strategy = CompositeStrategy.CLOSED_FORM if use_composite_update_rules else CompositeStrategy.INTERNAL_SCHEDULE
        super().__init__(strategy, id=id, graph=graph)
        self.use_composite_update_rules = use_composite_update_rules

        self.fixed_gain_node = GainNode(A, id=f"{self.id}_internal_gain", graph=self.internal_graph)
        self.addition_node = AdditionNode(id=f"{self.id}_internal_addition", graph=self.internal_graph)
        Edge(self.fixed_gain_node.out, self.addition_node.in1, graph=self.internal_graph)
        self.A = self.fixed_gain_node.A

        self.bind(self.in1, self.fixed_gain_node.in1)
        self.bind(self.in2, self.addition_node.in2)
        self.bind(self.out, self.addition_node.out)

    def delegates(self, outbound_interface_id: int) -> bool:
        # No shortcut rule towards in1
        return super().delegates(outbound_interface_id) or outbound_interface_id == 0
