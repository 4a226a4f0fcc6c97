"""
forney/graph/nodes.py

Node catalog.

Interface ids, (names):
- TerminalNode:  0 (out)
- AdditionNode:  0 (in1), 1 (in2), 2 (out)          out = in1 + in2
- GainNode:      0 (in1), 1 (out)                   out = A in1
- EqualityNode:  0 .. n-1                           all interfaces carry the same variable
- GaussianNode:  0 (mean), 1 (variance|precision), 2 (out)
"""

from __future__ import annotations

import numbers
from typing import Optional

import numpy as np

from forney.core.errors import StructuralError, TypeMismatchError
from forney.distributions.base import (
    Delta,
    ProbabilityDistribution,
    default_value,
    to_distribution,
)
from forney.distributions.message import Message
from forney.graph.structure import FactorGraph, Node


class TerminalNode(Node):
    """
    Node with a single interface that always sends out its value.

    The value may be replaced between passes (read buffers and wraps do so).
    Once a schedule is compiled, ``value_type`` holds the payload type the
    compiled rules expect from this node.
    """
    interface_names = ("out",)

    def __init__(self, value=1.0, *, id: Optional[str] = None, graph: Optional[FactorGraph] = None):
        super().__init__(id=id, graph=graph)
        self.value = _terminal_value(value, self.id)
        self.value_type: Optional[type] = None

    def set_value(self, value) -> None:
        self.value = _terminal_value(value, self.id)

    def check_value(self, value) -> None:
        """Raise TypeMismatchError if ``value`` does not fit the compiled payload type."""
        if self.value_type is not None and not isinstance(value, self.value_type):
            raise TypeMismatchError(
                f"TerminalNode {self.id} was compiled for {self.value_type.__name__} values, "
                f"got {type(value).__name__}"
            )


def _terminal_value(value, name) -> ProbabilityDistribution:
    if isinstance(value, (Message, type)):
        raise TypeMismatchError(f"TerminalNode {name} can not hold value of type {type(value).__name__}")
    return to_distribution(value)


def ensure_value(node: TerminalNode, value_type: type) -> ProbabilityDistribution:
    """
    Ensure ``node`` holds a value of ``value_type``, installing a default if not.

    Args:
        node: Terminal node
        value_type: A distribution class or a raw Python type (bool, float, int)

    Returns:
        The value held by the node afterwards

    Raises:
        TypeMismatchError: if no default exists for ``value_type``
    """
    if isinstance(value_type, type) and issubclass(value_type, ProbabilityDistribution):
        if isinstance(node.value, value_type):
            return node.value
        node.value = default_value(value_type)
        return node.value

    if value_type is bool:
        if not (isinstance(node.value, Delta) and isinstance(node.value.m, (bool, np.bool_))):
            node.value = Delta(False)
        return node.value

    if isinstance(value_type, type) and issubclass(value_type, numbers.Number):
        if not isinstance(node.value, Delta):
            node.value = Delta()
        return node.value

    raise TypeMismatchError(f"TerminalNode {node.id} cannot hold a value of type {value_type!r}")


class AdditionNode(Node):
    """out = in1 + in2"""
    interface_names = ("in1", "in2", "out")

    def __init__(self, *, id: Optional[str] = None, graph: Optional[FactorGraph] = None):
        super().__init__(id=id, graph=graph)


class GainNode(Node):
    """
    out = A in1, with A a fixed gain.

    A scalar gain is stored as a 1x1 matrix.
    """
    interface_names = ("in1", "out")

    def __init__(self, A=1.0, *, id: Optional[str] = None, graph: Optional[FactorGraph] = None):
        super().__init__(id=id, graph=graph)
        self.A = np.atleast_2d(np.array(A, dtype=float))
        if self.A.ndim != 2:
            raise TypeMismatchError(f"Gain of {self.id} should be a matrix, got shape {self.A.shape}")


class EqualityNode(Node):
    """Equality constraint over ``n`` interfaces (default 3)."""
    symmetric_interfaces = True

    def __init__(self, n: int = 3, *, id: Optional[str] = None, graph: Optional[FactorGraph] = None):
        if n < 2:
            raise StructuralError("EqualityNode needs at least two interfaces")
        super().__init__(n, id=id, graph=graph, names=())


class GaussianNode(Node):
    """
    out ~ N(mean, variance) or N(mean, precision^-1).

    Args:
        form: "variance" or "precision"; names the second interface
    """

    def __init__(self, form: str = "variance", *, id: Optional[str] = None, graph: Optional[FactorGraph] = None):
        if form not in ("variance", "precision"):
            raise ValueError(f"Unknown GaussianNode form: {form!r}")
        self.form = form
        super().__init__(id=id, graph=graph, names=("mean", form, "out"))


class Wrap:
    """
    Time-section feedback between two terminal nodes: after every step the
    message arriving at ``source`` becomes the value of ``sink``.
    """

    def __init__(self, source: Node, sink: Node, *, graph: Optional[FactorGraph] = None):
        if not isinstance(source, TerminalNode) or not isinstance(sink, TerminalNode):
            raise StructuralError("Wrap source and sink should be TerminalNodes")
        if source is sink:
            raise StructuralError("Wrap source and sink should differ")
        self.source = source
        self.sink = sink
        self.graph = graph if graph is not None else source.graph
        self.graph.add_wrap(self)

    def __repr__(self) -> str:
        return f"Wrap({self.source.id} -> {self.sink.id})"
