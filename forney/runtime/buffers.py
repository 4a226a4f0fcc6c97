"""
forney/runtime/buffers.py

Read and write buffers for streaming execution.

- Read buffer: TerminalNode -> list of values, one per section
- Write buffer: Interface -> log of outbound payloads, or
  Edge -> log of marginals, one entry per section

Buffers are shared by reference: emptying clears the list in place so that
handles held by the caller stay valid; detaching removes the mapping.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Union

import structlog

from forney.core.errors import BufferExhaustionError, StructuralError
from forney.distributions.base import to_distribution
from forney.graph.nodes import TerminalNode, ensure_value
from forney.graph.structure import Edge, FactorGraph, Interface, current_graph

log = structlog.get_logger(__name__)


def _graph_of(target, graph: Optional[FactorGraph]) -> FactorGraph:
    if graph is not None:
        return graph
    if isinstance(target, Interface):
        return target.node.graph
    return target.graph


def attach_read_buffer(
    node: Union[TerminalNode, Sequence[TerminalNode]],
    data: list,
    graph: Optional[FactorGraph] = None,
) -> None:
    """
    Register ``data`` as the value source of a terminal node.

    Args:
        node: TerminalNode, or a list of n nodes forming a mini-batch; node k
            then reads ``data[k::n]``
        data: Values, one per section; a list is kept by reference
        graph: Graph to register on (the node's graph by default)

    Raises:
        StructuralError: if a node is not a TerminalNode
        BufferExhaustionError: if mini-batch data does not split evenly
    """
    if isinstance(node, (list, tuple)):
        n = len(node)
        if n == 0 or len(data) % n != 0:
            raise BufferExhaustionError(f"Mini-batch of {n} nodes cannot split {len(data)} values evenly")
        for k, member in enumerate(node):
            attach_read_buffer(member, list(data[k::n]), graph)
        return

    if not isinstance(node, TerminalNode):
        raise StructuralError(f"A read buffer can only be attached to a TerminalNode, got {node!r}")
    graph = _graph_of(node, graph)
    if not isinstance(data, list):
        data = list(data)
    if data:
        ensure_value(node, type(to_distribution(data[0])))
    graph.read_buffers[node] = data
    log.debug("read_buffer_attached", node=node.id, length=len(data))


def detach_read_buffer(node: TerminalNode, graph: Optional[FactorGraph] = None) -> None:
    graph = _graph_of(node, graph)
    if node not in graph.read_buffers:
        raise KeyError(f"No read buffer attached to {node!r}")
    del graph.read_buffers[node]


def attach_write_buffer(
    target: Union[Interface, Edge],
    buffer: Optional[List] = None,
    graph: Optional[FactorGraph] = None,
) -> List:
    """
    Register a log for the outbound message of an Interface, or the marginal of an Edge.

    Returns:
        The buffer (a new list when none was given)
    """
    if not isinstance(target, (Interface, Edge)):
        raise StructuralError(f"A write buffer target should be an Interface or an Edge, got {target!r}")
    graph = _graph_of(target, graph)
    buffer = [] if buffer is None else buffer
    graph.write_buffers[target] = buffer
    return buffer


def detach_write_buffer(target: Union[Interface, Edge], graph: Optional[FactorGraph] = None) -> None:
    graph = _graph_of(target, graph)
    if target not in graph.write_buffers:
        raise KeyError(f"No write buffer attached to {target!r}")
    del graph.write_buffers[target]


def detach_buffers(graph: Optional[FactorGraph] = None) -> None:
    """Remove every read and write buffer of ``graph``."""
    graph = graph if graph is not None else current_graph()
    graph.read_buffers.clear()
    graph.write_buffers.clear()


def empty_read_buffers(graph: Optional[FactorGraph] = None) -> None:
    """Clear read buffers in place and rewind the section cursor."""
    graph = graph if graph is not None else current_graph()
    for buffer in graph.read_buffers.values():
        buffer.clear()
    graph.current_section = 0


def empty_write_buffers(graph: Optional[FactorGraph] = None) -> None:
    """Clear write buffers in place."""
    graph = graph if graph is not None else current_graph()
    for buffer in graph.write_buffers.values():
        buffer.clear()
