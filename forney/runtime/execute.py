"""
forney/runtime/execute.py

Schedule execution and the per-section buffer protocol.
"""

from __future__ import annotations

from typing import Optional

import structlog

from forney.core.errors import BufferExhaustionError, StructuralError
from forney.distributions.base import to_distribution
from forney.distributions.product import calculate_marginal
from forney.graph.structure import Edge, FactorGraph
from forney.schedule.entry import Schedule

log = structlog.get_logger(__name__)


def execute_schedule(schedule: Schedule):
    """
    Execute every entry in order.

    Returns:
        Payload produced by the last entry, or None for an empty schedule
    """
    result = None
    for entry in schedule:
        result = entry.execute()
    return result


def check_read_buffers(graph: FactorGraph) -> None:
    """Raise BufferExhaustionError if some read buffer has no value for the current section."""
    for node, buffer in graph.read_buffers.items():
        if graph.current_section >= len(buffer):
            raise BufferExhaustionError(
                f"Read buffer of {node!r} is exhausted at section {graph.current_section} "
                f"(length {len(buffer)})"
            )


def read_buffers_exhausted(graph: FactorGraph) -> bool:
    return any(graph.current_section >= len(buffer) for buffer in graph.read_buffers.values())


def load_read_buffers(graph: FactorGraph, section: Optional[int] = None) -> None:
    """
    Set each buffered terminal to its value for ``section`` (the current one by default).

    Raises:
        TypeMismatchError: if a value does not fit the type its terminal was
            compiled for; no terminal is modified in that case
    """
    section = graph.current_section if section is None else section
    values = [(node, to_distribution(buffer[section])) for node, buffer in graph.read_buffers.items()]
    for node, value in values:
        node.check_value(value)
    for node, value in values:
        node.value = value


def write_buffers(graph: FactorGraph) -> None:
    """Append the current outbound payload or marginal to each write buffer."""
    for target, buffer in graph.write_buffers.items():
        if isinstance(target, Edge):
            if target.tail.message is not None and target.head.message is not None:
                buffer.append(calculate_marginal(target))
            else:
                buffer.append(target.marginal)
        elif target.message is None:
            raise StructuralError(f"Write buffer target {target!r} holds no message; is it in the schedule?")
        else:
            buffer.append(target.message.payload)


def propagate_wraps(graph: FactorGraph) -> None:
    """Feed the message arriving at each wrap source into its sink."""
    values = []
    for wrap in graph.wraps:
        incoming = wrap.source.out.partner
        if incoming is None or incoming.message is None:
            raise StructuralError(
                f"No message arrives at wrap source {wrap.source!r}; is {incoming!r} in the schedule?"
            )
        wrap.sink.check_value(incoming.message.payload)
        values.append((wrap.sink, incoming.message.payload))
    for sink, value in values:
        sink.value = value
