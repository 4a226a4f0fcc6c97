"""
forney/schedule/compiler.py

Schedule compilation.

Walks a schedule in order, carrying each entry's resolved outbound type
forward as the inbound type seen by downstream consumers, resolves one
update rule per entry and binds a zero-argument executable to it.
"""

from __future__ import annotations

import typing
from typing import Callable, Dict, List, Optional

import structlog

from forney.core.errors import DispatchError
from forney.distributions.base import default_value
from forney.distributions.message import InboundType, MarginalType, Message, MessageType
from forney.graph.nodes import TerminalNode
from forney.rules.registry import InferenceMode, RuleRegistry, default_registry
from forney.schedule.entry import Schedule, ScheduleEntry

log = structlog.get_logger(__name__)

Getter = Callable[[], object]


def post_processing_type(fn: Callable, input_type: type) -> type:
    """
    Output type of a post-processing function.

    Read from the return annotation when there is one; otherwise ``fn`` is
    applied to the default member of ``input_type`` and the result's type
    is used.
    """
    try:
        hints = typing.get_type_hints(fn)
    except (NameError, TypeError):
        hints = {}
    out = hints.get("return")
    if isinstance(out, type):
        return out
    return type(fn(default_value(input_type)))


class ScheduleCompiler:
    """
    Resolves types and rules for the entries of a schedule.

    Attributes:
        registry: Rule registry used for dispatch
        resolved: Interface -> payload type its message will carry
    """

    def __init__(self, registry: Optional[RuleRegistry] = None):
        self.registry = registry if registry is not None else default_registry
        self.resolved: Dict[object, type] = {}

    # -------------------------------------------------------------------------
    # Type resolution
    # -------------------------------------------------------------------------

    def message_type(self, interface) -> Optional[type]:
        """Payload type of the message that will sit on ``interface``."""
        if interface in self.resolved:
            return self.resolved[interface]
        if interface.message is not None:
            return type(interface.message.payload)
        if interface.edge is not None and interface.edge.distribution_type is not None:
            return interface.edge.distribution_type
        return None

    def inbound_type(self, entry: ScheduleEntry, k: int) -> InboundType:
        """Slot type of interface ``k`` of the entry's node (never the outbound slot)."""
        interface = entry.node.interfaces[k]
        payload = self.message_type(interface.partner) if interface.partner is not None else None
        if payload is None:
            raise DispatchError(
                f"Cannot determine the type of the message arriving at interface {k} of "
                f"{type(entry.node).__name__} {entry.node.id}; schedule its partner first "
                "or initialize a message there",
                node=entry.node,
                outbound_interface_id=entry.outbound_interface_id,
                mode=entry.mode,
            )
        return MessageType(payload)

    def resolve_types(self, entry: ScheduleEntry) -> None:
        types = []
        for k in range(len(entry.node.interfaces)):
            types.append(None if k == entry.outbound_interface_id else self.inbound_type(entry, k))
        entry.inbound_types = tuple(types)

        rule = self.registry.resolve(entry.node, entry.outbound_interface_id, entry.inbound_types, entry.mode)
        entry.update_rule = rule
        entry.intermediate_outbound_type = rule.resolve_outbound_type(
            entry.node, entry.outbound_interface_id, entry.inbound_types
        )
        if isinstance(entry.node, TerminalNode):
            entry.node.value_type = entry.intermediate_outbound_type
        if entry.post_processing is not None:
            entry.outbound_type = self.post_processing_type(entry)
        else:
            entry.outbound_type = entry.intermediate_outbound_type
        self.resolved[entry.outbound_interface] = entry.outbound_type

    def post_processing_type(self, entry: ScheduleEntry) -> type:
        try:
            return post_processing_type(entry.post_processing, entry.intermediate_outbound_type)
        except Exception as e:
            raise DispatchError(
                f"Cannot determine the output type of post processing "
                f"{getattr(entry.post_processing, '__name__', entry.post_processing)!r} on interface "
                f"{entry.outbound_interface_id} of {type(entry.node).__name__} {entry.node.id}: {e}",
                node=entry.node,
                outbound_interface_id=entry.outbound_interface_id,
                inbound_types=entry.inbound_types,
                mode=entry.mode,
            ) from e

    # -------------------------------------------------------------------------
    # Binding
    # -------------------------------------------------------------------------

    def inbound_getter(self, entry: ScheduleEntry, k: int) -> Getter:
        """Zero-argument accessor for the current payload of inbound slot ``k``."""
        slot = entry.inbound_types[k]
        interface = entry.node.interfaces[k]
        if isinstance(slot, MarginalType):
            edge = interface.edge
            return lambda: edge.marginal
        partner = interface.partner
        return lambda: partner.message.payload

    def bind(self, entry: ScheduleEntry) -> None:
        getters: List[Optional[Getter]] = [
            None if k == entry.outbound_interface_id else self.inbound_getter(entry, k)
            for k in range(len(entry.node.interfaces))
        ]
        node = entry.node
        func = entry.update_rule.func
        interface = entry.outbound_interface
        post = entry.post_processing

        def execute():
            inbounds = [None if g is None else g() for g in getters]
            payload = func(node, *inbounds)
            interface.message = Message(payload)
            if post is not None:
                payload = post(payload)
                interface.message = Message(payload)
            return payload

        entry.bind(execute)

    def compile_entry(self, entry: ScheduleEntry) -> ScheduleEntry:
        self.resolve_types(entry)
        self.bind(entry)
        return entry

    def compile(self, schedule: Schedule) -> Schedule:
        """
        Compile every entry of ``schedule`` in order.

        Raises:
            DispatchError: naming the first entry that cannot be resolved
        """
        for entry in schedule:
            self.compile_entry(entry)
        log.debug("schedule_compiled", entries=len(schedule))
        return schedule


def compile_schedule(
    schedule: Schedule,
    registry: Optional[RuleRegistry] = None,
    mode: Optional[InferenceMode] = None,
) -> Schedule:
    """
    Compile ``schedule`` with a fresh compiler.

    Args:
        schedule: Schedule to compile in place
        registry: Rule registry (default registry when omitted)
        mode: Overrides the mode of every entry when given

    Returns:
        The compiled schedule
    """
    if mode is not None:
        for entry in schedule:
            entry.mode = mode
    return ScheduleCompiler(registry).compile(schedule)
