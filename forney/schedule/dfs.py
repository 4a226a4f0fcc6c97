"""
forney/schedule/dfs.py

Schedule synthesis by depth-first dependency search.

To compute the outbound message on an interface, the messages arriving at
every other interface of its node must exist first. The search walks those
dependencies recursively and returns the interfaces in an order where every
dependency precedes its dependent.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Set

import structlog

from forney.core.errors import CycleError, StructuralError

log = structlog.get_logger(__name__)


def generate_schedule_by_dfs(
    outbound_interface,
    backtrace: Optional[List] = None,
    call_list: Optional[List] = None,
    *,
    allowed_edges: Optional[Set] = None,
    breaker_sites: Optional[Set] = None,
) -> List:
    """
    Find the interfaces whose messages must be computed to obtain the
    message on ``outbound_interface``.

    Args:
        outbound_interface: Goal interface
        backtrace: Interfaces already scheduled, extended in place
        call_list: Interfaces on the active recursion path
        allowed_edges: When non-empty, the search never leaves these edges
        breaker_sites: Interfaces whose messages are initialized by the caller

    Returns:
        ``backtrace``, ending with ``outbound_interface``

    Raises:
        CycleError: if ``outbound_interface`` depends on itself
        StructuralError: if a required interface is not connected
    """
    backtrace = [] if backtrace is None else backtrace
    call_list = [] if call_list is None else call_list
    allowed_edges = allowed_edges or set()
    breaker_sites = breaker_sites or set()

    if outbound_interface in call_list:
        raise CycleError(outbound_interface)
    if outbound_interface in backtrace:
        return backtrace
    call_list.append(outbound_interface)

    node = outbound_interface.node
    for k, interface in enumerate(node.interfaces):
        if interface is outbound_interface:
            continue
        if allowed_edges and interface.edge not in allowed_edges:
            continue
        if interface.partner is None:
            raise StructuralError(
                f"Disconnected interface should be connected: interface {k} of {type(node).__name__} {node.id}"
            )
        if interface.partner in breaker_sites:
            continue
        if interface.partner not in backtrace:
            generate_schedule_by_dfs(
                interface.partner,
                backtrace,
                call_list,
                allowed_edges=allowed_edges,
                breaker_sites=breaker_sites,
            )

    call_list.pop()
    backtrace.append(outbound_interface)
    return backtrace


def generate_schedule(
    goals: Iterable,
    *,
    allowed_edges: Optional[Set] = None,
    breaker_sites: Optional[Set] = None,
) -> List:
    """
    Schedule several goal interfaces at once; shared dependencies appear once.

    Returns:
        Ordered list of interfaces
    """
    backtrace: List = []
    goals = list(goals)
    for goal in goals:
        generate_schedule_by_dfs(goal, backtrace, allowed_edges=allowed_edges, breaker_sites=breaker_sites)
    log.debug("schedule_generated", goals=len(goals), length=len(backtrace))
    return backtrace
