"""
forney/rules/composite.py

Update rules for composite nodes.

- Delegation: any composite interface that delegates computes its message
  by running a cached internal schedule over the node's internal graph.
- Closed form: the GainAdditionCompositeNode (out = A in1 + in2) has direct
  Gaussian rules towards out and in2 (Korl, 2005, table 4.1).

The closed-form rules pick the cheapest parameterization available on the
inbound Gaussians, in this order:
1. both carry (m,V)
2. both carry (m,W)
3. both carry (xi,W)
4. either carries (m,V): convert both to (m,V)
5. either carries (m,W): convert both to (m,W)
6. otherwise convert both to (m,V)
"""

from __future__ import annotations

from typing import Optional

from scipy import linalg

from forney.distributions.base import Gaussian
from forney.distributions.message import msg
from forney.graph.composite import CompositeNode, GainAdditionCompositeNode
from forney.graph.nodes import ensure_value
from forney.rules.registry import sum_product_rule


###############################################################################
# Delegation to the internal schedule
###############################################################################


def _delegates(node, outbound_id, inbound_types) -> bool:
    return node.delegates(outbound_id)


def _compile_internal_schedule(node, outbound_id, inbound_types) -> type:
    """Compile and cache the internal schedule; its last entry fixes the outbound type."""
    from forney.schedule.compiler import ScheduleCompiler
    from forney.schedule.dfs import generate_schedule_by_dfs
    from forney.schedule.entry import Schedule

    for k, slot in enumerate(inbound_types):
        if slot is not None:
            ensure_value(node.ports[k], slot.payload)

    interface = node.interfaces[outbound_id]
    schedule = Schedule.from_interfaces(generate_schedule_by_dfs(interface.child))
    ScheduleCompiler().compile(schedule)
    interface.internal_schedule = schedule
    return schedule[-1].outbound_type


@sum_product_rule(CompositeNode, applies=_delegates, outbound_type=_compile_internal_schedule)
def composite_internal_schedule(node, *inbounds):
    from forney.runtime.execute import execute_schedule

    outbound_id: Optional[int] = None
    for k, payload in enumerate(inbounds):
        if payload is None:
            outbound_id = k
        else:
            node.ports[k].value = payload

    interface = node.interfaces[outbound_id]
    execute_schedule(interface.internal_schedule)
    return interface.child.message.payload


###############################################################################
# GainAdditionCompositeNode closed forms: in1 = y (0), in2 = x (1), out = z (2)
###############################################################################


def _closed_form(node, outbound_id, inbound_types) -> bool:
    return not node.delegates(outbound_id)


def _aligned(a: Gaussian, b: Gaussian):
    """Bring two Gaussians to a shared parameterization following the fallback order."""
    if a.has_mv and b.has_mv:
        return "mv", a, b
    if a.has_mw and b.has_mw:
        return "mw", a, b
    if a.has_xiw and b.has_xiw:
        return "xiw", a, b
    if a.has_mv or b.has_mv:
        return "mv", a.ensure_mv(), b.ensure_mv()
    if a.has_mw or b.has_mw:
        return "mw", a.ensure_mw(), b.ensure_mw()
    return "mv", a.ensure_mv(), b.ensure_mv()


def _gain_addition_W(A, W_y, W_x):
    return W_x - W_x @ A @ linalg.inv(W_y + A.T @ W_x @ A) @ A.T @ W_x


@sum_product_rule(
    GainAdditionCompositeNode, 2, (msg(Gaussian), msg(Gaussian), None), Gaussian, applies=_closed_form
)
def gain_addition_forward_gaussian(node, y, x, _):
    A = node.A
    form, y, x = _aligned(y, x)
    if form == "mv":
        return Gaussian(m=x.m + A @ y.m, V=x.V + A @ y.V @ A.T)
    if form == "mw":
        return Gaussian(m=x.m + A @ y.m, W=_gain_addition_W(A, y.W, x.W))
    G = x.W @ A @ linalg.inv(y.W + A.T @ x.W @ A)
    return Gaussian(xi=x.xi + G @ (y.xi - A.T @ x.xi), W=_gain_addition_W(A, y.W, x.W))


@sum_product_rule(
    GainAdditionCompositeNode, 1, (msg(Gaussian), None, msg(Gaussian)), Gaussian, applies=_closed_form
)
def gain_addition_backward_in2_gaussian(node, y, _, z):
    A = node.A
    form, y, z = _aligned(y, z)
    if form == "mv":
        return Gaussian(m=z.m - A @ y.m, V=z.V + A @ y.V @ A.T)
    if form == "mw":
        return Gaussian(m=z.m - A @ y.m, W=_gain_addition_W(A, y.W, z.W))
    G = z.W @ A @ linalg.inv(y.W + A.T @ z.W @ A)
    return Gaussian(xi=z.xi - G @ (y.xi + A.T @ z.xi), W=_gain_addition_W(A, y.W, z.W))
