"""
forney/rules/sum_product.py

Sum-product update rules for the basic node catalog.

Every rule receives the node followed by one inbound payload per interface;
the outbound slot is None. Rules build and return a new payload.
"""

from __future__ import annotations

from functools import reduce

import numpy as np
from scipy import linalg

from forney.distributions.base import Delta, Gaussian, MvDelta
from forney.distributions.message import MessageType, msg
from forney.distributions.product import has_product, prod, product_type
from forney.graph.nodes import AdditionNode, EqualityNode, GainNode, GaussianNode, TerminalNode
from forney.rules.registry import sum_product_rule


###############################################################################
# TerminalNode
###############################################################################


def _terminal_type(node, outbound_id, inbound_types):
    return type(node.value)


@sum_product_rule(TerminalNode, 0, (None,), _terminal_type)
def terminal_value(node, _):
    node.check_value(node.value)
    return node.value


###############################################################################
# AdditionNode: in1 (0), in2 (1), out (2)
###############################################################################


@sum_product_rule(AdditionNode, 2, (msg(Delta), msg(Delta), None), Delta)
def addition_forward_delta(node, x, y, _):
    return Delta(x.m + y.m)


@sum_product_rule(AdditionNode, 0, (None, msg(Delta), msg(Delta)), Delta)
def addition_backward_in1_delta(node, _, y, z):
    return Delta(z.m - y.m)


@sum_product_rule(AdditionNode, 1, (msg(Delta), None, msg(Delta)), Delta)
def addition_backward_in2_delta(node, x, _, z):
    return Delta(z.m - x.m)


@sum_product_rule(AdditionNode, 2, (msg(MvDelta), msg(MvDelta), None), MvDelta)
def addition_forward_mvdelta(node, x, y, _):
    return MvDelta(x.m + y.m)


@sum_product_rule(AdditionNode, 2, (msg(Gaussian), msg(Gaussian), None), Gaussian)
def addition_forward_gaussian(node, x, y, _):
    x, y = x.ensure_mv(), y.ensure_mv()
    return Gaussian(m=x.m + y.m, V=x.V + y.V)


@sum_product_rule(AdditionNode, 0, (None, msg(Gaussian), msg(Gaussian)), Gaussian)
def addition_backward_in1_gaussian(node, _, y, z):
    y, z = y.ensure_mv(), z.ensure_mv()
    return Gaussian(m=z.m - y.m, V=z.V + y.V)


@sum_product_rule(AdditionNode, 1, (msg(Gaussian), None, msg(Gaussian)), Gaussian)
def addition_backward_in2_gaussian(node, x, _, z):
    x, z = x.ensure_mv(), z.ensure_mv()
    return Gaussian(m=z.m - x.m, V=z.V + x.V)


###############################################################################
# GainNode: in1 (0), out (1)
###############################################################################


@sum_product_rule(GainNode, 1, (msg(Delta), None), Delta)
def gain_forward_delta(node, x, _):
    return Delta(node.A[0, 0] * x.m)


@sum_product_rule(GainNode, 0, (None, msg(Delta)), Delta)
def gain_backward_delta(node, _, y):
    return Delta(y.m / node.A[0, 0])


@sum_product_rule(GainNode, 1, (msg(MvDelta), None), MvDelta)
def gain_forward_mvdelta(node, x, _):
    return MvDelta(node.A @ x.m)


@sum_product_rule(GainNode, 0, (None, msg(MvDelta)), MvDelta)
def gain_backward_mvdelta(node, _, y):
    return MvDelta(linalg.solve(node.A, y.m))


@sum_product_rule(GainNode, 1, (msg(Gaussian), None), Gaussian)
def gain_forward_gaussian(node, x, _):
    A = node.A
    x = x.ensure_mv()
    return Gaussian(m=A @ x.m, V=A @ x.V @ A.T)


@sum_product_rule(GainNode, 0, (None, msg(Gaussian)), Gaussian)
def gain_backward_gaussian(node, _, y):
    # Precision form stays valid for non-invertible A
    A = node.A
    y = y.ensure_mw()
    return Gaussian(xi=A.T @ y.W @ y.m, W=A.T @ y.W @ A)


###############################################################################
# EqualityNode: n symmetric interfaces
###############################################################################


def _equality_applies(node, outbound_id, inbound_types) -> bool:
    payloads = [t.payload for t in inbound_types if t is not None]
    if len(payloads) != len(inbound_types) - 1:
        return False
    if not all(isinstance(t, MessageType) for t in inbound_types if t is not None):
        return False
    acc = payloads[0]
    for p in payloads[1:]:
        if not has_product(acc, p):
            return False
        acc = product_type(acc, p)
    return True


def _equality_type(node, outbound_id, inbound_types):
    payloads = [t.payload for t in inbound_types if t is not None]
    return reduce(product_type, payloads)


@sum_product_rule(EqualityNode, applies=_equality_applies, outbound_type=_equality_type)
def equality_product(node, *inbounds):
    return reduce(prod, [d for d in inbounds if d is not None])


###############################################################################
# GaussianNode: mean (0), variance|precision (1), out (2)
###############################################################################


def _point_gaussian(node, m, param: Delta) -> Gaussian:
    if node.form == "precision":
        return Gaussian(m=m, W=param.m)
    return Gaussian(m=m, V=param.m)


def _variance(node, param: Delta) -> float:
    return 1.0 / param.m if node.form == "precision" else param.m


@sum_product_rule(GaussianNode, 2, (msg(Delta), msg(Delta), None), Gaussian)
def gaussian_forward_point(node, mean, param, _):
    return _point_gaussian(node, mean.m, param)


@sum_product_rule(GaussianNode, 0, (None, msg(Delta), msg(Delta)), Gaussian)
def gaussian_backward_mean_point(node, _, param, out):
    return _point_gaussian(node, out.m, param)


@sum_product_rule(GaussianNode, 2, (msg(Gaussian), msg(Delta), None), Gaussian)
def gaussian_forward_gaussian_mean(node, mean, param, _):
    mean = mean.ensure_mv()
    return Gaussian(m=mean.m, V=mean.V + _variance(node, param) * np.eye(mean.dims))


@sum_product_rule(GaussianNode, 0, (None, msg(Delta), msg(Gaussian)), Gaussian)
def gaussian_backward_mean_gaussian(node, _, param, out):
    out = out.ensure_mv()
    return Gaussian(m=out.m, V=out.V + _variance(node, param) * np.eye(out.dims))
