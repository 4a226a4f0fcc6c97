"""
forney/distributions/product.py

Products of distributions and marginal computation.

The product of two payloads over the same variable is the equality-node
rule; an edge marginal is the product of its forward (tail) and backward
(head) messages. Every product is registered with its output type so that
schedule compilation can type-check without evaluating anything.
"""

from __future__ import annotations

from typing import Callable, Dict, Sequence, Tuple

import numpy as np

from forney.core.errors import StructuralError, TypeMismatchError
from forney.distributions.base import (
    Beta,
    Delta,
    Gamma,
    Gaussian,
    MvDelta,
    NormalGamma,
    ProbabilityDistribution,
)

ProductFn = Callable[[ProbabilityDistribution, ProbabilityDistribution], ProbabilityDistribution]

_PRODUCTS: Dict[Tuple[type, type], Tuple[ProductFn, type]] = {}
_JOINT_MARGINALS: Dict[Tuple[type, ...], Tuple[Callable[..., ProbabilityDistribution], type]] = {}


def register_product(left: type, right: type, out: type, symmetric: bool = True):
    """Decorator registering ``fn(x: left, y: right) -> out``."""
    def deco(fn: ProductFn) -> ProductFn:
        _PRODUCTS[(left, right)] = (fn, out)
        if symmetric and left is not right:
            _PRODUCTS[(right, left)] = (lambda x, y: fn(y, x), out)
        return fn
    return deco


def _lookup(left: type, right: type) -> Tuple[ProductFn, type]:
    for l in left.__mro__:
        for r in right.__mro__:
            hit = _PRODUCTS.get((l, r))
            if hit is not None:
                return hit
    raise TypeMismatchError(f"No product defined for {left.__name__} * {right.__name__}")


def has_product(left: type, right: type) -> bool:
    try:
        _lookup(left, right)
    except TypeMismatchError:
        return False
    return True


def product_type(left: type, right: type) -> type:
    """Static output type of ``prod(left(), right())``."""
    return _lookup(left, right)[1]


def prod(x: ProbabilityDistribution, y: ProbabilityDistribution) -> ProbabilityDistribution:
    """Normalized product of two distributions over the same variable."""
    fn, _ = _lookup(type(x), type(y))
    return fn(x, y)


@register_product(Gaussian, Gaussian, Gaussian)
def _gaussian_gaussian(x: Gaussian, y: Gaussian) -> Gaussian:
    x, y = x.ensure_xiw(), y.ensure_xiw()
    return Gaussian(xi=x.xi + y.xi, W=x.W + y.W)


@register_product(Gamma, Gamma, Gamma)
def _gamma_gamma(x: Gamma, y: Gamma) -> Gamma:
    return Gamma(a=x.a + y.a - 1.0, b=x.b + y.b)


@register_product(Beta, Beta, Beta)
def _beta_beta(x: Beta, y: Beta) -> Beta:
    return Beta(a=x.a + y.a - 1.0, b=x.b + y.b - 1.0)


@register_product(Delta, Delta, Delta)
def _delta_delta(x: Delta, y: Delta) -> Delta:
    if not np.isclose(x.m, y.m):
        raise ValueError(f"Product of point masses at different locations: {x.m} and {y.m}")
    return Delta(x.m)


@register_product(MvDelta, MvDelta, MvDelta)
def _mvdelta_mvdelta(x: MvDelta, y: MvDelta) -> MvDelta:
    if x.m.shape != y.m.shape or not np.allclose(x.m, y.m):
        raise ValueError("Product of multivariate point masses at different locations")
    return MvDelta(x.m.copy())


@register_product(Delta, Gaussian, Delta)
def _delta_gaussian(x: Delta, y: Gaussian) -> Delta:
    return Delta(x.m)


@register_product(Delta, Gamma, Delta)
def _delta_gamma(x: Delta, y: Gamma) -> Delta:
    if x.m < 0:
        raise ValueError(f"Point mass at {x.m} lies outside the support of Gamma")
    return Delta(x.m)


@register_product(Delta, Beta, Delta)
def _delta_beta(x: Delta, y: Beta) -> Delta:
    if not 0.0 <= x.m <= 1.0:
        raise ValueError(f"Point mass at {x.m} lies outside the support of Beta")
    return Delta(x.m)


@register_product(MvDelta, Gaussian, MvDelta)
def _mvdelta_gaussian(x: MvDelta, y: Gaussian) -> MvDelta:
    return MvDelta(x.m.copy())


def marginal_type(forward: type, backward: type) -> type:
    return product_type(forward, backward)


def calculate_marginal(edge) -> ProbabilityDistribution:
    """Marginal on an edge from its forward and backward messages, without writing it back."""
    if edge.tail.message is None:
        raise StructuralError(f"Edge {edge.id} should hold a forward message")
    if edge.head.message is None:
        raise StructuralError(f"Edge {edge.id} should hold a backward message")
    return prod(edge.tail.message.payload, edge.head.message.payload)


def update_marginal(edge) -> ProbabilityDistribution:
    """Calculate the marginal on an edge and store it on ``edge.marginal``."""
    edge.marginal = calculate_marginal(edge)
    return edge.marginal


###############################################################################
# Joint marginals (structured factorizations)
###############################################################################


def register_joint_marginal(parts: Tuple[type, ...], out: type):
    """Decorator registering a joint marginal builder over several edge marginals."""
    def deco(fn):
        _JOINT_MARGINALS[tuple(parts)] = (fn, out)
        return fn
    return deco


def _joint_lookup(parts: Sequence[type]):
    for key, hit in _JOINT_MARGINALS.items():
        if len(key) == len(parts) and all(issubclass(p, k) for p, k in zip(parts, key)):
            return hit
    names = ", ".join(p.__name__ for p in parts)
    raise TypeMismatchError(f"No joint marginal defined for ({names})")


def joint_marginal_type(parts: Sequence[type]) -> type:
    return _joint_lookup(parts)[1]


def is_joint_type(t: type) -> bool:
    """Whether ``t`` is produced by a registered joint marginal rule."""
    return any(out is t for _, out in _JOINT_MARGINALS.values())


def calculate_joint_marginal(parts: Sequence[ProbabilityDistribution]) -> ProbabilityDistribution:
    """Joint marginal from per-edge marginals, given in interface order."""
    fn, _ = _joint_lookup([type(p) for p in parts])
    return fn(*parts)


@register_joint_marginal((Gaussian, Gamma), NormalGamma)
def _normal_gamma_from_parts(q_mean: Gaussian, q_prec: Gamma) -> NormalGamma:
    # beta scales the conditional precision so that E[beta * gamma] matches W
    beta = q_mean.precision() / q_prec.mean()
    return NormalGamma(m=q_mean.mean(), beta=beta, a=q_prec.a, b=q_prec.b)
