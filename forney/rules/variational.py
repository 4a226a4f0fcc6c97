"""
forney/rules/variational.py

Variational message passing rules for the GaussianNode (precision form).

Mean-field rules consume one marginal per neighbouring edge. Structured
rules consume a NormalGamma joint marginal over (mean, precision) or, on
the other side of the factorization, a message on the edge that shares the
subgraph plus the marginal of the out edge.

Interfaces: mean (0), precision (1), out (2).
"""

from __future__ import annotations

from forney.distributions.base import Gamma, Gaussian, NormalGamma, ProbabilityDistribution
from forney.distributions.message import marg, msg
from forney.graph.nodes import GaussianNode
from forney.rules.registry import structured_rule, variational_rule

ANY_MARGINAL = marg(ProbabilityDistribution)


def _precision_form(node, outbound_id, inbound_types) -> bool:
    return node.form == "precision"


def _gamma_update(e_y: float, var_y: float, e_m: float, var_m: float) -> Gamma:
    return Gamma(a=1.5, b=0.5 * ((e_y - e_m) ** 2 + var_m + var_y))


###############################################################################
# Mean field
###############################################################################


@variational_rule(GaussianNode, 2, (ANY_MARGINAL, ANY_MARGINAL, None), Gaussian, applies=_precision_form)
def gaussian_vmp_out(node, q_mean, q_prec, _):
    return Gaussian(m=q_mean.mean(), W=q_prec.mean())


@variational_rule(GaussianNode, 0, (None, ANY_MARGINAL, ANY_MARGINAL), Gaussian, applies=_precision_form)
def gaussian_vmp_mean(node, _, q_prec, q_out):
    return Gaussian(m=q_out.mean(), W=q_prec.mean())


@variational_rule(GaussianNode, 1, (ANY_MARGINAL, None, ANY_MARGINAL), Gamma, applies=_precision_form)
def gaussian_vmp_precision(node, q_mean, _, q_out):
    return _gamma_update(q_out.mean(), q_out.var(), q_mean.mean(), q_mean.var())


###############################################################################
# Structured: q(mean, precision) q(out)
###############################################################################


@structured_rule(GaussianNode, 2, (marg(NormalGamma), marg(NormalGamma), None), Gaussian, applies=_precision_form)
def gaussian_svmp_out(node, q_mean_prec, _joint, _):
    return Gaussian(m=q_mean_prec.m, W=q_mean_prec.a / q_mean_prec.b)


@structured_rule(GaussianNode, 0, (None, msg(Gamma), ANY_MARGINAL), Gaussian, applies=_precision_form)
def gaussian_svmp_mean(node, _, prec, q_out):
    return Gaussian(m=q_out.mean(), W=prec.a / prec.b)


@structured_rule(GaussianNode, 1, (msg(Gaussian), None, ANY_MARGINAL), Gamma, applies=_precision_form)
def gaussian_svmp_precision(node, mean, _, q_out):
    return _gamma_update(q_out.mean(), q_out.var(), mean.mean(), mean.var())
