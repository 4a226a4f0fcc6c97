"""
Distributions module: payload families, messages, products and marginals.
"""

from forney.distributions.base import (
    TINY,
    HUGE,
    ProbabilityDistribution,
    Delta,
    MvDelta,
    Gaussian,
    Gamma,
    Beta,
    NormalGamma,
    to_distribution,
    default_value,
    mean_value,
)
from forney.distributions.message import (
    Message,
    InboundType,
    MessageType,
    MarginalType,
    ANY,
    VOID,
    msg,
    marg,
    slot_matches,
    format_types,
)
from forney.distributions.product import (
    prod,
    product_type,
    has_product,
    marginal_type,
    calculate_marginal,
    update_marginal,
    joint_marginal_type,
    is_joint_type,
    calculate_joint_marginal,
)

__all__ = [
    # base
    "TINY",
    "HUGE",
    "ProbabilityDistribution",
    "Delta",
    "MvDelta",
    "Gaussian",
    "Gamma",
    "Beta",
    "NormalGamma",
    "to_distribution",
    "default_value",
    "mean_value",
    # message
    "Message",
    "InboundType",
    "MessageType",
    "MarginalType",
    "ANY",
    "VOID",
    "msg",
    "marg",
    "slot_matches",
    "format_types",
    # product
    "prod",
    "product_type",
    "has_product",
    "marginal_type",
    "calculate_marginal",
    "update_marginal",
    "joint_marginal_type",
    "is_joint_type",
    "calculate_joint_marginal",
]
