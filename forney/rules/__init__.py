"""
Rules module: update-rule registry and the built-in rule catalog.

Importing this package registers the sum-product, variational and composite
rules on ``default_registry``.
"""

from forney.rules.registry import (
    InferenceMode,
    UpdateRule,
    RuleRegistry,
    default_registry,
    sum_product_rule,
    variational_rule,
    structured_rule,
)
from forney.rules import sum_product, variational, composite

__all__ = [
    "InferenceMode",
    "UpdateRule",
    "RuleRegistry",
    "default_registry",
    "sum_product_rule",
    "variational_rule",
    "structured_rule",
]
