"""
forney/rules/registry.py

Update-rule registry and dispatcher.

A rule is keyed by:
- node type (subclasses inherit rules of their bases)
- outbound interface id
- inbound type pattern: one entry per interface, ``None`` at the outbound
  slot, ``ANY`` as wildcard, otherwise a MessageType / MarginalType
- inference mode

Resolution happens once, at schedule-compile time. Among the rules that
match, the most specific wins: smallest MRO distance between the node type
and the rule's node type, then the largest number of exact payload
matches. Modes fall back STRUCTURED -> VARIATIONAL -> SUM_PRODUCT.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Tuple

import structlog

from forney.core.errors import DispatchError
from forney.distributions.message import ANY, InboundType, format_types, slot_matches

log = structlog.get_logger(__name__)

InboundTypes = Tuple[Optional[InboundType], ...]


class InferenceMode(Enum):
    """Rule family a schedule entry is compiled against."""
    SUM_PRODUCT = "sum_product"
    VARIATIONAL = "variational"
    STRUCTURED = "structured"


FALLBACK = {
    InferenceMode.SUM_PRODUCT: (InferenceMode.SUM_PRODUCT,),
    InferenceMode.VARIATIONAL: (InferenceMode.VARIATIONAL, InferenceMode.SUM_PRODUCT),
    InferenceMode.STRUCTURED: (InferenceMode.STRUCTURED, InferenceMode.VARIATIONAL, InferenceMode.SUM_PRODUCT),
}


@dataclass(frozen=True)
class UpdateRule:
    """
    One registered update rule.

    Attributes:
        name: Readable name (the function name by default)
        node_type: Node class the rule applies to
        mode: Inference mode
        outbound_id: Outbound interface id, or None for any
        pattern: Inbound type pattern, or None to match on ``applies`` alone
        applies: Optional predicate ``(node, outbound_id, inbound_types) -> bool``
        func: ``func(node, *inbounds) -> distribution``; the outbound slot is None
        outbound_type: Payload class, or ``(node, outbound_id, inbound_types) -> class``
    """
    name: str
    node_type: type
    mode: InferenceMode
    outbound_id: Optional[int]
    pattern: Optional[Tuple[Any, ...]]
    applies: Optional[Callable[..., bool]]
    func: Callable[..., Any]
    outbound_type: Any

    def matches(self, node, outbound_id: int, inbound_types: InboundTypes) -> bool:
        if not isinstance(node, self.node_type):
            return False
        if self.outbound_id is not None and self.outbound_id != outbound_id:
            return False
        if self.pattern is not None:
            if len(self.pattern) != len(inbound_types):
                return False
            if not all(slot_matches(t, p) for t, p in zip(inbound_types, self.pattern)):
                return False
        if self.applies is not None and not self.applies(node, outbound_id, inbound_types):
            return False
        return True

    def specificity(self, node, inbound_types: InboundTypes) -> Tuple[int, int]:
        """Sort key; smaller is more specific."""
        distance = type(node).__mro__.index(self.node_type)
        exact = 0
        if self.pattern is not None:
            for t, p in zip(inbound_types, self.pattern):
                if t is not None and p is not ANY and p is not None and t == p:
                    exact += 1
        return distance, -exact

    def resolve_outbound_type(self, node, outbound_id: int, inbound_types: InboundTypes) -> type:
        if isinstance(self.outbound_type, type):
            return self.outbound_type
        return self.outbound_type(node, outbound_id, inbound_types)

    def __repr__(self) -> str:
        return f"UpdateRule({self.name}, {self.node_type.__name__}, {self.mode.value})"


class RuleRegistry:
    """Table of update rules with type-based resolution."""

    def __init__(self):
        self.rules: List[UpdateRule] = []

    def add(self, rule: UpdateRule) -> UpdateRule:
        self.rules.append(rule)
        return rule

    def register(
        self,
        node_type: type,
        outbound_id: Optional[int] = None,
        pattern: Optional[Sequence[Any]] = None,
        outbound_type: Any = None,
        *,
        mode: InferenceMode = InferenceMode.SUM_PRODUCT,
        applies: Optional[Callable[..., bool]] = None,
        name: Optional[str] = None,
    ):
        """
        Decorator registering ``func`` as an update rule.

        Example:
            @registry.register(GainNode, 1, (msg(Delta), None), Delta)
            def gain_forward_delta(node, inbound, _):
                ...
        """
        if pattern is not None and outbound_id is not None and pattern[outbound_id] is not None:
            raise ValueError(f"Pattern slot {outbound_id} is the outbound slot and must be None")
        if outbound_type is None:
            raise ValueError("An update rule must declare its outbound type")

        def deco(func):
            self.add(UpdateRule(
                name=name or func.__name__,
                node_type=node_type,
                mode=mode,
                outbound_id=outbound_id,
                pattern=tuple(pattern) if pattern is not None else None,
                applies=applies,
                func=func,
                outbound_type=outbound_type,
            ))
            return func
        return deco

    def candidates(self, node, outbound_id: int, inbound_types: InboundTypes, mode: InferenceMode) -> List[UpdateRule]:
        return [
            rule for rule in self.rules
            if rule.mode is mode and rule.matches(node, outbound_id, inbound_types)
        ]

    def resolve(self, node, outbound_id: int, inbound_types: Sequence[Optional[InboundType]], mode: InferenceMode) -> UpdateRule:
        """
        Find the single most specific rule.

        Args:
            node: Node the entry computes on
            outbound_id: Outbound interface id
            inbound_types: One slot type per interface, None at the outbound slot
            mode: Requested inference mode

        Returns:
            The resolved UpdateRule

        Raises:
            DispatchError: if no rule matches or two rules tie
        """
        inbound_types = tuple(inbound_types)
        for candidate_mode in FALLBACK[mode]:
            found = self.candidates(node, outbound_id, inbound_types, candidate_mode)
            if not found:
                continue
            found.sort(key=lambda r: r.specificity(node, inbound_types))
            best = found[0]
            if len(found) > 1 and found[1].specificity(node, inbound_types) == best.specificity(node, inbound_types):
                raise DispatchError(
                    f"Ambiguous {candidate_mode.value} rules {best.name} and {found[1].name} for "
                    f"{type(node).__name__} {node.id} interface {outbound_id} with inbound types "
                    f"{format_types(inbound_types)}",
                    node=node,
                    outbound_interface_id=outbound_id,
                    inbound_types=inbound_types,
                    mode=mode,
                )
            log.debug(
                "rule_resolved",
                node=node.id,
                interface=outbound_id,
                rule=best.name,
                mode=candidate_mode.value,
            )
            return best

        raise DispatchError(
            f"No {mode.value} rule for {type(node).__name__} {node.id} interface {outbound_id} "
            f"with inbound types {format_types(inbound_types)}",
            node=node,
            outbound_interface_id=outbound_id,
            inbound_types=inbound_types,
            mode=mode,
        )

    def __len__(self) -> int:
        return len(self.rules)


default_registry = RuleRegistry()


def sum_product_rule(node_type, outbound_id=None, pattern=None, outbound_type=None, **kwargs):
    """Register a sum-product rule on the default registry."""
    return default_registry.register(node_type, outbound_id, pattern, outbound_type, mode=InferenceMode.SUM_PRODUCT, **kwargs)


def variational_rule(node_type, outbound_id=None, pattern=None, outbound_type=None, **kwargs):
    """Register a mean-field variational rule on the default registry."""
    return default_registry.register(node_type, outbound_id, pattern, outbound_type, mode=InferenceMode.VARIATIONAL, **kwargs)


def structured_rule(node_type, outbound_id=None, pattern=None, outbound_type=None, **kwargs):
    """Register a structured variational rule on the default registry."""
    return default_registry.register(node_type, outbound_id, pattern, outbound_type, mode=InferenceMode.STRUCTURED, **kwargs)
