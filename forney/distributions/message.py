"""
forney/distributions/message.py

Messages and the type descriptors used as rule dispatch keys.

An inbound slot of a schedule entry is described by:
- MessageType(T): a message whose payload is a T (sum-product input)
- MarginalType(T): a marginal of type T (variational input)
- None: the void slot, i.e. the outbound interface being computed
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from forney.core.errors import TypeMismatchError
from forney.distributions.base import ProbabilityDistribution


class Message:
    """A payload attached to one interface, overwritten on each pass."""

    __slots__ = ("payload",)

    def __init__(self, payload: ProbabilityDistribution):
        if isinstance(payload, Message):
            raise TypeMismatchError("A Message cannot wrap another Message")
        if not isinstance(payload, ProbabilityDistribution):
            raise TypeMismatchError(
                f"Message payload must be a distribution, got {type(payload).__name__}"
            )
        self.payload = payload

    @property
    def type(self) -> "MessageType":
        return MessageType(type(self.payload))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Message):
            return NotImplemented
        return self.payload == other.payload

    __hash__ = object.__hash__

    def __repr__(self) -> str:
        return f"Message({self.payload!r})"


@dataclass(frozen=True)
class InboundType:
    """Type-level description of one inbound slot."""
    payload: type

    kind = "inbound"

    def matches(self, pattern: Any) -> bool:
        """Whether this concrete slot type satisfies a rule pattern."""
        if pattern is ANY:
            return True
        if pattern is None or type(pattern) is not type(self):
            return False
        return issubclass(self.payload, pattern.payload)

    def __repr__(self) -> str:
        return f"{self.kind}[{self.payload.__name__}]"


@dataclass(frozen=True, repr=False)
class MessageType(InboundType):
    kind = "Message"


@dataclass(frozen=True, repr=False)
class MarginalType(InboundType):
    kind = "Marginal"


class _Any:
    """Wildcard pattern: any non-void slot."""

    def __repr__(self) -> str:
        return "ANY"


ANY = _Any()
VOID = None


def msg(payload: type) -> MessageType:
    """Shorthand for ``MessageType(payload)``."""
    return MessageType(payload)


def marg(payload: type) -> MarginalType:
    """Shorthand for ``MarginalType(payload)``."""
    return MarginalType(payload)


def slot_matches(actual: Optional[InboundType], pattern: Any) -> bool:
    """Match a resolved slot type against a rule pattern entry."""
    if actual is None:
        return pattern is None
    return actual.matches(pattern)


def format_types(types: Sequence[Optional[InboundType]]) -> str:
    """Render an inbound type tuple for error messages."""
    return "(" + ", ".join("Void" if t is None else repr(t) for t in types) + ")"
