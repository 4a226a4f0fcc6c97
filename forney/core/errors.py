"""
forney/core/errors.py

Exception hierarchy for schedule synthesis, compilation and execution.

All failures are synchronous and fatal for the current schedule or run.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


class ForneyError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class StructuralError(ForneyError):
    """Malformed graph: disconnected interface, bad edge pairing, invalid wrap."""


class CycleError(StructuralError):
    """Unbroken message dependency loop found during schedule synthesis."""

    def __init__(self, interface: Any):
        self.interface = interface
        super().__init__(
            f"Loop detected around {interface!r}. "
            "Consider using a loopy algorithm and setting a breaker message somewhere in this loop."
        )


class DispatchError(ForneyError):
    """No update rule could be resolved for a schedule entry."""

    def __init__(
        self,
        message: str,
        *,
        node: Any = None,
        outbound_interface_id: Optional[int] = None,
        inbound_types: Optional[Sequence[Any]] = None,
        mode: Any = None,
    ):
        self.node = node
        self.outbound_interface_id = outbound_interface_id
        self.inbound_types = tuple(inbound_types) if inbound_types is not None else None
        self.mode = mode
        super().__init__(message)


class BufferExhaustionError(ForneyError):
    """Streaming execution cannot be bounded or has run past its read buffers."""


class TypeMismatchError(ForneyError, TypeError):
    """A value does not fit the type a node or buffer requires."""
