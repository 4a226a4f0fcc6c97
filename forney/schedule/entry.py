"""
forney/schedule/entry.py

Schedule entries and schedules.

A ScheduleEntry is built in stages:
construct -> resolve inbound types -> resolve outbound type ->
attach post-processing -> compile. Only a compiled entry can execute.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from forney.core.errors import DispatchError
from forney.distributions.message import InboundType, format_types
from forney.rules.registry import InferenceMode, UpdateRule


class ScheduleEntry:
    """
    One step of a schedule: compute the outbound message on one interface.

    Interface ids are 0-based positions in ``node.interfaces``; for an
    AdditionNode ``in1``, ``in2`` and ``out`` are 0, 1 and 2.

    Attributes:
        node: Target node
        outbound_interface_id: Position of the outbound interface (0-based)
        mode: Rule family requested for this entry
        post_processing: Optional ``fn(payload) -> payload`` applied after the rule
        inbound_types: One slot type per interface, None at the outbound slot
        update_rule: Resolved UpdateRule
        intermediate_outbound_type: Payload type produced by the rule
        outbound_type: Payload type after post-processing
    """

    def __init__(
        self,
        node,
        outbound_interface_id: int,
        mode: InferenceMode = InferenceMode.SUM_PRODUCT,
        post_processing: Optional[Callable] = None,
    ):
        self.node = node
        self.outbound_interface_id = outbound_interface_id
        self.mode = mode
        self.post_processing = post_processing
        self.inbound_types: Optional[Tuple[Optional[InboundType], ...]] = None
        self.update_rule: Optional[UpdateRule] = None
        self.intermediate_outbound_type: Optional[type] = None
        self.outbound_type: Optional[type] = None
        self._execute: Optional[Callable[[], object]] = None

    @classmethod
    def from_interface(cls, interface, mode: InferenceMode = InferenceMode.SUM_PRODUCT) -> "ScheduleEntry":
        return cls(interface.node, interface.id, mode)

    @property
    def outbound_interface(self):
        return self.node.interfaces[self.outbound_interface_id]

    @property
    def is_compiled(self) -> bool:
        return self._execute is not None

    def bind(self, execute: Callable[[], object]) -> None:
        """Attach the compiled executable."""
        if self.inbound_types is None or self.outbound_type is None:
            raise DispatchError(
                f"Cannot compile entry on {self.node.id} interface {self.outbound_interface_id} "
                "before its types are resolved",
                node=self.node,
                outbound_interface_id=self.outbound_interface_id,
                mode=self.mode,
            )
        self._execute = execute

    def execute(self):
        """Run the compiled rule and return the (post-processed) outbound payload."""
        if self._execute is None:
            raise DispatchError(
                f"Schedule entry on {self.node.id} interface {self.outbound_interface_id} is not compiled",
                node=self.node,
                outbound_interface_id=self.outbound_interface_id,
                mode=self.mode,
            )
        return self._execute()

    def copy(self, keep_types: bool = True) -> "ScheduleEntry":
        """
        Build a new, uncompiled entry for the same interface.

        Args:
            keep_types: Carry over the resolved inbound/outbound types

        Returns:
            Fresh ScheduleEntry; the compiled executable is never copied
        """
        duplicate = ScheduleEntry(self.node, self.outbound_interface_id, self.mode, self.post_processing)
        if keep_types:
            duplicate.inbound_types = self.inbound_types
            duplicate.update_rule = self.update_rule
            duplicate.intermediate_outbound_type = self.intermediate_outbound_type
            duplicate.outbound_type = self.outbound_type
        return duplicate

    def __copy__(self) -> "ScheduleEntry":
        return self.copy()

    def __deepcopy__(self, memo):
        raise TypeError("A ScheduleEntry cannot be deep-copied; construct a new one or use copy()")

    def __str__(self) -> str:
        iface = self.outbound_interface
        handle = f" ({iface.name})" if iface.name else ""
        lines = [
            f"{self.mode.value} on {type(self.node).__name__} {self.node.id} "
            f"interface {self.outbound_interface_id}{handle}"
        ]
        if self.inbound_types is not None and self.intermediate_outbound_type is not None:
            lines.append(f"{format_types(self.inbound_types)} -> Message[{self.intermediate_outbound_type.__name__}]")
        if self.post_processing is not None:
            lines.append(f"Post processing: {getattr(self.post_processing, '__name__', self.post_processing)}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"ScheduleEntry({self.node.id}, {self.outbound_interface_id}, {self.mode.value})"


@dataclass
class Schedule:
    """Ordered sequence of entries; executed strictly in order."""
    entries: List[ScheduleEntry] = field(default_factory=list)

    @classmethod
    def from_interfaces(cls, interfaces: Sequence, mode: InferenceMode = InferenceMode.SUM_PRODUCT) -> "Schedule":
        return cls([ScheduleEntry.from_interface(iface, mode) for iface in interfaces])

    def interfaces(self) -> List:
        return [entry.outbound_interface for entry in self.entries]

    def copy(self, keep_types: bool = True) -> "Schedule":
        return Schedule([entry.copy(keep_types) for entry in self.entries])

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[ScheduleEntry]:
        return iter(self.entries)

    def __getitem__(self, k):
        return self.entries[k]

    def __str__(self) -> str:
        lines = ["Message passing schedule", "-" * 47]
        for k, entry in enumerate(self.entries, start=1):
            lines.append(f"{k}.")
            lines.append(str(entry))
            lines.append("")
        return "\n".join(lines)


def set_post_processing(schedule: Schedule, functions: Dict) -> Schedule:
    """Attach post-processing functions (keyed by outbound interface) to matching entries."""
    if functions:
        for entry in schedule:
            fn = functions.get(entry.outbound_interface)
            if fn is not None:
                entry.post_processing = fn
    return schedule
