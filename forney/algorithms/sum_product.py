"""
forney/algorithms/sum_product.py

Sum-product message passing (belief propagation).

On a tree the schedule is executed once per pass. On a loopy graph the
caller supplies breaker messages: the cycles are cut at those interfaces,
their messages are preset, and the schedule is repeated ``n_iterations``
times per pass.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional

import structlog

from forney.algorithms.base import InferenceAlgorithm
from forney.core.config import settings
from forney.core.errors import StructuralError
from forney.distributions.base import to_distribution
from forney.distributions.message import Message
from forney.graph.structure import Edge, FactorGraph
from forney.rules.registry import RuleRegistry
from forney.runtime.execute import execute_schedule
from forney.schedule.compiler import ScheduleCompiler
from forney.schedule.dfs import generate_schedule
from forney.schedule.entry import Schedule, set_post_processing

log = structlog.get_logger(__name__)


class SumProduct(InferenceAlgorithm):
    """
    Sum-product algorithm.

    Args:
        graph: Factor graph (the current graph by default)
        goals: Interfaces whose outbound messages are wanted; by default the
            write-buffer targets, wrap sources and breaker sites
        breaker_messages: Interface -> initial payload, cutting cycles
        n_iterations: Schedule passes per execute(); defaults to
            ``settings.loopy_iterations`` with breakers, 1 otherwise
        post_processing: Interface -> function applied to its outbound payload
        registry: Rule registry (the default registry when omitted)
    """

    def __init__(
        self,
        graph: Optional[FactorGraph] = None,
        goals: Optional[Iterable] = None,
        breaker_messages: Optional[Dict] = None,
        n_iterations: Optional[int] = None,
        post_processing: Optional[Dict[object, Callable]] = None,
        registry: Optional[RuleRegistry] = None,
    ):
        super().__init__(graph)
        self.goals = list(goals) if goals is not None else None
        self.breaker_messages = dict(breaker_messages or {})
        if n_iterations is None:
            n_iterations = settings.loopy_iterations if self.breaker_messages else 1
        self.n_iterations = n_iterations
        self.post_processing = dict(post_processing or {})
        self.registry = registry
        self.schedule: Optional[Schedule] = None

    def default_goals(self) -> List:
        goals: List = []
        for target in self.graph.write_buffers:
            if isinstance(target, Edge):
                goals.extend([target.tail, target.head])
            else:
                goals.append(target)
        for wrap in self.graph.wraps:
            goals.append(wrap.source.out.partner)
        goals.extend(self.breaker_messages)

        unique: List = []
        for goal in goals:
            if goal is not None and goal not in unique:
                unique.append(goal)
        if not unique:
            log.error("no_goals", graph=repr(self.graph))
            raise StructuralError(
                "Nothing to compute: pass goals, or attach write buffers, wraps or breaker messages"
            )
        return unique

    def initialize(self) -> None:
        for interface, value in self.breaker_messages.items():
            interface.message = Message(to_distribution(value))

    def compile(self) -> None:
        goals = self.goals if self.goals else self.default_goals()
        interfaces = generate_schedule(goals, breaker_sites=set(self.breaker_messages))
        for wrap in self.graph.wraps:
            if wrap.source.out.partner not in interfaces:
                log.error("wrap_source_unscheduled", wrap=repr(wrap))
                raise StructuralError(
                    f"{wrap!r} needs the message arriving at {wrap.source!r}; add "
                    f"{wrap.source.out.partner!r} to the goals"
                )
        schedule = Schedule.from_interfaces(interfaces)
        set_post_processing(schedule, self.post_processing)
        self.schedule = ScheduleCompiler(self.registry).compile(schedule)
        log.info("sum_product_compiled", goals=len(goals), entries=len(schedule))

    def execute(self):
        """
        Run the schedule ``n_iterations`` times.

        Returns:
            Payload of the last schedule entry
        """
        self.prepare()
        result = None
        for _ in range(self.n_iterations):
            result = execute_schedule(self.schedule)
        return result
