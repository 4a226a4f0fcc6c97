"""
forney/algorithms/variational_bayes.py

Variational message passing over a factorized graph.

Each subgraph owns:
- an internal schedule, confined to its internal edges, whose entries on
  boundary nodes consume marginals of the neighbouring subgraphs
- an external schedule (its boundary nodes), where edge marginals, or a
  joint marginal when two or more internal edges meet, are refreshed after
  every internal pass

One iteration visits every subgraph in order.
"""

from __future__ import annotations

from typing import Mapping, Optional, Union

import structlog

from forney.algorithms.base import InferenceAlgorithm
from forney.core.config import settings
from forney.distributions.base import default_value
from forney.distributions.message import InboundType, MarginalType
from forney.distributions.product import calculate_joint_marginal, update_marginal
from forney.graph.structure import FactorGraph
from forney.rules.registry import InferenceMode, RuleRegistry
from forney.runtime.execute import execute_schedule
from forney.schedule.compiler import ScheduleCompiler
from forney.schedule.dfs import generate_schedule
from forney.schedule.entry import Schedule, ScheduleEntry
from forney.schedule.subgraph import Factorization, Subgraph, factorize

log = structlog.get_logger(__name__)


class VariationalCompiler(ScheduleCompiler):
    """
    Compiler for one subgraph: messages for internal edges, marginals
    (edge or joint) for edges owned by other subgraphs.
    """

    def __init__(self, factorization: Factorization, subgraph: Subgraph, registry: Optional[RuleRegistry] = None):
        super().__init__(registry)
        self.factorization = factorization
        self.subgraph = subgraph

    def inbound_type(self, entry: ScheduleEntry, k: int) -> InboundType:
        edge = entry.node.interfaces[k].edge
        if edge is None or edge in self.subgraph.internal_edges:
            return super().inbound_type(entry, k)
        return MarginalType(self.factorization.slot_marginal_type(entry.node, edge))

    def inbound_getter(self, entry: ScheduleEntry, k: int):
        slot = entry.inbound_types[k]
        if isinstance(slot, MarginalType):
            node = entry.node
            owner = self.factorization.edge_to_subgraph[node.interfaces[k].edge]
            if self.factorization.has_joint(node, owner):
                joint_marginals = self.factorization.joint_marginals
                key = (node, owner)
                return lambda: joint_marginals[key]
        return super().inbound_getter(entry, k)


class VariationalBayes(InferenceAlgorithm):
    """
    Variational Bayes by message passing.

    Args:
        graph: Factor graph (the current graph by default)
        factorization: A Factorization, or a mapping of edge groups to
            marginal types handed to ``factorize``
        n_iterations: Passes over all subgraphs per execute()
            (``settings.vmp_iterations`` by default)
        registry: Rule registry (the default registry when omitted)
    """

    def __init__(
        self,
        graph: Optional[FactorGraph] = None,
        factorization: Optional[Union[Factorization, Mapping]] = None,
        n_iterations: Optional[int] = None,
        registry: Optional[RuleRegistry] = None,
    ):
        super().__init__(graph)
        if not isinstance(factorization, Factorization):
            factorization = factorize(self.graph, factorization)
        self.factorization = factorization
        self.n_iterations = n_iterations if n_iterations is not None else settings.vmp_iterations
        self.registry = registry

    def ordered_edges(self, subgraph: Subgraph):
        return [edge for edge in self.graph.iter_edges() if edge in subgraph.internal_edges]

    def initialize(self) -> None:
        """Install default marginals wherever none is set yet."""
        fact = self.factorization
        for subgraph in fact.subgraphs:
            for edge in self.ordered_edges(subgraph):
                marginal_type = fact.known_marginal_type(edge)
                if edge.marginal is None and marginal_type is not None:
                    edge.marginal = default_value(marginal_type)
            for node in subgraph.external_schedule:
                key = (node, subgraph)
                if fact.has_joint(node, subgraph) and key not in fact.joint_marginals:
                    edge = subgraph.internal_edges_at(node)[0]
                    fact.joint_marginals[key] = default_value(fact.slot_marginal_type(node, edge))

    def compile(self) -> None:
        fact = self.factorization
        for subgraph in fact.subgraphs:
            boundary = set(subgraph.external_schedule)
            goals = []
            for edge in self.ordered_edges(subgraph):
                if not boundary or edge.tail.node in boundary or edge.head.node in boundary:
                    goals.extend([edge.tail, edge.head])
            interfaces = generate_schedule(goals, allowed_edges=subgraph.internal_edges)

            schedule = Schedule()
            for interface in interfaces:
                node = interface.node
                if node in boundary and fact.touches_joint(node):
                    mode = InferenceMode.STRUCTURED
                else:
                    mode = InferenceMode.VARIATIONAL
                schedule.entries.append(ScheduleEntry.from_interface(interface, mode))
            subgraph.internal_schedule = VariationalCompiler(fact, subgraph, self.registry).compile(schedule)
        log.info(
            "variational_bayes_compiled",
            subgraphs=len(fact.subgraphs),
            entries=sum(len(s.internal_schedule) for s in fact.subgraphs),
        )

    def update_marginals(self, subgraph: Subgraph) -> None:
        """Refresh the marginals that summarize ``subgraph`` to its neighbours."""
        fact = self.factorization
        if not subgraph.external_schedule:
            for edge in self.ordered_edges(subgraph):
                update_marginal(edge)
            return
        for node in subgraph.external_schedule:
            edges = subgraph.internal_edges_at(node)
            parts = [update_marginal(edge) for edge in edges]
            if len(parts) >= 2:
                fact.joint_marginals[(node, subgraph)] = calculate_joint_marginal(parts)

    def execute(self) -> None:
        """Run ``n_iterations`` passes over all subgraphs."""
        self.prepare()
        for _ in range(self.n_iterations):
            for subgraph in self.factorization.subgraphs:
                execute_schedule(subgraph.internal_schedule)
                self.update_marginals(subgraph)
        log.debug("variational_bayes_executed", iterations=self.n_iterations)
