"""
Tests for variational factorization.
"""

import pytest

from forney.core.errors import StructuralError
from forney.distributions import Delta, Gamma, Gaussian, NormalGamma
from forney.graph import Edge, FactorGraph, GaussianNode, TerminalNode
from forney.schedule import factorize


@pytest.fixture
def graph():
    with FactorGraph() as g:
        yield g


@pytest.fixture
def model(graph):
    """m_t -e_m-> g.mean, p_t -e_p-> g.precision, g.out -e_y-> y_t"""
    g = GaussianNode(form="precision", id="g")
    m_t = TerminalNode(Gaussian(m=0.0, V=100.0), id="m_t")
    p_t = TerminalNode(Gamma(1.0, 1.0), id="p_t")
    y_t = TerminalNode(3.0, id="y_t")
    e_m = Edge(m_t.out, g.mean, id="e_m")
    e_p = Edge(p_t.out, g.precision, id="e_p")
    e_y = Edge(g.out, y_t.out, id="e_y")
    return g, (m_t, p_t, y_t), (e_m, e_p, e_y)


def assert_partition(graph, factorization):
    seen = []
    for subgraph in factorization.subgraphs:
        seen.extend(subgraph.internal_edges)
    assert len(seen) == len(set(seen))
    assert set(seen) == set(graph.edges.values())
    for edge, subgraph in factorization.edge_to_subgraph.items():
        assert edge in subgraph.internal_edges


class TestFactorize:
    def test_no_groups(self, graph, model):
        fact = factorize(graph)

        assert len(fact) == 1
        assert fact.subgraphs[0].external_schedule == []
        assert_partition(graph, fact)

    def test_rest_edges_meeting_at_node_share_subgraph(self, graph, model):
        g, _, (e_m, e_p, e_y) = model
        fact = factorize(graph, {e_y: Delta})

        assert len(fact) == 2
        rest = fact.edge_to_subgraph[e_m]
        assert fact.edge_to_subgraph[e_p] is rest
        assert rest.marginal_type is None
        assert fact.edge_to_subgraph[e_y].marginal_type is Delta
        assert_partition(graph, fact)

    def test_mean_field(self, graph, model):
        g, _, (e_m, e_p, e_y) = model
        fact = factorize(graph, {e_m: Gaussian, e_p: Gamma, e_y: Delta})

        assert len(fact) == 3
        assert [s.marginal_type for s in fact.subgraphs] == [Gaussian, Gamma, Delta]
        for subgraph in fact.subgraphs:
            assert subgraph.external_schedule == [g]
        assert not fact.touches_joint(g)
        assert_partition(graph, fact)

    def test_declared_joint(self, graph, model):
        g, _, (e_m, e_p, e_y) = model
        fact = factorize(graph, {(e_m, e_p): NormalGamma, e_y: Delta})

        joint = fact.edge_to_subgraph[e_m]
        assert fact.has_joint(g, joint)
        assert fact.touches_joint(g)
        assert fact.slot_marginal_type(g, e_m) is NormalGamma
        assert fact.slot_marginal_type(g, e_y) is Delta

    def test_joint_type_from_edge_types(self, graph, model):
        g, _, (e_m, e_p, e_y) = model
        e_m.distribution_type = Gaussian
        e_p.distribution_type = Gamma
        fact = factorize(graph, {e_y: Delta})

        assert fact.slot_marginal_type(g, e_p) is NormalGamma

    def test_unknown_marginal_type(self, graph, model):
        g, _, (e_m, _, e_y) = model
        fact = factorize(graph, {e_y: Delta})

        assert fact.known_marginal_type(e_m) is None
        with pytest.raises(StructuralError):
            fact.edge_marginal_type(e_m)

    def test_edge_in_two_groups(self, graph, model):
        _, _, (e_m, e_p, _) = model
        with pytest.raises(StructuralError):
            factorize(graph, {e_m: Gaussian, (e_m, e_p): NormalGamma})

    def test_foreign_edge(self, graph, model):
        other = FactorGraph()
        foreign = Edge(TerminalNode(graph=other).out, TerminalNode(graph=other).out, graph=other)
        with pytest.raises(StructuralError):
            factorize(graph, {foreign: Delta})

    def test_deterministic_order(self, graph, model):
        _, _, (e_m, e_p, e_y) = model
        groups = {e_y: Delta, e_p: Gamma, e_m: Gaussian}

        first = factorize(graph, groups)
        second = factorize(graph, groups)
        assert [s.marginal_type for s in first.subgraphs] == [s.marginal_type for s in second.subgraphs]
        assert [s.marginal_type for s in first.subgraphs] == [Gaussian, Gamma, Delta]


class TestSubgraph:
    def test_views(self, graph, model):
        g, (m_t, p_t, y_t), (e_m, e_p, e_y) = model
        fact = factorize(graph, {e_y: Delta})
        rest = fact.edge_to_subgraph[e_m]

        assert rest.nodes() == {g, m_t, p_t}
        assert rest.edges(include_external=False) == {e_m, e_p}
        assert rest.edges() == {e_m, e_p, e_y}
        assert rest.external_edges() == {e_y}
        assert rest.nodes_connected_to_external_edges() == {g}
        assert rest.internal_edges_at(g) == [e_m, e_p]
        assert "rest" in repr(rest)
