"""
Tests for variational Bayes.
"""

import numpy as np
import pytest

from forney.algorithms import VariationalBayes
from forney.core.config import settings
from forney.distributions import Delta, Gamma, Gaussian, NormalGamma, marg, msg
from forney.graph import Edge, EqualityNode, FactorGraph, GaussianNode, TerminalNode
from forney.rules import InferenceMode

DATA = [4.8, 5.3, 5.1, 4.9, 5.2, 4.7, 5.0, 5.4, 4.6, 5.0]


@pytest.fixture
def graph():
    with FactorGraph() as g:
        yield g


@pytest.fixture
def iid_model(graph):
    """
    y_k ~ N(m, 1/gamma), m ~ N(0, 100), gamma ~ Gamma(1, 0.01).

    Observation edges are created first so their subgraph is updated first.
    """
    n = len(DATA)
    nodes = [GaussianNode(form="precision", id=f"g{k}") for k in range(n)]
    y_edges = [Edge(g.out, TerminalNode(y, id=f"y{k}").out) for k, (g, y) in enumerate(zip(nodes, DATA))]

    m_eq = EqualityNode(n + 1, id="m_eq")
    p_eq = EqualityNode(n + 1, id="p_eq")
    m_edges = [Edge(TerminalNode(Gaussian(m=0.0, V=100.0), id="m_prior"), m_eq)]
    p_edges = [Edge(TerminalNode(Gamma(1.0, 0.01), id="p_prior"), p_eq)]
    for g in nodes:
        m_edges.append(Edge(m_eq, g.mean))
        p_edges.append(Edge(p_eq, g.precision))

    groups = {tuple(y_edges): Delta, tuple(m_edges): Gaussian, tuple(p_edges): Gamma}
    return nodes, groups, (y_edges, m_edges, p_edges)


def entry_for(algo, interface):
    for subgraph in algo.factorization.subgraphs:
        for entry in subgraph.internal_schedule:
            if entry.outbound_interface is interface:
                return entry
    raise KeyError(interface)


class TestMeanField:
    def test_subgraphs(self, graph, iid_model):
        nodes, groups, _ = iid_model
        algo = VariationalBayes(factorization=groups)

        assert [s.marginal_type for s in algo.factorization.subgraphs] == [Delta, Gaussian, Gamma]
        for subgraph in algo.factorization.subgraphs:
            assert subgraph.external_schedule == nodes
        assert algo.n_iterations == settings.vmp_iterations

    def test_inbound_types(self, graph, iid_model):
        nodes, groups, _ = iid_model
        algo = VariationalBayes(factorization=groups)
        algo.prepare()
        g = nodes[0]

        mean = entry_for(algo, g.mean)
        assert mean.inbound_types == (None, marg(Gamma), marg(Delta))
        assert mean.mode is InferenceMode.VARIATIONAL
        assert mean.update_rule.name == "gaussian_vmp_mean"

        prec = entry_for(algo, g.precision)
        assert prec.inbound_types == (marg(Gaussian), None, marg(Delta))
        assert prec.outbound_type is Gamma

        out = entry_for(algo, g.out)
        assert out.inbound_types == (marg(Gaussian), marg(Gamma), None)

    def test_equality_entries_use_messages(self, graph, iid_model):
        nodes, groups, (_, m_edges, _) = iid_model
        algo = VariationalBayes(factorization=groups)
        algo.prepare()

        entry = entry_for(algo, m_edges[1].tail)
        assert all(t is None or t == msg(Gaussian) for t in entry.inbound_types)
        assert entry.update_rule.mode is InferenceMode.SUM_PRODUCT

    def test_initialize_installs_defaults(self, graph, iid_model):
        _, groups, (y_edges, m_edges, p_edges) = iid_model
        p_edges[0].marginal = Gamma(2.0, 1.0)
        algo = VariationalBayes(factorization=groups)
        algo.initialize()

        assert y_edges[0].marginal == Delta()
        assert m_edges[0].marginal == Gaussian.vague()
        assert p_edges[0].marginal == Gamma(2.0, 1.0)
        assert p_edges[1].marginal == Gamma.vague()

    def test_posterior(self, graph, iid_model):
        _, groups, (y_edges, m_edges, p_edges) = iid_model
        VariationalBayes(factorization=groups, n_iterations=50).execute()

        q_mean = m_edges[1].marginal
        q_prec = p_edges[1].marginal
        assert q_mean.mean() == pytest.approx(np.mean(DATA), abs=0.01)
        assert q_mean.var() == pytest.approx(1.0 / (0.01 + len(DATA) * q_prec.mean()), rel=1e-3)
        assert q_prec.a == pytest.approx(6.0)
        assert q_prec.mean() == pytest.approx(17.74, rel=1e-2)
        assert y_edges[3].marginal == Delta(DATA[3])


class TestStructured:
    @pytest.fixture
    def single(self, graph):
        g = GaussianNode(form="precision", id="g")
        e_y = Edge(g.out, TerminalNode(2.0, id="y").out)
        e_m = Edge(TerminalNode(Gaussian(m=0.0, V=100.0), id="m").out, g.mean)
        e_p = Edge(TerminalNode(Gamma(2.0, 1.0), id="p").out, g.precision)
        return g, (e_y, e_m, e_p)

    def test_inbound_types(self, graph, single):
        g, (e_y, e_m, e_p) = single
        algo = VariationalBayes(factorization={e_y: Delta, (e_m, e_p): NormalGamma})
        algo.prepare()

        out = entry_for(algo, g.out)
        assert out.mode is InferenceMode.STRUCTURED
        assert out.inbound_types == (marg(NormalGamma), marg(NormalGamma), None)
        assert out.update_rule.name == "gaussian_svmp_out"

        mean = entry_for(algo, g.mean)
        assert mean.inbound_types == (None, msg(Gamma), marg(Delta))
        assert mean.update_rule.name == "gaussian_svmp_mean"

        prec = entry_for(algo, g.precision)
        assert prec.inbound_types == (msg(Gaussian), None, marg(Delta))
        assert prec.update_rule.name == "gaussian_svmp_precision"

    def test_joint_marginal(self, graph, single):
        g, (e_y, e_m, e_p) = single
        algo = VariationalBayes(factorization={e_y: Delta, (e_m, e_p): NormalGamma}, n_iterations=5)
        joint_subgraph = algo.factorization.edge_to_subgraph[e_m]

        algo.prepare()
        assert isinstance(algo.factorization.joint_marginals[(g, joint_subgraph)], NormalGamma)

        algo.execute()
        joint = algo.factorization.joint_marginals[(g, joint_subgraph)]
        assert isinstance(joint, NormalGamma)
        assert joint.m == pytest.approx(e_m.marginal.mean())
        assert 0.0 < e_m.marginal.mean() < 2.0
        assert e_y.marginal == Delta(2.0)
