"""
Tests for distributions module.
"""

import numpy as np
import pytest

from forney.core.errors import StructuralError, TypeMismatchError
from forney.distributions import (
    ANY,
    Beta,
    Delta,
    Gamma,
    Gaussian,
    Message,
    MessageType,
    MvDelta,
    NormalGamma,
    calculate_joint_marginal,
    calculate_marginal,
    format_types,
    joint_marginal_type,
    marg,
    mean_value,
    msg,
    prod,
    product_type,
    slot_matches,
    to_distribution,
    update_marginal,
)
from forney.graph import Edge, FactorGraph, TerminalNode


class TestGaussian:
    def test_default_is_standard_normal(self):
        g = Gaussian()
        assert g.mean() == 0.0
        assert g.var() == 1.0

    def test_requires_parameter_pair(self):
        with pytest.raises(TypeMismatchError):
            Gaussian(m=1.0)

    def test_conversions(self):
        g = Gaussian(m=[1.0, 2.0], V=[[2.0, 0.0], [0.0, 4.0]])

        mw = g.ensure_mw()
        np.testing.assert_allclose(mw.W, [[0.5, 0.0], [0.0, 0.25]])

        xiw = g.ensure_xiw()
        np.testing.assert_allclose(xiw.xi, [0.5, 0.5])

        back = Gaussian(xi=xiw.xi, W=xiw.W).ensure_mv()
        np.testing.assert_allclose(back.m, [1.0, 2.0])
        np.testing.assert_allclose(back.V, g.V)

    def test_conversion_returns_new_object(self):
        g = Gaussian(m=0.0, W=2.0)
        assert g.ensure_mw() is g
        assert g.ensure_mv() is not g
        assert g.V is None

    def test_equality_across_parameterizations(self):
        assert Gaussian(m=1.0, V=0.5) == Gaussian(m=1.0, W=2.0)
        assert Gaussian(m=1.0, V=0.5) != Gaussian(m=1.0, V=1.0)

    def test_precision(self):
        assert Gaussian(m=0.0, V=4.0).precision() == pytest.approx(0.25)


class TestGammaBeta:
    def test_gamma_moments(self):
        g = Gamma(a=2.0, b=4.0)
        assert g.mean() == pytest.approx(0.5)
        assert g.var() == pytest.approx(0.125)

    def test_beta_log_means(self):
        b = Beta(a=1.0, b=1.0)
        assert b.mean() == pytest.approx(0.5)
        assert b.log_mean() == pytest.approx(-1.0)
        assert b.mirrored_log_mean() == pytest.approx(-1.0)


class TestDelta:
    def test_delta_rejects_arrays(self):
        with pytest.raises(TypeMismatchError):
            Delta(np.array([1.0, 2.0]))

    def test_mvdelta_rejects_matrices(self):
        with pytest.raises(TypeMismatchError):
            MvDelta([[1.0]])

    def test_to_distribution(self):
        assert to_distribution(2) == Delta(2)
        assert to_distribution([1.0, 2.0]) == MvDelta([1.0, 2.0])
        with pytest.raises(TypeMismatchError):
            to_distribution("x")

    def test_mean_value(self):
        assert mean_value(Gaussian(m=3.0, V=2.0)) == Delta(3.0)


class TestMessage:
    def test_rejects_nesting(self):
        with pytest.raises(TypeMismatchError):
            Message(Message(Delta()))
        with pytest.raises(TypeMismatchError):
            Message(1.0)

    def test_type(self):
        assert Message(Gamma()).type == MessageType(Gamma)

    def test_slot_matching(self):
        assert slot_matches(msg(Gaussian), msg(Gaussian))
        assert slot_matches(msg(Delta), ANY)
        assert not slot_matches(msg(Gaussian), marg(Gaussian))
        assert not slot_matches(None, ANY)
        assert slot_matches(None, None)

    def test_format_types(self):
        assert format_types((msg(Delta), None)) == "(Message[Delta], Void)"


class TestProducts:
    def test_gaussian_product(self):
        out = prod(Gaussian(m=0.0, V=1.0), Gaussian(m=2.0, V=1.0))
        assert out.mean() == pytest.approx(1.0)
        assert out.var() == pytest.approx(0.5)

    def test_gamma_product(self):
        assert prod(Gamma(2.0, 1.0), Gamma(3.0, 2.0)) == Gamma(4.0, 3.0)

    def test_delta_dominates(self):
        assert prod(Gaussian(), Delta(3.0)) == Delta(3.0)
        assert product_type(Gaussian, Delta) is Delta

    def test_delta_mismatch(self):
        with pytest.raises(ValueError):
            prod(Delta(1.0), Delta(2.0))

    def test_no_product(self):
        with pytest.raises(TypeMismatchError):
            prod(Gamma(), Gaussian())


class TestMarginals:
    @pytest.fixture
    def edge(self):
        with FactorGraph():
            a = TerminalNode(Gaussian(m=0.0, V=1.0))
            b = TerminalNode(Gaussian(m=4.0, V=1.0))
            yield Edge(a, b)

    def test_missing_message(self, edge):
        with pytest.raises(StructuralError):
            calculate_marginal(edge)

    def test_update_marginal(self, edge):
        edge.tail.message = Message(edge.tail.node.value)
        edge.head.message = Message(edge.head.node.value)

        pure = calculate_marginal(edge)
        assert edge.marginal is None

        stored = update_marginal(edge)
        assert stored == pure
        assert edge.marginal is stored
        assert stored.mean() == pytest.approx(2.0)

    def test_normal_gamma_joint(self):
        q_mean = Gaussian(m=1.0, W=6.0)
        q_prec = Gamma(a=3.0, b=1.0)

        joint = calculate_joint_marginal([q_mean, q_prec])
        assert isinstance(joint, NormalGamma)
        assert joint.m == pytest.approx(1.0)
        assert joint.beta == pytest.approx(2.0)
        assert joint_marginal_type([Gaussian, Gamma]) is NormalGamma
