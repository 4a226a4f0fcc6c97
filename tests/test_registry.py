"""
Tests for rule registry and dispatch.
"""

import pytest

from forney.core.errors import DispatchError
from forney.distributions import ANY, Delta, Gamma, Gaussian, ProbabilityDistribution, marg, msg
from forney.graph import AdditionNode, EqualityNode, FactorGraph, GainNode, GaussianNode, TerminalNode
from forney.rules import InferenceMode, RuleRegistry, default_registry


@pytest.fixture
def graph():
    with FactorGraph() as g:
        yield g


class ScaledGainNode(GainNode):
    pass


class TestRegistration:
    def test_outbound_slot_must_be_void(self):
        registry = RuleRegistry()
        with pytest.raises(ValueError):
            registry.register(GainNode, 1, (msg(Delta), msg(Delta)), Delta)

    def test_outbound_type_required(self):
        registry = RuleRegistry()
        with pytest.raises(ValueError):
            registry.register(GainNode, 1, (msg(Delta), None))

    def test_decorator_returns_function(self):
        registry = RuleRegistry()

        @registry.register(GainNode, 1, (msg(Delta), None), Delta)
        def forward(node, x, _):
            return x

        assert len(registry) == 1
        assert registry.rules[0].func is forward
        assert registry.rules[0].name == "forward"


class TestResolve:
    def test_exact_match(self, graph):
        gain = GainNode(2.0)
        rule = default_registry.resolve(gain, 1, (msg(Delta), None), InferenceMode.SUM_PRODUCT)

        assert rule.name == "gain_forward_delta"
        assert rule.resolve_outbound_type(gain, 1, (msg(Delta), None)) is Delta

    def test_outbound_type_function(self, graph):
        t = TerminalNode(Gamma(2.0, 1.0))
        rule = default_registry.resolve(t, 0, (None,), InferenceMode.SUM_PRODUCT)

        assert rule.resolve_outbound_type(t, 0, (None,)) is Gamma

    def test_equality_outbound_type(self, graph):
        eq = EqualityNode()
        types = (msg(Gaussian), msg(Delta), None)
        rule = default_registry.resolve(eq, 2, types, InferenceMode.SUM_PRODUCT)

        assert rule.resolve_outbound_type(eq, 2, types) is Delta

    def test_no_match_names_types(self, graph):
        add = AdditionNode()
        with pytest.raises(DispatchError) as exc:
            default_registry.resolve(add, 2, (msg(Gamma), msg(Gamma), None), InferenceMode.SUM_PRODUCT)

        err = exc.value
        assert "(Message[Gamma], Message[Gamma], Void)" in str(err)
        assert err.node is add
        assert err.outbound_interface_id == 2
        assert err.mode is InferenceMode.SUM_PRODUCT

    def test_equality_without_product(self, graph):
        eq = EqualityNode()
        with pytest.raises(DispatchError):
            default_registry.resolve(eq, 2, (msg(Gamma), msg(Gaussian), None), InferenceMode.SUM_PRODUCT)

    def test_subclass_prefers_own_rule(self, graph):
        registry = RuleRegistry()

        @registry.register(GainNode, 1, (msg(Delta), None), Delta)
        def generic(node, x, _):
            return x

        @registry.register(ScaledGainNode, 1, (msg(Delta), None), Delta)
        def scaled(node, x, _):
            return x

        assert registry.resolve(ScaledGainNode(), 1, (msg(Delta), None), InferenceMode.SUM_PRODUCT).func is scaled
        assert registry.resolve(GainNode(), 1, (msg(Delta), None), InferenceMode.SUM_PRODUCT).func is generic

    def test_exact_payload_beats_wildcard(self, graph):
        registry = RuleRegistry()

        @registry.register(GainNode, 1, (ANY, None), Delta)
        def wildcard(node, x, _):
            return x

        @registry.register(GainNode, 1, (msg(Delta), None), Delta)
        def exact(node, x, _):
            return x

        rule = registry.resolve(GainNode(), 1, (msg(Delta), None), InferenceMode.SUM_PRODUCT)
        assert rule.func is exact

    def test_ambiguous(self, graph):
        registry = RuleRegistry()

        @registry.register(GainNode, 1, (msg(Delta), None), Delta)
        def first(node, x, _):
            return x

        @registry.register(GainNode, 1, (msg(Delta), None), Delta)
        def second(node, x, _):
            return x

        with pytest.raises(DispatchError) as exc:
            registry.resolve(GainNode(), 1, (msg(Delta), None), InferenceMode.SUM_PRODUCT)
        assert "Ambiguous" in str(exc.value)

    def test_marginal_slots_do_not_match_message_patterns(self, graph):
        add = AdditionNode()
        with pytest.raises(DispatchError):
            default_registry.resolve(add, 2, (marg(Delta), marg(Delta), None), InferenceMode.SUM_PRODUCT)


class TestModeFallback:
    def test_structured_falls_back_to_variational(self, graph):
        node = GaussianNode(form="precision")
        types = (None, marg(Gamma), marg(Delta))

        rule = default_registry.resolve(node, 0, types, InferenceMode.STRUCTURED)
        assert rule.mode is InferenceMode.VARIATIONAL
        assert rule.name == "gaussian_vmp_mean"

    def test_variational_falls_back_to_sum_product(self, graph):
        t = TerminalNode(Delta(1.0))
        rule = default_registry.resolve(t, 0, (None,), InferenceMode.VARIATIONAL)

        assert rule.mode is InferenceMode.SUM_PRODUCT

    def test_structured_rule_preferred(self, graph):
        node = GaussianNode(form="precision")
        types = (None, msg(Gamma), marg(Delta))

        rule = default_registry.resolve(node, 0, types, InferenceMode.STRUCTURED)
        assert rule.mode is InferenceMode.STRUCTURED

    def test_sum_product_never_falls_forward(self, graph):
        node = GaussianNode(form="precision")
        with pytest.raises(DispatchError):
            default_registry.resolve(node, 0, (None, marg(Gamma), marg(Delta)), InferenceMode.SUM_PRODUCT)

    def test_variance_form_has_no_variational_rule(self, graph):
        node = GaussianNode()
        with pytest.raises(DispatchError):
            default_registry.resolve(node, 0, (None, marg(Gamma), marg(Delta)), InferenceMode.VARIATIONAL)


class TestPatterns:
    def test_any_marginal_accepts_subclasses(self):
        assert marg(Gamma).matches(marg(ProbabilityDistribution))
        assert not msg(Gamma).matches(marg(ProbabilityDistribution))
