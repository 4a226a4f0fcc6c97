"""
Tests for read/write buffers, wraps and stepped execution.
"""

import numpy as np
import pytest

from forney.algorithms import SumProduct
from forney.core.errors import BufferExhaustionError, StructuralError, TypeMismatchError
from forney.distributions import Delta, Gaussian, Message
from forney.graph import AdditionNode, Edge, FactorGraph, GainNode, TerminalNode, Wrap
from forney.runtime import (
    attach_read_buffer,
    attach_write_buffer,
    detach_buffers,
    detach_read_buffer,
    detach_write_buffer,
    empty_read_buffers,
    empty_write_buffers,
    propagate_wraps,
)


@pytest.fixture
def graph():
    with FactorGraph() as g:
        yield g


@pytest.fixture
def accumulator(graph):
    """
    Running sum: out_n = out_{n-1} + delta_n, with the previous output fed
    back through a wrap.
    """
    prev = TerminalNode(0.0, id="prev")
    delta = TerminalNode(id="delta")
    add = AdditionNode(id="add")
    out = TerminalNode(id="out")
    Edge(prev.out, add.in1)
    Edge(delta.out, add.in2)
    Edge(add.out, out.out)
    Wrap(out, prev)
    return prev, delta, add, out


class TestReadBuffers:
    def test_attach_keeps_reference(self, graph):
        node = TerminalNode()
        data = [Delta(1.0), Delta(2.0)]
        attach_read_buffer(node, data)

        assert graph.read_buffers[node] is data

    def test_attach_converts_iterables(self, graph):
        node = TerminalNode()
        attach_read_buffer(node, (1.0, 2.0))

        assert graph.read_buffers[node] == [1.0, 2.0]

    def test_attach_sets_value_type(self, graph):
        node = TerminalNode(Gaussian())
        attach_read_buffer(node, [1.0, 2.0])

        assert isinstance(node.value, Delta)

    def test_attach_requires_terminal(self, graph):
        with pytest.raises(StructuralError):
            attach_read_buffer(AdditionNode(), [1.0])

    def test_mini_batch(self, graph):
        a, b = TerminalNode(), TerminalNode()
        attach_read_buffer([a, b], [1.0, 2.0, 3.0, 4.0])

        assert graph.read_buffers[a] == [1.0, 3.0]
        assert graph.read_buffers[b] == [2.0, 4.0]

    def test_mini_batch_uneven(self, graph):
        a, b = TerminalNode(), TerminalNode()
        with pytest.raises(BufferExhaustionError):
            attach_read_buffer([a, b], [1.0, 2.0, 3.0])

    def test_detach(self, graph):
        node = TerminalNode()
        attach_read_buffer(node, [1.0])
        detach_read_buffer(node)

        assert node not in graph.read_buffers
        with pytest.raises(KeyError):
            detach_read_buffer(node)

    def test_empty_clears_in_place(self, graph):
        node = TerminalNode()
        data = [1.0, 2.0]
        attach_read_buffer(node, data)
        graph.current_section = 1

        empty_read_buffers(graph)
        assert data == []
        assert graph.read_buffers[node] is data
        assert graph.current_section == 0


class TestWriteBuffers:
    def test_attach_returns_buffer(self, graph):
        node = TerminalNode()
        log = []

        assert attach_write_buffer(node.out, log) is log
        assert graph.write_buffers[node.out] is log
        assert attach_write_buffer(TerminalNode().out) == []

    def test_attach_rejects_nodes(self, graph):
        with pytest.raises(StructuralError):
            attach_write_buffer(TerminalNode())

    def test_empty_and_detach(self, graph):
        node = TerminalNode()
        log = attach_write_buffer(node.out, [Delta(1.0)])

        empty_write_buffers(graph)
        assert log == []
        assert graph.write_buffers[node.out] is log

        detach_write_buffer(node.out)
        assert node.out not in graph.write_buffers
        with pytest.raises(KeyError):
            detach_write_buffer(node.out)

    def test_detach_all(self, graph):
        node = TerminalNode()
        attach_read_buffer(node, [1.0])
        attach_write_buffer(node.out)

        detach_buffers(graph)
        assert graph.read_buffers == {}
        assert graph.write_buffers == {}


class TestStreaming:
    def test_run_accumulates(self, graph, accumulator):
        _, delta, add, _ = accumulator
        attach_read_buffer(delta, [Delta(float(k)) for k in range(1, 11)])
        sums = attach_write_buffer(add.out)

        SumProduct().run()

        np.testing.assert_allclose([d.m for d in sums], np.cumsum(range(1, 11)))
        assert graph.current_section == 10

    def test_step_by_step(self, graph, accumulator):
        prev, delta, add, _ = accumulator
        attach_read_buffer(delta, [1.0, 2.0, 3.0])
        sums = attach_write_buffer(add.out)
        algo = SumProduct()

        assert algo.step() == Delta(1.0)
        assert prev.value == Delta(1.0)
        assert algo.step() == Delta(3.0)
        assert graph.current_section == 2
        assert [d.m for d in sums] == [1.0, 3.0]

    def test_step_past_end(self, graph, accumulator):
        prev, delta, add, _ = accumulator
        attach_read_buffer(delta, [1.0, 2.0])
        sums = attach_write_buffer(add.out)
        algo = SumProduct()
        algo.run()

        with pytest.raises(BufferExhaustionError):
            algo.step()
        assert len(sums) == 2
        assert graph.current_section == 2
        assert prev.value == Delta(3.0)

    def test_run_without_read_buffers(self, graph, accumulator):
        _, _, add, _ = accumulator
        attach_write_buffer(add.out)

        with pytest.raises(BufferExhaustionError):
            SumProduct().run()

    def test_resume_after_refill(self, graph, accumulator):
        _, delta, add, _ = accumulator
        data = [1.0, 2.0]
        attach_read_buffer(delta, data)
        sums = attach_write_buffer(add.out)
        algo = SumProduct()
        algo.run()

        empty_read_buffers(graph)
        data.extend([10.0])
        algo.run()

        assert [d.m for d in sums] == [1.0, 3.0, 13.0]

    def test_edge_write_buffer_logs_marginals(self, graph):
        prior = TerminalNode(Gaussian(m=0.0, V=1.0))
        obs = TerminalNode()
        edge = Edge(prior.out, obs.out)
        attach_read_buffer(obs, [Gaussian(m=2.0, V=1.0), Gaussian(m=4.0, V=1.0)])
        marginals = attach_write_buffer(edge)

        SumProduct().run()

        assert [m.mean() for m in marginals] == pytest.approx([1.0, 2.0])

    def test_buffered_value_of_another_family(self, graph):
        source = TerminalNode(id="source")
        gain = GainNode(2.0)
        Edge(source.out, gain.in1)
        Edge(gain.out, TerminalNode().out)
        attach_read_buffer(source, [Gaussian(m=1.0, V=1.0), 2.0])
        doubled = attach_write_buffer(gain.out)
        algo = SumProduct()

        assert algo.step().mean() == pytest.approx(2.0)
        with pytest.raises(TypeMismatchError) as exc:
            algo.step()
        assert "source" in str(exc.value)
        assert len(doubled) == 1
        assert graph.current_section == 1
        assert source.value == Gaussian(m=1.0, V=1.0)


class TestWraps:
    def test_wrap_source_outside_goals(self, graph, accumulator):
        _, delta, _, _ = accumulator
        attach_read_buffer(delta, [1.0, 2.0])

        with pytest.raises(StructuralError) as exc:
            SumProduct(goals=[delta.out]).step()
        assert "Wrap(out -> prev)" in str(exc.value)
        assert graph.current_section == 0

    def test_explicit_goals_with_wrap_source(self, graph, accumulator):
        prev, delta, add, out = accumulator
        attach_read_buffer(delta, [1.0, 2.0])

        SumProduct(goals=[add.out]).run()
        assert prev.value == Delta(3.0)

    def test_wrap_payload_of_another_family(self, graph, accumulator):
        prev, delta, add, out = accumulator
        attach_read_buffer(delta, [1.0, 2.0])
        algo = SumProduct()
        algo.step()

        add.out.message = Message(Gaussian(m=0.0, V=1.0))
        with pytest.raises(TypeMismatchError):
            propagate_wraps(graph)
        assert prev.value == Delta(1.0)
