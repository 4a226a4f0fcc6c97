"""
forney/algorithms/base.py

Common driver for inference algorithms.

Lifecycle:
- prepare(): seed buffered terminals with their first value and compile
  (runs once)
- execute(): one full pass of the algorithm's schedule(s)
- step(): one section of streaming execution
- run(): step until a read buffer is exhausted
"""

from __future__ import annotations

from typing import Optional

import structlog

from forney.core.errors import BufferExhaustionError, TypeMismatchError
from forney.graph.structure import FactorGraph, current_graph
from forney.runtime.execute import (
    check_read_buffers,
    load_read_buffers,
    propagate_wraps,
    read_buffers_exhausted,
    write_buffers,
)

log = structlog.get_logger(__name__)


class InferenceAlgorithm:
    """
    Base class for message passing algorithms over one factor graph.

    Subclasses implement ``compile`` and ``execute``.
    """

    def __init__(self, graph: Optional[FactorGraph] = None):
        self.graph = graph if graph is not None else current_graph()
        self.prepared = False

    def compile(self) -> None:
        raise NotImplementedError

    def execute(self):
        raise NotImplementedError

    def initialize(self) -> None:
        """Hook run by prepare() after seeding and before compiling."""

    def prepare(self) -> None:
        """Seed buffered terminals and compile; calling it again does nothing."""
        if self.prepared:
            return
        for node, buffer in self.graph.read_buffers.items():
            if buffer:
                node.set_value(buffer[0])
        self.initialize()
        self.compile()
        self.prepared = True
        log.debug("algorithm_prepared", algorithm=type(self).__name__, section=self.graph.current_section)

    def step(self):
        """
        Process the current section and advance the cursor.

        Returns:
            Result of execute() for this section

        Raises:
            BufferExhaustionError: if a read buffer has no value for this
                section; nothing is modified in that case
            TypeMismatchError: if a buffered value does not fit the type its
                terminal was compiled for; nothing is modified in that case
        """
        graph = self.graph
        try:
            check_read_buffers(graph)
        except BufferExhaustionError:
            log.error("read_buffer_exhausted", section=graph.current_section)
            raise
        self.prepare()
        try:
            load_read_buffers(graph)
        except TypeMismatchError:
            log.error("read_buffer_type_mismatch", section=graph.current_section)
            raise
        result = self.execute()
        write_buffers(graph)
        propagate_wraps(graph)
        graph.current_section += 1
        log.debug("section_done", section=graph.current_section - 1)
        return result

    def run(self) -> None:
        """
        Step until any read buffer is exhausted.

        Raises:
            BufferExhaustionError: if no read buffer is attached
        """
        graph = self.graph
        if not graph.read_buffers:
            log.error("run_without_read_buffers", graph=repr(graph))
            raise BufferExhaustionError("run() needs at least one read buffer to bound the number of sections")
        self.prepare()
        start = graph.current_section
        while not read_buffers_exhausted(graph):
            self.step()
        log.info("run_finished", sections=graph.current_section - start)
