"""
Forney: message passing on Forney-style factor graphs

Schedules message computations by depth-first dependency search, resolves
typed update rules once at compile time and runs the compiled schedules in
batch or over streaming read/write buffers.

Key components:
- core: errors, settings, logging and id registry
- distributions: payload families, messages, products and marginals
- graph: factor graph structure, node catalog and composite nodes
- rules: update-rule registry and the built-in rule catalog
- schedule: schedule entries, DFS synthesis, compilation and factorization
- runtime: schedule execution and streaming buffers
- algorithms: sum-product and variational Bayes drivers
"""

__version__ = "0.3.0"
__author__ = "Forney Team"

from forney.core import (
    ForneyError,
    StructuralError,
    CycleError,
    DispatchError,
    BufferExhaustionError,
    TypeMismatchError,
    settings,
    configure_logging,
)
from forney.distributions import (
    Delta,
    MvDelta,
    Gaussian,
    Gamma,
    Beta,
    NormalGamma,
    Message,
    msg,
    marg,
    mean_value,
)
from forney.graph import (
    FactorGraph,
    Edge,
    Interface,
    Node,
    TerminalNode,
    AdditionNode,
    GainNode,
    EqualityNode,
    GaussianNode,
    GainAdditionCompositeNode,
    Wrap,
    current_graph,
)
from forney.rules import InferenceMode, RuleRegistry, default_registry
from forney.schedule import (
    Schedule,
    ScheduleEntry,
    ScheduleCompiler,
    generate_schedule_by_dfs,
    generate_schedule,
    compile_schedule,
    set_post_processing,
    factorize,
)
from forney.runtime import (
    execute_schedule,
    attach_read_buffer,
    detach_read_buffer,
    attach_write_buffer,
    detach_write_buffer,
    detach_buffers,
    empty_read_buffers,
    empty_write_buffers,
)
from forney.algorithms import SumProduct, VariationalBayes

__all__ = [
    # Errors and settings
    "ForneyError",
    "StructuralError",
    "CycleError",
    "DispatchError",
    "BufferExhaustionError",
    "TypeMismatchError",
    "settings",
    "configure_logging",
    # Distributions
    "Delta",
    "MvDelta",
    "Gaussian",
    "Gamma",
    "Beta",
    "NormalGamma",
    "Message",
    "msg",
    "marg",
    "mean_value",
    # Graph
    "FactorGraph",
    "Edge",
    "Interface",
    "Node",
    "TerminalNode",
    "AdditionNode",
    "GainNode",
    "EqualityNode",
    "GaussianNode",
    "GainAdditionCompositeNode",
    "Wrap",
    "current_graph",
    # Rules
    "InferenceMode",
    "RuleRegistry",
    "default_registry",
    # Schedule
    "Schedule",
    "ScheduleEntry",
    "ScheduleCompiler",
    "generate_schedule_by_dfs",
    "generate_schedule",
    "compile_schedule",
    "set_post_processing",
    "factorize",
    # Runtime
    "execute_schedule",
    "attach_read_buffer",
    "detach_read_buffer",
    "attach_write_buffer",
    "detach_write_buffer",
    "detach_buffers",
    "empty_read_buffers",
    "empty_write_buffers",
    # Algorithms
    "SumProduct",
    "VariationalBayes",
]
