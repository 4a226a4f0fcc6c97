"""
Schedule module: entries, DFS synthesis, compilation and factorization.
"""

from forney.schedule.entry import ScheduleEntry, Schedule, set_post_processing
from forney.schedule.dfs import generate_schedule_by_dfs, generate_schedule
from forney.schedule.compiler import ScheduleCompiler, compile_schedule, post_processing_type
from forney.schedule.subgraph import Subgraph, Factorization, factorize

__all__ = [
    # entry
    "ScheduleEntry",
    "Schedule",
    "set_post_processing",
    # dfs
    "generate_schedule_by_dfs",
    "generate_schedule",
    # compiler
    "ScheduleCompiler",
    "compile_schedule",
    "post_processing_type",
    # subgraph
    "Subgraph",
    "Factorization",
    "factorize",
]
