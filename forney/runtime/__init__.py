"""
Runtime module: schedule execution and streaming buffers.
"""

from forney.runtime.execute import (
    execute_schedule,
    check_read_buffers,
    read_buffers_exhausted,
    load_read_buffers,
    write_buffers,
    propagate_wraps,
)
from forney.runtime.buffers import (
    attach_read_buffer,
    detach_read_buffer,
    attach_write_buffer,
    detach_write_buffer,
    detach_buffers,
    empty_read_buffers,
    empty_write_buffers,
)

__all__ = [
    # execute
    "execute_schedule",
    "check_read_buffers",
    "read_buffers_exhausted",
    "load_read_buffers",
    "write_buffers",
    "propagate_wraps",
    # buffers
    "attach_read_buffer",
    "detach_read_buffer",
    "attach_write_buffer",
    "detach_write_buffer",
    "detach_buffers",
    "empty_read_buffers",
    "empty_write_buffers",
]
