"""
Core module: errors, settings, logging and id registry.
"""

from forney.core.errors import (
    ForneyError,
    StructuralError,
    CycleError,
    DispatchError,
    BufferExhaustionError,
    TypeMismatchError,
)
from forney.core.config import ForneySettings, settings
from forney.core.logging import configure_logging
from forney.core.registry import IDRegistry

__all__ = [
    "ForneyError",
    "StructuralError",
    "CycleError",
    "DispatchError",
    "BufferExhaustionError",
    "TypeMismatchError",
    "ForneySettings",
    "settings",
    "configure_logging",
    "IDRegistry",
]
