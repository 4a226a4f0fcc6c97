"""
forney/core/registry.py

ID registry for nodes and edges of a factor graph.

Maintains disjoint name spaces per kind and hands out readable
auto-generated ids (``addition1``, ``addition2``, ...).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict

from forney.core.errors import StructuralError


def _snake(name: str) -> str:
    """CamelCase class name -> short snake prefix, dropping a ``Node`` suffix."""
    if name.endswith("Node") and name != "Node":
        name = name[: -len("Node")]
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


@dataclass
class IDRegistry:
    """
    Registry of ids in use within one graph.

    Attributes:
        taken: kind -> set of ids already registered
        counters: prefix -> last counter value handed out
    """
    taken: Dict[str, set] = field(default_factory=dict)
    counters: Dict[str, int] = field(default_factory=dict)

    def generate(self, kind: str, type_name: str) -> str:
        """Generate a fresh id for an object of class ``type_name``."""
        prefix = _snake(type_name)
        used = self.taken.setdefault(kind, set())
        n = self.counters.get(prefix, 0)
        while True:
            n += 1
            candidate = f"{prefix}{n}"
            if candidate not in used:
                self.counters[prefix] = n
                return candidate

    def register(self, kind: str, ident: str) -> str:
        """Claim ``ident`` for ``kind``; duplicates are a structural error."""
        used = self.taken.setdefault(kind, set())
        if ident in used:
            raise StructuralError(f"Duplicate {kind} id: {ident!r}")
        used.add(ident)
        return ident
