"""Member naming for reflected structs."""

from __future__ import annotations
import itertools
import threading
from typing import Optional

from reflc.ir.module import ShaderModule

# Upper bound on type-alias hops before giving up on a declared name
MAX_ALIAS_DEPTH = 32


class AnonymousNamer:
    """Hands out `unnamed_<n>` placeholder names.

    The counter only ever moves forward, so names from one namer never
    collide, across reflections and across threads.
    """

    def __init__(self, start: int = 0):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_name(self, suffix: str = "") -> str:
        with self._lock:
            n = next(self._counter)
        return f"unnamed_{n}{suffix}"


_process_namer = AnonymousNamer()


def process_namer() -> AnonymousNamer:
    """The namer shared by every reflection in this process."""
    return _process_namer


def member_name_if_exists(module: ShaderModule, type_id: int, index: int) -> Optional[str]:
    current = type_id
    for _ in range(MAX_ALIAS_DEPTH):
        t = module.resolve_type(current)
        if t is None:
            return None
        if t.type_alias == 0:
            return module.struct_member_alias(t.self_id, index)
        current = t.type_alias
    return None


def member_name_at_index(
    module: ShaderModule,
    type_id: int,
    index: int,
    suffix: str = "",
    namer: AnonymousNamer | None = None,
) -> str:
    name = member_name_if_exists(module, type_id, index)
    if name is not None:
        # Declared names take the suffix too, keeping padding fields distinct
        return name + suffix
    return (namer or _process_namer).next_name(suffix)
