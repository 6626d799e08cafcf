"""
Deps are the subscriber sets of the dependency store: one Dep
per (target, key) pair that has been read inside an effect.
"""

from __future__ import annotations

from enum import Enum


class _Sentinel:
    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return self.name


# Key that represents the set of keys of a target, read by
# anything that enumerates the target instead of reading one key
ITERATE_KEY = _Sentinel("ITERATE_KEY")
# Lists keep their length under a plain key, like any other property
LENGTH_KEY = "length"


class TriggerOp(Enum):
    SET = "set"
    ADD = "add"
    DELETE = "delete"


class Dep:
    __slots__ = ("__weakref__", "_subs")

    def __init__(self) -> None:
        self._subs: set["ReactiveEffect"] = set()  # noqa: F821

    def __contains__(self, sub: "ReactiveEffect") -> bool:  # noqa: F821
        return sub in self._subs

    def __len__(self) -> int:
        return len(self._subs)

    def add_sub(self, sub: "ReactiveEffect") -> None:  # noqa: F821
        self._subs.add(sub)

    def remove_sub(self, sub: "ReactiveEffect") -> None:  # noqa: F821
        self._subs.discard(sub)

    @property
    def subs(self) -> frozenset["ReactiveEffect"]:  # noqa: F821
        return frozenset(self._subs)
