"""
The runtime owns the stack of running effects and the dependency
store, and implements tracking of reads and triggering of effects
on writes.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from .dep import ITERATE_KEY, LENGTH_KEY, Dep, TriggerOp
from .proxy_db import ProxyDb

logger = logging.getLogger(__name__)


class Runtime:
    __slots__ = ("__weakref__", "db", "stack")

    def __init__(self) -> None:
        self.stack: list["ReactiveEffect"] = []  # noqa: F821
        self.db = ProxyDb()

    @property
    def active_effect(self) -> Optional["ReactiveEffect"]:  # noqa: F821
        if self.stack:
            return self.stack[-1]
        return None

    def reset(self) -> None:
        """Forget all running effects and all tracked dependencies"""
        self.stack.clear()
        self.db.clear()

    def execute(self, effect: "ReactiveEffect") -> Any:  # noqa: F821
        if not effect.active:
            return effect.fn()
        if effect.running:
            logger.debug("Skipping recursive run of %r", effect)
            return None

        self.cleanup(effect)
        effect.running = True
        self.stack.append(effect)
        try:
            return effect.fn()
        finally:
            self.stack.pop()
            effect.running = False

    def cleanup(self, effect: "ReactiveEffect") -> None:  # noqa: F821
        """
        Stops the effects that were created during the previous run of
        the given effect and unsubscribes it from all its deps.
        """
        children, effect.children = effect.children, []
        for child in children:
            self.stop(child)
        for dep in effect.deps:
            dep.remove_sub(effect)
        effect.deps.clear()

    def stop(self, effect: "ReactiveEffect") -> None:  # noqa: F821
        if not effect.active:
            return
        logger.debug("Stopping %r", effect)
        self.cleanup(effect)
        effect.active = False

    def track(self, target: Any, key: Any) -> None:
        if not self.stack:
            return
        dep = self.db.dep(target, key)
        if dep is not None:
            self.track_dep(dep)

    def track_dep(self, dep: Dep) -> None:
        effect = self.active_effect
        if effect is None or not effect.active or effect in dep:
            return
        dep.add_sub(effect)
        effect.deps.add(dep)

    def trigger(
        self, target: Any, key: Any, op: TriggerOp, new_value: Any = None
    ) -> None:
        self.trigger_changes(target, ((key, op, new_value),))

    def trigger_changes(
        self, target: Any, changes: Iterable[tuple[Any, TriggerOp, Any]]
    ) -> None:
        """
        Runs every effect that depends on any of the changes made to
        the target. Each effect runs at most once, in order of creation.
        """
        deps = self.db.deps(target)
        if not deps:
            return

        is_list = isinstance(target, list)
        effects = set()
        for key, op, new_value in changes:
            if is_list and key == LENGTH_KEY:
                # Shrinking a list removes every index from the new length on
                for dep_key, dep in deps.items():
                    if (
                        dep_key == LENGTH_KEY
                        or dep_key is ITERATE_KEY
                        or (isinstance(dep_key, int) and dep_key >= new_value)
                    ):
                        effects.update(dep.subs)
                continue

            if key in deps:
                effects.update(deps[key].subs)
            if op is not TriggerOp.SET and ITERATE_KEY in deps:
                effects.update(deps[ITERATE_KEY].subs)
            if is_list and op is TriggerOp.ADD and LENGTH_KEY in deps:
                effects.update(deps[LENGTH_KEY].subs)

        if effects:
            logger.debug(
                "Triggering %d effect(s) for %s", len(effects), type(target).__name__
            )
            self.run_effects(effects)

    def run_effects(self, effects: Iterable["ReactiveEffect"]) -> None:  # noqa: F821
        for effect in sorted(effects, key=lambda e: e.id):
            # An earlier effect in this loop might have stopped this one
            if not effect.active:
                continue
            if effect.running:
                logger.debug("Skipping self-trigger of %r", effect)
                continue
            if effect.scheduler is not None:
                effect.scheduler(effect)
            else:
                self.execute(effect)


# Construct global instance
runtime = Runtime()
