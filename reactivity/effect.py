"""
Effects perform dependency tracking via functions acting on
reactive datastructures, and run again when a change is detected.
"""

from __future__ import annotations

from functools import wraps
from itertools import count
from typing import Any, Callable, Generic, Optional, TypeVar

from .dep import Dep
from .runtime import Runtime, runtime as default_runtime

T = TypeVar("T")
Scheduler = Callable[["ReactiveEffect"], Any]

# Every effect gets a unique ID which is used to
# keep track of the order in which subscribers will
# be notified
_ids = count()


class ReactiveEffect(Generic[T]):
    __slots__ = (
        "__weakref__",
        "active",
        "children",
        "deps",
        "fn",
        "id",
        "lazy",
        "parent",
        "running",
        "runtime",
        "scheduler",
    )

    def __init__(
        self,
        fn: Callable[[], T],
        lazy: bool = False,
        scheduler: Optional[Scheduler] = None,
        runtime: Optional[Runtime] = None,
    ) -> None:
        """
        lazy: Don't run the effect on creation
        scheduler: Called with the effect instead of running it on changes
        runtime: Runtime to track dependencies in
        """
        self.id = next(_ids)
        self.fn = fn
        self.lazy = lazy
        self.scheduler = scheduler
        self.runtime = runtime if runtime is not None else default_runtime
        self.deps = set()
        self.children = []
        self.active = True
        self.running = False

        # Effects created while another effect runs belong to that effect
        # and are stopped when it runs again
        self.parent = self.runtime.active_effect
        if self.parent is not None:
            self.parent.children.append(self)

        if not lazy:
            self.run()

    def __call__(self) -> T:
        return self.run()

    def __repr__(self) -> str:
        state = "active" if self.active else "stopped"
        name = getattr(self.fn, "__qualname__", repr(self.fn))
        return f"<ReactiveEffect {self.id} {name} ({state})>"

    def run(self) -> T:
        return self.runtime.execute(self)

    def stop(self) -> None:
        self.runtime.stop(self)


def effect(
    _fn: Callable[[], T] | None = None,
    *,
    lazy: bool = False,
    scheduler: Optional[Scheduler] = None,
    runtime: Optional[Runtime] = None,
):
    """
    Runs the given function and runs it again each time
    reactive state that it read is changed. Returns the effect,
    which can be called to run the function manually.
    Can be used as a decorator, with or without arguments.
    """

    def decorator_effect(fn: Callable[[], T]) -> ReactiveEffect[T]:
        return ReactiveEffect(fn, lazy=lazy, scheduler=scheduler, runtime=runtime)

    if _fn is None:
        return decorator_effect
    return decorator_effect(_fn)


def stop(effect: ReactiveEffect) -> None:
    """
    Unsubscribes the effect from all its dependencies, so that
    it won't run anymore on changes.
    """
    effect.stop()


def computed(
    _fn: Callable[[], T] | None = None, *, runtime: Optional[Runtime] = None
) -> Callable[[], T]:
    def decorator_computed(fn: Callable[[], T]) -> Callable[[], T]:
        """
        Create a cached getter for an expression that is only
        evaluated again when it is requested after a change.
        Note: make sure fn doesn't need any arguments to run
        and that no reactive state is changed within the expression
        """
        rt = runtime if runtime is not None else default_runtime
        # Effects that read the computed value subscribe to this dep
        # and run again once the value became dirty
        dep = Dep()
        dirty = True
        value = None

        def invalidate(_effect):
            nonlocal dirty
            if not dirty:
                dirty = True
                rt.run_effects(dep.subs)

        watcher = ReactiveEffect(fn, lazy=True, scheduler=invalidate, runtime=rt)

        @wraps(fn)
        def getter():
            nonlocal dirty, value
            if dirty:
                value = watcher.run()
                dirty = False
            rt.track_dep(dep)
            return value

        getter.__effect__ = watcher
        return getter

    if _fn is None:
        return decorator_computed
    return decorator_computed(_fn)
