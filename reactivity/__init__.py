from importlib.metadata import version

__version__ = version("reactivity")


from .dep import ITERATE_KEY, LENGTH_KEY, TriggerOp
from .dict_proxy import DictProxy, get_prototype, set_prototype
from .effect import ReactiveEffect, computed, effect, stop
from .list_proxy import ListProxy
from .object_proxy import ObjectProxy
from .proxy import (
    is_proxy,
    is_reactive,
    is_readonly,
    is_shallow,
    proxy,
    reactive,
    readonly,
    ref,
    shallow_reactive,
    shallow_readonly,
    to_raw,
)
from .runtime import Runtime, runtime
from .traps import ReadonlyWarning
