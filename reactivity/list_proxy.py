from functools import partial, wraps
from operator import index as as_index

from .dep import LENGTH_KEY, TriggerOp
from .proxy import TYPE_LOOKUP, Proxy, to_raw
from .traps import (
    construct_methods_traps_dict,
    has_changed,
    iterate_trap,
    read_trap,
    readonly_trap,
    shape_trap,
    track,
    track_keys,
    wrap,
)


def _length_key(self):
    return (LENGTH_KEY,)


def _content_keys(self):
    return (LENGTH_KEY, *range(len(to_raw(self))))


def _unwrap_args(self, method, args):
    """Replaces proxies in the arguments of a write by their targets"""
    if self.__shallow__ or not args:
        return args
    if method in ("append", "remove"):
        return (to_raw(args[0]),)
    if method == "insert":
        return (args[0], to_raw(args[1]))
    if method in ("extend", "__iadd__"):
        return ([to_raw(value) for value in args[0]],)
    if method == "__setitem__":
        key, value = args
        if isinstance(key, slice):
            return (key, [to_raw(item) for item in value])
        return (key, to_raw(value))
    return args


def list_changes(old, new):
    """
    Returns the changes between two versions of a list as
    (key, op, new value) tuples. A shorter list reports a change
    of the length key.
    """
    changes = [
        (i, TriggerOp.SET, new[i])
        for i in range(min(len(old), len(new)))
        if has_changed(old[i], new[i])
    ]
    changes.extend((i, TriggerOp.ADD, new[i]) for i in range(len(old), len(new)))
    if len(new) < len(old):
        changes.append((LENGTH_KEY, TriggerOp.SET, len(new)))
    return changes


def write_trap(method, obj_cls):
    fn = getattr(obj_cls, method)

    @wraps(fn)
    def trap(self, *args, **kwargs):
        target = self.__target__
        old = target.copy()
        retval = getattr(target, method)(*_unwrap_args(self, method, args), **kwargs)
        changes = list_changes(old, target)
        if changes:
            self.__runtime__.trigger_changes(target, changes)
        if method.startswith("__i"):
            # in-place operators should keep the name bound to the proxy
            return self
        return retval

    return trap


list_traps = {
    "LENGTH": {
        "__len__",
    },
    "READERS": {
        "count",
        "index",
        "copy",
        "__add__",
        "__contains__",
        "__eq__",
        "__format__",
        "__ge__",
        "__gt__",
        "__le__",
        "__lt__",
        "__mul__",
        "__ne__",
        "__repr__",
        "__rmul__",
        "__sizeof__",
        "__str__",
    },
    "ITERATORS": {
        "__iter__",
        "__reversed__",
    },
}

list_writers = {
    "append",
    "clear",
    "extend",
    "insert",
    "pop",
    "remove",
    "reverse",
    "sort",
    "__delitem__",
    "__iadd__",
    "__imul__",
    "__setitem__",
}

trap_map = {
    "LENGTH": partial(shape_trap, keys=_length_key),
    "READERS": partial(read_trap, keys=_content_keys),
    "ITERATORS": partial(iterate_trap, keys=_content_keys),
    "WRITERS": write_trap,
}

trap_map_readonly = {
    **trap_map,
    "WRITERS": readonly_trap,
}


class ListProxyBase(Proxy[list]):
    def __getitem__(self, key):
        target = self.__target__
        if isinstance(key, slice):
            track_keys(self, (LENGTH_KEY, *range(*key.indices(len(target)))))
        else:
            i = as_index(key)
            if i < 0:
                # negative indices depend on the length
                track(self, LENGTH_KEY)
                i += len(target)
            if i >= 0:
                track(self, i)
        return wrap(self, target[key])


def readonly_list_proxy_init(self, target, shallow=False, **kwargs):
    super(ReadonlyListProxy, self).__init__(
        target, shallow=shallow, **{**kwargs, "readonly": True}
    )


ListProxy = type(
    "ListProxy",
    (ListProxyBase,),
    construct_methods_traps_dict(
        list, {**list_traps, "WRITERS": list_writers}, trap_map
    ),
)
ReadonlyListProxy = type(
    "ReadonlyListProxy",
    (ListProxyBase,),
    {
        "__init__": readonly_list_proxy_init,
        **construct_methods_traps_dict(
            list, {**list_traps, "WRITERS": list_writers}, trap_map_readonly
        ),
    },
)


def type_test(target):
    return isinstance(target, list)


TYPE_LOOKUP[type_test] = (ListProxy, ReadonlyListProxy)
