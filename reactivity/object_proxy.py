from enum import Enum
from functools import cache
from itertools import chain
from types import MappingProxyType

from .dep import ITERATE_KEY, TriggerOp
from .proxy import TYPE_LOOKUP, Proxy
from .traps import has_changed, track, track_keys, unwrap, warn_readonly, wrap

_SPECIAL_SLOTS = {"__dict__", "__weakref__"}


@cache
def get_class_slots(cls):
    """utility to collect all __slots__ entries for a given type and its supertypes"""
    slots = chain.from_iterable(
        # a single string is a valid value for __slots__ as well
        [s] if isinstance(s, str) else s
        for s in (getattr(klass, "__slots__", ()) for klass in cls.__mro__)
    )
    return frozenset(slots) - _SPECIAL_SLOTS


def get_object_attrs(obj):
    """utility to collect the names of all stateful attributes of an object"""
    attrs = get_class_slots(type(obj))
    try:
        obj_keys = vars(obj).keys()
    except TypeError:
        return attrs
    if obj_keys:
        attrs = attrs.union(obj_keys)
    return attrs


class ObjectProxyBase(Proxy):
    def __getattribute__(self, name):
        if name in Proxy.__slots__:
            return super().__getattribute__(name)

        target = self.__target__
        if isinstance(target, Proxy):
            return wrap(self, getattr(target, name))

        if name == "__dict__":
            # writes to the instance dict would bypass the proxy
            track_keys(self, (ITERATE_KEY, *get_object_attrs(target)))
            return MappingProxyType(target.__dict__)

        class_attr = getattr(type(target), name, None)
        if isinstance(class_attr, property):
            # the getter runs against the proxy, which tracks its reads
            if class_attr.fget is None:
                raise AttributeError(f"property {name!r} has no getter")
            return class_attr.fget(self)

        if name not in get_object_attrs(target) and callable(class_attr):
            # methods are looked up on the class, so there is nothing to track
            return getattr(target, name)

        track(self, name)
        return wrap(self, getattr(target, name))

    def __setattr__(self, name, value):
        if name in Proxy.__slots__:
            return super().__setattr__(name, value)

        if self.__readonly__:
            warn_readonly(self, f"Setting attribute {name!r}")
            return

        target = self.__target__
        class_attr = getattr(type(target), name, None)
        if isinstance(class_attr, property):
            if class_attr.fset is None:
                raise AttributeError(f"property {name!r} has no setter")
            class_attr.fset(self, value)
            return

        value = unwrap(self, value)
        had_attr = name in get_object_attrs(target)
        old_value = getattr(target, name, None) if had_attr else None
        setattr(target, name, value)

        if name not in get_object_attrs(target):
            # the set attr is not stateful (e.g. a descriptor on the class)
            return
        if not had_attr:
            self.__runtime__.trigger(target, name, TriggerOp.ADD, value)
        elif has_changed(old_value, value):
            self.__runtime__.trigger(target, name, TriggerOp.SET, value)

    def __delattr__(self, name):
        if name in Proxy.__slots__:
            return super().__delattr__(name)

        if self.__readonly__:
            warn_readonly(self, f"Deleting attribute {name!r}")
            return

        target = self.__target__
        is_target_attr = name in get_object_attrs(target)
        delattr(target, name)
        if is_target_attr:
            self.__runtime__.trigger(target, name, TriggerOp.DELETE)


def passthrough(method):
    def trap(self, *args, **kwargs):
        fn = getattr(self.__target__, method, None)
        if fn is None:
            if method == "__bool__":
                return bool(self.__target__)
            # we don't cache this
            # since it is possible a class is dynamically modified later
            # invalidating the cached result...
            raise TypeError(f"object of type '{type(self)}' has no {method}")
        return fn(*args, **kwargs)

    return trap


# Operators are looked up on the type of the proxy, so they
# have to be defined on the proxy class to reach the target
magic_methods = [
    "__abs__",
    "__add__",
    "__and__",
    "__bool__",
    "__call__",
    "__contains__",
    "__delitem__",
    "__enter__",
    "__eq__",
    "__exit__",
    "__float__",
    "__floordiv__",
    "__format__",
    "__ge__",
    "__getitem__",
    "__gt__",
    "__hash__",
    "__index__",
    "__int__",
    "__invert__",
    "__iter__",
    "__le__",
    "__len__",
    "__lt__",
    "__matmul__",
    "__mod__",
    "__mul__",
    "__ne__",
    "__neg__",
    "__next__",
    "__or__",
    "__pos__",
    "__pow__",
    "__radd__",
    "__repr__",
    "__reversed__",
    "__rmul__",
    "__rsub__",
    "__rtruediv__",
    "__setitem__",
    "__str__",
    "__sub__",
    "__truediv__",
    "__xor__",
]


ObjectProxy = type(
    "ObjectProxy",
    (ObjectProxyBase,),
    {method: passthrough(method) for method in magic_methods},
)


class ReadonlyObjectProxy(ObjectProxy):
    def __init__(self, target, shallow=False, **kwargs):
        super().__init__(target, shallow=shallow, **{**kwargs, "readonly": True})

    def __setitem__(self, key, value):
        warn_readonly(self, f"Setting item {key!r}")

    def __delitem__(self, key):
        warn_readonly(self, f"Deleting item {key!r}")


def type_test(target):
    # exclude builtin objects
    # exclude objects for which we have better proxies available
    # exclude enum members, ndarrays and objects without attributes
    if isinstance(target, (list, set, dict, tuple, Enum)):
        return False
    if type(target).__module__ in (object.__module__, "numpy"):
        return False
    return hasattr(target, "__dict__") or bool(get_class_slots(type(target)))


TYPE_LOOKUP[type_test] = (ObjectProxy, ReadonlyObjectProxy)
