import math
import warnings
from functools import wraps

from .dep import ITERATE_KEY
from .proxy import Proxy, proxy, to_raw


class ReadonlyWarning(UserWarning):
    """
    Issued when a readonly proxy is modified. The modification is ignored.
    """

    pass


def warn_readonly(self, operation):
    warnings.warn(
        f"{operation} failed: {type(to_raw(self)).__name__} target is readonly",
        ReadonlyWarning,
        stacklevel=3,
    )


# Values of these types are compared by value instead of by identity
_SCALAR_TYPES = (bool, int, float, complex, str, bytes)


def has_changed(old, new):
    """
    Returns whether writing `new` over `old` is a change. Objects are
    compared by identity, scalars by value and NaN equals NaN.
    """
    if old is new:
        return False
    if type(old) is not type(new) or not isinstance(old, _SCALAR_TYPES):
        return True
    if isinstance(old, float) and math.isnan(old) and math.isnan(new):
        return False
    return old != new


def track(self, key):
    """
    Tracks a read of the key on the target of the given proxy. Proxies
    that wrap another proxy leave the tracking to the wrapped proxy.
    """
    runtime = self.__runtime__
    if runtime.stack and not isinstance(self.__target__, Proxy):
        runtime.track(self.__target__, key)


def track_keys(self, keys):
    runtime = self.__runtime__
    if runtime.stack and not isinstance(self.__target__, Proxy):
        target = self.__target__
        for key in keys:
            runtime.track(target, key)


def trigger(self, key, op, new_value=None):
    self.__runtime__.trigger(self.__target__, key, op, new_value)


def wrap(self, value):
    """Wraps a value that is read from the target of the given proxy"""
    if self.__shallow__:
        return value
    return proxy(value, readonly=self.__readonly__, runtime=self.__runtime__)


def unwrap(self, value):
    """
    Unwraps a value that will be written to the target of the given
    proxy, so that raw data never contains proxies. Shallow proxies
    store values as-is.
    """
    if self.__shallow__:
        return value
    return to_raw(value)


def shape_trap(method, obj_cls, keys=lambda self: (ITERATE_KEY,)):
    """Trap for methods that only depend on the keys of the target"""
    fn = getattr(obj_cls, method)

    @wraps(fn)
    def trap(self, *args, **kwargs):
        track_keys(self, keys(self))
        return getattr(self.__target__, method)(*args, **kwargs)

    return trap


def read_trap(method, obj_cls, keys):
    """Trap for methods that depend on all the content of the target"""
    fn = getattr(obj_cls, method)

    @wraps(fn)
    def trap(self, *args, **kwargs):
        track_keys(self, keys(self))
        value = getattr(self.__target__, method)(*args, **kwargs)
        return wrap(self, value)

    return trap


def iterate_trap(method, obj_cls, keys):
    fn = getattr(obj_cls, method)

    @wraps(fn)
    def trap(self, *args, **kwargs):
        track_keys(self, keys(self))
        iterator = getattr(self.__target__, method)(*args, **kwargs)
        if self.__shallow__:
            return iterator
        if method == "items":
            return ((key, wrap(self, value)) for key, value in iterator)
        return (wrap(self, value) for value in iterator)

    return trap


def readonly_trap(method, obj_cls):
    fn = getattr(obj_cls, method)
    returns_self = method.startswith("__i")

    @wraps(fn)
    def trap(self, *args, **kwargs):
        warn_readonly(self, f"{type(self).__name__}.{method}")
        if returns_self:
            return self

    return trap


def construct_methods_traps_dict(obj_cls, traps, trap_map):
    return {
        method: trap_map[trap_type](method, obj_cls)
        for trap_type, methods in traps.items()
        for method in methods
    }
