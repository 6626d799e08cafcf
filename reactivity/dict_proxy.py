from functools import partial

from .dep import ITERATE_KEY, TriggerOp
from .proxy import TYPE_LOOKUP, Proxy, to_raw
from .traps import (
    construct_methods_traps_dict,
    has_changed,
    iterate_trap,
    read_trap,
    readonly_trap,
    shape_trap,
    track,
    unwrap,
    warn_readonly,
    wrap,
)


def _content_keys(self):
    return (ITERATE_KEY, *to_raw(self).keys())


dict_traps = {
    "SHAPE": {
        "__iter__",
        "__len__",
        "__reversed__",
        "keys",
    },
    "READERS": {
        "copy",
        "__eq__",
        "__format__",
        "__ne__",
        "__or__",
        "__repr__",
        "__ror__",
        "__sizeof__",
        "__str__",
    },
    "ITERATORS": {
        "items",
        "values",
    },
}

trap_map = {
    "SHAPE": shape_trap,
    "READERS": partial(read_trap, keys=_content_keys),
    "ITERATORS": partial(iterate_trap, keys=_content_keys),
}

dict_writers = {
    "clear",
    "pop",
    "popitem",
    "setdefault",
    "update",
    "__delitem__",
    "__ior__",
    "__setitem__",
}


def _chain_lookup(prototype, key):
    """
    Untracked lookup of the key along the prototype chain. Returns a
    tuple (found, raw value).
    """
    while prototype is not None:
        raw = to_raw(prototype)
        if key in raw:
            return True, raw[key]
        prototype = prototype.__runtime__.db.get_prototype(raw)
    return False, None


class DictProxyBase(Proxy[dict]):
    def _get(self, key):
        """
        Returns a tuple (found, value) for the given key. Keys that are
        missing from the target are looked up on the prototype.
        """
        target = self.__target__
        if isinstance(target, Proxy):
            try:
                return True, wrap(self, target[key])
            except KeyError:
                return False, None

        track(self, key)
        if key in target:
            return True, wrap(self, target[key])
        prototype = self.__runtime__.db.get_prototype(target)
        if prototype is None:
            return False, None
        found, value = prototype._get(key)
        return found, wrap(self, value)

    def __getitem__(self, key):
        found, value = self._get(key)
        if not found:
            raise KeyError(key)
        return value

    def get(self, key, default=None):
        found, value = self._get(key)
        return value if found else default

    def __contains__(self, key):
        target = self.__target__
        track(self, key)
        if key in target:
            return True
        prototype = self.__runtime__.db.get_prototype(target)
        return prototype is not None and key in prototype

    def _write(self, key, value, receiver):
        """
        Writes the value for the key on the target of the receiver, which
        is the proxy on which the write was started. Returns whether the
        write succeeded and the change that should be triggered, if any.
        Only the proxy for the target of the receiver reports a change,
        even when the write was passed on along the prototype chain.
        """
        if self.__readonly__:
            warn_readonly(self, f"Setting key {key!r}")
            return False, None

        target = self.__target__
        value = unwrap(self, value)
        had_key = key in target
        old_value = target.get(key)
        inherited = False
        if not had_key:
            prototype = self.__runtime__.db.get_prototype(target)
            if prototype is not None:
                inherited, old_value = _chain_lookup(prototype, key)
        if inherited:
            success, _ = prototype._write(key, value, receiver)
            if not success:
                return False, None
        else:
            to_raw(receiver)[key] = value

        if to_raw(receiver) is not target:
            return True, None
        if inherited and not has_changed(old_value, value):
            # the value read for the key stays the same, only the
            # own keys of the target changed
            return True, (ITERATE_KEY, TriggerOp.SET, None)
        if not had_key:
            return True, (key, TriggerOp.ADD, value)
        if has_changed(old_value, value):
            return True, (key, TriggerOp.SET, value)
        return True, None

    def _set(self, key, value):
        success, change = self._write(key, value, self)
        if change:
            self.__runtime__.trigger(self.__target__, *change)
        return success

    def __setitem__(self, key, value):
        self._set(key, value)

    def setdefault(self, key, default=None):
        found, value = self._get(key)
        if found:
            return value
        self._set(key, default)
        return wrap(self, self.__target__.get(key))

    def update(self, *args, **kwargs):
        changes = []
        for key, value in dict(*args, **kwargs).items():
            _, change = self._write(key, value, self)
            if change:
                changes.append(change)
        if changes:
            self.__runtime__.trigger_changes(self.__target__, changes)

    def __ior__(self, other):
        self.update(other)
        return self

    def __delitem__(self, key):
        del self.__target__[key]
        self.__runtime__.trigger(self.__target__, key, TriggerOp.DELETE)

    def pop(self, key, *default):
        target = self.__target__
        if key not in target and default:
            return default[0]
        value = target.pop(key)
        self.__runtime__.trigger(target, key, TriggerOp.DELETE)
        return value

    def popitem(self):
        target = self.__target__
        key, value = target.popitem()
        self.__runtime__.trigger(target, key, TriggerOp.DELETE)
        return key, value

    def clear(self):
        target = self.__target__
        keys = list(target)
        target.clear()
        self.__runtime__.trigger_changes(
            target, [(key, TriggerOp.DELETE, None) for key in keys]
        )


def readonly_dict_proxy_init(self, target, shallow=False, **kwargs):
    super(ReadonlyDictProxy, self).__init__(
        target, shallow=shallow, **{**kwargs, "readonly": True}
    )


DictProxy = type(
    "DictProxy",
    (DictProxyBase,),
    construct_methods_traps_dict(dict, dict_traps, trap_map),
)
ReadonlyDictProxy = type(
    "ReadonlyDictProxy",
    (DictProxyBase,),
    {
        "__init__": readonly_dict_proxy_init,
        **construct_methods_traps_dict(dict, dict_traps, trap_map),
        **{method: readonly_trap(method, dict) for method in dict_writers},
    },
)


def set_prototype(handle, prototype):
    """
    Sets the prototype of a dict proxy: keys that are missing on the
    proxied dict are read from the prototype, which is a dict proxy too.
    Pass None to remove the prototype.
    """
    if not isinstance(handle, DictProxyBase):
        raise TypeError(f"Expected a dict proxy, got {type(handle).__name__}")
    if prototype is not None:
        if not isinstance(prototype, DictProxyBase):
            raise TypeError(
                f"Expected a dict proxy as prototype, got {type(prototype).__name__}"
            )
        if prototype.__runtime__ is not handle.__runtime__:
            raise ValueError("Prototype belongs to a different runtime")

    raw = to_raw(handle)
    link = prototype
    while link is not None:
        if to_raw(link) is raw:
            raise ValueError("Cyclic prototype chain")
        link = link.__runtime__.db.get_prototype(to_raw(link))

    handle.__runtime__.db.set_prototype(raw, prototype)


def get_prototype(handle):
    if not isinstance(handle, DictProxyBase):
        raise TypeError(f"Expected a dict proxy, got {type(handle).__name__}")
    return handle.__runtime__.db.get_prototype(to_raw(handle))


def type_test(target):
    return isinstance(target, dict)


TYPE_LOOKUP[type_test] = (DictProxy, ReadonlyDictProxy)
