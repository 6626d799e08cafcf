from __future__ import annotations

from functools import partial
from typing import Generic, Literal, Optional, TypedDict, TypeVar, cast

from .runtime import Runtime, runtime as default_runtime

T = TypeVar("T")


class Proxy(Generic[T]):
    """
    Proxy for an object/target.

    Instantiating a Proxy will add a reference to the proxy_db of its
    runtime and destroying a Proxy will remove that reference.

    Please use the `proxy` method to get a proxy for a certain object instead
    of directly creating one yourself. The `proxy` method will either create
    or return an existing proxy and makes sure that the db stays consistent.
    """

    __hash__ = None
    # the slots have to be very unique since we also proxy objects
    # which may define the attributes with the same names
    __slots__ = (
        "__readonly__",
        "__runtime__",
        "__shallow__",
        "__target__",
        "__weakref__",
    )

    def __init__(self, target: T, readonly=False, shallow=False, runtime=None):
        self.__target__ = target
        self.__readonly__ = readonly
        self.__shallow__ = shallow
        self.__runtime__ = runtime if runtime is not None else default_runtime
        self.__runtime__.db.reference(self)

    def __del__(self):
        self.__runtime__.db.dereference(self)


# Lookup dict for mapping a type (dict, list, object) to a method
# that will convert an object of that type to a proxied version
TYPE_LOOKUP = {}


def proxy(
    target: T, readonly=False, shallow=False, runtime: Optional[Runtime] = None
) -> T:
    """
    Returns a Proxy for the given object. If a proxy for the given
    configuration already exists, it will return that instead of
    creating a new one.

    Requesting a readonly proxy for a writable proxy wraps that proxy,
    so reads keep being tracked and wrapped by the writable proxy.

    Please be aware: this only works on plain data types: dict, list,
    tuple and plain objects!
    """
    # The object may be a proxy already, so check if it matches the
    # given configuration (readonly and shallow)
    if isinstance(target, Proxy):
        if runtime is None:
            runtime = target.__runtime__
        if runtime is target.__runtime__:
            if readonly == target.__readonly__ and shallow == target.__shallow__:
                return target
            layer = readonly and not target.__readonly__
        else:
            layer = False
        if not layer:
            # If the configuration does not match,
            # unwrap the target from the proxy so that the right
            # kind of proxy can be returned in the next part of
            # this function
            target = to_raw(target)
    elif runtime is None:
        runtime = default_runtime

    # Check the proxy_db to see if there's already a proxy for the target object
    existing_proxy = runtime.db.get_proxy(target, readonly=readonly, shallow=shallow)
    if existing_proxy is not None:
        return existing_proxy

    # Create a new proxy
    raw = to_raw(target)
    for type_test, (writable_proxy_type, readonly_proxy_type) in TYPE_LOOKUP.items():
        if type_test(raw):
            proxy_type = readonly_proxy_type if readonly else writable_proxy_type
            return proxy_type(target, shallow=shallow, runtime=runtime)

    if isinstance(target, tuple):
        return cast(
            T,
            tuple(
                proxy(x, readonly=readonly, shallow=shallow, runtime=runtime)
                for x in target
            ),
        )

    # We can't proxy a plain value
    return cast(T, target)


try:
    # for Python >= 3.11
    class Ref(TypedDict, Generic[T]):
        value: T

    def ref(target: T, runtime: Optional[Runtime] = None) -> Ref[T]:
        return proxy(Ref(value=target), runtime=runtime)

except TypeError:
    # before python 3.11 a TypedDict cannot inherit from a non-TypedDict class
    def ref(
        target: T, runtime: Optional[Runtime] = None
    ) -> dict[Literal["value"], T]:
        return proxy({"value": target}, runtime=runtime)


reactive = proxy
readonly = partial(proxy, readonly=True)
shallow_reactive = partial(proxy, shallow=True)
shallow_readonly = partial(proxy, shallow=True, readonly=True)


def to_raw(target: Proxy[T] | T) -> T:
    """
    Returns the object that is wrapped by the given proxy, unwrapping
    all layers of proxies. Other values are returned as-is.
    """
    while isinstance(target, Proxy):
        target = target.__target__
    return target


def is_proxy(value) -> bool:
    return isinstance(value, Proxy)


def is_reactive(value) -> bool:
    """
    Returns whether the value is a writable proxy, or a readonly proxy
    that wraps a writable proxy.
    """
    while isinstance(value, Proxy):
        if not value.__readonly__:
            return True
        value = value.__target__
    return False


def is_readonly(value) -> bool:
    return isinstance(value, Proxy) and value.__readonly__


def is_shallow(value) -> bool:
    return isinstance(value, Proxy) and value.__shallow__
