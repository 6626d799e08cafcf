import gc
import sys
from weakref import WeakSet, WeakValueDictionary

from .dep import Dep

# All live databases, so that a single gc callback can clean them up
_databases = WeakSet()


def _collect(phase, info):
    if phase != "stop":
        return
    for db in list(_databases):
        db.cleanup()


gc.callbacks.append(_collect)


class ProxyDb:
    """
    Collection of proxies and dependencies, tracked by the id of the object
    that the proxies wrap.
    Each time a Proxy is instantiated, it will register itself for the
    wrapped object. And when a Proxy is deleted, then it will unregister.
    When the last proxy that wraps an object is removed, it is uncertain
    what happens to the wrapped object, so in that case the object id is
    removed from the collection.

    Every entry also holds the dependency table of its target: a dict that
    maps each key that was read in an effect to its Dep.
    """

    __slots__ = ("__weakref__", "db")

    def __init__(self):
        self.db = {}
        _databases.add(self)

    def cleanup(self):
        """
        Cleans up the db for targets that have no other references
        outside of the db
        """
        keys_to_delete = []
        for key, value in self.db.items():
            # Refs:
            # - sys.getrefcount
            # - ref in db item
            if sys.getrefcount(value["target"]) <= 2:
                # We are the last to hold a reference!
                keys_to_delete.append(key)

        for keys in keys_to_delete:
            del self.db[keys]

    def clear(self):
        self.db = {}

    def reference(self, proxy):
        """
        Adds a reference to the collection for the wrapped object's id
        """
        target = proxy.__target__
        obj_id = id(target)

        if obj_id not in self.db:
            self.db[obj_id] = {
                "target": target,
                "deps": {},
                "prototype": None,
                # keyed on tuple(readonly, shallow)
                "proxies": WeakValueDictionary(),
            }

        result = self.db[obj_id]["proxies"].setdefault(
            (proxy.__readonly__, proxy.__shallow__), proxy
        )
        if result is not proxy:
            raise RuntimeError("Proxy with existing configuration already in db")

    def dereference(self, proxy):
        """
        Removes a reference from the database for the given proxy
        """
        obj_id = id(proxy.__target__)
        if obj_id not in self.db:
            # Proxies can outlive a cleared db (see Runtime.reset)
            return

        # The given proxy is the last proxy in the WeakValueDictionary,
        # so now is a good moment to see if we can clean up the deps
        # for the target object
        if len(self.db[obj_id]["proxies"]) == 1:
            ref_count = sys.getrefcount(self.db[obj_id]["target"])
            # Ref count is still 3 here because of the reference
            # through proxy.__target__
            if ref_count <= 3:
                # We are the last to hold a reference!
                del self.db[obj_id]

    def deps(self, target):
        """
        Returns the dependency table for the given raw target, or None
        when no proxy was ever created for it.
        """
        entry = self.db.get(id(target))
        if entry is None:
            return None
        return entry["deps"]

    def dep(self, target, key):
        """
        Returns the Dep for the given target and key, creating it if needed.
        """
        deps = self.deps(target)
        if deps is None:
            return None
        dep = deps.get(key)
        if dep is None:
            dep = deps[key] = Dep()
        return dep

    def get_prototype(self, target):
        try:
            return self.db[id(target)]["prototype"]
        except KeyError:
            return None

    def set_prototype(self, target, prototype):
        self.db[id(target)]["prototype"] = prototype

    def get_proxy(self, target, readonly=False, shallow=False):
        """
        Returns a proxy from the collection for the given object and configuration.
        Will return None if there is no proxy for the object's id.
        """
        try:
            return self.db[id(target)]["proxies"].get((readonly, shallow))
        except KeyError:
            return None
