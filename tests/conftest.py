import gc
from unittest.mock import Mock

import pytest

from reactivity import Runtime
from reactivity.runtime import runtime as default_runtime


@pytest.fixture(autouse=True)
def clear_runtime():
    # Running gc at the beginning cleans up proxies and effects
    # that are left over from previous tests, after which the
    # runtime can be reset without proxies dereferencing
    # entries of this test.
    gc.collect()
    default_runtime.reset()
    try:
        yield
    finally:
        default_runtime.stack.clear()


@pytest.fixture
def runtime():
    """A separate runtime, isolated from the default runtime"""
    return Runtime()


@pytest.fixture
def spy():
    return Mock()
