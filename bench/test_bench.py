from functools import partial
from types import SimpleNamespace

import pytest

from reactivity import computed, effect, reactive, stop


N = 10000


def watch_all(obj):
    """Effect that depends on every key of the given collection"""

    def fn():
        for _ in obj:
            pass

    return effect(fn)


def bench_dict(plain, add_effect):
    for _ in range(N):
        obj = {} if plain else reactive({})
        if add_effect:
            e = watch_all(obj)
        obj["bar"] = "baz"
        obj["quux"] = "quuz"
        obj.update(
            {
                "bar": "foo",
                "quazi": "var",
            }
        )
        del obj["bar"]
        _ = obj["quux"]  # read something
        obj.clear()
        if add_effect:
            stop(e)


@pytest.mark.timeout(timeout=0)
@pytest.mark.benchmark(
    group="dict_plain_vs_reactive",
)
@pytest.mark.parametrize("name", ["plain", "reactive", "reactive+effect"])
def test_dict_plain_vs_reactive(benchmark, name):
    bench_fn = partial(bench_dict, name == "plain", name.endswith("+effect"))
    benchmark(bench_fn)


def bench_list(plain, add_effect):
    for _ in range(N):
        obj = [] if plain else reactive([])
        if add_effect:
            e = watch_all(obj)
        obj.append("bar")
        obj.extend(["quux", "quuz"])
        obj[1] = "foo"
        obj.pop(0)
        _ = obj[0]  # read something
        obj.clear()
        if add_effect:
            stop(e)


@pytest.mark.timeout(timeout=0)
@pytest.mark.benchmark(
    group="list_plain_vs_reactive",
)
@pytest.mark.parametrize("name", ["plain", "reactive", "reactive+effect"])
def test_list_plain_vs_reactive(benchmark, name):
    bench_fn = partial(bench_list, name == "plain", name.endswith("+effect"))
    benchmark(bench_fn)


def bench_object(plain, add_effect):
    for _ in range(N):
        obj = SimpleNamespace(x=0, y=0)
        if not plain:
            obj = reactive(obj)
        if add_effect:
            e = effect(lambda: obj.x + obj.y)
        obj.x = 1
        obj.y = 2
        obj.x = 1
        _ = obj.x  # read something
        if add_effect:
            stop(e)


@pytest.mark.timeout(timeout=0)
@pytest.mark.benchmark(
    group="object_plain_vs_reactive",
)
@pytest.mark.parametrize("name", ["plain", "reactive", "reactive+effect"])
def test_object_plain_vs_reactive(benchmark, name):
    bench_fn = partial(bench_object, name == "plain", name.endswith("+effect"))
    benchmark(bench_fn)


def bench_fan_out(n_effects, use_computed):
    state = reactive({"count": 0})
    if use_computed:
        source = computed(lambda: state["count"])
    else:

        def source():
            return state["count"]

    effects = [effect(source) for _ in range(n_effects)]
    for i in range(100):
        state["count"] = i + 1
    for e in effects:
        stop(e)


@pytest.mark.timeout(timeout=0)
@pytest.mark.benchmark(
    group="fan_out",
)
@pytest.mark.parametrize("use_computed", [False, True], ids=["direct", "computed"])
@pytest.mark.parametrize("n_effects", [10, 100])
def test_fan_out(benchmark, n_effects, use_computed):
    benchmark(partial(bench_fan_out, n_effects, use_computed))
