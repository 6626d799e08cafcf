"""
Example that shows how effects and computed values keep
derived state in sync with reactive state
"""

from reactivity import computed, effect, reactive, readonly, stop


if __name__ == "__main__":
    state = reactive({"todos": [], "filter": "all"})

    @computed
    def visible():
        todos = state["todos"]
        if state["filter"] == "done":
            return [todo["title"] for todo in todos if todo["done"]]
        return [todo["title"] for todo in todos]

    @effect
    def render():
        print(f"[{state['filter']}] {', '.join(visible()) or '-'}")  # noqa: T201

    state["todos"].append({"title": "write docs", "done": False})
    state["todos"].append({"title": "fix bug", "done": True})

    # Only the effects that read the filter run again
    state["filter"] = "done"
    state["todos"][0]["done"] = True

    # Consumers can get a view that can't be modified
    view = readonly(state)
    view["filter"] = "all"  # issues a ReadonlyWarning and is ignored
    assert state["filter"] == "done"

    # A stopped effect no longer runs
    stop(render)
    state["filter"] = "all"
