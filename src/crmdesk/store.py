"""Application state container.

No domain reducers are registered. Extension point: register a reducer per
state slice, e.g.

    store = Store()
    store.register("contacts", contacts_reducer, initial=[])
    store.dispatch({"type": "contacts/loaded", "payload": [...]})

A reducer takes ``(slice_state, action)`` and returns the new slice state.
"""

from __future__ import annotations

from typing import Any, Callable

Reducer = Callable[[Any, dict[str, Any]], Any]


class Store:
    def __init__(self) -> None:
        self._reducers: dict[str, Reducer] = {}
        self._state: dict[str, Any] = {}

    @property
    def state(self) -> dict[str, Any]:
        return dict(self._state)

    @property
    def reducers(self) -> list[str]:
        return list(self._reducers)

    def register(self, name: str, reducer: Reducer, initial: Any = None) -> None:
        if name in self._reducers:
            raise ValueError(f"reducer already registered: {name}")
        self._reducers[name] = reducer
        self._state[name] = initial

    def dispatch(self, action: dict[str, Any]) -> dict[str, Any]:
        for name, reducer in self._reducers.items():
            self._state[name] = reducer(self._state[name], action)
        return self.state


store = Store()
