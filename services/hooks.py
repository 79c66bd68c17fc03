"""
HookRegistry - named actions and filters with priorities.

Components register callbacks at construction time; the host fires the
hooks at the matching point of its checkout flow.  Lower priorities run
first; callbacks with the same priority run in registration order.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable


class HookRegistry:
    """Action / filter callback registry.

    Usage:
        hooks = HookRegistry()
        hooks.add_filter('level_cost_text', my_filter, priority=10)
        text = hooks.apply_filters('level_cost_text', text, level, request)
    """

    def __init__(self) -> None:
        self._actions: dict[str, list[tuple[int, int, Callable]]] = defaultdict(list)
        self._filters: dict[str, list[tuple[int, int, Callable]]] = defaultdict(list)
        self._seq = 0

    def _add(self, table: dict, name: str, callback: Callable, priority: int) -> None:
        self._seq += 1
        table[name].append((priority, self._seq, callback))
        table[name].sort(key=lambda entry: (entry[0], entry[1]))

    # ------------------------------------------------------------------ #
    # Actions                                                              #
    # ------------------------------------------------------------------ #

    def add_action(self, name: str, callback: Callable, priority: int = 10) -> None:
        self._add(self._actions, name, callback, priority)

    def do_action(self, name: str, *args: Any) -> None:
        """Run every callback registered for ``name``; return values are ignored."""
        for _, _, callback in list(self._actions.get(name, ())):
            callback(*args)

    # ------------------------------------------------------------------ #
    # Filters                                                              #
    # ------------------------------------------------------------------ #

    def add_filter(self, name: str, callback: Callable, priority: int = 10) -> None:
        self._add(self._filters, name, callback, priority)

    def apply_filters(self, name: str, value: Any, *args: Any) -> Any:
        """Thread ``value`` through every filter registered for ``name``."""
        for _, _, callback in list(self._filters.get(name, ())):
            value = callback(value, *args)
        return value
