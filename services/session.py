"""
CheckoutSession - explicit per-visitor session context.

Wraps any mutable mapping (a Flask ``session`` in the web app, a plain
dict in scripts and tests) so the location cache is passed into every
call instead of being read from ambient state.
"""

from __future__ import annotations

from typing import Any, MutableMapping


COUNTRY_KEY = 'local_pricing_country'
LOOKUP_FAILED_KEY = 'local_pricing_lookup_failed'


class CheckoutSession:
    """Thin set/unset facade over a session store."""

    def __init__(self, store: MutableMapping[str, Any] | None = None) -> None:
        self._store = store if store is not None else {}

    def set(self, key: str, value: Any) -> None:
        self._store[key] = value

    def unset(self, key: str) -> None:
        self._store.pop(key, None)

    @property
    def country(self) -> str | None:
        return self._store.get(COUNTRY_KEY) or None

    @property
    def lookup_failed(self) -> bool:
        return bool(self._store.get(LOOKUP_FAILED_KEY))
