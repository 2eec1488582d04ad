# deltabuild/context/values.py
"""
Two-generation value registry.

Reads answer "what did the previous build leave me"; writes go to the next
build. A value set during this build is never visible to get() in the same
build. Both generations are merged only when the state is persisted.
"""

from __future__ import annotations

import copy
import json
from typing import Any, Dict, Mapping, Optional


class ValueRegistry:
    """
    Opaque plugin values carried between builds.

    Values must read back from JSON exactly as written: lists, string-keyed
    dicts, strings, numbers, booleans and None. Anything else (tuples, sets,
    int-keyed dicts) is rejected when set.
    """

    def __init__(self, inherited: Optional[Mapping[str, Any]] = None) -> None:
        self._inherited: Dict[str, Any] = dict(inherited or {})
        self._pending: Dict[str, Any] = {}

    def get(self, key: str) -> Any:
        """Value stored by the previous build, or None."""
        if key not in self._inherited:
            return None
        # Callers may mutate what they get back; the inherited generation stays intact
        return copy.deepcopy(self._inherited[key])

    def set(self, key: str, value: Any) -> None:
        """
        Store a value for the next build. Last write wins.

        Raises:
            TypeError: If key is not a string, or value would not read back equal
        """
        if not isinstance(key, str):
            raise TypeError(f"Value keys must be strings, got {type(key).__name__}")
        try:
            restored = json.loads(json.dumps(value))
        except (TypeError, ValueError) as e:
            raise TypeError(f"Value for key '{key}' is not JSON-serializable: {e}") from e
        if restored != value:
            # Tuples, non-string dict keys and NaN would come back different
            raise TypeError(
                f"Value for key '{key}' does not survive a JSON round trip: "
                f"{value!r} would be read back as {restored!r}"
            )
        self._pending[key] = restored

    @property
    def inherited_keys(self) -> set[str]:
        return set(self._inherited)

    @property
    def pending(self) -> Dict[str, Any]:
        return dict(self._pending)

    def merged(self) -> Dict[str, Any]:
        """Inherited values overlaid with this build's writes."""
        return {**self._inherited, **self._pending}


__all__ = ["ValueRegistry"]
