"""A string-keyed set with subset checks."""

from __future__ import annotations


class KeySet(dict):
    """Mapping of keys to arbitrary values, used mainly for membership."""

    def keys(self) -> list[str]:  # type: ignore[override]
        """Return the keys as a list."""
        return list(super().keys())

    def is_in(self, superset) -> bool:
        """Tell whether every key of this set is also in ``superset``."""
        return all(key in superset for key in self)