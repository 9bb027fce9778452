"""Path resolution into nested mapping data."""

from collections.abc import Mapping
from typing import Any, Sequence


class _Missing:
    """Sentinel type for a path that does not resolve."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "MISSING"


MISSING = _Missing()


def resolve_path(path: Sequence[str], record: Any) -> Any:
    """
    Walk a path through nested mappings.

    Only mapping keys are followed; lists and scalars end the walk. A value
    of None at the end of the path counts as found.

    Args:
        path: Ordered key segments, e.g. ("contact", "email")
        record: Root data record

    Returns:
        The addressed value, or MISSING if any segment does not resolve
    """
    current = record
    for segment in path:
        if isinstance(current, Mapping) and segment in current:
            current = current[segment]
        else:
            return MISSING
    return current
