from __future__ import annotations

from typing import Any, Iterable, Sequence, Tuple

# %.15g: 15 significant digits, integers render without a trailing ".0"
FLOAT_FMT = ".15g"


def format_value(x: Any) -> str:
    if isinstance(x, float):
        return format(x, FLOAT_FMT)
    return str(x)


def join_values(values: Iterable[Any], sep: str = ", ") -> str:
    return sep.join(format_value(v) for v in values)


def format_vec3(v: Sequence[float]) -> str:
    """(3,) vector -> "x, y, z" with 15 significant digits."""
    return join_values(float(x) for x in v)


def format_range(values: Iterable[Any]) -> str:
    """
    [a, b, c] for any iterable (list, range, generator, numpy array).
    An empty iterable renders as [].
    """
    return "[" + join_values(values) + "]"


def format_pair(pair: Tuple[Any, Any]) -> str:
    first, second = pair
    return f"[{format_value(first)}, {format_value(second)}]"


def format_tuple(tup: Tuple[Any, ...]) -> str:
    return format_range(tup)
