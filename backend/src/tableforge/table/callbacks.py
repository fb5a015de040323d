"""Callback registry and arity normalization for row-scoped callbacks.

Row callbacks (url, disabled, hidden, compute, selectable, handle, ...) may
be written to take just the row or the row plus the request context. They
are normalized once, when the definition is built, to the single shape
``fn(row, context)`` so nothing downstream dispatches on arity.

Named callbacks are also what YAML table definitions refer to:

    @callback("users.is_admin")
    def is_admin(row):
        return row["role"] == "admin"
"""

import inspect
from collections.abc import Callable
from typing import Any

# Normalized signature: (row_or_rows, context) -> Any
RowCallback = Callable[[Any, Any], Any]

_NORMALIZED_FLAG = "__tableforge_normalized__"


def _positional_arity(fn: Callable[..., Any]) -> int:
    """Number of positional arguments fn accepts (2 when it takes *args)."""
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        # Builtins without signature metadata get the row only
        return 1

    count = 0
    for param in sig.parameters.values():
        if param.kind == inspect.Parameter.VAR_POSITIONAL:
            return 2
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            count += 1
    return count


def normalize_row_callback(fn: Callable[..., Any] | None) -> RowCallback | None:
    """Wrap fn so it can always be called as ``fn(row, context)``.

    Args:
        fn: A callable taking (), (row) or (row, context); or None

    Returns:
        The normalized callable, or None when fn is None

    Raises:
        TypeError: If fn is not callable
    """
    if fn is None:
        return None
    if not callable(fn):
        raise TypeError(f"Expected a callable, got {type(fn).__name__}")
    if getattr(fn, _NORMALIZED_FLAG, False):
        return fn

    arity = _positional_arity(fn)
    if arity >= 2:
        def wrapped(row: Any, context: Any) -> Any:
            return fn(row, context)
    elif arity == 1:
        def wrapped(row: Any, context: Any) -> Any:
            return fn(row)
    else:
        def wrapped(row: Any, context: Any) -> Any:
            return fn()

    setattr(wrapped, _NORMALIZED_FLAG, True)
    wrapped.__wrapped__ = fn  # type: ignore[attr-defined]
    wrapped.__name__ = getattr(fn, "__name__", "callback")
    return wrapped


def normalize_context_callback(
    fn: Callable[..., Any] | None,
) -> Callable[[Any], Any] | None:
    """Wrap an authorize-style predicate so it is always called as ``fn(context)``."""
    if fn is None:
        return None
    if not callable(fn):
        raise TypeError(f"Expected a callable, got {type(fn).__name__}")
    if _positional_arity(fn) == 0:
        return lambda context: fn()
    return fn


class CallbackRegistry:
    """Registry of named callbacks referenced from YAML table definitions.

    Callbacks must be registered before a YAML definition that names them
    is loaded. Registration is usually done at import time with the
    @callback decorator.
    """

    _callbacks: dict[str, Callable[..., Any]] = {}

    @classmethod
    def register(cls, name: str, fn: Callable[..., Any]) -> None:
        """Register a callback by name.

        Re-registering a name replaces the previous callback.

        Args:
            name: Unique callback name (dotted names are conventional)
            fn: The callable
        """
        cls._callbacks[name] = fn

    @classmethod
    def get(cls, name: str) -> Callable[..., Any]:
        """Get a registered callback by name.

        Raises:
            ValueError: If the callback is not registered
        """
        if name not in cls._callbacks:
            raise ValueError(
                f"Callback '{name}' is not registered. "
                "Callbacks must be registered before table definitions are loaded."
            )
        return cls._callbacks[name]

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._callbacks

    @classmethod
    def list_registered(cls) -> list[str]:
        return sorted(cls._callbacks.keys())

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._callbacks.clear()


def callback(name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator to register a named callback.

    Usage:
        @callback("users.can_delete")
        def can_delete(context):
            ...
    """

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        CallbackRegistry.register(name, fn)
        return fn

    return decorator
