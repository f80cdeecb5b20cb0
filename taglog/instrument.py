"""instrument.py - Decorator and context manager helpers for tagged flows.

``@traced("checkout")`` records function-level events into a tag:

    ``>>``  function entry with its bound arguments (TRACE)
    ``<<``  normal return with the return value (TRACE)
    ``!!``  unhandled exception, with the error and its traceback (ERROR)

``exporting("checkout", only_on_error=True)`` exports a tag when the block
exits, recording any exception that escapes it first. Together they give
the usual "export the whole flow only if something went wrong" pattern
without try/except boilerplate::

    @traced("checkout")
    def charge(order_id: int, amount: float) -> Receipt:
        ...

    with exporting("checkout", only_on_error=True):
        charge(42, 99.5)

Both helpers never swallow exceptions, and a value whose ``repr()`` or
``str()`` fails is shown with the default object form instead of breaking
the call.
"""

import contextlib
import inspect
import traceback
from functools import wraps
from typing import Callable, Iterator, Optional

from .core import TagLog, get_default
from .levels import Level


def _exception_text(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


def _safe_repr(value: object) -> str:
    try:
        return repr(value)
    except Exception:
        return object.__repr__(value)


def _safe_str(value: object) -> str:
    try:
        return str(value)
    except Exception:
        return object.__repr__(value)


def traced(name: str, log: Optional[TagLog] = None) -> Callable[[Callable], Callable]:
    """Decorator factory recording entry, return and exceptions under ``name``.

    Args:
        name: Tag receiving the events.
        log: TagLog to record into. Defaults to the process-wide instance,
            looked up at call time.

    Example:
        >>> @traced("math")
        ... def divide(a, b):
        ...     return a / b
        >>> divide(10, 2)   # records ">> divide(a=10, b=2)" and "<< 5.0"
        5.0
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            target = log or get_default()

            # Falls back to "..." for callables inspect cannot bind.
            try:
                bound = inspect.signature(func).bind(*args, **kwargs)
                bound.apply_defaults()
                arg_str = ", ".join(
                    f"{k}={_safe_repr(v)}" for k, v in bound.arguments.items()
                )
            except Exception:
                arg_str = "..."

            target.tag(name, f">> {func.__qualname__}({arg_str})", level=Level.TRACE)
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                target.tag(
                    name,
                    f"!! {type(exc).__name__}: {_safe_str(exc)}",
                    level=Level.ERROR,
                    error=exc,
                    stack_text=_exception_text(exc),
                )
                raise
            target.tag(name, f"<< {_safe_repr(result)}", level=Level.TRACE)
            return result

        return wrapper

    return decorator


@contextlib.contextmanager
def exporting(
    name: str,
    export: bool = True,
    only_on_error: bool = False,
    log: Optional[TagLog] = None,
) -> Iterator[TagLog]:
    """Export ``name`` when the block exits.

    An exception escaping the block is recorded at ERROR (with its
    traceback) before the export and then re-raised.

    Yields:
        The TagLog in use, for convenience.
    """
    target = log or get_default()
    try:
        yield target
    except Exception as exc:
        target.tag(
            name,
            f"{type(exc).__name__}: {_safe_str(exc)}",
            level=Level.ERROR,
            error=exc,
            stack_text=_exception_text(exc),
        )
        raise
    finally:
        target.export(name, export=export, only_on_error=only_on_error)
