import inspect
from typing import Callable, Optional


async def maybe_await(func: Callable, *args, **kwargs):
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        return await result
    return result


def required_positional_count(func: Callable) -> Optional[int]:
    """
    Count the positional parameters of ``func`` that have no default.

    ``*args`` and defaulted parameters are not counted, so builtins such as
    ``int`` or ``print`` are never handed extra arguments. Returns None when
    the signature cannot be inspected.
    """
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return None

    return sum(
        1
        for param in sig.parameters.values()
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD)
        and param.default is param.empty
    )
