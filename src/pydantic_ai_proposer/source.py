"""Default source-awareness provider."""

from __future__ import annotations

import inspect
from typing import Any

_ENTRYPOINT_NAMES = ("forward", "run", "__call__")


def describe_program_source(program: Any) -> str | None:
    """Describe where a program is defined.

    Returns the program's class name and the file/line of its entry point
    (``forward``, ``run`` or ``__call__``), or ``None`` when no entry point
    defined in Python source can be located.
    """
    cls = program if inspect.isclass(program) else type(program)
    for name in _ENTRYPOINT_NAMES:
        method = getattr(cls, name, None)
        if method is None or not inspect.isfunction(method):
            continue
        try:
            path = inspect.getsourcefile(method)
            _, line = inspect.getsourcelines(method)
        except (OSError, TypeError):
            continue
        if path is None:
            continue
        return f"Program: {cls.__qualname__}\nSource: {path}:{line}"
    return None


__all__ = ["describe_program_source"]
