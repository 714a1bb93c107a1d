"""Decorator declaring a prefix command on a function or method."""

from typing import Any


def command(id: str, **options: Any):
    """
    Mark a function as a prefix command.

    The function is called as ``func(ctx, args)`` with the resolved argument
    bag. ``options`` are the ``Command`` keyword arguments; the command itself
    is built when a registry picks the function up with ``register_from``.
    """

    def decorator(func):
        func._prefix_command = {"id": id, **options}
        return func

    return decorator


def inhibitor(id: str, **options: Any):
    """
    Mark a function as an inhibitor.

    The function is called as ``func(message, command)`` and returns ``True``
    to block. ``options`` are the ``Inhibitor`` keyword arguments (``reason``,
    ``type``, ``priority``).
    """

    def decorator(func):
        func._inhibitor = {"id": id, **options}
        return func

    return decorator
