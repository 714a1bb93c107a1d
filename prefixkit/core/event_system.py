import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from typing import Any, Union

logger = logging.getLogger(__name__)

EventName = Union[str, Enum]


def _event_key(event_name: EventName) -> str:
    return event_name.value if isinstance(event_name, Enum) else event_name


def _name(func: Callable) -> str:
    return getattr(func, "__name__", type(func).__name__)


class EventSystem:
    """Lifecycle event bus.

    Listeners of one event run concurrently. Middleware is called as
    ``middleware(event_context, phase)`` before (``"pre"``) and after
    (``"post"``) the listeners; returning ``False`` in the pre phase stops the
    event. The context holds ``event_name``, ``args``, ``kwargs``, ``stopped``
    and ``error`` (the first exception raised by a listener).
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Callable]] = {}
        self._middleware: list[Callable] = []

    def add_middleware(self, middleware: Callable) -> None:
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {_name(middleware)}")

    def remove_middleware(self, middleware: Callable) -> None:
        if middleware in self._middleware:
            self._middleware.remove(middleware)
            logger.debug(f"Removed middleware: {_name(middleware)}")

    def listen(self, event_name: EventName) -> Callable:
        def decorator(func: Callable) -> Callable:
            self.add_listener(event_name, func)
            return func

        return decorator

    def add_listener(self, event_name: EventName, callback: Callable) -> None:
        key = _event_key(event_name)
        self._listeners.setdefault(key, []).append(callback)
        logger.debug(f"Added listener for {key}: {_name(callback)}")

    def remove_listener(self, event_name: EventName, callback: Callable) -> None:
        key = _event_key(event_name)
        if key in self._listeners:
            try:
                self._listeners[key].remove(callback)
                logger.debug(f"Removed listener for {key}: {_name(callback)}")
            except ValueError:
                logger.warning(f"Listener {_name(callback)} not found for {key}")

    def remove_all_listeners(self, event_name: EventName) -> None:
        key = _event_key(event_name)
        if key in self._listeners:
            self._listeners[key].clear()
            logger.debug(f"Removed all listeners for {key}")

    async def emit(self, event_name: EventName, *args: Any, **kwargs: Any) -> None:
        key = _event_key(event_name)
        listeners = list(self._listeners.get(key, []))
        if not listeners and not self._middleware:
            return

        event_context = {
            "event_name": key,
            "args": args,
            "kwargs": kwargs,
            "stopped": False,
            "error": None,
        }

        for middleware in self._middleware:
            try:
                result = await self._call_maybe_async(middleware, event_context, "pre")
                if result is False or event_context.get("stopped"):
                    logger.debug(f"Event {key} stopped by middleware")
                    return
            except Exception as e:
                logger.error(f"Error in middleware {_name(middleware)}: {e}")

        if listeners:
            results = await asyncio.gather(
                *(self._execute_listener(listener, *args, **kwargs) for listener in listeners),
                return_exceptions=True,
            )
            for listener, result in zip(listeners, results):
                if isinstance(result, Exception):
                    logger.error(f"Error in listener {_name(listener)} for {key}: {result}")
                    if event_context["error"] is None:
                        event_context["error"] = result

        for middleware in self._middleware:
            try:
                await self._call_maybe_async(middleware, event_context, "post")
            except Exception as e:
                logger.error(f"Error in middleware {_name(middleware)} (post): {e}")

    async def _execute_listener(self, listener: Callable, *args: Any, **kwargs: Any) -> None:
        await self._call_maybe_async(listener, *args, **kwargs)

    async def _call_maybe_async(self, func: Callable, *args: Any, **kwargs: Any) -> Any:
        result = func(*args, **kwargs)
        if asyncio.iscoroutine(result):
            return await result
        return result

    def get_listeners(self, event_name: EventName) -> list[Callable]:
        return self._listeners.get(_event_key(event_name), []).copy()

    def get_all_events(self) -> list[str]:
        return list(self._listeners.keys())

    def find_listener(self, name: str) -> Callable | None:
        """The first registered listener whose function name is ``name``."""
        for listeners in self._listeners.values():
            for listener in listeners:
                if _name(listener) == name:
                    return listener
        return None


def event_listener(event_name: EventName) -> Callable:
    """Mark a method as a listener; ``PrefixBot.load`` subscribes it."""

    def decorator(func: Callable) -> Callable:
        func._event_listener = _event_key(event_name)
        return func

    return decorator
