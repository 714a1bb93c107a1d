import logging
import time
from typing import Any

from ..commands.constants import CommandHandlerEvents

logger = logging.getLogger(__name__)

# Events worth a line at info level or above.
_COMMAND_EVENTS = {
    CommandHandlerEvents.COMMAND_STARTED.value: logging.INFO,
    CommandHandlerEvents.COMMAND_FINISHED.value: logging.INFO,
    CommandHandlerEvents.COMMAND_CANCELLED.value: logging.INFO,
    CommandHandlerEvents.COMMAND_BREAKOUT.value: logging.INFO,
    CommandHandlerEvents.COMMAND_INVALID.value: logging.WARNING,
    CommandHandlerEvents.COMMAND_TIMEOUT.value: logging.WARNING,
    CommandHandlerEvents.COMMAND_BLOCKED.value: logging.WARNING,
    CommandHandlerEvents.COMMAND_LOCKED.value: logging.WARNING,
    CommandHandlerEvents.COOLDOWN.value: logging.WARNING,
    CommandHandlerEvents.MISSING_PERMISSIONS.value: logging.WARNING,
}


class LoggingMiddleware:
    def __init__(self) -> None:
        self.start_times: dict[int, float] = {}

    async def __call__(self, event_context: dict[str, Any], phase: str) -> None:
        event_name = event_context.get("event_name")

        if phase == "pre":
            self.start_times[id(event_context)] = time.time()
            logger.debug(f"Event started: {event_name}")
            level = _COMMAND_EVENTS.get(event_name)
            if level is not None:
                logger.log(level, f"{event_name}: {self._describe(event_context)}")

        elif phase == "post":
            start_time = self.start_times.pop(id(event_context), None)
            if start_time:
                duration = time.time() - start_time
                logger.debug(f"Event completed: {event_name} (took {duration:.3f}s)")
            else:
                logger.debug(f"Event completed: {event_name}")

    @staticmethod
    def _describe(event_context: dict[str, Any]) -> str:
        # Command events are emitted as (ctx, command, ...).
        args = event_context.get("args", ())
        if len(args) < 2:
            return ""
        ctx, command = args[0], args[1]
        author = getattr(getattr(ctx, "author", None), "id", None)
        return f"{getattr(command, 'id', command)} by {author}"


# Global instance
logging_middleware = LoggingMiddleware()
