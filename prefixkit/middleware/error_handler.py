import logging
import traceback
from typing import Any, Dict

from ..commands.constants import CommandHandlerEvents

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware:
    def __init__(self) -> None:
        self.errors_seen = 0

    async def __call__(self, event_context: Dict[str, Any], phase: str) -> None:
        if phase != "post":
            return

        event_name = event_context.get("event_name", "unknown")
        error = event_context.get("error")
        if error is None and event_name == CommandHandlerEvents.ERROR.value:
            # Command failures are emitted as (error, ctx, command).
            args = event_context.get("args", ())
            error = args[0] if args else None

        if isinstance(error, BaseException):
            self.errors_seen += 1
            logger.error(f"Error in event {event_name}: {error}")
            logger.error(
                "Traceback: " + "".join(traceback.format_exception(type(error), error, error.__traceback__))
            )


# Global instance
error_handler_middleware = ErrorHandlerMiddleware()
