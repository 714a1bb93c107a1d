"""Control-flow signals passed between casters, arguments and the runner."""

from __future__ import annotations

from typing import Any


class Flag:
    """A special value that changes how argument resolution proceeds.

    Flags are returned (or yielded, from an argument generator) instead of a
    resolved value. ``cancel`` and ``invalid`` are terminal states of a run,
    ``retry`` asks the handler to re-handle a prompt reply as a new command,
    ``continue`` hands the remaining content to another command and ``fail``
    wraps a cast failure value so it can be inspected by ``otherwise`` and
    prompt callbacks.
    """

    CANCEL = "cancel"
    INVALID = "invalid"
    RETRY = "retry"
    FAIL = "fail"
    CONTINUE = "continue"

    TIMEOUT = "timeout"
    ENDED = "ended"

    def __init__(self, type: str, **data: Any) -> None:
        self.type = type
        self.message = data.get("message")
        self.value = data.get("value")
        self.reason = data.get("reason")
        self.command = data.get("command")
        self.ignore = data.get("ignore", False)
        self.rest = data.get("rest")
        self.values: dict[str, Any] = data.get("values") or {}

    @classmethod
    def cancel(cls) -> Flag:
        return cls(cls.CANCEL)

    @classmethod
    def invalid(cls, reason: str, values: dict[str, Any] | None = None) -> Flag:
        """Resolution could not finish; ``reason`` is ``timeout`` or ``ended``."""
        return cls(cls.INVALID, reason=reason, values=values)

    @classmethod
    def retry(cls, message: Any) -> Flag:
        return cls(cls.RETRY, message=message)

    @classmethod
    def fail(cls, value: Any) -> Flag:
        return cls(cls.FAIL, value=value)

    @classmethod
    def continue_(cls, command: str, ignore: bool = False, rest: str | None = None) -> Flag:
        return cls(cls.CONTINUE, command=command, ignore=ignore, rest=rest)

    @staticmethod
    def is_(value: Any, type: str) -> bool:
        return isinstance(value, Flag) and value.type == type

    def __repr__(self) -> str:
        if self.type == self.INVALID:
            return f"<Flag {self.type} reason={self.reason!r}>"
        return f"<Flag {self.type}>"
