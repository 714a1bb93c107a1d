"""Inhibitors: checks that block a message or a command before it runs."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any

from .arguments.argument import maybe_await
from .errors import InhibitorNotImplementedError, InhibitorRegistrationError

if TYPE_CHECKING:
    import hikari

    from .command import Command

logger = logging.getLogger(__name__)


class InhibitorType(str, Enum):
    """When an inhibitor runs.

    ``all`` sees every message, bots included. ``pre`` runs on messages that
    passed the bot and prompt checks, before the prefix is parsed. ``post``
    runs once a command is found and also receives it.
    """

    ALL = "all"
    PRE = "pre"
    POST = "post"


class Inhibitor:
    """Blocks the messages ``exec(message, command)`` returns ``True`` for, reporting ``reason``."""

    def __init__(
        self,
        id: str,
        *,
        reason: str = "",
        type: InhibitorType | str = InhibitorType.POST,
        priority: int = 0,
        exec: Callable[..., Any] | None = None,
    ) -> None:
        self.id = id
        self.reason = reason
        self.type = InhibitorType(type)
        self.priority = priority
        self._exec = exec

    async def exec(self, message: hikari.Message, command: Command | None = None) -> bool:
        if self._exec is None:
            raise InhibitorNotImplementedError(self.id)
        return bool(await maybe_await(self._exec(message, command)))

    def __repr__(self) -> str:
        return f"<Inhibitor {self.id} ({self.type.value})>"


class InhibitorRegistry:
    """Inhibitors keyed by id."""

    def __init__(self) -> None:
        self.modules: dict[str, Inhibitor] = {}

    def add(self, inhibitor: Inhibitor) -> Inhibitor:
        if inhibitor.id in self.modules:
            raise InhibitorRegistrationError(f"Inhibitor {inhibitor.id} is already registered", inhibitor.id)
        self.modules[inhibitor.id] = inhibitor
        logger.debug(f"Added inhibitor: {inhibitor.id} ({inhibitor.type.value})")
        return inhibitor

    def remove(self, id: str) -> Inhibitor | None:
        inhibitor = self.modules.pop(id, None)
        if inhibitor is not None:
            logger.debug(f"Removed inhibitor: {id}")
        return inhibitor

    def register_from(self, obj: Any) -> list[Inhibitor]:
        """Add every ``@inhibitor``-decorated callable found on ``obj``."""
        added = []
        for attr_name in dir(obj):
            attr = getattr(obj, attr_name)
            meta = getattr(attr, "_inhibitor", None)
            if meta is None:
                continue
            added.append(self.add(Inhibitor(exec=attr, **meta)))
        return added

    async def test(
        self, type: InhibitorType | str, message: hikari.Message, command: Command | None = None
    ) -> str | None:
        """Run the inhibitors of ``type``; the reason of the highest-priority one that blocks, or ``None``."""
        inhibitors = [inhibitor for inhibitor in self.modules.values() if inhibitor.type == InhibitorType(type)]
        if not inhibitors:
            return None

        results = await asyncio.gather(*(inhibitor.exec(message, command) for inhibitor in inhibitors))
        blocking = [inhibitor for inhibitor, blocked in zip(inhibitors, results) if blocked]
        if not blocking:
            return None

        winner = max(blocking, key=lambda inhibitor: inhibitor.priority)
        logger.debug(f"Inhibitor {winner.id} blocked message {getattr(message, 'id', None)}")
        return winner.reason

    def __contains__(self, id: str) -> bool:
        return id in self.modules

    def __len__(self) -> int:
        return len(self.modules)
