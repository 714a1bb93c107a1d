"""Cooldown counters and execution locks owned by a command."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Callable, Hashable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

logger = logging.getLogger(__name__)


class KeyKind(str, Enum):
    USER = "user"
    CHANNEL = "channel"
    GUILD = "guild"


KeySupplier = Callable[..., Any]
KeySpec = Union[KeyKind, str, KeySupplier]


def _user_key(ctx: Any, args: Any = None) -> Hashable:
    return ctx.author.id


def _channel_key(ctx: Any, args: Any = None) -> Hashable:
    return ctx.channel_id


def _guild_key(ctx: Any, args: Any = None) -> Hashable:
    return ctx.guild_id if ctx.guild_id is not None else ""


_SUPPLIERS = {
    KeyKind.USER: _user_key,
    KeyKind.CHANNEL: _channel_key,
    KeyKind.GUILD: _guild_key,
}


def resolve_key_supplier(spec: KeySpec) -> KeySupplier:
    """Turn ``"user" | "channel" | "guild"`` or a callable into a ``(ctx, args)`` key function."""
    if callable(spec):
        return spec
    try:
        return _SUPPLIERS[KeyKind(spec)]
    except ValueError:
        raise ValueError(f"Unknown key kind: {spec!r}") from None


@dataclass(frozen=True)
class GuardRejection:
    """Why an invocation was not allowed to run."""

    reason: str
    remaining: float | None = None  # milliseconds, for cooldowns

    COOLDOWN = "cooldown"
    LOCKED = "locked"


@dataclass
class CooldownEntry:
    uses: int
    resets_at: float  # clock time in milliseconds


class CooldownManager:
    """Fixed-window rate limiting per key.

    Each key may be used ``ratelimit`` times per ``cooldown`` milliseconds. The
    window starts with the first use and resets once it has elapsed. ``clock``
    returns seconds and defaults to ``time.monotonic``.
    """

    def __init__(self, cooldown: float, ratelimit: int = 1, clock: Callable[[], float] = time.monotonic) -> None:
        self.cooldown = cooldown
        self.ratelimit = ratelimit
        self.clock = clock
        self.entries: dict[Hashable, CooldownEntry] = {}

    def _now(self) -> float:
        return self.clock() * 1000

    def check(self, key: Hashable) -> float | None:
        """Record a use of ``key``.

        Returns ``None`` when allowed, or the milliseconds left in the window
        when the key is rate limited. A rejected attempt does not count as a use.
        """
        now = self._now()
        self._prune(now)

        entry = self.entries.get(key)
        if entry is None:
            entry = self.entries[key] = CooldownEntry(uses=0, resets_at=now + self.cooldown)

        if entry.uses >= self.ratelimit:
            return entry.resets_at - now

        entry.uses += 1
        return None

    def _prune(self, now: float) -> None:
        expired = [key for key, entry in self.entries.items() if entry.resets_at <= now]
        for key in expired:
            del self.entries[key]


def should_ignore(ignore: Any, ctx: Any, command: Any) -> bool:
    """Whether the author is exempt: ``ignore`` is an id, a collection of ids or ``callable(ctx, command)``."""
    if ignore is None:
        return False
    if callable(ignore):
        return bool(ignore(ctx, command))
    author_id = str(ctx.author.id)
    if isinstance(ignore, (list, tuple, set, frozenset)):
        return author_id in {str(entry) for entry in ignore}
    return author_id == str(ignore)


class CommandLock:
    """Keys of invocations currently executing a command."""

    def __init__(self) -> None:
        self.keys: set[Hashable] = set()

    def try_acquire(self, key: Hashable) -> bool:
        if key in self.keys:
            return False
        self.keys.add(key)
        return True

    def release(self, key: Hashable) -> None:
        self.keys.discard(key)

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[bool]:
        """Try to take ``key``; yields whether it was taken and always gives it back."""
        acquired = self.try_acquire(key)
        if not acquired:
            logger.debug(f"Lock key {key!r} is busy")
        try:
            yield acquired
        finally:
            if acquired:
                self.release(key)
