"""A text command: its parser, argument runner and guards."""

from __future__ import annotations

import inspect
import logging
import re
from collections.abc import Callable, Hashable, Sequence
from typing import TYPE_CHECKING, Any

from .arguments.argument import Argument, ArgumentDefaults, ArgumentOptions, maybe_await
from .arguments.runner import ArgumentRunner, GeneratorFactory
from .content_parser import ContentParser
from .errors import CommandNotImplementedError
from .guards import (
    CommandLock,
    CooldownManager,
    GuardRejection,
    KeySpec,
    resolve_key_supplier,
    should_ignore,
)

if TYPE_CHECKING:
    from ..core.message_handler import CommandHandler, PrefixContext

logger = logging.getLogger(__name__)


class Command:
    """A prefix command.

    ``args`` is either a static list of ``ArgumentOptions`` or a generator
    function ``(ctx, parsed, state)`` yielding them one at a time and
    receiving each resolved value back. Flag words of a static list are
    collected automatically; a generator must declare them with ``flags`` and
    ``option_flags``.

    ``cooldown`` is in milliseconds and allows ``ratelimit`` uses per window
    and key (``cooldown_bucket``). ``lock`` serializes executions sharing a key
    (``"user"``, ``"channel"``, ``"guild"`` or ``callable(ctx, args)``).
    ``channel`` restricts the command to ``"guild"`` or ``"dm"``.

    ``user_permissions`` and ``client_permissions`` are ``hikari.Permissions``
    the author and the bot need in the channel, or ``callable(ctx)`` returning
    what is missing (``None`` when nothing is). ``ignore_permissions`` exempts
    authors from the user check, in the same forms as ``ignore_cooldown``.

    ``before(ctx)`` runs after the guards and ahead of argument parsing.
    Commands with a ``regex`` (a pattern, or ``callable(message)`` returning
    one) or a ``condition(message)`` also run on messages without a prefix:
    a regex command receives ``{"match", "matches"}`` as its arguments, a
    conditional one an empty bag.
    """

    def __init__(
        self,
        id: str,
        *,
        aliases: Sequence[str] | None = None,
        args: Sequence[ArgumentOptions] | Callable[..., Any] | None = None,
        quoted: bool = True,
        separator: str | None = None,
        flags: Sequence[str] | None = None,
        option_flags: Sequence[str] | None = None,
        cooldown: float | None = None,
        ratelimit: int = 1,
        cooldown_bucket: KeySpec = "user",
        ignore_cooldown: Any = None,
        lock: KeySpec | None = None,
        channel: str | None = None,
        owner_only: bool = False,
        user_permissions: Any = None,
        client_permissions: Any = None,
        ignore_permissions: Any = None,
        regex: Any = None,
        condition: Callable[..., Any] | None = None,
        before: Callable[..., Any] | None = None,
        argument_defaults: ArgumentDefaults | None = None,
        description: str = "",
        exec: Callable[..., Any] | None = None,
    ) -> None:
        self.id = id
        self.aliases = list(aliases or [])
        self.description = description
        self.channel = channel
        self.owner_only = owner_only
        self.argument_defaults = argument_defaults or ArgumentDefaults()
        self.handler: CommandHandler | None = None
        self._exec = exec
        self._before = before

        self.user_permissions = user_permissions
        self.client_permissions = client_permissions
        self.ignore_permissions = ignore_permissions
        self.regex = regex
        self.condition = condition

        flag_words = list(flags or [])
        option_flag_words = list(option_flags or [])

        if args is None:
            args = []
        if inspect.isgeneratorfunction(args):
            self.args: GeneratorFactory = args
        else:
            arguments = [Argument(self, options) for options in args]
            collected_flags, collected_options = ContentParser.get_flags(arguments)
            flag_words.extend(collected_flags)
            option_flag_words.extend(collected_options)
            self.args = ArgumentRunner.from_arguments([(arg.id, arg) for arg in arguments])

        self.content_parser = ContentParser(
            flag_words=flag_words,
            option_flag_words=option_flag_words,
            quoted=quoted,
            separator=separator,
        )
        self.argument_runner = ArgumentRunner(self)

        self.cooldown = cooldown
        self.ratelimit = ratelimit
        self.ignore_cooldown = ignore_cooldown
        self.cooldown_bucket = resolve_key_supplier(cooldown_bucket)
        self.cooldown_manager = CooldownManager(cooldown, ratelimit) if cooldown else None

        self.lock = lock
        self.lock_supplier = resolve_key_supplier(lock) if lock is not None else None
        self.locker = CommandLock() if lock is not None else None

    @property
    def names(self) -> list[str]:
        return [self.id, *self.aliases]

    async def parse(self, ctx: PrefixContext, content: str) -> Any:
        """Resolve the arguments in ``content``: the bag, or a short-circuit ``Flag``."""
        parsed = self.content_parser.parse(content)
        return await self.argument_runner.run(ctx, parsed, self.args)

    def check_cooldown(self, ctx: PrefixContext) -> GuardRejection | None:
        """Count this invocation against the cooldown, or reject it."""
        handler = self.handler
        owner_ids = handler.owner_ids if handler is not None else ()
        if str(ctx.author.id) in {str(owner) for owner in owner_ids}:
            return None

        ignore = self.ignore_cooldown
        if ignore is None and handler is not None:
            ignore = handler.ignore_cooldown
        if should_ignore(ignore, ctx, self):
            return None

        if self.cooldown_manager is None:
            if self.cooldown is not None:
                return None
            default = handler.default_cooldown if handler is not None else 0
            if not default:
                return None
            self.cooldown_manager = CooldownManager(default, self.ratelimit)

        remaining = self.cooldown_manager.check(self.cooldown_bucket(ctx))
        if remaining is None:
            return None
        logger.debug(f"Command {self.id} on cooldown for {remaining:.0f}ms")
        return GuardRejection(GuardRejection.COOLDOWN, remaining)

    async def lock_key(self, ctx: PrefixContext, args: Any) -> Hashable | None:
        if self.lock_supplier is None:
            return None
        return await maybe_await(self.lock_supplier(ctx, args))

    def trigger_pattern(self, message: Any) -> re.Pattern[str] | None:
        """The regex this command triggers on for ``message``, if any."""
        regex = self.regex
        if callable(regex):
            regex = regex(message)
        if isinstance(regex, str):
            regex = re.compile(regex)
        return regex

    async def check_condition(self, message: Any) -> bool:
        if self.condition is None:
            return False
        return bool(await maybe_await(self.condition(message)))

    async def before(self, ctx: PrefixContext) -> None:
        if self._before is not None:
            await maybe_await(self._before(ctx))

    async def exec(self, ctx: PrefixContext, args: Any) -> Any:
        if self._exec is None:
            raise CommandNotImplementedError(self.id)
        return await maybe_await(self._exec(ctx, args))

    def __repr__(self) -> str:
        return f"<Command {self.id}>"
