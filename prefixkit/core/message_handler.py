import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Union

import hikari

from config.settings import settings

from ..commands.arguments.argument import ArgumentDefaults, PromptOptions, maybe_await
from ..commands.arguments.type_resolver import TypeResolver
from ..commands.command import Command
from ..commands.constants import BuiltInReasons, CommandHandlerEvents
from ..commands.flag import Flag
from ..commands.guards import GuardRejection, should_ignore
from ..commands.inhibitors import Inhibitor, InhibitorRegistry, InhibitorType
from ..commands.registry import CommandRegistry
from . import utils

logger = logging.getLogger(__name__)

PrefixSpec = Union[str, Sequence[str], Callable[[hikari.Message], Any]]


def default_argument_defaults() -> ArgumentDefaults:
    """Prompt defaults taken from the settings."""
    return ArgumentDefaults(
        prompt=PromptOptions(
            retries=settings.prompt_retries,
            time=settings.prompt_time,
            cancel_word=settings.prompt_cancel_word,
            stop_word=settings.prompt_stop_word,
            optional=False,
            infinite=False,
            limit=math.inf,
            breakout=settings.prompt_breakout,
            timeout="Time ran out, command has been cancelled.",
            ended="Too many retries, command has been cancelled.",
            cancel="The command has been cancelled.",
        )
    )


@dataclass
class ParsedCommand:
    """A message split into prefix, alias and the content after the alias."""

    prefix: Optional[str] = None
    alias: Optional[str] = None
    command: Optional[Command] = None
    content: str = ""
    after_prefix: str = ""


class PrefixContext:
    def __init__(self, message: hikari.Message, bot: Any, handler: "CommandHandler"):
        self.message = message
        self.bot = bot
        self.handler = handler

        self.author = message.author
        self.member = message.member
        self.guild_id = message.guild_id
        self.channel_id = message.channel_id
        self.content = message.content or ""

        self.command: Optional[Command] = None
        self.parsed: Optional[ParsedCommand] = None

    def get_guild(self) -> Optional[hikari.Guild]:
        if self.guild_id:
            return self.bot.hikari_bot.cache.get_guild(self.guild_id)
        return None

    def get_channel(self) -> Optional[hikari.GuildChannel]:
        # DM channels are not cached by hikari.
        return self.bot.hikari_bot.cache.get_guild_channel(self.channel_id)

    async def respond(self, content: str = None, *, embed: hikari.Embed = None, components=None) -> hikari.Message:
        return await self.bot.hikari_bot.rest.create_message(
            self.channel_id,
            content=content,
            embed=embed if embed is not None else hikari.UNDEFINED,
            components=components if components is not None else hikari.UNDEFINED,
        )

    async def await_reply(self, timeout: Optional[float]) -> Optional[hikari.Message]:
        """Wait ``timeout`` ms for the author's next message in this channel."""

        def is_reply(event: hikari.MessageCreateEvent) -> bool:
            return event.author_id == self.author.id and event.channel_id == self.channel_id

        try:
            event = await self.bot.hikari_bot.wait_for(
                hikari.MessageCreateEvent,
                timeout=None if timeout is None or math.isinf(timeout) else timeout / 1000,
                predicate=is_reply,
            )
        except asyncio.TimeoutError:
            return None
        return event.message


class CommandHandler:
    """Finds the command in a message and runs it through guards, arguments and exec."""

    def __init__(
        self,
        bot: Any,
        prefix: Optional[PrefixSpec] = None,
        *,
        allow_mention: bool = True,
        block_bots: Optional[bool] = None,
        owner_ids: Optional[Sequence[int]] = None,
        default_cooldown: Optional[float] = None,
        ignore_cooldown: Any = None,
        ignore_permissions: Any = None,
        argument_defaults: Optional[ArgumentDefaults] = None,
        event_system: Any = None,
    ):
        self.bot = bot
        self.prefix = prefix if prefix is not None else settings.bot_prefix
        self.allow_mention = allow_mention
        self.block_bots = settings.block_bots if block_bots is None else block_bots
        self.owner_ids = list(settings.owner_ids if owner_ids is None else owner_ids)
        self.default_cooldown = settings.default_cooldown if default_cooldown is None else default_cooldown
        self.ignore_cooldown = ignore_cooldown
        self.ignore_permissions = ignore_permissions
        self.argument_defaults = argument_defaults or default_argument_defaults()
        self.event_system = event_system if event_system is not None else bot.event_system

        self.registry = CommandRegistry()
        self.inhibitors = InhibitorRegistry()
        self.resolver = TypeResolver(self)
        self.prompts: dict[Any, set[Any]] = {}

    @property
    def modules(self) -> dict[str, Command]:
        return self.registry.modules

    def add_command(self, command: Command) -> Command:
        self.registry.add(command)
        command.handler = self
        return command

    def remove_command(self, id: str) -> Optional[Command]:
        command = self.registry.remove(id)
        if command is not None:
            command.handler = None
        return command

    def find_command(self, name: str) -> Optional[Command]:
        return self.registry.find_command(name)

    def register_from(self, obj: Any) -> list[Command]:
        commands = self.registry.register_from(obj)
        for command in commands:
            command.handler = self
        return commands

    def add_inhibitor(self, inhibitor: Inhibitor) -> Inhibitor:
        return self.inhibitors.add(inhibitor)

    def remove_inhibitor(self, id: str) -> Optional[Inhibitor]:
        return self.inhibitors.remove(id)

    def is_owner(self, user: hikari.User) -> bool:
        return str(user.id) in {str(owner_id) for owner_id in self.owner_ids}

    # Prompts

    def add_prompt(self, channel_id: Any, user_id: Any) -> None:
        self.prompts.setdefault(channel_id, set()).add(user_id)

    def remove_prompt(self, channel_id: Any, user_id: Any) -> None:
        users = self.prompts.get(channel_id)
        if users is None:
            return
        users.discard(user_id)
        if not users:
            del self.prompts[channel_id]

    def has_prompt(self, channel_id: Any, user_id: Any) -> bool:
        return user_id in self.prompts.get(channel_id, ())

    # Parsing

    async def get_prefixes(self, message: hikari.Message) -> list[str]:
        prefix = self.prefix
        if callable(prefix):
            prefix = await maybe_await(prefix(message))
        prefixes = [prefix] if isinstance(prefix, str) else list(prefix or [])

        if self.allow_mention:
            me = self.bot.hikari_bot.get_me()
            if me is not None:
                prefixes.extend([f"<@{me.id}>", f"<@!{me.id}>"])

        return sorted((p for p in prefixes if p), key=len, reverse=True)

    async def parse_command(self, message: hikari.Message) -> Optional[ParsedCommand]:
        """Match a prefix and an alias; ``None`` when no prefix matches."""
        content = message.content or ""
        lowered = content.lower()

        for prefix in await self.get_prefixes(message):
            if not lowered.startswith(prefix.lower()):
                continue

            after_prefix = content[len(prefix):]
            words = after_prefix.split(maxsplit=1)
            if not words:
                return ParsedCommand(prefix=prefix, after_prefix=after_prefix)

            alias = words[0]
            return ParsedCommand(
                prefix=prefix,
                alias=alias,
                command=self.find_command(alias),
                content=words[1].strip() if len(words) > 1 else "",
                after_prefix=after_prefix,
            )

        return None

    # Handling

    async def emit(self, event: CommandHandlerEvents, *args: Any) -> None:
        await self.event_system.emit(event.value, *args)

    async def handle_message(self, event: hikari.MessageCreateEvent) -> bool:
        return await self.handle(event.message)

    async def handle(self, message: hikari.Message) -> bool:
        if await self._run_all_type_inhibitors(message):
            return False
        if await self._run_pre_type_inhibitors(message):
            return False

        parsed = await self.parse_command(message)
        if parsed is not None and parsed.command is not None:
            ctx = PrefixContext(message, self.bot, self)
            ctx.parsed = parsed
            logger.info(f"Prefix command called: {parsed.prefix}{parsed.alias} by {message.author.username}")
            await self.handle_direct_command(ctx, parsed.content, parsed.command)
            return True

        if await self.handle_triggered_commands(message):
            return True
        if parsed is not None:
            await self.emit(CommandHandlerEvents.MESSAGE_INVALID, message, parsed)
        return False

    async def _run_all_type_inhibitors(self, message: hikari.Message) -> bool:
        reason = await self.inhibitors.test(InhibitorType.ALL, message)
        if reason is None and self.block_bots and message.author.is_bot:
            reason = BuiltInReasons.BOT
        if reason is not None:
            await self.emit(CommandHandlerEvents.MESSAGE_BLOCKED, message, reason)
            return True

        if self.has_prompt(message.channel_id, message.author.id):
            await self.emit(CommandHandlerEvents.IN_PROMPT, message)
            return True
        return False

    async def _run_pre_type_inhibitors(self, message: hikari.Message) -> bool:
        reason = await self.inhibitors.test(InhibitorType.PRE, message)
        if reason is None:
            return False
        await self.emit(CommandHandlerEvents.MESSAGE_BLOCKED, message, reason)
        return True

    def _pre_check(self, ctx: PrefixContext, command: Command) -> Optional[BuiltInReasons]:
        if command.owner_only and not self.is_owner(ctx.author):
            return BuiltInReasons.OWNER
        if command.channel == "guild" and ctx.guild_id is None:
            return BuiltInReasons.GUILD
        if command.channel == "dm" and ctx.guild_id is not None:
            return BuiltInReasons.DM
        return None

    async def _run_post_checks(self, ctx: PrefixContext, command: Command) -> bool:
        """Owner, channel, permission, inhibitor and cooldown checks; ``True`` when the command is blocked."""
        reason = self._pre_check(ctx, command)
        if reason is None:
            if await self._run_permission_checks(ctx, command):
                return True
            reason = await self.inhibitors.test(InhibitorType.POST, ctx.message, command)
        if reason is not None:
            logger.warning(f"Command {command.id} blocked for {ctx.author.id}: {getattr(reason, 'value', reason)}")
            await self.emit(CommandHandlerEvents.COMMAND_BLOCKED, ctx, command, reason)
            return True

        rejection = command.check_cooldown(ctx)
        if rejection is not None:
            logger.warning(f"Command {command.id} on cooldown for {ctx.author.id}")
            await self.emit(CommandHandlerEvents.COOLDOWN, ctx, command, rejection.remaining)
            return True
        return False

    async def _run_permission_checks(self, ctx: PrefixContext, command: Command) -> bool:
        if command.client_permissions is not None:
            missing = await self._missing_permissions(ctx, command.client_permissions, self._bot_member(ctx))
            if missing:
                logger.warning(f"Bot is missing permissions for {command.id}: {missing}")
                await self.emit(CommandHandlerEvents.MISSING_PERMISSIONS, ctx, command, "client", missing)
                return True

        if command.user_permissions is not None:
            ignore = command.ignore_permissions
            if ignore is None:
                ignore = self.ignore_permissions
            if not should_ignore(ignore, ctx, command):
                missing = await self._missing_permissions(ctx, command.user_permissions, ctx.member)
                if missing:
                    logger.warning(f"{ctx.author.id} is missing permissions for {command.id}: {missing}")
                    await self.emit(CommandHandlerEvents.MISSING_PERMISSIONS, ctx, command, "user", missing)
                    return True
        return False

    def _bot_member(self, ctx: PrefixContext) -> Optional[hikari.Member]:
        me = self.bot.hikari_bot.get_me()
        if me is None or ctx.guild_id is None:
            return None
        return self.bot.hikari_bot.cache.get_member(ctx.guild_id, me.id)

    async def _missing_permissions(self, ctx: PrefixContext, required: Any, member: Optional[hikari.Member]) -> Any:
        if callable(required):
            return await maybe_await(required(ctx))
        guild = ctx.get_guild()
        if guild is None or member is None:
            # Outside guilds, or not cached
            return None
        return utils.missing_permissions(member, guild, required, ctx.get_channel())

    async def handle_direct_command(
        self, ctx: PrefixContext, content: str, command: Command, ignore: bool = False
    ) -> bool:
        """Run ``command`` on ``content``. ``ignore`` skips the post checks and cooldown."""
        ctx.command = command
        try:
            if not ignore and await self._run_post_checks(ctx, command):
                return False

            await command.before(ctx)
            args = await command.parse(ctx, content)

            if Flag.is_(args, Flag.CANCEL):
                await self.emit(CommandHandlerEvents.COMMAND_CANCELLED, ctx, command)
                return True

            if Flag.is_(args, Flag.INVALID):
                if args.reason == Flag.TIMEOUT:
                    await self.emit(CommandHandlerEvents.COMMAND_TIMEOUT, ctx, command, args)
                else:
                    await self.emit(CommandHandlerEvents.COMMAND_INVALID, ctx, command, args)
                return True

            if Flag.is_(args, Flag.RETRY):
                await self.emit(CommandHandlerEvents.COMMAND_BREAKOUT, ctx, command, args.message)
                return await self.handle(args.message)

            if Flag.is_(args, Flag.CONTINUE):
                next_command = self.find_command(args.command)
                if next_command is None:
                    logger.warning(f"Command {command.id} continued to unknown command {args.command}")
                    return False
                return await self.handle_direct_command(ctx, args.rest or "", next_command, args.ignore)

            return await self.run_command(ctx, command, args)

        except Exception as e:
            await self.handle_error(e, ctx, command)
            return False

    async def handle_triggered_commands(self, message: hikari.Message) -> bool:
        """Run the regex and conditional commands ``message`` triggers; ``True`` when any did."""
        content = message.content or ""
        ran = False
        for command in list(self.modules.values()):
            pattern = command.trigger_pattern(message)
            if pattern is not None:
                match = pattern.search(content)
                if match is None:
                    continue
                args = {"match": match, "matches": list(pattern.finditer(content))}
            elif await command.check_condition(message):
                args = {}
            else:
                continue

            ctx = PrefixContext(message, self.bot, self)
            logger.info(f"Triggered command called: {command.id} by {message.author.username}")
            await self.handle_triggered_command(ctx, command, args)
            ran = True
        return ran

    async def handle_triggered_command(self, ctx: PrefixContext, command: Command, args: Any) -> bool:
        ctx.command = command
        try:
            if await self._run_post_checks(ctx, command):
                return False
            await command.before(ctx)
            return await self.run_command(ctx, command, args)
        except Exception as e:
            await self.handle_error(e, ctx, command)
            return False

    async def run_command(self, ctx: PrefixContext, command: Command, args: Any) -> bool:
        if command.locker is None:
            await self._execute(ctx, command, args)
            return True

        key = await command.lock_key(ctx, args)
        async with command.locker.hold(key) as acquired:
            if not acquired:
                logger.warning(f"Command {command.id} is locked for key {key!r}")
                await self.emit(
                    CommandHandlerEvents.COMMAND_LOCKED, ctx, command, GuardRejection(GuardRejection.LOCKED)
                )
                return False
            await self._execute(ctx, command, args)
        return True

    async def _execute(self, ctx: PrefixContext, command: Command, args: Any) -> None:
        await self.emit(CommandHandlerEvents.COMMAND_STARTED, ctx, command, args)
        result = await command.exec(ctx, args)
        await self.emit(CommandHandlerEvents.COMMAND_FINISHED, ctx, command, args, result)

    async def handle_error(self, error: Exception, ctx: PrefixContext, command: Command) -> None:
        logger.error(f"Error executing prefix command {command.id}: {error}")
        await self.emit(CommandHandlerEvents.ERROR, error, ctx, command)
        try:
            await ctx.respond(f"❌ Command failed: {str(error)}")
        except hikari.HTTPError as respond_error:
            logger.warning(f"Could not report error for {command.id}: {respond_error}")
