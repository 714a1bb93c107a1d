"""Registry of named casters used to turn phrases into typed values."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any, Union
from urllib.parse import SplitResult, urlsplit

import hikari

from ...core import utils
from ..constants import ArgumentType

if TYPE_CHECKING:
    from ...core.message_handler import CommandHandler, PrefixContext

logger = logging.getLogger(__name__)

TypeCaster = Callable[["PrefixContext", Union[str, None]], Union[Any, Awaitable[Any]]]

KEYCAP_DIGIT = re.compile(r"([0-9])\ufe0f?\u20e3|\U0001f51f")
INVITE_CODE = re.compile(r"^(?:https?://)?(?:www\.)?(?:discord(?:app)?\.(?:gg|com/invite)/)?([\w-]+)/?$")
HEX_COLOR = re.compile(r"#?[0-9a-fA-F]{1,6}")

TEXT_CHANNEL_TYPES = frozenset({hikari.ChannelType.GUILD_TEXT})
VOICE_CHANNEL_TYPES = frozenset({hikari.ChannelType.GUILD_VOICE})
CATEGORY_CHANNEL_TYPES = frozenset({hikari.ChannelType.GUILD_CATEGORY})
NEWS_CHANNEL_TYPES = frozenset({hikari.ChannelType.GUILD_NEWS})
STAGE_CHANNEL_TYPES = frozenset({hikari.ChannelType.GUILD_STAGE})
FORUM_CHANNEL_TYPES = frozenset({hikari.ChannelType.GUILD_FORUM})
THREAD_CHANNEL_TYPES = frozenset(
    {
        hikari.ChannelType.GUILD_NEWS_THREAD,
        hikari.ChannelType.GUILD_PUBLIC_THREAD,
        hikari.ChannelType.GUILD_PRIVATE_THREAD,
    }
)

# Errors a REST lookup raises when the thing simply is not there (or not visible).
LOOKUP_MISSES = (hikari.NotFoundError, hikari.ForbiddenError, hikari.BadRequestError)


class TypeResolver:
    """Holds the casters for argument types.

    A caster is called as ``caster(ctx, phrase)`` and may be sync or async. It
    returns the typed value, or ``None`` when the phrase does not describe a
    value of that type. Casters never raise for "not found"; an exception from
    a caster is a real fault and aborts the command.

    Built-in casters are registered under the names in ``ArgumentType``.
    ``add_type`` replaces any existing caster with the same name.
    """

    def __init__(self, handler: CommandHandler) -> None:
        self.handler = handler
        self.bot = handler.bot
        self.types: dict[str, TypeCaster] = {}
        self._add_builtin_types()

    @property
    def cache(self) -> hikari.api.Cache:
        return self.bot.hikari_bot.cache

    @property
    def rest(self) -> hikari.api.RESTClient:
        return self.bot.hikari_bot.rest

    def type(self, name: str) -> TypeCaster | None:
        """Get the caster registered for ``name``."""
        return self.types.get(name)

    def add_type(self, name: str, fn: TypeCaster) -> TypeResolver:
        """Register ``fn`` as the caster for ``name``, overwriting any previous one."""
        key = name.value if isinstance(name, ArgumentType) else name
        if key in self.types:
            logger.debug(f"Overwriting argument type: {key}")
        self.types[key] = fn
        return self

    def add_types(self, types: Mapping[str, TypeCaster]) -> TypeResolver:
        for name, fn in types.items():
            self.add_type(name, fn)
        return self

    def _add_builtin_types(self) -> None:
        builtins: dict[ArgumentType, TypeCaster] = {
            ArgumentType.STRING: _cast_string,
            ArgumentType.LOWERCASE: lambda ctx, phrase: phrase.lower() if phrase else None,
            ArgumentType.UPPERCASE: lambda ctx, phrase: phrase.upper() if phrase else None,
            ArgumentType.CHAR_CODES: lambda ctx, phrase: [ord(c) for c in phrase] if phrase else None,
            ArgumentType.NUMBER: _cast_number,
            ArgumentType.INTEGER: _cast_integer,
            ArgumentType.BIGINT: _cast_bigint,
            ArgumentType.EMOJINT: _cast_emojint,
            ArgumentType.URL: _cast_url,
            ArgumentType.DATE: _cast_date,
            ArgumentType.COLOR: _cast_color,
            ArgumentType.USER: self._cast_user,
            ArgumentType.USERS: self._cast_users,
            ArgumentType.MEMBER: self._cast_member,
            ArgumentType.MEMBERS: self._cast_members,
            ArgumentType.RELEVANT: self._cast_relevant,
            ArgumentType.RELEVANTS: self._cast_relevants,
            ArgumentType.CHANNEL: self._channel_caster(None),
            ArgumentType.CHANNELS: self._channels_caster(None),
            ArgumentType.TEXT_CHANNEL: self._channel_caster(TEXT_CHANNEL_TYPES),
            ArgumentType.TEXT_CHANNELS: self._channels_caster(TEXT_CHANNEL_TYPES),
            ArgumentType.VOICE_CHANNEL: self._channel_caster(VOICE_CHANNEL_TYPES),
            ArgumentType.VOICE_CHANNELS: self._channels_caster(VOICE_CHANNEL_TYPES),
            ArgumentType.CATEGORY_CHANNEL: self._channel_caster(CATEGORY_CHANNEL_TYPES),
            ArgumentType.CATEGORY_CHANNELS: self._channels_caster(CATEGORY_CHANNEL_TYPES),
            ArgumentType.NEWS_CHANNEL: self._channel_caster(NEWS_CHANNEL_TYPES),
            ArgumentType.NEWS_CHANNELS: self._channels_caster(NEWS_CHANNEL_TYPES),
            ArgumentType.STAGE_CHANNEL: self._channel_caster(STAGE_CHANNEL_TYPES),
            ArgumentType.STAGE_CHANNELS: self._channels_caster(STAGE_CHANNEL_TYPES),
            ArgumentType.THREAD_CHANNEL: self._channel_caster(THREAD_CHANNEL_TYPES),
            ArgumentType.THREAD_CHANNELS: self._channels_caster(THREAD_CHANNEL_TYPES),
            ArgumentType.FORUM_CHANNEL: self._channel_caster(FORUM_CHANNEL_TYPES),
            ArgumentType.FORUM_CHANNELS: self._channels_caster(FORUM_CHANNEL_TYPES),
            ArgumentType.ROLE: self._cast_role,
            ArgumentType.ROLES: self._cast_roles,
            ArgumentType.EMOJI: self._cast_emoji,
            ArgumentType.EMOJIS: self._cast_emojis,
            ArgumentType.GUILD: self._cast_guild,
            ArgumentType.GUILDS: self._cast_guilds,
            ArgumentType.MESSAGE: self._cast_message,
            ArgumentType.GUILD_MESSAGE: self._cast_guild_message,
            ArgumentType.RELEVANT_MESSAGE: self._cast_relevant_message,
            ArgumentType.INVITE: self._cast_invite,
            ArgumentType.USER_MENTION: self._cast_user_mention,
            ArgumentType.MEMBER_MENTION: self._cast_member_mention,
            ArgumentType.CHANNEL_MENTION: self._cast_channel_mention,
            ArgumentType.ROLE_MENTION: self._cast_role_mention,
            ArgumentType.EMOJI_MENTION: self._cast_emoji_mention,
            ArgumentType.COMMAND_ALIAS: self._cast_command_alias,
            ArgumentType.COMMAND: self._cast_command,
            ArgumentType.INHIBITOR: self._cast_inhibitor,
            ArgumentType.LISTENER: self._cast_listener,
        }
        for name, fn in builtins.items():
            self.types[name.value] = fn

    # Users and members

    def _cast_user(self, ctx: PrefixContext, phrase: str | None) -> Any:
        if not phrase:
            return None
        return utils.resolve_user(phrase, self.cache.get_users_view())

    def _cast_users(self, ctx: PrefixContext, phrase: str | None) -> Any:
        if not phrase:
            return None
        return utils.resolve_users(phrase, self.cache.get_users_view()) or None

    def _cast_member(self, ctx: PrefixContext, phrase: str | None) -> Any:
        if not phrase or ctx.guild_id is None:
            return None
        return utils.resolve_member(phrase, self.cache.get_members_view_for_guild(ctx.guild_id))

    def _cast_members(self, ctx: PrefixContext, phrase: str | None) -> Any:
        if not phrase or ctx.guild_id is None:
            return None
        return utils.resolve_members(phrase, self.cache.get_members_view_for_guild(ctx.guild_id)) or None

    def _relevant_users(self, ctx: PrefixContext) -> dict[hikari.Snowflake, hikari.User]:
        """People who can be meant outside a guild: the author, the bot and any group recipients."""
        users: dict[hikari.Snowflake, hikari.User] = {ctx.author.id: ctx.author}
        me = self.cache.get_me()
        if me is not None:
            users[me.id] = me
        channel = ctx.get_channel()
        if isinstance(channel, hikari.GroupDMChannel):
            users.update(channel.recipients)
        return users

    def _cast_relevant(self, ctx: PrefixContext, phrase: str | None) -> Any:
        if not phrase:
            return None
        if ctx.guild_id is not None:
            member = utils.resolve_member(phrase, self.cache.get_members_view_for_guild(ctx.guild_id))
            return member.user if member is not None else None
        return utils.resolve_user(phrase, self._relevant_users(ctx))

    def _cast_relevants(self, ctx: PrefixContext, phrase: str | None) -> Any:
        if not phrase:
            return None
        if ctx.guild_id is not None:
            members = utils.resolve_members(phrase, self.cache.get_members_view_for_guild(ctx.guild_id))
            return {member_id: member.user for member_id, member in members.items()} or None
        return utils.resolve_users(phrase, self._relevant_users(ctx)) or None

    # Channels

    def _channel_caster(self, channel_types: frozenset[hikari.ChannelType] | None) -> TypeCaster:
        def cast(ctx: PrefixContext, phrase: str | None) -> Any:
            if not phrase or ctx.guild_id is None:
                return None
            channels = self.cache.get_guild_channels_view_for_guild(ctx.guild_id)
            channel = utils.resolve_channel(phrase, channels)
            if channel is None or (channel_types is not None and channel.type not in channel_types):
                return None
            return channel

        return cast

    def _channels_caster(self, channel_types: frozenset[hikari.ChannelType] | None) -> TypeCaster:
        def cast(ctx: PrefixContext, phrase: str | None) -> Any:
            if not phrase or ctx.guild_id is None:
                return None
            channels = utils.resolve_channels(phrase, self.cache.get_guild_channels_view_for_guild(ctx.guild_id))
            if channel_types is not None:
                channels = {key: c for key, c in channels.items() if c.type in channel_types}
            return channels or None

        return cast

    # Roles, emojis and guilds

    def _cast_role(self, ctx: PrefixContext, phrase: str | None) -> Any:
        if not phrase or ctx.guild_id is None:
            return None
        return utils.resolve_role(phrase, self.cache.get_roles_view_for_guild(ctx.guild_id))

    def _cast_roles(self, ctx: PrefixContext, phrase: str | None) -> Any:
        if not phrase or ctx.guild_id is None:
            return None
        return utils.resolve_roles(phrase, self.cache.get_roles_view_for_guild(ctx.guild_id)) or None

    def _cast_emoji(self, ctx: PrefixContext, phrase: str | None) -> Any:
        if not phrase or ctx.guild_id is None:
            return None
        return utils.resolve_emoji(phrase, self.cache.get_emojis_view_for_guild(ctx.guild_id))

    def _cast_emojis(self, ctx: PrefixContext, phrase: str | None) -> Any:
        if not phrase or ctx.guild_id is None:
            return None
        return utils.resolve_emojis(phrase, self.cache.get_emojis_view_for_guild(ctx.guild_id)) or None

    def _cast_guild(self, ctx: PrefixContext, phrase: str | None) -> Any:
        if not phrase:
            return None
        return utils.resolve_guild(phrase, self.cache.get_guilds_view())

    def _cast_guilds(self, ctx: PrefixContext, phrase: str | None) -> Any:
        if not phrase:
            return None
        return utils.resolve_guilds(phrase, self.cache.get_guilds_view()) or None

    # Fetchers

    async def _cast_message(self, ctx: PrefixContext, phrase: str | None) -> Any:
        if not phrase or not phrase.isdigit():
            return None
        try:
            return await self.rest.fetch_message(ctx.channel_id, hikari.Snowflake(phrase))
        except LOOKUP_MISSES:
            return None

    async def _search_guild_messages(self, ctx: PrefixContext, message_id: hikari.Snowflake) -> Any:
        channels = self.cache.get_guild_channels_view_for_guild(ctx.guild_id)
        for channel in channels.values():
            if channel.type not in TEXT_CHANNEL_TYPES:
                continue
            try:
                return await self.rest.fetch_message(channel.id, message_id)
            except hikari.BadRequestError:
                return None
            except (hikari.NotFoundError, hikari.ForbiddenError):
                continue
        return None

    async def _cast_guild_message(self, ctx: PrefixContext, phrase: str | None) -> Any:
        if not phrase or not phrase.isdigit() or ctx.guild_id is None:
            return None
        return await self._search_guild_messages(ctx, hikari.Snowflake(phrase))

    async def _cast_relevant_message(self, ctx: PrefixContext, phrase: str | None) -> Any:
        here = await self._cast_message(ctx, phrase)
        if here is not None:
            return here
        if not phrase or not phrase.isdigit() or ctx.guild_id is None:
            return None
        return await self._search_guild_messages(ctx, hikari.Snowflake(phrase))

    async def _cast_invite(self, ctx: PrefixContext, phrase: str | None) -> Any:
        if not phrase:
            return None
        match = INVITE_CODE.match(phrase.strip("<>"))
        if not match:
            return None
        try:
            return await self.rest.fetch_invite(match.group(1))
        except LOOKUP_MISSES:
            return None

    # Mentions

    def _cast_user_mention(self, ctx: PrefixContext, phrase: str | None) -> Any:
        match = utils.USER_MENTION.fullmatch(phrase or "")
        if not match:
            return None
        return self.cache.get_user(hikari.Snowflake(match.group(1)))

    def _cast_member_mention(self, ctx: PrefixContext, phrase: str | None) -> Any:
        match = utils.USER_MENTION.fullmatch(phrase or "")
        if not match or ctx.guild_id is None:
            return None
        return self.cache.get_member(ctx.guild_id, hikari.Snowflake(match.group(1)))

    def _cast_channel_mention(self, ctx: PrefixContext, phrase: str | None) -> Any:
        match = utils.CHANNEL_MENTION.fullmatch(phrase or "")
        if not match or ctx.guild_id is None:
            return None
        channel = self.cache.get_guild_channel(hikari.Snowflake(match.group(1)))
        if channel is None or channel.guild_id != ctx.guild_id:
            return None
        return channel

    def _cast_role_mention(self, ctx: PrefixContext, phrase: str | None) -> Any:
        match = utils.ROLE_MENTION.fullmatch(phrase or "")
        if not match or ctx.guild_id is None:
            return None
        role = self.cache.get_role(hikari.Snowflake(match.group(1)))
        if role is None or role.guild_id != ctx.guild_id:
            return None
        return role

    def _cast_emoji_mention(self, ctx: PrefixContext, phrase: str | None) -> Any:
        match = utils.EMOJI_MENTION.fullmatch(phrase or "")
        if not match or ctx.guild_id is None:
            return None
        emoji = self.cache.get_emoji(hikari.Snowflake(match.group(1)))
        if emoji is None or emoji.guild_id != ctx.guild_id:
            return None
        return emoji

    # Sibling registries

    def _cast_command_alias(self, ctx: PrefixContext, phrase: str | None) -> Any:
        if not phrase:
            return None
        return self.handler.find_command(phrase)

    def _cast_command(self, ctx: PrefixContext, phrase: str | None) -> Any:
        if not phrase:
            return None
        return self.handler.modules.get(phrase)

    def _cast_inhibitor(self, ctx: PrefixContext, phrase: str | None) -> Any:
        if not phrase:
            return None
        return self.handler.inhibitors.modules.get(phrase)

    def _cast_listener(self, ctx: PrefixContext, phrase: str | None) -> Any:
        if not phrase:
            return None
        return self.handler.event_system.find_listener(phrase)


def _cast_string(ctx: Any, phrase: str | None) -> str | None:
    return phrase or None


def _cast_number(ctx: Any, phrase: str | None) -> float | None:
    if not phrase:
        return None
    try:
        value = float(phrase)
    except ValueError:
        return None
    return None if math.isnan(value) else value


def _cast_integer(ctx: Any, phrase: str | None) -> int | None:
    if not phrase:
        return None
    try:
        return int(phrase)
    except ValueError:
        pass
    value = _cast_number(ctx, phrase)
    if value is None or not math.isfinite(value):
        return None
    return int(value)


def _cast_bigint(ctx: Any, phrase: str | None) -> int | None:
    if not phrase:
        return None
    try:
        return int(phrase)
    except ValueError:
        return None


def _cast_emojint(ctx: Any, phrase: str | None) -> int | None:
    if not phrase:
        return None
    digits = KEYCAP_DIGIT.sub(lambda m: m.group(1) or "10", phrase)
    try:
        return int(digits)
    except ValueError:
        return None


def _cast_url(ctx: Any, phrase: str | None) -> SplitResult | None:
    if not phrase:
        return None
    if phrase.startswith("<") and phrase.endswith(">") and len(phrase) > 2:
        phrase = phrase[1:-1]
    try:
        url = urlsplit(phrase)
    except ValueError:
        return None
    if not url.scheme or not (url.netloc or url.path) or any(c.isspace() for c in phrase):
        return None
    return url


def _cast_date(ctx: Any, phrase: str | None) -> datetime | None:
    if not phrase:
        return None
    try:
        return datetime.fromisoformat(phrase)
    except ValueError:
        return None


def _cast_color(ctx: Any, phrase: str | None) -> hikari.Color | None:
    if not phrase:
        return None
    if not HEX_COLOR.fullmatch(phrase):
        return None
    return hikari.Color(int(phrase.removeprefix("#"), 16))
