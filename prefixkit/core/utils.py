"""Helpers for finding Discord entities from free text.

Every ``check_*`` function answers whether a piece of text could refer to an
entity: by exact id, by mention syntax, then by name. Name matching is case
insensitive and substring based unless ``case_sensitive`` / ``whole_word`` are
set. ``resolve_*`` returns the first match from a mapping of id -> entity and
``resolve_*s`` returns every match as a new mapping.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

import hikari

# Discord ids are snowflakes; older ids are 17 digits, current ones reach 19-20.
SNOWFLAKE_PATTERN = r"\d{17,20}"

T = TypeVar("T")

USER_MENTION = re.compile(rf"<@!?({SNOWFLAKE_PATTERN})>")
CHANNEL_MENTION = re.compile(rf"<#({SNOWFLAKE_PATTERN})>")
ROLE_MENTION = re.compile(rf"<@&({SNOWFLAKE_PATTERN})>")
EMOJI_MENTION = re.compile(rf"<a?:[a-zA-Z0-9_]+:({SNOWFLAKE_PATTERN})>")


def _matches_id(text: str, entity: Any, mention: re.Pattern[str] | None = None) -> bool:
    entity_id = str(entity.id)
    if entity_id == text:
        return True
    if mention is not None:
        match = mention.search(text)
        if match and match.group(1) == entity_id:
            return True
    return False


def _compare(name: str | None, text: str, case_sensitive: bool, whole_word: bool) -> bool:
    if name is None:
        return False
    if not case_sensitive:
        name = name.lower()
    if whole_word:
        return name == text
    return text in name


def _fold(text: str, case_sensitive: bool) -> str:
    return text if case_sensitive else text.lower()


def _split_tag(text: str) -> tuple[str, str | None]:
    # Legacy "name#1234" tags.
    name, sep, discriminator = text.partition("#")
    return name, discriminator if sep else None


def _check_names(
    text: str,
    names: list[str | None],
    discriminator: str | None,
    case_sensitive: bool,
    whole_word: bool,
) -> bool:
    text = _fold(text, case_sensitive)
    if any(_compare(name, text, case_sensitive, whole_word) for name in names):
        return True

    name_part, tag = _split_tag(text)
    if tag is None or not discriminator or not name_part:
        return False
    if not any(_compare(name, name_part, case_sensitive, whole_word) for name in names):
        return False
    return discriminator == tag if whole_word else tag in discriminator


def check_user(text: str, user: hikari.User, case_sensitive: bool = False, whole_word: bool = False) -> bool:
    if _matches_id(text, user, USER_MENTION):
        return True
    names = [user.username, getattr(user, "global_name", None)]
    return _check_names(text, names, user.discriminator, case_sensitive, whole_word)


def check_member(text: str, member: hikari.Member, case_sensitive: bool = False, whole_word: bool = False) -> bool:
    if _matches_id(text, member, USER_MENTION):
        return True
    names = [member.display_name, member.username]
    return _check_names(text, names, member.user.discriminator, case_sensitive, whole_word)


def check_channel(
    text: str, channel: hikari.GuildChannel, case_sensitive: bool = False, whole_word: bool = False
) -> bool:
    if _matches_id(text, channel, CHANNEL_MENTION):
        return True
    text = _fold(text, case_sensitive)
    return _compare(channel.name, text, case_sensitive, whole_word) or _compare(
        channel.name, text.removeprefix("#"), case_sensitive, whole_word
    )


def check_role(text: str, role: hikari.Role, case_sensitive: bool = False, whole_word: bool = False) -> bool:
    if _matches_id(text, role, ROLE_MENTION):
        return True
    text = _fold(text, case_sensitive)
    return _compare(role.name, text, case_sensitive, whole_word) or _compare(
        role.name, text.removeprefix("@"), case_sensitive, whole_word
    )


def check_emoji(
    text: str, emoji: hikari.KnownCustomEmoji, case_sensitive: bool = False, whole_word: bool = False
) -> bool:
    if _matches_id(text, emoji, EMOJI_MENTION):
        return True
    text = _fold(text, case_sensitive)
    return _compare(emoji.name, text, case_sensitive, whole_word) or _compare(
        emoji.name, text.strip(":"), case_sensitive, whole_word
    )


def check_guild(text: str, guild: hikari.Guild, case_sensitive: bool = False, whole_word: bool = False) -> bool:
    if _matches_id(text, guild):
        return True
    return _compare(guild.name, _fold(text, case_sensitive), case_sensitive, whole_word)


def _resolve_one(
    text: str,
    entities: Mapping[Any, T],
    check: Callable[..., bool],
    case_sensitive: bool,
    whole_word: bool,
) -> T | None:
    if text.isdigit():
        found = entities.get(hikari.Snowflake(text))
        if found is not None:
            return found
    for entity in entities.values():
        if check(text, entity, case_sensitive, whole_word):
            return entity
    return None


def _resolve_many(
    text: str,
    entities: Mapping[Any, T],
    check: Callable[..., bool],
    case_sensitive: bool,
    whole_word: bool,
) -> dict[Any, T]:
    return {
        key: entity for key, entity in entities.items() if check(text, entity, case_sensitive, whole_word)
    }


def resolve_user(text, users, case_sensitive=False, whole_word=False):
    return _resolve_one(text, users, check_user, case_sensitive, whole_word)


def resolve_users(text, users, case_sensitive=False, whole_word=False):
    return _resolve_many(text, users, check_user, case_sensitive, whole_word)


def resolve_member(text, members, case_sensitive=False, whole_word=False):
    return _resolve_one(text, members, check_member, case_sensitive, whole_word)


def resolve_members(text, members, case_sensitive=False, whole_word=False):
    return _resolve_many(text, members, check_member, case_sensitive, whole_word)


def resolve_channel(text, channels, case_sensitive=False, whole_word=False):
    return _resolve_one(text, channels, check_channel, case_sensitive, whole_word)


def resolve_channels(text, channels, case_sensitive=False, whole_word=False):
    return _resolve_many(text, channels, check_channel, case_sensitive, whole_word)


def resolve_role(text, roles, case_sensitive=False, whole_word=False):
    return _resolve_one(text, roles, check_role, case_sensitive, whole_word)


def resolve_roles(text, roles, case_sensitive=False, whole_word=False):
    return _resolve_many(text, roles, check_role, case_sensitive, whole_word)


def resolve_emoji(text, emojis, case_sensitive=False, whole_word=False):
    return _resolve_one(text, emojis, check_emoji, case_sensitive, whole_word)


def resolve_emojis(text, emojis, case_sensitive=False, whole_word=False):
    return _resolve_many(text, emojis, check_emoji, case_sensitive, whole_word)


def resolve_guild(text, guilds, case_sensitive=False, whole_word=False):
    return _resolve_one(text, guilds, check_guild, case_sensitive, whole_word)


def resolve_guilds(text, guilds, case_sensitive=False, whole_word=False):
    return _resolve_many(text, guilds, check_guild, case_sensitive, whole_word)


def calculate_member_permissions(
    member: hikari.Member, guild: hikari.Guild, channel: hikari.GuildChannel | None = None
) -> hikari.Permissions:
    """
    Calculate the effective permissions for a member in a guild or channel.

    Args:
        member: The guild member to calculate permissions for
        guild: The guild the member belongs to
        channel: Optional channel whose overwrites are applied

    Returns:
        The calculated permissions for the member
    """
    if member.id == guild.owner_id:
        return ~hikari.Permissions.NONE

    # The @everyone role shares the guild id
    everyone_role = guild.get_role(guild.id)
    permissions = everyone_role.permissions if everyone_role else hikari.Permissions.NONE

    for role_id in member.role_ids:
        role = guild.get_role(role_id)
        if role:
            permissions |= role.permissions

    if permissions & hikari.Permissions.ADMINISTRATOR:
        return ~hikari.Permissions.NONE

    overwrites = getattr(channel, "permission_overwrites", None) if channel is not None else None
    if overwrites:
        # @everyone, then roles, then the member itself
        targets = [guild.id, *member.role_ids, member.id]
        for target in targets:
            overwrite = overwrites.get(target)
            if overwrite:
                permissions &= ~overwrite.deny
                permissions |= overwrite.allow

    return permissions


def missing_permissions(
    member: hikari.Member,
    guild: hikari.Guild,
    required: hikari.Permissions,
    channel: hikari.GuildChannel | None = None,
) -> hikari.Permissions:
    """The permissions in ``required`` the member lacks; ``Permissions.NONE`` when it has them all."""
    return required & ~calculate_member_permissions(member, guild, channel)
