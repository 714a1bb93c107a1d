"""Pytest configuration and shared fixtures."""

import logging
from unittest.mock import AsyncMock, MagicMock

import hikari
import pytest

from prefixkit.commands.arguments.argument import ArgumentDefaults, PromptOptions
from prefixkit.core.message_handler import CommandHandler, PrefixContext

# Disable logging during tests
logging.disable(logging.CRITICAL)


@pytest.fixture
def mock_hikari_bot():
    """Mock Hikari bot instance."""
    bot = MagicMock(spec=hikari.GatewayBot)
    bot.cache = MagicMock()
    bot.rest = MagicMock()
    bot.get_me = MagicMock(return_value=MagicMock(id=12345, username="TestBot"))
    bot.wait_for = AsyncMock()

    # Mock cache methods
    bot.cache.get_me = MagicMock(return_value=None)
    bot.cache.get_guild = MagicMock(return_value=None)
    bot.cache.get_user = MagicMock(return_value=None)
    bot.cache.get_member = MagicMock(return_value=None)
    bot.cache.get_guild_channel = MagicMock(return_value=None)
    bot.cache.get_role = MagicMock(return_value=None)
    bot.cache.get_emoji = MagicMock(return_value=None)
    bot.cache.get_users_view = MagicMock(return_value={})
    bot.cache.get_guilds_view = MagicMock(return_value={})
    bot.cache.get_members_view_for_guild = MagicMock(return_value={})
    bot.cache.get_guild_channels_view_for_guild = MagicMock(return_value={})
    bot.cache.get_roles_view_for_guild = MagicMock(return_value={})
    bot.cache.get_emojis_view_for_guild = MagicMock(return_value={})

    # Mock REST methods
    bot.rest.create_message = AsyncMock()
    bot.rest.fetch_message = AsyncMock()
    bot.rest.fetch_invite = AsyncMock()

    return bot


@pytest.fixture
def mock_event_system():
    """Mock event system."""
    event_system = MagicMock()
    event_system.emit = AsyncMock()
    return event_system


@pytest.fixture
def mock_bot(mock_hikari_bot, mock_event_system):
    """Mock complete bot instance."""
    bot = MagicMock()
    bot.hikari_bot = mock_hikari_bot
    bot.event_system = mock_event_system
    return bot


@pytest.fixture
def mock_guild():
    """Mock Discord guild."""
    guild = MagicMock(spec=hikari.Guild)
    guild.id = hikari.Snowflake(123456789012345678)
    guild.name = "Test Guild"
    return guild


@pytest.fixture
def mock_user():
    """Mock Discord user."""
    user = MagicMock()
    user.id = hikari.Snowflake(111111111111111111)
    user.username = "testuser"
    user.global_name = None
    user.discriminator = "0"
    user.display_name = "Test User"
    user.is_bot = False
    user.mention = "<@111111111111111111>"
    return user


@pytest.fixture
def mock_member(mock_user):
    """Mock Discord member."""
    member = MagicMock()
    member.id = mock_user.id
    member.username = mock_user.username
    member.display_name = "Tester"
    member.is_bot = mock_user.is_bot
    member.user = mock_user
    return member


@pytest.fixture
def mock_channel(mock_guild):
    """Mock Discord channel."""
    channel = MagicMock(spec=hikari.GuildTextChannel)
    channel.id = hikari.Snowflake(444444444444444444)
    channel.name = "test-channel"
    channel.type = hikari.ChannelType.GUILD_TEXT
    channel.guild_id = mock_guild.id
    channel.mention = "<#444444444444444444>"
    return channel


@pytest.fixture
def make_message(mock_user, mock_member, mock_guild, mock_channel):
    """Factory for messages sent by the test user in the test channel."""

    def factory(content="!test", author=None, guild_id=mock_guild.id):
        message = MagicMock()
        message.author = author or mock_user
        message.member = mock_member if guild_id is not None else None
        message.guild_id = guild_id
        message.channel_id = mock_channel.id
        message.content = content
        return message

    return factory


@pytest.fixture
def mock_message(make_message):
    """Mock message from the test user."""
    return make_message()


@pytest.fixture
def mock_message_event(mock_message):
    """Mock message create event."""
    event = MagicMock()
    event.message = mock_message
    event.author = mock_message.author
    event.author_id = mock_message.author.id
    event.channel_id = mock_message.channel_id
    event.content = mock_message.content
    return event


@pytest.fixture
def argument_defaults():
    """Prompt defaults without texts, so respond calls only come from the test."""
    return ArgumentDefaults(
        prompt=PromptOptions(
            retries=1,
            time=30000,
            cancel_word="cancel",
            stop_word="stop",
            optional=False,
            infinite=False,
            breakout=True,
        )
    )


@pytest.fixture
def handler(mock_bot, argument_defaults):
    """Command handler with a "!" prefix and no cooldown defaults."""
    return CommandHandler(
        mock_bot,
        "!",
        allow_mention=False,
        block_bots=True,
        owner_ids=[],
        default_cooldown=0,
        argument_defaults=argument_defaults,
    )


@pytest.fixture
def ctx(mock_message, mock_bot, handler):
    """Prefix context with prompt I/O mocked out."""
    context = PrefixContext(mock_message, mock_bot, handler)
    context.respond = AsyncMock()
    context.await_reply = AsyncMock(return_value=None)
    return context
