import logging
from typing import Any, Optional

import hikari

from config.settings import settings

from ..commands.command import Command
from ..middleware import error_handler_middleware, logging_middleware
from .event_system import EventSystem
from .message_handler import CommandHandler, PrefixSpec

logger = logging.getLogger(__name__)


class PrefixBot:
    def __init__(self, prefix: Optional[PrefixSpec] = None, token: Optional[str] = None) -> None:
        intents = (
            hikari.Intents.ALL_MESSAGES
            | hikari.Intents.GUILD_MEMBERS
            | hikari.Intents.GUILDS
            | hikari.Intents.MESSAGE_CONTENT
        )
        self.hikari_bot = hikari.GatewayBot(token=token or settings.discord_token, intents=intents)

        self.event_system = EventSystem()
        self.event_system.add_middleware(logging_middleware)
        self.event_system.add_middleware(error_handler_middleware)
        self.message_handler = CommandHandler(self, prefix)

        self.is_ready = False
        self._setup_event_listeners()

    def _setup_event_listeners(self) -> None:
        @self.hikari_bot.listen(hikari.StartingEvent)
        async def on_starting(event: hikari.StartingEvent) -> None:
            logger.info("Bot is starting...")

        @self.hikari_bot.listen(hikari.ShardReadyEvent)
        async def on_ready(event: hikari.ShardReadyEvent) -> None:
            if not self.is_ready:
                logger.info(f"Bot is ready! Logged in as {self.hikari_bot.get_me()}")
                await self.event_system.emit("bot_ready", self)
                self.is_ready = True

        @self.hikari_bot.listen(hikari.StoppingEvent)
        async def on_stopping(event: hikari.StoppingEvent) -> None:
            logger.info("Bot is stopping...")
            await self.event_system.emit("bot_stopping", self)

        @self.hikari_bot.listen(hikari.MessageCreateEvent)
        async def on_message_create(event: hikari.MessageCreateEvent) -> None:
            logger.debug(f"Message received: '{event.content}' from {event.author_id}")
            handled = await self.message_handler.handle_message(event)
            if not handled:
                await self.event_system.emit("message_create", event)

    @property
    def gateway(self) -> hikari.GatewayBot:
        return self.hikari_bot

    @property
    def rest(self) -> hikari.api.RESTClient:
        return self.hikari_bot.rest

    @property
    def cache(self) -> hikari.api.Cache:
        return self.hikari_bot.cache

    def add_command(self, command: Command) -> Command:
        return self.message_handler.add_command(command)

    def load(self, obj: Any) -> list[Command]:
        """Register the ``@command``, ``@inhibitor`` and ``@event_listener`` callables found on ``obj``."""
        commands = self.message_handler.register_from(obj)
        inhibitors = self.message_handler.inhibitors.register_from(obj)
        for attr_name in dir(obj):
            attr = getattr(obj, attr_name)
            event_name = getattr(attr, "_event_listener", None)
            if event_name is not None:
                self.event_system.add_listener(event_name, attr)
        logger.info(f"Loaded {len(commands)} commands and {len(inhibitors)} inhibitors from {type(obj).__name__}")
        return commands

    def run(self) -> None:
        try:
            logger.info("Starting Discord bot...")
            self.hikari_bot.run()
        except KeyboardInterrupt:
            logger.info("Bot stopped by user")
        except Exception as e:
            logger.error(f"Bot crashed: {e}")
            raise
