"""Text command framework for hikari bots."""

from .commands import (
    Argument,
    ArgumentMatch,
    ArgumentOptions,
    ArgumentType,
    Command,
    CommandHandlerEvents,
    Flag,
    Inhibitor,
    PromptOptions,
    command,
    inhibitor,
)
from .core.message_handler import CommandHandler, PrefixContext

__version__ = "0.1.0"

__all__ = [
    "Argument",
    "ArgumentMatch",
    "ArgumentOptions",
    "ArgumentType",
    "Command",
    "CommandHandler",
    "CommandHandlerEvents",
    "Flag",
    "Inhibitor",
    "PrefixContext",
    "PromptOptions",
    "command",
    "inhibitor",
]
