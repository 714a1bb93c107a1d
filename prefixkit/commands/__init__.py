"""Text command system: parsing, argument resolution and guards."""

from .arguments import (
    Argument,
    ArgumentDefaults,
    ArgumentOptions,
    ArgumentRunner,
    PromptOptions,
    TypeResolver,
)
from .command import Command
from .constants import ArgumentMatch, ArgumentType, CommandHandlerEvents
from .content_parser import ContentParser, ContentParserResult
from .decorators import command, inhibitor
from .errors import (
    CommandNotImplementedError,
    CommandRegistrationError,
    InhibitorNotImplementedError,
    InhibitorRegistrationError,
    PrefixKitError,
)
from .flag import Flag
from .guards import CommandLock, CooldownManager, GuardRejection
from .inhibitors import Inhibitor, InhibitorRegistry, InhibitorType
from .registry import CommandRegistry

__all__ = [
    "Argument",
    "ArgumentDefaults",
    "ArgumentMatch",
    "ArgumentOptions",
    "ArgumentRunner",
    "ArgumentType",
    "Command",
    "CommandHandlerEvents",
    "CommandLock",
    "CommandNotImplementedError",
    "CommandRegistrationError",
    "CommandRegistry",
    "ContentParser",
    "ContentParserResult",
    "CooldownManager",
    "Flag",
    "GuardRejection",
    "Inhibitor",
    "InhibitorNotImplementedError",
    "InhibitorRegistrationError",
    "InhibitorRegistry",
    "InhibitorType",
    "PrefixKitError",
    "PromptOptions",
    "TypeResolver",
    "command",
    "inhibitor",
]
