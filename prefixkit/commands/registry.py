"""Command registration and lookup by id or alias."""

from __future__ import annotations

import logging
from typing import Any

from .command import Command
from .errors import CommandRegistrationError

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Commands keyed by id, with a lowercase alias index."""

    def __init__(self) -> None:
        self.modules: dict[str, Command] = {}
        self.aliases: dict[str, str] = {}

    def add(self, command: Command) -> Command:
        if command.id in self.modules:
            raise CommandRegistrationError(f"Command {command.id} is already registered", command.id)

        names = [name.lower() for name in command.names]
        for name in names:
            owner = self.aliases.get(name)
            if owner is not None and owner != command.id:
                raise CommandRegistrationError(f"Alias {name} is already used by {owner}", name)

        self.modules[command.id] = command
        for name in names:
            self.aliases[name] = command.id

        logger.debug(f"Added command: {command.id} (aliases: {command.aliases})")
        return command

    def remove(self, id: str) -> Command | None:
        command = self.modules.pop(id, None)
        if command is None:
            return None

        for name in command.names:
            if self.aliases.get(name.lower()) == id:
                del self.aliases[name.lower()]

        logger.debug(f"Removed command: {id}")
        return command

    def find_command(self, name: str) -> Command | None:
        command_id = self.aliases.get(name.lower())
        return self.modules.get(command_id) if command_id is not None else None

    def register_from(self, obj: Any) -> list[Command]:
        """Add every ``@command``-decorated callable found on ``obj``."""
        added = []
        for attr_name in dir(obj):
            attr = getattr(obj, attr_name)
            meta = getattr(attr, "_prefix_command", None)
            if meta is None:
                continue
            added.append(self.add(Command(exec=attr, **meta)))
        return added

    def __contains__(self, name: str) -> bool:
        return self.find_command(name) is not None

    def __len__(self) -> int:
        return len(self.modules)
