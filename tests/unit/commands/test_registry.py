"""Tests for the command registry and the command decorator."""

import pytest

from prefixkit.commands.command import Command
from prefixkit.commands.decorators import command
from prefixkit.commands.errors import CommandRegistrationError
from prefixkit.commands.registry import CommandRegistry


class SampleCommands:
    def __init__(self):
        self.calls = []

    @command("ping", aliases=["p"], description="Check latency")
    async def ping(self, ctx, args):
        self.calls.append(args)
        return "pong"

    @command("echo", cooldown=5000)
    def echo(self, ctx, args):
        return args

    def helper(self):
        return "not a command"


class TestCommandRegistry:
    """Test adding, finding and removing commands."""

    def test_add_and_find(self):
        """Commands are found by id and alias, case-insensitively."""
        registry = CommandRegistry()
        ban = registry.add(Command("ban", aliases=["B", "yeet"]))

        assert registry.find_command("ban") is ban
        assert registry.find_command("BAN") is ban
        assert registry.find_command("b") is ban
        assert registry.find_command("YEET") is ban
        assert registry.find_command("kick") is None
        assert "yeet" in registry
        assert len(registry) == 1

    def test_duplicate_id(self):
        """The same id cannot be registered twice."""
        registry = CommandRegistry()
        registry.add(Command("ban"))

        with pytest.raises(CommandRegistrationError) as exc_info:
            registry.add(Command("ban"))

        assert exc_info.value.name == "ban"

    def test_alias_conflict(self):
        """Aliases are unique across commands."""
        registry = CommandRegistry()
        registry.add(Command("ban", aliases=["b"]))

        with pytest.raises(CommandRegistrationError):
            registry.add(Command("block", aliases=["B"]))

        assert registry.find_command("block") is None
        assert registry.find_command("b").id == "ban"

    def test_remove(self):
        """Removing a command frees its aliases."""
        registry = CommandRegistry()
        registry.add(Command("ban", aliases=["b"]))

        removed = registry.remove("ban")

        assert removed.id == "ban"
        assert registry.find_command("b") is None
        assert registry.remove("ban") is None
        registry.add(Command("block", aliases=["b"]))


class TestCommandDecorator:
    """Test declaring commands with the decorator."""

    def test_metadata_attached(self):
        """The decorator records the command options on the function."""

        @command("hello", aliases=["hi"])
        async def hello(ctx, args):
            pass

        assert hello._prefix_command == {"id": "hello", "aliases": ["hi"]}

    def test_register_from_object(self):
        """Only decorated methods become commands."""
        registry = CommandRegistry()
        commands = registry.register_from(SampleCommands())

        assert sorted(c.id for c in commands) == ["echo", "ping"]
        assert registry.find_command("p").description == "Check latency"
        assert registry.find_command("echo").cooldown_manager.cooldown == 5000
        assert registry.find_command("helper") is None

    @pytest.mark.asyncio
    async def test_registered_method_is_bound(self, ctx):
        """Registered methods run against their instance."""
        registry = CommandRegistry()
        sample = SampleCommands()
        registry.register_from(sample)

        result = await registry.find_command("ping").exec(ctx, {"x": 1})

        assert result == "pong"
        assert sample.calls == [{"x": 1}]
