"""Tests for inhibitors and their registry."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from prefixkit.commands.decorators import inhibitor
from prefixkit.commands.errors import InhibitorNotImplementedError, InhibitorRegistrationError
from prefixkit.commands.inhibitors import Inhibitor, InhibitorRegistry, InhibitorType


class TestInhibitor:
    """Test a single inhibitor."""

    def test_defaults(self):
        """Inhibitors are post-type with priority 0 unless told otherwise."""
        inh = Inhibitor("x")

        assert inh.type == InhibitorType.POST
        assert inh.priority == 0
        assert inh.reason == ""

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            Inhibitor("x", type="later")

    @pytest.mark.asyncio
    async def test_exec_sync_and_async(self):
        """Sync and async checks are both supported."""
        message, command = MagicMock(), MagicMock()
        check = AsyncMock(return_value=1)

        assert await Inhibitor("a", exec=lambda m, c: False).exec(message) is False
        assert await Inhibitor("b", exec=check).exec(message, command) is True
        check.assert_awaited_once_with(message, command)

    @pytest.mark.asyncio
    async def test_missing_exec(self):
        with pytest.raises(InhibitorNotImplementedError) as exc_info:
            await Inhibitor("empty").exec(MagicMock())

        assert exc_info.value.inhibitor_id == "empty"


class TestInhibitorRegistry:
    """Test registering inhibitors and testing messages against them."""

    def setup_method(self):
        """Setup test registry."""
        self.registry = InhibitorRegistry()

    def test_add_and_remove(self):
        inh = self.registry.add(Inhibitor("x"))

        assert "x" in self.registry
        assert len(self.registry) == 1
        assert self.registry.remove("x") is inh
        assert self.registry.remove("x") is None

    def test_duplicate_id(self):
        self.registry.add(Inhibitor("x"))

        with pytest.raises(InhibitorRegistrationError):
            self.registry.add(Inhibitor("x"))

    @pytest.mark.asyncio
    async def test_no_inhibitors(self):
        assert await self.registry.test("post", MagicMock()) is None

    @pytest.mark.asyncio
    async def test_highest_priority_reason(self):
        """When several block, the highest priority reason is reported."""
        self.registry.add(Inhibitor("low", reason="low", priority=1, exec=lambda m, c: True))
        self.registry.add(Inhibitor("high", reason="high", priority=5, exec=lambda m, c: True))
        self.registry.add(Inhibitor("open", reason="open", priority=9, exec=lambda m, c: False))

        assert await self.registry.test(InhibitorType.POST, MagicMock()) == "high"

    @pytest.mark.asyncio
    async def test_filters_by_type(self):
        """Only inhibitors of the requested type run."""
        pre = MagicMock(return_value=True)
        self.registry.add(Inhibitor("pre", reason="pre", type="pre", exec=pre))

        assert await self.registry.test("post", MagicMock()) is None
        pre.assert_not_called()
        assert await self.registry.test("pre", MagicMock()) == "pre"

    def test_register_from(self):
        """Decorated methods become inhibitors."""

        class Checks:
            @inhibitor("muted", reason="muted", type="all", priority=2)
            def muted(self, message, command):
                return False

            def helper(self):
                pass

        added = self.registry.register_from(Checks())

        assert [inh.id for inh in added] == ["muted"]
        assert self.registry.modules["muted"].type == InhibitorType.ALL
        assert self.registry.modules["muted"].priority == 2
