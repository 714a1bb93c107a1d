"""Tests for the argument runner."""

import pytest

from prefixkit.commands.arguments.argument import ArgumentDefaults, ArgumentOptions, PromptOptions
from prefixkit.commands.arguments.runner import ArgumentRunner, RunnerState
from prefixkit.commands.command import Command
from prefixkit.commands.constants import ArgumentMatch
from prefixkit.commands.content_parser import ContentParser
from prefixkit.commands.flag import Flag


def make_command(handler, args, **options):
    return handler.add_command(Command("test", args=args, **options))


class TestStaticArguments:
    """Test commands declared with a static argument list."""

    @pytest.mark.asyncio
    async def test_phrases_in_order(self, handler, ctx):
        """Phrase arguments take phrases left to right."""
        command = make_command(
            handler, [ArgumentOptions(id="name"), ArgumentOptions(id="count", type="integer")]
        )

        assert await command.parse(ctx, "apple 5") == {"name": "apple", "count": 5}

    @pytest.mark.asyncio
    async def test_parse_is_repeatable(self, handler, ctx):
        """The same content always gives the same bag."""
        command = make_command(handler, [ArgumentOptions(id="a"), ArgumentOptions(id="b")])

        first = await command.parse(ctx, 'x "y z"')
        second = await command.parse(ctx, 'x "y z"')

        assert first == second == {"a": "x", "b": "y z"}

    @pytest.mark.asyncio
    async def test_missing_phrase_is_none(self, handler, ctx):
        """Arguments without a phrase and without fallbacks are None."""
        command = make_command(handler, [ArgumentOptions(id="a"), ArgumentOptions(id="b", type="integer")])

        assert await command.parse(ctx, "x") == {"a": "x", "b": None}

    @pytest.mark.asyncio
    async def test_zero_default_kept(self, handler, ctx):
        """A default of zero ends up in the bag."""
        command = make_command(handler, [ArgumentOptions(id="n", type="integer", default=0)])

        assert await command.parse(ctx, "") == {"n": 0}

    @pytest.mark.asyncio
    async def test_argument_without_id(self, handler, ctx):
        """Arguments without an id consume input but are not stored."""
        command = make_command(handler, [ArgumentOptions(), ArgumentOptions(id="b")])

        assert await command.parse(ctx, "skip keep") == {"b": "keep"}

    @pytest.mark.asyncio
    async def test_caster_exception_propagates(self, handler, ctx):
        """Caster faults are not turned into failures."""

        def explode(ctx, phrase):
            raise RuntimeError("caster fault")

        command = make_command(handler, [ArgumentOptions(id="a", type=explode)])

        with pytest.raises(RuntimeError):
            await command.parse(ctx, "x")


class TestMatchModes:
    """Test how each match mode picks its input."""

    @pytest.mark.asyncio
    async def test_fixed_index(self, handler, ctx):
        """A fixed index does not move the phrase cursor."""
        command = make_command(
            handler, [ArgumentOptions(id="second", index=1), ArgumentOptions(id="first")]
        )

        assert await command.parse(ctx, "a b") == {"second": "b", "first": "a"}

    @pytest.mark.asyncio
    async def test_unordered(self, handler, ctx):
        """Unordered arguments take the first phrase that casts."""
        command = make_command(
            handler,
            [
                ArgumentOptions(id="number", type="integer", unordered=True),
                ArgumentOptions(id="word", unordered=True),
            ],
        )

        assert await command.parse(ctx, "hello 42") == {"number": 42, "word": "hello"}

    @pytest.mark.asyncio
    async def test_unordered_from_zero(self, handler, ctx):
        """An unordered start index of zero searches every phrase."""
        command = make_command(handler, [ArgumentOptions(id="number", type="integer", unordered=0)])

        assert await command.parse(ctx, "a b 7") == {"number": 7}

    @pytest.mark.asyncio
    async def test_unordered_indices(self, handler, ctx):
        """An index list restricts the search."""
        command = make_command(handler, [ArgumentOptions(id="number", type="integer", unordered=[0, 1])])

        assert await command.parse(ctx, "a b 7") == {"number": None}

    @pytest.mark.asyncio
    async def test_rest(self, handler, ctx):
        """Rest joins the remaining phrases with their original spacing and quotes."""
        command = make_command(
            handler, [ArgumentOptions(id="first"), ArgumentOptions(id="rest", match=ArgumentMatch.REST)]
        )

        assert await command.parse(ctx, 'one two  "three four"') == {"first": "one", "rest": 'two  "three four"'}

    @pytest.mark.asyncio
    async def test_rest_limit(self, handler, ctx):
        """Limit caps how many phrases rest takes."""
        command = make_command(handler, [ArgumentOptions(id="rest", match=ArgumentMatch.REST, limit=2)])

        assert await command.parse(ctx, "a b c") == {"rest": "a b"}

    @pytest.mark.asyncio
    async def test_separate(self, handler, ctx):
        """Separate casts each remaining phrase on its own."""
        command = make_command(
            handler, [ArgumentOptions(id="numbers", type="integer", match=ArgumentMatch.SEPARATE)]
        )

        assert await command.parse(ctx, "1 2 3") == {"numbers": [1, 2, 3]}

    @pytest.mark.asyncio
    async def test_flag(self, handler, ctx):
        """Flags are booleans."""
        command = make_command(
            handler,
            [
                ArgumentOptions(id="force", match=ArgumentMatch.FLAG, flag=["--force", "-f"]),
                ArgumentOptions(id="target"),
            ],
        )

        assert await command.parse(ctx, "-f db") == {"force": True, "target": "db"}
        assert await command.parse(ctx, "db") == {"force": False, "target": "db"}

    @pytest.mark.asyncio
    async def test_flag_truthy_default_inverts(self, handler, ctx):
        """A flag defaulting to True is switched off by its word."""
        command = make_command(
            handler, [ArgumentOptions(id="color", match=ArgumentMatch.FLAG, flag="--no-color", default=True)]
        )

        assert await command.parse(ctx, "") == {"color": True}
        assert await command.parse(ctx, "--no-color") == {"color": False}

    @pytest.mark.asyncio
    async def test_multiple_flags_counts(self, handler, ctx):
        """With multiple flags the occurrences are counted."""
        command = make_command(
            handler, [ArgumentOptions(id="verbose", match=ArgumentMatch.FLAG, flag="-v", multiple_flags=True)]
        )

        assert await command.parse(ctx, "-v x -v -v") == {"verbose": 3}

    @pytest.mark.asyncio
    async def test_option(self, handler, ctx):
        """Option values are cast like phrases."""
        command = make_command(
            handler,
            [
                ArgumentOptions(id="user"),
                ArgumentOptions(id="days", type="integer", match=ArgumentMatch.OPTION, flag="--days"),
            ],
        )

        assert await command.parse(ctx, "bob --days 3") == {"user": "bob", "days": 3}
        assert await command.parse(ctx, "bob") == {"user": "bob", "days": None}

    @pytest.mark.asyncio
    async def test_multiple_options(self, handler, ctx):
        """Every occurrence of a repeatable option is collected."""
        command = make_command(
            handler,
            [ArgumentOptions(id="tags", match=ArgumentMatch.OPTION, flag="--tag", multiple_flags=True)],
        )

        assert await command.parse(ctx, "--tag a --tag b") == {"tags": ["a", "b"]}

    @pytest.mark.asyncio
    async def test_text_and_content(self, handler, ctx):
        """Text skips flags, content keeps them."""
        command = make_command(
            handler,
            [
                ArgumentOptions(id="force", match=ArgumentMatch.FLAG, flag="--force"),
                ArgumentOptions(id="text", match=ArgumentMatch.TEXT),
                ArgumentOptions(id="content", match=ArgumentMatch.CONTENT),
            ],
        )

        result = await command.parse(ctx, "x --force y")

        assert result == {"force": True, "text": "x y", "content": "x --force y"}

    @pytest.mark.asyncio
    async def test_rest_content(self, handler, ctx):
        """Rest content keeps flags after the current phrase."""
        command = make_command(
            handler,
            [
                ArgumentOptions(id="first"),
                ArgumentOptions(id="rest", match=ArgumentMatch.REST_CONTENT),
                ArgumentOptions(id="force", match=ArgumentMatch.FLAG, flag="--force"),
            ],
        )

        result = await command.parse(ctx, "x y --force")

        assert result == {"first": "x", "rest": "y --force", "force": True}

    @pytest.mark.asyncio
    async def test_none_uses_default(self, handler, ctx):
        """None never reads input."""
        command = make_command(
            handler,
            [
                ArgumentOptions(id="fixed", match=ArgumentMatch.NONE, default="value"),
                ArgumentOptions(id="word"),
            ],
        )

        assert await command.parse(ctx, "hello") == {"fixed": "value", "word": "hello"}


class TestShortCircuits:
    """Test flags that end a run early."""

    @pytest.mark.asyncio
    async def test_invalid_keeps_partial_values(self, handler, ctx):
        """A timed out prompt reports what was resolved before it."""
        command = make_command(
            handler,
            [
                ArgumentOptions(id="name"),
                ArgumentOptions(id="count", type="integer", prompt=PromptOptions(time=100)),
            ],
        )

        result = await command.parse(ctx, "apple")

        assert Flag.is_(result, Flag.INVALID)
        assert result.reason == Flag.TIMEOUT
        assert result.values == {"name": "apple"}

    @pytest.mark.asyncio
    async def test_otherwise_cancels_run(self, handler, ctx):
        """Later arguments are not resolved after a cancel."""
        seen = []

        def record(ctx, phrase):
            seen.append(phrase)
            return phrase

        command = make_command(
            handler,
            [
                ArgumentOptions(id="count", type="integer", otherwise="Not a number"),
                ArgumentOptions(id="after", type=record),
            ],
        )

        result = await command.parse(ctx, "x y")

        assert Flag.is_(result, Flag.CANCEL)
        assert seen == []

    @pytest.mark.asyncio
    async def test_separate_stops_on_cancel(self, handler, ctx):
        """A cancel inside separate ends the whole run."""
        command = make_command(
            handler,
            [ArgumentOptions(id="numbers", type="integer", match=ArgumentMatch.SEPARATE, otherwise="Bad")],
        )

        assert Flag.is_(await command.parse(ctx, "1 x 3"), Flag.CANCEL)

    @pytest.mark.asyncio
    async def test_command_otherwise_cancels_run(self, handler, ctx):
        """A command-wide otherwise applies to arguments without their own."""
        command = make_command(
            handler,
            [ArgumentOptions(id="n", type="integer")],
            argument_defaults=ArgumentDefaults(otherwise="bad number"),
        )

        result = await command.parse(ctx, "abc")

        assert Flag.is_(result, Flag.CANCEL)
        ctx.respond.assert_awaited_once_with("bad number")

    @pytest.mark.asyncio
    async def test_handler_otherwise_cancels_run(self, handler, ctx):
        """The handler-wide otherwise is the last layer consulted."""
        handler.argument_defaults.otherwise = "handler says no"
        command = make_command(handler, [ArgumentOptions(id="n", type="integer")])

        assert Flag.is_(await command.parse(ctx, "abc"), Flag.CANCEL)
        ctx.respond.assert_awaited_once_with("handler says no")


class TestGenerators:
    """Test commands whose arguments come from a generator."""

    @pytest.mark.asyncio
    async def test_branching_on_earlier_values(self, handler, ctx):
        """Later arguments can depend on earlier values."""

        def args(ctx, parsed, state):
            action = yield ArgumentOptions(id="action", type=["add", "remove"])
            if action == "add":
                yield ArgumentOptions(id="amount", type="integer")
            else:
                yield ArgumentOptions(id="name")

        command = make_command(handler, args)

        assert await command.parse(ctx, "add 5") == {"action": "add", "amount": 5}
        assert await command.parse(ctx, "remove bob") == {"action": "remove", "name": "bob"}

    @pytest.mark.asyncio
    async def test_return_value_replaces_bag(self, handler, ctx):
        """A returned value is used instead of the collected bag."""

        def args(ctx, parsed, state):
            a = yield ArgumentOptions(id="a", type="integer")
            b = yield ArgumentOptions(id="b", type="integer")
            return {"sum": a + b}

        command = make_command(handler, args)

        assert await command.parse(ctx, "2 3") == {"sum": 5}

    @pytest.mark.asyncio
    async def test_yielded_continue(self, handler, ctx):
        """A yielded continue flag gets the unparsed rest of the content."""

        def args(ctx, parsed, state):
            yield ArgumentOptions(id="first")
            yield Flag.continue_("other")

        command = make_command(handler, args)

        result = await command.parse(ctx, "first rest of  text")

        assert Flag.is_(result, Flag.CONTINUE)
        assert result.command == "other"
        assert result.rest == "rest of  text"

    @pytest.mark.asyncio
    async def test_yielded_non_terminal_flag_is_sent_back(self, handler, ctx):
        """Flags that do not end the run are handed back to the generator."""
        received = []

        def args(ctx, parsed, state):
            received.append((yield Flag.fail("x")))

        command = make_command(handler, args)

        assert await command.parse(ctx, "") == {}
        assert Flag.is_(received[0], Flag.FAIL)

    @pytest.mark.asyncio
    async def test_generator_sees_state(self, handler, ctx):
        """The state exposes the resolved values so far."""
        snapshots = []

        def args(ctx, parsed, state):
            yield ArgumentOptions(id="a")
            snapshots.append(dict(state.values))
            yield ArgumentOptions(id="b")

        command = make_command(handler, args)
        await command.parse(ctx, "x y")

        assert snapshots == [{"a": "x"}]


class TestRunnerHelpers:
    """Test the runner's static helpers."""

    def test_increase_index_skips_flags(self):
        """The token cursor skips flag tokens between phrases."""
        parsed = ContentParser(flag_words=["-f"]).parse("a -f b")
        state = RunnerState()

        ArgumentRunner.increase_index(parsed, state)

        assert state.phrase_index == 1
        assert state.index == 2

    def test_is_short_circuit(self):
        """Only cancel, retry, continue and invalid end a run."""
        assert ArgumentRunner.is_short_circuit(Flag.cancel())
        assert ArgumentRunner.is_short_circuit(Flag.invalid(Flag.ENDED))
        assert not ArgumentRunner.is_short_circuit(Flag.fail(None))
        assert not ArgumentRunner.is_short_circuit(None)

    def test_from_arguments(self):
        """A static list becomes a generator yielding each argument."""
        first = ArgumentOptions(id="a")
        second = ArgumentOptions(id="b")
        steps = ArgumentRunner.from_arguments([("a", first), ("b", second)])(None, None, RunnerState())

        assert next(steps) is first
        assert steps.send(1) is second
        with pytest.raises(StopIteration) as stop:
            steps.send(2)
        assert stop.value.value == {"a": 1, "b": 2}
