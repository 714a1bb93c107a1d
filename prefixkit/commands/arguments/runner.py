"""Drives an argument generator against parsed content."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Generator, Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..constants import ArgumentMatch
from ..content_parser import ContentParserResult, PhraseToken
from ..flag import Flag
from .argument import Argument, ArgumentOptions

if TYPE_CHECKING:
    from ...core.message_handler import PrefixContext
    from ..command import Command

logger = logging.getLogger(__name__)

ArgumentGenerator = Generator[Any, Any, Any]
GeneratorFactory = Callable[[Any, ContentParserResult, "RunnerState"], ArgumentGenerator]

SHORT_CIRCUITS = (Flag.CANCEL, Flag.RETRY, Flag.CONTINUE, Flag.INVALID)


@dataclass
class RunnerState:
    """Cursor over the parsed content for one run.

    ``index`` points into ``parsed.all`` and ``phrase_index`` into
    ``parsed.phrases``. ``values`` is the bag resolved so far, keyed by id.
    """

    index: int = 0
    phrase_index: int = 0
    used_indices: set[int] = field(default_factory=set)
    values: dict[str, Any] = field(default_factory=dict)


class ArgumentRunner:
    def __init__(self, command: Command) -> None:
        self.command = command

    async def run(self, ctx: PrefixContext, parsed: ContentParserResult, generator: GeneratorFactory) -> Any:
        """Resolve every argument the generator yields.

        Returns the bag (or the generator's own non-``None`` return value), or
        the first short-circuiting ``Flag``: cancel, retry, continue or invalid.
        Caster exceptions propagate.
        """
        state = RunnerState()
        steps = generator(ctx, parsed, state)
        value: Any = None

        while True:
            try:
                step = steps.send(value)
            except StopIteration as stop:
                return state.values if stop.value is None else stop.value

            if isinstance(step, Flag):
                if ArgumentRunner.is_short_circuit(step):
                    steps.close()
                    return self._augment(step, parsed, state)
                value = step
                continue

            arg = step if isinstance(step, Argument) else Argument(self.command, step)
            value = await self.run_one(ctx, parsed, state, arg)

            if ArgumentRunner.is_short_circuit(value):
                steps.close()
                return self._augment(value, parsed, state)

            if arg.id is not None:
                state.values[arg.id] = value

    @staticmethod
    def _augment(flag: Flag, parsed: ContentParserResult, state: RunnerState) -> Flag:
        if flag.type == Flag.CONTINUE and flag.rest is None:
            flag.rest = "".join(token.raw for token in parsed.all[state.index:])
        elif flag.type == Flag.INVALID:
            flag.values = dict(state.values)
        logger.debug(f"Argument run ended with {flag!r}")
        return flag

    async def run_one(self, ctx: PrefixContext, parsed: ContentParserResult, state: RunnerState, arg: Argument) -> Any:
        cases = {
            ArgumentMatch.PHRASE: self.run_phrase,
            ArgumentMatch.FLAG: self.run_flag,
            ArgumentMatch.OPTION: self.run_option,
            ArgumentMatch.REST: self.run_rest,
            ArgumentMatch.SEPARATE: self.run_separate,
            ArgumentMatch.TEXT: self.run_text,
            ArgumentMatch.CONTENT: self.run_content,
            ArgumentMatch.REST_CONTENT: self.run_rest_content,
            ArgumentMatch.NONE: self.run_none,
        }
        return await cases[arg.match](ctx, parsed, state, arg)

    async def run_phrase(self, ctx, parsed: ContentParserResult, state: RunnerState, arg: Argument) -> Any:
        if arg.unordered is not False and arg.unordered is not None:
            if arg.unordered is True:
                indices: Iterable[int] = range(len(parsed.phrases))
            elif isinstance(arg.unordered, int):
                indices = range(arg.unordered, len(parsed.phrases))
            else:
                indices = arg.unordered

            for i in indices:
                if i in state.used_indices:
                    continue
                phrase = parsed.phrases[i].value if i < len(parsed.phrases) else ""
                result = await arg.cast(ctx, phrase)
                if not Argument.is_failure(result):
                    state.used_indices.add(i)
                    return result

            return await arg.process(ctx, "")

        index = state.phrase_index if arg.index is None else arg.index
        phrase = parsed.phrases[index].value if index < len(parsed.phrases) else ""
        result = await arg.process(ctx, phrase)
        if arg.index is None:
            ArgumentRunner.increase_index(parsed, state)
        return result

    async def run_rest(self, ctx, parsed, state, arg):
        index = state.phrase_index if arg.index is None else arg.index
        rest = _join_raw(parsed.phrases[index:_end(index, arg.limit)])
        result = await arg.process(ctx, rest)
        if arg.index is None:
            ArgumentRunner.increase_index(parsed, state)
        return result

    async def run_separate(self, ctx, parsed, state, arg):
        index = state.phrase_index if arg.index is None else arg.index
        phrases = parsed.phrases[index:_end(index, arg.limit)]
        if not phrases:
            result = await arg.process(ctx, "")
            if arg.index is None:
                ArgumentRunner.increase_index(parsed, state)
            return result

        results = []
        for phrase in phrases:
            response = await arg.process(ctx, phrase.value)
            if ArgumentRunner.is_short_circuit(response):
                return response
            results.append(response)

        if arg.index is None:
            ArgumentRunner.increase_index(parsed, state, len(phrases))
        return results

    async def run_flag(self, ctx, parsed, state, arg):
        names = arg.flags
        if arg.multiple_flags:
            return sum(1 for flag in parsed.flags if flag.key in names)

        found = any(flag.key in names for flag in parsed.flags)
        # A truthy default inverts the switch.
        return not found if arg.default else found

    async def run_option(self, ctx, parsed, state, arg):
        names = arg.flags
        if arg.multiple_flags:
            values = [option.value for option in parsed.option_flags if option.key in names]
            results = []
            for value in values[:_end(0, arg.limit)]:
                response = await arg.process(ctx, value)
                if ArgumentRunner.is_short_circuit(response):
                    return response
                results.append(response)
            return results

        found = next((option for option in parsed.option_flags if option.key in names), None)
        return await arg.process(ctx, found.value if found is not None else "")

    async def run_text(self, ctx, parsed, state, arg):
        index = 0 if arg.index is None else arg.index
        return await arg.process(ctx, _join_raw(parsed.phrases[index:_end(index, arg.limit)]))

    async def run_content(self, ctx, parsed, state, arg):
        index = 0 if arg.index is None else arg.index
        return await arg.process(ctx, _join_raw(parsed.all[index:_end(index, arg.limit)]))

    async def run_rest_content(self, ctx, parsed, state, arg):
        index = state.index if arg.index is None else arg.index
        rest = _join_raw(parsed.all[index:_end(index, arg.limit)])
        result = await arg.process(ctx, rest)
        if arg.index is None:
            ArgumentRunner.increase_index(parsed, state)
        return result

    async def run_none(self, ctx, parsed, state, arg):
        return await arg.process(ctx, "")

    @staticmethod
    def increase_index(parsed: ContentParserResult, state: RunnerState, n: int = 1) -> None:
        """Advance past ``n`` phrases, skipping flag tokens in ``parsed.all``."""
        state.phrase_index += n
        for _ in range(n):
            state.index += 1
            while state.index < len(parsed.all) and not isinstance(parsed.all[state.index], PhraseToken):
                state.index += 1

    @staticmethod
    def is_short_circuit(value: Any) -> bool:
        return isinstance(value, Flag) and value.type in SHORT_CIRCUITS

    @staticmethod
    def from_arguments(args: Sequence[tuple[str, Argument | ArgumentOptions]]) -> GeneratorFactory:
        """Compile a static argument list into a generator factory."""

        def generate(ctx, parsed, state):
            values = {}
            for arg_id, arg in args:
                value = yield arg
                if arg_id is not None:
                    values[arg_id] = value
            return values

        return generate


def _end(index: int, limit: float) -> int | None:
    return None if limit is None or math.isinf(limit) else index + int(limit)


def _join_raw(tokens: Sequence[Any]) -> str:
    return "".join(token.raw for token in tokens).strip()
