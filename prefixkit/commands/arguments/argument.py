"""Argument specifications and the per-argument casting and prompting logic."""

from __future__ import annotations

import inspect
import logging
import math
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any, Union

from ..constants import ArgumentMatch, ArgumentType
from ..flag import Flag

if TYPE_CHECKING:
    from ...core.message_handler import PrefixContext
    from ..command import Command
    from .type_resolver import TypeResolver

logger = logging.getLogger(__name__)

# A prompt text: a string, lines of text, or a (possibly async) callable
# receiving (ctx, PromptData) and returning either of those.
PromptText = Union[str, Sequence[str], Callable[..., Any], None]


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


@dataclass
class PromptOptions:
    """Prompt settings. ``None`` fields fall through to the next layer of defaults."""

    retries: int | None = None
    time: float | None = None  # milliseconds to wait for each reply
    cancel_word: str | None = None
    stop_word: str | None = None
    optional: bool | None = None
    infinite: bool | None = None
    limit: float | None = None
    breakout: bool | None = None
    start: PromptText = None
    retry: PromptText = None
    timeout: PromptText = None
    ended: PromptText = None
    cancel: PromptText = None

    def merge(self, *fallbacks: PromptOptions | None) -> PromptOptions:
        """Fill unset fields from ``fallbacks``, first one wins."""
        values = {}
        for field in fields(self):
            value = getattr(self, field.name)
            for fallback in fallbacks:
                if value is not None:
                    break
                if fallback is not None:
                    value = getattr(fallback, field.name)
            values[field.name] = value
        return PromptOptions(**values)


DEFAULT_PROMPT = PromptOptions(
    retries=1,
    time=30000,
    cancel_word="cancel",
    stop_word="stop",
    optional=False,
    infinite=False,
    limit=math.inf,
    breakout=True,
)


@dataclass
class ArgumentDefaults:
    """Defaults shared by every argument of a command (or of a handler)."""

    prompt: PromptOptions | None = None
    otherwise: PromptText = None


@dataclass
class PromptData:
    """What prompt text callables receive."""

    retries: int
    infinite: bool
    message: Any
    phrase: str | None
    failure: Any


@dataclass
class FailureData:
    """What ``default`` and ``otherwise`` callables receive."""

    phrase: str | None
    failure: Any


@dataclass
class ArgumentOptions:
    """Declarative description of one argument.

    ``type`` is a registered type name, a list of choices (an entry may itself
    be a list of aliases, the first one being returned), a compiled regex, a
    callable ``(ctx, phrase)`` or a composite built with the ``Argument``
    helpers. ``prompt=True`` enables prompting with the default options and
    ``prompt=False`` disables it even when the command enables it.
    """

    id: str | None = None
    type: Any = ArgumentType.STRING
    match: ArgumentMatch = ArgumentMatch.PHRASE
    flag: str | list[str] | None = None
    multiple_flags: bool = False
    index: int | None = None
    unordered: bool | int | list[int] = False
    limit: float = math.inf
    default: Any = None
    otherwise: PromptText = None
    prompt: PromptOptions | bool | None = None
    case_sensitive: bool = False
    description: str = ""


class CompositeType:
    """A type built from other types; it needs the resolver to cast its parts."""

    def __init__(self, fn: Callable[..., Any], name: str = "composite") -> None:
        self.fn = fn
        self.name = name

    async def cast(self, resolver: TypeResolver | None, ctx: PrefixContext, phrase: str | None) -> Any:
        return await self.fn(resolver, ctx, phrase)

    def __repr__(self) -> str:
        return f"<CompositeType {self.name}>"


class Argument:
    def __init__(self, command: Command, options: ArgumentOptions) -> None:
        self.command = command
        self.id = options.id
        self.type = options.type
        self.match = ArgumentMatch(options.match)
        self.flag = options.flag
        self.multiple_flags = options.multiple_flags
        self.index = options.index
        self.unordered = options.unordered
        self.limit = options.limit
        self.default = options.default
        self.otherwise = options.otherwise
        self.case_sensitive = options.case_sensitive
        self.description = options.description

        if options.prompt is True:
            self.prompt: PromptOptions | bool | None = PromptOptions()
        else:
            self.prompt = options.prompt

    @property
    def handler(self) -> Any:
        return self.command.handler

    @property
    def flags(self) -> list[str]:
        if self.flag is None:
            return []
        return [self.flag] if isinstance(self.flag, str) else list(self.flag)

    def _handler_defaults(self) -> ArgumentDefaults:
        if self.handler is None:
            return ArgumentDefaults()
        return getattr(self.handler, "argument_defaults", None) or ArgumentDefaults()

    def _prompt_options(self) -> PromptOptions:
        own = self.prompt if isinstance(self.prompt, PromptOptions) else None
        return (own or PromptOptions()).merge(
            self.command.argument_defaults.prompt, self._handler_defaults().prompt, DEFAULT_PROMPT
        )

    def _prompt_enabled(self) -> bool:
        if self.prompt is False:
            return False
        return self.prompt is not None or self.command.argument_defaults.prompt is not None

    async def process(self, ctx: PrefixContext, phrase: str | None) -> Any:
        """Cast ``phrase``, falling back to the default, otherwise text or a prompt on failure."""
        otherwise = _choose(
            self.otherwise, self.command.argument_defaults.otherwise, self._handler_defaults().otherwise
        )
        if not phrase and self._prompt_enabled() and self._prompt_options().optional:
            if otherwise is not None:
                return await self._do_otherwise(ctx, otherwise, phrase, None)
            return await self._resolve_default(ctx, phrase, None)

        result = await self.cast(ctx, phrase)
        if not Argument.is_failure(result):
            return result

        if self.default is not None:
            return await self._resolve_default(ctx, phrase, result)
        if otherwise is not None:
            return await self._do_otherwise(ctx, otherwise, phrase, result)
        if self._prompt_enabled():
            return await self.collect(ctx, phrase or "", result)
        return None

    async def _resolve_default(self, ctx: PrefixContext, phrase: str | None, failure: Any) -> Any:
        if callable(self.default):
            return await maybe_await(self.default(ctx, FailureData(phrase, failure)))
        return self.default

    async def _do_otherwise(self, ctx: PrefixContext, otherwise: Any, phrase: str | None, failure: Any) -> Flag:
        text = await _render(otherwise, ctx, FailureData(phrase, failure))
        if text:
            await ctx.respond(text)
        return Flag.cancel()

    async def cast(self, ctx: PrefixContext, phrase: str | None) -> Any:
        resolver = getattr(self.handler, "resolver", None)
        return await Argument.cast_type(self.type, resolver, ctx, phrase, self.case_sensitive)

    async def collect(self, ctx: PrefixContext, command_input: str = "", parsed_input: Any = None) -> Any:
        """Prompt the author until a reply casts, they cancel, time runs out or retries end.

        Returns the cast value, a list of values for infinite prompts,
        ``Flag.cancel()``, ``Flag.retry(reply)`` on breakout, or
        ``Flag.invalid("timeout" | "ended")``.
        """
        options = self._prompt_options()
        is_infinite = bool(options.infinite) or (self.match == ArgumentMatch.SEPARATE and not command_input)
        values: list[Any] = []

        async def get_text(prompter: PromptText, retry_count: int, message: Any, phrase: Any, failure: Any) -> str:
            data = PromptData(retries=retry_count, infinite=is_infinite, message=message, phrase=phrase, failure=failure)
            return await _render(prompter, ctx, data)

        retry_count = 2 if command_input else 1
        previous = (getattr(ctx, "message", None), command_input, parsed_input)

        if self.handler is not None:
            self.handler.add_prompt(ctx.channel_id, ctx.author.id)
        try:
            while True:
                if retry_count != 1 or not is_infinite or not values:
                    prompter = options.start if retry_count == 1 else options.retry
                    text = await get_text(prompter, retry_count, *previous)
                    if text:
                        await ctx.respond(text)

                reply = await ctx.await_reply(options.time)
                if reply is None:
                    text = await get_text(options.timeout, retry_count, previous[0], previous[1], "")
                    if text:
                        await ctx.respond(text)
                    logger.debug(f"Prompt for argument {self.id} timed out")
                    return Flag.invalid(Flag.TIMEOUT)

                content = reply.content or ""

                if options.breakout and self.handler is not None:
                    looks_like = await self.handler.parse_command(reply)
                    if looks_like is not None and looks_like.command is not None:
                        return Flag.retry(reply)

                if content.lower() == options.cancel_word.lower():
                    text = await get_text(options.cancel, retry_count, reply, content, "cancel")
                    if text:
                        await ctx.respond(text)
                    return Flag.cancel()

                if is_infinite and content.lower() == options.stop_word.lower():
                    if values:
                        return values
                    previous = (reply, content, None)
                    retry_count += 1
                    continue

                value = await self.cast(ctx, content)
                if Argument.is_failure(value):
                    if retry_count <= options.retries:
                        previous = (reply, content, value)
                        retry_count += 1
                        continue
                    text = await get_text(options.ended, retry_count, reply, content, "stop")
                    if text:
                        await ctx.respond(text)
                    logger.debug(f"Prompt for argument {self.id} ran out of retries")
                    return Flag.invalid(Flag.ENDED)

                if not is_infinite:
                    return value

                values.append(value)
                if len(values) >= options.limit:
                    return values
                previous = (reply, content, value)
                retry_count = 1
        finally:
            if self.handler is not None:
                self.handler.remove_prompt(ctx.channel_id, ctx.author.id)

    @staticmethod
    async def cast_type(
        type: Any,
        resolver: TypeResolver | None,
        ctx: PrefixContext,
        phrase: str | None,
        case_sensitive: bool = False,
    ) -> Any:
        """Cast ``phrase`` with any kind of type an argument accepts."""
        if isinstance(type, CompositeType):
            return await type.cast(resolver, ctx, phrase)

        if isinstance(type, (list, tuple)):
            text = phrase or ""
            fold = (lambda s: s) if case_sensitive else str.casefold
            for entry in type:
                if isinstance(entry, (list, tuple)):
                    if any(fold(alias) == fold(text) for alias in entry):
                        return entry[0]
                elif fold(entry) == fold(text):
                    return entry
            return None

        if isinstance(type, re.Pattern):
            match = type.search(phrase or "")
            if match is None:
                return None
            return {"match": match, "matches": list(type.finditer(phrase or ""))}

        if isinstance(type, str):
            caster = resolver.type(type) if resolver is not None else None
            if caster is not None:
                return await maybe_await(caster(ctx, phrase))
            return phrase or None

        if callable(type):
            return await maybe_await(type(ctx, phrase))

        return phrase or None

    @staticmethod
    def is_failure(value: Any) -> bool:
        return value is None or Flag.is_(value, Flag.FAIL)

    # Composite types

    @staticmethod
    def union(*types: Any) -> CompositeType:
        """The first type that casts successfully wins."""

        async def cast(resolver, ctx, phrase):
            for entry in types:
                result = await Argument.cast_type(entry, resolver, ctx, phrase)
                if not Argument.is_failure(result):
                    return result
            return None

        return CompositeType(cast, "union")

    @staticmethod
    def product(*types: Any) -> CompositeType:
        """Every type must cast; the result is the list of their values."""

        async def cast(resolver, ctx, phrase):
            results = []
            for entry in types:
                result = await Argument.cast_type(entry, resolver, ctx, phrase)
                if Argument.is_failure(result):
                    return result
                results.append(result)
            return results

        return CompositeType(cast, "product")

    @staticmethod
    def validate(type: Any, predicate: Callable[[Any, str | None, Any], bool]) -> CompositeType:
        async def cast(resolver, ctx, phrase):
            result = await Argument.cast_type(type, resolver, ctx, phrase)
            if Argument.is_failure(result):
                return result
            if not await maybe_await(predicate(ctx, phrase, result)):
                return None
            return result

        return CompositeType(cast, "validate")

    @staticmethod
    def range(type: Any, min: float, max: float, inclusive: bool = False) -> CompositeType:
        """Numbers are compared directly, anything else by its length."""

        def within(ctx, phrase, value):
            measure = value if isinstance(value, (int, float)) else len(value) if hasattr(value, "__len__") else None
            if measure is None:
                return False
            return min <= measure <= max if inclusive else min <= measure < max

        return Argument.validate(type, within)

    @staticmethod
    def compose(*types: Any) -> CompositeType:
        """Feed each type's result into the next one, stopping at a failure."""

        async def cast(resolver, ctx, phrase):
            value = phrase
            for entry in types:
                value = await Argument.cast_type(entry, resolver, ctx, value)
                if Argument.is_failure(value):
                    return value
            return value

        return CompositeType(cast, "compose")

    @staticmethod
    def compose_with_failure(*types: Any) -> CompositeType:
        async def cast(resolver, ctx, phrase):
            value = phrase
            for entry in types:
                value = await Argument.cast_type(entry, resolver, ctx, value)
            return value

        return CompositeType(cast, "compose_with_failure")

    @staticmethod
    def with_input(type: Any) -> CompositeType:
        async def cast(resolver, ctx, phrase):
            result = await Argument.cast_type(type, resolver, ctx, phrase)
            if Argument.is_failure(result):
                return Flag.fail({"input": phrase, "value": result})
            return {"input": phrase, "value": result}

        return CompositeType(cast, "with_input")

    @staticmethod
    def tagged(type: Any, tag: Any = None) -> CompositeType:
        tag = type if tag is None else tag

        async def cast(resolver, ctx, phrase):
            result = await Argument.cast_type(type, resolver, ctx, phrase)
            if Argument.is_failure(result):
                return Flag.fail({"tag": tag, "value": result})
            return {"tag": tag, "value": result}

        return CompositeType(cast, "tagged")

    @staticmethod
    def tagged_with_input(type: Any, tag: Any = None) -> CompositeType:
        tag = type if tag is None else tag

        async def cast(resolver, ctx, phrase):
            result = await Argument.cast_type(type, resolver, ctx, phrase)
            if Argument.is_failure(result):
                return Flag.fail({"tag": tag, "input": phrase, "value": result})
            return {"tag": tag, "input": phrase, "value": result}

        return CompositeType(cast, "tagged_with_input")

    @staticmethod
    def tagged_union(*types: Any) -> CompositeType:
        return Argument.union(*(Argument.tagged(entry) for entry in types))

    def __repr__(self) -> str:
        return f"<Argument {self.id} type={self.type!r} match={self.match.value}>"


def _choose(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


async def _render(prompter: PromptText, ctx: Any, data: Any) -> str:
    if prompter is None:
        return ""
    text = prompter
    if callable(prompter):
        text = await maybe_await(prompter(ctx, data))
    if text is None:
        return ""
    if isinstance(text, (list, tuple)):
        return "\n".join(text)
    return str(text)
