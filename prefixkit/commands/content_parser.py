"""Tokenizer turning raw command content into phrases, flags and option flags."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Union

from .constants import ArgumentMatch

logger = logging.getLogger(__name__)

# Opening quote -> closing quote.
QUOTE_PAIRS = {'"': '"', "“": "”"}

# Option-flag words ending with one of these also match as a token prefix.
OPTION_DELIMITERS = ("=", ":")


@dataclass(frozen=True, slots=True)
class PhraseToken:
    value: str
    raw: str


@dataclass(frozen=True, slots=True)
class FlagToken:
    key: str
    raw: str


@dataclass(frozen=True, slots=True)
class OptionFlagToken:
    key: str
    value: str
    raw: str


Token = Union[PhraseToken, FlagToken, OptionFlagToken]


@dataclass(frozen=True, slots=True)
class ContentParserResult:
    """Parsed content. ``raw`` fields keep quotes and the trailing separator."""

    all: tuple[Token, ...] = ()
    phrases: tuple[PhraseToken, ...] = ()
    flags: tuple[FlagToken, ...] = ()
    option_flags: tuple[OptionFlagToken, ...] = ()

    def has_flag(self, word: str) -> bool:
        return any(flag.key == word for flag in self.flags)

    def option(self, word: str) -> str | None:
        for option_flag in self.option_flags:
            if option_flag.key == word:
                return option_flag.value
        return None


@dataclass(frozen=True, slots=True)
class _Word:
    text: str
    raw: str
    quoted: bool = False


class ContentParser:
    """Splits content into tokens.

    Flag and option-flag words are matched against whole tokens and are case
    sensitive. A word configured as both is a flag. An option-flag word takes
    the token after it verbatim as its value, whatever that token is.

    With ``quoted`` enabled, a token opening with a double quote runs to the
    matching closing quote and becomes a single phrase. A quote without a
    closing mate is kept as a literal character. When ``separator`` is set the
    content is split on that exact string and quotes are always literal.
    """

    def __init__(
        self,
        flag_words: Iterable[str] | None = None,
        option_flag_words: Iterable[str] | None = None,
        quoted: bool = True,
        separator: str | None = None,
    ) -> None:
        self.flag_words = frozenset(flag_words or ())
        self.option_flag_words = frozenset(option_flag_words or ()) - self.flag_words
        self.quoted = quoted
        self.separator = separator or None
        self._prefix_option_words = sorted(
            (word for word in self.option_flag_words if word.endswith(OPTION_DELIMITERS)),
            key=len,
            reverse=True,
        )

    def parse(self, content: str | None) -> ContentParserResult:
        words = self._split(content or "")

        tokens: list[Token] = []
        index = 0
        while index < len(words):
            word = words[index]
            index += 1

            if word.quoted:
                tokens.append(PhraseToken(word.text, word.raw))
            elif word.text in self.flag_words:
                tokens.append(FlagToken(word.text, word.raw))
            elif word.text in self.option_flag_words:
                if index < len(words):
                    value_word = words[index]
                    index += 1
                    tokens.append(OptionFlagToken(word.text, value_word.text, word.raw + value_word.raw))
                else:
                    tokens.append(OptionFlagToken(word.text, "", word.raw))
            else:
                key = self._match_prefix_option(word.text)
                if key is not None:
                    tokens.append(OptionFlagToken(key, word.text[len(key):], word.raw))
                else:
                    tokens.append(PhraseToken(word.text, word.raw))

        return ContentParserResult(
            all=tuple(tokens),
            phrases=tuple(t for t in tokens if isinstance(t, PhraseToken)),
            flags=tuple(t for t in tokens if isinstance(t, FlagToken)),
            option_flags=tuple(t for t in tokens if isinstance(t, OptionFlagToken)),
        )

    def _match_prefix_option(self, text: str) -> str | None:
        for word in self._prefix_option_words:
            if text.startswith(word) and len(text) > len(word):
                return word
        return None

    def _split(self, content: str) -> list[_Word]:
        if self.separator is not None:
            return self._split_separator(content)
        return self._split_whitespace(content)

    def _split_separator(self, content: str) -> list[_Word]:
        parts = content.split(self.separator)
        words = []
        for i, part in enumerate(parts):
            text = part.strip()
            if not text:
                continue
            raw = part + self.separator if i < len(parts) - 1 else part
            words.append(_Word(text, raw))
        return words

    def _split_whitespace(self, content: str) -> list[_Word]:
        words = []
        length = len(content)
        position = _skip_whitespace(content, 0)

        while position < length:
            quoted = False
            char = content[position]
            end = -1

            if self.quoted and char in QUOTE_PAIRS:
                close = content.find(QUOTE_PAIRS[char], position + 1)
                if close != -1:
                    text = content[position + 1:close]
                    end = close + 1
                    quoted = True

            if not quoted:
                end = position
                while end < length and not content[end].isspace():
                    end += 1
                text = content[position:end]

            next_position = _skip_whitespace(content, end)
            words.append(_Word(text, content[position:next_position], quoted))
            position = next_position

        return words

    @staticmethod
    def get_flags(args: Sequence[Any]) -> tuple[list[str], list[str]]:
        """Collect flag and option-flag words from a static argument list."""
        flag_words: list[str] = []
        option_flag_words: list[str] = []

        for arg in args:
            flags = getattr(arg, "flag", None)
            if not flags:
                continue
            if isinstance(flags, str):
                flags = [flags]

            match = getattr(arg, "match", None)
            if match == ArgumentMatch.FLAG:
                flag_words.extend(flags)
            elif match == ArgumentMatch.OPTION:
                option_flag_words.extend(flags)

        logger.debug(f"Collected flags {flag_words} and option flags {option_flag_words}")
        return flag_words, option_flag_words


def _skip_whitespace(content: str, position: int) -> int:
    while position < len(content) and content[position].isspace():
        position += 1
    return position
