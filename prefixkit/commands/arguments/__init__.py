"""Argument specifications, casting and the argument runner."""

from .argument import (
    Argument,
    ArgumentDefaults,
    ArgumentOptions,
    CompositeType,
    FailureData,
    PromptData,
    PromptOptions,
)
from .runner import ArgumentRunner, RunnerState
from .type_resolver import TypeResolver

__all__ = [
    "Argument",
    "ArgumentDefaults",
    "ArgumentOptions",
    "ArgumentRunner",
    "CompositeType",
    "FailureData",
    "PromptData",
    "PromptOptions",
    "RunnerState",
    "TypeResolver",
]
