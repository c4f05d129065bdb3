"""Pending messages: literal text, or a producer evaluated at failure time."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Union


@dataclass(frozen=True)
class Literal:
    text: str

    def resolve(self) -> str:
        return self.text


@dataclass(frozen=True)
class Lazy:
    producer: Callable[[], str]

    def resolve(self) -> str:
        return self.producer()


Message = Union[Literal, Lazy]


def as_message(value) -> Message | None:
    """Coerce a user supplied string or zero-argument callable into a Message."""
    if value is None or isinstance(value, (Literal, Lazy)):
        return value
    if isinstance(value, str):
        return Literal(value)
    if callable(value):
        return Lazy(value)
    raise TypeError(f"error message must be a string or a callable, got {value!r}")


def resolve(message: Message | None) -> str | None:
    if message is None:
        return None
    return message.resolve()
