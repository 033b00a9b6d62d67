"""Page verb targets: a raw selector or an element the driver already resolved."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from pages.locators import position_of


@dataclass(frozen=True)
class Selector:
    """A selector string, optionally narrowed to its Nth (1-based) match."""

    query: str
    position: int | None = None

    @property
    def expression(self) -> str:
        return position_of(self.query, self.position)

    def nth(self, position: int) -> Selector:
        return Selector(query=self.query, position=position)

    def __str__(self) -> str:
        return self.expression


@dataclass(frozen=True)
class Handle:
    """An element handle that is used as-is and never re-queried."""

    element: Any
    label: str = "<element handle>"

    def __str__(self) -> str:
        return self.label


Target = Union[str, Selector, Handle]


def resolve_target(target: Target, position: int | None = None) -> Selector | Handle:
    if isinstance(target, Handle):
        if position not in (None, 1):
            raise ValueError("A resolved element handle cannot be narrowed by position")
        return target
    if isinstance(target, Selector):
        return target if position is None else Selector(target.expression, position)
    if isinstance(target, str):
        return Selector(query=target, position=position)
    raise TypeError(f"Unsupported target type {type(target).__name__}")
