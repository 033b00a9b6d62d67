"""XPath locator builders.

Every function here is pure string construction: nothing touches a live
document, so the same arguments always produce the same selector.
"""

from __future__ import annotations

import re
from typing import Literal

MatchMode = Literal["exact", "contains"]

ANY_TAG = "*"
_TAG_RE = re.compile(r"^(\*|[A-Za-z_][\w.-]*(:[A-Za-z_][\w.-]*)?)$")
# Same detection Playwright applies to unprefixed selectors.
_XPATH_RE = re.compile(r"^(\(*/|\.\.)")


def xpath_literal(text: str) -> str:
    """Quote text as an XPath 1.0 string literal.

    XPath has no escape sequences, so text holding both quote kinds is split
    into a ``concat()`` of single-quoted and double-quoted pieces.
    """

    if "'" not in text:
        return f"'{text}'"
    if '"' not in text:
        return f'"{text}"'
    parts = []
    for index, chunk in enumerate(text.split("'")):
        if index:
            parts.append('"\'"')
        if chunk:
            parts.append(f"'{chunk}'")
    return f"concat({', '.join(parts)})"


def is_xpath(selector: str) -> bool:
    return bool(_XPATH_RE.match(selector))


def position_of(selector: str, position: int | None) -> str:
    """Narrow a selector to its Nth (1-based) match.

    XPath is wrapped as ``(expr)[N]``; CSS selectors get Playwright's
    ``>> nth=`` chain. Positions below 1 select nothing.
    """

    if position is None:
        return selector
    index = max(int(position), 0)
    if selector.startswith("xpath="):
        selector = selector[len("xpath="):]
    if is_xpath(selector):
        return f"({selector})[{index}]"
    if index == 0:
        return f"{selector} >> xpath=self::*[false()]"
    return f"{selector} >> nth={index - 1}"


def normalize_space(text: str) -> str:
    """Python twin of XPath normalize-space(): trim and collapse whitespace runs."""
    return " ".join(text.split())


def text_predicate(text: str, mode: MatchMode = "contains", *, attribute: str | None = None) -> str:
    source = f"@{attribute}" if attribute else "text()"
    if mode == "exact":
        # Both sides collapse whitespace runs, so "a  b" and "a b" compare equal.
        return f"normalize-space({source})={xpath_literal(normalize_space(text))}"
    if mode == "contains":
        return f"contains({source}, {xpath_literal(text)})"
    raise ValueError(f"Unsupported match mode {mode!r}; expected 'exact' or 'contains'")


def build_locator(
    text: str,
    *,
    tag: str | None = None,
    mode: MatchMode = "contains",
    position: int | None = None,
) -> str:
    """Build an XPath selecting elements by their own visible text.

    ``tag=None`` searches every element; ``mode`` picks whitespace-normalized
    equality or substring containment; ``position`` picks the Nth match of the whole set.
    """

    name = (tag or ANY_TAG).strip()
    if not _TAG_RE.match(name):
        raise ValueError(f"Invalid tag name {tag!r}")
    return position_of(f"//{name}[{text_predicate(text, mode)}]", position)


def text_locator(text: str, contains: bool = False) -> str:
    return build_locator(text, mode="contains" if contains else "exact")


def heading_locator(level: int, text: str, position: int | None = None) -> str:
    if not 1 <= int(level) <= 6:
        raise ValueError(f"Heading level must be 1..6, got {level!r}")
    return build_locator(text, tag=f"h{int(level)}", position=position)


def aria_label_locator(text: str, *, tag: str = "div", mode: MatchMode = "contains") -> str:
    """Match on the ``aria-label`` attribute, e.g. date-picker day cells."""

    if not _TAG_RE.match(tag):
        raise ValueError(f"Invalid tag name {tag!r}")
    return f"//{tag}[{text_predicate(text, mode, attribute='aria-label')}]"
