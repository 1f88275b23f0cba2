"""Document IR and the width-aware layout engine.

The doc builder describes *what could* break using the five node types
below; :func:`render` decides *what does* break for a given width, in the
manner of Wadler's "A prettier printer".
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Doc:
    """Base document node."""


@dataclass(frozen=True, slots=True)
class Text(Doc):
    """Literal text that never contains a line break."""

    text: str

    def __post_init__(self) -> None:
        if "\n" in self.text:
            raise ValueError(f"text must not contain line breaks: {self.text!r}")


@dataclass(frozen=True, slots=True)
class Line(Doc):
    """A potential line break.

    In a flat group a soft line renders as ``flat``; in a broken group it
    becomes a newline followed by the current indentation. A hard line is
    always a newline and prevents every enclosing group from rendering flat.
    """

    flat: str = " "
    hard: bool = False


@dataclass(frozen=True, slots=True)
class Concat(Doc):
    parts: tuple[Doc, ...]


@dataclass(frozen=True, slots=True)
class Nest(Doc):
    """Increase the indentation of lines broken inside ``doc``."""

    indent: int
    doc: Doc


@dataclass(frozen=True, slots=True)
class Group(Doc):
    """A single flat-or-broken layout decision."""

    doc: Doc


EMPTY = Text("")
LINE = Line()
SOFTLINE = Line("")
HARDLINE = Line("", hard=True)

DocLike = Doc | str


def _as_doc(part: DocLike) -> Doc:
    return Text(part) if isinstance(part, str) else part


def concat(*parts: DocLike) -> Doc:
    """Concatenate documents, accepting plain strings for text."""
    flattened: list[Doc] = []
    for part in map(_as_doc, parts):
        if isinstance(part, Concat):
            flattened.extend(part.parts)
        elif not (isinstance(part, Text) and not part.text):
            flattened.append(part)
    if not flattened:
        return EMPTY
    if len(flattened) == 1:
        return flattened[0]
    return Concat(tuple(flattened))


def join(separator: DocLike, docs: Iterable[DocLike]) -> Doc:
    parts: list[DocLike] = []
    for index, doc in enumerate(docs):
        if index:
            parts.append(separator)
        parts.append(doc)
    return concat(*parts)


def nest(indent: int, *parts: DocLike) -> Doc:
    return Nest(indent, concat(*parts))


def group(*parts: DocLike) -> Doc:
    return Group(concat(*parts))


class Mode(Enum):
    FLAT = "flat"
    BREAK = "break"


# Pushed below the content of a group that renders broken; marks where the
# rest of the enclosing line layout begins.
_END = object()


def _fits(doc: Doc, rest: list, remaining: int) -> bool:
    """Return True if ``doc`` rendered flat fits in ``remaining`` columns.

    The text following ``doc`` up to the next possible line break counts
    too. Undecided groups that follow inside the same broken group are
    measured flat; past the end of that group the scan stops at the next
    group, since it can still break on its own.
    """
    pending: list[tuple[Mode, Doc]] = [(Mode.FLAT, doc)]
    index = len(rest)
    in_content = True
    past_end = False
    while remaining >= 0:
        if not pending:
            if index == 0:
                return True
            index -= 1
            item = rest[index]
            if item is _END:
                past_end = True
                continue
            in_content = False
            _, mode, node = item
            pending.append((mode, node))
            continue

        mode, node = pending.pop()
        match node:
            case Text(text=value):
                remaining -= len(value)
            case Line(flat=flat, hard=hard):
                if hard:
                    return not in_content
                if mode is Mode.BREAK:
                    return True
                remaining -= len(flat)
            case Concat(parts=parts):
                pending.extend((mode, part) for part in reversed(parts))
            case Nest(doc=inner):
                pending.append((mode, inner))
            case Group(doc=inner):
                if past_end:
                    return True
                pending.append((Mode.FLAT, inner))
    return False


def render(doc: Doc, width: int) -> str:
    """Lay out ``doc`` so lines stay within ``width`` columns where possible.

    Text longer than the available width is emitted whole. The result is a
    pure function of ``doc`` and ``width``.

    Raises:
        ValueError: If ``width`` is smaller than 1.
    """
    if width < 1:
        raise ValueError(f"width must be a positive integer, got {width}")

    out: list[str] = []
    column = 0
    stack: list = [(0, Mode.BREAK, doc)]
    while stack:
        item = stack.pop()
        if item is _END:
            continue
        indent, mode, node = item
        match node:
            case Text(text=value):
                out.append(value)
                column += len(value)
            case Line(flat=flat, hard=hard):
                if mode is Mode.FLAT and not hard:
                    out.append(flat)
                    column += len(flat)
                else:
                    out.append("\n" + " " * indent)
                    column = indent
            case Concat(parts=parts):
                stack.extend((indent, mode, part) for part in reversed(parts))
            case Nest(indent=delta, doc=inner):
                stack.append((indent + delta, mode, inner))
            case Group(doc=inner):
                if mode is Mode.FLAT or _fits(inner, stack, width - column):
                    stack.append((indent, Mode.FLAT, inner))
                else:
                    stack.append(_END)
                    stack.append((indent, Mode.BREAK, inner))
            case _:
                raise TypeError(f"unknown document node: {node!r}")

    result = "".join(out)
    logger.debug("rendered %d characters at width %d", len(result), width)
    return result
