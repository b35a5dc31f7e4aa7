"""
Field model: dynamic content such as page numbers and tables of contents.

A field is a kind-specific payload plus a cached result and a dirty flag.
The instruction text is derived from the payload, never assembled by the
caller, and is written as the begin/instruction/separate/result/end run
sequence.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from ..errors import ValidationError
from ..xml_text import check_xml_text

logger = logging.getLogger(__name__)


class FieldKind(Enum):
    """Kinds of fields the engine can build."""

    PAGE_NUMBER = "page-number"
    PAGE_COUNT = "page-count"
    TOC = "toc"
    HYPERLINK = "hyperlink"
    STYLE_REF = "style-ref"
    CUSTOM = "custom"


def _quote(value: str) -> str:
    return '"' + value.replace('"', '\\"') + '"'


@dataclass(frozen=True)
class PageNumberField:
    """Current page number (PAGE)."""

    kind: ClassVar[FieldKind] = FieldKind.PAGE_NUMBER

    def instruction(self) -> str:
        return "PAGE"


@dataclass(frozen=True)
class PageCountField:
    """Total number of pages (NUMPAGES)."""

    kind: ClassVar[FieldKind] = FieldKind.PAGE_COUNT

    def instruction(self) -> str:
        return "NUMPAGES"


@dataclass(frozen=True)
class TOCField:
    """Table of contents built from heading outline levels.

    Attributes:
        min_level: First heading level included
        max_level: Last heading level included
        hyperlinks: Make entries hyperlinks (\\h)
        hide_in_web_layout: Hide tab leaders and page numbers in web view (\\z)
        use_outline_levels: Include paragraphs by outline level (\\u)
    """

    kind: ClassVar[FieldKind] = FieldKind.TOC

    min_level: int = 1
    max_level: int = 3
    hyperlinks: bool = True
    hide_in_web_layout: bool = True
    use_outline_levels: bool = True

    def __post_init__(self) -> None:
        if not 1 <= self.min_level <= self.max_level <= 9:
            raise ValidationError(
                "TOC levels must satisfy 1 <= min <= max <= 9",
                op="TOCField",
                field="levels",
                value=(self.min_level, self.max_level),
            )

    def instruction(self) -> str:
        parts = ["TOC", "\\o", _quote(f"{self.min_level}-{self.max_level}")]
        if self.hyperlinks:
            parts.append("\\h")
        if self.hide_in_web_layout:
            parts.append("\\z")
        if self.use_outline_levels:
            parts.append("\\u")
        return " ".join(parts)


@dataclass(frozen=True)
class HyperlinkField:
    """HYPERLINK field to an external URL or an internal bookmark."""

    kind: ClassVar[FieldKind] = FieldKind.HYPERLINK

    url: str = ""
    anchor: str | None = None

    def __post_init__(self) -> None:
        if not self.url and not self.anchor:
            raise ValidationError(
                "hyperlink field needs a url or an anchor", op="HyperlinkField", field="url"
            )

    def instruction(self) -> str:
        parts = ["HYPERLINK"]
        if self.url:
            parts.append(_quote(self.url))
        if self.anchor:
            parts.extend(["\\l", _quote(self.anchor)])
        return " ".join(parts)


@dataclass(frozen=True)
class StyleRefField:
    """Text of the nearest paragraph with the given style (STYLEREF)."""

    kind: ClassVar[FieldKind] = FieldKind.STYLE_REF

    style_name: str = ""

    def __post_init__(self) -> None:
        if not self.style_name:
            raise ValidationError(
                "style reference needs a style name", op="StyleRefField", field="style_name"
            )

    def instruction(self) -> str:
        return f"STYLEREF {_quote(self.style_name)}"


@dataclass(frozen=True)
class CustomField:
    """Any other field, carried as raw instruction text."""

    kind: ClassVar[FieldKind] = FieldKind.CUSTOM

    code: str = ""

    def instruction(self) -> str:
        return self.code.strip()


FieldPayload = Union[
    PageNumberField, PageCountField, TOCField, HyperlinkField, StyleRefField, CustomField
]

_TOC_LEVELS = re.compile(r"^(\d)-(\d)$")


_TOKEN = re.compile(r'"((?:[^"\\]|\\.)*)"|(\S+)')


def _split(instruction: str) -> list[str]:
    """Split field code text into arguments; quoted arguments lose their quotes."""
    tokens = []
    for quoted, bare in _TOKEN.findall(instruction):
        tokens.append(quoted.replace('\\"', '"') if not bare else bare)
    return tokens


def _parse_payload(tokens: list[str]) -> FieldPayload | None:
    keyword = tokens[0].upper()
    args = tokens[1:]

    if keyword == "PAGE" and not args:
        return PageNumberField()
    if keyword == "NUMPAGES" and not args:
        return PageCountField()
    if keyword == "STYLEREF" and len(args) == 1:
        return StyleRefField(args[0])
    if keyword == "HYPERLINK":
        url = ""
        anchor = None
        rest = list(args)
        if rest and not rest[0].startswith("\\"):
            url = rest.pop(0)
        if len(rest) == 2 and rest[0] == "\\l":
            anchor = rest[1]
            rest = []
        if rest or (not url and not anchor):
            return None
        return HyperlinkField(url=url, anchor=anchor)
    if keyword == "TOC":
        switches = list(args)
        if len(switches) < 2 or switches[0] != "\\o":
            return None
        match = _TOC_LEVELS.match(switches[1])
        if not match:
            return None
        flags = switches[2:]
        known = {"\\h", "\\z", "\\u"}
        if any(flag not in known for flag in flags) or len(set(flags)) != len(flags):
            return None
        return TOCField(
            min_level=int(match.group(1)),
            max_level=int(match.group(2)),
            hyperlinks="\\h" in flags,
            hide_in_web_layout="\\z" in flags,
            use_outline_levels="\\u" in flags,
        )
    return None


def parse_instruction(instruction: str) -> FieldPayload:
    """Turn instruction text read from a document into a payload.

    A typed payload is only returned when it rebuilds exactly the same
    instruction; everything else becomes a CustomField so that the
    original text is written back unchanged.

    Example:
        >>> parse_instruction(" PAGE ")
        PageNumberField()
        >>> parse_instruction("PAGE \\* MERGEFORMAT").kind
        <FieldKind.CUSTOM: 'custom'>
    """
    text = instruction.strip()
    tokens = _split(text)
    if tokens:
        try:
            payload = _parse_payload(tokens)
        except ValidationError:
            payload = None
        if payload is not None and payload.instruction() == " ".join(text.split()):
            return payload
    return CustomField(text)


class Field:
    """A field with its cached result.

    Attributes:
        payload: The kind-specific payload
        result: Cached result text shown until the consumer recomputes
        dirty: Whether the consumer should recompute the field on open

    Example:
        >>> field = Field(PageNumberField(), result="1")
        >>> field.instruction
        'PAGE'
        >>> field.dirty
        True
    """

    def __init__(self, payload: FieldPayload, result: str = "", dirty: bool = True) -> None:
        self._payload = payload
        self.result = result
        self.dirty = dirty

    @property
    def result(self) -> str:
        return self._result

    @result.setter
    def result(self, value: str) -> None:
        self._result = check_xml_text(value, "set_result", "result")

    @property
    def payload(self) -> FieldPayload:
        return self._payload

    @payload.setter
    def payload(self, value: FieldPayload) -> None:
        self._payload = value
        self.dirty = True

    @property
    def kind(self) -> FieldKind:
        return self._payload.kind

    @property
    def instruction(self) -> str:
        return self._payload.instruction()

    def mark_dirty(self) -> None:
        self.dirty = True

    def update(self, result: str) -> None:
        """Store a freshly computed result and clear the dirty flag."""
        self.result = result
        self.dirty = False

    def __repr__(self) -> str:
        return f"<Field {self.instruction!r} result={self.result!r} dirty={self.dirty}>"


def page_number(result: str = "1") -> Field:
    return Field(PageNumberField(), result)


def page_count(result: str = "1") -> Field:
    return Field(PageCountField(), result)


def table_of_contents(
    min_level: int = 1, max_level: int = 3, result: str = "Update field to build the table of contents."
) -> Field:
    return Field(TOCField(min_level=min_level, max_level=max_level), result)


def hyperlink(url: str, result: str | None = None) -> Field:
    return Field(HyperlinkField(url=url), url if result is None else result)


def style_ref(style_name: str, result: str = "") -> Field:
    return Field(StyleRefField(style_name), result)
