"""Split finalized message text into literal text and reference segments

A reference token is ``#<keyword>:<label>`` where keyword is one of the
referenceable category keywords and label is a maximal, non-empty run of
non-whitespace characters. Tokens are located by a two-state scanner rather
than a global pattern: outside a token we look for a marker that opens one,
inside a token we consume the label up to the next whitespace.
"""

from collections.abc import Iterator
from typing import NamedTuple

from .models import (
    KEYWORD_CATEGORIES,
    Category,
    ReferenceDescriptor,
    Segment,
    SegmentedMessage,
    SegmentKind,
)
from .servers import SQLITE_SERVER, ServerTagger

REFERENCE_ICONS = {
    Category.FILE: "📄",
    Category.TOOL: "🔧",
    Category.TABLE: "🗃️",
}


class TokenMatch(NamedTuple):
    start: int
    end: int
    category: Category
    label: str


def _open_token(text: str, pos: int) -> tuple[Category, int] | None:
    """If a token opens at ``pos``, return its category and the label start"""
    for keyword, category in KEYWORD_CATEGORIES.items():
        head = f"#{keyword}:"
        label_start = pos + len(head)
        if text.startswith(head, pos) and label_start < len(text) and not text[label_start].isspace():
            return category, label_start
    return None


def iter_tokens(text: str) -> Iterator[TokenMatch]:
    """Yield every reference token in ``text``, left to right"""
    pos = 0
    length = len(text)
    while pos < length:
        # Outside a token: look for the next marker
        marker = text.find("#", pos)
        if marker == -1:
            return
        opened = _open_token(text, marker)
        if opened is None:
            pos = marker + 1
            continue

        # Inside a token: the label runs until whitespace or end of text
        category, label_start = opened
        end = label_start
        while end < length and not text[end].isspace():
            end += 1
        yield TokenMatch(marker, end, category, text[label_start:end])
        pos = end


def has_references(text: str) -> bool:
    return next(iter_tokens(text), None) is not None


class MessageSegmenter:
    """Tokenize message text for display"""

    def __init__(self, tagger: ServerTagger | None = None):
        self.tagger = tagger or ServerTagger()

    def describe(self, category: Category, label: str) -> ReferenceDescriptor:
        if category == Category.TABLE:
            server = SQLITE_SERVER
        else:
            server = self.tagger.lookup(label)
        return ReferenceDescriptor(
            id=f"{category.keyword}:{label}",
            label=label,
            category=category,
            icon=REFERENCE_ICONS[category],
            server_badge=server.badge,
            server_color=server.color,
        )

    def segment(self, text: str) -> SegmentedMessage:
        segments: list[Segment] = []
        references: dict[str, ReferenceDescriptor] = {}
        plain_parts: list[str] = []
        last = 0

        for token in iter_tokens(text):
            if token.start > last:
                literal = text[last : token.start]
                segments.append(Segment.text(literal))
                plain_parts.append(literal)

            key = f"{token.category.keyword}:{token.label}"
            descriptor = references.get(key)
            if descriptor is None:
                descriptor = self.describe(token.category, token.label)
                references[key] = descriptor

            segments.append(Segment(SegmentKind.REFERENCE, text[token.start : token.end], descriptor))
            last = token.end

        if last < len(text):
            segments.append(Segment.text(text[last:]))
            plain_parts.append(text[last:])

        if not segments:
            segments.append(Segment.text(text))

        return SegmentedMessage(
            segments=segments,
            references=list(references.values()),
            plain_text="".join(plain_parts).strip(),
        )


_default_segmenter = MessageSegmenter()


def segment_message(text: str) -> SegmentedMessage:
    """Segment ``text`` using the built-in server table"""
    return _default_segmenter.segment(text)


def _remove_tokens(text: str, keep) -> str:
    parts = []
    last = 0
    for token in iter_tokens(text):
        if keep(token):
            continue
        parts.append(text[last : token.start])
        end = token.end
        while end < len(text) and text[end].isspace():
            end += 1
        last = end
    parts.append(text[last:])
    return "".join(parts)


def remove_reference(text: str, category: Category, label: str) -> str:
    """Delete every occurrence of one reference, with its trailing whitespace"""
    return _remove_tokens(text, lambda token: token.category != category or token.label != label)


def clear_references(text: str) -> str:
    """Delete every reference token, with its trailing whitespace"""
    return _remove_tokens(text, lambda token: False)
