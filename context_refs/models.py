"""Value types shared by the reference engine"""

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict


class Category(str, Enum):
    """Kind of a candidate item or reference"""

    FILE = "file"
    TOOL = "tool"
    TABLE = "table"
    COMMAND = "command"
    ERROR = "error"

    @property
    def keyword(self) -> str:
        """Keyword used in the on-text token (``#<keyword>:<label>``)"""
        try:
            return CATEGORY_KEYWORDS[self]
        except KeyError:
            raise ValueError(f"Category {self.value!r} cannot be referenced inline") from None


# Token keyword for each referenceable category
CATEGORY_KEYWORDS: dict[Category, str] = {
    Category.FILE: "file",
    Category.TOOL: "tool",
    Category.TABLE: "db",
}

KEYWORD_CATEGORIES: dict[str, Category] = {keyword: category for category, keyword in CATEGORY_KEYWORDS.items()}


def format_token(category: Category, label: str) -> str:
    """Build the canonical reference token for a category and label"""
    return f"#{category.keyword}:{label}"


class CandidateItem(BaseModel):
    """A selectable entry offered while a trigger is active"""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    description: str | None = None
    category: Category
    path: str | None = None
    icon: str = ""
    server_badge: str | None = None
    server_color: str | None = None

    @property
    def disabled(self) -> bool:
        """Error items are shown but can never be committed"""
        return self.category == Category.ERROR

    @property
    def is_directory(self) -> bool:
        return self.label.endswith("/")


def error_item(item_id: str, label: str, description: str, **kwargs) -> CandidateItem:
    """Build an in-band error entry"""
    kwargs.setdefault("icon", "⚠️")
    return CandidateItem(id=item_id, label=label, description=description, category=Category.ERROR, **kwargs)


@dataclass(frozen=True)
class TriggerContext:
    """Result of scanning the text around the caret

    Attributes:
        category: Category implied by the trigger, None when no trigger is active
        query: Partial query typed so far
        start_offset: Offset of the ``#`` marker, -1 when no trigger is active
        resolved: False while the user is still typing the trigger keyword
    """

    category: Category | None
    query: str = ""
    start_offset: int = -1
    resolved: bool = True

    @classmethod
    def none(cls) -> "TriggerContext":
        return cls(category=None, query="", start_offset=-1, resolved=False)

    @property
    def active(self) -> bool:
        return self.category is not None


@dataclass
class CacheEntry:
    """Snapshot of one category's candidates"""

    items: tuple[CandidateItem, ...] = ()
    fetched_at: float = 0.0
    loaded: bool = False


class ReferenceDescriptor(BaseModel):
    """A distinct reference found in message text"""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    category: Category
    icon: str
    server_badge: str | None = None
    server_color: str | None = None

    @property
    def token(self) -> str:
        return format_token(self.category, self.label)


class SegmentKind(str, Enum):
    TEXT = "text"
    REFERENCE = "reference"


@dataclass(frozen=True)
class Segment:
    """A contiguous run of a message, either literal text or one reference occurrence"""

    kind: SegmentKind
    content: str
    reference: ReferenceDescriptor | None = None

    @classmethod
    def text(cls, content: str) -> "Segment":
        return cls(kind=SegmentKind.TEXT, content=content)

    @property
    def is_reference(self) -> bool:
        return self.kind == SegmentKind.REFERENCE


@dataclass
class SegmentedMessage:
    """Output of segmenting a message"""

    segments: list[Segment] = field(default_factory=list)
    references: list[ReferenceDescriptor] = field(default_factory=list)
    plain_text: str = ""
