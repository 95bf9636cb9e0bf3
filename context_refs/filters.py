"""Local filtering of candidate lists

Filtering is pure and never reorders: the output is always a subsequence of
the input, so applying the same query twice gives the same result.
"""

import re
from collections.abc import Sequence

from .models import CandidateItem, Category

# "#files", "#file:", "#tools :", "#db" ... followed by optional spaces
_PREFIX_PATTERNS = {
    Category.FILE: re.compile(r"^#files?\s*:?\s*", re.IGNORECASE),
    Category.TOOL: re.compile(r"^#tools?\s*:?\s*", re.IGNORECASE),
    Category.TABLE: re.compile(r"^#db\s*:?\s*", re.IGNORECASE),
}

FILE_ONLY_TERMS = {"files"}
DIRECTORY_TERMS = {"directories", "folders"}


def strip_trigger_prefix(raw_query: str, category: Category | None) -> str:
    """Remove the category's trigger keyword (and optional colon) from a query"""
    pattern = _PREFIX_PATTERNS.get(category) if category else None
    if pattern is None:
        return raw_query.strip()
    return pattern.sub("", raw_query.strip(), count=1)


def _matches_any(item: CandidateItem, term: str) -> bool:
    fields = (item.label, item.path, item.description, item.server_badge)
    return any(term in value.lower() for value in fields if value)


def _infer_category(items: Sequence[CandidateItem]) -> Category | None:
    for item in items:
        if not item.disabled:
            return item.category
    return None


def filter_files(items: Sequence[CandidateItem], raw_query: str) -> list[CandidateItem]:
    """Filter file candidates, honouring the files/directories/folders shorthands"""
    term = strip_trigger_prefix(raw_query, Category.FILE).lower()
    if not term:
        return list(items)

    if term in FILE_ONLY_TERMS:
        return [item for item in items if item.category == Category.FILE and not item.is_directory]
    if term in DIRECTORY_TERMS:
        return [item for item in items if item.is_directory]

    return [item for item in items if _matches_any(item, term)]


def filter_tools(items: Sequence[CandidateItem], raw_query: str) -> list[CandidateItem]:
    """Filter tool candidates

    Supports a server-scoped form ``server:term``: only tools whose badge is
    exactly ``server`` are eligible, and ``term`` (if any) must appear in the
    label or description.
    """
    term = strip_trigger_prefix(raw_query, Category.TOOL).lower()
    if not term:
        return list(items)

    if ":" in term:
        server, tool_term = (part.strip() for part in term.split(":", 1))
        results = []
        for item in items:
            if (item.server_badge or "").lower() != server:
                continue
            if not tool_term:
                results.append(item)
            elif tool_term in item.label.lower() or tool_term in (item.description or "").lower():
                results.append(item)
        return results

    return [item for item in items if _matches_any(item, term)]


def filter_tables(items: Sequence[CandidateItem], raw_query: str) -> list[CandidateItem]:
    """Filter table candidates"""
    term = strip_trigger_prefix(raw_query, Category.TABLE).lower()
    if not term:
        return list(items)
    return [item for item in items if _matches_any(item, term)]


_FILTERS = {
    Category.FILE: filter_files,
    Category.TOOL: filter_tools,
    Category.TABLE: filter_tables,
}


def filter_items(
    items: Sequence[CandidateItem], raw_query: str, category: Category | None = None
) -> list[CandidateItem]:
    """Narrow a candidate list to the items matching a query

    Args:
        items: Candidates in display order
        raw_query: Query as produced by the trigger parser
        category: Category of the candidates; inferred from the first
            selectable item when omitted

    Returns:
        Matching items, in their original order
    """
    if category is None:
        category = _infer_category(items)

    category_filter = _FILTERS.get(category) if category else None
    if category_filter is not None:
        return category_filter(items, raw_query)

    term = strip_trigger_prefix(raw_query, None).lower()
    if not term:
        return list(items)
    return [item for item in items if _matches_any(item, term)]
