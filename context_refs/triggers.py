"""Detect reference triggers around the caret"""

from .models import Category, TriggerContext

TRIGGER_MARKER = "#"

# Longest spellings first so "files" wins over "file"
TRIGGER_PREFIXES: list[tuple[str, Category]] = [
    ("files", Category.FILE),
    ("file", Category.FILE),
    ("tools", Category.TOOL),
    ("tool", Category.TOOL),
    ("db", Category.TABLE),
]

_INITIAL_CATEGORIES = {"f": Category.FILE, "t": Category.TOOL, "d": Category.TABLE}


def parse_trigger(text: str, caret_offset: int) -> TriggerContext:
    """Work out whether the caret sits inside a reference trigger

    Args:
        text: Raw input text
        caret_offset: Caret position in ``text``

    Returns:
        TriggerContext with the implied category and the query typed so far,
        or ``TriggerContext.none()`` when no trigger is active
    """
    caret = max(0, min(caret_offset, len(text)))
    before_caret = text[:caret]

    marker = before_caret.rfind(TRIGGER_MARKER)
    if marker == -1:
        return TriggerContext.none()

    # A marker in the middle of a word is not a trigger
    if marker > 0 and before_caret[marker - 1] not in (" ", "\n"):
        return TriggerContext.none()

    after_marker = before_caret[marker + 1 :]

    for prefix, category in TRIGGER_PREFIXES:
        if after_marker.startswith(prefix):
            query = after_marker[len(prefix) :]
            if query.startswith(":"):
                query = query[1:]
            return TriggerContext(category=category, query=query, start_offset=marker, resolved=True)

    # Still typing the keyword itself
    if after_marker and any(prefix.startswith(after_marker) for prefix, _ in TRIGGER_PREFIXES):
        return TriggerContext(
            category=_INITIAL_CATEGORIES[after_marker[0]],
            query=f"{TRIGGER_MARKER}{after_marker}",
            start_offset=marker,
            resolved=False,
        )

    return TriggerContext.none()
