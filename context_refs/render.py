"""Rich rendering of messages containing references"""

from rich.panel import Panel
from rich.text import Text

from .models import ReferenceDescriptor, SegmentedMessage
from .segmenter import segment_message

DEFAULT_BADGE_COLOR = "#6f42c1"


def reference_style(reference: ReferenceDescriptor) -> str:
    return f"bold white on {reference.server_color or DEFAULT_BADGE_COLOR}"


def render_message(message: str | SegmentedMessage) -> Text:
    """Render text with each reference shown as a coloured pill"""
    if isinstance(message, str):
        message = segment_message(message)

    text = Text()
    for segment in message.segments:
        if segment.is_reference and segment.reference is not None:
            reference = segment.reference
            text.append(f" {reference.icon} {reference.label} ", style=reference_style(reference))
        else:
            text.append(segment.content)
    return text


def render_reference_summary(references: list[ReferenceDescriptor]) -> Panel | None:
    """Panel listing the distinct references included in a message"""
    if not references:
        return None

    body = Text()
    for index, reference in enumerate(references):
        if index:
            body.append("\n")
        body.append(f"{reference.icon} ")
        body.append(reference.label, style="bold")
        if reference.server_badge:
            body.append(" ")
            body.append(f" {reference.server_badge} ", style=reference_style(reference))

    noun = "item" if len(references) == 1 else "items"
    return Panel(
        body,
        title=f"Context • {len(references)} {noun}",
        subtitle="These items are included in your message",
        border_style="cyan",
    )
