"""prompt_toolkit completion for inline references"""

from collections.abc import AsyncGenerator, Iterable, Iterator

from prompt_toolkit.completion import CompleteEvent, Completer, Completion
from prompt_toolkit.document import Document

from .cache import SuggestionCache
from .filters import filter_items
from .models import CandidateItem, TriggerContext, format_token
from .triggers import parse_trigger


class ReferenceCompleter(Completer):
    """Complete ``#file:``, ``#tool:`` and ``#db:`` triggers

    Synchronous completion only uses what the cache already holds; the async
    path (used by PromptSession with ``complete_in_thread=False``) fetches
    missing categories first.
    """

    def __init__(self, cache: SuggestionCache):
        self.cache = cache

    def _trigger(self, document: Document) -> TriggerContext:
        return parse_trigger(document.text, document.cursor_position)

    def _completions(
        self, document: Document, trigger: TriggerContext, items: Iterable[CandidateItem]
    ) -> Iterator[Completion]:
        query = trigger.query if trigger.resolved else ""
        replaced = document.cursor_position - trigger.start_offset
        for item in filter_items(list(items), query, trigger.category):
            # Error entries can't be inserted
            if item.disabled:
                continue
            yield Completion(
                format_token(trigger.category, item.label),
                start_position=-replaced,
                display=f"{item.icon} {item.label}".strip(),
                display_meta=item.server_badge or item.description or "",
            )

    def get_completions(self, document: Document, complete_event: CompleteEvent) -> Iterator[Completion]:
        trigger = self._trigger(document)
        if not trigger.active:
            return
        items = self.cache.peek(trigger.category)
        if items is None:
            return
        yield from self._completions(document, trigger, items)

    async def get_completions_async(
        self, document: Document, complete_event: CompleteEvent
    ) -> AsyncGenerator[Completion, None]:
        trigger = self._trigger(document)
        if not trigger.active:
            return
        items = await self.cache.get(trigger.category)
        for completion in self._completions(document, trigger, items):
            yield completion
