"""Input session: the store tying trigger parsing, candidates and selection together"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .cache import SuggestionCache
from .filters import filter_items
from .models import CandidateItem, Category, ReferenceDescriptor, SegmentedMessage, TriggerContext
from .segmenter import MessageSegmenter, clear_references, remove_reference
from .selection import SelectionController
from .triggers import parse_trigger

logger = logging.getLogger(__name__)

KEY_DOWN = "down"
KEY_UP = "up"
KEY_ENTER = "enter"
KEY_TAB = "tab"
KEY_ESCAPE = "escape"


@dataclass(frozen=True)
class SessionSnapshot:
    """State passed to subscribers after every change"""

    text: str
    caret: int
    trigger: TriggerContext
    candidates: tuple[CandidateItem, ...]
    selected_index: int
    is_open: bool
    loading: bool


Listener = Callable[[SessionSnapshot], None]


class InputSession:
    """Owns the text being composed and the suggestion state for it

    Every text or caret change bumps a generation counter. A fetch started
    for one generation is applied only if no later change happened while it
    was pending; otherwise its result is dropped.
    """

    def __init__(
        self,
        cache: SuggestionCache,
        on_submit: Callable[[str], None] | None = None,
        segmenter: MessageSegmenter | None = None,
    ):
        self.cache = cache
        self.on_submit = on_submit
        self.segmenter = segmenter or MessageSegmenter()
        self.controller = SelectionController()

        self.text = ""
        self.caret = 0
        self.trigger = TriggerContext.none()
        self.generation = 0
        self.loading = False
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            text=self.text,
            caret=self.caret,
            trigger=self.trigger,
            candidates=self.controller.candidates,
            selected_index=self.controller.selected_index,
            is_open=self.controller.is_open,
            loading=self.loading,
        )

    def _notify(self):
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def _filtered(self, items, trigger: TriggerContext) -> list[CandidateItem]:
        # While the keyword is still being typed, offer the whole category
        query = trigger.query if trigger.resolved else ""
        return filter_items(items, query, trigger.category)

    async def update(self, text: str, caret: int):
        """Re-evaluate suggestions after a keystroke or caret move"""
        self.text = text
        self.caret = max(0, min(caret, len(text)))
        self.trigger = parse_trigger(self.text, self.caret)
        self.generation += 1
        generation = self.generation

        if not self.trigger.active:
            self.loading = False
            self.controller.close()
            self._notify()
            return

        trigger = self.trigger
        cached = self.cache.peek(trigger.category)
        if cached is not None:
            self.loading = False
            self.controller.show(self._filtered(cached, trigger))
            self._notify()
            return

        # Candidates from another trigger must not stay selectable while loading
        self.controller.close()
        self.loading = True
        self._notify()

        items = await self.cache.get(trigger.category)
        if generation != self.generation:
            logger.debug("Discarding stale %s candidates", trigger.category.value)
            return

        self.loading = False
        self.controller.show(self._filtered(items, trigger))
        self._notify()

    async def refresh(self, category: Category):
        """Force a reload of one category and re-apply the current trigger"""
        await self.cache.get(category, force_refresh=True)
        if self.trigger.category == category:
            await self.update(self.text, self.caret)

    def _commit(self) -> bool:
        result = self.controller.commit(self.text, self.caret, self.trigger)
        if result is None:
            return False
        self.text = result.text
        self.caret = result.caret
        self.trigger = TriggerContext.none()
        self.generation += 1
        self.loading = False
        return True

    def handle_key(self, key: str, shift: bool = False) -> bool:
        """Process a navigation key

        Returns:
            True when the key was consumed by the session
        """
        key = key.lower()

        if self.controller.is_open:
            if key == KEY_DOWN:
                self.controller.move_down()
            elif key == KEY_UP:
                self.controller.move_up()
            elif key in (KEY_ENTER, KEY_TAB):
                # Disabled items swallow the key without changing anything
                if not self._commit():
                    return True
            elif key == KEY_ESCAPE:
                self.controller.close()
            else:
                return False
            self._notify()
            return True

        if key == KEY_ENTER and not shift:
            self.submit()
            return True

        return False

    def hover(self, index: int):
        if self.controller.hover(index):
            self._notify()

    def select(self, index: int) -> bool:
        """Commit the candidate at ``index`` (pointer click)"""
        if not self.controller.hover(index):
            return False
        committed = self._commit()
        self._notify()
        return committed

    def submit(self):
        """Hand the trimmed message to the submit callback and clear the input"""
        message = self.text.strip()
        if not message:
            return
        if self.on_submit is not None:
            self.on_submit(message)
        self.text = ""
        self.caret = 0
        self.trigger = TriggerContext.none()
        self.generation += 1
        self.loading = False
        self.controller.close()
        self._notify()

    def segments(self) -> SegmentedMessage:
        return self.segmenter.segment(self.text)

    def _replace_text(self, text: str):
        self.text = text
        self.caret = min(self.caret, len(text))
        self.trigger = TriggerContext.none()
        self.generation += 1
        self.loading = False
        self.controller.close()
        self._notify()

    def remove_reference(self, reference: ReferenceDescriptor):
        self._replace_text(remove_reference(self.text, reference.category, reference.label))

    def clear_references(self):
        self._replace_text(clear_references(self.text))
