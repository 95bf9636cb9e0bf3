"""Keyboard-driven selection of a candidate"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from .models import CandidateItem, TriggerContext, format_token


class SelectionState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"


@dataclass(frozen=True)
class Commit:
    """Text and caret after accepting a candidate"""

    text: str
    caret: int
    item: CandidateItem


class SelectionController:
    """State machine for the suggestion list

    Closed, or Open with a non-empty candidate list and a selected index that
    wraps around in both directions.
    """

    def __init__(self):
        self.state = SelectionState.CLOSED
        self.candidates: tuple[CandidateItem, ...] = ()
        self.selected_index = 0

    @property
    def is_open(self) -> bool:
        return self.state == SelectionState.OPEN

    @property
    def selected_item(self) -> CandidateItem | None:
        if not self.is_open:
            return None
        return self.candidates[self.selected_index]

    def show(self, candidates: Sequence[CandidateItem]):
        """Open on a new candidate list, or close if it is empty"""
        if not candidates:
            self.close()
            return
        self.candidates = tuple(candidates)
        self.selected_index = 0
        self.state = SelectionState.OPEN

    def close(self):
        self.state = SelectionState.CLOSED
        self.candidates = ()
        self.selected_index = 0

    def move_down(self):
        if self.is_open:
            self.selected_index = (self.selected_index + 1) % len(self.candidates)

    def move_up(self):
        if self.is_open:
            count = len(self.candidates)
            self.selected_index = (self.selected_index - 1 + count) % count

    def hover(self, index: int) -> bool:
        """Select the candidate under the pointer; error items are ignored"""
        if not self.is_open or not 0 <= index < len(self.candidates):
            return False
        if self.candidates[index].disabled:
            return False
        self.selected_index = index
        return True

    def commit(self, text: str, caret: int, trigger: TriggerContext) -> Commit | None:
        """Replace the trigger span with the token of the selected candidate

        Returns None, leaving the state unchanged, when nothing is open, the
        trigger is inactive or the selected item is disabled.
        """
        item = self.selected_item
        if item is None or item.disabled or not trigger.active or trigger.start_offset < 0:
            return None

        caret = max(trigger.start_offset, min(caret, len(text)))
        token = format_token(item.category, item.label)
        new_text = text[: trigger.start_offset] + token + text[caret:]

        self.close()
        return Commit(text=new_text, caret=trigger.start_offset + len(token), item=item)
