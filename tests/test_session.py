"""Tests for the input session store"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from context_refs.cache import SuggestionCache
from context_refs.models import CandidateItem, Category, error_item
from context_refs.session import InputSession


def make_session(clock, file_items, tool_items=None, on_submit=None):
    fetchers = {
        Category.FILE: AsyncMock(return_value=file_items),
        Category.TOOL: AsyncMock(return_value=tool_items or []),
        Category.TABLE: AsyncMock(return_value=[]),
    }
    cache = SuggestionCache(fetchers, clock=clock)
    return InputSession(cache, on_submit=on_submit), fetchers


async def type_text(session, text):
    await session.update(text, len(text))


@pytest.mark.asyncio
async def test_trigger_opens_filtered_list(clock, file_items):
    """Test typing a trigger fetches, filters and opens the list"""
    session, fetchers = make_session(clock, file_items)

    await type_text(session, "check #file:pack")

    assert session.controller.is_open
    assert [item.label for item in session.controller.candidates] == ["package.json"]
    assert session.controller.selected_index == 0
    assert not session.loading
    fetchers[Category.FILE].assert_awaited_once()


@pytest.mark.asyncio
async def test_cached_candidates_apply_without_fetch(clock, file_items):
    session, fetchers = make_session(clock, file_items)

    await type_text(session, "#file:")
    await type_text(session, "#file:ind")

    assert [item.label for item in session.controller.candidates] == ["index.ts"]
    fetchers[Category.FILE].assert_awaited_once()


@pytest.mark.asyncio
async def test_no_match_closes(clock, file_items):
    session, _ = make_session(clock, file_items)

    await type_text(session, "#file:pack")
    await type_text(session, "#file:zzz")
    assert not session.controller.is_open


@pytest.mark.asyncio
async def test_leaving_trigger_closes(clock, file_items):
    session, _ = make_session(clock, file_items)

    await type_text(session, "#file:")
    assert session.controller.is_open
    await session.update("#file: done", 3)
    assert session.controller.is_open
    await type_text(session, "no trigger")
    assert not session.controller.is_open


@pytest.mark.asyncio
async def test_provisional_trigger_shows_category(clock, file_items):
    """Test a partially typed keyword offers the whole inferred category"""
    session, _ = make_session(clock, file_items)

    await type_text(session, "#fi")

    assert session.trigger.category == Category.FILE
    assert not session.trigger.resolved
    assert len(session.controller.candidates) == len(file_items)


@pytest.mark.asyncio
async def test_commit_with_enter(clock, file_items):
    """Test Enter accepts the selection and rewrites the text"""
    session, _ = make_session(clock, file_items)
    await type_text(session, "check #file:pack")

    assert session.handle_key("Enter")

    assert session.text == "check #file:package.json"
    assert session.caret == len("check #file:package.json")
    assert not session.controller.is_open


@pytest.mark.asyncio
async def test_tab_commits_after_navigation(clock, file_items, tool_items):
    session, _ = make_session(clock, file_items, tool_items)
    await type_text(session, "run #tool:github:")

    session.handle_key("down")
    assert session.handle_key("tab")

    assert session.text == "run #tool:list_issues"


@pytest.mark.asyncio
async def test_arrow_keys_wrap(clock, file_items):
    session, _ = make_session(clock, file_items)
    await type_text(session, "#files")

    session.handle_key("up")
    assert session.controller.selected_index == len(file_items) - 1
    session.handle_key("down")
    assert session.controller.selected_index == 0


@pytest.mark.asyncio
async def test_escape_closes(clock, file_items):
    session, _ = make_session(clock, file_items)
    await type_text(session, "#file:")

    assert session.handle_key("Escape")
    assert not session.controller.is_open
    assert session.text == "#file:"


@pytest.mark.asyncio
async def test_enter_on_error_item_is_swallowed(clock):
    """Test Enter on a disabled item neither commits nor submits"""
    on_submit = MagicMock()
    session, _ = make_session(clock, [error_item("no-files", "No files found", "none")], on_submit=on_submit)
    await type_text(session, "#file:")

    assert session.handle_key("enter")

    assert session.text == "#file:"
    assert session.controller.is_open
    on_submit.assert_not_called()


@pytest.mark.asyncio
async def test_enter_when_closed_submits_and_clears(clock, file_items):
    on_submit = MagicMock()
    session, _ = make_session(clock, file_items, on_submit=on_submit)
    await type_text(session, "  use #file:package.json please  ")
    session.handle_key("escape")

    assert session.handle_key("enter")

    on_submit.assert_called_once_with("use #file:package.json please")
    assert session.text == ""
    assert session.caret == 0


@pytest.mark.asyncio
async def test_shift_enter_is_not_handled(clock, file_items):
    on_submit = MagicMock()
    session, _ = make_session(clock, file_items, on_submit=on_submit)
    await type_text(session, "hello")

    assert not session.handle_key("enter", shift=True)
    on_submit.assert_not_called()
    assert session.text == "hello"


@pytest.mark.asyncio
async def test_blank_message_is_not_submitted(clock, file_items):
    on_submit = MagicMock()
    session, _ = make_session(clock, file_items, on_submit=on_submit)
    await type_text(session, "   ")

    session.handle_key("enter")
    on_submit.assert_not_called()


@pytest.mark.asyncio
async def test_other_keys_not_handled(clock, file_items):
    session, _ = make_session(clock, file_items)
    await type_text(session, "#file:")
    assert not session.handle_key("a")
    assert not session.handle_key("left")


@pytest.mark.asyncio
async def test_hover_and_click(clock, file_items):
    session, _ = make_session(clock, file_items)
    await type_text(session, "see #file:")

    session.hover(1)
    assert session.controller.selected_index == 1

    assert session.select(2)
    assert session.text == "see #file:src/"


@pytest.mark.asyncio
async def test_stale_fetch_is_discarded(clock, file_items, tool_items):
    """Test a fetch that resolves after the trigger changed does not overwrite the list"""
    release = asyncio.Event()

    async def slow_files():
        await release.wait()
        return file_items

    cache = SuggestionCache(
        {Category.FILE: slow_files, Category.TOOL: AsyncMock(return_value=tool_items)},
        clock=clock,
    )
    session = InputSession(cache)

    pending = asyncio.create_task(type_text(session, "#file:"))
    await asyncio.sleep(0)
    assert session.loading

    await type_text(session, "#tool:")
    assert [item.label for item in session.controller.candidates][0] == "create_issue"

    release.set()
    await pending

    assert session.controller.candidates[0].category == Category.TOOL
    # The stale result still lands in the cache
    assert cache.peek(Category.FILE) is not None


@pytest.mark.asyncio
async def test_subscribers_are_notified(clock, file_items):
    session, _ = make_session(clock, file_items)
    snapshots = []
    unsubscribe = session.subscribe(snapshots.append)

    await type_text(session, "#file:pack")

    assert snapshots[0].loading
    assert snapshots[-1].is_open
    assert snapshots[-1].text == "#file:pack"
    assert [item.label for item in snapshots[-1].candidates] == ["package.json"]

    count = len(snapshots)
    session.handle_key("down")
    assert len(snapshots) == count + 1

    unsubscribe()
    session.handle_key("down")
    assert len(snapshots) == count + 1


@pytest.mark.asyncio
async def test_refresh_reloads_category(clock, file_items):
    session, fetchers = make_session(clock, file_items)
    await type_text(session, "#file:")

    await session.refresh(Category.FILE)

    assert fetchers[Category.FILE].await_count == 2
    assert session.controller.is_open


@pytest.mark.asyncio
async def test_segments_and_reference_removal(clock, file_items):
    session, _ = make_session(clock, file_items)
    await type_text(session, "read #file:a.txt and #tool:create_issue now")

    message = session.segments()
    assert [r.id for r in message.references] == ["file:a.txt", "tool:create_issue"]

    session.remove_reference(message.references[0])
    assert session.text == "read and #tool:create_issue now"

    session.clear_references()
    assert session.text == "read and now"
    assert not session.controller.is_open


@pytest.mark.asyncio
async def test_table_trigger(clock, file_items):
    tables = [CandidateItem(id="table-users", label="users", category=Category.TABLE)]
    cache = SuggestionCache({Category.TABLE: AsyncMock(return_value=tables)}, clock=clock)
    session = InputSession(cache)

    await type_text(session, "#db:us")
    session.handle_key("enter")

    assert session.text == "#db:users"


@pytest.mark.asyncio
async def test_list_closes_while_other_category_loads(clock, file_items):
    """Test Enter during a fetch for a new trigger cannot commit the previous list"""
    release = asyncio.Event()

    async def slow_tables():
        await release.wait()
        return [CandidateItem(id="table-users", label="users", category=Category.TABLE)]

    cache = SuggestionCache(
        {Category.FILE: AsyncMock(return_value=file_items), Category.TABLE: slow_tables},
        clock=clock,
    )
    session = InputSession(cache)
    text = "#file:pack x #db:"

    await session.update(text, 10)
    assert session.controller.is_open
    assert session.controller.selected_item.label == "package.json"

    pending = asyncio.create_task(session.update(text, len(text)))
    await asyncio.sleep(0)
    assert session.loading
    assert not session.controller.is_open

    assert not session.handle_key("tab")
    assert session.controller.selected_item is None
    assert session.text == text

    release.set()
    await pending

    assert session.controller.selected_item.label == "users"
    assert session.handle_key("enter")
    assert session.text == "#file:pack x #db:users"
