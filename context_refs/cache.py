"""Per-category cache of candidate items"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence

from .config import ContextRefsConfig
from .gateway import ResourceGateway
from .models import CacheEntry, CandidateItem, Category, error_item
from .servers import ServerTagger
from .sources import fetch_files, fetch_tables, fetch_tools

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Sequence[CandidateItem]]]

DEFAULT_TTL_SECONDS = 30.0

# Label and description of the single item stored when a fetch fails
FAILURE_ITEMS: dict[Category, tuple[str, str, str]] = {
    Category.FILE: ("not-connected", "Not connected to MCP server", "Please check your MCP server connection"),
    Category.TABLE: ("db-error", "Error fetching tables", "Could not connect to SQLite database"),
    Category.TOOL: ("tools-error", "Error loading tools", "Failed to fetch tools from MCP server"),
}


def failure_item(category: Category, timed_out: bool = False) -> CandidateItem:
    if timed_out:
        return error_item(
            f"{category.value}-timeout",
            f"Timed out loading {category.value}s",
            "The MCP server did not answer in time",
        )
    item_id, label, description = FAILURE_ITEMS.get(
        category, (f"{category.value}-error", f"Error loading {category.value}s", "The fetch failed")
    )
    return error_item(item_id, label, description)


class SuggestionCache:
    """Cache candidate lists per category

    A loaded entry is served without suspending while it is younger than the
    category's TTL (``None`` means it never expires). Concurrent requests for
    a category that is already being fetched share that fetch. Failures are
    stored as a single error item so lookups inside the TTL window don't hit
    the gateway again.
    """

    def __init__(
        self,
        fetchers: dict[Category, Fetcher],
        ttls: dict[Category, float | None] | None = None,
        fetch_timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.fetchers = fetchers
        self.ttls = ttls if ttls is not None else {}
        self.fetch_timeout = fetch_timeout
        self.clock = clock
        self._entries: dict[Category, CacheEntry] = {}
        self._inflight: dict[Category, asyncio.Task] = {}

    @classmethod
    def from_gateway(
        cls,
        gateway: ResourceGateway,
        config: ContextRefsConfig,
        tagger: ServerTagger | None = None,
    ) -> "SuggestionCache":
        tagger = tagger or ServerTagger.from_config(config)
        return cls(
            fetchers={
                Category.FILE: lambda: fetch_files(gateway, config),
                Category.TABLE: lambda: fetch_tables(gateway),
                Category.TOOL: lambda: fetch_tools(gateway, tagger),
            },
            ttls={
                Category.FILE: config.cache_ttl_seconds,
                Category.TABLE: config.cache_ttl_seconds,
                Category.TOOL: None,
            },
            fetch_timeout=config.fetch_timeout_seconds,
        )

    def _ttl(self, category: Category) -> float | None:
        return self.ttls.get(category, DEFAULT_TTL_SECONDS)

    def _is_fresh(self, category: Category, entry: CacheEntry) -> bool:
        if not entry.loaded:
            return False
        ttl = self._ttl(category)
        return ttl is None or (self.clock() - entry.fetched_at) < ttl

    def entry(self, category: Category) -> CacheEntry | None:
        return self._entries.get(category)

    def peek(self, category: Category) -> tuple[CandidateItem, ...] | None:
        """Fresh cached items, or None; never fetches"""
        entry = self._entries.get(category)
        if entry is not None and self._is_fresh(category, entry):
            return entry.items
        return None

    def is_loading(self, category: Category) -> bool:
        return category in self._inflight

    def invalidate(self, category: Category | None = None):
        """Drop one category's entry, or every entry"""
        if category is None:
            self._entries.clear()
        else:
            self._entries.pop(category, None)

    async def get(self, category: Category, force_refresh: bool = False) -> tuple[CandidateItem, ...]:
        """Candidates for a category, fetching them if needed

        Args:
            category: Category to resolve
            force_refresh: Ignore a fresh entry and fetch again

        Returns:
            The cached or newly fetched items; failures yield one error item
        """
        if category not in self.fetchers:
            raise ValueError(f"No fetcher registered for {category.value}")

        if not force_refresh:
            cached = self.peek(category)
            if cached is not None:
                logger.debug("Returning cached %s candidates", category.value)
                return cached

        task = self._inflight.get(category)
        if task is None:
            task = asyncio.ensure_future(self._load(category))
            self._inflight[category] = task
            task.add_done_callback(lambda done: self._forget(category, done))
        else:
            logger.debug("Joining in-flight %s fetch", category.value)

        # A cancelled waiter must not cancel the fetch others are waiting on
        return await asyncio.shield(task)

    def _forget(self, category: Category, task: asyncio.Task):
        if self._inflight.get(category) is task:
            del self._inflight[category]

    async def _load(self, category: Category) -> tuple[CandidateItem, ...]:
        logger.debug("Fetching %s candidates", category.value)
        try:
            items = tuple(await asyncio.wait_for(self.fetchers[category](), timeout=self.fetch_timeout))
        except TimeoutError:
            logger.warning("Timed out fetching %s candidates after %ss", category.value, self.fetch_timeout)
            items = (failure_item(category, timed_out=True),)
        except Exception as e:
            logger.warning("Error fetching %s candidates: %s", category.value, e)
            items = (failure_item(category),)

        self._entries[category] = CacheEntry(items=items, fetched_at=self.clock(), loaded=True)
        return items
