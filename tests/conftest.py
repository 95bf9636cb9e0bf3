"""Pytest configuration and fixtures"""

from unittest.mock import AsyncMock

import pytest

from context_refs.config import ContextRefsConfig
from context_refs.gateway import ToolInfo
from context_refs.models import CandidateItem, Category


class FakeClock:
    """Monotonic clock the tests can move forward"""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return ContextRefsConfig(cache_ttl_seconds=30.0, fetch_timeout_seconds=5.0)


@pytest.fixture
def file_items():
    return [
        CandidateItem(
            id="file-/repo/package.json",
            label="package.json",
            description="File: /repo/package.json",
            category=Category.FILE,
            path="/repo/package.json",
            icon="📦",
        ),
        CandidateItem(
            id="file-/repo/index.ts",
            label="index.ts",
            description="File: /repo/index.ts",
            category=Category.FILE,
            path="/repo/index.ts",
            icon="📘",
        ),
        CandidateItem(
            id="file-/repo/src",
            label="src/",
            description="Directory: /repo/src",
            category=Category.FILE,
            path="/repo/src",
            icon="📁",
        ),
    ]


@pytest.fixture
def tool_items():
    return [
        CandidateItem(
            id="tool-0",
            label="create_issue",
            description="Create a new issue in a GitHub repository",
            category=Category.TOOL,
            icon="🔧",
            server_badge="github",
            server_color="#24292e",
        ),
        CandidateItem(
            id="tool-1",
            label="list_issues",
            description="List issues in a GitHub repository",
            category=Category.TOOL,
            icon="🔧",
            server_badge="github",
            server_color="#24292e",
        ),
        CandidateItem(
            id="tool-2",
            label="create_directory",
            description="Create a new directory",
            category=Category.TOOL,
            icon="🔧",
            server_badge="filesystem",
            server_color="#0366d6",
        ),
        CandidateItem(
            id="tool-3",
            label="API-post-page",
            description="Notion | Create a page",
            category=Category.TOOL,
            icon="🔧",
            server_badge="notion",
            server_color="#000000",
        ),
    ]


@pytest.fixture
def gateway():
    """Gateway double serving a small directory tree, two tables and two tools"""
    listings = {
        "/repo": "[FILE] package.json\n[DIR] src\n[DIR] node_modules\n[FILE] .DS_Store\n[FILE] .env",
        "/repo/src": "[FILE] index.ts\nnot a listing line\n[DIR] components",
        "/repo/src/components": "[FILE] Button.tsx",
    }

    async def list_directory(path):
        if path not in listings:
            raise RuntimeError(f"no such directory: {path}")
        return listings[path]

    fake = AsyncMock()
    fake.list_allowed_directories = AsyncMock(return_value="Allowed directories:\n/repo\n")
    fake.list_directory = AsyncMock(side_effect=list_directory)
    fake.list_tables = AsyncMock(return_value="[{'name': 'users'}, {'name': 'orders'}]")
    fake.list_tools = AsyncMock(
        return_value=[
            ToolInfo(name="create_issue", description="Create a new issue"),
            ToolInfo(name="read_file", description="Read a file"),
        ]
    )
    return fake
