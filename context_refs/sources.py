"""Build candidate lists from gateway listings

Each ``fetch_*`` function returns a complete list of candidates. Empty
listings come back as a single descriptive error item; transport failures
propagate so the cache can record them.
"""

import ast
import json
import logging
import re

from .config import ContextRefsConfig
from .gateway import ResourceGateway, ToolInfo
from .models import CandidateItem, Category, error_item
from .servers import SQLITE_SERVER, ServerTagger

logger = logging.getLogger(__name__)

DIRECTORY_ENTRY = re.compile(r"^\[(FILE|DIR)\]\s+(.+)$")
ALLOWED_DIRECTORIES_HEADER = "Allowed directories"

DIRECTORY_ICON = "📁"
TABLE_ICON = "🗃️"
TOOL_ICON = "🔧"

_EXTENSION_ICONS = {
    "ts": "📘",
    "tsx": "📘",
    "js": "📄",
    "jsx": "📄",
    "json": "📦",
    "md": "📖",
    "css": "🎨",
    "html": "🌐",
}


def get_file_icon(file_name: str) -> str:
    extension = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else ""
    if extension in _EXTENSION_ICONS:
        return _EXTENSION_ICONS[extension]
    if "config" in file_name:
        return "⚙️"
    return "📄"


def parse_allowed_directories(text: str) -> list[str]:
    """Extract root paths from a list_allowed_directories response"""
    roots = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith(ALLOWED_DIRECTORIES_HEADER):
            continue
        roots.append(line)
    return roots


def parse_directory_listing(text: str) -> list[tuple[bool, str]]:
    """Parse ``[FILE] name`` / ``[DIR] name`` lines into (is_directory, name)

    Lines in any other format are skipped.
    """
    entries = []
    for line in text.splitlines():
        match = DIRECTORY_ENTRY.match(line.strip())
        if match:
            entries.append((match.group(1) == "DIR", match.group(2).strip()))
    return entries


class DirectoryWalker:
    """Recursively list every directory reachable from the allowed roots"""

    def __init__(self, gateway: ResourceGateway, config: ContextRefsConfig):
        self.gateway = gateway
        self.max_depth = config.max_depth
        self.skip_dirs = set(config.skip_dirs)
        self.allowed_dotfiles = set(config.allowed_dotfiles)

    def should_skip(self, name: str) -> bool:
        if name in self.skip_dirs:
            return True
        return name.startswith(".") and name not in self.allowed_dotfiles

    async def walk(self, dir_path: str, depth: int = 0) -> list[CandidateItem]:
        """List ``dir_path`` and its sub-directories down to ``max_depth``

        Failures below the root are logged and the directory is skipped.
        """
        if depth >= self.max_depth:
            return []

        try:
            listing = await self.gateway.list_directory(dir_path)
        except Exception as e:
            if depth == 0:
                raise
            logger.warning("Error listing directory %s: %s", dir_path, e)
            return []

        items: list[CandidateItem] = []
        for is_directory, name in parse_directory_listing(listing):
            if self.should_skip(name):
                continue

            full_path = f"{dir_path.rstrip('/')}/{name}"
            items.append(
                CandidateItem(
                    id=f"file-{full_path}",
                    label=f"{name}/" if is_directory else name,
                    description=f"{'Directory' if is_directory else 'File'}: {full_path}",
                    category=Category.FILE,
                    path=full_path,
                    icon=DIRECTORY_ICON if is_directory else get_file_icon(name),
                )
            )
            if is_directory:
                items.extend(await self.walk(full_path, depth + 1))

        return items


async def fetch_files(gateway: ResourceGateway, config: ContextRefsConfig) -> list[CandidateItem]:
    roots = parse_allowed_directories(await gateway.list_allowed_directories())
    if not roots:
        return [error_item("no-dirs", "No directories accessible", "No allowed directories found")]

    walker = DirectoryWalker(gateway, config)
    files: list[CandidateItem] = []
    for root in roots:
        logger.debug("Scanning directory %s", root)
        try:
            files.extend(await walker.walk(root))
        except Exception as e:
            # One unreadable root must not hide the others
            if len(roots) == 1:
                raise
            logger.warning("Error listing allowed directory %s: %s", root, e)

    if not files:
        return [error_item("no-files", "No files found", "No accessible files found in allowed directories")]

    logger.info("Found %d files and directories", len(files))
    return files


TABLE_RECORD = re.compile(r"\{[^{}]*\}")

_LITERAL_ERRORS = (ValueError, SyntaxError, TypeError, MemoryError, RecursionError)


def _load_literal(text: str):
    for loader in (json.loads, ast.literal_eval):
        try:
            return loader(text)
        except _LITERAL_ERRORS:
            continue
    return None


def _record_name(record) -> str | None:
    if isinstance(record, dict) and "name" in record:
        return str(record["name"])
    if isinstance(record, str):
        return record
    return None


def parse_table_names(text: str) -> list[str]:
    """Extract table names from a list_tables response

    Accepts a literal list of ``{"name": ...}`` records (JSON or Python repr)
    or plain text with one table per line. When the list as a whole cannot be
    parsed, each record is parsed on its own and unreadable ones are skipped.
    """
    stripped = text.strip()
    if stripped.startswith("["):
        records = _load_literal(stripped)
        if isinstance(records, list):
            return [name for name in map(_record_name, records) if name is not None]

        names = []
        for match in TABLE_RECORD.finditer(stripped):
            name = _record_name(_load_literal(match.group(0)))
            if name is None:
                logger.debug("Skipping unreadable table record %s", match.group(0))
                continue
            names.append(name)
        if names:
            return names

    names = []
    for line in stripped.splitlines():
        line = line.strip()
        if not line or "Table Name" in line or "---" in line:
            continue
        names.append(line)
    return names


async def fetch_tables(gateway: ResourceGateway) -> list[CandidateItem]:
    names = parse_table_names(await gateway.list_tables())
    if not names:
        return [
            error_item(
                "no-tables",
                "No tables found",
                "The database has no tables",
                server_badge=SQLITE_SERVER.badge,
                server_color=SQLITE_SERVER.color,
            )
        ]

    logger.info("Found %d tables", len(names))
    return [
        CandidateItem(
            id=f"table-{name}",
            label=name,
            description=f"Database table: {name}",
            category=Category.TABLE,
            icon=TABLE_ICON,
            server_badge=SQLITE_SERVER.badge,
            server_color=SQLITE_SERVER.color,
        )
        for name in names
    ]


def tool_items(tools: list[ToolInfo], tagger: ServerTagger) -> list[CandidateItem]:
    items = []
    for index, tool in enumerate(tools):
        server = tagger.lookup(tool.name)
        items.append(
            CandidateItem(
                id=f"tool-{index}",
                label=tool.name,
                description=tool.description,
                category=Category.TOOL,
                icon=TOOL_ICON,
                server_badge=server.badge,
                server_color=server.color,
            )
        )
    return items


async def fetch_tools(gateway: ResourceGateway, tagger: ServerTagger) -> list[CandidateItem]:
    tools = await gateway.list_tools()
    if not tools:
        return [error_item("no-tools", "No tools available", "The MCP server reported no tools")]

    logger.info("Found %d tools", len(tools))
    return tool_items(tools, tagger)
