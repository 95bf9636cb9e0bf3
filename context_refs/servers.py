"""Map tool names to the MCP server that owns them"""

from typing import NamedTuple


class ServerInfo(NamedTuple):
    badge: str
    color: str


GENERIC_SERVER = ServerInfo("mcp", "#6f42c1")
SQLITE_SERVER = ServerInfo("sqlite", "#003B57")

NOTION_TOOLS = frozenset(
    {
        "API-create-a-comment",
        "API-create-a-database",
        "API-delete-a-block",
        "API-get-block-children",
        "API-get-self",
        "API-get-user",
        "API-get-users",
        "API-patch-block-children",
        "API-patch-page",
        "API-post-database-query",
        "API-post-page",
        "API-post-search",
        "API-retrieve-a-block",
        "API-retrieve-a-comment",
        "API-retrieve-a-database",
        "API-retrieve-a-page",
        "API-retrieve-a-page-property",
        "API-update-a-block",
        "API-update-a-database",
    }
)

SQLITE_TOOLS = frozenset(
    {"append_insight", "create_table", "describe_table", "list_tables", "read_query", "write_query"}
)

GITHUB_TOOLS = frozenset(
    {
        "add_comment_to_pending_review",
        "add_issue_comment",
        "add_sub_issue",
        "assign_copilot_to_issue",
        "cancel_workflow_run",
        "create_and_submit_pull_request_review",
        "create_branch",
        "create_gist",
        "create_issue",
        "create_or_update_file",
        "create_pending_pull_request_review",
        "create_pull_request",
        "create_repository",
        "delete_file",
        "delete_pending_pull_request_review",
        "delete_workflow_run_logs",
        "dismiss_notification",
        "download_workflow_run_artifact",
        "fork_repository",
        "get_code_scanning_alert",
        "get_commit",
        "get_dependabot_alert",
        "get_discussion",
        "get_discussion_comments",
        "get_file_contents",
        "get_issue",
        "get_issue_comments",
        "get_job_logs",
        "get_latest_release",
        "get_me",
        "get_notification_details",
        "get_pull_request",
        "get_pull_request_comments",
        "get_pull_request_diff",
        "get_pull_request_files",
        "get_pull_request_reviews",
        "get_pull_request_status",
        "get_release_by_tag",
        "get_secret_scanning_alert",
        "get_tag",
        "get_team_members",
        "get_teams",
        "get_workflow_run",
        "get_workflow_run_logs",
        "get_workflow_run_usage",
        "list_branches",
        "list_code_scanning_alerts",
        "list_commits",
        "list_dependabot_alerts",
        "list_discussion_categories",
        "list_discussions",
        "list_gists",
        "list_issue_types",
        "list_issues",
        "list_notifications",
        "list_pull_requests",
        "list_releases",
        "list_secret_scanning_alerts",
        "list_sub_issues",
        "list_tags",
        "list_workflow_jobs",
        "list_workflow_run_artifacts",
        "list_workflow_runs",
        "list_workflows",
        "manage_notification_subscription",
        "manage_repository_notification_subscription",
        "mark_all_notifications_read",
        "merge_pull_request",
        "push_files",
        "remove_sub_issue",
        "reprioritize_sub_issue",
        "request_copilot_review",
        "rerun_failed_jobs",
        "rerun_workflow_run",
        "run_workflow",
        "search_code",
        "search_issues",
        "search_orgs",
        "search_pull_requests",
        "search_repositories",
        "search_users",
        "submit_pending_pull_request_review",
        "update_gist",
        "update_issue",
        "update_pull_request",
        "update_pull_request_branch",
    }
)

FILESYSTEM_TOOLS = frozenset(
    {
        "create_directory",
        "directory_tree",
        "edit_file",
        "get_file_info",
        "list_allowed_directories",
        "list_directory",
        "move_file",
        "read_file",
        "read_multiple_files",
        "search_files",
        "write_file",
    }
)

# Checked in order; the first server listing the tool wins
DEFAULT_SERVERS: list[tuple[ServerInfo, frozenset[str]]] = [
    (ServerInfo("notion", "#000000"), NOTION_TOOLS),
    (SQLITE_SERVER, SQLITE_TOOLS),
    (ServerInfo("github", "#24292e"), GITHUB_TOOLS),
    (ServerInfo("filesystem", "#0366d6"), FILESYSTEM_TOOLS),
]


class ServerTagger:
    """Resolve the badge and colour of the server owning a tool

    Extra servers are consulted before the built-in table, so a
    configuration can claim tools the defaults already know about.
    """

    def __init__(
        self,
        extra_servers: list[tuple[ServerInfo, frozenset[str]]] | None = None,
        fallback: ServerInfo = GENERIC_SERVER,
    ):
        self.servers = list(extra_servers or []) + DEFAULT_SERVERS
        self.fallback = fallback

    @classmethod
    def from_config(cls, config) -> "ServerTagger":
        extra = [
            (ServerInfo(badge, server.color), frozenset(server.tools))
            for badge, server in config.server_badges.items()
        ]
        return cls(extra_servers=extra)

    def lookup(self, tool_name: str) -> ServerInfo:
        for info, tools in self.servers:
            if tool_name in tools:
                return info
        return self.fallback


_default_tagger = ServerTagger()


def get_server_info(tool_name: str) -> ServerInfo:
    """Badge and colour for a tool name using the built-in table"""
    return _default_tagger.lookup(tool_name)
