"""Zoho Projects tools exposed over MCP.

Handlers are intentionally thin:

1. Resolve the calling session's :class:`ZohoClient`.
2. Build a request descriptor via :mod:`zoho_projects_mcp.endpoints`.
3. Return the JSON answer pretty-printed, or raise ``ToolError``.

Every failure (missing configuration, Zoho API error, transport error) is
reported as ``Error executing <tool>: <detail>``.
"""

import json
import logging
from typing import TYPE_CHECKING, Annotated, Any, Callable, Literal

from fastmcp import Context
from fastmcp.exceptions import ToolError
from pydantic import Field

from zoho_projects_mcp import endpoints
from zoho_projects_mcp.auth.models import RequestDescriptor
from zoho_projects_mcp.servers.dependencies import get_app_context, get_zoho_client

if TYPE_CHECKING:  # pragma: no cover
    from fastmcp import FastMCP

logger = logging.getLogger("zoho-projects-mcp.servers.projects")

READ_TAGS = {"zoho", "read"}
WRITE_TAGS = {"zoho", "write"}

ProjectId = Annotated[str, Field(description="Project ID")]
OptionalProjectId = Annotated[
    str | None, Field(description="Project ID (optional for portal-level)")
]
TaskId = Annotated[str, Field(description="Task ID")]
IssueId = Annotated[str, Field(description="Issue ID")]
Page = Annotated[int, Field(description="Page number", ge=1)]
PerPage = Annotated[int, Field(description="Items per page", ge=1)]
StartDate = Annotated[str | None, Field(description="Start date (YYYY-MM-DD)")]
EndDate = Annotated[str | None, Field(description="End date (YYYY-MM-DD)")]
TaskPriority = Literal["none", "low", "medium", "high"]
IssueSeverity = Literal["minor", "major", "critical"]
ProjectStatus = Literal["active", "template", "archived"]
SearchModule = Literal[
    "all", "projects", "tasks", "issues", "milestones", "forums", "events"
]


def format_result(data: Any, message: str | None = None) -> str:
    text = json.dumps(data, indent=2, ensure_ascii=False)
    return f"{message}:\n{text}" if message else text


async def run_tool(
    ctx: Context,
    tool_name: str,
    build: Callable[[str], RequestDescriptor],
    *,
    message: str | None = None,
    portal_scoped: bool = True,
) -> str:
    """Execute one tool call and render its result.

    *build* receives the configured portal id (empty for portal-independent
    tools) and returns the descriptor to send.
    """
    try:
        portal_id = ""
        if portal_scoped:
            portal_id = get_app_context(ctx).config.require_portal_id()
        client = await get_zoho_client(ctx)
        data = await client.execute(build(portal_id))
    except ToolError:
        raise
    except Exception as exc:
        logger.warning("Tool %s failed: %s", tool_name, exc)
        raise ToolError(f"Error executing {tool_name}: {exc}") from exc
    return format_result(data, message)


def register_project_tools(app: "FastMCP") -> None:
    """Attach the twenty Zoho Projects tools to *app*."""

    # ----- portals --------------------------------------------------------- #
    @app.tool(tags=READ_TAGS)
    async def list_portals(ctx: Context) -> str:
        """Retrieve all Zoho Projects portals"""
        return await run_tool(
            ctx, "list_portals", lambda _: endpoints.list_portals(), portal_scoped=False
        )

    @app.tool(tags=READ_TAGS)
    async def get_portal(
        ctx: Context, portal_id: Annotated[str, Field(description="Portal ID")]
    ) -> str:
        """Get details of a specific portal"""
        return await run_tool(
            ctx,
            "get_portal",
            lambda _: endpoints.get_portal(portal_id),
            portal_scoped=False,
        )

    # ----- projects -------------------------------------------------------- #
    @app.tool(tags=READ_TAGS)
    async def list_projects(ctx: Context, page: Page = 1, per_page: PerPage = 10) -> str:
        """List all projects in a portal"""
        return await run_tool(
            ctx, "list_projects", lambda p: endpoints.list_projects(p, page, per_page)
        )

    @app.tool(tags=READ_TAGS)
    async def get_project(ctx: Context, project_id: ProjectId) -> str:
        """Get details of a specific project"""
        return await run_tool(
            ctx, "get_project", lambda p: endpoints.get_project(p, project_id)
        )

    @app.tool(tags=WRITE_TAGS)
    async def create_project(
        ctx: Context,
        name: Annotated[str, Field(description="Project name")],
        description: Annotated[str | None, Field(description="Project description")] = None,
        start_date: StartDate = None,
        end_date: EndDate = None,
        is_public: Annotated[bool | None, Field(description="Is project public")] = None,
    ) -> str:
        """Create a new project"""
        return await run_tool(
            ctx,
            "create_project",
            lambda p: endpoints.create_project(
                p,
                name=name,
                description=description,
                start_date=start_date,
                end_date=end_date,
                is_public=is_public,
            ),
            message="Project created successfully",
        )

    @app.tool(tags=WRITE_TAGS)
    async def update_project(
        ctx: Context,
        project_id: ProjectId,
        name: Annotated[str | None, Field(description="Project name")] = None,
        description: Annotated[str | None, Field(description="Project description")] = None,
        start_date: StartDate = None,
        end_date: EndDate = None,
        status: Annotated[ProjectStatus | None, Field(description="Project status")] = None,
    ) -> str:
        """Update an existing project"""
        return await run_tool(
            ctx,
            "update_project",
            lambda p: endpoints.update_project(
                p,
                project_id,
                name=name,
                description=description,
                start_date=start_date,
                end_date=end_date,
                status=status,
            ),
            message="Project updated successfully",
        )

    @app.tool(tags=WRITE_TAGS)
    async def delete_project(ctx: Context, project_id: ProjectId) -> str:
        """Delete a project (moves to trash)"""
        return await run_tool(
            ctx,
            "delete_project",
            lambda p: endpoints.delete_project(p, project_id),
            message="Project moved to trash successfully",
        )

    # ----- tasks ----------------------------------------------------------- #
    @app.tool(tags=READ_TAGS)
    async def list_tasks(
        ctx: Context,
        project_id: OptionalProjectId = None,
        page: Page = 1,
        per_page: PerPage = 10,
    ) -> str:
        """List tasks from a project or portal"""
        return await run_tool(
            ctx,
            "list_tasks",
            lambda p: endpoints.list_tasks(p, project_id, page, per_page),
        )

    @app.tool(tags=READ_TAGS)
    async def get_task(ctx: Context, project_id: ProjectId, task_id: TaskId) -> str:
        """Get details of a specific task"""
        return await run_tool(
            ctx, "get_task", lambda p: endpoints.get_task(p, project_id, task_id)
        )

    @app.tool(tags=WRITE_TAGS)
    async def create_task(
        ctx: Context,
        project_id: ProjectId,
        name: Annotated[str, Field(description="Task name")],
        description: Annotated[str | None, Field(description="Task description")] = None,
        priority: Annotated[TaskPriority | None, Field(description="Task priority")] = None,
        start_date: StartDate = None,
        end_date: EndDate = None,
        assignee_zpuid: Annotated[
            str | None, Field(description="Assignee user ZPUID")
        ] = None,
    ) -> str:
        """Create a new task in a project"""
        return await run_tool(
            ctx,
            "create_task",
            lambda p: endpoints.create_task(
                p,
                project_id,
                name=name,
                description=description,
                priority=priority,
                start_date=start_date,
                end_date=end_date,
                assignee_zpuid=assignee_zpuid,
            ),
            message="Task created successfully",
        )

    @app.tool(tags=WRITE_TAGS)
    async def update_task(
        ctx: Context,
        project_id: ProjectId,
        task_id: TaskId,
        name: Annotated[str | None, Field(description="Task name")] = None,
        description: Annotated[str | None, Field(description="Task description")] = None,
        priority: Annotated[TaskPriority | None, Field(description="Task priority")] = None,
        start_date: StartDate = None,
        end_date: EndDate = None,
    ) -> str:
        """Update a task"""
        return await run_tool(
            ctx,
            "update_task",
            lambda p: endpoints.update_task(
                p,
                project_id,
                task_id,
                name=name,
                description=description,
                priority=priority,
                start_date=start_date,
                end_date=end_date,
            ),
            message="Task updated successfully",
        )

    @app.tool(tags=WRITE_TAGS)
    async def delete_task(ctx: Context, project_id: ProjectId, task_id: TaskId) -> str:
        """Delete a task"""
        return await run_tool(
            ctx,
            "delete_task",
            lambda p: endpoints.delete_task(p, project_id, task_id),
            message="Task deleted successfully",
        )

    # ----- issues ---------------------------------------------------------- #
    @app.tool(tags=READ_TAGS)
    async def list_issues(
        ctx: Context,
        project_id: OptionalProjectId = None,
        page: Page = 1,
        per_page: PerPage = 10,
    ) -> str:
        """List issues from a project or portal"""
        return await run_tool(
            ctx,
            "list_issues",
            lambda p: endpoints.list_issues(p, project_id, page, per_page),
        )

    @app.tool(tags=READ_TAGS)
    async def get_issue(ctx: Context, project_id: ProjectId, issue_id: IssueId) -> str:
        """Get details of a specific issue"""
        return await run_tool(
            ctx, "get_issue", lambda p: endpoints.get_issue(p, project_id, issue_id)
        )

    @app.tool(tags=WRITE_TAGS)
    async def create_issue(
        ctx: Context,
        project_id: ProjectId,
        title: Annotated[str, Field(description="Issue title")],
        description: Annotated[str | None, Field(description="Issue description")] = None,
        severity: Annotated[IssueSeverity | None, Field(description="Issue severity")] = None,
        due_date: Annotated[str | None, Field(description="Due date (YYYY-MM-DD)")] = None,
    ) -> str:
        """Create a new issue"""
        return await run_tool(
            ctx,
            "create_issue",
            lambda p: endpoints.create_issue(
                p,
                project_id,
                title=title,
                description=description,
                severity=severity,
                due_date=due_date,
            ),
            message="Issue created successfully",
        )

    @app.tool(tags=WRITE_TAGS)
    async def update_issue(
        ctx: Context,
        project_id: ProjectId,
        issue_id: IssueId,
        title: Annotated[str | None, Field(description="Issue title")] = None,
        description: Annotated[str | None, Field(description="Issue description")] = None,
        severity: Annotated[IssueSeverity | None, Field(description="Issue severity")] = None,
    ) -> str:
        """Update an issue"""
        return await run_tool(
            ctx,
            "update_issue",
            lambda p: endpoints.update_issue(
                p,
                project_id,
                issue_id,
                title=title,
                description=description,
                severity=severity,
            ),
            message="Issue updated successfully",
        )

    # ----- phases ---------------------------------------------------------- #
    @app.tool(tags=READ_TAGS)
    async def list_phases(
        ctx: Context, project_id: ProjectId, page: Page = 1, per_page: PerPage = 10
    ) -> str:
        """List phases/milestones from a project"""
        return await run_tool(
            ctx,
            "list_phases",
            lambda p: endpoints.list_phases(p, project_id, page, per_page),
        )

    @app.tool(tags=WRITE_TAGS)
    async def create_phase(
        ctx: Context,
        project_id: ProjectId,
        name: Annotated[str, Field(description="Phase name")],
        start_date: StartDate = None,
        end_date: EndDate = None,
        owner_zpuid: Annotated[str | None, Field(description="Owner user ZPUID")] = None,
    ) -> str:
        """Create a new phase/milestone"""
        return await run_tool(
            ctx,
            "create_phase",
            lambda p: endpoints.create_phase(
                p,
                project_id,
                name=name,
                start_date=start_date,
                end_date=end_date,
                owner_zpuid=owner_zpuid,
            ),
            message="Phase created successfully",
        )

    # ----- search & users -------------------------------------------------- #
    @app.tool(tags=READ_TAGS)
    async def search(
        ctx: Context,
        search_term: Annotated[str, Field(description="Search term/query")],
        project_id: Annotated[
            str | None, Field(description="Project ID (optional for portal-level search)")
        ] = None,
        module: Annotated[SearchModule, Field(description="Module to search in")] = "all",
        page: Page = 1,
        per_page: PerPage = 10,
    ) -> str:
        """Search across portal or project"""
        return await run_tool(
            ctx,
            "search",
            lambda p: endpoints.search(p, search_term, project_id, module, page, per_page),
        )

    @app.tool(tags=READ_TAGS)
    async def list_users(ctx: Context, project_id: OptionalProjectId = None) -> str:
        """List users in a portal or project"""
        return await run_tool(
            ctx, "list_users", lambda p: endpoints.list_users(p, project_id)
        )
