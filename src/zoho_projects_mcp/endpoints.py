"""Request builders for the Zoho Projects v3 resources exposed as tools.

Every builder returns a :class:`RequestDescriptor` whose endpoint is relative
to ``{api_domain}/api/v3``.  Portal-scoped builders take the configured portal
id as their first argument.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote, urlencode

from zoho_projects_mcp.auth.models import RequestDescriptor

DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 10


def _query(**params: Any) -> str:
    return "?" + urlencode(params, quote_via=quote)


def _fields(**values: Any) -> dict[str, Any]:
    """Keep only the fields the caller actually supplied."""
    return {k: v for k, v in values.items() if v is not None}


def _portal(portal_id: str) -> str:
    return f"/portal/{portal_id}"


def _project(portal_id: str, project_id: str) -> str:
    return f"{_portal(portal_id)}/projects/{project_id}"


def _scope(portal_id: str, project_id: str | None) -> str:
    """Project-level path when *project_id* is given, else portal-level."""
    return _project(portal_id, project_id) if project_id else _portal(portal_id)


# --------------------------------------------------------------------------- #
# Portals                                                                     #
# --------------------------------------------------------------------------- #
def list_portals() -> RequestDescriptor:
    return RequestDescriptor("/portals")


def get_portal(portal_id: str) -> RequestDescriptor:
    return RequestDescriptor(_portal(portal_id))


# --------------------------------------------------------------------------- #
# Projects                                                                    #
# --------------------------------------------------------------------------- #
def list_projects(
    portal_id: str, page: int = DEFAULT_PAGE, per_page: int = DEFAULT_PER_PAGE
) -> RequestDescriptor:
    return RequestDescriptor(
        f"{_portal(portal_id)}/projects" + _query(page=page, per_page=per_page)
    )


def get_project(portal_id: str, project_id: str) -> RequestDescriptor:
    return RequestDescriptor(_project(portal_id, project_id))


def create_project(portal_id: str, **fields: Any) -> RequestDescriptor:
    return RequestDescriptor(
        f"{_portal(portal_id)}/projects", "POST", _fields(**fields)
    )


def update_project(portal_id: str, project_id: str, **fields: Any) -> RequestDescriptor:
    return RequestDescriptor(_project(portal_id, project_id), "PATCH", _fields(**fields))


def delete_project(portal_id: str, project_id: str) -> RequestDescriptor:
    # Zoho moves projects to the trash instead of deleting them outright.
    return RequestDescriptor(f"{_project(portal_id, project_id)}/trash", "POST")


# --------------------------------------------------------------------------- #
# Tasks                                                                       #
# --------------------------------------------------------------------------- #
def list_tasks(
    portal_id: str,
    project_id: str | None = None,
    page: int = DEFAULT_PAGE,
    per_page: int = DEFAULT_PER_PAGE,
) -> RequestDescriptor:
    return RequestDescriptor(
        f"{_scope(portal_id, project_id)}/tasks" + _query(page=page, per_page=per_page)
    )


def get_task(portal_id: str, project_id: str, task_id: str) -> RequestDescriptor:
    return RequestDescriptor(f"{_project(portal_id, project_id)}/tasks/{task_id}")


def create_task(portal_id: str, project_id: str, **fields: Any) -> RequestDescriptor:
    return RequestDescriptor(
        f"{_project(portal_id, project_id)}/tasks", "POST", _fields(**fields)
    )


def update_task(
    portal_id: str, project_id: str, task_id: str, **fields: Any
) -> RequestDescriptor:
    return RequestDescriptor(
        f"{_project(portal_id, project_id)}/tasks/{task_id}", "PATCH", _fields(**fields)
    )


def delete_task(portal_id: str, project_id: str, task_id: str) -> RequestDescriptor:
    return RequestDescriptor(f"{_project(portal_id, project_id)}/tasks/{task_id}", "DELETE")


# --------------------------------------------------------------------------- #
# Issues                                                                      #
# --------------------------------------------------------------------------- #
def list_issues(
    portal_id: str,
    project_id: str | None = None,
    page: int = DEFAULT_PAGE,
    per_page: int = DEFAULT_PER_PAGE,
) -> RequestDescriptor:
    return RequestDescriptor(
        f"{_scope(portal_id, project_id)}/issues" + _query(page=page, per_page=per_page)
    )


def get_issue(portal_id: str, project_id: str, issue_id: str) -> RequestDescriptor:
    return RequestDescriptor(f"{_project(portal_id, project_id)}/issues/{issue_id}")


def create_issue(portal_id: str, project_id: str, **fields: Any) -> RequestDescriptor:
    return RequestDescriptor(
        f"{_project(portal_id, project_id)}/issues", "POST", _fields(**fields)
    )


def update_issue(
    portal_id: str, project_id: str, issue_id: str, **fields: Any
) -> RequestDescriptor:
    return RequestDescriptor(
        f"{_project(portal_id, project_id)}/issues/{issue_id}", "PATCH", _fields(**fields)
    )


# --------------------------------------------------------------------------- #
# Phases (milestones)                                                         #
# --------------------------------------------------------------------------- #
def list_phases(
    portal_id: str,
    project_id: str,
    page: int = DEFAULT_PAGE,
    per_page: int = DEFAULT_PER_PAGE,
) -> RequestDescriptor:
    return RequestDescriptor(
        f"{_project(portal_id, project_id)}/phases" + _query(page=page, per_page=per_page)
    )


def create_phase(portal_id: str, project_id: str, **fields: Any) -> RequestDescriptor:
    return RequestDescriptor(
        f"{_project(portal_id, project_id)}/phases", "POST", _fields(**fields)
    )


# --------------------------------------------------------------------------- #
# Search & users                                                              #
# --------------------------------------------------------------------------- #
def search(
    portal_id: str,
    search_term: str,
    project_id: str | None = None,
    module: str = "all",
    page: int = DEFAULT_PAGE,
    per_page: int = DEFAULT_PER_PAGE,
) -> RequestDescriptor:
    if project_id:
        query = _query(search_term=search_term, module=module, page=page, per_page=per_page)
    else:
        # portal-wide search is limited to active projects
        query = _query(
            search_term=search_term,
            module=module,
            status="active",
            page=page,
            per_page=per_page,
        )
    return RequestDescriptor(f"{_scope(portal_id, project_id)}/search" + query)


def list_users(portal_id: str, project_id: str | None = None) -> RequestDescriptor:
    return RequestDescriptor(f"{_scope(portal_id, project_id)}/users")
