"""
Project role → scope mapping and the access checks used by dashboard routes.

Every project-scoped dashboard action names the scope it needs; a user holds
a scope when their role in that project grants it.
"""

from enum import Enum
from uuid import UUID

from tracedeck.api.v1.helpers.responses import forbidden_response
from tracedeck.models.iam.enums import ProjectRole
from tracedeck.models.pydantic_models.session import SessionUser


class ProjectScope(str, Enum):
    MEMBERS_READ = "members:read"
    API_KEYS_READ = "apiKeys:read"
    API_KEYS_CREATE = "apiKeys:create"
    API_KEYS_DELETE = "apiKeys:delete"
    SCORES_CUD = "scores:CUD"


ROLE_SCOPES: dict[ProjectRole, frozenset[ProjectScope]] = {
    ProjectRole.OWNER: frozenset(ProjectScope),
    ProjectRole.ADMIN: frozenset(ProjectScope),
    ProjectRole.MEMBER: frozenset(
        {ProjectScope.MEMBERS_READ, ProjectScope.SCORES_CUD}
    ),
    ProjectRole.VIEWER: frozenset(),
}


def has_access(user: SessionUser, project_id: UUID, scope: ProjectScope) -> bool:
    role = user.role_in(project_id)
    if role is None:
        return False
    return scope in ROLE_SCOPES[role]


def throw_if_no_access(user: SessionUser, project_id: UUID, scope: ProjectScope) -> None:
    if not has_access(user, project_id, scope):
        raise forbidden_response(f"Missing permission {scope.value} on this project")


def throw_if_not_member(user: SessionUser, project_id: UUID) -> None:
    if user.role_in(project_id) is None:
        raise forbidden_response("Access denied to this project")
