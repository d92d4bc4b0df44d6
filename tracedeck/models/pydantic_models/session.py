"""
Pydantic models for the dashboard session.

``Session.user`` is ``None`` when the session token is still valid but the
user it was issued for no longer exists in the database.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from tracedeck.models.iam.enums import ProjectRole


class SessionProject(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    role: ProjectRole


class SessionUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str | None = None
    email: str | None = None
    image: str | None = None
    email_verified: datetime | None = None
    projects: list[SessionProject] = Field(default_factory=list)
    feature_flags: dict[str, bool] = Field(default_factory=dict)

    def role_in(self, project_id: UUID) -> ProjectRole | None:
        for project in self.projects:
            if project.id == project_id:
                return project.role
        return None

    @classmethod
    def from_orm_obj(cls, user) -> "SessionUser":
        return cls(
            id=user.user_id,
            name=user.name,
            email=user.email,
            image=user.image,
            email_verified=user.email_verified,
            projects=[
                SessionProject(
                    id=membership.project.project_id,
                    name=membership.project.name,
                    role=membership.role,
                )
                for membership in user.memberships
            ],
            feature_flags={
                key: value
                for key, value in (user.feature_flags or {}).items()
                if isinstance(value, bool)
            },
        )


class Session(BaseModel):
    user: SessionUser | None
    expires: datetime
