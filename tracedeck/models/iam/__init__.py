"""
IAM models: dashboard users, projects, memberships and project API keys.
"""

from .enums import ProjectRole
from .users import User
from .projects import Project
from .memberships import Membership
from .api_keys import ApiKey

__all__ = [
    "ProjectRole",
    "User",
    "Project",
    "Membership",
    "ApiKey",
]
