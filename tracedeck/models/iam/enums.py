"""
Enumerations for the IAM system.
"""

from enum import Enum


class ProjectRole(str, Enum):
    """Role a user holds within a single project"""

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"
    VIEWER = "VIEWER"
