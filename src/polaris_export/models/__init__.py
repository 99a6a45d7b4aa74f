"""Data models for Polaris entities."""

from .membership import (
    GroupMembers,
    Member,
    MemberRecord,
    ProjectBranches,
    ProjectMembership,
)
from .project import PLACEHOLDER_PROPERTIES, Branch, Project
from .user import Group, User

__all__ = [
    'PLACEHOLDER_PROPERTIES',
    'Branch',
    'Group',
    'GroupMembers',
    'Member',
    'MemberRecord',
    'Project',
    'ProjectBranches',
    'ProjectMembership',
    'User',
]
