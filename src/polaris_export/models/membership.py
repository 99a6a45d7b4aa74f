"""Correlated views of projects with their branches and members."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ProjectBranches(BaseModel):
    """A project name with the names of its branches."""

    name: str = Field(..., description='Project name')
    branches: List[str] = Field(default_factory=list, description='Branch names')


class Member(BaseModel):
    """A user holding a role on a project."""

    id: str = Field(..., description='User ID')
    name: Optional[str] = Field(default=None, description='Display name')
    email: Optional[str] = Field(default=None, description='Email address')


class GroupMembers(BaseModel):
    """A group and the members seen through it."""

    id: str = Field(..., description='Group ID')
    name: Optional[str] = Field(default=None, description='Group name')
    members: List[Member] = Field(default_factory=list, description='Members')


class ProjectMembership(BaseModel):
    """Role-assignment members of one project, split by group."""

    project_id: str = Field(..., description='Project ID')
    project_name: str = Field(..., description='Project name')
    groups: Dict[str, GroupMembers] = Field(
        default_factory=dict, description='Grouped members keyed by group ID'
    )
    individuals: List[Member] = Field(
        default_factory=list, description='Members not attributed to a group'
    )

    def to_record(self) -> Dict[str, Any]:
        return {
            'projectId': self.project_id,
            'projectName': self.project_name,
            'groups': {
                group_id: {
                    'name': group.name,
                    'members': [member.model_dump() for member in group.members],
                }
                for group_id, group in self.groups.items()
            },
            'individuals': [member.model_dump() for member in self.individuals],
        }


class MemberRecord(BaseModel):
    """One flattened user or group row of ``detailsList``."""

    projectName: str
    projectId: str
    userType: str
    name: Optional[str] = None
    email: Optional[str] = ''
