"""User and group entity models."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class User(BaseModel):
    """Polaris user."""

    id: str = Field(..., description='User ID')
    name: Optional[str] = Field(default=None, description='Display name')
    email: Optional[str] = Field(default=None, description='Email address')
    group_ids: List[str] = Field(
        default_factory=list, description='IDs of groups the user belongs to'
    )

    @classmethod
    def from_resource(cls, resource: Dict[str, Any]) -> 'User':
        """Build a user from a JSON:API ``users`` resource."""
        attributes = resource.get('attributes') or {}
        relationships = resource.get('relationships') or {}
        groups = (relationships.get('groups') or {}).get('data') or []
        return cls(
            id=str(resource['id']),
            name=attributes.get('name'),
            email=attributes.get('email'),
            group_ids=[str(group['id']) for group in groups if 'id' in group],
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'groups': list(self.group_ids),
        }


class Group(BaseModel):
    """Polaris user group."""

    id: str = Field(..., description='Group ID')
    name: Optional[str] = Field(default=None, description='Group name')

    @classmethod
    def from_resource(cls, resource: Dict[str, Any]) -> 'Group':
        """Build a group from a JSON:API ``groups`` resource."""
        attributes = resource.get('attributes') or {}
        return cls(
            id=str(resource['id']),
            name=attributes.get('groupname') or attributes.get('name'),
        )
