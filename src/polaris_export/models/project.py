"""Project and branch entity models."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

# Placeholder pair given to projects without properties so that an operator
# editing projectList.json has a slot to fill in.
PLACEHOLDER_PROPERTIES = {'key': 'value'}


def _dig(resource: Dict[str, Any], *path: str) -> Any:
    """Follow nested mapping keys, returning None at the first gap."""
    value: Any = resource
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


class Project(BaseModel):
    """Polaris project as written to and read from ``projectList.json``."""

    id: str = Field(..., description='Project ID')
    type: Optional[str] = Field(default=None, description='Declared project type')
    properties: Dict[str, Any] = Field(
        default_factory=lambda: dict(PLACEHOLDER_PROPERTIES),
        description='Project property key/value pairs',
    )
    name: str = Field(..., description='Project display name')
    branches: Optional[str] = Field(
        default=None, description='URL of the project branch collection'
    )

    @classmethod
    def from_resource(cls, resource: Dict[str, Any]) -> 'Project':
        """Build a project from a JSON:API ``projects`` resource.

        An empty or missing properties mapping is replaced by the
        ``{"key": "value"}`` placeholder.
        """
        attributes = resource.get('attributes') or {}
        properties = attributes.get('properties') or dict(PLACEHOLDER_PROPERTIES)
        return cls(
            id=str(resource['id']),
            type=attributes.get('type'),
            properties=properties,
            name=attributes.get('name', ''),
            branches=_dig(resource, 'relationships', 'branches', 'links', 'related'),
        )

    def to_record(self) -> Dict[str, Any]:
        """Plain dictionary in the on-disk key order."""
        return {
            'id': self.id,
            'type': self.type,
            'properties': self.properties,
            'name': self.name,
            'branches': self.branches,
        }


class Branch(BaseModel):
    """Polaris branch with a back-reference to its project."""

    id: str = Field(..., description='Branch ID')
    name: str = Field(..., description='Branch name')
    project_id: Optional[str] = Field(default=None, description='Owning project ID')

    @classmethod
    def from_resource(cls, resource: Dict[str, Any]) -> 'Branch':
        """Build a branch from a JSON:API ``branches`` resource."""
        project_id = _dig(resource, 'relationships', 'project', 'data', 'id')
        return cls(
            id=str(resource['id']),
            name=_dig(resource, 'attributes', 'name') or '',
            project_id=str(project_id) if project_id is not None else None,
        )
