"""Export strategies: one per command, composed from the pipeline components."""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, Field

from ..api.client import PolarisClient
from ..api.exceptions import PolarisAPIError
from ..models import PLACEHOLDER_PROPERTIES, Branch, Group, Project, User
from .context import RunContext

PROJECT_LIST = 'projectList.json'
PROJECT_CSV = 'projectList.csv'
BRANCHES_LIST = 'branchesList.json'
PROJECT_BRANCHES_CSV = 'projectBranches.csv'
DETAILS_LIST = 'detailsList.json'
DETAILS_CSV = 'detailsList.csv'
PROJECT_DETAILS_CSV = 'projectDetails.csv'
USERS_LIST = 'usersList.json'
USERS_CSV = 'usersList.csv'
GROUPS_LIST = 'groupsList.json'

PROJECT_COLUMNS = ['id', 'type', 'properties', 'name', 'branches']
PROJECT_HEADERS = {
    'id': 'ID',
    'type': 'Type',
    'properties': 'Properties',
    'name': 'Name',
    'branches': 'Branches',
}
DETAIL_COLUMNS = ['projectName', 'projectId', 'userType', 'name', 'email']
MEMBERSHIP_COLUMNS = ['projectName', 'projectId', 'groupName', 'name', 'email']
MEMBER_HEADERS = {
    'projectName': 'Project Name',
    'projectId': 'Project ID',
    'userType': 'Type',
    'groupName': 'Group',
    'name': 'Name',
    'email': 'Email',
}


class ExportStatus(str, Enum):
    """Terminal state of a run."""

    PENDING = 'pending'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    ABORTED = 'aborted'


class ExportSummary(BaseModel):
    """Outcome of one command invocation."""

    command: str = Field(..., description='Command that ran')
    status: ExportStatus = Field(default=ExportStatus.PENDING, description='Status')
    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = Field(default=None)

    items: int = Field(default=0, description='Records exported or updated')
    written: List[str] = Field(default_factory=list, description='Files written')
    skipped: List[str] = Field(
        default_factory=list, description='IDs of items whose sub-request failed'
    )
    error_message: Optional[str] = Field(default=None)

    @property
    def succeeded(self) -> bool:
        return self.status in (ExportStatus.COMPLETED, ExportStatus.CANCELLED)


class ExportStrategy(ABC):
    """Abstract base class for export strategies."""

    name: str = ''

    def __init__(self, context: RunContext):
        """Initialize export strategy.

        Args:
            context: Run context with configuration and shared components
        """
        self.context = context
        self.logger = logger.bind(strategy=self.__class__.__name__)

    @property
    def client(self) -> PolarisClient:
        if self.context.client is None:
            raise RuntimeError(f'{self.name} ran before authentication')
        return self.context.client

    def path(self, filename: str) -> Path:
        return self.context.output_path(filename)

    def output_paths(self) -> List[Path]:
        """Files this strategy (re)creates; checked before authenticating."""
        return []

    def validate_prerequisites(self) -> None:
        """Check local inputs before any network call.

        Raises:
            FileNotFoundError: If a required input file is missing
        """

    @abstractmethod
    def execute(self, summary: ExportSummary) -> None:
        """Fetch, correlate and export, recording progress in ``summary``."""

    def _require_file(self, filename: str) -> Path:
        path = self.path(filename)
        if not path.exists():
            raise FileNotFoundError(
                f'{path} not found; run the "projects" command first'
            )
        return path

    def _fetch_projects(self) -> List[Project]:
        url = self.context.config.polaris.url('projects_url_template')
        resources = self.client.get_paginated(
            url.split('?')[0], self.context.config.pagination.projects
        )

        projects = []
        for resource in resources:
            try:
                projects.append(Project.from_resource(resource))
            except (KeyError, TypeError, ValueError) as e:
                self.logger.error(f'Failed to parse project {resource.get("id")}: {e}')
        self.logger.info(f'Found {len(projects)} projects')
        return projects


class ProjectPropertiesStrategy(ExportStrategy):
    """List projects with their properties for review and editing."""

    name = 'projects'

    def output_paths(self) -> List[Path]:
        return [self.path(PROJECT_LIST), self.path(PROJECT_CSV)]

    def execute(self, summary: ExportSummary) -> None:
        projects = self._fetch_projects()
        records = [project.to_record() for project in projects]

        self.context.exporter.export(
            records,
            self.path(PROJECT_LIST),
            self.path(PROJECT_CSV),
            columns=PROJECT_COLUMNS,
            headers=PROJECT_HEADERS,
        )
        summary.items = len(records)
        summary.written.extend([str(p) for p in self.output_paths()])


class ProjectBranchesStrategy(ExportStrategy):
    """Associate every branch with its project from ``projectList.json``."""

    name = 'branches'

    def output_paths(self) -> List[Path]:
        return [self.path(BRANCHES_LIST), self.path(PROJECT_BRANCHES_CSV)]

    def validate_prerequisites(self) -> None:
        self._require_file(PROJECT_LIST)

    def execute(self, summary: ExportSummary) -> None:
        config = self.context.config
        exporter = self.context.exporter

        resources = self.client.get_paginated(
            config.polaris.url('branches_url_template'), config.pagination.branches
        )
        exporter.write_json({'data': resources}, self.path(BRANCHES_LIST))
        summary.written.append(str(self.path(BRANCHES_LIST)))

        projects = exporter.load_projects(self.path(PROJECT_LIST))
        branches = [Branch.from_resource(resource) for resource in resources]
        mapping = self.context.correlator.branches_by_project(projects, branches)
        rows = self.context.correlator.branch_rows(mapping)

        exporter.write_csv(rows, self.path(PROJECT_BRANCHES_CSV))
        summary.written.append(str(self.path(PROJECT_BRANCHES_CSV)))
        summary.items = len(branches)


class ProjectMembersStrategy(ExportStrategy):
    """Report the users and groups holding roles on each project."""

    name = 'members'

    def output_paths(self) -> List[Path]:
        return [
            self.path(DETAILS_LIST),
            self.path(DETAILS_CSV),
            self.path(PROJECT_DETAILS_CSV),
        ]

    def execute(self, summary: ExportSummary) -> None:
        exporter = self.context.exporter
        correlator = self.context.correlator
        projects = self._load_or_fetch_projects(summary)

        details: List[Dict[str, Any]] = []
        membership_rows: List[Dict[str, Any]] = []
        for project in projects:
            included = self._role_assignments(project)
            if included is None:
                summary.skipped.append(project.id)
                continue

            details.extend(
                record.model_dump()
                for record in correlator.member_records(project, included)
            )
            membership = correlator.project_membership(project, included)
            membership_rows.extend(correlator.membership_rows(membership))

        exporter.export(
            details,
            self.path(DETAILS_LIST),
            self.path(DETAILS_CSV),
            columns=DETAIL_COLUMNS,
            headers=MEMBER_HEADERS,
        )
        exporter.write_csv(
            membership_rows,
            self.path(PROJECT_DETAILS_CSV),
            columns=MEMBERSHIP_COLUMNS,
            headers=MEMBER_HEADERS,
        )
        summary.items = len(details)
        summary.written.extend([str(p) for p in self.output_paths()])

    def _load_or_fetch_projects(self, summary: ExportSummary) -> List[Project]:
        path = self.path(PROJECT_LIST)
        if path.exists():
            self.logger.info(f'Reading projects from existing {path}')
            return self.context.exporter.load_projects(path)

        self.logger.info(f'{path} does not exist; fetching projects from the API')
        projects = self._fetch_projects()
        self.context.exporter.write_json(
            [project.to_record() for project in projects], path
        )
        summary.written.append(str(path))
        return projects

    def _role_assignments(self, project: Project) -> Optional[List[Dict[str, Any]]]:
        url = self.context.config.polaris.url(
            'role_assignments_url_template', project_id=project.id
        )
        self.logger.info(
            f'Fetching role assignments for project {project.name} (ID: {project.id})'
        )

        try:
            response = self.client.get(url)
        except PolarisAPIError as e:
            self.logger.error(
                f'Skipping project {project.id}: {e} '
                f'(status={e.status_code}, body={e.response_data})'
            )
            return None

        if response.status_code != 200 or not isinstance(response.data, dict):
            self.logger.error(
                f'Skipping project {project.id}: unexpected HTTP {response.status_code}'
            )
            return None
        return response.data.get('included') or []


class UserGroupsStrategy(ExportStrategy):
    """List users with their groups, and groups with their members."""

    name = 'users'

    def output_paths(self) -> List[Path]:
        return [self.path(USERS_LIST), self.path(USERS_CSV), self.path(GROUPS_LIST)]

    def execute(self, summary: ExportSummary) -> None:
        config = self.context.config
        correlator = self.context.correlator
        exporter = self.context.exporter

        paginator = self.client.paginate(
            config.polaris.url('users_url_template'), config.pagination.users
        )
        users = [User.from_resource(resource) for resource in paginator.collect()]
        _, group_resources = correlator.partition_included(paginator.included)
        groups = [Group.from_resource(resource) for resource in group_resources]

        exporter.write_json([user.to_record() for user in users], self.path(USERS_LIST))
        exporter.write_csv(
            correlator.user_rows(users, groups),
            self.path(USERS_CSV),
            columns=['id', 'name', 'email', 'groups'],
        )
        exporter.write_json(
            correlator.groups_with_members(users, groups), self.path(GROUPS_LIST)
        )
        summary.items = len(users)
        summary.written.extend([str(p) for p in self.output_paths()])


class SetPropertiesStrategy(ExportStrategy):
    """Push the properties edited in ``projectList.json`` back to Polaris."""

    name = 'set-properties'

    def validate_prerequisites(self) -> None:
        self._require_file(PROJECT_LIST)

    def execute(self, summary: ExportSummary) -> None:
        url = self.context.config.polaris.url('set_property_url_template')
        projects = self.context.exporter.load_projects(self.path(PROJECT_LIST))
        self.logger.info(f'Loaded {len(projects)} projects from {PROJECT_LIST}')

        for project in projects:
            if project.properties == PLACEHOLDER_PROPERTIES:
                self.logger.warning(
                    f'Project {project.id} still carries the placeholder '
                    f'property {PLACEHOLDER_PROPERTIES}'
                )

            try:
                self.client.post(
                    url, {'projects': [project.id], 'properties': project.properties}
                )
            except PolarisAPIError as e:
                self.logger.error(
                    f'Error setting properties for project ID {project.id}: {e} '
                    f'(status={e.status_code}, body={e.response_data})'
                )
                summary.skipped.append(project.id)
                continue

            self.logger.info(f'Properties set for project ID {project.id}')
            summary.items += 1


STRATEGIES = {
    strategy.name: strategy
    for strategy in (
        ProjectPropertiesStrategy,
        ProjectBranchesStrategy,
        ProjectMembersStrategy,
        UserGroupsStrategy,
        SetPropertiesStrategy,
    )
}
