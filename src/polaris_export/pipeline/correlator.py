"""In-memory joins between paginated collections."""

from typing import Any, Dict, Iterable, List, Tuple

from loguru import logger

from ..models import (
    Branch,
    Group,
    GroupMembers,
    Member,
    MemberRecord,
    Project,
    ProjectBranches,
    ProjectMembership,
    User,
)

USER_TYPE = 'users'
GROUP_TYPE = 'groups'


class Correlator:
    """Join projects with branches, role assignments, users and groups.

    Every join preserves the insertion order of its source collections.
    """

    def __init__(self):
        self.logger = logger.bind(component='Correlator')

    def branches_by_project(
        self, projects: Iterable[Project], branches: Iterable[Branch]
    ) -> Dict[str, ProjectBranches]:
        """Map each project ID to its name and branch names.

        Branches that reference a project not in ``projects`` are dropped.
        """
        mapping = {
            project.id: ProjectBranches(name=project.name) for project in projects
        }
        dropped = 0
        for branch in branches:
            entry = mapping.get(branch.project_id)
            if entry is None:
                dropped += 1
                continue
            entry.branches.append(branch.name)

        if dropped:
            self.logger.debug(f'Dropped {dropped} branch(es) of unknown projects')
        return mapping

    def branch_rows(self, mapping: Dict[str, ProjectBranches]) -> List[Dict[str, Any]]:
        """Flatten a project/branch mapping into one sparse row per project.

        Branch columns are numbered ``branch1``, ``branch2`` ... so rows differ
        in width when projects have different branch counts.
        """
        rows = []
        for project_id, entry in mapping.items():
            row: Dict[str, Any] = {'projectId': project_id, 'projectName': entry.name}
            for index, branch_name in enumerate(entry.branches, start=1):
                row[f'branch{index}'] = branch_name
            rows.append(row)
        return rows

    @staticmethod
    def partition_included(
        included: Iterable[Dict[str, Any]],
    ) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        """Split JSON:API ``included`` resources into users and groups."""
        users, groups = [], []
        for resource in included:
            if resource.get('type') == USER_TYPE:
                users.append(resource)
            elif resource.get('type') == GROUP_TYPE:
                groups.append(resource)
        return users, groups

    def member_records(
        self, project: Project, included: Iterable[Dict[str, Any]]
    ) -> List[MemberRecord]:
        """Flatten the users and groups of one role-assignment response."""
        users, groups = self.partition_included(included)
        records = []
        for resource in users:
            user = User.from_resource(resource)
            records.append(
                MemberRecord(
                    projectName=project.name,
                    projectId=project.id,
                    userType='User',
                    name=user.name,
                    email=user.email,
                )
            )
        for resource in groups:
            group = Group.from_resource(resource)
            records.append(
                MemberRecord(
                    projectName=project.name,
                    projectId=project.id,
                    userType='GroupName',
                    name=group.name,
                    email='',
                )
            )
        return records

    def project_membership(
        self, project: Project, included: Iterable[Dict[str, Any]]
    ) -> ProjectMembership:
        """Split a project's members into grouped and individual members.

        A user is attributed to the first group of its ``groups``
        relationship, provided that group is itself present in ``included``.
        Otherwise the user is listed as an individual.
        """
        users, groups = self.partition_included(included)
        membership = ProjectMembership(project_id=project.id, project_name=project.name)

        for resource in groups:
            group = Group.from_resource(resource)
            membership.groups[group.id] = GroupMembers(id=group.id, name=group.name)

        for resource in users:
            user = User.from_resource(resource)
            member = Member(id=user.id, name=user.name, email=user.email)
            group_id = user.group_ids[0] if user.group_ids else None

            if group_id is not None and group_id in membership.groups:
                membership.groups[group_id].members.append(member)
                continue

            if group_id is not None:
                self.logger.debug(
                    f'Group {group_id} of user {user.id} is not included for '
                    f'project {project.id}; listing the user as ungrouped'
                )
            membership.individuals.append(member)

        return membership

    def membership_rows(self, membership: ProjectMembership) -> List[Dict[str, Any]]:
        """One row per member of a project, with a blank group for individuals."""
        rows = []
        base = {
            'projectName': membership.project_name,
            'projectId': membership.project_id,
        }
        for group in membership.groups.values():
            if not group.members:
                rows.append({**base, 'groupName': group.name, 'name': '', 'email': ''})
            for member in group.members:
                rows.append(
                    {
                        **base,
                        'groupName': group.name,
                        'name': member.name,
                        'email': member.email,
                    }
                )
        for member in membership.individuals:
            rows.append(
                {**base, 'groupName': '', 'name': member.name, 'email': member.email}
            )
        return rows

    def groups_with_members(
        self, users: Iterable[User], groups: Iterable[Group]
    ) -> List[Dict[str, Any]]:
        """Invert user group IDs into groups carrying their member lists.

        Groups referenced by a user but absent from ``groups`` are appended
        with no name.
        """
        by_id: Dict[str, Dict[str, Any]] = {
            group.id: {'id': group.id, 'name': group.name, 'members': []}
            for group in groups
        }
        for user in users:
            for group_id in user.group_ids:
                entry = by_id.setdefault(
                    group_id, {'id': group_id, 'name': None, 'members': []}
                )
                entry['members'].append(
                    {'id': user.id, 'name': user.name, 'email': user.email}
                )
        return list(by_id.values())

    def user_rows(
        self, users: Iterable[User], groups: Iterable[Group]
    ) -> List[Dict[str, Any]]:
        """One row per user with the names of its groups."""
        names = {group.id: group.name for group in groups}
        return [
            {
                'id': user.id,
                'name': user.name,
                'email': user.email,
                'groups': [names.get(group_id) or group_id for group_id in user.group_ids],
            }
            for user in users
        ]
