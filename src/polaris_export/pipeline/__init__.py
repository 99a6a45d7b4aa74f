"""Export pipeline: correlation, serialization and run orchestration."""

from .context import RunContext
from .correlator import Correlator
from .driver import RunDriver
from .exporter import Exporter
from .strategy import (
    STRATEGIES,
    ExportStatus,
    ExportStrategy,
    ExportSummary,
    ProjectBranchesStrategy,
    ProjectMembersStrategy,
    ProjectPropertiesStrategy,
    SetPropertiesStrategy,
    UserGroupsStrategy,
)

__all__ = [
    'STRATEGIES',
    'Correlator',
    'ExportStatus',
    'ExportStrategy',
    'ExportSummary',
    'Exporter',
    'ProjectBranchesStrategy',
    'ProjectMembersStrategy',
    'ProjectPropertiesStrategy',
    'RunContext',
    'RunDriver',
    'SetPropertiesStrategy',
    'UserGroupsStrategy',
]
