"""Per-invocation run state shared by pipeline components."""

from pathlib import Path
from typing import Callable, Optional

import requests
from pydantic import BaseModel, ConfigDict, Field

from ..api.client import PolarisClient
from ..config.config import Config
from .correlator import Correlator
from .exporter import Exporter

ConfirmOverwrite = Callable[[Path], bool]


def decline_overwrite(path: Path) -> bool:
    """Confirmation callback that never allows deleting an existing file."""
    return False


class RunContext(BaseModel):
    """Everything one command invocation needs, built once and passed along."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    config: Config = Field(..., description='Loaded configuration')
    confirm: ConfirmOverwrite = Field(
        default=decline_overwrite,
        description='Asked before an existing output file is deleted',
    )
    session: Optional[requests.Session] = Field(
        default=None, description='HTTP session used for authentication'
    )

    # Set once authentication succeeds
    token: Optional[str] = Field(default=None, description='Bearer token')
    client: Optional[PolarisClient] = Field(
        default=None, description='Authenticated API client'
    )

    correlator: Correlator = Field(default_factory=Correlator)
    exporter: Exporter = Field(default_factory=Exporter)

    def output_path(self, filename: str) -> Path:
        """Location of an output file inside the configured directory."""
        return Path(self.config.output.directory) / filename
