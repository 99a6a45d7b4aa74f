"""Run driver: check existing outputs, authenticate, then fetch and export."""

from datetime import datetime
from pathlib import Path
from typing import Iterable, List

from loguru import logger

from ..api.auth import CredentialResolver
from ..api.client import PolarisClient
from ..api.exceptions import PolarisAPIError
from ..config.config import ConfigError
from .context import RunContext
from .strategy import ExportStatus, ExportStrategy, ExportSummary


class RunDriver:
    """Drive one strategy through CheckExisting, Authenticate and FetchAndExport."""

    def __init__(self, context: RunContext):
        """Initialize run driver.

        Args:
            context: Run context shared with the strategy
        """
        self.context = context
        self.logger = logger.bind(component='RunDriver')

    def run(self, strategy: ExportStrategy) -> ExportSummary:
        """Run ``strategy`` to completion.

        Returns:
            Summary whose status is ``completed``, ``cancelled`` (the operator
            declined to delete an existing file) or ``aborted``
        """
        summary = ExportSummary(command=strategy.name)
        self.logger.info(f'Starting {strategy.name}')

        try:
            strategy.validate_prerequisites()
        except (FileNotFoundError, ConfigError) as e:
            return self._abort(summary, e)

        if not self.check_existing(strategy.output_paths()):
            self.logger.info('Exiting without making changes')
            return self._finish(summary, ExportStatus.CANCELLED)

        try:
            token = self.authenticate()
        except (PolarisAPIError, ConfigError) as e:
            return self._abort(summary, e)

        with PolarisClient(token, timeout=self.context.config.timeout) as client:
            self.context.client = client
            try:
                strategy.execute(summary)
            except (PolarisAPIError, ConfigError, OSError, ValueError) as e:
                return self._abort(summary, e)
            finally:
                self.context.client = None

        if summary.skipped:
            self.logger.warning(
                f'{len(summary.skipped)} item(s) skipped: {", ".join(summary.skipped)}'
            )
        self.logger.info(f'{strategy.name} completed ({summary.items} items)')
        return self._finish(summary, ExportStatus.COMPLETED)

    def check_existing(self, paths: Iterable[Path]) -> bool:
        """Ask before deleting each existing output file.

        Every existing file is confirmed before any is deleted, so a single
        refusal leaves all files untouched.

        Returns:
            False if the operator refused to delete any existing file
        """
        existing: List[Path] = [Path(path) for path in paths if Path(path).exists()]
        for path in existing:
            if not self.context.confirm(path):
                return False

        for path in existing:
            path.unlink()
            self.logger.info(f'Existing {path} deleted')
        return True

    def authenticate(self) -> str:
        """Resolve the bearer token and store it on the context."""
        resolver = CredentialResolver(
            self.context.config.polaris,
            session=self.context.session,
            timeout=self.context.config.timeout,
        )
        token = resolver.resolve()
        self.context.token = token
        return token

    def _abort(self, summary: ExportSummary, error: Exception) -> ExportSummary:
        self.logger.error(f'{summary.command} aborted: {error}')
        summary.error_message = str(error)
        return self._finish(summary, ExportStatus.ABORTED)

    @staticmethod
    def _finish(summary: ExportSummary, status: ExportStatus) -> ExportSummary:
        summary.status = status
        summary.completed_at = datetime.now()
        return summary
