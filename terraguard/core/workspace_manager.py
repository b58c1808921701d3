"""
Terraform workspace-scoped operations.

Runs an operation with a given Terraform workspace selected, and selects
the previously active workspace again once the operation is over.
"""

import logging
from typing import TYPE_CHECKING, Callable, Optional, TypeVar

from .errors import ConfigurationError, RestorationError
from .process_runner import SpawnOptions

if TYPE_CHECKING:
    from .terraform_service import TerraformService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WorkspaceOrchestrator:
    """
    Wraps operations that must run under a specific Terraform workspace.

    The Terraform workspace is process-wide state for a project directory:
    callers must not run two wrapped operations concurrently against the
    same project.
    """

    def __init__(self, service: "TerraformService", default_workspace: Optional[str] = None):
        self._service = service
        self.default_workspace = default_workspace

    def run(
        self,
        operation: Callable[[], T],
        workspace: Optional[str] = None,
        create_workspace_if_needed: bool = False,
        skip_init: bool = False,
        options: Optional[SpawnOptions] = None,
    ) -> T:
        """
        Run `operation` with `workspace` (or the default workspace) selected.

        Steps: terraform init (unless skipped), workspace show, workspace
        select when the current workspace differs, the operation, and
        finally selecting the previous workspace again, whether the
        operation succeeded or not. Nothing is restored when workspace
        show printed no name.

        Args:
            operation: Callable run once the workspace is selected
            workspace: Workspace to select instead of the default one
            create_workspace_if_needed: Create the workspace if it does not exist
            skip_init: Do not run terraform init first
            options: Spawn options for every Terraform command run here

        Returns:
            The result of `operation`

        Raises:
            ConfigurationError: If no workspace is given or configured
            RestorationError: If the previous workspace could not be selected again
        """
        target = workspace if workspace is not None else self.default_workspace
        if target is None:
            raise ConfigurationError("The workspace for the operation is not configured.")

        if not skip_init:
            self._service.init(options=options)

        current = self._service.workspace_show(options=options)
        if current == target:
            logger.debug(f"Terraform workspace '{target}' is already selected.")
            return operation()

        logger.debug(f"Changing Terraform workspace from '{current}' to '{target}'.")
        self._service.workspace_select(
            target,
            or_create=create_workspace_if_needed,
            options=options,
        )

        try:
            result = operation()
        except BaseException as error:
            self._restore(current, options, error)
            raise

        self._restore(current, options)
        return result

    def _restore(
        self,
        workspace: str,
        options: Optional[SpawnOptions],
        operation_error: Optional[BaseException] = None,
    ):
        if not workspace:
            logger.debug("No previous Terraform workspace to switch back to.")
            return

        logger.debug(f"Switching back to Terraform workspace '{workspace}'.")
        try:
            self._service.workspace_select(workspace, options=options)
        except Exception as e:
            logger.error(f"Failed to switch back to Terraform workspace '{workspace}': {e}")
            raise RestorationError(workspace, operation_error) from e
