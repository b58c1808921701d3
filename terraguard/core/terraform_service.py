"""
Terraform CLI service.

Exposes the Terraform subcommands used by the project operations
(init, workspace, plan, apply, show, validate, fmt). Every command goes
through terraform(), which checks the installed Terraform version
before spawning anything.
"""

import logging
from typing import Callable, Mapping, Optional, Sequence, TypeVar

from . import commands
from .commands import TerraformCommand
from .errors import ProcessExitError
from .process_runner import CommandResult, ProcessRunner, SpawnOptions
from .version_gate import LATEST, VersionGate
from .workspace_manager import WorkspaceOrchestrator

logger = logging.getLogger(__name__)

T = TypeVar("T")

# With -detailed-exitcode, terraform plan exits with 2 when the plan has changes.
PLAN_HAS_CHANGES_EXIT_CODE = 2


class TerraformService:
    """
    Runs Terraform commands for a single project.

    Configuration used:
        terraform.binary: Terraform executable (default "terraform")
        terraform.version: Required version or "latest"
        terraform.workspace: Default workspace for wrap_workspace_operation()
    """

    def __init__(
        self,
        configuration,
        project_path: Optional[str] = None,
        runner: Optional[ProcessRunner] = None,
    ):
        self.terraform_binary = configuration.get("terraform.binary", "terraform")
        self.required_version = configuration.get("terraform.version", LATEST)
        self.default_workspace = configuration.get("terraform.workspace")

        self._runner = runner or ProcessRunner()
        self._default_spawn_options = SpawnOptions(working_directory=project_path)
        self._version_gate = VersionGate(
            self._runner,
            self.required_version,
            terraform_binary=self.terraform_binary,
            spawn_options=self._default_spawn_options,
        )
        self._workspaces = WorkspaceOrchestrator(self, self.default_workspace)

    @property
    def version_gate(self) -> VersionGate:
        return self._version_gate

    def terraform(
        self,
        command: str,
        args: Sequence[str],
        options: Optional[SpawnOptions] = None,
    ) -> CommandResult:
        """
        Run an arbitrary Terraform command.

        The project path is used as the working directory unless
        `options` sets another one.

        Raises:
            IncompatibleVersionError: If the installed Terraform version is not compatible
            ProcessExitError: If Terraform exits with a non-zero code
        """
        self._version_gate.ensure_compatible()
        return self._runner.spawn(
            self.terraform_binary,
            [command] + list(args),
            self._default_spawn_options.override(options),
        )

    def _run(self, command: TerraformCommand, options: Optional[SpawnOptions] = None) -> CommandResult:
        return self.terraform(command.name, command.args, command.options_for(options))

    def init(self, upgrade: bool = False, options: Optional[SpawnOptions] = None):
        """Run terraform init, optionally upgrading providers and modules."""
        self._run(commands.init_command(upgrade=upgrade), options)

    def workspace_show(self, options: Optional[SpawnOptions] = None) -> str:
        """Return the name of the currently selected workspace."""
        result = self._run(commands.workspace_show_command(), options)
        return (result.stdout or "").strip()

    def workspace_select(
        self,
        workspace: str,
        or_create: bool = False,
        options: Optional[SpawnOptions] = None,
    ):
        """Select `workspace`, creating it first if `or_create` is set."""
        self._run(commands.workspace_select_command(workspace, or_create=or_create), options)

    def plan(
        self,
        out: str,
        destroy: bool = False,
        variables: Optional[Mapping[str, str]] = None,
        options: Optional[SpawnOptions] = None,
    ) -> bool:
        """
        Run terraform plan and write the plan to `out`.

        Args:
            out: Path of the plan file to write
            destroy: Plan the destruction of all resources instead
            variables: Terraform variables, passed as -var in mapping order
            options: Spawn options

        Returns:
            True if the plan contains changes, False otherwise
        """
        try:
            self._run(commands.plan_command(out, destroy=destroy, variables=variables), options)
        except ProcessExitError as e:
            if e.exit_code == PLAN_HAS_CHANGES_EXIT_CODE:
                logger.debug(f"Terraform plan written to {out} contains changes.")
                return True
            raise
        return False

    def apply(self, plan: str, options: Optional[SpawnOptions] = None):
        """Apply the changes described in the `plan` file."""
        self._run(commands.apply_command(plan), options)

    def show(self, path: str, options: Optional[SpawnOptions] = None) -> str:
        """
        Describe the plan at `path`.

        Output is always captured, and not logged unless `options` sets
        log levels.
        """
        result = self._run(commands.show_command(path), options)
        return result.stdout or ""

    def validate(self, options: Optional[SpawnOptions] = None):
        """Run terraform validate."""
        self._run(commands.validate_command(), options)

    def fmt(
        self,
        check: bool = False,
        recursive: bool = False,
        targets: Sequence[str] = (),
        options: Optional[SpawnOptions] = None,
    ) -> CommandResult:
        """
        Run terraform fmt and return the raw result.

        With `check`, unformatted files make Terraform exit non-zero and
        ProcessExitError is raised; its `result` holds the exit code and
        any captured output.
        """
        return self._run(
            commands.fmt_command(check=check, recursive=recursive, targets=targets),
            options,
        )

    def wrap_workspace_operation(
        self,
        operation: Callable[[], T],
        workspace: Optional[str] = None,
        create_workspace_if_needed: bool = False,
        skip_init: bool = False,
        options: Optional[SpawnOptions] = None,
    ) -> T:
        """
        Run `operation` with Terraform initialized and the right workspace selected.

        See WorkspaceOrchestrator.run().
        """
        return self._workspaces.run(
            operation,
            workspace=workspace,
            create_workspace_if_needed=create_workspace_if_needed,
            skip_init=skip_init,
            options=options,
        )
