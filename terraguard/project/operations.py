"""
Project lifecycle operations for Terraform infrastructure projects.

init, dependency update, lint, prepare (plan) and deploy (apply), built
on top of TerraformService.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from typing import Dict, Optional

from ..config import Configuration
from ..core.errors import LintError, ProcessExitError
from ..core.process_runner import SUPPRESS, SpawnOptions
from ..core.tfvars_handler import TfvarsHandler
from .context import ProjectContext

logger = logging.getLogger(__name__)

# Folder created by terraform init in the project directory.
TERRAFORM_DIR = ".terraform"

DEFAULT_PLAN_FILE = "plan.out"


@dataclass
class PrepareResult:
    """Result of prepare_infrastructure()."""
    output: str
    is_deployment_needed: bool


def supports(configuration: Configuration) -> bool:
    """Whether the project is infrastructure written in Terraform."""
    return (
        configuration.get("project.language") == "terraform"
        and configuration.get("project.type") == "infrastructure"
    )


def init_project(context: ProjectContext, force: bool = False):
    """
    Initialize Terraform for the project.

    Args:
        context: Project context
        force: Remove the .terraform folder before initializing
    """
    project_name = context.configuration.get("project.name")

    if force:
        logger.info("Removing Terraform folder.")
        terraform_dir = os.path.join(context.get_project_path_or_throw(), TERRAFORM_DIR)
        shutil.rmtree(terraform_dir, ignore_errors=True)

    logger.info(f"Initializing Terraform for project '{project_name}'.")
    context.service.init(options=SpawnOptions.with_logging("debug"))
    logger.info("Successfully initialized Terraform.")


def update_dependencies(context: ProjectContext) -> bool:
    """Upgrade providers and modules within their constraints, updating the lock file."""
    logger.info("Updating Terraform dependencies.")
    context.service.init(upgrade=True, options=SpawnOptions.with_logging("debug"))
    logger.info("Successfully updated Terraform dependencies.")
    return True


def lint_project(context: ProjectContext):
    """
    Run terraform validate, then check formatting of the project and of
    the additional directories from project.externalFiles.

    Raises:
        LintError: If Terraform reports a validation or format error
    """
    project_path = context.get_project_path_or_throw()
    project_name = context.configuration.get("project.name")
    service = context.service
    targets = [project_path] + context.get_additional_directories()

    try:
        logger.info(f"Validating Terraform code for project '{project_name}'.")
        service.validate(options=SpawnOptions(stdout_log=SUPPRESS, stderr_log="info"))

        logger.info(f"Checking format of Terraform code for project '{project_name}'.")
        service.fmt(
            check=True,
            recursive=True,
            targets=targets,
            options=SpawnOptions.with_logging("info"),
        )
    except ProcessExitError as e:
        raise LintError("Linting the Terraform project failed.") from e

    logger.info("Terraform code passed linting.")


def load_variables(context: ProjectContext) -> Dict[str, str]:
    """
    Build the Terraform variables for a plan.

    Values from the infrastructure.variablesFile tfvars file come first,
    rendered infrastructure.variables override them.
    """
    configuration = context.configuration
    variables: Dict[str, str] = {}

    variables_file = configuration.get("infrastructure.variablesFile")
    if variables_file:
        path = os.path.join(context.get_project_path_or_throw(), variables_file)
        for name, value in TfvarsHandler.parse_tfvars(path).items():
            variables[name] = TfvarsHandler.to_variable_value(value)

    rendered = configuration.get_and_render("infrastructure.variables", {})
    for name, value in rendered.items():
        variables[name] = TfvarsHandler.to_variable_value(value)

    return variables


def prepare_infrastructure(
    context: ProjectContext,
    output: Optional[str] = None,
    destroy: bool = False,
    print_plan: bool = False,
) -> PrepareResult:
    """
    Plan the deployment of the project and write the plan to `output`.

    Args:
        context: Project context
        output: Plan file path, defaults to plan.out in the current directory
        destroy: Plan the destruction of the workspace resources
        print_plan: Print the plan to stdout when it has changes

    Returns:
        The absolute plan path, and whether it contains changes
    """
    context.get_project_path_or_throw()
    project_name = context.configuration.get_or_throw("project.name")
    service = context.service

    variables = load_variables(context)
    output = os.path.abspath(output or DEFAULT_PLAN_FILE)

    logger.info(f"Planning Terraform deployment for project '{project_name}'.")

    is_deployment_needed = service.wrap_workspace_operation(
        lambda: service.plan(output, destroy=destroy, variables=variables),
        create_workspace_if_needed=not destroy,
    )

    if is_deployment_needed:
        logger.info("Terraform plan has changes that can be deployed.")
        if print_plan:
            print(service.show(output))
    else:
        logger.info("Terraform plan has no change.")

    return PrepareResult(output=output, is_deployment_needed=is_deployment_needed)


def deploy_infrastructure(context: ProjectContext, deployment: str):
    """
    Apply a plan produced by prepare_infrastructure(), then delete the plan file.

    Args:
        context: Project context
        deployment: Path to the plan file
    """
    context.get_project_path_or_throw()
    project_name = context.configuration.get_or_throw("project.name")
    service = context.service

    logger.info(f"Applying Terraform plan for project '{project_name}'.")

    plan = os.path.abspath(deployment)
    service.wrap_workspace_operation(
        lambda: service.apply(plan, options=SpawnOptions.with_logging("info")),
    )

    logger.info("Successfully applied Terraform plan.")
    os.remove(plan)
