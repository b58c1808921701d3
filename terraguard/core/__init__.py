"""
Core Terraform supervision for terraguard.

This module provides the logic for driving the Terraform CLI:
- Spawning Terraform commands and routing their output
- Checking the installed Terraform version
- Building command arguments
- Running operations under a given Terraform workspace
"""

from .errors import (
    TerraguardError,
    ConfigurationError,
    IncompatibleVersionError,
    ProcessExitError,
    RestorationError,
    LintError,
)
from .process_runner import ProcessRunner, SpawnOptions, CommandResult, SUPPRESS
from .version_gate import VersionGate, CompatibilityState, SemanticVersion, is_compatible, LATEST
from .terraform_service import TerraformService
from .workspace_manager import WorkspaceOrchestrator
from .tfvars_handler import TfvarsHandler

__all__ = [
    "TerraguardError",
    "ConfigurationError",
    "IncompatibleVersionError",
    "ProcessExitError",
    "RestorationError",
    "LintError",
    "ProcessRunner",
    "SpawnOptions",
    "CommandResult",
    "SUPPRESS",
    "VersionGate",
    "CompatibilityState",
    "SemanticVersion",
    "is_compatible",
    "LATEST",
    "TerraformService",
    "WorkspaceOrchestrator",
    "TfvarsHandler",
]
