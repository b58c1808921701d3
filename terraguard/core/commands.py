"""
Terraform command construction.

Each function maps a logical Terraform operation to the subcommand name,
its ordered arguments, and the spawn options it needs. Nothing here
spawns a process.
"""

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence

from ..security.sanitizer import InputSanitizer
from .process_runner import SUPPRESS, SpawnOptions


@dataclass
class TerraformCommand:
    """
    A Terraform subcommand ready to be spawned.

    `defaults` are overridden by caller options, `forced` override the
    caller options.
    """
    name: str
    args: List[str]
    defaults: SpawnOptions = field(default_factory=SpawnOptions)
    forced: SpawnOptions = field(default_factory=SpawnOptions)

    def options_for(self, caller: Optional[SpawnOptions] = None) -> SpawnOptions:
        """Layer the caller options between the command defaults and forced options."""
        return self.defaults.override(caller).override(self.forced)


def init_command(upgrade: bool = False) -> TerraformCommand:
    """terraform init -input=false [-upgrade]"""
    args = ["-input=false"]
    if upgrade:
        args.append("-upgrade")
    return TerraformCommand("init", args)


def workspace_show_command() -> TerraformCommand:
    """terraform workspace show, with stdout captured and kept out of the logs."""
    return TerraformCommand(
        "workspace",
        ["show"],
        defaults=SpawnOptions(stdout_log=SUPPRESS, stderr_log="debug"),
        forced=SpawnOptions(capture_stdout=True),
    )


def workspace_select_command(workspace: str, or_create: bool = False) -> TerraformCommand:
    """terraform workspace select [-or-create=true] <workspace>"""
    InputSanitizer.sanitize_workspace_name(workspace)
    args = ["select"]
    if or_create:
        args.append("-or-create=true")
    args.append(workspace)
    return TerraformCommand("workspace", args)


def plan_command(
    out: str,
    destroy: bool = False,
    variables: Optional[Mapping[str, str]] = None,
) -> TerraformCommand:
    """
    terraform plan -input=false -out=<out> -detailed-exitcode [-destroy] [-var k=v ...]

    Variables are passed in the mapping's iteration order.
    """
    args = ["-input=false", f"-out={out}", "-detailed-exitcode"]
    if destroy:
        args.append("-destroy")
    for name, value in (variables or {}).items():
        InputSanitizer.sanitize_variable_name(name)
        args.extend(["-var", f"{name}={value}"])
    return TerraformCommand("plan", args)


def apply_command(plan: str) -> TerraformCommand:
    """terraform apply -input=false <plan>"""
    return TerraformCommand("apply", ["-input=false", plan])


def show_command(path: str) -> TerraformCommand:
    """terraform show <path>, always capturing both streams and silent by default."""
    return TerraformCommand(
        "show",
        [path],
        defaults=SpawnOptions(stdout_log=SUPPRESS, stderr_log=SUPPRESS),
        forced=SpawnOptions(capture_stdout=True, capture_stderr=True),
    )


def validate_command() -> TerraformCommand:
    """terraform validate"""
    return TerraformCommand("validate", [])


def fmt_command(
    check: bool = False,
    recursive: bool = False,
    targets: Sequence[str] = (),
) -> TerraformCommand:
    """
    terraform fmt [-check] [-recursive] [targets...]

    Targets keep their order. Relative targets starting with a hyphen are
    prefixed with ./ so that Terraform reads them as paths, not flags.
    """
    args = []
    if check:
        args.append("-check")
    if recursive:
        args.append("-recursive")
    for target in targets:
        if target.startswith("-"):
            target = os.path.join(os.curdir, target)
        args.append(target)
    return TerraformCommand("fmt", args)
