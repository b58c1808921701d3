"""Tests for Terraform command construction."""

import os
from collections import OrderedDict

import pytest

from terraguard.core import commands
from terraguard.core.process_runner import SUPPRESS, SpawnOptions
from terraguard.security.sanitizer import SecurityError


class TestInitCommand:
    def test_init(self):
        command = commands.init_command()
        assert command.name == "init"
        assert command.args == ["-input=false"]

    def test_init_upgrade(self):
        assert commands.init_command(upgrade=True).args == ["-input=false", "-upgrade"]


class TestWorkspaceCommands:
    def test_workspace_show(self):
        command = commands.workspace_show_command()
        assert (command.name, command.args) == ("workspace", ["show"])

        options = command.options_for(None)
        assert options.capture_stdout is True
        assert options.stdout_log == SUPPRESS
        assert options.stderr_log == "debug"

    def test_workspace_show_capture_cannot_be_disabled(self):
        options = commands.workspace_show_command().options_for(
            SpawnOptions(capture_stdout=False, stdout_log="info")
        )
        assert options.capture_stdout is True
        assert options.stdout_log == "info"

    def test_workspace_select(self):
        command = commands.workspace_select_command("dev")
        assert (command.name, command.args) == ("workspace", ["select", "dev"])

    def test_workspace_select_or_create_before_name(self):
        command = commands.workspace_select_command("dev", or_create=True)
        assert command.args == ["select", "-or-create=true", "dev"]

    @pytest.mark.parametrize("name", ["", "-dev", "dev;rm", "dev/prod", "a,b"])
    def test_workspace_select_rejects_invalid_names(self, name):
        with pytest.raises(SecurityError):
            commands.workspace_select_command(name)


class TestPlanCommand:
    def test_plan_base_arguments(self):
        command = commands.plan_command("/tmp/plan.out")
        assert command.name == "plan"
        assert command.args == ["-input=false", "-out=/tmp/plan.out", "-detailed-exitcode"]

    def test_plan_destroy(self):
        assert "-destroy" in commands.plan_command("plan.out", destroy=True).args

    def test_plan_variables_in_insertion_order(self):
        command = commands.plan_command("plan.out", variables={"a": "1", "b": "2"})
        assert command.args == [
            "-input=false", "-out=plan.out", "-detailed-exitcode",
            "-var", "a=1", "-var", "b=2",
        ]

    def test_plan_variables_order_follows_mapping(self):
        variables = OrderedDict([("zone", "b"), ("region", "eu"), ("app", "x")])
        args = commands.plan_command("plan.out", variables=variables).args
        assert args[3:] == ["-var", "zone=b", "-var", "region=eu", "-var", "app=x"]

    def test_plan_variable_value_kept_verbatim(self):
        args = commands.plan_command("plan.out", variables={"tags": '{"a":"b c"}'}).args
        assert args[-1] == 'tags={"a":"b c"}'

    def test_plan_rejects_invalid_variable_name(self):
        with pytest.raises(SecurityError):
            commands.plan_command("plan.out", variables={"bad name": "x"})


class TestOtherCommands:
    def test_apply(self):
        command = commands.apply_command("/tmp/plan.out")
        assert (command.name, command.args) == ("apply", ["-input=false", "/tmp/plan.out"])

    def test_show_forces_capture(self):
        command = commands.show_command("plan.out")
        assert (command.name, command.args) == ("show", ["plan.out"])

        options = command.options_for(SpawnOptions(capture_stdout=False, capture_stderr=False))
        assert options.capture_stdout is True
        assert options.capture_stderr is True

    def test_show_silent_unless_logging_requested(self):
        command = commands.show_command("plan.out")
        silent = command.options_for(None)
        assert (silent.stdout_log, silent.stderr_log) == (SUPPRESS, SUPPRESS)

        logged = command.options_for(SpawnOptions.with_logging("info"))
        assert (logged.stdout_log, logged.stderr_log) == ("info", "info")

    def test_validate(self):
        command = commands.validate_command()
        assert (command.name, command.args) == ("validate", [])


class TestFmtCommand:
    def test_fmt_no_arguments(self):
        command = commands.fmt_command()
        assert (command.name, command.args) == ("fmt", [])

    def test_fmt_flags_then_targets(self):
        command = commands.fmt_command(check=True, recursive=True, targets=["a.tf", "dir/"])
        assert command.args == ["-check", "-recursive", "a.tf", "dir/"]

    def test_fmt_targets_only(self):
        assert commands.fmt_command(targets=["x/", "y.tf"]).args == ["x/", "y.tf"]

    def test_fmt_hyphen_target_read_as_path(self):
        command = commands.fmt_command(targets=["-write=true", "a.tf"])
        assert command.args == [os.path.join(".", "-write=true"), "a.tf"]


class TestOptionLayering:
    def test_caller_overrides_defaults_and_forced_overrides_caller(self):
        command = commands.TerraformCommand(
            "x", [],
            defaults=SpawnOptions(stdout_log="debug", stderr_log="debug"),
            forced=SpawnOptions(capture_stdout=True),
        )
        options = command.options_for(
            SpawnOptions(stderr_log="info", capture_stdout=False, working_directory="/p")
        )
        assert options == SpawnOptions(
            working_directory="/p",
            capture_stdout=True,
            stdout_log="debug",
            stderr_log="info",
        )
