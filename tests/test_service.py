"""Tests for TerraformService, all mocked, no real Terraform needed."""

import json
from unittest.mock import MagicMock, patch

import pytest

from terraguard.config import Configuration
from terraguard.core.errors import IncompatibleVersionError, ProcessExitError
from terraguard.core.process_runner import SUPPRESS, CommandResult, ProcessRunner, SpawnOptions
from terraguard.core.terraform_service import TerraformService


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def runner():
    runner = MagicMock(spec=ProcessRunner)
    runner.spawn.return_value = CommandResult(exit_code=0, command="terraform")
    return runner


@pytest.fixture
def service(runner):
    configuration = Configuration({"terraform": {"workspace": "dev"}})
    return TerraformService(configuration, project_path="/project", runner=runner)


def _exit_error(code, args=()):
    return ProcessExitError("terraform", list(args), CommandResult(exit_code=code))


# ---------------------------------------------------------------------------
# terraform()
# ---------------------------------------------------------------------------

class TestTerraform:
    def test_spawns_terraform_in_project_directory(self, service, runner):
        service.terraform("plan", ["-input=false"])

        executable, args, options = runner.spawn.call_args[0]
        assert executable == "terraform"
        assert args == ["plan", "-input=false"]
        assert options.working_directory == "/project"

    def test_caller_options_override_defaults(self, service, runner):
        service.terraform("validate", [], SpawnOptions(working_directory="/other", stdout_log="info"))

        options = runner.spawn.call_args[0][2]
        assert options.working_directory == "/other"
        assert options.stdout_log == "info"

    def test_configured_binary(self, runner):
        configuration = Configuration({"terraform": {"binary": "/opt/bin/tofu"}})
        service = TerraformService(configuration, runner=runner)
        service.terraform("validate", [])
        assert runner.spawn.call_args[0][0] == "/opt/bin/tofu"

    def test_version_defaults_to_latest(self, service, runner):
        assert service.required_version == "latest"
        service.terraform("validate", [])
        service.terraform("validate", [])
        assert runner.spawn.call_count == 2

    def test_incompatible_version_blocks_every_command(self, runner):
        runner.spawn.return_value = CommandResult(
            exit_code=0, stdout=json.dumps({"terraform_version": "1.5.7"})
        )
        configuration = Configuration({"terraform": {"version": "9999.0.0"}})
        service = TerraformService(configuration, runner=runner)

        for _ in range(2):
            with pytest.raises(IncompatibleVersionError):
                service.terraform("validate", [])

        # Only the version probe was spawned, once.
        assert runner.spawn.call_count == 1
        assert runner.spawn.call_args[0][1] == ["-version", "-json"]
        assert service.required_version == "9999.0.0"

    def test_compatible_version_checked_once(self, runner):
        version_result = CommandResult(exit_code=0, stdout=json.dumps({"terraform_version": "1.7.1"}))
        runner.spawn.side_effect = [version_result, CommandResult(0), CommandResult(0)]
        configuration = Configuration({"terraform": {"version": "1.5.0"}})
        service = TerraformService(configuration, runner=runner)

        service.terraform("validate", [])
        service.terraform("fmt", [])

        spawned = [c[0][1] for c in runner.spawn.call_args_list]
        assert spawned == [["-version", "-json"], ["validate"], ["fmt"]]


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------

class TestSubcommands:
    def test_init(self, service):
        with patch.object(service, "terraform", return_value=CommandResult(0)) as mock_tf:
            service.init()
        command, args, _ = mock_tf.call_args[0]
        assert command == "init"
        assert args == ["-input=false"]

    def test_init_upgrade(self, service):
        with patch.object(service, "terraform", return_value=CommandResult(0)) as mock_tf:
            service.init(upgrade=True, options=SpawnOptions.with_logging("debug"))
        command, args, options = mock_tf.call_args[0]
        assert "-upgrade" in args
        assert options.stdout_log == "debug"

    def test_workspace_show_trims_output(self, service):
        with patch.object(service, "terraform", return_value=CommandResult(0, stdout="staging\n")) as mock_tf:
            assert service.workspace_show() == "staging"
        command, args, options = mock_tf.call_args[0]
        assert (command, args) == ("workspace", ["show"])
        assert options.capture_stdout is True
        assert options.stdout_log == SUPPRESS
        assert options.stderr_log == "debug"

    def test_workspace_show_empty_output(self, service):
        with patch.object(service, "terraform", return_value=CommandResult(0)):
            assert service.workspace_show() == ""

    def test_workspace_select(self, service):
        with patch.object(service, "terraform", return_value=CommandResult(0)) as mock_tf:
            service.workspace_select("prod", or_create=True)
        command, args, _ = mock_tf.call_args[0]
        assert (command, args) == ("workspace", ["select", "-or-create=true", "prod"])

    def test_apply(self, service):
        with patch.object(service, "terraform", return_value=CommandResult(0)) as mock_tf:
            service.apply("/tmp/plan.out")
        command, args, _ = mock_tf.call_args[0]
        assert (command, args) == ("apply", ["-input=false", "/tmp/plan.out"])

    def test_show_returns_stdout(self, service):
        with patch.object(service, "terraform", return_value=CommandResult(0, stdout="+ resource")) as mock_tf:
            assert service.show("plan.out", SpawnOptions(capture_stdout=False)) == "+ resource"
        command, args, options = mock_tf.call_args[0]
        assert (command, args) == ("show", ["plan.out"])
        assert options.capture_stdout is True
        assert options.capture_stderr is True
        assert options.stdout_log == SUPPRESS

    def test_validate(self, service):
        with patch.object(service, "terraform", return_value=CommandResult(0)) as mock_tf:
            service.validate()
        command, args, _ = mock_tf.call_args[0]
        assert (command, args) == ("validate", [])

    def test_fmt_returns_raw_result(self, service):
        expected = CommandResult(0, stdout="main.tf")
        with patch.object(service, "terraform", return_value=expected) as mock_tf:
            result = service.fmt(check=True, recursive=True, targets=["file1.tf", "folder/"])
        assert result is expected
        command, args, _ = mock_tf.call_args[0]
        assert command == "fmt"
        assert args == ["-check", "-recursive", "file1.tf", "folder/"]

    def test_fmt_check_failure_carries_result(self, service):
        with patch.object(service, "terraform", side_effect=_exit_error(3, ["fmt", "-check"])):
            with pytest.raises(ProcessExitError) as exc_info:
                service.fmt(check=True)
        assert exc_info.value.exit_code == 3


# ---------------------------------------------------------------------------
# plan() exit code interpretation
# ---------------------------------------------------------------------------

class TestPlan:
    def test_plan_no_changes(self, service):
        with patch.object(service, "terraform", return_value=CommandResult(0)) as mock_tf:
            assert service.plan("plan.out") is False
        command, args, _ = mock_tf.call_args[0]
        assert command == "plan"
        assert "-detailed-exitcode" in args

    def test_plan_with_changes(self, service):
        with patch.object(service, "terraform", side_effect=_exit_error(2)):
            assert service.plan("plan.out") is True

    @pytest.mark.parametrize("code", [1, 3, 127])
    def test_plan_failure_propagates(self, service, code):
        with patch.object(service, "terraform", side_effect=_exit_error(code)):
            with pytest.raises(ProcessExitError) as exc_info:
                service.plan("plan.out")
        assert exc_info.value.exit_code == code

    def test_plan_arguments(self, service):
        with patch.object(service, "terraform", return_value=CommandResult(0)) as mock_tf:
            service.plan("/out/plan.out", destroy=True, variables={"a": "1", "b": "2"})
        _, args, _ = mock_tf.call_args[0]
        assert args == [
            "-input=false", "-out=/out/plan.out", "-detailed-exitcode", "-destroy",
            "-var", "a=1", "-var", "b=2",
        ]

    def test_plan_through_runner(self, service, runner):
        runner.spawn.side_effect = _exit_error(2)
        assert service.plan("plan.out") is True
        assert runner.spawn.call_args[0][1][0] == "plan"
