"""
Terraform version compatibility check.

The installed Terraform version is probed at most once per VersionGate
and compared with the required version from the configuration. The
outcome (compatible, incompatible, or probe failure) is cached for the
lifetime of the gate.
"""

import functools
import json
import logging
import re
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from .errors import ConfigurationError, IncompatibleVersionError, TerraguardError
from .process_runner import SUPPRESS, ProcessRunner, SpawnOptions

logger = logging.getLogger(__name__)

# Required version value that accepts any installed version.
LATEST = "latest"

_VERSION_PATTERN = re.compile(
    r'^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?'
    r'(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?'
    r'(?:\+[0-9A-Za-z.-]+)?$'
)


class CompatibilityState(Enum):
    UNCHECKED = "unchecked"
    COMPATIBLE = "checked-compatible"
    INCOMPATIBLE = "checked-incompatible"


@functools.total_ordering
@dataclass(frozen=True)
class SemanticVersion:
    """A parsed semantic version. Missing minor/patch components are 0."""
    major: int
    minor: int
    patch: int
    prerelease: Tuple[str, ...] = ()

    @classmethod
    def parse(cls, text: str) -> "SemanticVersion":
        """
        Parse a version such as "1.5.7", "v1.6.0-beta1" or "1.5".

        Raises:
            ValueError: If text is not a semantic version
        """
        match = _VERSION_PATTERN.match(text.strip())
        if not match:
            raise ValueError(f"Invalid semantic version: {text!r}")
        major, minor, patch, prerelease = match.groups()
        return cls(
            major=int(major),
            minor=int(minor or 0),
            patch=int(patch or 0),
            prerelease=tuple(prerelease.split(".")) if prerelease else (),
        )

    @property
    def release(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def _key(self):
        # A pre-release sorts before the release it precedes.
        if not self.prerelease:
            return (self.release, 1, ())
        identifiers = tuple(
            (0, int(part), "") if part.isdigit() else (1, 0, part)
            for part in self.prerelease
        )
        return (self.release, 0, identifiers)

    def __lt__(self, other: "SemanticVersion") -> bool:
        return self._key() < other._key()


def is_compatible(installed: Union[str, SemanticVersion], required: Union[str, SemanticVersion]) -> bool:
    """
    Check whether `installed` satisfies the caret range ^required.

    The installed version must be greater than or equal to the required
    version and share its major component. An installed pre-release is
    only accepted when the requirement is a pre-release of the same
    major.minor.patch.
    """
    if isinstance(installed, str):
        installed = SemanticVersion.parse(installed)
    if isinstance(required, str):
        required = SemanticVersion.parse(required)

    if installed.major != required.major:
        return False
    if installed.prerelease and not (
        required.prerelease and installed.release == required.release
    ):
        return False
    return installed >= required


class VersionGate:
    """
    Lazily checks that the installed Terraform matches the required version.

    Concurrent callers of ensure_compatible() share a single in-flight
    check: the first caller creates the Future under the lock and runs
    the probe, the others wait on that same Future.
    """

    VERSION_ARGS = ["-version", "-json"]

    def __init__(
        self,
        runner: ProcessRunner,
        required_version: Optional[str] = None,
        terraform_binary: str = "terraform",
        spawn_options: Optional[SpawnOptions] = None,
    ):
        self.required_version = required_version or LATEST
        if self.required_version != LATEST:
            try:
                SemanticVersion.parse(self.required_version)
            except ValueError as e:
                raise ConfigurationError(f"Invalid required Terraform version: {e}")

        self._runner = runner
        self._terraform_binary = terraform_binary
        self._spawn_options = spawn_options or SpawnOptions()
        self._lock = threading.Lock()
        self._check: Optional[Future] = None
        self._compatible = False

    @property
    def state(self) -> CompatibilityState:
        if self._compatible:
            return CompatibilityState.COMPATIBLE
        check = self._check
        if check is not None and check.done() and check.exception() is None:
            _, compatible = check.result()
            if not compatible:
                return CompatibilityState.INCOMPATIBLE
        return CompatibilityState.UNCHECKED

    def ensure_compatible(self):
        """
        Return if the installed Terraform version is compatible.

        Raises:
            IncompatibleVersionError: If it is not (on every call)
            ProcessExitError: If the version probe failed
        """
        if self._compatible:
            return

        if self.required_version == LATEST:
            self._compatible = True
            return

        with self._lock:
            check = self._check
            is_owner = check is None
            if is_owner:
                check = self._check = Future()

        if is_owner:
            self._run_check(check)

        installed, compatible = check.result()
        if not compatible:
            raise IncompatibleVersionError(installed, self.required_version)
        self._compatible = True

    def _run_check(self, check: Future):
        try:
            installed = self.probe_installed_version()
            compatible = is_compatible(installed, self.required_version)
        except Exception as e:
            logger.debug(f"Terraform version check failed: {e}")
            check.set_exception(e)
            return
        except BaseException:
            # Interrupted: release the waiters and let the next call probe again.
            with self._lock:
                self._check = None
            check.set_exception(TerraguardError("The Terraform version check was interrupted."))
            raise

        logger.debug(
            f"Installed Terraform version {installed} "
            f"{'satisfies' if compatible else 'does not satisfy'} ^{self.required_version}."
        )
        check.set_result((installed, compatible))

    def probe_installed_version(self) -> str:
        """Run `terraform -version -json` and return the reported version."""
        options = self._spawn_options.override(SpawnOptions(
            capture_stdout=True,
            stdout_log=SUPPRESS,
            stderr_log="debug",
        ))
        result = self._runner.spawn(self._terraform_binary, self.VERSION_ARGS, options)

        try:
            version = json.loads(result.stdout or "")["terraform_version"]
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            raise TerraguardError(f"Unable to read the installed Terraform version: {e}")

        SemanticVersion.parse(version)
        return version
