"""
Project context shared by the project operations.
"""

import glob
import os
from typing import List, Optional

from ..config import Configuration
from ..core.errors import ConfigurationError
from ..core.terraform_service import TerraformService


class ProjectContext:
    """
    A Terraform project: its configuration, location, and Terraform service.

    Args:
        configuration: Merged project configuration
        project_path: Directory containing the Terraform code
        root_path: Directory external file globs are relative to
            (defaults to project_path)
        service: Terraform service to use, built on first access otherwise
    """

    def __init__(
        self,
        configuration: Configuration,
        project_path: Optional[str] = None,
        root_path: Optional[str] = None,
        service: Optional[TerraformService] = None,
    ):
        self.configuration = configuration
        self.project_path = os.path.abspath(project_path) if project_path else None
        self.root_path = os.path.abspath(root_path) if root_path else self.project_path
        self._service = service

    @property
    def service(self) -> TerraformService:
        if self._service is None:
            self._service = TerraformService(self.configuration, self.project_path)
        return self._service

    def get_project_path_or_throw(self) -> str:
        if self.project_path is None:
            raise ConfigurationError("The project path is not set.")
        return self.project_path

    def get_additional_directories(self) -> List[str]:
        """
        Return the directories matched by the project.externalFiles globs.

        Patterns are relative to the root path. Files and the project
        directory itself are skipped.
        """
        patterns = self.configuration.get("project.externalFiles", [])
        if not patterns:
            return []

        base = self.root_path or self.get_project_path_or_throw()
        directories = set()
        for pattern in patterns:
            for match in glob.glob(os.path.join(base, pattern), recursive=True):
                path = os.path.abspath(match)
                if os.path.isdir(path) and path != self.project_path:
                    directories.add(path)

        return sorted(directories)
