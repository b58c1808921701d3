"""
Project lifecycle operations for terraguard.
"""

from .context import ProjectContext
from .operations import (
    PrepareResult,
    supports,
    init_project,
    update_dependencies,
    lint_project,
    load_variables,
    prepare_infrastructure,
    deploy_infrastructure,
)

__all__ = [
    "ProjectContext",
    "PrepareResult",
    "supports",
    "init_project",
    "update_dependencies",
    "lint_project",
    "load_variables",
    "prepare_infrastructure",
    "deploy_infrastructure",
]
