"""
terraguard command line.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from . import __version__
from .config import Configuration
from .core.errors import TerraguardError
from .project import (
    ProjectContext,
    supports,
    init_project,
    update_dependencies,
    lint_project,
    prepare_infrastructure,
    deploy_infrastructure,
)
from .security import SecurityError
from .utils import setup_logging

logger = logging.getLogger(__name__)

# Configuration file looked up in the project directory.
PROJECT_CONFIG_FILENAME = "terraguard.json"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="terraguard",
        description="Run Terraform project operations with version and workspace guards.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-p", "--project", default=".", help="Terraform project directory")
    parser.add_argument("--root", help="Directory external file globs are relative to")
    parser.add_argument(
        "-c", "--config", action="append", default=[],
        help="Additional JSON configuration file, may be repeated (last wins)",
    )
    parser.add_argument("-w", "--workspace", help="Override terraform.workspace")
    parser.add_argument("--log-level", default="INFO", help="Console log level")
    parser.add_argument("--log-file", action="store_true", help="Also write a debug log file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    init = subparsers.add_parser("init", help="Initialize Terraform")
    init.add_argument("--force", action="store_true", help="Remove the .terraform folder first")

    subparsers.add_parser("update", help="Upgrade providers and modules")
    subparsers.add_parser("lint", help="Validate and check formatting")

    prepare = subparsers.add_parser("prepare", help="Plan the deployment")
    prepare.add_argument("-o", "--output", help="Plan file (default: plan.out)")
    prepare.add_argument("--destroy", action="store_true", help="Plan the destruction of resources")
    prepare.add_argument("--print", dest="print_plan", action="store_true", help="Print the plan")

    deploy = subparsers.add_parser("deploy", help="Apply a plan")
    deploy.add_argument("deployment", help="Plan file produced by prepare")

    return parser


def load_configuration(project_path: str, config_files: List[str], workspace: Optional[str]) -> Configuration:
    """Merge the project configuration file, extra files, and command-line overrides."""
    paths = []
    project_config = os.path.join(project_path, PROJECT_CONFIG_FILENAME)
    if os.path.isfile(project_config):
        paths.append(project_config)
    paths.extend(config_files)

    overrides = {"terraform": {"workspace": workspace}} if workspace else {}
    return Configuration.from_files(paths, overrides)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for terraguard."""
    args = build_parser().parse_args(argv)
    setup_logging(log_level=args.log_level, log_file=args.log_file)

    try:
        configuration = load_configuration(args.project, args.config, args.workspace)
        if not supports(configuration):
            logger.error("The project is not a Terraform infrastructure project.")
            return 1

        context = ProjectContext(configuration, args.project, args.root)

        if args.command == "init":
            init_project(context, force=args.force)
        elif args.command == "update":
            update_dependencies(context)
        elif args.command == "lint":
            lint_project(context)
        elif args.command == "prepare":
            result = prepare_infrastructure(
                context,
                output=args.output,
                destroy=args.destroy,
                print_plan=args.print_plan,
            )
            logger.info(f"Plan written to {result.output}")
        elif args.command == "deploy":
            deploy_infrastructure(context, args.deployment)

    except (TerraguardError, SecurityError) as e:
        logger.error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
