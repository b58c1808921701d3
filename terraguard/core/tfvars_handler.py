"""
Handler for .tfvars files.

Loads Terraform variable definition files so their values can be
forwarded to terraform plan as -var arguments.
"""

import json
import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)


class TfvarsHandler:
    """Parse .tfvars files and format values for the command line."""

    @staticmethod
    def parse_tfvars(file_path: str) -> Dict[str, Any]:
        """
        Parse a .tfvars file and return variable name-value pairs.

        Uses hcl2 for parsing. Depending on the hcl2 release, string
        values may keep their surrounding double quotes: these are removed.

        Args:
            file_path: Path to the .tfvars file.

        Returns:
            Dict of variable name to value, in file order.

        Raises:
            FileNotFoundError: If file does not exist.
            ValueError: If file cannot be parsed.
        """
        import hcl2

        try:
            with open(file_path, "r") as f:
                parsed = hcl2.load(f)
        except FileNotFoundError:
            raise
        except Exception as e:
            raise ValueError(f"Failed to parse tfvars file: {e}")

        logger.debug(f"Loaded {len(parsed)} variable(s) from {file_path}")
        return {key: TfvarsHandler._normalize(value) for key, value in parsed.items()}

    @staticmethod
    def to_variable_value(value: Any) -> str:
        """
        Format a Python value as the right-hand side of a -var argument.

        Strings are passed as is, booleans and numbers use Terraform
        literals, lists and maps are written as JSON (valid HCL).
        """
        if isinstance(value, bool):
            return "true" if value else "false"
        elif isinstance(value, (int, float)):
            return str(value)
        elif isinstance(value, str):
            return value
        else:
            return json.dumps(value)

    @staticmethod
    def _normalize(value: Any) -> Any:
        if isinstance(value, str) and len(value) >= 2 and value[0] == value[-1] == '"':
            return value[1:-1]
        if isinstance(value, list):
            return [TfvarsHandler._normalize(v) for v in value]
        if isinstance(value, dict):
            return {
                TfvarsHandler._normalize(k): TfvarsHandler._normalize(v)
                for k, v in value.items()
            }
        return value
