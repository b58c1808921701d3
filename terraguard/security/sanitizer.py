"""
Input validation for values forwarded to the Terraform CLI.

This module rejects inputs before they reach a subprocess:
- Invalid Terraform variable names
- Invalid workspace names
- Arguments containing null bytes or of unreasonable length
"""

import re


class SecurityError(Exception):
    """Raised when a security validation fails."""
    pass


class InputSanitizer:
    """
    Provides input validation methods.

    All sanitize_* methods raise SecurityError if validation fails.
    """

    # Terraform variable name pattern: must start with letter/underscore,
    # can contain letters, digits, underscores, hyphens
    VARIABLE_NAME_PATTERN = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_-]*$')
    # Terraform requires workspace names to be valid URL path segments.
    WORKSPACE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._~$&+:=@-]+$")

    MAX_VARIABLE_NAME_LENGTH = 255
    MAX_ARGUMENT_LENGTH = 10000

    @staticmethod
    def sanitize_variable_name(name: str) -> str:
        """
        Validate Terraform variable name.

        Rules:
        - Must start with letter or underscore
        - Can contain letters, digits, underscores, hyphens
        - Max length: 255 characters

        Args:
            name: Variable name to validate

        Returns:
            Validated variable name (unchanged if valid)

        Raises:
            SecurityError: If name is invalid
        """
        if not name:
            raise SecurityError("Variable name cannot be empty")

        if len(name) > InputSanitizer.MAX_VARIABLE_NAME_LENGTH:
            raise SecurityError(
                f"Variable name too long (max {InputSanitizer.MAX_VARIABLE_NAME_LENGTH})"
            )

        if not InputSanitizer.VARIABLE_NAME_PATTERN.fullmatch(name):
            raise SecurityError(
                f"Invalid variable name '{name}': must start with letter/underscore, "
                "contain only letters, digits, underscores, hyphens"
            )

        return name

    @staticmethod
    def sanitize_workspace_name(name: str) -> str:
        """
        Validate Terraform workspace name.

        Rules:
        - Must be usable as a URL path segment without escaping
          (letters, digits and -._~$&+:=@)
        - Cannot be empty
        - Cannot start with hyphen (would be read as a flag)

        Args:
            name: Workspace name to validate

        Returns:
            Validated workspace name (unchanged if valid)

        Raises:
            SecurityError: If name is invalid
        """
        if not name:
            raise SecurityError("Workspace name cannot be empty")

        if name.startswith("-"):
            raise SecurityError("Workspace name cannot start with hyphen")

        if not InputSanitizer.WORKSPACE_NAME_PATTERN.fullmatch(name):
            raise SecurityError(
                f"Invalid workspace name '{name}': must not need escaping "
                "in a URL path segment"
            )

        return name

    @staticmethod
    def is_safe_command_arg(arg: str) -> bool:
        """
        Check if a command argument is safe to pass to subprocess.

        Commands always run with shell=False, this only rejects
        arguments the OS or Terraform could misinterpret.

        Args:
            arg: Command argument to check

        Returns:
            True if safe, False otherwise
        """
        if '\x00' in arg:
            return False

        if len(arg) > InputSanitizer.MAX_ARGUMENT_LENGTH:
            return False

        return True
