"""
Security module for terraguard.

This module validates inputs before they are forwarded to the
Terraform CLI.
"""

from .sanitizer import InputSanitizer, SecurityError

__all__ = ["InputSanitizer", "SecurityError"]
