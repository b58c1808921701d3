"""
terraguard - guarded Terraform CLI operations.
"""

__version__ = "0.9.0"
