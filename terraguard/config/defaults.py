"""
Default configuration for terraguard.

These values are the bottom layer of every Configuration; project and
command-line layers are merged on top of them.
"""

DEFAULT_CONFIGURATION = {
    "terraform": {
        # Required Terraform version, a semantic version or "latest"
        "version": "latest",

        # Terraform binary
        "binary": "terraform",

        # Default workspace for plan / apply, None means not configured
        "workspace": None,
    },

    "project": {
        "externalFiles": [],
    },

    "infrastructure": {
        "variables": {},
        "variablesFile": None,
    },
}
