"""Cloud Function Entry Point - Root Module.

This is the root-level entry point for Google Cloud Functions.
It imports from the pawmap package.
"""

from pawmap.main import nearby_map

__all__ = [
    "nearby_map",
]
