"""
Component Build Controller

Submits a new component build whenever the build trigger generated from the
component's declared state drifts from the one currently deployed.
"""

import importlib.metadata

__version__ = importlib.metadata.version("component-build-controller")

from .drift import detect_drift, is_new_build_required
from .linker import link_secret_if_absent
from .providers import get_git_provider
from .reconciler import ComponentBuildReconciler, ReconcileOutcome, ReconcileResult
from .submitter import BuildSubmitter

__all__ = [
    "BuildSubmitter",
    "ComponentBuildReconciler",
    "ReconcileOutcome",
    "ReconcileResult",
    "detect_drift",
    "get_git_provider",
    "is_new_build_required",
    "link_secret_if_absent",
]
